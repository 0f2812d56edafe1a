"""
Flat codec for acyclic cache payloads.

A simpler alternative to the structural codec for metadata that never
shares structure. Maps, sets and timestamps are written as inline
``_type`` objects; everything else is plain JSON.

Any composite value met a second time, whether through a cycle or a
shared reference, is written as the literal string "[Circular]". The
marker cannot be decoded back to the original value.
"""

from __future__ import annotations

import json
import logging
from typing import Any

from cache_codec.codecs.base import CacheCodec
from cache_codec.errors import FormatError, ParseError
from cache_codec.kinds import (
    ValueKind,
    classify,
    freeze,
    is_scalar,
    record_items,
    timestamp_from_iso,
    timestamp_to_iso,
)

logger = logging.getLogger(__name__)

CIRCULAR_MARKER = "[Circular]"

_ABSENT = object()


class FlatCodec(CacheCodec):
    """Lossy codec without identity tracking.

    Format:
        - Map: {"_type": "Map", "entries": [[key, value], ...]}
        - Set: {"_type": "Set", "values": [...]}
        - Timestamp: {"_type": "Date", "value": "<ISO-8601>"}
        - Repeated composite: "[Circular]"

    Parse nodes, diagnostics and text ranges have no special handling and
    are written as plain objects of their public attributes.

    Example:
        >>> codec = FlatCodec()
        >>> codec.decode(codec.encode({"tags": {"a"}}))
        {'tags': {'a'}}
    """

    name = "flat"
    supports_cycles = False

    def encode(self, data: Any) -> str:
        """Encode a value to flat JSON.

        Args:
            data: Root value, expected to be acyclic.

        Returns:
            JSON text.
        """
        # Visited values are kept alive so their ids stay unique
        seen: dict[int, Any] = {}
        return json.dumps(
            self._flatten_item(data, seen),
            indent=self.options.indent,
            sort_keys=self.options.sort_keys,
        )

    def decode(self, text: str) -> Any:
        """Decode flat JSON, restoring maps, sets and timestamps.

        Args:
            text: JSON text produced by encode.

        Returns:
            Decoded value. "[Circular]" markers are returned as strings.

        Raises:
            ParseError: If text is not well-formed JSON.
            FormatError: If a ``_type`` object is malformed.
        """
        try:
            return json.loads(text, object_hook=self._restore)
        except json.JSONDecodeError as e:
            raise ParseError(e) from e
        except (TypeError, ValueError) as e:
            raise FormatError(
                "Malformed flat payload", details=f"{type(e).__name__}: {e}"
            ) from e

    def _flatten(self, value: Any, seen: dict[int, Any]) -> Any:
        """Recursively convert a value to a JSON-compatible tree.

        Args:
            value: Value to convert.
            seen: Composite values already written, by id.

        Returns:
            JSON-compatible tree, or _ABSENT for callables.
        """
        if value is None or is_scalar(value):
            return value
        if callable(value):
            return _ABSENT
        if id(value) in seen:
            logger.debug(f"Repeated {type(value).__name__} written as marker")
            return CIRCULAR_MARKER
        seen[id(value)] = value

        kind = classify(value)
        if kind is ValueKind.TIMESTAMP:
            return {"_type": "Date", "value": timestamp_to_iso(value)}
        elif kind is ValueKind.MAPPING:
            return {
                "_type": "Map",
                "entries": [
                    [self._flatten_item(k, seen), self._flatten_item(v, seen)]
                    for k, v in value.items()
                ],
            }
        elif kind is ValueKind.SET:
            return {
                "_type": "Set",
                "values": [self._flatten_item(v, seen) for v in value],
            }
        elif kind is ValueKind.SEQUENCE:
            return [self._flatten_item(item, seen) for item in value]

        result: dict[str, Any] = {}
        for key, item in record_items(value, self.options.include_private):
            flattened = self._flatten_guarded(
                item, seen, f"property {key!r} of {type(value).__name__}"
            )
            if flattened is not _ABSENT:
                result[key] = flattened
        return result

    def _flatten_guarded(
        self, value: Any, seen: dict[int, Any], label: str
    ) -> Any:
        """Convert a value, omitting it if conversion raises.

        Values first visited while converting the failed value are
        forgotten, so they are not later written as markers.
        """
        mark = len(seen)
        try:
            return self._flatten(value, seen)
        except RecursionError:
            raise
        except Exception as e:
            while len(seen) > mark:
                seen.popitem()
            logger.debug(f"Skipping {label}: {e}")
            return _ABSENT

    def _flatten_item(self, value: Any, seen: dict[int, Any]) -> Any:
        """Convert a container element; callables and failures become null."""
        flattened = self._flatten_guarded(
            value, seen, f"{type(value).__name__} element"
        )
        return None if flattened is _ABSENT else flattened

    @staticmethod
    def _restore(obj: dict[str, Any]) -> Any:
        """Restore a ``_type`` object; called bottom-up by json.loads."""
        type_name = obj.get("_type")
        if type_name == "Map" and isinstance(obj.get("entries"), list):
            return {freeze(k): v for k, v in obj["entries"]}
        if type_name == "Set" and isinstance(obj.get("values"), list):
            return {freeze(v) for v in obj["values"]}
        if type_name == "Date" and isinstance(obj.get("value"), str):
            return timestamp_from_iso(obj["value"])
        return obj
