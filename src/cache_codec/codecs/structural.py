"""
Structural codec with identity tracking and type tagging.

Encodes arbitrary value graphs, including shared and cyclic structure,
to a versioned JSON document. Every composite value is assigned an
integer identity in depth-first pre-order the first time it is visited;
later visits emit a circular marker carrying that identity.

Decoding replays the same pre-order numbering, registering each
composite before its children are filled, so every circular marker
resolves to the reconstructed value.
"""

from __future__ import annotations

import json
import logging
from enum import Enum
from typing import Any, Optional

from cache_codec.codecs.base import CacheCodec
from cache_codec.document import FORMAT_VERSION, CacheDocument
from cache_codec.errors import FormatError, ParseError
from cache_codec.kinds import (
    RESERVED_TAGS,
    TAG_CIRCULAR,
    TAG_DATE,
    TAG_DIAGNOSTIC,
    TAG_MAP,
    TAG_PARSE_NODE,
    TAG_REGEXP,
    TAG_SET,
    TAG_TEXT_RANGE,
    TAG_TEXT_RANGE_COLLECTION,
    DiagnosticSummary,
    ParseNodeSummary,
    TextRange,
    TextRangeCollection,
    ValueKind,
    classify,
    compile_pattern,
    freeze,
    is_int,
    is_scalar,
    pattern_flags,
    record_items,
    timestamp_from_iso,
    timestamp_to_iso,
)

logger = logging.getLogger(__name__)

# Returned by the encoder for values that are omitted (callables)
_ABSENT = object()


class _EncodeContext:
    """Identity table for a single encode call.

    Visited values are held in ``seen`` alongside their identity so
    their ``id()`` cannot be reused by a new object mid-walk.
    """

    def __init__(self) -> None:
        self.seen: dict[int, tuple[int, Any]] = {}
        self.order: list[int] = []
        self.refs: list[Any] = []

    @property
    def ref_count(self) -> int:
        return len(self.order)

    def lookup(self, value: Any) -> Optional[int]:
        entry = self.seen.get(id(value))
        return entry[0] if entry is not None else None

    def assign(self, value: Any) -> int:
        ref_id = len(self.order)
        self.seen[id(value)] = (ref_id, value)
        self.order.append(id(value))
        return ref_id

    def rollback(self, mark: int) -> None:
        """Forget identities assigned since mark."""
        while len(self.order) > mark:
            del self.seen[self.order.pop()]


class _DecodeContext:
    """Reconstructed composites for a single decode call, by identity."""

    def __init__(self) -> None:
        self.objects: list[Any] = []

    def register(self, value: Any) -> Any:
        self.objects.append(value)
        return value

    def resolve(self, ref_id: Any) -> Any:
        if not is_int(ref_id) or not 0 <= ref_id < len(self.objects):
            raise FormatError(f"Unresolved circular reference: {ref_id!r}")
        return self.objects[ref_id]


def _summary_field(value: Any) -> Any:
    """Reduce a summary field to a JSON scalar."""
    if isinstance(value, Enum):
        value = value.value
    if value is None or is_scalar(value):
        return value
    return str(value)


def _tag_of(node: dict) -> Optional[str]:
    """Return the reserved tag of a single-key object, if any."""
    if len(node) != 1:
        return None
    key = next(iter(node))
    return key if key in RESERVED_TAGS else None


class StructuralCodec(CacheCodec):
    """Identity-tracking codec for arbitrary value graphs.

    Shared and cyclic structure survives a round trip: two references to
    one value decode to two references to one reconstructed value.

    Document format:
        {"version": 1, "data": <encoded tree>, "refs": []}

    Encoded tree nodes are scalars, null, lists, plain objects (records)
    or single-key objects tagged with one of the reserved tags in
    ``cache_codec.kinds``. A real record whose only key is a reserved tag
    is indistinguishable from a tagged node and will be misread.

    Example:
        >>> codec = StructuralCodec()
        >>> node = {"name": "root"}
        >>> node["self"] = node
        >>> decoded = codec.decode(codec.encode(node))
        >>> decoded["self"] is decoded
        True
    """

    name = "structural"
    supports_cycles = True

    def encode(self, data: Any) -> str:
        """Encode a value graph to a versioned JSON document.

        Properties that fail to encode are dropped from their record and
        failing container elements are written as null; this method does
        not raise for such failures.

        Args:
            data: Root value.

        Returns:
            JSON document text.
        """
        context = _EncodeContext()
        tree = self._encode_item(data, context)
        document = CacheDocument(
            version=FORMAT_VERSION,
            data=tree,
            refs=context.refs,
        )
        logger.debug(f"Encoded {context.ref_count} composite value(s)")
        return json.dumps(document.to_dict(), indent=self.options.indent)

    def decode(self, text: str) -> Any:
        """Decode a JSON document back to a value graph.

        Args:
            text: Document produced by encode.

        Returns:
            Reconstructed root value.

        Raises:
            ParseError: If text is not well-formed JSON.
            FormatError: If the version is missing or unsupported, or a
                tagged node is malformed.
        """
        try:
            parsed = json.loads(text)
        except (TypeError, ValueError) as e:
            raise ParseError(e) from e

        document = CacheDocument.from_dict(parsed)
        context = _DecodeContext()
        try:
            value = self._decode_value(document.data, context)
        except FormatError:
            raise
        except (
            AttributeError,
            IndexError,
            KeyError,
            TypeError,
            ValueError,
        ) as e:
            raise FormatError(
                "Malformed cache document", details=f"{type(e).__name__}: {e}"
            ) from e
        logger.debug(f"Decoded {len(context.objects)} composite value(s)")
        return value

    # ========================================================================
    # Encoding
    # ========================================================================

    def _encode_value(self, value: Any, context: _EncodeContext) -> Any:
        """Recursively encode a value.

        Args:
            value: Value to encode.
            context: Identity table for this encode call.

        Returns:
            JSON-compatible tree, or _ABSENT if the value is omitted.
        """
        if value is None or is_scalar(value):
            return value
        if callable(value):
            return _ABSENT

        ref_id = context.lookup(value)
        if ref_id is not None:
            return {TAG_CIRCULAR: ref_id}
        context.assign(value)

        kind = classify(value)
        if kind is ValueKind.TIMESTAMP:
            return {TAG_DATE: timestamp_to_iso(value)}
        elif kind is ValueKind.PATTERN:
            return {
                TAG_REGEXP: {
                    "source": value.pattern,
                    "flags": pattern_flags(value),
                }
            }
        elif kind is ValueKind.MAPPING:
            return {
                TAG_MAP: [
                    [
                        self._encode_item(k, context),
                        self._encode_item(v, context),
                    ]
                    for k, v in value.items()
                ]
            }
        elif kind is ValueKind.SET:
            return {TAG_SET: [self._encode_item(v, context) for v in value]}
        elif kind is ValueKind.PARSE_NODE:
            return {
                TAG_PARSE_NODE: {
                    "nodeType": _summary_field(value.node_type),
                    "id": _summary_field(value.id),
                    "start": value.start,
                    "length": value.length,
                }
            }
        elif kind is ValueKind.RANGE_COLLECTION:
            count = value.count
            return {
                TAG_TEXT_RANGE_COLLECTION: {
                    "items": [
                        self._encode_item(value.get_item_at(i), context)
                        for i in range(count)
                    ],
                    "count": count,
                }
            }
        elif kind is ValueKind.TEXT_RANGE:
            return {
                TAG_TEXT_RANGE: {"start": value.start, "length": value.length}
            }
        elif kind is ValueKind.DIAGNOSTIC:
            # Rules, actions and private fields are not persisted
            return {
                TAG_DIAGNOSTIC: {
                    "category": _summary_field(value.category),
                    "message": _summary_field(value.message),
                    "range": self._encode_item(value.range, context),
                }
            }
        elif kind is ValueKind.SEQUENCE:
            return [self._encode_item(item, context) for item in value]
        return self._encode_record(value, context)

    def _encode_guarded(
        self, value: Any, context: _EncodeContext, label: str
    ) -> Any:
        """Encode a value, omitting it if encoding raises.

        Identities assigned while encoding the failed value are released
        so numbering stays in step with the decoder.
        """
        mark = context.ref_count
        try:
            return self._encode_value(value, context)
        except RecursionError:
            raise
        except Exception as e:
            context.rollback(mark)
            logger.debug(f"Skipping {label}: {e}")
            return _ABSENT

    def _encode_item(self, value: Any, context: _EncodeContext) -> Any:
        """Encode a container element; omitted values become null."""
        encoded = self._encode_guarded(
            value, context, f"{type(value).__name__} element"
        )
        return None if encoded is _ABSENT else encoded

    def _encode_record(
        self, value: Any, context: _EncodeContext
    ) -> dict[str, Any]:
        """Encode the own keys of a record.

        A key whose value raises while being encoded is skipped, and any
        identities assigned while encoding it are released.

        Args:
            value: Dict or object to walk.
            context: Identity table for this encode call.

        Returns:
            Dict of encoded values.
        """
        items = record_items(value, self.options.include_private)
        if self.options.sort_keys:
            items = iter(sorted(items, key=lambda item: item[0]))

        result: dict[str, Any] = {}
        for key, item in items:
            encoded = self._encode_guarded(
                item,
                context,
                f"property {key!r} of {type(value).__name__}",
            )
            if encoded is not _ABSENT:
                result[key] = encoded
        return result

    # ========================================================================
    # Decoding
    # ========================================================================

    def _decode_value(self, node: Any, context: _DecodeContext) -> Any:
        """Recursively decode an encoded tree node.

        Composites are registered with the context before their children
        are decoded, in the same order the encoder assigned identities.

        Args:
            node: Encoded tree node.
            context: Reconstructed composites for this decode call.

        Returns:
            Reconstructed value.
        """
        if isinstance(node, list):
            items: list[Any] = context.register([])
            for item in node:
                items.append(self._decode_value(item, context))
            return items
        if not isinstance(node, dict):
            return node

        tag = _tag_of(node)
        if tag is None:
            record: dict[str, Any] = context.register({})
            for key, item in node.items():
                record[key] = self._decode_value(item, context)
            return record

        payload = node[tag]
        if tag == TAG_CIRCULAR:
            return context.resolve(payload)
        elif tag == TAG_DATE:
            return context.register(timestamp_from_iso(payload))
        elif tag == TAG_REGEXP:
            return context.register(
                compile_pattern(payload["source"], payload.get("flags", ""))
            )
        elif tag == TAG_MAP:
            mapping: dict[Any, Any] = context.register({})
            for entry in payload:
                key, item = entry
                key = freeze(self._decode_value(key, context))
                mapping[key] = self._decode_value(item, context)
            return mapping
        elif tag == TAG_SET:
            members: set[Any] = context.register(set())
            for item in payload:
                members.add(freeze(self._decode_value(item, context)))
            return members
        elif tag == TAG_TEXT_RANGE:
            return context.register(
                TextRange(start=payload["start"], length=payload["length"])
            )
        elif tag == TAG_TEXT_RANGE_COLLECTION:
            ranges = context.register(TextRangeCollection())
            for item in payload["items"]:
                ranges.append(self._decode_value(item, context))
            return ranges
        elif tag == TAG_PARSE_NODE:
            return context.register(
                ParseNodeSummary(
                    node_type=payload["nodeType"],
                    id=payload["id"],
                    start=payload["start"],
                    length=payload["length"],
                )
            )
        # TAG_DIAGNOSTIC
        diagnostic = context.register(
            DiagnosticSummary(
                category=payload["category"], message=payload["message"]
            )
        )
        diagnostic.range = self._decode_value(payload.get("range"), context)
        return diagnostic
