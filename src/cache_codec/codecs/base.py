"""
Abstract base class for cache codecs.

Codecs transform in-memory values to and from a textual interchange
form suitable for persisting as a cache payload.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, ClassVar, Optional

from cache_codec.config import CodecOptions


class CacheCodec(ABC):
    """Abstract base class for cache payload codecs.

    Codecs handle:
    - Encoding a value graph to text
    - Decoding text back to an equivalent value graph
    - Exporting to and importing from files

    The ``supports_cycles`` capability flag tells callers whether shared
    and cyclic structure survives a round trip. Codecs without it may
    replace repeated values with a lossy marker.

    Example:
        >>> class MyCodec(CacheCodec):
        ...     name = "mine"
        ...     def encode(self, data):
        ...         return json.dumps(data)
        ...     def decode(self, text):
        ...         return json.loads(text)
    """

    name: ClassVar[str] = ""
    supports_cycles: ClassVar[bool] = False

    def __init__(self, options: Optional[CodecOptions] = None) -> None:
        """Initialise codec.

        Args:
            options: Codec options. Defaults to CodecOptions().
        """
        self.options = options if options is not None else CodecOptions()

    @property
    def default_export_format(self) -> str:
        """Default file extension for exports (e.g. 'json')."""
        return "json"

    @abstractmethod
    def encode(self, data: Any) -> str:
        """Encode a value to text.

        Args:
            data: Root value to encode.

        Returns:
            Serialised text.
        """
        ...

    @abstractmethod
    def decode(self, text: str) -> Any:
        """Decode text back to a value.

        Args:
            text: Serialised text produced by encode.

        Returns:
            Reconstructed root value.

        Raises:
            CodecError: If text cannot be decoded.
        """
        ...

    def export(self, data: Any, path: Path) -> None:
        """Encode data and write it to a file.

        Args:
            data: The value to export.
            path: Destination file path.
        """
        path.write_text(self.encode(data), encoding="utf-8")

    def import_(self, path: Path) -> Any:
        """Read a file and decode its contents.

        Args:
            path: Source file path.

        Returns:
            Reconstructed value.
        """
        return self.decode(path.read_text(encoding="utf-8"))
