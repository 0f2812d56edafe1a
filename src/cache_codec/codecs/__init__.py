"""
Cache codecs for persisting value graphs as JSON text.

Two strategies share one value-kind vocabulary:

- StructuralCodec: identity tracking, cycle-preserving, tagged nodes
- FlatCodec: no identity tracking, repeated values become "[Circular]"
"""

from __future__ import annotations

from typing import Optional

from cache_codec.codecs.base import CacheCodec
from cache_codec.codecs.flat import CIRCULAR_MARKER, FlatCodec
from cache_codec.codecs.structural import StructuralCodec
from cache_codec.config import CodecOptions

CODECS: dict[str, type[CacheCodec]] = {
    StructuralCodec.name: StructuralCodec,
    FlatCodec.name: FlatCodec,
}


def get_codec(
    name: str, options: Optional[CodecOptions] = None
) -> CacheCodec:
    """Create a codec by name.

    Args:
        name: Codec name ("structural" or "flat").
        options: Codec options.

    Returns:
        Codec instance.

    Raises:
        ValueError: If name is not a known codec.
    """
    if name not in CODECS:
        raise ValueError(
            f"Unknown codec: {name}. Valid codecs: {', '.join(CODECS)}"
        )
    return CODECS[name](options)


__all__ = [
    "CIRCULAR_MARKER",
    "CODECS",
    "CacheCodec",
    "FlatCodec",
    "StructuralCodec",
    "get_codec",
]
