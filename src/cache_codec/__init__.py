"""
cache-codec: structural and flat codecs for persisted cache payloads.
"""

from cache_codec.codecs import (
    CacheCodec,
    FlatCodec,
    StructuralCodec,
    get_codec,
)
from cache_codec.config import CodecOptions
from cache_codec.errors import CodecError, FormatError, ParseError
from cache_codec.kinds import (
    DiagnosticCategory,
    DiagnosticSummary,
    ParseNodeSummary,
    TextRange,
    TextRangeCollection,
)

__version__ = "0.1.0"
__author__ = "cache-codec contributors"

# Package metadata
__title__ = "cache-codec"
__description__ = "Structural and flat codecs for persisted cache payloads"

__license__ = "MIT"

# Version tuple for programmatic access (major, minor, patch)
VERSION = (0, 1, 0)

__all__ = [
    "__version__",
    "__author__",
    "VERSION",
    # Codecs
    "CacheCodec",
    "StructuralCodec",
    "FlatCodec",
    "get_codec",
    "CodecOptions",
    # Errors
    "CodecError",
    "FormatError",
    "ParseError",
    # Value kinds
    "TextRange",
    "TextRangeCollection",
    "ParseNodeSummary",
    "DiagnosticSummary",
    "DiagnosticCategory",
]
