"""Codec options shared by the library API and the CLI."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field


class CodecOptions(BaseModel):
    """Options controlling how codecs write and walk values.

    Attributes:
        indent: JSON indentation, or None for compact output.
        include_private: Include attributes starting with an underscore
            when walking plain objects as records.
        sort_keys: Sort record keys in the written JSON.

    Example:
        >>> options = CodecOptions(indent=None)
        >>> codec = StructuralCodec(options)
    """

    indent: Optional[int] = Field(
        default=2,
        ge=0,
        le=8,
        description="JSON indentation (None for compact output)",
    )
    include_private: bool = Field(
        default=False,
        description="Walk underscore-prefixed object attributes",
    )
    sort_keys: bool = Field(
        default=False,
        description="Sort record keys in written JSON",
    )

    model_config = {"frozen": True}
