"""Envelope model for structural cache documents.

A document wraps the encoded value tree with a format version and an
auxiliary reference list:

    {"version": 1, "data": <encoded tree>, "refs": []}

The reference list is always written empty and ignored on read; circular
markers are resolved from the tree itself.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field, ValidationError, field_validator

from cache_codec.errors import FormatError

FORMAT_VERSION = 1


class CacheDocument(BaseModel):
    """Validated structural cache document.

    Attributes:
        version: Format version, must equal FORMAT_VERSION.
        data: Encoded value tree.
        refs: Auxiliary reference list (unused).
    """

    version: int = Field(..., strict=True, description="Format version")
    data: Any = Field(default=None, description="Encoded value tree")
    refs: list[Any] = Field(
        default_factory=list, description="Auxiliary references (unused)"
    )

    @field_validator("version")
    @classmethod
    def validate_version(cls, v: int) -> int:
        """Reject any version other than the supported one."""
        if v != FORMAT_VERSION:
            raise ValueError(
                f"Unsupported cache version {v} "
                f"(expected {FORMAT_VERSION})"
            )
        return v

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialisation."""
        return {
            "version": self.version,
            "data": self.data,
            "refs": list(self.refs),
        }

    @classmethod
    def from_dict(cls, data: Any) -> CacheDocument:
        """Validate a parsed JSON value as a cache document.

        Args:
            data: Value produced by json.loads.

        Returns:
            Validated CacheDocument.

        Raises:
            FormatError: If data is not an object, or its version is
                missing or unsupported.
        """
        if not isinstance(data, dict):
            raise FormatError(
                "Cache document must be a JSON object",
                details=f"got {type(data).__name__}",
            )
        if "version" not in data:
            raise FormatError("Cache document has no version")
        try:
            return cls.model_validate(data)
        except ValidationError as e:
            raise FormatError(
                "Unsupported cache document", details=str(e)
            ) from e
