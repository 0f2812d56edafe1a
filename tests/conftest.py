"""Shared fixtures for cache-codec tests.

Provides small stand-ins for parser and checker objects that the codecs
recognise by shape.
"""

from enum import IntEnum
from typing import Any, Optional

import pytest

from cache_codec.kinds import DiagnosticCategory, TextRange


class NodeType(IntEnum):
    """Subset of parse node types used in tests."""

    MODULE = 36
    NAME = 38


class FakeParseNode:
    """Parse node with children, parent link and private state."""

    def __init__(
        self,
        node_type: NodeType,
        id: int,
        start: int,
        length: int,
        parent: Optional["FakeParseNode"] = None,
    ) -> None:
        self.node_type = node_type
        self.id = id
        self.start = start
        self.length = length
        self.parent = parent
        self.children: list[FakeParseNode] = []
        self._cache: dict[str, Any] = {"scope": object()}


class FakeDiagnostic:
    """Diagnostic carrying a rule and private fields beyond the summary."""

    def __init__(
        self, category: DiagnosticCategory, message: str, range: Any
    ) -> None:
        self.category = category
        self.message = message
        self.range = range
        self.rule = "reportMissingImports"
        self.actions = [{"action": "ignore"}]
        self._private = "secret"


class Scope:
    """Plain object walked as a record."""

    def __init__(self, name: str, parent: Optional["Scope"] = None) -> None:
        self.name = name
        self.parent = parent
        self.children: list[Scope] = []
        self._symbols: dict[str, Any] = {}


class Faulty:
    """Object whose attribute probes raise."""

    def __getattr__(self, name: str) -> Any:
        raise RuntimeError(f"cannot read {name}")


@pytest.fixture
def diagnostic() -> FakeDiagnostic:
    return FakeDiagnostic(
        DiagnosticCategory.WARNING,
        "Import could not be resolved",
        TextRange(4, 6),
    )


@pytest.fixture
def parse_tree() -> FakeParseNode:
    module = FakeParseNode(NodeType.MODULE, 1, 0, 120)
    name = FakeParseNode(NodeType.NAME, 2, 7, 3, parent=module)
    module.children.append(name)
    return module
