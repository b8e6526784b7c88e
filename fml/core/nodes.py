# fml/core/nodes.py
"""Node types of the parsed FML tree."""
from dataclasses import dataclass, field
from typing import List, Union

@dataclass(frozen=True)
class TextNode:
    value: str

@dataclass(frozen=True)
class PlaceholderNode:
    path: str
    line: int = 1

@dataclass(frozen=True)
class IncludeNode:
    target: str
    line: int = 1

@dataclass
class TagNode:
    # children are appended by the parser while the tag is open; treat as read-only afterwards.
    name: str
    children: List["Node"] = field(default_factory=list)
    line: int = 1

Node = Union[TextNode, PlaceholderNode, TagNode, IncludeNode]
