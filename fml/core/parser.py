# fml/core/parser.py
"""
Structural parser: turns the token list into a tree of nodes, checking
that every tag is closed by a matching tag at the same depth.
"""
from typing import List, Sequence
import structlog

from fml.config.settings import TagStyle, DEFAULT_TAG_STYLE
from fml.exceptions import FmlSyntaxError
from .nodes import Node, TextNode, PlaceholderNode, TagNode, IncludeNode
from .tokenizer import Token, Text, PlaceholderRef, TagOpen, TagClose, Include

log = structlog.get_logger(__name__)

def _malformed(style: TagStyle, detail: str, line: int) -> FmlSyntaxError:
    return FmlSyntaxError(f"Malformed {style.label}: {detail}", line=line)

def parse(tokens: Sequence[Token], style: TagStyle = DEFAULT_TAG_STYLE) -> List[Node]:
    """Builds the node tree from `tokens` with an explicit stack of open tags.

    Raises FmlSyntaxError ("Malformed XML" / "Malformed BBCode") for a closing
    tag with nothing open, a closing tag whose name differs from the innermost
    open tag, or tags still open at end of input.
    """
    root: List[Node] = []
    stack: List[TagNode] = []

    def append(node: Node) -> None:
        (stack[-1].children if stack else root).append(node)

    for token in tokens:
        if isinstance(token, Text):
            append(TextNode(token.value))
        elif isinstance(token, PlaceholderRef):
            append(PlaceholderNode(token.path, token.line))
        elif isinstance(token, Include):
            append(IncludeNode(token.target, token.line))
        elif isinstance(token, TagOpen):
            stack.append(TagNode(token.name, line=token.line))
        elif isinstance(token, TagClose):
            if not stack:
                raise _malformed(
                    style, f"unexpected closing tag {style.close_tag(token.name)} at line {token.line}", token.line
                )
            tag = stack.pop()
            if tag.name != token.name:
                raise _malformed(
                    style,
                    f"closing tag {style.close_tag(token.name)} at line {token.line} "
                    f"does not match {style.open_tag(tag.name)} opened at line {tag.line}",
                    token.line,
                )
            append(tag)
        else:
            raise TypeError(f"unknown token type: {type(token).__name__}")

    if stack:
        tag = stack[-1]
        raise _malformed(style, f"unclosed tag {style.open_tag(tag.name)} opened at line {tag.line}", tag.line)

    log.debug("template_parsed", tag_style=style.name, root_nodes=len(root))
    return root
