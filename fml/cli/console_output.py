# fml/cli/console_output.py
"""
Console rendering of a parsed template for `fml tree`.
"""
from typing import Sequence

from rich.console import Console as RichConsole
from rich.text import Text
from rich.tree import Tree
import structlog

from fml.config.settings import TagStyle
from fml.core.nodes import Node, TextNode, PlaceholderNode, TagNode, IncludeNode

log = structlog.get_logger(__name__)

TEXT_PREVIEW_LEN = 40

def _text_preview(value: str) -> str:
    preview = value.replace("\n", "\\n")
    if len(preview) > TEXT_PREVIEW_LEN:
        preview = preview[: TEXT_PREVIEW_LEN - 3] + "..."
    return f'"{preview}"'

def _add_nodes(branch: Tree, nodes: Sequence[Node], style: TagStyle) -> None:
    for node in nodes:
        if isinstance(node, TextNode):
            branch.add(Text(f"text {_text_preview(node.value)}", style="dim"))
        elif isinstance(node, PlaceholderNode):
            branch.add(Text(f"{{{{ {node.path} }}}}", style="green"))
        elif isinstance(node, IncludeNode):
            branch.add(Text(f"include {node.target}", style="yellow"))
        elif isinstance(node, TagNode):
            _add_nodes(branch.add(Text(style.open_tag(node.name), style="bold cyan")), node.children, style)

def build_node_tree(label: str, nodes: Sequence[Node], style: TagStyle) -> Tree:
    # plain Text labels keep bbcode brackets from being read as rich markup.
    tree = Tree(Text(label, style="bold"))
    _add_nodes(tree, nodes, style)
    return tree

def print_node_tree(label: str, nodes: Sequence[Node], style: TagStyle) -> None:
    log.debug("printing_node_tree", label=label, root_nodes=len(nodes))
    RichConsole().print(build_node_tree(label, nodes, style))
