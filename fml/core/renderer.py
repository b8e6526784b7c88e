# fml/core/renderer.py
"""
Renders a parsed FML tree to text.

Placeholders are looked up in the context and formatted, tags are written
back out around their rendered children, and includes are loaded through
the FileLoader and rendered recursively relative to the including file's
own directory. The async variant loads sibling includes concurrently and
splices them back in document order.
"""
import asyncio
import os
from pathlib import Path
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Tuple, Union
import structlog

from fml.config.settings import ParseOptions
from fml.exceptions import FmlError, IncludeCycleError
from .loader import PathLike, resolve_target
from .nodes import Node, TextNode, PlaceholderNode, TagNode, IncludeNode
from .parser import parse
from .tokenizer import tokenize
from .values import format_value, resolve_path

log = structlog.get_logger(__name__)

IncludeChain = Tuple[str, ...]
IncludeHandler = Callable[[IncludeNode], str]

def _chain_key(target: Path) -> str:
    return os.path.normpath(str(target))

def _trim_one_line_break(text: str) -> str:
    # a tag written on its own lines keeps exactly one line break on each side.
    if text.startswith("\r\n"):
        text = text[2:]
    elif text.startswith("\n"):
        text = text[1:]
    if text.endswith("\r\n"):
        text = text[:-2]
    elif text.endswith("\n"):
        text = text[:-1]
    return text

def collect_includes(nodes: Sequence[Node]) -> List[IncludeNode]:
    # include nodes of a tree, depth first, in document order.
    found: List[IncludeNode] = []
    for node in nodes:
        if isinstance(node, IncludeNode):
            found.append(node)
        elif isinstance(node, TagNode):
            found.extend(collect_includes(node.children))
    return found

def _take_result(result: Union[str, BaseException]) -> str:
    if isinstance(result, BaseException):
        raise result
    return result

class Renderer:
    """Renders FML files and node trees against one context and one set of options."""

    def __init__(self, context: Optional[Mapping[str, Any]], options: ParseOptions):
        self.context: Mapping[str, Any] = context if context is not None else {}
        self.options = options
        self.style = options.tag_style

    # -- tree walking -------------------------------------------------------

    def render_nodes(self, nodes: Sequence[Node], include_handler: IncludeHandler) -> str:
        parts: List[str] = []
        for node in nodes:
            if isinstance(node, TextNode):
                parts.append(node.value)
            elif isinstance(node, PlaceholderNode):
                parts.append(format_value(resolve_path(node.path, self.context)))
            elif isinstance(node, TagNode):
                inner = _trim_one_line_break(self.render_nodes(node.children, include_handler))
                parts.append(f"{self.style.open_tag(node.name)}\n{inner}\n{self.style.close_tag(node.name)}")
            elif isinstance(node, IncludeNode):
                parts.append(include_handler(node))
            else:
                raise TypeError(f"unknown node type: {type(node).__name__}")
        return "".join(parts)

    def _parse_source(self, raw: str) -> List[Node]:
        return parse(tokenize(raw, self.style), self.style)

    def _enter(self, path: PathLike, base_dir: PathLike, chain: IncludeChain) -> Tuple[Path, IncludeChain]:
        target = resolve_target(path, base_dir)
        key = _chain_key(target)
        if key in chain:
            log.warning("include_cycle_detected", path=key, chain=list(chain))
            raise IncludeCycleError([*chain, key])
        return target, chain + (key,)

    # -- synchronous --------------------------------------------------------

    def render_file(self, path: PathLike, base_dir: Optional[PathLike] = None, chain: IncludeChain = ()) -> str:
        """Loads, parses and renders one file; nested includes resolve against its directory."""
        base_dir = self.options.base_dir if base_dir is None else base_dir
        target, chain = self._enter(path, base_dir, chain)
        raw = self.options.loader.load(path, base_dir)
        log.debug("rendering_file", path=str(target), depth=len(chain))
        current_dir = target.parent
        try:
            nodes = self._parse_source(raw)
            return self.render_nodes(
                nodes, lambda node: self.resolve_include(node, current_dir, chain)
            )
        except FmlError as e:
            if e.path is not None:
                raise
            raise e.with_path(str(target)) from e

    def resolve_include(self, node: IncludeNode, current_dir: PathLike, chain: IncludeChain = ()) -> str:
        rendered = self.render_file(node.target, current_dir, chain)
        log.debug("include_resolved", target=node.target, current_dir=str(current_dir), length=len(rendered))
        return rendered

    # -- asynchronous -------------------------------------------------------

    async def render_file_async(
        self, path: PathLike, base_dir: Optional[PathLike] = None, chain: IncludeChain = ()
    ) -> str:
        """Async counterpart of render_file: suspends only at file loads."""
        base_dir = self.options.base_dir if base_dir is None else base_dir
        target, chain = self._enter(path, base_dir, chain)
        raw = await asyncio.to_thread(self.options.loader.load, path, base_dir)
        log.debug("rendering_file", path=str(target), depth=len(chain), mode="async")
        current_dir = target.parent
        try:
            nodes = self._parse_source(raw)
            includes = collect_includes(nodes)
            results = await asyncio.gather(
                *(self.render_file_async(inc.target, current_dir, chain) for inc in includes),
                return_exceptions=True,
            )
            # failures are raised at their include position, so the first error in
            # document order wins, as in render_file.
            rendered: Dict[int, Union[str, BaseException]] = {
                id(inc): result for inc, result in zip(includes, results)
            }
            return self.render_nodes(nodes, lambda node: _take_result(rendered[id(node)]))
        except FmlError as e:
            if e.path is not None:
                raise
            raise e.with_path(str(target)) from e


def render(
    nodes: Sequence[Node],
    context: Optional[Mapping[str, Any]],
    current_dir: PathLike,
    options: ParseOptions,
) -> str:
    # renders an already parsed tree; includes resolve against current_dir.
    renderer = Renderer(context, options)
    return renderer.render_nodes(nodes, lambda node: renderer.resolve_include(node, current_dir))

def resolve_include(
    node: IncludeNode,
    current_dir: PathLike,
    context: Optional[Mapping[str, Any]],
    options: ParseOptions,
) -> str:
    return Renderer(context, options).resolve_include(node, current_dir)

def render_file(path: PathLike, context: Optional[Mapping[str, Any]], options: ParseOptions) -> str:
    return Renderer(context, options).render_file(path)
