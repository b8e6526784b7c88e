# fml/core/pipeline.py
"""
Top-level entry points: render an FML file to a string.
"""
from pathlib import Path
from typing import Any, Mapping, Optional, Tuple, Union
import structlog

from fml.config.settings import ParseOptions, TagStyle, get_tag_style
from .loader import FileLoader, FilesystemLoader, PathLike
from .renderer import Renderer

log = structlog.get_logger(__name__)

def build_options(
    path: PathLike,
    base_dir: Optional[PathLike] = None,
    tag_style: Union[str, TagStyle, None] = None,
    loader: Optional[FileLoader] = None,
) -> Tuple[Path, ParseOptions]:
    """Works out the entry file and the options threaded through the render.

    Without `base_dir` the entry path is taken relative to the working
    directory and its own directory becomes the base. With `base_dir` the
    entry path is taken relative to `base_dir`.
    """
    entry = Path(path)
    if base_dir is not None and not entry.is_absolute():
        entry = Path(base_dir) / entry
    options = ParseOptions(
        base_dir=entry.parent,
        tag_style=get_tag_style(tag_style),
        loader=loader if loader is not None else FilesystemLoader(),
    )
    return entry, options

def parse_fml(
    path: PathLike,
    context: Optional[Mapping[str, Any]] = None,
    base_dir: Optional[PathLike] = None,
    tag_style: Union[str, TagStyle, None] = None,
    loader: Optional[FileLoader] = None,
) -> str:
    """Renders the FML file at `path` with `context` and returns the text.

    Raises FmlSyntaxError, UndefinedVariableError, IncludeNotFoundError or
    IncludeCycleError; nothing is returned on failure.
    """
    entry, options = build_options(path, base_dir, tag_style, loader)
    log.info("parse_fml_started", path=str(entry), tag_style=options.tag_style.name)
    rendered = Renderer(context, options).render_file(entry.name, options.base_dir)
    log.info("parse_fml_complete", path=str(entry), length=len(rendered))
    return rendered

async def parse_fml_async(
    path: PathLike,
    context: Optional[Mapping[str, Any]] = None,
    base_dir: Optional[PathLike] = None,
    tag_style: Union[str, TagStyle, None] = None,
    loader: Optional[FileLoader] = None,
) -> str:
    # same contract as parse_fml; sibling includes are loaded concurrently.
    entry, options = build_options(path, base_dir, tag_style, loader)
    log.info("parse_fml_started", path=str(entry), tag_style=options.tag_style.name, mode="async")
    rendered = await Renderer(context, options).render_file_async(entry.name, options.base_dir)
    log.info("parse_fml_complete", path=str(entry), length=len(rendered), mode="async")
    return rendered
