from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional, Union
import structlog

from fml.core.loader import FileLoader, FilesystemLoader
from fml.exceptions import ConfigError

log = structlog.get_logger(__name__)

@dataclass(frozen=True)
class TagStyle:
    # delimiter set used to recognize tags and include directives, and to write tags back out.
    name: str
    label: str
    open_tag_prefix: str
    open_tag_suffix: str
    close_tag_prefix: str
    close_tag_suffix: str
    include_marker: str = "include"

    def open_tag(self, tag_name: str) -> str:
        return f"{self.open_tag_prefix}{tag_name}{self.open_tag_suffix}"

    def close_tag(self, tag_name: str) -> str:
        return f"{self.close_tag_prefix}{tag_name}{self.close_tag_suffix}"

XML_STYLE = TagStyle(
    name="xml", label="XML",
    open_tag_prefix="<", open_tag_suffix=">",
    close_tag_prefix="</", close_tag_suffix=">",
)
BBCODE_STYLE = TagStyle(
    name="bbcode", label="BBCode",
    open_tag_prefix="[", open_tag_suffix="]",
    close_tag_prefix="[/", close_tag_suffix="]",
)

TAG_STYLES: Dict[str, TagStyle] = {style.name: style for style in (XML_STYLE, BBCODE_STYLE)}
DEFAULT_TAG_STYLE = XML_STYLE

def get_tag_style(style: Union[str, TagStyle, None]) -> TagStyle:
    # looks up a tag style by name; TagStyle instances pass through.
    if style is None:
        return DEFAULT_TAG_STYLE
    if isinstance(style, TagStyle):
        return style
    try:
        return TAG_STYLES[style.strip().lower()]
    except KeyError:
        log.warning("unknown_tag_style", tag_style=style)
        raise ConfigError(f"Unknown tag style '{style}'. Choose from: {', '.join(TAG_STYLES)}") from None

@dataclass(frozen=True)
class ParseOptions:
    # options threaded unchanged through every include, apart from the base directory.
    base_dir: Path
    tag_style: TagStyle = DEFAULT_TAG_STYLE
    loader: FileLoader = field(default_factory=FilesystemLoader)

@dataclass
class RenderConfig:
    # holds all configuration parameters for a single cli render.
    template_path: Optional[Path] = None
    base_dir: Optional[Path] = None
    tag_style: str = DEFAULT_TAG_STYLE.name
    variables: Dict[str, Any] = field(default_factory=dict)
    context_file: Optional[Path] = None
    output_file: Optional[Path] = None
    encoding: str = "utf-8"

    def __post_init__(self):
        # fail early on a bad style name coming from toml or the command line.
        get_tag_style(self.tag_style)
