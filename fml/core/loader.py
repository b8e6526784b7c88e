# fml/core/loader.py
"""
File loader collaborators. The pipeline never touches the file system
except through a FileLoader.
"""
from pathlib import Path, PurePosixPath
from typing import Dict, Mapping, Protocol, Union
import structlog

from fml.exceptions import IncludeNotFoundError, TemplateDecodeError
from fml.util import strip_utf8_bom

log = structlog.get_logger(__name__)

PathLike = Union[str, Path]

class FileLoader(Protocol):
    def load(self, path: PathLike, base_dir: PathLike) -> str:
        """Returns the raw text of `path` (relative to `base_dir` unless absolute).

        Raises IncludeNotFoundError naming the resolved path when it does not exist,
        and TemplateDecodeError when its bytes are not valid in the loader's encoding.
        """
        ...

def resolve_target(path: PathLike, base_dir: PathLike) -> Path:
    # joins a relative target onto base_dir; absolute targets are kept as-is.
    target = Path(path).expanduser()
    if target.is_absolute():
        return target
    return Path(base_dir) / target

class FilesystemLoader:
    """Reads templates from disk."""

    def __init__(self, encoding: str = "utf-8"):
        self.encoding = encoding

    def load(self, path: PathLike, base_dir: PathLike) -> str:
        resolved = resolve_target(path, base_dir).resolve()
        log.debug("loading_template_file", path=str(resolved))
        if not resolved.is_file():
            raise IncludeNotFoundError(str(resolved))
        try:
            content_bytes = resolved.read_bytes()
        except FileNotFoundError as e:
            raise IncludeNotFoundError(str(resolved)) from e
        try:
            text = content_bytes.decode(self.encoding)
        except UnicodeDecodeError as e:
            log.warning("template_decode_failed", path=str(resolved), encoding=self.encoding, error=str(e))
            raise TemplateDecodeError(str(resolved), self.encoding, e.reason) from e
        return strip_utf8_bom(text)

    def __repr__(self) -> str:
        return f"FilesystemLoader(encoding={self.encoding!r})"

class MappingLoader:
    """Serves templates from an in-memory {path: text} mapping.

    Keys are normalized posix paths, so "dir/../a.fml" and "a.fml" name the
    same entry. Useful for tests and for templates bundled as data.
    """

    def __init__(self, templates: Mapping[str, str]):
        self.templates: Dict[str, str] = {
            _normalize(key): text for key, text in templates.items()
        }

    def load(self, path: PathLike, base_dir: PathLike) -> str:
        key = _normalize(str(resolve_target(path, base_dir)))
        log.debug("loading_template_from_mapping", path=key)
        if key not in self.templates:
            raise IncludeNotFoundError(key)
        return self.templates[key]

def _normalize(path: str) -> str:
    parts = []
    for part in PurePosixPath(path.replace("\\", "/")).parts:
        if part == ".":
            continue
        if part == ".." and parts and parts[-1] not in ("..", "/"):
            parts.pop()
            continue
        parts.append(part)
    if not parts:
        return "."
    return str(PurePosixPath(*parts))
