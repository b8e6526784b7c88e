# fml/__init__.py
"""
fml: parse and render FML templates (text, tags, placeholders and includes).
"""
__version__ = "0.3.0"

from .core.pipeline import parse_fml, parse_fml_async
from .exceptions import (
    FmlError,
    FmlSyntaxError,
    UndefinedVariableError,
    IncludeNotFoundError,
    IncludeCycleError,
    TemplateDecodeError,
    ConfigError,
)

__all__ = [
    "__version__",
    "parse_fml",
    "parse_fml_async",
    "FmlError",
    "FmlSyntaxError",
    "UndefinedVariableError",
    "IncludeNotFoundError",
    "IncludeCycleError",
    "TemplateDecodeError",
    "ConfigError",
]
