from .settings import TagStyle, TAG_STYLES, DEFAULT_TAG_STYLE, get_tag_style, ParseOptions, RenderConfig

__all__ = ["TagStyle", "TAG_STYLES", "DEFAULT_TAG_STYLE", "get_tag_style", "ParseOptions", "RenderConfig"]
