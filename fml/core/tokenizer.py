# fml/core/tokenizer.py
"""
Splits raw FML text into a flat list of tokens: plain-text runs, placeholder
references, tag opens/closes and include directives.

Only the delimiters come from the TagStyle, so the same scanner serves both
the xml (`<tag>`, `<include path="a.fml" />`) and bbcode (`[tag]`,
`[include path="a.fml" /]`) surfaces. Whether tags balance is the parser's
concern, not the tokenizer's.
"""
import functools
import re
from dataclasses import dataclass
from typing import List, Optional, Pattern, Union
import structlog

from fml.config.settings import TagStyle, DEFAULT_TAG_STYLE
from fml.exceptions import FmlSyntaxError

log = structlog.get_logger(__name__)

TAG_NAME_RE = r"[A-Za-z_][A-Za-z0-9_.:\-]*"
PLACEHOLDER_OPEN = "{{"
PLACEHOLDER_CLOSE = "}}"

@dataclass(frozen=True)
class Text:
    value: str
    line: int = 1

@dataclass(frozen=True)
class PlaceholderRef:
    path: str
    line: int = 1

@dataclass(frozen=True)
class TagOpen:
    name: str
    line: int = 1

@dataclass(frozen=True)
class TagClose:
    name: str
    line: int = 1

@dataclass(frozen=True)
class Include:
    target: str
    line: int = 1

Token = Union[Text, PlaceholderRef, TagOpen, TagClose, Include]

@dataclass(frozen=True)
class _StylePatterns:
    include: Pattern[str]
    include_start: Pattern[str]
    tag_open: Pattern[str]
    tag_close: Pattern[str]
    marker_start: Pattern[str]

@functools.lru_cache(maxsize=None)
def _patterns_for(style: TagStyle) -> _StylePatterns:
    op, os_ = re.escape(style.open_tag_prefix), re.escape(style.open_tag_suffix)
    cp, cs = re.escape(style.close_tag_prefix), re.escape(style.close_tag_suffix)
    marker = re.escape(style.include_marker)
    # characters that may not appear in a shorthand include target
    stop = re.escape(style.open_tag_suffix[:1])

    include = re.compile(
        rf"{op}\s*{marker}"
        rf"(?:\s*:\s*(?P<short>[^{stop}\n]+?)\s*{os_}"
        rf"|\s+path\s*=\s*(?:\"(?P<dq>[^\"\n]*)\"|'(?P<sq>[^'\n]*)')\s*"
        rf"(?:/\s*{os_}|{os_}(?:[ \t]*{cp}\s*{marker}\s*{cs})?))"
    )
    include_start = re.compile(rf"{op}\s*{marker}(?:\s*:|\s+path\s*=)")
    tag_open = re.compile(rf"{op}\s*(?P<name>{TAG_NAME_RE})\s*{os_}")
    tag_close = re.compile(rf"{cp}\s*(?P<name>{TAG_NAME_RE})\s*{cs}")
    first_chars = {style.open_tag_prefix[:1], style.close_tag_prefix[:1], PLACEHOLDER_OPEN[:1]}
    marker_start = re.compile("|".join(re.escape(c) for c in sorted(first_chars)))
    return _StylePatterns(include, include_start, tag_open, tag_close, marker_start)

def _match_marker(raw: str, pos: int, line: int, patterns: _StylePatterns) -> Optional[tuple]:
    # returns (token, end) for a marker starting exactly at pos, or None.
    m = patterns.include.match(raw, pos)
    if m:
        target = next(g for g in (m.group("short"), m.group("dq"), m.group("sq")) if g is not None)
        target = target.strip()
        if not target:
            raise FmlSyntaxError(f"include directive without a path at line {line}", line=line)
        return Include(target, line), m.end()
    if patterns.include_start.match(raw, pos):
        raise FmlSyntaxError(f"unterminated include directive at line {line}", line=line)

    m = patterns.tag_open.match(raw, pos)
    if m:
        return TagOpen(m.group("name"), line), m.end()
    m = patterns.tag_close.match(raw, pos)
    if m:
        return TagClose(m.group("name"), line), m.end()

    if raw.startswith(PLACEHOLDER_OPEN, pos):
        end = raw.find(PLACEHOLDER_CLOSE, pos + len(PLACEHOLDER_OPEN))
        if end == -1:
            raise FmlSyntaxError(f"unterminated placeholder at line {line}", line=line)
        path = raw[pos + len(PLACEHOLDER_OPEN):end].strip()
        if not path:
            raise FmlSyntaxError(f"empty placeholder at line {line}", line=line)
        return PlaceholderRef(path, line), end + len(PLACEHOLDER_CLOSE)
    return None

def tokenize(raw: str, style: TagStyle = DEFAULT_TAG_STYLE) -> List[Token]:
    """Scans `raw` left to right and returns its tokens in source order.

    Marker priority at each position: include directive, tag open, tag close,
    placeholder. Anything else is plain text; adjacent text is coalesced into
    a single Text token. Raises FmlSyntaxError only for markers that start but
    never terminate (an unclosed `{{` or include directive).
    """
    patterns = _patterns_for(style)
    tokens: List[Token] = []
    text_parts: List[str] = []
    text_line = 1
    line = 1
    pos = 0
    length = len(raw)

    while pos < length:
        found = _match_marker(raw, pos, line, patterns)
        if found:
            token, end = found
            if text_parts:
                tokens.append(Text("".join(text_parts), text_line))
                text_parts = []
            tokens.append(token)
            line += raw.count("\n", pos, end)
            pos = end
            continue

        nxt = patterns.marker_start.search(raw, pos + 1)
        end = nxt.start() if nxt else length
        if not text_parts:
            text_line = line
        text_parts.append(raw[pos:end])
        line += raw.count("\n", pos, end)
        pos = end

    if text_parts:
        tokens.append(Text("".join(text_parts), text_line))

    log.debug("template_tokenized", tag_style=style.name, token_count=len(tokens))
    return tokens
