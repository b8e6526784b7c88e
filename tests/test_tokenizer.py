# tests/test_tokenizer.py
"""Tests for splitting raw FML text into tokens."""

import pytest

from fml.config.settings import TAG_STYLES
from fml.core.tokenizer import tokenize, Text, PlaceholderRef, TagOpen, TagClose, Include
from fml.exceptions import FmlSyntaxError

XML = TAG_STYLES["xml"]
BBCODE = TAG_STYLES["bbcode"]


def values(tokens):
    """Strips line numbers so tests can compare token kinds and payloads."""
    return [(type(t).__name__, getattr(t, "value", None) or getattr(t, "path", None)
             or getattr(t, "name", None) or getattr(t, "target", None)) for t in tokens]


class TestPlainText:
    def test_plain_text_is_a_single_token(self):
        assert tokenize("Just some text.\nTwo lines.") == [Text("Just some text.\nTwo lines.", 1)]

    def test_empty_input_has_no_tokens(self):
        assert tokenize("") == []

    def test_stray_delimiters_stay_in_text(self):
        tokens = tokenize("a < b and c > d, {single} brace, x <= y")
        assert tokens == [Text("a < b and c > d, {single} brace, x <= y", 1)]

    def test_bbcode_brackets_without_a_name_are_text(self):
        assert tokenize("see [1] and [ ] here", BBCODE) == [Text("see [1] and [ ] here", 1)]


class TestPlaceholders:
    def test_placeholder_path_is_trimmed(self):
        tokens = tokenize("Hello, {{   user.name  }}!")
        assert tokens == [Text("Hello, ", 1), PlaceholderRef("user.name", 1), Text("!", 1)]

    def test_adjacent_placeholders(self):
        assert values(tokenize("{{a}}{{b}}")) == [("PlaceholderRef", "a"), ("PlaceholderRef", "b")]

    def test_unterminated_placeholder_raises(self):
        with pytest.raises(FmlSyntaxError, match="unterminated placeholder at line 2"):
            tokenize("line one\nHello {{ name")

    def test_empty_placeholder_raises(self):
        with pytest.raises(FmlSyntaxError, match="empty placeholder"):
            tokenize("Hello {{  }}")


class TestTags:
    def test_xml_tags(self):
        tokens = tokenize("<tag>\nBody\n</tag>")
        assert tokens == [TagOpen("tag", 1), Text("\nBody\n", 1), TagClose("tag", 3)]

    def test_tag_names_are_trimmed(self):
        assert values(tokenize("< tag >x</ tag >")) == [("TagOpen", "tag"), ("Text", "x"), ("TagClose", "tag")]

    def test_bbcode_tags(self):
        tokens = tokenize("[note]hi[/note]", BBCODE)
        assert values(tokens) == [("TagOpen", "note"), ("Text", "hi"), ("TagClose", "note")]

    def test_xml_markup_is_text_in_bbcode_style(self):
        tokens = tokenize("<tag>x</tag>", BBCODE)
        assert tokens == [Text("<tag>x</tag>", 1)]

    def test_line_numbers_follow_newlines(self):
        tokens = tokenize("one\ntwo\n<a>\n{{ x }}\n</a>")
        opens = [t for t in tokens if isinstance(t, TagOpen)]
        refs = [t for t in tokens if isinstance(t, PlaceholderRef)]
        closes = [t for t in tokens if isinstance(t, TagClose)]
        assert (opens[0].line, refs[0].line, closes[0].line) == (3, 4, 5)


class TestIncludes:
    @pytest.mark.parametrize("source", [
        '<include path="a.fml" />',
        '<include path="a.fml"/>',
        "<include path='a.fml'></include>",
        '<include path="a.fml"></include>',
        "<include: a.fml>",
        "<include:a.fml >",
    ])
    def test_xml_include_forms(self, source):
        assert tokenize(source) == [Include("a.fml", 1)]

    @pytest.mark.parametrize("source", [
        '[include path="dir/a.fml" /]',
        '[include path="dir/a.fml"][/include]',
        "[include: dir/a.fml]",
    ])
    def test_bbcode_include_forms(self, source):
        assert tokenize(source, BBCODE) == [Include("dir/a.fml", 1)]

    def test_include_takes_priority_over_tag_open(self):
        tokens = tokenize('<include path="a.fml"></include><include>x</include>')
        assert values(tokens) == [
            ("Include", "a.fml"), ("TagOpen", "include"), ("Text", "x"), ("TagClose", "include"),
        ]

    def test_unterminated_include_raises(self):
        with pytest.raises(FmlSyntaxError, match="unterminated include directive"):
            tokenize('text\n<include path="a.fml"')

    def test_include_with_empty_path_raises(self):
        with pytest.raises(FmlSyntaxError, match="without a path"):
            tokenize('<include path="" />')

    def test_surrounding_text_is_preserved(self):
        tokens = tokenize('Before\n<include path="a.fml" />\nAfter')
        assert tokens == [Text("Before\n", 1), Include("a.fml", 2), Text("\nAfter", 2)]
