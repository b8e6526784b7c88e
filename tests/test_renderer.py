# tests/test_renderer.py
"""Tests for rendering node trees, including includes served from memory."""

import pytest
from pathlib import Path

from fml.config.settings import ParseOptions, TAG_STYLES
from fml.core.loader import MappingLoader
from fml.core.nodes import IncludeNode
from fml.core.parser import parse
from fml.core.renderer import Renderer, render, render_file, resolve_include, collect_includes
from fml.core.tokenizer import tokenize
from fml.exceptions import (
    FmlSyntaxError, UndefinedVariableError, IncludeNotFoundError, IncludeCycleError,
)

XML = TAG_STYLES["xml"]
BBCODE = TAG_STYLES["bbcode"]


def options_for(templates, style=XML, base_dir="proj"):
    return ParseOptions(base_dir=Path(base_dir), tag_style=style, loader=MappingLoader(templates))


def render_text(raw, context=None, style=XML, templates=None):
    options = options_for(templates or {}, style)
    return render(parse(tokenize(raw, style), style), context, options.base_dir, options)


class TestInlineRendering:
    @pytest.mark.parametrize("raw", [
        "",
        "plain text",
        "multi\nline\n\ntext with trailing newline\n",
        "a < b and c > d { e } [f]",
        "  indented\r\nwindows lines\r\n",
    ])
    def test_text_without_markers_is_unchanged(self, raw):
        assert render_text(raw) == raw

    def test_placeholder_interpolation(self):
        assert render_text("Hello, {{ name }}!", {"name": "Alice"}) == "Hello, Alice!"

    def test_tag_passes_through(self):
        assert render_text("<tag>\nBody\n</tag>") == "<tag>\nBody\n</tag>"

    def test_inline_tag_gets_line_breaks(self):
        assert render_text("<tag>Body</tag>") == "<tag>\nBody\n</tag>"

    def test_nested_tags_keep_order(self):
        raw = "<outer>\n<inner>\n{{ x }}\n</inner>\n</outer>"
        assert render_text(raw, {"x": 1}) == "<outer>\n<inner>\n1\n</inner>\n</outer>"

    def test_only_one_line_break_is_trimmed(self):
        assert render_text("<t>\n\nBody\n\n</t>") == "<t>\n\nBody\n\n</t>"

    def test_bbcode_tags_render_in_bbcode(self):
        assert render_text("[note]\n{{ n }}\n[/note]", {"n": "hi"}, BBCODE) == "[note]\nhi\n[/note]"

    def test_object_placeholder_keeps_surrounding_text(self):
        out = render_text("data: {{ obj }} end", {"obj": {"a": 1}})
        assert out == 'data: {\n  "a": 1\n} end'

    def test_rendering_is_deterministic(self):
        raw = "<a>\n{{ p.name }} {{ p.tags }}\n</a>"
        ctx = {"p": {"name": "N", "tags": [1, 2]}}
        assert render_text(raw, ctx) == render_text(raw, ctx)

    def test_context_is_not_mutated(self):
        ctx = {"p": {"name": "N"}}
        render_text("{{ p.name }}", ctx)
        assert ctx == {"p": {"name": "N"}}

    def test_undefined_variable(self):
        with pytest.raises(UndefinedVariableError, match="'who'"):
            render_text("Hi {{ who }}", {})


class TestIncludes:
    def test_include_is_inlined_in_place(self):
        templates = {"proj/part.fml": "PART"}
        assert render_text('A\n<include path="part.fml" />\nB', templates=templates) == "A\nPART\nB"

    def test_include_inside_tag(self):
        templates = {"proj/part.fml": "PART {{ v }}"}
        out = render_text('<t>\n<include path="part.fml" />\n</t>', {"v": 7}, templates=templates)
        assert out == "<t>\nPART 7\n</t>"

    def test_repeated_includes_render_independently(self):
        templates = {"proj/part.fml": "[{{ v }}]"}
        raw = '<include path="part.fml" />-<include path="part.fml" />'
        assert render_text(raw, {"v": 1}, templates=templates) == "[1]-[1]"

    def test_nested_include_resolves_relative_to_including_file(self):
        templates = {
            "proj/top.fml": 'top\n<include path="dir/a.fml" />',
            "proj/dir/a.fml": 'a\n<include path="b.fml" />',
            "proj/dir/b.fml": "b",
            "proj/b.fml": "WRONG",
        }
        assert render_file("top.fml", {}, options_for(templates)) == "top\na\nb"

    def test_absolute_include_target(self):
        templates = {"/abs/x.fml": "X", "proj/top.fml": '<include path="/abs/x.fml" />'}
        assert render_file("top.fml", {}, options_for(templates)) == "X"

    def test_resolve_include_function(self):
        templates = {"proj/dir/p.fml": "P"}
        assert resolve_include(IncludeNode("dir/p.fml"), "proj", {}, options_for(templates)) == "P"

    def test_missing_include_names_resolved_path_and_includer(self):
        templates = {"proj/top.fml": 'x\n<include path="gone.fml" />'}
        with pytest.raises(IncludeNotFoundError) as excinfo:
            render_file("top.fml", {}, options_for(templates))
        assert excinfo.value.resolved_path == "proj/gone.fml"
        assert excinfo.value.path == "proj/top.fml"
        assert isinstance(excinfo.value, FileNotFoundError)

    def test_syntax_error_in_nested_file_names_that_file(self):
        templates = {
            "proj/top.fml": '<include path="sub/bad.fml" />',
            "proj/sub/bad.fml": "<a>\n</b>",
        }
        with pytest.raises(FmlSyntaxError, match=r"FML syntax error in proj/sub/bad.fml: Malformed XML") as excinfo:
            render_file("top.fml", {}, options_for(templates))
        assert excinfo.value.path == "proj/sub/bad.fml"

    def test_undefined_variable_in_nested_file_names_that_file(self):
        templates = {"proj/top.fml": '<include path="n.fml" />', "proj/n.fml": "{{ nope }}"}
        with pytest.raises(UndefinedVariableError, match=r"Undefined variable 'nope' in proj/n.fml"):
            render_file("top.fml", {}, options_for(templates))

    def test_self_include_is_a_cycle(self):
        templates = {"proj/self.fml": 'me <include path="./self.fml" />'}
        with pytest.raises(IncludeCycleError) as excinfo:
            render_file("self.fml", {}, options_for(templates))
        assert excinfo.value.chain == ["proj/self.fml", "proj/self.fml"]

    def test_indirect_cycle(self):
        templates = {
            "proj/a.fml": '<include path="d/b.fml" />',
            "proj/d/b.fml": '<include path="../a.fml" />',
        }
        with pytest.raises(IncludeCycleError, match="proj/a.fml -> proj/d/b.fml -> proj/a.fml"):
            render_file("a.fml", {}, options_for(templates))

    def test_diamond_include_is_not_a_cycle(self):
        templates = {
            "proj/top.fml": '<include path="l.fml" />|<include path="r.fml" />',
            "proj/l.fml": 'L<include path="shared.fml" />',
            "proj/r.fml": 'R<include path="shared.fml" />',
            "proj/shared.fml": "S",
        }
        assert render_file("top.fml", {}, options_for(templates)) == "LS|RS"

    def test_bbcode_includes(self):
        templates = {"proj/top.fml": '[include: p.fml]+[include path="p.fml"][/include]', "proj/p.fml": "p"}
        assert render_file("top.fml", {}, options_for(templates, BBCODE)) == "p+p"


class TestCollectIncludes:
    def test_document_order_through_tags(self):
        nodes = parse(tokenize('<include: 1.fml><a><include: 2.fml><b><include: 3.fml></b></a><include: 4.fml>'))
        assert [n.target for n in collect_includes(nodes)] == ["1.fml", "2.fml", "3.fml", "4.fml"]


class TestRendererReuse:
    def test_renderer_holds_no_state_between_files(self):
        templates = {"proj/a.fml": "{{ v }}", "proj/b.fml": "<t>{{ v }}</t>"}
        renderer = Renderer({"v": "x"}, options_for(templates))
        assert renderer.render_file("a.fml") == "x"
        assert renderer.render_file("b.fml") == "<t>\nx\n</t>"
        assert renderer.render_file("a.fml") == "x"
