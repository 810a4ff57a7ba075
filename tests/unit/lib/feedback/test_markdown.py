"""Unit tests for front-matter parsing and markdown-to-text rendering."""

import pytest

from agent_feedback.lib.feedback.markdown import markdown_to_text, parse_front_matter
from agent_feedback.lib.feedback.mentions import extract_mentions


class TestParseFrontMatter:

    def test_no_front_matter(self):
        parsed = parse_front_matter("Just a comment")

        assert parsed.content == "Just a comment"
        assert parsed.front_matter == {}

    def test_front_matter_is_split_off(self):
        parsed = parse_front_matter("---\nkind: review\nparent_id: null\n---\n\nNice work.")

        assert parsed.front_matter == {"kind": "review", "parent_id": None}
        assert parsed.content.strip() == "Nice work."

    def test_empty_front_matter_block(self):
        parsed = parse_front_matter("---\n\n---\nBody")

        assert parsed.front_matter == {}
        assert parsed.content == "Body"

    def test_invalid_yaml_is_treated_as_content(self):
        raw = "---\nkind: [unclosed\n---\nBody"

        parsed = parse_front_matter(raw)

        assert parsed.front_matter == {}
        assert parsed.content == raw

    def test_non_mapping_front_matter_is_treated_as_content(self):
        raw = "---\n- a\n- b\n---\nBody"

        assert parse_front_matter(raw).content == raw

    def test_crlf_line_endings(self):
        parsed = parse_front_matter("---\r\nkind: issue\r\n---\r\nBody")

        assert parsed.front_matter == {"kind": "issue"}
        assert parsed.content == "Body"


class TestMarkdownToText:

    def test_strips_code_blocks_and_inline_code(self):
        text = markdown_to_text("Before\n```python\nprint('@bob')\n```\nafter `@carol` done")

        assert "@bob" not in text
        assert "@carol" not in text
        assert text.startswith("Before")
        assert text.endswith("done")

    def test_keeps_link_labels_only(self):
        assert markdown_to_text("see [the docs](https://example.com/x)") == "see the docs"

    def test_removes_markdown_punctuation(self):
        assert markdown_to_text("# Title\n> quoted **bold** ~~gone~~") == "Title\n  quoted  bold   gone"

    def test_keeps_underscores_and_hyphens_inside_words(self):
        text = markdown_to_text("ping @erin_x about well-known _emphasis_ - list")

        assert "@erin_x" in text
        assert "well-known" in text
        assert "_emphasis_" not in text

    @pytest.mark.parametrize(
        "body,handles",
        [
            ("thanks @bob_", {"bob_"}),
            ("ping @_bot", {"_bot"}),
            ("cc @data-", {"data-"}),
            ("cc @-x", {"-x"}),
            ("**@bob_** and _@carol_", {"bob_", "carol"}),
        ],
    )
    def test_handles_with_edge_dashes_survive(self, body, handles):
        assert extract_mentions(markdown_to_text(body)) == handles

    def test_overlong_handle_is_not_shortened_into_a_mention(self):
        body = "@" + "a" * 32 + "_"

        assert extract_mentions(markdown_to_text(body)) == set()

    def test_collapses_blank_runs(self):
        assert markdown_to_text("a\n\n\n\nb") == "a\n\nb"
