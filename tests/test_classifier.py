import pytest

from clipkeeper.classifier import analyze_text, detect_type, extract_color_hex, looks_like_code
from clipkeeper.models import ContentType


class TestDetectColor:
    @pytest.mark.parametrize("text", ["#FF5733", "#abc", "#ABCD", "#11223344", "  #ff5733  "])
    def test_hex_colors(self, text):
        assert detect_type(text) == ContentType.COLOR

    @pytest.mark.parametrize("text", ["rgb(255, 87, 51)", "RGBA(0,0,0,0.5)", "rgb (1,2,3)"])
    def test_rgb_colors(self, text):
        assert detect_type(text) == ContentType.COLOR

    def test_four_digit_hex_is_rgba_color(self):
        assert detect_type("#FF57") == ContentType.COLOR

    def test_five_digit_hex_is_not_color(self):
        assert detect_type("#FF573") != ContentType.COLOR

    def test_hex_inside_sentence_is_text(self):
        assert detect_type("the color is #FF5733") == ContentType.TEXT


class TestDetectUrlAndEmail:
    def test_url(self):
        assert detect_type("https://example.com/p") == ContentType.URL

    def test_url_with_query(self):
        assert detect_type("http://docs.python.org/3/library/re.html?highlight=match#re.fullmatch") == ContentType.URL

    def test_url_needs_dotted_host(self):
        assert detect_type("http://localhost") != ContentType.URL

    def test_multiline_url_is_not_url(self):
        assert detect_type("https://example.com\nhttps://example.org") != ContentType.URL

    def test_email(self):
        assert detect_type("a@b.com") == ContentType.EMAIL

    def test_email_with_dots(self):
        assert detect_type("first.last-name@mail.example.co.uk") == ContentType.EMAIL

    def test_email_in_sentence_is_text(self):
        assert detect_type("mail me at a@b.com") == ContentType.TEXT


class TestDetectCode:
    def test_function_block(self):
        assert detect_type("function f(){\n return 1;\n}") == ContentType.CODE

    @pytest.mark.parametrize(
        "text",
        [
            "def main():",
            "import os",
            "from typing import Any",
            "const x = 1",
            "public class Foo",
            "#include <stdio.h>",
            "<!DOCTYPE html>",
            "fn main() {}",
        ],
    )
    def test_line_anchored_constructs(self, text):
        assert detect_type(text) == ContentType.CODE

    @pytest.mark.parametrize("text", ["x => x + 1", "a && b", "if (a === b)", "Foo::bar", "<b>bold</b>"])
    def test_indicator_tokens(self, text):
        assert detect_type(text) == ContentType.CODE

    def test_construct_on_later_line(self):
        assert detect_type("some notes\nimport numpy as np") == ContentType.CODE

    def test_structural_heuristic(self):
        text = "x = 1;\ny = 2;\nprint(x)"
        assert detect_type(text) == ContentType.CODE


class TestDetectText:
    def test_plain_text(self):
        assert detect_type("hello world") == ContentType.TEXT

    def test_empty(self):
        assert detect_type("") == ContentType.TEXT

    def test_whitespace_only(self):
        assert detect_type("   \n\t ") == ContentType.TEXT

    def test_prose_paragraphs(self):
        assert detect_type("Dear team,\nthe meeting moved to Friday.\nThanks") == ContentType.TEXT


class TestLooksLikeCode:
    def test_single_line_never_code(self):
        assert looks_like_code("int x = 1;") is False

    def test_indented_lines_count(self):
        assert looks_like_code("if x\n    return y\n    done") is True

    def test_tab_indented_lines_count(self):
        assert looks_like_code("loop\n\tstep\nend") is True

    def test_comment_lines_count(self):
        assert looks_like_code("# heading\nplain\nplain") is True

    def test_exactly_thirty_percent_is_not_code(self):
        lines = ["stmt;"] * 3 + ["words"] * 7
        assert looks_like_code("\n".join(lines)) is False

    def test_above_thirty_percent_is_code(self):
        lines = ["stmt;"] * 4 + ["words"] * 6
        assert looks_like_code("\n".join(lines)) is True

    def test_blank_indented_line_ignored(self):
        assert looks_like_code("one\n    \ntwo\nthree") is False


class TestExtractColorHex:
    def test_uppercases_and_trims(self):
        assert extract_color_hex("  #abc  ") == "#ABC"

    def test_eight_digit(self):
        assert extract_color_hex("#11223344") == "#11223344"

    def test_rgb_has_no_hex(self):
        assert extract_color_hex("rgb(1,2,3)") is None

    def test_not_a_color(self):
        assert extract_color_hex("hello") is None


class TestAnalyzeText:
    def test_color_analysis(self):
        result = analyze_text("#ff5733")
        assert result.content_type == ContentType.COLOR
        assert result.color_hex == "#FF5733"
        assert result.preview == "#ff5733"
        assert len(result.content_hash) == 64

    def test_non_color_has_no_hex(self):
        result = analyze_text("hello world")
        assert result.content_type == ContentType.TEXT
        assert result.color_hex is None

    def test_preview_is_normalized(self):
        result = analyze_text("def f():\n\treturn 1")
        assert result.preview == "def f(): return 1"

    def test_same_text_same_hash(self):
        assert analyze_text("abc").content_hash == analyze_text("abc").content_hash
