"""Tests for HTML snippet helpers."""
from src.ui.html_utils import html_block, result_message_html, total_rows_banner


class TestHtmlBlock:
    """html_block normalization."""

    def test_strips_indentation(self):
        html = html_block(
            """
                <div>
                    <span>x</span>
                </div>
            """
        )
        assert html == "<div>\n<span>x</span>\n</div>"


class TestResultMessage:
    """Registration result text."""

    def test_success_is_green(self):
        html = result_message_html("Registration Successful!", True)

        assert "color: green" in html
        assert "✅ Registration Successful!" in html

    def test_failure_is_red(self):
        html = result_message_html("IC must be exactly 12 digits!", False)

        assert "color: red" in html
        assert "❌" in html

    def test_message_escaped(self):
        html = result_message_html("<script>alert(1)</script>", False)

        assert "<script>" not in html
        assert "&lt;script&gt;" in html


class TestTotalRowsBanner:
    """Registrations count banner."""

    def test_contains_count(self):
        assert "Total Registration Rows: 42" in total_rows_banner(42)
