"""Utilities for preparing HTML snippets before rendering in Streamlit."""
from html import escape
from textwrap import dedent


def html_block(template: str) -> str:
    """
    Normalize multi-line HTML so Streamlit doesn't treat it as Markdown code.

    Streamlit's Markdown renderer interprets lines with >=4 leading spaces as
    code blocks, so every line is dedented and left-stripped.
    """
    lines = dedent(template).splitlines()
    return "\n".join(line.lstrip() for line in lines).strip()


def total_rows_banner(count: int) -> str:
    """Grey banner with the number of registration rows shown."""
    return html_block(
        f"""
        <div class="total-rows">
            Total Registration Rows: {count}
        </div>
        """
    )


def result_message_html(message: str, success: bool) -> str:
    """Colored result text for the registration modal; message is escaped."""
    color = "green" if success else "red"
    icon = "✅" if success else "❌"
    return html_block(
        f"""
        <p class="result-message" style="color: {color};">
            {icon} {escape(message)}
        </p>
        """
    )
