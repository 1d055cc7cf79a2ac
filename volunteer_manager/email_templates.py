"""
MJML Email Templates
Messages are authored as light-weight markdown and wrapped in a responsive MJML layout
"""

import html
import re
from typing import Optional

THEME = {
    "primary": "#1565c0",
    "background": "#f5f5f5",
    "card_bg": "#ffffff",
    "text_primary": "#212121",
    "text_muted": "#757575",
}

BOLD_PATTERN = re.compile(r"\*\*(.+?)\*\*")
LINK_PATTERN = re.compile(r"\[([^\]]+)\]\((https?://[^)\s]+)\)")


def render_inline_markdown(text: str) -> str:
    """Escape `text` and render **bold** and [label](url) markup"""
    escaped = html.escape(text, quote=False)
    escaped = BOLD_PATTERN.sub(r"<strong>\1</strong>", escaped)
    escaped = LINK_PATTERN.sub(
        lambda match: f'<a href="{html.escape(match.group(2))}" style="color: {THEME["primary"]}">'
        f"{match.group(1)}</a>",
        escaped,
    )
    return escaped


def markdown_to_mjml_sections(markdown: str) -> str:
    """Each paragraph of `markdown` becomes an mj-text block, lines are kept"""
    paragraphs = [block.strip() for block in re.split(r"\n\s*\n", markdown) if block.strip()]
    blocks = []
    for paragraph in paragraphs:
        lines = [render_inline_markdown(line.strip()) for line in paragraph.splitlines()]
        blocks.append(
            f"""
            <mj-text font-size="15px" line-height="1.6" color="{THEME['text_primary']}">
              {'<br />'.join(lines)}
            </mj-text>
            """
        )
    return "\n".join(blocks)


def volunteer_message_template(markdown: str, sender: str, preview_text: Optional[str] = None) -> str:
    """Base MJML template for messages sent to volunteers"""
    preview = html.escape(preview_text or "")
    return f"""
    <mjml>
      <mj-head>
        <mj-preview>{preview}</mj-preview>
        <mj-attributes>
          <mj-all font-family="Roboto, Helvetica, Arial, sans-serif" />
        </mj-attributes>
      </mj-head>
      <mj-body background-color="{THEME['background']}">
        <mj-section background-color="{THEME['card_bg']}" padding="24px">
          <mj-column>
            {markdown_to_mjml_sections(markdown)}
          </mj-column>
        </mj-section>
        <mj-section padding="12px 0">
          <mj-column>
            <mj-text align="center" font-size="12px" color="{THEME['text_muted']}">
              Sent by {html.escape(sender)} through the AnimeCon Volunteer Manager.
            </mj-text>
          </mj-column>
        </mj-section>
      </mj-body>
    </mjml>
    """
