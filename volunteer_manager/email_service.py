"""
Outgoing e-mail through Resend
Messages are authored as markdown, wrapped in an MJML layout and compiled to HTML
"""

import logging
from typing import Optional, Union

import resend
from mjml import mjml_to_html

from .config import EMAIL_FROM_ADDRESS, RESEND_API_KEY
from .email_templates import volunteer_message_template

logger = logging.getLogger(__name__)

resend.api_key = RESEND_API_KEY


def compile_mjml_to_html(mjml_content: str) -> str:
    """Compile an MJML document to HTML. Compiler warnings are logged, not raised."""
    try:
        result = mjml_to_html(mjml_content)
    except Exception as e:
        logger.error(f"❌ MJML compilation failed: {e}")
        raise Exception(f"Unable to compile the message: {e}") from e

    errors = result.get("errors") if isinstance(result, dict) else getattr(result, "errors", None)
    if errors:
        logger.warning(f"⚠️ MJML compiler reported: {errors}")

    if isinstance(result, dict):
        return result.get("html", "")
    return getattr(result, "html", str(result))


def format_sender(sender: Optional[str]) -> str:
    """Display `sender` as the name of the from address"""
    if not sender:
        return EMAIL_FROM_ADDRESS
    address = EMAIL_FROM_ADDRESS.split("<")[-1].rstrip(">").strip()
    return f"{sender} <{address}>"


async def send_email(
    to: Union[str, list[str]],
    subject: str,
    mjml_content: str,
    sender: Optional[str] = None,
) -> dict:
    """
    Send an MJML message through Resend.

    Args:
        to: Recipient address, or a list of them
        subject: Subject of the message
        mjml_content: The message, compiled to HTML before sending
        sender: Display name used for the from address

    Returns:
        The Resend response
    """
    if not RESEND_API_KEY:
        logger.error("❌ RESEND_API_KEY is not set, unable to send e-mail")
        raise Exception("Email service not configured")

    recipients = [to] if isinstance(to, str) else list(to)
    params = {
        "from": format_sender(sender),
        "to": recipients,
        "subject": subject,
        "html": compile_mjml_to_html(mjml_content),
    }

    try:
        response = resend.Emails.send(params)
    except Exception as e:
        logger.error(f"❌ Resend rejected the message to {recipients}: {e}")
        raise Exception(f"Failed to send email: {e}") from e

    logger.info(f"📧 Sent \"{subject}\" to {len(recipients)} recipient(s)")
    return response


async def send_volunteer_message(to: str, subject: str, markdown: str, sender: str) -> dict:
    """Send a markdown-authored message to a volunteer"""
    mjml_content = volunteer_message_template(markdown, sender, preview_text=subject)
    return await send_email(to=to, subject=subject, mjml_content=mjml_content, sender=sender)
