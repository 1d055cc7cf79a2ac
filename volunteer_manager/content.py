"""Static content, such as message templates, stored in the content table"""

import logging
import re
from typing import Optional, Union

from sqlalchemy.orm import Session

from .models import Content

logger = logging.getLogger(__name__)

PLACEHOLDER_PATTERN = re.compile(r"\{(\w+)\}")


def apply_substitutions(text: str, substitutions: dict) -> str:
    """Replace {placeholder} tokens; unknown placeholders are left untouched"""

    def replace(match: re.Match) -> str:
        key = match.group(1)
        if key in substitutions and substitutions[key] is not None:
            return str(substitutions[key])
        return match.group(0)

    return PLACEHOLDER_PATTERN.sub(replace, text)


def get_static_content(
    db: Session, path: Union[str, list[str]], substitutions: Optional[dict] = None
) -> Optional[dict]:
    """
    Get static content, i.e. content not associated with an event or team.

    Args:
        db: Database session
        path: Path of the content, either as a string or as a list of path components
        substitutions: Values for the {placeholder} tokens in the title and body

    Returns:
        Dict with "title" and "markdown", or None when the content does not exist
    """
    if isinstance(path, list):
        path = "/".join(path)

    content = (
        db.query(Content)
        .filter(Content.path == path, Content.event_id.is_(None), Content.team_id.is_(None))
        .first()
    )
    if content is None:
        logger.warning(f"⚠️ Static content not found: {path}")
        return None

    substitutions = substitutions or {}
    return {
        "title": apply_substitutions(content.title, substitutions),
        "markdown": apply_substitutions(content.body, substitutions),
    }
