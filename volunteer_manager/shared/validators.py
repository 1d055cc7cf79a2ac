"""Shared validation utilities"""

import re
from typing import Optional

SLUG_PATTERN = re.compile(r"^[a-z0-9][a-z0-9-]*$")
TIME_PATTERN = re.compile(r"^([01]?\d|2[0-3]):([0-5]\d)$")


def validate_slug(slug: str) -> str:
    """Validate a URL slug for events and teams"""
    slug = slug.strip().lower()
    if not SLUG_PATTERN.match(slug):
        raise ValueError("Slugs may only contain lowercase letters, digits and dashes")
    return slug


def validate_time(value: Optional[str], default: str) -> str:
    """Return `value` when it is a valid HH:MM time, otherwise `default`"""
    if value and TIME_PATTERN.match(value):
        return value
    return default


def parse_service_timing(timing: str) -> tuple[int, int]:
    """Split a service timing such as "10-0" into its start and end hours"""
    start, end = timing.split("-", 1)
    return int(start), int(end)
