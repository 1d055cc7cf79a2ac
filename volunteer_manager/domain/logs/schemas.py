"""Log domain schemas - Pydantic models for browsing the audit log"""

from typing import Any, Optional

from pydantic import BaseModel, field_validator

from ...logs import SEVERITIES


class LogUser(BaseModel):
    userId: int
    name: str


class LogRow(BaseModel):
    id: int
    data: Optional[Any] = None
    date: str
    type: str
    message: str
    severity: str
    source: Optional[LogUser] = None
    target: Optional[LogUser] = None


class LogsContext(BaseModel):
    # Only include entries where this user is either the source or the target
    userId: Optional[int] = None

    # Comma separated list of severities to include, all when omitted
    severity: Optional[str] = None

    @field_validator("severity")
    @classmethod
    def validate_severity(cls, v):
        if v is None:
            return v
        severities = [severity.strip() for severity in v.split(",") if severity.strip()]
        for severity in severities:
            if severity not in SEVERITIES:
                raise ValueError(f"Unknown severity: {severity}")
        return ",".join(severities)
