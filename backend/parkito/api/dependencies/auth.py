# backend/parkito/api/dependencies/auth.py
"""
Request identity dependencies.

Authentication itself belongs to the identity provider; the dashboard only
forwards the host's access token to the backend and keys drafts by the
browser session that created them.
"""

from typing import Optional

from fastapi import Header

from ...core.constants import DRAFT_SESSION_HEADER
from ...core.exceptions import UnauthorizedException, ValidationException


def get_access_token(authorization: Optional[str] = Header(default=None)) -> str:
    """Extract the bearer token of the signed-in host."""
    if authorization:
        scheme, _, token = authorization.partition(" ")
        if scheme.lower() == "bearer" and token.strip():
            return token.strip()
    raise UnauthorizedException("Unauthorized", code="MISSING_ACCESS_TOKEN").to_http_exception()


def get_draft_session_id(
    draft_session: Optional[str] = Header(default=None, alias=DRAFT_SESSION_HEADER),
) -> str:
    """Identify the browser session that owns the drafts."""
    if draft_session and draft_session.strip():
        return draft_session.strip()
    raise ValidationException(
        f"Missing {DRAFT_SESSION_HEADER} header", code="MISSING_DRAFT_SESSION"
    ).to_http_exception()
