"""API key gate for the /coaching routes.

Guards POST /coaching/insights, GET /coaching/users/{user_id}/today and
POST /coaching/users/{user_id}/ledger. /health and / stay open.
"""

import hmac

from fastapi import Header, HTTPException

from coachkernel.config import settings


def _presented_key(x_api_key: str | None, authorization: str | None) -> str | None:
    if x_api_key is not None:
        return x_api_key
    if authorization and authorization.startswith("Bearer "):
        return authorization[len("Bearer "):].strip()
    return None


async def verify_api_key(
    x_api_key: str | None = Header(default=None, alias="X-API-Key"),
    authorization: str | None = Header(default=None),
) -> str:
    """Accept the key from X-API-Key or Authorization: Bearer.

    With COACH_API_KEY unset every request passes; otherwise a missing or
    wrong key is a 401.
    """
    expected = settings.coach_api_key
    if expected is None:
        return ""

    key = _presented_key(x_api_key, authorization)
    if key is None or not hmac.compare_digest(key, expected):
        raise HTTPException(status_code=401, detail="Invalid or missing API key")
    return key
