from __future__ import annotations

import hmac

from itsdangerous import URLSafeTimedSerializer, BadSignature, SignatureExpired

from app.core.config import settings

# Signed cookie for session (stateless)
serializer = URLSafeTimedSerializer(settings.SECRET_KEY, salt="damage_report_sid")


def security_code(phone: str) -> str:
    """Login secret for a registered person: their phone number without hyphens."""
    return "".join(ch for ch in (phone or "") if ch.isdigit())


def verify_security_code(given: str, phone: str) -> bool:
    expected = security_code(phone)
    if not expected:
        return False
    given_digits = (given or "").strip().replace("-", "")
    return hmac.compare_digest(given_digits.encode("utf-8"), expected.encode("utf-8"))


def sign_session(payload: dict) -> str:
    return serializer.dumps(payload)


def verify_session(token: str, max_age_seconds: int | None = None) -> dict | None:
    try:
        return serializer.loads(token, max_age=max_age_seconds or settings.SESSION_MAX_AGE_SECONDS)
    except (BadSignature, SignatureExpired):
        return None
