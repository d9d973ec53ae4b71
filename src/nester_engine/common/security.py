"""Session cookie signing and workflow callback signatures."""

import hashlib
import hmac

from itsdangerous import BadSignature, SignatureExpired, URLSafeTimedSerializer
from starlette.requests import Request

COOKIE_NAME = "nester_session"
MAX_AGE = 7 * 24 * 3600  # 7 days
SIGNATURE_HEADER = "X-N8N-Signature"


def _get_serializer() -> URLSafeTimedSerializer:
    from nester_engine.common.config import get_settings
    return URLSafeTimedSerializer(get_settings().secret_key, salt="nester-session")


def create_session_cookie(access_token: str, refresh_token: str | None = None) -> str:
    """Sign the provider token pair and return the cookie value."""
    s = _get_serializer()
    return s.dumps({"access_token": access_token, "refresh_token": refresh_token})


def verify_session_cookie(cookie: str) -> dict | None:
    """Verify and decode a session cookie. Returns payload or None."""
    s = _get_serializer()
    try:
        return s.loads(cookie, max_age=MAX_AGE)
    except (BadSignature, SignatureExpired):
        return None


def extract_tokens(request: Request) -> tuple[str | None, str | None]:
    """Return (access_token, refresh_token) from the bearer header or cookie."""
    auth = request.headers.get("authorization", "")
    scheme, _, token = auth.partition(" ")
    if scheme.lower() == "bearer" and token:
        return token.strip(), None

    cookie = request.cookies.get(COOKIE_NAME)
    if not cookie:
        return None, None
    payload = verify_session_cookie(cookie)
    if payload is None:
        return None, None
    return payload.get("access_token"), payload.get("refresh_token")


def sign_payload(payload: bytes, secret: str) -> str:
    """Compute HMAC-SHA256 hex digest for a raw request body."""
    return hmac.new(secret.encode("utf-8"), payload, hashlib.sha256).hexdigest()


def verify_callback_signature(payload: bytes, signature: str, secret: str) -> bool:
    if not signature or not secret:
        return False
    return hmac.compare_digest(sign_payload(payload, secret), signature.strip())
