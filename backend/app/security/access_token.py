"""Bearer access tokens for signed-in users.

Token shape: ``<payload>.<signature>``, both base64url without padding.
The payload is ``v1:<user_id>:<expires_at>``; user ids may contain colons,
so the version is split off the left and the expiry off the right.
"""

from __future__ import annotations

import base64
import binascii
import hashlib
import hmac
import time

TOKEN_VERSION = "v1"


def _sign(secret_key: str, payload: bytes) -> bytes:
    return hmac.new(secret_key.encode("utf-8"), payload, hashlib.sha256).digest()


def _encode(raw: bytes) -> str:
    return base64.urlsafe_b64encode(raw).rstrip(b"=").decode("ascii")


def _decode(text: str) -> bytes:
    return base64.urlsafe_b64decode(text + "=" * (-len(text) % 4))


def parse_payload(payload: str) -> tuple[str, int] | None:
    """Split a payload into (user_id, expires_at); None if malformed."""
    version, sep, rest = payload.partition(":")
    if not sep or version != TOKEN_VERSION:
        return None
    user_id, sep, expires_raw = rest.rpartition(":")
    if not sep or not user_id or not expires_raw.isdigit():
        return None
    return user_id, int(expires_raw)


def issue_access_token(*, secret_key: str, user_id: str, ttl_seconds: int = 86400, now: int | None = None) -> str:
    """Issue a token for ``user_id`` valid for ``ttl_seconds`` (minimum 1)."""
    issued_at = int(time.time() if now is None else now)
    payload = f"{TOKEN_VERSION}:{user_id}:{issued_at + max(1, ttl_seconds)}".encode("utf-8")
    return f"{_encode(payload)}.{_encode(_sign(secret_key, payload))}"


def verify_access_token(*, token: str, secret_key: str, now: int | None = None) -> str | None:
    """User id of a correctly signed, unexpired token, else None."""
    payload_part, sep, signature_part = token.partition(".")
    if not sep:
        return None
    try:
        payload = _decode(payload_part)
        signature = _decode(signature_part)
        text = payload.decode("utf-8")
    except (binascii.Error, ValueError):
        return None

    if not hmac.compare_digest(signature, _sign(secret_key, payload)):
        return None

    parsed = parse_payload(text)
    if parsed is None:
        return None
    user_id, expires_at = parsed
    if int(time.time() if now is None else now) > expires_at:
        return None
    return user_id
