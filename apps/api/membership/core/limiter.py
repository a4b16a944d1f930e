from fastapi import Request
from slowapi import Limiter
from slowapi.util import get_remote_address

from membership.core.auth import decode_access_token
from membership.core.config import get_settings


def client_address(request: Request) -> str:
    """Socket peer, or the first X-Forwarded-For hop when the proxy is trusted."""
    if get_settings().trust_forwarded_for:
        first_hop = (request.headers.get("X-Forwarded-For") or "").split(",")[0].strip()
        if first_hop:
            return first_hop
    return get_remote_address(request)


def rate_limit_key(request: Request) -> str:
    """Bucket per member when a valid bearer token is sent, per client address otherwise."""
    scheme, _, token = (request.headers.get("Authorization") or "").partition(" ")
    if scheme.lower() == "bearer" and token.strip():
        member_id = decode_access_token(token.strip())
        if member_id:
            return f"member:{member_id}"
    return f"ip:{client_address(request)}"


limiter = Limiter(key_func=rate_limit_key)
