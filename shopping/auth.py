"""
Buyer authentication dependency.

Identity is issued by the platform's auth service as a signed bearer token:

    Authorization: Bearer <customer_id>.<role>.<hex hmac-sha256>

where the signature covers "<customer_id>.<role>" with AUTH_SECRET. This
module only verifies the token and the buyer role.
"""

import hashlib
import hmac
import os

from fastapi import Header, HTTPException
from pydantic import BaseModel

from shopping.errors import ERROR_FORBIDDEN, ERROR_UNAUTHORIZED

AUTH_SECRET = os.environ.get("AUTH_SECRET", "")
BUYER_ROLE = "buyer"


class Buyer(BaseModel):
    """Authenticated caller."""
    id: str
    role: str = BUYER_ROLE


def _sign(payload: str, secret: str) -> str:
    return hmac.new(secret.encode(), payload.encode(), hashlib.sha256).hexdigest()


def create_buyer_token(customer_id: str, role: str = BUYER_ROLE, secret: str | None = None) -> str:
    """Issue a token (used by the auth service, local tooling and tests)."""
    payload = f"{customer_id}.{role}"
    return f"{payload}.{_sign(payload, secret if secret is not None else AUTH_SECRET)}"


def parse_buyer_token(token: str, secret: str | None = None) -> Buyer | None:
    """Return the caller for a valid token, None otherwise."""
    secret = secret if secret is not None else AUTH_SECRET
    if not secret or not token:
        return None
    parts = token.rsplit(".", 2)
    if len(parts) != 3 or not parts[0]:
        return None
    customer_id, role, signature = parts
    expected = _sign(f"{customer_id}.{role}", secret)
    if not hmac.compare_digest(expected, signature):
        return None
    return Buyer(id=customer_id, role=role)


async def verify_buyer(
    authorization: str = Header(None, alias="Authorization"),
) -> Buyer:
    """FastAPI dependency: the caller must hold a valid buyer token."""
    if not authorization:
        raise HTTPException(status_code=401, detail="No authorization header")

    parts = authorization.split(" ")
    if len(parts) != 2 or parts[0].lower() != "bearer":
        raise HTTPException(status_code=401, detail=ERROR_UNAUTHORIZED)

    buyer = parse_buyer_token(parts[1])
    if buyer is None:
        raise HTTPException(status_code=401, detail="Invalid token signature")
    if buyer.role != BUYER_ROLE:
        raise HTTPException(status_code=403, detail=ERROR_FORBIDDEN)
    return buyer
