from __future__ import annotations
from datetime import datetime, timedelta, timezone
from typing import Any
import jwt
from passlib.context import CryptContext
from pixelpost.config import settings

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

ADMIN_JWT_ALG = "HS256"
USER_JWT_ALGS = ["RS256"]

def hash_password(password: str) -> str:
    return pwd_context.hash(password)

def verify_password(password: str, password_hash: str) -> bool:
    return pwd_context.verify(password, password_hash)

# ---------- admin tokens: issued and checked here, symmetric key ----------

def make_admin_token(admin_id: str, username: str, role: str) -> str:
    now = datetime.now(timezone.utc)
    payload = {
        "sub": admin_id,
        "username": username,
        "role": role,
        "type": "admin",
        "iat": int(now.timestamp()),
        "exp": int((now + timedelta(hours=settings.admin_token_ttl_hours)).timestamp()),
    }
    return jwt.encode(payload, settings.admin_jwt_secret, algorithm=ADMIN_JWT_ALG)

def decode_admin_token(token: str) -> dict[str, Any]:
    return jwt.decode(token, settings.admin_jwt_secret, algorithms=[ADMIN_JWT_ALG])

# ---------- end-user tokens: issued by Auth0, checked against its JWKS ----------

class UserTokenVerifier:
    """
    Verifies identity-provider access tokens (RS256).

    The signing key is picked from the provider's JWKS by the token's `kid`;
    audience and issuer must match. Never accepts admin (HS256) tokens.
    """

    def __init__(self, jwks_url: str, audience: str, issuer: str, jwk_client: Any | None = None):
        self.audience = audience
        self.issuer = issuer
        self._jwk_client = jwk_client or jwt.PyJWKClient(jwks_url, cache_keys=True)

    def decode(self, token: str) -> dict[str, Any]:
        signing_key = self._jwk_client.get_signing_key_from_jwt(token)
        return jwt.decode(
            token,
            signing_key.key,
            algorithms=USER_JWT_ALGS,
            audience=self.audience,
            issuer=self.issuer,
        )

_verifier: UserTokenVerifier | None = None

def get_user_token_verifier() -> UserTokenVerifier:
    global _verifier
    if _verifier is None:
        _verifier = UserTokenVerifier(settings.auth0_jwks_url, settings.auth0_audience, settings.auth0_issuer)
    return _verifier
