from __future__ import annotations

import hmac
import logging
from collections.abc import Callable, Mapping, Sequence

import jwt
from fastapi import Request

from ..models.config_models import ApiConfig

logger = logging.getLogger(__name__)

"""Bearer token check for the HTTP API.

Token issuance lives outside this service. The API only needs a verifier:
a callable that maps a presented token to the client name it was issued
for, or None when the token is not valid.

Two verifiers ship: HS256 JWTs signed by the login service (client name in
the ``username`` claim) and a static token table from config. When both are
configured the static table is tried first.
"""

__all__ = [
    "AuthError",
    "TokenVerifier",
    "StaticTokenVerifier",
    "JwtTokenVerifier",
    "ChainedVerifier",
    "build_verifier",
    "require_client",
]

TokenVerifier = Callable[[str], str | None]


class AuthError(Exception):
    """Raised by require_client; mapped to 401/403 by the app."""

    def __init__(self, status_code: int, message: str) -> None:
        self.status_code = status_code
        self.message = message
        super().__init__(message)


class StaticTokenVerifier:
    """Verifier backed by a fixed token -> client mapping from config."""

    def __init__(self, tokens: Mapping[str, str]) -> None:
        self._tokens = dict(tokens)

    def __call__(self, token: str) -> str | None:
        for known, client in self._tokens.items():
            if hmac.compare_digest(known.encode("utf-8"), token.encode("utf-8")):
                return client
        return None


class JwtTokenVerifier:
    """Verify an HS256 JWT and return its client claim.

    Expired tokens, bad signatures and tokens without a string client claim
    are all rejected (None).
    """

    def __init__(self, secret: str, client_claim: str = "username", algorithms: Sequence[str] = ("HS256",)) -> None:
        self._secret = secret
        self._claim = client_claim
        self._algorithms = list(algorithms)

    def __call__(self, token: str) -> str | None:
        try:
            payload = jwt.decode(token, self._secret, algorithms=self._algorithms)
        except jwt.InvalidTokenError as e:
            logger.debug("jwt rejected: %s", e)
            return None
        client = payload.get(self._claim)
        if not isinstance(client, str) or not client:
            logger.debug("jwt rejected: no '%s' claim", self._claim)
            return None
        return client


class ChainedVerifier:
    """First verifier that accepts the token wins."""

    def __init__(self, *verifiers: TokenVerifier) -> None:
        self._verifiers = verifiers

    def __call__(self, token: str) -> str | None:
        for verify in self._verifiers:
            client = verify(token)
            if client is not None:
                return client
        return None


def build_verifier(api: ApiConfig) -> TokenVerifier:
    verifiers: list[TokenVerifier] = []
    if api.tokens:
        verifiers.append(StaticTokenVerifier(api.tokens))
    if api.jwt_secret:
        verifiers.append(JwtTokenVerifier(api.jwt_secret, api.jwt_client_claim))
    if len(verifiers) == 1:
        return verifiers[0]
    return ChainedVerifier(*verifiers)


def require_client(request: Request) -> str:
    """FastAPI dependency returning the authenticated client name.

    Missing or malformed Authorization header -> 401, rejected token -> 403.
    """
    header = request.headers.get("authorization", "")
    scheme, _, token = header.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise AuthError(401, "missing bearer token")
    verifier: TokenVerifier = request.app.state.verifier
    client = verifier(token.strip())
    if client is None:
        raise AuthError(403, "invalid or expired token")
    return client
