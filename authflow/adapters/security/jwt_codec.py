"""
JWT token codec adapter - Implements TokenCodec protocol via PyJWT.

Session and confirmation tokens share one codec and one secret; they
differ only in payload shape and in whether the caller enforces expiry.
Tokens carry no ``exp`` claim unless the caller puts one in the payload.
"""

from collections.abc import Mapping
from typing import Any

import jwt


class JwtTokenCodec:
    """
    Implements TokenCodec protocol via PyJWT.

    Uses structural subtyping - no explicit inheritance from Protocol.
    """

    def __init__(self, secret: str, algorithm: str = "HS256") -> None:
        self._secret = secret
        self._algorithm = algorithm

    def sign(self, payload: Mapping[str, Any]) -> str:
        return jwt.encode(dict(payload), self._secret, algorithm=self._algorithm)

    def verify(self, token: str, ignore_expiration: bool = False) -> dict[str, Any] | None:
        """
        Decode and verify a token.

        Args:
            token: Compact JWT
            ignore_expiration: Accept tokens whose ``exp`` has passed

        Returns:
            Decoded payload, or None if the token is malformed, forged or expired
        """
        try:
            return jwt.decode(
                token,
                self._secret,
                algorithms=[self._algorithm],
                options={"verify_exp": not ignore_expiration},
            )
        except jwt.InvalidTokenError:
            return None
