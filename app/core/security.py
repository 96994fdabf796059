"""Security related functions."""

import jwt
from fastapi import HTTPException, status
from jwt import InvalidTokenError

from app.core.config import settings


class TokenVerifier:
    """
    Verifies bearer tokens issued by the external authentication service.

    Tokens are HS256 JWTs signed with ``settings.secret_key`` whose ``sub``
    claim carries the local user id. Issuing tokens is not this service's
    concern.

    :ivar secret_key: The secret key used to verify JWT tokens.
    :type secret_key: str
    :ivar algorithm: Signing algorithm accepted.
    :type algorithm: str
    """

    def __init__(self, secret_key: str | None = None, algorithm: str | None = None):
        self.secret_key = secret_key or settings.secret_key
        self.algorithm = algorithm or settings.algorithm

    def verify_token(self, token: str) -> dict:
        """
        Decode and validate a token, returning its payload.

        :param token: The JWT token to be verified.
        :return: The decoded payload.
        :raises HTTPException: 401 when the signature, expiry or claims are invalid.
        """
        try:
            payload = jwt.decode(
                token,
                key=self.secret_key,
                algorithms=[self.algorithm],
                options={"require": ["sub"]},
            )
        except InvalidTokenError as e:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail=f"Invalid authentication token: {str(e)}",
                headers={"WWW-Authenticate": "Bearer"},
            ) from e
        return payload
