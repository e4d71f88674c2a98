"""
Reset Token Codecs

Turn a (user_id, secret) pair into a single URL-safe string and back.

Base64TokenCodec is a reversible encoding only: anyone can decode it and
build a token for another user id. Forgery is still caught later, because a
token is only honored when it equals the user's stored pending token.
SignedTokenCodec adds an HS256 signature so forged tokens are rejected at
decode time.
"""

import base64
import binascii
import json
from abc import ABC, abstractmethod
from typing import Any

from jose import jws
from jose.exceptions import JWSError

from src.domain.errors import MalformedTokenError
from src.domain.value_objects import ResetToken

USER_ID_KEY = "userId"
SECRET_KEY = "userToken"

# Positive signed 64-bit range of integer primary keys
MAX_USER_ID = 2**63 - 1


class TokenCodec(ABC):
    """Reversible encoding of reset tokens"""

    @abstractmethod
    def encode(self, user_id: int, secret: str) -> str:
        pass

    @abstractmethod
    def decode(self, token: str) -> ResetToken:
        """Decode token, raising MalformedTokenError if it is not a valid encoding"""
        pass

    @staticmethod
    def _to_payload(user_id: int, secret: str) -> bytes:
        data = {USER_ID_KEY: user_id, SECRET_KEY: secret}
        return json.dumps(data, separators=(",", ":")).encode()

    @staticmethod
    def _from_payload(raw: bytes) -> ResetToken:
        try:
            data: Any = json.loads(raw)
        except (UnicodeDecodeError, ValueError):
            raise MalformedTokenError()

        if not isinstance(data, dict):
            raise MalformedTokenError()

        user_id = data.get(USER_ID_KEY)
        secret = data.get(SECRET_KEY)

        # bool is an int subclass
        if not isinstance(user_id, int) or isinstance(user_id, bool):
            raise MalformedTokenError()
        if not 0 < user_id <= MAX_USER_ID:
            raise MalformedTokenError()
        if not isinstance(secret, str) or not secret:
            raise MalformedTokenError()

        return ResetToken(user_id=user_id, secret=secret)


class Base64TokenCodec(TokenCodec):
    """URL-safe base64 of a compact JSON payload, padding stripped"""

    def encode(self, user_id: int, secret: str) -> str:
        encoded = base64.urlsafe_b64encode(self._to_payload(user_id, secret))
        return encoded.decode().rstrip("=")

    def decode(self, token: str) -> ResetToken:
        if not isinstance(token, str) or not token:
            raise MalformedTokenError()

        padded = token + "=" * (-len(token) % 4)
        try:
            raw = base64.b64decode(padded, altchars=b"-_", validate=True)
        except (binascii.Error, ValueError):
            raise MalformedTokenError()

        return self._from_payload(raw)


class SignedTokenCodec(TokenCodec):
    """Compact JWS (HS256) over the same payload"""

    ALGORITHM = "HS256"

    def __init__(self, secret_key: str):
        if not secret_key:
            raise ValueError("SignedTokenCodec requires a non-empty secret key")
        self.secret_key = secret_key

    def encode(self, user_id: int, secret: str) -> str:
        return jws.sign(
            self._to_payload(user_id, secret), self.secret_key, algorithm=self.ALGORITHM
        )

    def decode(self, token: str) -> ResetToken:
        if not isinstance(token, str) or not token:
            raise MalformedTokenError()

        try:
            raw = jws.verify(token, self.secret_key, algorithms=[self.ALGORITHM])
        except JWSError:
            raise MalformedTokenError()

        return self._from_payload(raw)
