"""Security adapters - Password hashing and token signing."""

from .bcrypt_hasher import BcryptPasswordHasher
from .jwt_codec import JwtTokenCodec

__all__ = ["BcryptPasswordHasher", "JwtTokenCodec"]
