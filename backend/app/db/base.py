"""Declarative base shared by all ORM models."""
from sqlalchemy.orm import DeclarativeBase

_AES_BLOCK_BYTES = 16


def encrypted_field_length(max_plaintext_bytes: int) -> int:
    """Width of an ``ivHex:ciphertextHex`` value for the longest plaintext.

    PKCS#7 always adds at least one byte of padding.
    """
    blocks = max_plaintext_bytes // _AES_BLOCK_BYTES + 1
    return 2 * _AES_BLOCK_BYTES + 1 + 2 * _AES_BLOCK_BYTES * blocks


class Base(DeclarativeBase):
    pass
