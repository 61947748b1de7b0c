"""Fernet symmetric encryption for chat message content."""

from __future__ import annotations

from cryptography.fernet import Fernet, InvalidToken

from ekerja.config import get_settings

__all__ = ["InvalidToken", "encrypt_value", "decrypt_value", "generate_key"]


def _get_fernet() -> Fernet:
    key = get_settings().chat_encryption_key
    if not key:
        raise RuntimeError(
            "CHAT_ENCRYPTION_KEY not set. Generate one with: python -m ekerja.cli generate-key"
        )
    return Fernet(key.encode("utf-8") if isinstance(key, str) else key)


def generate_key() -> str:
    return Fernet.generate_key().decode("utf-8")


def encrypt_value(plain: str) -> str:
    return _get_fernet().encrypt(plain.encode("utf-8")).decode("utf-8")


def decrypt_value(encrypted: str) -> str:
    """Raises ``InvalidToken`` for content that is not ciphertext under the current key."""
    return _get_fernet().decrypt(encrypted.encode("utf-8")).decode("utf-8")
