import base64
import hashlib
from typing import Optional

from cryptography.fernet import Fernet, InvalidToken, MultiFernet
from sqlalchemy import LargeBinary
from sqlalchemy.types import TypeDecorator

from app.core.settings import settings


def _derive_key(secret: str) -> bytes:
    digest = hashlib.sha256(secret.encode("utf-8")).digest()
    return base64.urlsafe_b64encode(digest)


def build_cipher(key_material: Optional[str] = None) -> MultiFernet:
    """
    Build the cipher for document numbers.

    ``FIELD_ENCRYPTION_KEY`` may hold several comma-separated secrets: the first
    encrypts, all of them decrypt, so a key can be rotated without a rewrite.
    """
    material = key_material or settings.field_encryption_key or settings.secret_key
    secrets = [part.strip() for part in material.split(",") if part.strip()]
    return MultiFernet([Fernet(_derive_key(secret)) for secret in secrets])


class EncryptedString(TypeDecorator):
    """Identity-document numbers (PAN, Aadhaar) stored as Fernet tokens."""

    impl = LargeBinary
    cache_ok = True

    def __init__(self, *, key_material: Optional[str] = None, **kwargs):
        super().__init__(**kwargs)
        self._key_material = key_material

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        return build_cipher(self._key_material).encrypt(str(value).encode("utf-8"))

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        try:
            return build_cipher(self._key_material).decrypt(bytes(value)).decode("utf-8")
        except InvalidToken as exc:
            raise ValueError("Unable to decrypt document number; check FIELD_ENCRYPTION_KEY") from exc


__all__ = ["EncryptedString", "build_cipher"]
