"""
Encryption helpers for exam catalogs.

Catalogs can be encrypted with a Fernet key file or with a password. Password
based blobs carry a b'SALT' prefix followed by the 16-byte salt used for key
derivation.
"""

import base64
import os

from cryptography.fernet import Fernet, InvalidToken
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

from .errors import PersistenceError, ValidationError

SALT_PREFIX = b'SALT'
SALT_SIZE = 16


def derive_key_from_password(password: str, salt: bytes) -> bytes:
    """Derive a Fernet key from a password using PBKDF2."""
    kdf = PBKDF2HMAC(
        algorithm=hashes.SHA256(),
        length=32,
        salt=salt,
        iterations=480000,  # OWASP recommendation for 2024
    )
    key_material = kdf.derive(password.encode('utf-8'))
    return base64.urlsafe_b64encode(key_material)


def generate_key() -> bytes:
    return Fernet.generate_key()


def is_password_based(blob: bytes) -> bool:
    return blob.startswith(SALT_PREFIX)


def encrypt_payload(plaintext: bytes, secret, use_password: bool = False) -> bytes:
    """
    Encrypt a payload with a Fernet key or a password.

    Args:
        plaintext: Bytes to encrypt
        secret: Fernet key (str or bytes) or password (str)
        use_password: Derive the key from `secret` with a fresh random salt

    Returns:
        Encrypted bytes, salt-prefixed when password based
    """
    if not secret:
        raise ValidationError("An encryption key or password is required")

    if use_password:
        salt = os.urandom(SALT_SIZE)
        key = derive_key_from_password(secret, salt)
        return SALT_PREFIX + salt + Fernet(key).encrypt(plaintext)

    return _fernet(secret).encrypt(plaintext)


def decrypt_payload(blob: bytes, secret) -> bytes:
    """
    Decrypt a payload produced by encrypt_payload.

    The password/key mode is detected from the salt prefix.

    Raises:
        PersistenceError: If the key or password is wrong or the blob is corrupt
    """
    if not secret:
        raise ValidationError("A decryption key or password is required")

    if is_password_based(blob):
        salt = blob[len(SALT_PREFIX):len(SALT_PREFIX) + SALT_SIZE]
        encrypted_data = blob[len(SALT_PREFIX) + SALT_SIZE:]
        if isinstance(secret, bytes):
            secret = secret.decode('utf-8')
        fernet = Fernet(derive_key_from_password(secret, salt))
    else:
        encrypted_data = blob
        fernet = _fernet(secret)

    try:
        return fernet.decrypt(encrypted_data)
    except InvalidToken as e:
        raise PersistenceError("Decryption failed: invalid key/password or corrupted file") from e


def _fernet(key) -> Fernet:
    if isinstance(key, str):
        key = key.strip().encode('utf-8')
    try:
        return Fernet(key)
    except (ValueError, TypeError) as e:
        raise ValidationError(f"Invalid Fernet key: {e}") from e
