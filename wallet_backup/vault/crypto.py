"""
Backup Crypto Core - Key derivation, entry encryption and payload encryption.

Implements the two encryption layers of a wallet backup file:
- Entry layer: PBKDF2(SHA256(password | signature[:32]), fixed salt) → AES-GCM
  → one ciphertext per wallet secret key.
- Payload layer: PBKDF2(password, random salt) → AES-GCM → auxiliary labels.

Security Note:
    Never log passwords, signatures, keys, plaintext or ciphertext values.
    Nonces are random 96-bit; collision probability negligible under normal usage.
    The entry-layer salt is a protocol constant: the key must be re-derivable
    at import time from the password and the signature alone.
"""
import os
import base64
import binascii
import hashlib
import logging
from typing import Union

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from ..exceptions import (
    KeyDerivationError,
    InvalidKeyLength,
    InvalidFileFormat,
    DecryptionFailed,
    CorruptPlaintext,
)

logger = logging.getLogger("wallet_backup")

SIGNATURE_PREFIX = "Resonance-Auth-v1"
KEY_DERIVATION_SALT = SIGNATURE_PREFIX.encode("utf-8")
KEY_DERIVATION_ITERATIONS = 100_000
KEY_LENGTH = 32  # AES-256
NONCE_SIZE = 12  # 96-bit nonce
TAG_SIZE = 16  # 128-bit GCM tag
SALT_SIZE = 16
SIGNATURE_SLICE = 32
SECRET_KEY_LENGTHS = (32, 64)


def _to_bytes(password: Union[str, bytes]) -> bytes:
    if isinstance(password, str):
        return password.encode("utf-8")
    return bytes(password)


def _b64decode(blob: str, what: str) -> bytes:
    try:
        return base64.b64decode(blob, validate=True)
    except (binascii.Error, ValueError, TypeError) as err:
        raise InvalidFileFormat(f"{what} is not valid base64") from err


# ---------------------------------------------------------------------------
# Key derivation
# ---------------------------------------------------------------------------

def derive_key(password: Union[str, bytes], signature: bytes) -> bytes:
    """Derive the 32-byte entry encryption key from password and signature.

    SHA-256 over the UTF-8 password followed by the first 32 signature bytes
    gives the base material; PBKDF2-HMAC-SHA256 with the protocol salt and
    100,000 iterations stretches it into an AES-256 key.

    Args:
        password: User password (str is UTF-8 encoded).
        signature: Wallet signature over the bundle's signature message.

    Returns:
        32-byte derived key. Identical inputs always give identical keys.

    Raises:
        KeyDerivationError: If the signature is shorter than 32 bytes.
    """
    if signature is None or len(signature) < SIGNATURE_SLICE:
        raise KeyDerivationError(
            f"Signature too short for key derivation: "
            f"{0 if signature is None else len(signature)} bytes "
            f"(minimum {SIGNATURE_SLICE})"
        )
    base = hashlib.sha256(
        _to_bytes(password) + bytes(signature[:SIGNATURE_SLICE])
    ).digest()
    kdf = PBKDF2HMAC(
        algorithm=hashes.SHA256(),
        length=KEY_LENGTH,
        salt=KEY_DERIVATION_SALT,
        iterations=KEY_DERIVATION_ITERATIONS,
    )
    return kdf.derive(base)


def _password_key(password: Union[str, bytes], salt: bytes) -> bytes:
    kdf = PBKDF2HMAC(
        algorithm=hashes.SHA256(),
        length=KEY_LENGTH,
        salt=salt,
        iterations=KEY_DERIVATION_ITERATIONS,
    )
    return kdf.derive(_to_bytes(password))


# ---------------------------------------------------------------------------
# Entry-layer encryption (one wallet secret key)
# ---------------------------------------------------------------------------

def encrypt_entry(secret_key: bytes, key: bytes) -> str:
    """Encrypt a wallet secret key.

    Format: base64([nonce 12B][encrypted_key + GCM_tag 16B])

    Args:
        secret_key: 32-byte seed or 64-byte expanded keypair.
        key: Key returned by ``derive_key``.

    Returns:
        base64-encoded ciphertext.

    Raises:
        InvalidKeyLength: If secret_key is not 32 or 64 bytes long.
    """
    if len(secret_key) not in SECRET_KEY_LENGTHS:
        raise InvalidKeyLength(len(secret_key))
    nonce = os.urandom(NONCE_SIZE)
    ct = AESGCM(key).encrypt(nonce, bytes(secret_key), None)
    return base64.b64encode(nonce + ct).decode("ascii")


def decrypt_entry(blob: str, key: bytes) -> bytes:
    """Decrypt a wallet secret key produced by ``encrypt_entry``.

    Args:
        blob: base64 ciphertext in format [nonce 12B][payload+tag].
        key: Key returned by ``derive_key``.

    Returns:
        The 32 or 64 byte secret key.

    Raises:
        InvalidFileFormat: If blob is not base64 or too short to hold a tag.
        DecryptionFailed: If the GCM tag does not verify.
        CorruptPlaintext: If the authenticated plaintext has a bad length.
    """
    raw = _b64decode(blob, "encryptedPrivateKey")
    if len(raw) - NONCE_SIZE < TAG_SIZE:
        raise InvalidFileFormat(
            f"Encrypted key too short: {len(raw)} bytes "
            f"(minimum {NONCE_SIZE + TAG_SIZE})"
        )
    nonce = raw[:NONCE_SIZE]
    ct = raw[NONCE_SIZE:]
    try:
        plaintext = AESGCM(key).decrypt(nonce, ct, None)
    except InvalidTag as err:
        raise DecryptionFailed(
            "Failed to decrypt wallet: Invalid password or corrupted data"
        ) from err
    if len(plaintext) not in SECRET_KEY_LENGTHS:
        raise CorruptPlaintext(
            f"Decrypted data has invalid length: {len(plaintext)} bytes"
        )
    return plaintext


# ---------------------------------------------------------------------------
# Payload-layer encryption (auxiliary labels, password only)
# ---------------------------------------------------------------------------

def encrypt_payload(plaintext: bytes, password: Union[str, bytes]) -> str:
    """Encrypt the auxiliary payload with a key derived from the password.

    Format: base64([salt 16B][nonce 12B][encrypted_payload + GCM_tag 16B])
    """
    salt = os.urandom(SALT_SIZE)
    key = _password_key(password, salt)
    nonce = os.urandom(NONCE_SIZE)
    ct = AESGCM(key).encrypt(nonce, plaintext, None)
    return base64.b64encode(salt + nonce + ct).decode("ascii")


def decrypt_payload(blob: str, password: Union[str, bytes]) -> bytes:
    """Decrypt an auxiliary payload produced by ``encrypt_payload``."""
    raw = _b64decode(blob, "encryptedData")
    _min = SALT_SIZE + NONCE_SIZE + TAG_SIZE
    if len(raw) < _min:
        raise InvalidFileFormat(
            f"encryptedData too short: {len(raw)} bytes (minimum {_min})"
        )
    salt = raw[:SALT_SIZE]
    nonce = raw[SALT_SIZE:SALT_SIZE + NONCE_SIZE]
    ct = raw[SALT_SIZE + NONCE_SIZE:]
    key = _password_key(password, salt)
    try:
        return AESGCM(key).decrypt(nonce, ct, None)
    except InvalidTag as err:
        raise DecryptionFailed(
            "Failed to decrypt data. The password may be incorrect."
        ) from err


# ---------------------------------------------------------------------------
# Checksum
# ---------------------------------------------------------------------------

def calculate_checksum(data: str) -> str:
    """Hex SHA-256 over the UTF-8 bytes of ``data``."""
    return hashlib.sha256(data.encode("utf-8")).hexdigest()
