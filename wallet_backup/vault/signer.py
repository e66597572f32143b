"""
Backup Signer - the wallet signing capability consumed by the protocol.

A signer exposes its base58 public key and signs arbitrary messages without
revealing its private key. The backup key is re-derived from a signature at
import time, so the signing scheme must be deterministic. Ed25519 is;
ECDSA with random nonces is not and would make backups unrecoverable.
"""
import asyncio
import logging
from typing import Protocol, Union, runtime_checkable

import base58
from cryptography.exceptions import InvalidSignature as _InvalidSignature
from cryptography.hazmat.primitives.asymmetric.ed25519 import (
    Ed25519PrivateKey,
    Ed25519PublicKey,
)
from cryptography.hazmat.primitives.serialization import Encoding, PublicFormat

from ..exceptions import SignatureDeclined, NonDeterministicSigner

logger = logging.getLogger("wallet_backup")

ED25519_KEY_SIZE = 32
DETERMINISM_PROBE = b"Resonance-Auth-v1:determinism-probe"


@runtime_checkable
class Signer(Protocol):
    """Anything that can sign a message on behalf of a wallet."""

    @property
    def public_key(self) -> str:
        ...

    async def sign_message(self, message: bytes) -> bytes:
        ...


class KeypairSigner:
    """Ed25519 signer backed by a local secret key.

    Accepts a 32-byte seed or a 64-byte expanded keypair (seed followed by
    the public key), the two secret key layouts a wallet backup carries.
    """

    def __init__(self, secret_key: Union[bytes, bytearray]):
        secret_key = bytes(secret_key)
        if len(secret_key) not in (32, 64):
            raise ValueError(
                f"Secret key must be 32 or 64 bytes, got {len(secret_key)}"
            )
        self._key = Ed25519PrivateKey.from_private_bytes(
            secret_key[:ED25519_KEY_SIZE]
        )
        raw_public = self._key.public_key().public_bytes(
            Encoding.Raw, PublicFormat.Raw
        )
        if len(secret_key) == 64 and secret_key[ED25519_KEY_SIZE:] != raw_public:
            raise ValueError("Expanded secret key does not match its public key")
        self._public_key = base58.b58encode(raw_public).decode("ascii")
        self._secret_key = secret_key[:ED25519_KEY_SIZE] + raw_public

    @classmethod
    def generate(cls) -> "KeypairSigner":
        seed = Ed25519PrivateKey.generate().private_bytes_raw()
        return cls(seed)

    @property
    def public_key(self) -> str:
        return self._public_key

    @property
    def secret_key(self) -> bytes:
        """64-byte expanded keypair (seed followed by public key)."""
        return self._secret_key

    async def sign_message(self, message: bytes) -> bytes:
        return self._key.sign(message)

    def __repr__(self) -> str:
        return f"<KeypairSigner {self._public_key}>"


def verify_signature(message: bytes, signature: bytes, public_key: str) -> bool:
    """Verify an Ed25519 signature against a base58 public key.

    Returns:
        True if the signature is valid, False for bad signatures and
        malformed public keys.
    """
    try:
        raw = base58.b58decode(public_key)
        if len(raw) != ED25519_KEY_SIZE:
            return False
        Ed25519PublicKey.from_public_bytes(raw).verify(bytes(signature), message)
        return True
    except (_InvalidSignature, ValueError, TypeError) as err:
        logger.debug("Signature verification failed for %s: %s", public_key, err)
        return False


async def request_signature(signer: Signer, message: str) -> bytes:
    """Ask the signer to sign message, awaiting it exactly once.

    Raises:
        SignatureDeclined: If the signer raises, is cancelled or returns
            something that is not bytes.
    """
    try:
        signature = await signer.sign_message(message.encode("utf-8"))
    except asyncio.CancelledError as err:
        raise SignatureDeclined("Signature request was cancelled") from err
    except Exception as err:
        raise SignatureDeclined(f"Signer declined to sign: {err}") from err
    if not isinstance(signature, (bytes, bytearray, memoryview)):
        raise SignatureDeclined(
            f"Signer returned {type(signature).__name__} instead of bytes"
        )
    return bytes(signature)


async def check_signer_determinism(
    signer: Signer,
    message: bytes = DETERMINISM_PROBE,
) -> bytes:
    """Sign message twice and require identical signatures.

    Returns:
        The signature.

    Raises:
        NonDeterministicSigner: If the two signatures differ.
    """
    first = await signer.sign_message(message)
    second = await signer.sign_message(message)
    if bytes(first) != bytes(second):
        raise NonDeterministicSigner(
            f"Signer {signer.public_key} produced different signatures "
            "for the same message"
        )
    return bytes(first)
