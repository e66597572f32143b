"""
Wallet Backup errors.

Every failure of the export/import pipeline is reported as a subclass of
``BackupError``. Import is fail-terminal: the first error aborts the whole
operation and no partially decrypted wallet set is ever returned.
"""
from typing import Optional


class BackupError(Exception):
    """Base class for all backup protocol errors."""


class SignatureDeclined(BackupError):
    """The signer refused, failed or was cancelled while signing."""


class InvalidSignature(BackupError):
    """The signature does not verify against the signer's public key."""


class NonDeterministicSigner(BackupError):
    """Signing the same message twice produced different signatures."""


class KeyDerivationError(BackupError):
    """The encryption key could not be derived from the given factors."""


class InvalidFileFormat(BackupError):
    """The backup file or one of its fields cannot be parsed."""


class UnsupportedVersion(InvalidFileFormat):
    """The backup file was written by an incompatible format version."""

    def __init__(self, version: Optional[str]):
        self.version = version
        super().__init__(f"Unsupported file version: {version}")


class ChecksumMismatch(BackupError):
    """The stored checksum does not match the encrypted payload."""


class UnauthorizedSigner(BackupError):
    """The signer's public key is not in the bundle's authorized list."""


class Expired(BackupError):
    """The bundle expiry date has passed."""


class MerkleRootMismatch(BackupError):
    """The rebuilt Merkle root differs from the one stored in metadata."""


class MerkleProofInvalid(BackupError):
    """An entry's Merkle proof does not verify against the stored root."""

    def __init__(self, public_key: str):
        self.public_key = public_key
        super().__init__(f"Invalid Merkle proof for wallet {public_key}")


class InvalidKeyLength(BackupError):
    """A secret key is not 32 (seed) or 64 (expanded keypair) bytes long."""

    def __init__(self, length: int):
        self.length = length
        super().__init__(
            f"Invalid private key length: {length} bytes. "
            "Expected 64 or 32 bytes."
        )


class CorruptPlaintext(BackupError):
    """Authenticated plaintext has an impossible secret key length."""


class DecryptionFailed(BackupError):
    """Authenticated decryption failed.

    Wrong password, wrong signature and corrupted ciphertext are reported
    the same way. ``failed`` lists the public keys of the entries that
    could not be decrypted, when known.
    """

    def __init__(self, message: str = "Failed to decrypt", failed: tuple = ()):
        self.failed = tuple(failed)
        super().__init__(message)


GENERIC_FAILURE_MESSAGE = "Wrong password or corrupted file."

_USER_MESSAGES = {
    SignatureDeclined: "The wallet did not sign the backup request.",
    InvalidSignature: "The wallet signature could not be verified.",
    NonDeterministicSigner: (
        "This wallet does not produce deterministic signatures and "
        "cannot be used for backups."
    ),
    UnsupportedVersion: "This backup file was created by an unsupported version.",
    InvalidFileFormat: "This is not a valid wallet backup file.",
    ChecksumMismatch: "File integrity check failed. The file may be corrupted.",
    UnauthorizedSigner: "The connected wallet is not authorized to restore this backup.",
    Expired: "This backup file has expired.",
    MerkleRootMismatch: GENERIC_FAILURE_MESSAGE,
    DecryptionFailed: GENERIC_FAILURE_MESSAGE,
}


def user_message(err: BaseException) -> str:
    """Return the message to show an end user for ``err``.

    Decryption failures and Merkle root mismatches share a single message,
    so a user cannot tell which factor was wrong.
    """
    for cls in type(err).__mro__:
        if cls in _USER_MESSAGES:
            return _USER_MESSAGES[cls]
    return "The wallet backup operation failed."
