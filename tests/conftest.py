"""Shared fixtures for wallet backup tests."""
import pytest

from wallet_backup.data import WalletSecret
from wallet_backup.vault.config import BackupConfig
from wallet_backup.vault.signer import KeypairSigner

FIXED_NOW = 1_700_000_000_000
DAY_MS = 24 * 60 * 60 * 1000
PASSWORD = "correct-horse"


def fixed_clock(value: int = FIXED_NOW):
    """Return a clock that always answers value."""
    return lambda: value


class DecliningSigner:
    """Signer whose user rejects every prompt."""

    def __init__(self, public_key: str, exc: BaseException = None):
        self.public_key = public_key
        self.exc = exc or RuntimeError("User rejected the request")

    async def sign_message(self, message: bytes) -> bytes:
        raise self.exc


class ImpostorSigner:
    """Claims one public key but signs with another key."""

    def __init__(self, claimed: KeypairSigner, actual: KeypairSigner):
        self.public_key = claimed.public_key
        self._actual = actual

    async def sign_message(self, message: bytes) -> bytes:
        return await self._actual.sign_message(message)


@pytest.fixture
def owner():
    """The wallet that signs exports."""
    return KeypairSigner(bytes([1]) * 32)


@pytest.fixture
def stranger():
    """A valid wallet that is not authorized on exported bundles."""
    return KeypairSigner(bytes([2]) * 32)


@pytest.fixture
def wallet_a():
    signer = KeypairSigner(bytes([10]) * 32)
    return WalletSecret(
        public_key=signer.public_key,
        secret_key=signer.secret_key,
        name="Lackey A",
        created_at=FIXED_NOW - DAY_MS,
    )


@pytest.fixture
def wallet_b():
    signer = KeypairSigner(bytes([11]) * 32)
    return WalletSecret(
        public_key=signer.public_key,
        secret_key=signer.secret_key,
        name="Lackey B",
    )


@pytest.fixture
def config():
    """Default configuration, independent of the environment."""
    return BackupConfig()
