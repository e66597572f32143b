"""Wallet Backup.

Encrypts a batch of wallet secret keys into a single portable file bound to
a password and a deterministic wallet signature.
"""
from .version import __version__
from .data import WalletSecret, ImportResult
from .exceptions import BackupError, user_message
from .vault import (
    export_bundle,
    import_bundle,
    restore_bundle,
    merge_wallets,
    BackupConfig,
    KeypairSigner,
)

__all__ = [
    "__version__",
    "WalletSecret",
    "ImportResult",
    "BackupError",
    "user_message",
    "export_bundle",
    "import_bundle",
    "restore_bundle",
    "merge_wallets",
    "BackupConfig",
    "KeypairSigner",
]
