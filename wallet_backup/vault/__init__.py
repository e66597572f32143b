"""Backup Vault - Encrypted multi-wallet backup files bound to two factors.

Security Note (Threat Model):
    A backup file can only be opened with the export password and a
    signature from the wallet that created it. Secret keys are decrypted in
    process memory for the duration of one import call; a memory dump of
    the process during that call exposes them. This is an accepted
    limitation. The PBKDF2 salt is a protocol constant, so precomputation
    against a common password is possible; the signature factor is what
    makes each bundle key unique.
"""

from .bundle import export_bundle, import_bundle, restore_bundle, generate_signature_message
from .config import BackupConfig
from .merge import merge_wallets
from .signer import Signer, KeypairSigner, verify_signature, check_signer_determinism

__all__ = [
    "export_bundle",
    "import_bundle",
    "restore_bundle",
    "generate_signature_message",
    "BackupConfig",
    "merge_wallets",
    "Signer",
    "KeypairSigner",
    "verify_signature",
    "check_signer_determinism",
]
