"""
Backup Bundle - export and import of encrypted multi-wallet backup files.

Provides the public API of the backup protocol:
- ``export_bundle(wallets, owner, password, signer)`` - encrypt wallets into a file
- ``import_bundle(data, password, signer)`` - verify a file and return its wallets
- ``restore_bundle(data, password, signer)`` - same as import, with labels and owner

Export: CollectWallets → Sign → DeriveKey → BuildTree → EncryptEach →
EncryptLabels → AssembleBundle.
Import: ParseFile → VerifyChecksum → Sign → VerifySignature →
VerifyAuthorization → DeriveKey → VerifyMerkleRoot → VerifyProofs →
DecryptEntries → DecryptLabels.

Every step either succeeds or raises; nothing partial is ever returned.
The derived key lives only in the local scope of one call.

Security Note:
    Never log passwords, signatures, keys, plaintext or ciphertext values.
    Only log public keys, counts and step names.
"""
import logging
from datetime import datetime, timezone
from typing import Callable, Iterable, Optional, Sequence, Union

import orjson
from pydantic import ValidationError

from ..data import (
    BackupLabels,
    EncryptedEntry,
    ExportMetadata,
    ImportResult,
    WalletLabel,
    WalletSecret,
)
from ..exceptions import (
    DecryptionFailed,
    Expired,
    InvalidFileFormat,
    InvalidKeyLength,
    InvalidSignature,
    MerkleProofInvalid,
    MerkleRootMismatch,
    UnauthorizedSigner,
)
from .codec import FILE_VERSION, deserialize, now_ms, serialize, verify_checksum
from .config import BackupConfig, expiry_window_ms
from .crypto import (
    SECRET_KEY_LENGTHS,
    SIGNATURE_PREFIX,
    decrypt_entry,
    decrypt_payload,
    derive_key,
    encrypt_entry,
    encrypt_payload,
)
from .merkle import build_tree, get_proof, verify_proof
from .signer import Signer, request_signature, verify_signature

logger = logging.getLogger("wallet_backup")

Clock = Callable[[], int]
Verifier = Callable[[bytes, bytes, str], bool]


def generate_signature_message(owner: str, timestamp: Optional[int] = None) -> str:
    """Build the unique, timestamp-bound message a wallet signs for a backup."""
    if timestamp is None:
        timestamp = now_ms()
    return f"{SIGNATURE_PREFIX}:{owner}:{timestamp}"


def _authorized_wallets(owner: str, signer_key: str, extra: Iterable[str]) -> list[str]:
    if isinstance(extra, str):
        extra = (extra,)
    authorized = []
    for key in (owner, signer_key, *extra):
        if key and key not in authorized:
            authorized.append(key)
    return authorized


def _collect_wallets(wallets: Sequence[WalletSecret], max_wallets: int) -> None:
    """Validate the wallet set before the user is asked to sign anything."""
    if not wallets:
        raise ValueError("At least one wallet is required for export")
    if len(wallets) > max_wallets:
        raise ValueError(
            f"Cannot export {len(wallets)} wallets (maximum {max_wallets})"
        )
    seen = set()
    for wallet in wallets:
        if wallet.public_key in seen:
            raise ValueError(f"Duplicate wallet {wallet.public_key}")
        seen.add(wallet.public_key)
        if len(wallet.secret_key) not in SECRET_KEY_LENGTHS:
            raise InvalidKeyLength(len(wallet.secret_key))


async def export_bundle(
    wallets: Sequence[WalletSecret],
    owner_public_key: str,
    password: Union[str, bytes],
    signer: Signer,
    extra_authorized: Iterable[str] = (),
    *,
    expiry_days: Optional[int] = None,
    config: Optional[BackupConfig] = None,
    clock: Optional[Clock] = None,
) -> bytes:
    """Encrypt wallets into a portable backup file.

    Args:
        wallets: Wallet secrets to protect (32 or 64 byte secret keys).
        owner_public_key: Address of the owner, bound into the signed message
            and always authorized.
        password: User password, the first factor.
        signer: Wallet whose signature is the second factor.
        extra_authorized: Additional public keys allowed to open the file;
            a single key may be passed as a string.
        expiry_days: Days until the file expires; 0 disables expiry.
            Defaults to ``config.expiry_days``.
        config: Settings, loaded from environment when omitted.
        clock: Returns the current time in ms; used for tests.

    Returns:
        The backup file as UTF-8 JSON bytes.

    Raises:
        ValueError: If the wallet set is empty, too large or has duplicates.
        InvalidKeyLength: If a secret key is not 32 or 64 bytes long.
        SignatureDeclined: If the signer does not sign.
        KeyDerivationError: If the signature is too short.
    """
    config = config or BackupConfig.from_env()
    clock = clock or now_ms
    _collect_wallets(wallets, config.max_wallets)
    days = config.expiry_days if expiry_days is None else expiry_days
    if days < 0:
        raise ValueError(f"expiry_days cannot be negative, got {days}")

    created = clock()
    message = generate_signature_message(owner_public_key, created)
    signature = await request_signature(signer, message)
    key = derive_key(password, signature)

    tree = build_tree([wallet.public_key for wallet in wallets])
    entries = [
        EncryptedEntry(
            public_key=wallet.public_key,
            encrypted_private_key=encrypt_entry(wallet.secret_key, key),
            merkle_proof=get_proof(tree, wallet.public_key),
            index=index,
        )
        for index, wallet in enumerate(wallets)
    ]

    metadata = ExportMetadata(
        version=FILE_VERSION,
        timestamp=created,
        merkle_root=tree.root_hex,
        signature_message=message,
        authorized_wallets=_authorized_wallets(
            owner_public_key, signer.public_key, extra_authorized
        ),
        expiry_date=created + expiry_window_ms(days) if days else None,
    )

    labels = BackupLabels(
        wallets=[
            WalletLabel(
                public_key=wallet.public_key,
                name=wallet.name,
                created_at=wallet.created_at,
            )
            for wallet in wallets
        ],
        owner_address=owner_public_key,
        export_date=datetime.fromtimestamp(created / 1000, timezone.utc).isoformat(),
    )
    encrypted_data = encrypt_payload(orjson.dumps(labels.to_wire()), password)

    data = serialize(
        metadata, entries, encrypted_data,
        timestamp=created, pretty=config.pretty_json,
    )
    logger.info(
        "Exported %d wallet(s) for owner=%s (authorized=%d, expires=%s)",
        len(entries), owner_public_key,
        len(metadata.authorized_wallets), metadata.expiry_date,
    )
    return data


def _decrypt_labels(encrypted_data: str, password: Union[str, bytes]) -> BackupLabels:
    plaintext = decrypt_payload(encrypted_data, password)
    try:
        return BackupLabels.model_validate(orjson.loads(plaintext))
    except (orjson.JSONDecodeError, ValidationError) as err:
        raise InvalidFileFormat("Invalid wallet data format") from err


async def restore_bundle(
    data: Union[bytes, str],
    password: Union[str, bytes],
    signer: Signer,
    *,
    verifier: Verifier = verify_signature,
    clock: Optional[Clock] = None,
) -> ImportResult:
    """Verify a backup file and decrypt every wallet in it.

    Args:
        data: Backup file contents.
        password: Password used at export.
        signer: Wallet that signed at export; must be authorized.
        verifier: Checks (message, signature, public_key); Ed25519 by default.
        clock: Returns the current time in ms; used for tests.

    Returns:
        ImportResult with wallets ordered as exported.

    Raises:
        InvalidFileFormat, UnsupportedVersion: Unreadable file.
        ChecksumMismatch: Auxiliary payload or checksum altered.
        SignatureDeclined: The signer did not sign.
        InvalidSignature: The signature does not match the signer's key.
        Expired: The file's expiry date has passed.
        UnauthorizedSigner: The signer is not in the authorized list.
        MerkleRootMismatch: The wallet list does not match the stored root.
        MerkleProofInvalid: An entry's proof does not verify.
        DecryptionFailed: Wrong password, wrong signature or altered ciphertext.
    """
    clock = clock or now_ms
    bundle = deserialize(data)
    verify_checksum(bundle)
    metadata = bundle.secure_metadata

    message = metadata.signature_message
    signature = await request_signature(signer, message)
    if not verifier(message.encode("utf-8"), signature, signer.public_key):
        raise InvalidSignature(
            f"Signature from {signer.public_key} does not verify"
        )

    if metadata.expiry_date is not None and metadata.expiry_date < clock():
        raise Expired("Export file has expired")
    if signer.public_key not in metadata.authorized:
        raise UnauthorizedSigner(
            f"Wallet {signer.public_key} is not authorized to decrypt this export"
        )

    key = derive_key(password, signature)

    entries = sorted(bundle.encrypted_wallets, key=lambda entry: entry.index)
    tree = build_tree([entry.public_key for entry in entries])
    if tree.root_hex != metadata.merkle_root.lower():
        logger.warning(
            "Merkle root mismatch for backup created at %s", metadata.timestamp
        )
        raise MerkleRootMismatch("Merkle root verification failed")
    for entry in entries:
        if not verify_proof(entry.merkle_proof, entry.public_key, metadata.merkle_root):
            raise MerkleProofInvalid(entry.public_key)

    decrypted = {}
    failed = []
    for entry in entries:
        try:
            decrypted[entry.public_key] = decrypt_entry(entry.encrypted_private_key, key)
        except DecryptionFailed:
            failed.append(entry.public_key)
    if failed:
        logger.warning(
            "Failed to decrypt %d of %d wallet(s)", len(failed), len(entries)
        )
        raise DecryptionFailed(
            "Failed to decrypt wallet: Invalid password or corrupted data",
            failed=failed,
        )

    labels = _decrypt_labels(bundle.encrypted_data, password)
    wallets = []
    for entry in entries:
        label = labels.label_for(entry.public_key)
        wallets.append(
            WalletSecret(
                public_key=entry.public_key,
                secret_key=decrypted[entry.public_key],
                name=label.name if label else None,
                created_at=label.created_at if label else None,
            )
        )

    logger.info(
        "Imported %d wallet(s) for signer=%s", len(wallets), signer.public_key
    )
    return ImportResult(
        wallets=wallets,
        owner_address=labels.owner_address,
        exported_at=labels.export_date,
        metadata=metadata,
    )


async def import_bundle(
    data: Union[bytes, str],
    password: Union[str, bytes],
    signer: Signer,
    *,
    verifier: Verifier = verify_signature,
    clock: Optional[Clock] = None,
) -> list[WalletSecret]:
    """Verify a backup file and return its wallets.

    See ``restore_bundle`` for the steps and errors.
    """
    result = await restore_bundle(
        data, password, signer, verifier=verifier, clock=clock,
    )
    return result.wallets
