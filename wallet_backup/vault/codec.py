"""
Backup Codec - serialization of the wallet backup file.

File layout (JSON)::

    {
      "version": "2.0.0",
      "timestamp": <ms epoch>,
      "checksum": <hex SHA-256 of encryptedData>,
      "encryptedData": <base64 auxiliary payload>,
      "secureMetadata": {...},
      "encryptedWallets": [{...}, ...]
    }

Only one file version is understood; there is no best-effort parsing of
other versions.
"""
import time
import logging
from typing import Optional, Union

import orjson
from pydantic import ValidationError

from ..data import Bundle, EncryptedEntry, ExportMetadata
from ..exceptions import InvalidFileFormat, UnsupportedVersion, ChecksumMismatch
from .crypto import calculate_checksum

logger = logging.getLogger("wallet_backup")

FILE_VERSION = "2.0.0"


def now_ms() -> int:
    return int(time.time() * 1000)


def serialize(
    metadata: ExportMetadata,
    entries: list[EncryptedEntry],
    encrypted_data: str,
    timestamp: Optional[int] = None,
    pretty: bool = True,
) -> bytes:
    """Assemble and encode a backup file.

    Args:
        metadata: The ``secureMetadata`` block.
        entries: Encrypted wallet entries.
        encrypted_data: base64 auxiliary payload; its checksum is embedded.
        timestamp: File timestamp in ms, defaults to now.
        pretty: Indent the JSON output.

    Returns:
        UTF-8 encoded JSON bytes.
    """
    bundle = Bundle(
        version=FILE_VERSION,
        timestamp=now_ms() if timestamp is None else timestamp,
        checksum=calculate_checksum(encrypted_data),
        encrypted_data=encrypted_data,
        secure_metadata=metadata,
        encrypted_wallets=entries,
    )
    option = orjson.OPT_INDENT_2 if pretty else 0
    return orjson.dumps(bundle.to_wire(), option=option)


def deserialize(data: Union[bytes, str]) -> Bundle:
    """Parse and validate a backup file.

    Raises:
        InvalidFileFormat: If data is not JSON or does not match the schema.
        UnsupportedVersion: If the file or metadata version is not supported.
    """
    try:
        parsed = orjson.loads(data)
    except orjson.JSONDecodeError as err:
        raise InvalidFileFormat("Backup file is not valid JSON") from err
    if not isinstance(parsed, dict):
        raise InvalidFileFormat("Backup file must contain a JSON object")

    version = parsed.get("version")
    if version != FILE_VERSION:
        raise UnsupportedVersion(version)
    metadata = parsed.get("secureMetadata")
    if isinstance(metadata, dict) and metadata.get("version") != FILE_VERSION:
        raise UnsupportedVersion(metadata.get("version"))

    try:
        bundle = Bundle.model_validate(parsed)
    except ValidationError as err:
        raise InvalidFileFormat(
            f"Backup file does not match the expected layout: "
            f"{err.error_count()} error(s)"
        ) from err

    _check_entries(bundle)
    logger.debug(
        "Parsed backup file: version=%s wallets=%d",
        bundle.version, len(bundle.encrypted_wallets),
    )
    return bundle


def _check_entries(bundle: Bundle) -> None:
    entries = bundle.encrypted_wallets
    if not entries:
        raise InvalidFileFormat("Backup file contains no wallets")
    keys = [entry.public_key for entry in entries]
    if len(set(keys)) != len(keys):
        raise InvalidFileFormat("Backup file contains duplicate wallets")
    indexes = sorted(entry.index for entry in entries)
    if indexes != list(range(len(entries))):
        raise InvalidFileFormat("Backup file has inconsistent wallet indexes")


def verify_checksum(bundle: Bundle) -> None:
    """Check the stored checksum against the auxiliary payload.

    Raises:
        ChecksumMismatch: If the payload or checksum was altered.
    """
    if calculate_checksum(bundle.encrypted_data) != bundle.checksum.lower():
        raise ChecksumMismatch(
            "File integrity check failed. The file may be corrupted."
        )
