"""
Data models for the wallet backup file and the records moved through it.

Wire models use camelCase aliases so that ``model_dump(by_alias=True)``
produces the exact JSON layout of a backup file, while Python code uses
snake_case attribute names.
"""
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel


class WireModel(BaseModel):
    """Base for every model that is written to a backup file."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    def to_wire(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True)


class WalletSecret(BaseModel):
    """A wallet secret key borrowed from the caller for one export/import.

    ``secret_key`` is the raw private key: a 32-byte seed or a 64-byte
    expanded keypair. ``name`` and ``created_at`` are optional labels that
    travel in the auxiliary payload.
    """

    model_config = ConfigDict(frozen=True)

    public_key: str
    secret_key: bytes = Field(repr=False)
    name: Optional[str] = None
    created_at: Optional[int] = None


class ExportMetadata(WireModel):
    """``secureMetadata`` block of a backup file."""

    version: str
    timestamp: int
    merkle_root: str
    signature_message: str
    authorized_wallets: list[str]
    expiry_date: Optional[int] = None

    @model_validator(mode="after")
    def validate_expiry(self) -> "ExportMetadata":
        """Expiry, when set, must come after creation."""
        if self.expiry_date is not None and self.expiry_date <= self.timestamp:
            raise ValueError(
                f"expiryDate {self.expiry_date} is not after "
                f"timestamp {self.timestamp}"
            )
        return self

    @property
    def authorized(self) -> frozenset:
        return frozenset(self.authorized_wallets)


class EncryptedEntry(WireModel):
    """One encrypted wallet inside ``encryptedWallets``."""

    public_key: str
    encrypted_private_key: str
    merkle_proof: list[str]
    index: int = Field(ge=0)


class Bundle(WireModel):
    """A complete backup file."""

    version: str
    timestamp: int
    checksum: str
    encrypted_data: str
    secure_metadata: ExportMetadata
    encrypted_wallets: list[EncryptedEntry]


class WalletLabel(WireModel):
    public_key: str
    name: Optional[str] = None
    created_at: Optional[int] = None


class BackupLabels(WireModel):
    """Plaintext of the auxiliary payload (``encryptedData``)."""

    wallets: list[WalletLabel]
    owner_address: str
    export_date: Optional[str] = None

    def label_for(self, public_key: str) -> Optional[WalletLabel]:
        for label in self.wallets:
            if label.public_key == public_key:
                return label
        return None


class ImportResult(BaseModel):
    """Everything recovered from a backup file."""

    wallets: list[WalletSecret]
    owner_address: str
    exported_at: Optional[str] = None
    metadata: ExportMetadata
