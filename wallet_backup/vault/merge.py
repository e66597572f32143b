"""
Backup Merge - fold restored wallets into a caller's existing wallet set.

Duplicates are detected by public key and handled with one strategy for the
whole batch:
- ``skip``: keep the existing wallet, drop the imported one
- ``replace``: swap the existing wallet for the imported one, in place
- ``keep-both``: keep both, renaming the imported copy with the import date

Security Note:
    Secret keys pass through unchanged. Never log them.
"""
import logging
from datetime import date
from typing import Optional, Sequence

from ..data import WalletSecret

logger = logging.getLogger("wallet_backup")

MERGE_STRATEGIES = ("skip", "replace", "keep-both")


def merge_wallets(
    existing: Sequence[WalletSecret],
    imported: Sequence[WalletSecret],
    strategy: str = "skip",
    today: Optional[date] = None,
) -> list[WalletSecret]:
    """Merge imported wallets into existing ones.

    Args:
        existing: Wallets the caller already holds.
        imported: Wallets returned by ``import_bundle``.
        strategy: One of ``skip``, ``replace`` or ``keep-both``.
        today: Date used to label kept duplicates; defaults to today.

    Returns:
        New list; existing order is preserved and new wallets are appended.

    Raises:
        ValueError: If strategy is unknown.
    """
    if strategy not in MERGE_STRATEGIES:
        raise ValueError(
            f"Unknown merge strategy {strategy!r} "
            f"(expected one of {', '.join(MERGE_STRATEGIES)})"
        )
    today = today or date.today()
    result = list(existing)
    positions = {wallet.public_key: i for i, wallet in enumerate(result)}
    stats = {"added": 0, "replaced": 0, "kept": 0, "skipped": 0}

    for wallet in imported:
        if wallet.public_key not in positions:
            positions[wallet.public_key] = len(result)
            result.append(wallet)
            stats["added"] += 1
        elif strategy == "replace":
            result[positions[wallet.public_key]] = wallet
            stats["replaced"] += 1
        elif strategy == "keep-both":
            name = f"{wallet.name or 'Imported'} ({today.isoformat()})"
            result.append(wallet.model_copy(update={"name": name}))
            stats["kept"] += 1
        else:
            stats["skipped"] += 1

    logger.debug("Merged wallets with strategy=%s: %s", strategy, stats)
    return result
