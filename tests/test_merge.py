"""
Tests for merge_wallets.
"""
from datetime import date

import pytest

from wallet_backup.data import WalletSecret
from wallet_backup.vault.merge import merge_wallets


def _wallet(key: str, fill: int, name: str = None) -> WalletSecret:
    return WalletSecret(public_key=key, secret_key=bytes([fill]) * 32, name=name)


@pytest.fixture
def existing():
    return [_wallet("a", 1, "Alpha"), _wallet("b", 2, "Beta")]


@pytest.fixture
def imported():
    return [_wallet("b", 9, "Beta v2"), _wallet("c", 3)]


class TestMergeWallets:
    """Tests for each duplicate strategy."""

    def test_skip(self, existing, imported):
        merged = merge_wallets(existing, imported, "skip")
        assert [w.public_key for w in merged] == ["a", "b", "c"]
        assert merged[1].secret_key == bytes([2]) * 32

    def test_replace(self, existing, imported):
        merged = merge_wallets(existing, imported, "replace")
        assert [w.public_key for w in merged] == ["a", "b", "c"]
        assert merged[1].name == "Beta v2"
        assert merged[1].secret_key == bytes([9]) * 32

    def test_keep_both(self, existing, imported):
        merged = merge_wallets(
            existing, imported, "keep-both", today=date(2025, 1, 22),
        )
        assert [w.public_key for w in merged] == ["a", "b", "b", "c"]
        assert merged[2].name == "Beta v2 (2025-01-22)"
        assert merged[1].name == "Beta"

    def test_keep_both_unnamed(self, existing):
        merged = merge_wallets(
            existing, [_wallet("a", 7)], "keep-both", today=date(2025, 1, 22),
        )
        assert merged[-1].name == "Imported (2025-01-22)"

    def test_default_is_skip(self, existing, imported):
        assert merge_wallets(existing, imported) == merge_wallets(
            existing, imported, "skip"
        )

    def test_inputs_not_modified(self, existing, imported):
        before = list(existing)
        merge_wallets(existing, imported, "replace")
        assert existing == before

    def test_unknown_strategy(self, existing, imported):
        with pytest.raises(ValueError):
            merge_wallets(existing, imported, "overwrite")

    def test_duplicates_within_import(self, existing):
        merged = merge_wallets(existing, [_wallet("c", 3), _wallet("c", 4)], "skip")
        assert [w.public_key for w in merged] == ["a", "b", "c"]
