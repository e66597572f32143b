"""
Tests for the keccak256 Merkle commitment over wallet public keys.
"""
import pytest
from Crypto.Hash import keccak

from wallet_backup.vault.merkle import (
    build_tree,
    get_proof,
    verify_proof,
    leaf_hash,
)


def _keccak(data: bytes) -> bytes:
    return keccak.new(data=data, digest_bits=256).digest()


IDS = [f"wallet-{i}" for i in range(7)]


class TestBuildTree:
    """Tests for build_tree."""

    def test_single_leaf_root_is_leaf(self):
        tree = build_tree(["only"])
        assert tree.root == _keccak(b"only")
        assert get_proof(tree, "only") == []

    def test_two_leaves_sorted_pair(self):
        a, b = _keccak(b"A"), _keccak(b"B")
        expected = _keccak(min(a, b) + max(a, b))
        assert build_tree(["A", "B"]).root == expected
        assert build_tree(["B", "A"]).root == expected

    def test_root_independent_of_order(self):
        assert build_tree(IDS).root == build_tree(list(reversed(IDS))).root

    def test_odd_node_promoted(self):
        """With three leaves the largest leaf joins at the second level."""
        leaves = sorted(_keccak(x.encode()) for x in ("x", "y", "z"))
        left = _keccak(leaves[0] + leaves[1])
        expected = _keccak(min(left, leaves[2]) + max(left, leaves[2]))
        assert build_tree(["x", "y", "z"]).root == expected

    def test_root_hex(self):
        tree = build_tree(IDS)
        assert tree.root_hex == tree.root.hex()
        assert len(tree.root_hex) == 64

    def test_empty_rejected(self):
        with pytest.raises(ValueError):
            build_tree([])

    def test_leaf_count(self):
        assert build_tree(IDS).leaf_count == len(IDS)


class TestProofs:
    """Tests for get_proof / verify_proof."""

    @pytest.mark.parametrize("count", [1, 2, 3, 4, 5, 8, 13])
    def test_every_inserted_id_verifies(self, count):
        ids = IDS[:count] if count <= len(IDS) else [f"k{i}" for i in range(count)]
        tree = build_tree(ids)
        for public_key in ids:
            assert verify_proof(get_proof(tree, public_key), public_key, tree.root_hex)

    def test_unknown_id_has_no_proof(self):
        with pytest.raises(KeyError):
            get_proof(build_tree(IDS), "intruder")

    def test_outside_id_fails(self):
        tree = build_tree(IDS)
        proof = get_proof(tree, IDS[0])
        assert not verify_proof(proof, "intruder", tree.root_hex)

    def test_other_root_fails(self):
        tree = build_tree(IDS)
        other = build_tree(IDS[:-1])
        assert not verify_proof(get_proof(tree, IDS[0]), IDS[0], other.root_hex)

    def test_corrupted_proof_fails(self):
        tree = build_tree(IDS)
        proof = get_proof(tree, IDS[2])
        proof[0] = ("0" if proof[0][0] != "0" else "1") + proof[0][1:]
        assert not verify_proof(proof, IDS[2], tree.root_hex)

    def test_malformed_hex_fails(self):
        tree = build_tree(IDS)
        assert not verify_proof(["zz"], IDS[0], tree.root_hex)
        assert not verify_proof(get_proof(tree, IDS[0]), IDS[0], "not-hex")

    def test_leaf_hash_is_keccak_of_utf8(self):
        assert leaf_hash("ключ") == _keccak("ключ".encode("utf-8"))
