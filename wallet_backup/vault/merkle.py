"""
Backup Merkle Commitment - keccak256 Merkle tree over wallet public keys.

Leaves are ``keccak256(public_key)``. Leaves are sorted before the tree is
built and every sibling pair is sorted before hashing, so the root does not
depend on the order in which wallets were supplied. An odd node at the end
of a layer is promoted to the next layer unchanged.
"""
from __future__ import annotations
import logging
from typing import List, Optional
from dataclasses import dataclass, field

from Crypto.Hash import keccak

logger = logging.getLogger("wallet_backup")


def keccak256(data: bytes) -> bytes:
    """Return the 32-byte Keccak-256 digest of data."""
    return keccak.new(data=data, digest_bits=256).digest()


def leaf_hash(public_key: str) -> bytes:
    return keccak256(public_key.encode("utf-8"))


def hash_pair(left: bytes, right: bytes) -> bytes:
    """Hash two sibling nodes in sorted order."""
    if right < left:
        left, right = right, left
    return keccak256(left + right)


@dataclass
class MerkleTree:
    """
    Merkle tree with all layers kept for proof generation.

    ``layers[0]`` holds the sorted leaves, ``layers[-1]`` holds the root.
    """
    layers: List[List[bytes]] = field(default_factory=list)

    @property
    def root(self) -> bytes:
        return self.layers[-1][0]

    @property
    def root_hex(self) -> str:
        return self.root.hex()

    @property
    def leaf_count(self) -> int:
        return len(self.layers[0])

    def index_of(self, public_key: str) -> Optional[int]:
        leaf = leaf_hash(public_key)
        try:
            return self.layers[0].index(leaf)
        except ValueError:
            return None


def build_tree(public_keys: List[str]) -> MerkleTree:
    """
    Build a Merkle tree from wallet public keys.

    Args:
        public_keys: Non-empty list of public key strings.

    Returns:
        MerkleTree

    Raises:
        ValueError: If public_keys is empty.
    """
    if not public_keys:
        raise ValueError("Cannot build a Merkle tree without leaves")

    current = sorted(leaf_hash(key) for key in public_keys)
    layers = [current]
    while len(current) > 1:
        next_layer = []
        for i in range(0, len(current) - 1, 2):
            next_layer.append(hash_pair(current[i], current[i + 1]))
        if len(current) % 2 == 1:
            next_layer.append(current[-1])
        layers.append(next_layer)
        current = next_layer

    logger.debug(
        "Built Merkle tree: %d leaves, %d layers", len(public_keys), len(layers)
    )
    return MerkleTree(layers=layers)


def get_proof(tree: MerkleTree, public_key: str) -> List[str]:
    """
    Return the hex sibling path from a public key's leaf to the root.

    Raises:
        KeyError: If public_key is not a leaf of the tree.
    """
    index = tree.index_of(public_key)
    if index is None:
        raise KeyError(f"Public key {public_key} is not in the Merkle tree")

    proof = []
    for layer in tree.layers[:-1]:
        sibling = index ^ 1
        if sibling < len(layer):
            proof.append(layer[sibling].hex())
        # a promoted odd node has no sibling on this layer
        index //= 2
    return proof


def verify_proof(proof: List[str], public_key: str, root: str) -> bool:
    """
    Verify that public_key is committed to by root.

    Args:
        proof: Hex sibling hashes from ``get_proof``.
        public_key: Public key whose leaf is being proven.
        root: Expected hex Merkle root.

    Returns:
        True if the proof reconstructs root, False otherwise, including
        for malformed hex.
    """
    try:
        current = leaf_hash(public_key)
        for node in proof:
            current = hash_pair(current, bytes.fromhex(node))
        return current == bytes.fromhex(root)
    except (ValueError, TypeError):
        return False
