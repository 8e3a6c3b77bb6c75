"""Merkle-Patricia trie key encodings."""