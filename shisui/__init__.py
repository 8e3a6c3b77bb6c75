"""Portal network wire messages, RLP, trie key encodings and state content storage."""

__version__ = "0.1.0"