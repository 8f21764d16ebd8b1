"""
Store-and-forward relay between web clients and mobile wallets.

This package relays one end-to-end encrypted request and one encrypted
response per correlation id through an ephemeral key-value store, delivering
each payload exactly once and forgetting everything after a short TTL.
"""

__version__ = "0.1.0"

__all__ = ["__version__"]
