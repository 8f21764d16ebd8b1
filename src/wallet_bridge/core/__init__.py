"""Core relay logic for the wallet bridge.

This package contains the request/response correlation protocol:
- Pairing store: create-once and single-read records over the key-value store
- Relay service: the Initialized -> Retrieved -> Completed state machine

The core is framework-agnostic; the HTTP layer in wallet_bridge.api wraps it.
"""

from wallet_bridge.core.pairing_store import PairingStore
from wallet_bridge.core.relay import RelayService

__all__ = ["PairingStore", "RelayService"]
