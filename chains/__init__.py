"""
chains/ - Ledger node interaction layer.

Modules:
- providers: JSON-RPC provider with failover
- block: Block context resolution and pinning
"""

from chains.providers import (
    RPCProvider,
    RPCResponse,
    RPCStats,
)
from chains.block import pin_block

__all__ = [
    # Providers
    "RPCProvider",
    "RPCResponse",
    "RPCStats",
    # Block
    "pin_block",
]
