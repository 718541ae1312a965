"""
Pytest configuration and fixtures for OVERCALL tests.
"""

import sys
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

FUNDED_ACCOUNT = "0x5d3a536E4D6DbD6114cc1Ead35777bAB948E3643"
FORWARDER_CODE = "0x6080604052348015600f57600080fd5b50"
WALLET_CODE = "0x608060405260043610601c5760003560e01c"


def pytest_configure(config):
    """Configure pytest."""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )
    config.addinivalue_line(
        "markers", "integration: marks tests that need a live node (NODE_RPC)"
    )


@pytest.fixture
def funded_account():
    """Known DAI holder on mainnet (checksummed, as users paste it)."""
    return FUNDED_ACCOUNT


@pytest.fixture
def mock_provider():
    """RPC provider double with async node methods."""
    provider = MagicMock()
    provider.eth_call = AsyncMock()
    provider.call = AsyncMock()
    provider.get_code = AsyncMock(return_value="0x")
    provider.get_transaction_count = AsyncMock(return_value=0)
    return provider


@pytest.fixture
def forwarder_artifact_data():
    """Foundry artifact JSON for the two-leg forwarder."""
    return {
        "abi": [
            {
                "type": "function",
                "name": "swap",
                "inputs": [
                    {"name": "wallet", "type": "address", "internalType": "contract IUnlockedWallet"},
                    {"name": "amount", "type": "uint256", "internalType": "uint256"},
                ],
                "outputs": [{"name": "", "type": "uint256", "internalType": "uint256"}],
                "stateMutability": "nonpayable",
            }
        ],
        "deployedBytecode": {"object": FORWARDER_CODE},
        "methodIdentifiers": {"swap(address,uint256)": "5f3a0e5d"},
    }


@pytest.fixture
def wallet_artifact_data():
    """Foundry artifact JSON for the unlocked wallet."""
    return {
        "abi": [
            {
                "type": "function",
                "name": "transfer",
                "inputs": [
                    {"name": "token", "type": "address", "internalType": "contract IERC20"},
                    {"name": "to", "type": "address", "internalType": "address"},
                    {"name": "amount", "type": "uint256", "internalType": "uint256"},
                ],
                "outputs": [],
                "stateMutability": "nonpayable",
            }
        ],
        "deployedBytecode": {"object": WALLET_CODE},
        "methodIdentifiers": {"transfer(address,address,uint256)": "beabacc8"},
    }


@pytest.fixture
def eth_forwarder_artifact_data():
    """Foundry artifact JSON for the payable forwarder."""
    return {
        "abi": [
            {
                "type": "function",
                "name": "swap",
                "inputs": [],
                "outputs": [{"name": "", "type": "uint256", "internalType": "uint256"}],
                "stateMutability": "payable",
            }
        ],
        "deployedBytecode": {"object": FORWARDER_CODE},
        "methodIdentifiers": {"swap()": "8119c065"},
    }
