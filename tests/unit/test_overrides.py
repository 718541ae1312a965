"""
tests/unit/test_overrides.py - Override map and host address tests.
"""

import re

import pytest

from core.constants import ErrorCode
from core.exceptions import EncodingError
from core.models import OverrideEntry, OverrideMap
from harness.addresses import ensure_unused_address, generate_host_address
from harness.overrides import build_override_map, build_single_override

ADDRESS_RE = re.compile(r"^0x[0-9a-f]{40}$")
HOST_CODE = "0x6080604052"
UNLOCK_CODE = "0x60806040526004"


class TestGenerateHostAddress:
    """Test random host address generation."""

    def test_format(self):
        assert ADDRESS_RE.match(generate_host_address())

    def test_fresh_every_call(self):
        """No host address is ever handed out twice."""
        addresses = {generate_host_address() for _ in range(200)}
        assert len(addresses) == 200

    def test_never_precompile_range(self):
        for _ in range(50):
            assert int(generate_host_address(), 16) >= 0x10000


class TestBuildOverrideMap:
    """Test the two-entry override map builder."""

    def test_two_entries(self, funded_account):
        host = generate_host_address()
        overrides = build_override_map(host, HOST_CODE, funded_account, UNLOCK_CODE)

        assert len(overrides) == 2
        assert overrides[host].code == HOST_CODE
        assert overrides[funded_account].code == UNLOCK_CODE

    def test_rpc_rendering(self, funded_account):
        """Rendered as address -> {"code": ...} with lowercase keys."""
        host = generate_host_address()
        overrides = build_override_map(host, HOST_CODE, funded_account, UNLOCK_CODE)

        assert overrides.to_rpc() == {
            host: {"code": HOST_CODE},
            funded_account.lower(): {"code": UNLOCK_CODE},
        }

    def test_same_address_rejected(self, funded_account):
        """Host and funded account must differ, case-insensitively."""
        with pytest.raises(EncodingError) as exc_info:
            build_override_map(funded_account.lower(), HOST_CODE, funded_account, UNLOCK_CODE)

        assert exc_info.value.code == ErrorCode.ENCODE_DUPLICATE_OVERRIDE

    def test_empty_code_rejected(self, funded_account):
        with pytest.raises(EncodingError):
            build_override_map(generate_host_address(), "0x", funded_account, UNLOCK_CODE)

    def test_non_hex_code_rejected(self, funded_account):
        with pytest.raises(EncodingError):
            build_override_map(generate_host_address(), "0x60zz", funded_account, UNLOCK_CODE)

    def test_unprefixed_code_accepted(self, funded_account):
        """Artifact bytecode without 0x gets the prefix."""
        host = generate_host_address()
        overrides = build_override_map(host, "6080604052", funded_account, UNLOCK_CODE)
        assert overrides[host].code == "0x6080604052"

    def test_invalid_address_rejected(self):
        with pytest.raises(EncodingError) as exc_info:
            build_override_map("0x1234", HOST_CODE, generate_host_address(), UNLOCK_CODE)

        assert exc_info.value.code == ErrorCode.ENCODE_INVALID_ADDRESS

    def test_single_override(self):
        host = generate_host_address()
        overrides = build_single_override(host, HOST_CODE)
        assert list(overrides) == [host]


class TestOverrideMap:
    """Test OverrideMap key semantics."""

    def test_lookup_case_insensitive(self, funded_account):
        overrides = OverrideMap([OverrideEntry(address=funded_account, code=UNLOCK_CODE)])

        assert funded_account in overrides
        assert funded_account.upper().replace("0X", "0x") in overrides
        assert overrides[funded_account.lower()].code == UNLOCK_CODE

    def test_duplicate_add_rejected(self, funded_account):
        overrides = OverrideMap([OverrideEntry(address=funded_account, code=UNLOCK_CODE)])

        with pytest.raises(EncodingError) as exc_info:
            overrides.add(OverrideEntry(address=funded_account.lower(), code=HOST_CODE))

        assert exc_info.value.code == ErrorCode.ENCODE_DUPLICATE_OVERRIDE
        assert overrides[funded_account].code == UNLOCK_CODE


class TestEnsureUnusedAddress:
    """Test the on-chain host address preflight."""

    @pytest.mark.asyncio
    async def test_unused_address_passes(self, mock_provider):
        await ensure_unused_address(mock_provider, generate_host_address())

        mock_provider.get_code.assert_awaited_once()
        mock_provider.get_transaction_count.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_address_with_code_rejected(self, mock_provider, funded_account):
        mock_provider.get_code.return_value = "0x6080"

        with pytest.raises(EncodingError) as exc_info:
            await ensure_unused_address(mock_provider, funded_account, "latest")

        assert exc_info.value.code == ErrorCode.HOST_ADDRESS_IN_USE
        assert exc_info.value.details["code_bytes"] == 2

    @pytest.mark.asyncio
    async def test_address_with_nonce_rejected(self, mock_provider):
        mock_provider.get_transaction_count.return_value = 3

        with pytest.raises(EncodingError) as exc_info:
            await ensure_unused_address(mock_provider, generate_host_address())

        assert exc_info.value.details["nonce"] == 3
