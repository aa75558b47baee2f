"""Tests for the individual risk checks and the check registry."""

from __future__ import annotations

import pytest
from web3 import Web3

from conftest import ALLOWLISTED, DENYLISTED, UNKNOWN, approve_tx, make_tx
from safe_sentinel.checks import (
    AddressPoisoningCheck,
    AddressSimilarityCheck,
    ApprovalRisksCheck,
    CheckRegistry,
    ContractAgeCheck,
    ContractInteractionCheck,
    KnownScamsCheck,
    ProxyRisksCheck,
    ValueTransferCheck,
    build_default_registry,
)
from safe_sentinel.checks.address import address_similarity
from safe_sentinel.checks.base import RiskCheck, first_match, passed
from safe_sentinel.checks.calldata import KNOWN_SCAM_RULES, MAX_UINT256
from safe_sentinel.config import ChecksConfig, ValueThresholds
from safe_sentinel.models import RiskLevel
from safe_sentinel.safe.models import DecodedCall

ETH = 10**18


# ── addressPoisoning ─────────────────────────────────────────────────────────


class TestAddressPoisoning:
    @pytest.mark.asyncio
    async def test_denylisted_is_critical(self, loaded_cache):
        result = await AddressPoisoningCheck(loaded_cache).run(make_tx(to=DENYLISTED.lower()))
        assert result.risk is RiskLevel.CRITICAL
        assert result.safe is False
        assert "darklist" in result.message

    @pytest.mark.asyncio
    async def test_allowlisted_is_verified(self, loaded_cache):
        result = await AddressPoisoningCheck(loaded_cache).run(make_tx(to=ALLOWLISTED))
        assert result.risk is RiskLevel.NONE
        assert result.safe is True
        assert "lightlist" in result.message

    @pytest.mark.asyncio
    async def test_unknown_is_not_flagged(self, loaded_cache):
        result = await AddressPoisoningCheck(loaded_cache).run(make_tx(to=UNKNOWN))
        assert result.risk is RiskLevel.NONE
        assert result.message == "No address poisoning risks detected"

    @pytest.mark.asyncio
    async def test_lookup_error_falls_back_to_high(self):
        class BrokenCache:
            def is_denylisted(self, address):
                raise RuntimeError("boom")

        result = await AddressPoisoningCheck(BrokenCache()).run(make_tx())
        assert result.risk is RiskLevel.HIGH
        assert result.message == "Error checking address safety"


# ── valueTransfer ────────────────────────────────────────────────────────────


class TestValueTransfer:
    def _check(self, **thresholds) -> ValueTransferCheck:
        return ValueTransferCheck(ValueThresholds(**thresholds))

    @pytest.mark.parametrize(
        "wei, risk, safe",
        [
            (0, RiskLevel.NONE, True),
            (1 * ETH, RiskLevel.NONE, True),
            (1 * ETH + 1, RiskLevel.LOW, True),
            (10 * ETH, RiskLevel.LOW, True),
            (10 * ETH + 1, RiskLevel.MEDIUM, False),
            (50 * ETH, RiskLevel.MEDIUM, False),
            (50 * ETH + 1, RiskLevel.HIGH, False),
            (1000 * ETH, RiskLevel.HIGH, False),
        ],
    )
    @pytest.mark.asyncio
    async def test_bands_are_strict(self, wei, risk, safe):
        result = await self._check().run(make_tx(value=str(wei)))
        assert result.risk is risk
        assert result.safe is safe

    @pytest.mark.asyncio
    async def test_high_message(self):
        result = await self._check().run(make_tx(value=str(60 * ETH)))
        assert result.message == "Very high value transfer detected (>50 ETH)"

    @pytest.mark.asyncio
    async def test_custom_thresholds_and_symbol(self):
        check = ValueTransferCheck(ValueThresholds(low=0.5, medium=2, high=5), symbol="POL")
        result = await check.run(make_tx(value=str(Web3.to_wei(3, "ether"))))
        assert result.risk is RiskLevel.MEDIUM
        assert "2 POL" in result.message

    @pytest.mark.asyncio
    async def test_garbage_value_falls_back(self):
        result = await self._check().run(make_tx(value="not-a-number"))
        assert result.risk is RiskLevel.HIGH
        assert result.message == "Unable to verify valueTransfer"


# ── contractInteraction ──────────────────────────────────────────────────────


class TestContractInteraction:
    @pytest.mark.parametrize("data", [None, "", "0x"])
    @pytest.mark.asyncio
    async def test_plain_transfer(self, data):
        result = await ContractInteractionCheck().run(make_tx(data=data))
        assert result.risk is RiskLevel.NONE
        assert result.message == "Simple ETH transfer - no contract interaction"

    @pytest.mark.parametrize("selector", ["0xa9059cbb", "0x095ea7b3", "0x40c10f19", "0x8129fc1c"])
    @pytest.mark.asyncio
    async def test_suspicious_selectors(self, selector):
        result = await ContractInteractionCheck().run(make_tx(data=selector + "00" * 32))
        assert result.risk is RiskLevel.HIGH
        assert result.safe is False

    @pytest.mark.asyncio
    async def test_selector_only_matches_at_start(self):
        data = "0x12345678" + "a9059cbb" + "00" * 28
        result = await ContractInteractionCheck().run(make_tx(data=data))
        assert result.risk is RiskLevel.LOW
        assert result.safe is True

    @pytest.mark.asyncio
    async def test_unlimited_word_anywhere(self):
        data = "0x12345678" + "f" * 64
        result = await ContractInteractionCheck().run(make_tx(data=data))
        assert result.risk is RiskLevel.HIGH
        assert result.message == "Unlimited token approval detected"

    @pytest.mark.asyncio
    async def test_verified_contract_short_circuits(self):
        seaport = "0x00000000006c3852cbEf3e08E8dF289169EdE581"
        check = ContractInteractionCheck([seaport])
        result = await check.run(make_tx(to=seaport.lower(), data="0xa9059cbb" + "00" * 32))
        assert result.risk is RiskLevel.NONE
        assert result.message == "Interaction with verified contract"


# ── knownScams ───────────────────────────────────────────────────────────────


class TestKnownScams:
    @pytest.mark.asyncio
    async def test_no_data(self):
        result = await KnownScamsCheck().run(make_tx())
        assert result.risk is RiskLevel.NONE

    @pytest.mark.parametrize("method", ["claimAirdrop", "freeMint", "collectReward", "giveaway"])
    @pytest.mark.asyncio
    async def test_phishing_keywords_are_critical(self, method):
        tx = make_tx(data="0x12345678", data_decoded=DecodedCall(method=method))
        result = await KnownScamsCheck().run(tx)
        assert result.risk is RiskLevel.CRITICAL
        assert result.message == "Transaction matches known scam patterns"

    @pytest.mark.parametrize(
        "method, message",
        [
            ("mint", "Suspicious token minting or claiming"),
            ("migrateBalances", "Suspicious upgrade or migration"),
            ("emergencyWithdraw", "Suspicious emergency action"),
        ],
    )
    @pytest.mark.asyncio
    async def test_high_patterns(self, method, message):
        tx = make_tx(data="0x12345678", data_decoded=DecodedCall(method=method))
        result = await KnownScamsCheck().run(tx)
        assert result.risk is RiskLevel.HIGH
        assert result.message == message

    def test_first_match_wins(self):
        # "claim" appears in both the critical and the high row
        assert first_match(KNOWN_SCAM_RULES, "claim").risk is RiskLevel.CRITICAL

    @pytest.mark.asyncio
    async def test_benign_method(self):
        tx = make_tx(data="0x12345678", data_decoded=DecodedCall(method="deposit"))
        result = await KnownScamsCheck().run(tx)
        assert result.risk is RiskLevel.NONE


# ── approvalRisks ────────────────────────────────────────────────────────────


class TestApprovalRisks:
    @pytest.mark.asyncio
    async def test_unlimited_approval_is_high(self):
        result = await ApprovalRisksCheck().run(approve_tx(MAX_UINT256))
        assert result.risk is RiskLevel.HIGH
        assert "Infinite approval" in result.message

    @pytest.mark.asyncio
    async def test_bounded_approval(self):
        result = await ApprovalRisksCheck().run(approve_tx(MAX_UINT256 - 1))
        assert result.risk is RiskLevel.NONE
        assert result.safe is True

    @pytest.mark.asyncio
    async def test_not_an_approve(self):
        result = await ApprovalRisksCheck().run(make_tx(data="0xa9059cbb" + "00" * 64))
        assert result.risk is RiskLevel.NONE


# ── proxyRisks ───────────────────────────────────────────────────────────────


class TestProxyRisks:
    @pytest.mark.parametrize("data", ["0x3659cfe6" + "00" * 32, "0x4f1ef286" + "00" * 64])
    @pytest.mark.asyncio
    async def test_upgrade_selectors(self, data):
        result = await ProxyRisksCheck().run(make_tx(data=data))
        assert result.risk is RiskLevel.HIGH
        assert result.message.startswith("Proxy upgrade detected")

    @pytest.mark.asyncio
    async def test_initialize(self):
        result = await ProxyRisksCheck().run(make_tx(data="0x8129fc1c"))
        assert result.message == "Contract initialization detected - potential proxy manipulation"

    @pytest.mark.asyncio
    async def test_decoded_method_name(self):
        tx = make_tx(data="0x12345678", data_decoded=DecodedCall(method="setImplementation"))
        result = await ProxyRisksCheck().run(tx)
        assert result.risk is RiskLevel.HIGH

    @pytest.mark.asyncio
    async def test_no_data(self):
        result = await ProxyRisksCheck().run(make_tx())
        assert result.message == "No proxy risks detected"


# ── contractAge ──────────────────────────────────────────────────────────────


class FakeChain:
    def __init__(self, code: bytes = b"\x60\x80", tx_count: int = 500, error: Exception | None = None):
        self.code = code
        self.tx_count = tx_count
        self.error = error

    def get_code(self, address: str) -> bytes:
        if self.error:
            raise self.error
        return self.code

    def get_transaction_count(self, address: str) -> int:
        return self.tx_count


class TestContractAge:
    @pytest.mark.asyncio
    async def test_not_a_contract(self):
        result = await ContractAgeCheck(FakeChain(code=b"")).run(make_tx())
        assert result.message == "Not a contract address"
        assert result.risk is RiskLevel.NONE

    @pytest.mark.asyncio
    async def test_young_contract(self):
        result = await ContractAgeCheck(FakeChain(tx_count=3)).run(make_tx())
        assert result.risk is RiskLevel.HIGH

    @pytest.mark.asyncio
    async def test_established_contract(self):
        result = await ContractAgeCheck(FakeChain(tx_count=100)).run(make_tx())
        assert result.risk is RiskLevel.NONE

    @pytest.mark.asyncio
    async def test_provider_error_is_medium(self):
        result = await ContractAgeCheck(FakeChain(error=ConnectionError("rpc down"))).run(make_tx())
        assert result.risk is RiskLevel.MEDIUM
        assert result.safe is False
        assert result.message == "Unable to verify contract age"


# ── addressSimilarity ────────────────────────────────────────────────────────


class TestAddressSimilarity:
    def test_similarity_score(self):
        assert address_similarity("0xabcd", "0xabcd") == 1.0
        assert address_similarity("0xabcd", "0xabce") == pytest.approx(5 / 6)
        assert address_similarity("", "0x") == 0.0

    @pytest.mark.asyncio
    async def test_lookalike_is_high(self):
        genuine = "0x7a250d5630b4cf539739df2c5dacb4c659f2488d"
        lookalike = genuine[:-2] + "00"
        result = await AddressSimilarityCheck().run(make_tx(to=lookalike))
        assert result.risk is RiskLevel.HIGH
        assert "Uniswap V2 Router" in result.message

    @pytest.mark.asyncio
    async def test_genuine_contract(self):
        result = await AddressSimilarityCheck().run(make_tx(to=ALLOWLISTED))
        assert result.risk is RiskLevel.NONE

    @pytest.mark.asyncio
    async def test_unrelated_address(self):
        result = await AddressSimilarityCheck().run(make_tx(to=UNKNOWN))
        assert result.risk is RiskLevel.NONE


# ── registry ─────────────────────────────────────────────────────────────────


class _Named(RiskCheck):
    def __init__(self, name: str):
        self.name = name

    def evaluate(self, tx):
        return passed("ok")


class TestRegistry:
    def test_duplicate_name_rejected(self):
        registry = CheckRegistry([_Named("a")])
        with pytest.raises(ValueError):
            registry.register(_Named("a"))

    def test_nameless_check_rejected(self):
        with pytest.raises(ValueError):
            CheckRegistry([_Named("")])

    def test_order_preserved(self):
        registry = CheckRegistry([_Named("b"), _Named("a")])
        assert registry.list_names() == ["b", "a"]
        assert registry.get_check("a") is not None
        assert registry.get_check("missing") is None

    def test_default_registry_core_checks(self, reputation_config):
        from safe_sentinel.reputation.cache import AddressReputationCache

        registry = build_default_registry(ChecksConfig(), AddressReputationCache(reputation_config))
        assert registry.list_names() == [
            "addressPoisoning",
            "valueTransfer",
            "contractInteraction",
            "knownScams",
            "approvalRisks",
        ]

    def test_optional_checks(self, reputation_config):
        from safe_sentinel.reputation.cache import AddressReputationCache

        config = ChecksConfig(
            enable_proxy_risks=True,
            enable_contract_age=True,
            enable_address_similarity=True,
        )
        registry = build_default_registry(
            config, AddressReputationCache(reputation_config), chain_provider=FakeChain()
        )
        assert len(registry) == 8
        assert {"proxyRisks", "contractAge", "addressSimilarity"} <= set(registry.list_names())

    def test_contract_age_requires_provider(self, reputation_config):
        from safe_sentinel.reputation.cache import AddressReputationCache

        with pytest.raises(ValueError):
            build_default_registry(
                ChecksConfig(enable_contract_age=True),
                AddressReputationCache(reputation_config),
            )
