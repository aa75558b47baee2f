"""Guardian - the top-level object wiring cache, checks, engine and signer."""

from __future__ import annotations

import logging
from pathlib import Path

from safe_sentinel.chain.chains import get_chain
from safe_sentinel.chain.provider import Web3Provider
from safe_sentinel.checks.registry import build_default_registry
from safe_sentinel.config import SentinelConfig, default_config_path, load_config
from safe_sentinel.core.events import EventBus
from safe_sentinel.errors import ConfigError
from safe_sentinel.engine.decision import DecisionEngine
from safe_sentinel.engine.narrative import NarrativeReporter
from safe_sentinel.llm.router import LLMRouter
from safe_sentinel.models import Verdict
from safe_sentinel.reputation.cache import AddressReputationCache
from safe_sentinel.safe.client import SafeServiceClient
from safe_sentinel.safe.models import BatchResult, PendingTransaction
from safe_sentinel.safe.orchestrator import SigningOrchestrator
from safe_sentinel.safe.signer import SafeSigner

logger = logging.getLogger("safe_sentinel.guardian")


class Guardian:
    """Owns one instance of every component and their lifecycle.

    Collaborators can be injected (tests pass fakes); anything not given is
    built from *config*. The signer is only resolved when a batch is
    processed, so ad-hoc evaluation works without a key.
    """

    def __init__(
        self,
        config: SentinelConfig,
        *,
        events: EventBus | None = None,
        cache: AddressReputationCache | None = None,
        chain_provider=None,
        narrator: NarrativeReporter | None = None,
        safe_client: SafeServiceClient | None = None,
        signer: SafeSigner | None = None,
    ):
        self.config = config
        try:
            self.chain = get_chain(config.chain.name)
        except KeyError as exc:
            raise ConfigError(str(exc)) from exc
        self.events = events or EventBus()
        self.cache = cache or AddressReputationCache(config.reputation, events=self.events)

        if chain_provider is None and config.checks.enable_contract_age:
            chain_provider = Web3Provider(
                config.chain.name,
                rpc_url=config.chain.rpc_url,
                timeout=config.chain.timeout_seconds,
            )
        self.chain_provider = chain_provider

        self.registry = build_default_registry(
            config.checks,
            self.cache,
            chain_provider=chain_provider,
            native_symbol=self.chain.native_symbol,
        )
        if narrator is None:
            narrator = NarrativeReporter(
                LLMRouter(config.llm).try_get_provider(),
                timeout=config.llm.timeout_seconds,
            )
        self.engine = DecisionEngine(
            self.registry,
            narrator=narrator,
            events=self.events,
            check_timeout=config.checks.check_timeout_seconds,
        )
        self.safe_client = safe_client or SafeServiceClient(
            config.safe.service_url or self.chain.safe_service_url,
            api_key=config.safe.api_key,
            timeout=config.safe.timeout_seconds,
        )
        self._signer = signer
        self._orchestrator: SigningOrchestrator | None = None

    @classmethod
    def load(cls, config_path: Path | None = None) -> Guardian:
        """Build a Guardian from a YAML configuration file."""
        path = config_path or default_config_path()
        return cls(load_config(path))

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def start(self, background_refresh: bool = True) -> None:
        """Load the reputation lists (fatal on failure) and schedule refreshes."""
        await self.cache.refresh()
        if background_refresh:
            self.cache.start_background_refresh()
        logger.info(
            "Guardian started on %s with checks: %s",
            self.chain.name,
            ", ".join(self.registry.list_names()),
        )

    async def shutdown(self) -> None:
        """Clean shutdown."""
        await self.cache.stop()
        await self.safe_client.aclose()

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    @property
    def orchestrator(self) -> SigningOrchestrator:
        if self._orchestrator is None:
            signer = self._signer or SafeSigner.from_config(self.config.signer)
            self._orchestrator = SigningOrchestrator(
                self.engine, self.safe_client, signer, events=self.events
            )
            logger.info("Co-signing as %s", signer.address)
        return self._orchestrator

    async def evaluate_transaction(
        self, tx: PendingTransaction, with_narrative: bool = True
    ) -> Verdict:
        return await self.engine.evaluate(tx, with_narrative=with_narrative)

    async def process_pending_transactions(
        self, wallet_address: str | None = None
    ) -> BatchResult:
        address = wallet_address or self.config.safe.default_safe_address
        if not address:
            raise ValueError(
                "No wallet address given and safe.default_safe_address is not configured."
            )
        return await self.orchestrator.process_pending_transactions(address)

    def status(self) -> dict:
        return {
            "name": self.config.name,
            "chain": self.chain.name,
            "checks": self.registry.list_names(),
            "narrative_enabled": bool(self.engine.narrator and self.engine.narrator.enabled),
            "reputation": self.cache.status(),
        }
