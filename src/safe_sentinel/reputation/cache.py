"""Address reputation cache backed by the MyEtherWallet dark/light lists."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Iterable, Optional

import httpx
from pydantic import BaseModel, TypeAdapter, ValidationError

from safe_sentinel.errors import CacheLoadError

if TYPE_CHECKING:
    from safe_sentinel.config import ReputationConfig
    from safe_sentinel.core.events import EventBus

logger = logging.getLogger("safe_sentinel.reputation")


class AddressEntry(BaseModel):
    """One record of a reputation list. Only ``address`` is used."""

    address: str
    comment: Optional[str] = None
    date: Optional[str] = None


_ENTRIES = TypeAdapter(list[AddressEntry])


def normalize(address: str) -> str:
    return address.strip().lower()


@dataclass(frozen=True)
class ReputationSnapshot:
    """Immutable deny/allow sets. Replaced wholesale on every refresh."""

    denylist: frozenset[str] = field(default_factory=frozenset)
    allowlist: frozenset[str] = field(default_factory=frozenset)
    last_update: Optional[datetime] = None

    @classmethod
    def build(
        cls,
        denylist: Iterable[str],
        allowlist: Iterable[str],
        last_update: datetime | None = None,
    ) -> ReputationSnapshot:
        return cls(
            denylist=frozenset(normalize(a) for a in denylist if a),
            allowlist=frozenset(normalize(a) for a in allowlist if a),
            last_update=last_update or datetime.now(timezone.utc),
        )


EMPTY_SNAPSHOT = ReputationSnapshot()


class AddressReputationCache:
    """Case-insensitive deny/allow lookups over the latest committed snapshot.

    ``refresh()`` builds a complete new snapshot before swapping it in with a
    single assignment, so readers never see a partial update. A failed
    refresh keeps the previous snapshot; only a failure before anything was
    ever loaded raises :class:`CacheLoadError`.
    """

    def __init__(
        self,
        config: ReputationConfig,
        events: EventBus | None = None,
        client: httpx.AsyncClient | None = None,
    ):
        self._config = config
        self._events = events
        self._client = client
        self._snapshot: ReputationSnapshot = EMPTY_SNAPSHOT
        self._refresh_task: asyncio.Task | None = None

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @property
    def snapshot(self) -> ReputationSnapshot:
        return self._snapshot

    @property
    def loaded(self) -> bool:
        return self._snapshot.last_update is not None

    def is_denylisted(self, address: str) -> bool:
        return normalize(address) in self._snapshot.denylist

    def is_allowlisted(self, address: str) -> bool:
        return normalize(address) in self._snapshot.allowlist

    def status(self) -> dict:
        snap = self._snapshot
        return {
            "loaded": self.loaded,
            "denylist_size": len(snap.denylist),
            "allowlist_size": len(snap.allowlist),
            "last_update": snap.last_update.isoformat() if snap.last_update else None,
            "refreshing": self._refresh_task is not None and not self._refresh_task.done(),
        }

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    async def _fetch_list(self, client: httpx.AsyncClient, url: str) -> list[str]:
        resp = await client.get(url)
        resp.raise_for_status()
        entries = _ENTRIES.validate_python(resp.json())
        return [entry.address for entry in entries]

    async def _fetch_snapshot(self) -> ReputationSnapshot:
        if self._client is not None:
            denylist, allowlist = await asyncio.gather(
                self._fetch_list(self._client, self._config.denylist_url),
                self._fetch_list(self._client, self._config.allowlist_url),
            )
        else:
            async with httpx.AsyncClient(timeout=self._config.timeout_seconds) as client:
                denylist, allowlist = await asyncio.gather(
                    self._fetch_list(client, self._config.denylist_url),
                    self._fetch_list(client, self._config.allowlist_url),
                )
        return ReputationSnapshot.build(
            denylist=[*denylist, *self._config.extra_denylist],
            allowlist=allowlist,
        )

    async def refresh(self) -> bool:
        """Fetch both lists and atomically replace the snapshot.

        Returns ``True`` on success and ``False`` when a refresh after the
        initial load failed (the previous snapshot stays in place).

        Raises
        ------
        CacheLoadError
            If the lists have never been loaded and this attempt fails.
        """
        try:
            snapshot = await asyncio.wait_for(
                self._fetch_snapshot(), timeout=self._config.timeout_seconds
            )
        except (httpx.HTTPError, ValidationError, ValueError, asyncio.TimeoutError) as exc:
            error = str(exc) or exc.__class__.__name__
            logger.error("Failed to refresh address lists: %s", error)
            await self._emit("reputation.refresh_failed", error=error, initial=not self.loaded)
            if not self.loaded:
                raise CacheLoadError(f"Initial address list load failed: {error}") from exc
            return False

        self._snapshot = snapshot
        logger.info(
            "Address lists refreshed (denylist=%d, allowlist=%d)",
            len(snapshot.denylist),
            len(snapshot.allowlist),
        )
        await self._emit(
            "reputation.refreshed",
            denylist_size=len(snapshot.denylist),
            allowlist_size=len(snapshot.allowlist),
            last_update=snapshot.last_update.isoformat(),
        )
        return True

    # ------------------------------------------------------------------
    # Background refresh
    # ------------------------------------------------------------------

    async def _refresh_loop(self, interval: float) -> None:
        while True:
            await asyncio.sleep(interval)
            try:
                await self.refresh()
            except CacheLoadError:
                # Already logged and emitted; retry on the next tick
                continue
            except Exception as exc:
                logger.exception("Unexpected error refreshing address lists")
                await self._emit(
                    "reputation.refresh_failed",
                    error=str(exc) or exc.__class__.__name__,
                    initial=not self.loaded,
                )

    def start_background_refresh(self, interval: float | None = None) -> asyncio.Task:
        """Schedule periodic refreshes on the running loop. Idempotent."""
        if self._refresh_task is not None and not self._refresh_task.done():
            return self._refresh_task
        period = interval if interval is not None else self._config.refresh_interval_seconds
        self._refresh_task = asyncio.create_task(
            self._refresh_loop(period), name="reputation-refresh"
        )
        return self._refresh_task

    async def stop(self) -> None:
        if self._refresh_task is None:
            return
        self._refresh_task.cancel()
        try:
            await self._refresh_task
        except asyncio.CancelledError:
            pass
        self._refresh_task = None

    async def _emit(self, name: str, **data) -> None:
        if self._events is not None:
            await self._events.emit(name, **data)
