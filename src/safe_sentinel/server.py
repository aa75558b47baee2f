"""FastAPI surface for Safe Sentinel."""

from __future__ import annotations

import json
import logging
from pathlib import Path

import uvicorn
from fastapi import FastAPI, Query, WebSocket, WebSocketDisconnect
from pydantic import ValidationError

from safe_sentinel.core.events import Event
from safe_sentinel.core.guardian import Guardian
from safe_sentinel.errors import SafeServiceError, SignerError
from safe_sentinel.safe.models import PendingTransaction

logger = logging.getLogger("safe_sentinel.server")

_app = FastAPI(title="Safe Sentinel")
_guardian: Guardian | None = None
_config_path: Path | None = None
_websockets: list[WebSocket] = []


async def _broadcast_ws(event: Event) -> None:
    """Send an event to all connected WebSocket clients."""
    payload = json.dumps(event.to_dict(), default=str)
    disconnected = []
    for ws in _websockets:
        try:
            await ws.send_text(payload)
        except Exception:
            disconnected.append(ws)
    for ws in disconnected:
        _websockets.remove(ws)


@_app.on_event("startup")
async def startup():
    global _guardian
    _guardian = Guardian.load(_config_path)
    _guardian.events.set_global_listener(_broadcast_ws)
    await _guardian.start()
    logger.info(f"Safe Sentinel listening for '{_guardian.config.name}'")


@_app.on_event("shutdown")
async def shutdown():
    if _guardian:
        await _guardian.shutdown()


# ------------------------------------------------------------------
# API routes
# ------------------------------------------------------------------


@_app.get("/api/status")
async def api_status():
    return _guardian.status() if _guardian else {}


@_app.post("/api/evaluate")
async def api_evaluate(body: dict):
    """Evaluate one ad-hoc transaction without signing it."""
    if not _guardian:
        return {"error": "Guardian not loaded"}
    try:
        tx = PendingTransaction.model_validate(body)
    except ValidationError as e:
        return {"error": f"Invalid transaction: {e}"}
    verdict = await _guardian.evaluate_transaction(
        tx, with_narrative=bool(body.get("withNarrative", True))
    )
    return verdict.to_dict()


@_app.post("/api/transaction-analysis")
async def api_transaction_analysis(body: dict):
    """Evaluate and co-sign a wallet's pending queue."""
    if not _guardian:
        return {"error": "Guardian not loaded"}
    try:
        result = await _guardian.process_pending_transactions(body.get("safeAddress"))
    except (SafeServiceError, SignerError, ValueError) as e:
        logger.error(f"Transaction analysis failed: {e}")
        return {"error": str(e)}
    return result.to_dict()


@_app.get("/api/reputation")
async def api_reputation():
    return _guardian.cache.status() if _guardian else {}


@_app.get("/api/reputation/{address}")
async def api_reputation_lookup(address: str):
    if not _guardian:
        return {"error": "Guardian not loaded"}
    return {
        "address": address.lower(),
        "denylisted": _guardian.cache.is_denylisted(address),
        "allowlisted": _guardian.cache.is_allowlisted(address),
    }


@_app.post("/api/reputation/refresh")
async def api_reputation_refresh():
    if not _guardian:
        return {"error": "Guardian not loaded"}
    refreshed = await _guardian.cache.refresh()
    return {"refreshed": refreshed, **_guardian.cache.status()}


@_app.get("/api/events")
async def api_events(name: str | None = Query(None), limit: int = Query(100)):
    if not _guardian:
        return []
    return [e.to_dict() for e in _guardian.events.get_history(limit=limit, name=name)]


# ------------------------------------------------------------------
# WebSocket
# ------------------------------------------------------------------


@_app.websocket("/ws")
async def websocket_endpoint(ws: WebSocket):
    await ws.accept()
    _websockets.append(ws)
    try:
        while True:
            await ws.receive_text()
    except WebSocketDisconnect:
        _websockets.remove(ws)


# ------------------------------------------------------------------
# Runner
# ------------------------------------------------------------------


def run_server(
    host: str = "127.0.0.1", port: int = 3000, config_path: Path | None = None
) -> None:
    global _config_path
    _config_path = config_path
    uvicorn.run(_app, host=host, port=port, log_level="info")
