"""
services/realtime_service.py

Fire-and-forget broadcasts over the provider's realtime REST endpoint.
Channels: ``conversation-{thread_id}`` for chat, ``user-{user_id}`` for
notifications.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import httpx

from app.core.config import settings

logger = logging.getLogger(__name__)


class RealtimeService:

    def __init__(self, transport: Optional[httpx.BaseTransport] = None) -> None:
        self.url = f"{settings.SUPABASE_URL}/realtime/v1/api/broadcast"
        self.timeout = settings.PROVIDER_TIMEOUT_SECONDS
        self.transport = transport

    def _headers(self) -> Dict[str, str]:
        key = settings.SUPABASE_SERVICE_ROLE_KEY
        return {
            "apikey": key,
            "Authorization": f"Bearer {key}",
            "Content-Type": "application/json",
        }

    def broadcast(self, channel: str, event: str, payload: Dict[str, Any]) -> None:
        """Send one message; raises httpx.HTTPStatusError when the provider refuses it."""
        body = {"messages": [{"topic": channel, "event": event, "payload": payload}]}
        with httpx.Client(timeout=self.timeout, transport=self.transport) as client:
            resp = client.post(self.url, json=body, headers=self._headers())
            resp.raise_for_status()
        logger.info("Broadcast %s on %s", event, channel)

    def try_broadcast(self, channel: str, event: str, payload: Dict[str, Any]) -> bool:
        """Broadcast, logging instead of raising. Returns success."""
        try:
            self.broadcast(channel, event, payload)
            return True
        except httpx.HTTPError as e:
            logger.warning("Broadcast %s on %s failed: %s", event, channel, e)
            return False


realtime_service = RealtimeService()
