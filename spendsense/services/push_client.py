"""Push notification delivery for newly created insights."""
from __future__ import annotations

import logging
from typing import Any, Mapping, Protocol

import httpx
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from spendsense.core.config import settings
from spendsense.domain.users.models import User

logger = logging.getLogger(__name__)

FCM_SEND_URL = "https://fcm.googleapis.com/v1/projects/{project_id}/messages:send"


class PushTransport(Protocol):
    async def send(self, token: str, title: str, body: str, data: Mapping[str, str]) -> None:
        ...


class FCMTransport:
    """Firebase Cloud Messaging HTTP v1 sender.

    With ``FCM_ACCESS_TOKEN`` set to ``stub`` or ``debug`` messages are only
    logged, which keeps local and test environments offline.
    """

    def __init__(
        self,
        *,
        project_id: str | None = None,
        access_token: str | None = None,
        timeout: float | None = None,
    ) -> None:
        self.project_id = project_id if project_id is not None else settings.FCM_PROJECT_ID
        self.access_token = access_token if access_token is not None else settings.FCM_ACCESS_TOKEN
        self.timeout = timeout if timeout is not None else settings.PUSH_TIMEOUT_SECONDS

    @property
    def stubbed(self) -> bool:
        return self.access_token.strip().lower() in {"stub", "debug"}

    async def send(self, token: str, title: str, body: str, data: Mapping[str, str]) -> None:
        if self.stubbed:
            logger.info("Push stub: would notify device with %r", title)
            return

        if not self.project_id:
            raise ValueError("FCM_PROJECT_ID not configured for push delivery.")
        if not self.access_token:
            raise ValueError("FCM_ACCESS_TOKEN not configured for push delivery.")

        payload = {
            "message": {
                "token": token,
                "notification": {"title": title, "body": body},
                "data": {key: str(value) for key, value in data.items()},
            }
        }
        headers = {
            "Authorization": f"Bearer {self.access_token}",
            "Content-Type": "application/json",
        }
        url = FCM_SEND_URL.format(project_id=self.project_id)

        async with httpx.AsyncClient(timeout=self.timeout) as client:
            response = await client.post(url, json=payload, headers=headers)
            response.raise_for_status()


class PushNotifier:
    """Best-effort notifier: resolves the device token and never raises."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        transport: PushTransport | None = None,
    ) -> None:
        self.session_factory = session_factory
        self.transport = transport or FCMTransport()

    async def _device_token(self, owner_id: str) -> str | None:
        async with self.session_factory() as db:
            result = await db.execute(select(User.device_token).where(User.id == owner_id))
            return result.scalar_one_or_none()

    async def notify(
        self,
        owner_id: str,
        title: str,
        body: str,
        metadata: Mapping[str, Any] | None = None,
    ) -> bool:
        """Send a push to the owner's device. Returns True when handed off."""
        try:
            token = await self._device_token(owner_id)
            if not token:
                logger.debug("No device token for owner %s; skipping push", owner_id)
                return False

            data = {key: str(value) for key, value in (metadata or {}).items()}
            data.setdefault("title", title)
            data.setdefault("message", body)
            await self.transport.send(token, title, body, data)
            return True
        except Exception:  # noqa: BLE001
            logger.exception("Failed to send push notification to owner %s", owner_id)
            return False
