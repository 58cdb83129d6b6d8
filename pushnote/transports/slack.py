"""Slack incoming-webhook transport over httpx."""

from __future__ import annotations

import httpx

from pushnote.transports.base import Transport
from pushnote.utils.logging import get_logger

log = get_logger(__name__)


class SlackWebhookTransport(Transport):
    """POSTs ``payload=<json>`` form data to an incoming-webhook URL.

    Delivery is best effort: failures are logged and the push is never
    blocked on them.
    """

    def __init__(
        self,
        webhook_url: str,
        timeout: float = 10.0,
        client: httpx.Client | None = None,
    ) -> None:
        self._webhook_url = webhook_url
        self._client = client or httpx.Client(timeout=timeout)
        self._owns_client = client is None

    @property
    def name(self) -> str:
        return "slack"

    def send(self, payload: str) -> bool:
        try:
            resp = self._client.post(self._webhook_url, data={"payload": payload})
            resp.raise_for_status()
        except httpx.HTTPStatusError as e:
            log.warning(
                "notification_rejected",
                status=e.response.status_code,
                body=e.response.text[:200],
            )
            return False
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            log.warning("notification_failed", error=str(e), error_type=type(e).__name__)
            return False

        log.debug("notification_delivered", status=resp.status_code)
        return True

    def close(self) -> None:
        if self._owns_client:
            self._client.close()
