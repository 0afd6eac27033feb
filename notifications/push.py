"""
Push-gateway notifier — POSTs notifications to an HTTP push service.

Payload shape (JSON):
    {
        "token": "<device token>",
        "notification": {"title": "...", "body": "..."},
        "data": {"jobId": "...", "success": "true"}
    }

One attempt per notification. A timeout or non-2xx response is logged
and reported as False; retrying is the gateway's business, not ours.
"""

import logging

import httpx

from notifications.base import AbstractNotifier

logger = logging.getLogger(__name__)


class PushGatewayNotifier(AbstractNotifier):

    def __init__(
        self,
        gateway_url: str,
        token: str | None = None,
        timeout: float = 10.0,
        transport: httpx.BaseTransport | None = None,
    ):
        self.gateway_url = gateway_url
        self.timeout = timeout
        self.headers = {"Authorization": f"Bearer {token}"} if token else {}
        self._transport = transport

    def _format_payload(
        self, target: str, title: str, body: str, metadata: dict[str, str]
    ) -> dict:
        return {
            "token": target,
            "notification": {"title": title, "body": body},
            "data": dict(metadata),
        }

    def send(self, target: str, title: str, body: str, metadata: dict[str, str]) -> bool:
        payload = self._format_payload(target, title, body, metadata)
        try:
            with httpx.Client(timeout=self.timeout, transport=self._transport) as client:
                response = client.post(self.gateway_url, json=payload, headers=self.headers)
                response.raise_for_status()
        except httpx.TimeoutException as e:
            logger.warning(f"Push gateway timeout for job {metadata.get('jobId')}: {e}")
            return False
        except httpx.HTTPStatusError as e:
            logger.warning(
                f"Push gateway returned {e.response.status_code} "
                f"for job {metadata.get('jobId')}"
            )
            return False
        except httpx.HTTPError as e:
            logger.error(f"Push gateway error for job {metadata.get('jobId')}: {e}")
            return False

        logger.info(f"Push notification delivered for job {metadata.get('jobId')}")
        return True
