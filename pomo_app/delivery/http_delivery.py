"""HTTP webhook state hook."""

import json
import socket
from urllib.error import HTTPError, URLError
from urllib.parse import urlparse
from urllib.request import Request, urlopen

from .. import __version__
from ..config.defaults import HttpHookParams
from ..state.models import StateEvent
from .base import BaseStateDelivery, DeliveryResult, DeliveryStatus, StateDeliveryError


class HttpStateDelivery(BaseStateDelivery):
    """POST each state change as JSON to a webhook URL."""

    def __init__(self, name: str = "http", config: HttpHookParams = HttpHookParams()):
        super().__init__(name, config)
        self.config: HttpHookParams = config

        parsed = urlparse(config.url or "")
        if not parsed.scheme or not parsed.netloc:
            raise StateDeliveryError(f"Invalid URL: {config.url}")

    def deliver(self, event: StateEvent) -> DeliveryResult:
        data = json.dumps(event.to_dict()).encode('utf-8')
        headers = {
            'Content-Type': 'application/json',
            'Content-Length': str(len(data)),
            'User-Agent': f'pomo-app/{__version__}'
        }

        req = Request(self.config.url, data=data, headers=headers, method="POST")

        try:
            with urlopen(req, timeout=self.config.timeout_seconds) as response:
                response_code = response.getcode()

        except HTTPError as e:
            return DeliveryResult(
                status=DeliveryStatus.FAILED,
                message=f"HTTP {e.code}: {e.reason}",
                error=e
            )

        except (OSError, URLError, socket.timeout) as e:
            return DeliveryResult(
                status=DeliveryStatus.FAILED,
                message=f"Network error: {e}",
                error=e
            )

        if not 200 <= response_code < 300:
            return DeliveryResult(
                status=DeliveryStatus.FAILED,
                message=f"HTTP {response_code}"
            )

        return DeliveryResult(
            status=DeliveryStatus.SUCCESS,
            message=f"HTTP {response_code}"
        )

    def health_check(self) -> bool:
        """Check if the webhook host is reachable."""
        try:
            parsed = urlparse(self.config.url)
            health_url = f"{parsed.scheme}://{parsed.netloc}"

            req = Request(health_url, method='HEAD')
            with urlopen(req, timeout=5) as response:
                return 200 <= response.getcode() < 400

        except (OSError, URLError) as e:
            self.logger.warning(
                "Health check failed",
                delivery_name=self.name,
                error=str(e)
            )
            return False
