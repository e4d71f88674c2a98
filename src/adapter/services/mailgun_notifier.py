"""
Mailgun Reset Notifier

Sends the password reset link through the Mailgun messages API.
"""

import logging
from typing import Optional
from urllib.parse import urlencode

import httpx

from src.app.services.password_reset_notifier import IPasswordResetNotifier

logger = logging.getLogger(__name__)

MAILGUN_API_URL = "https://api.mailgun.net/v3"


class MailgunResetNotifier(IPasswordResetNotifier):
    """IPasswordResetNotifier implementation backed by Mailgun"""

    def __init__(
        self,
        *,
        api_key: str,
        domain: str,
        sender: str,
        reset_link_url: str,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._api_key = api_key
        self._domain = domain
        self._sender = sender
        self._reset_link_url = reset_link_url
        self._timeout = timeout
        self._transport = transport

    def reset_link(self, token: str) -> str:
        return f"{self._reset_link_url}?{urlencode({'token': token})}"

    async def send_reset_link(self, email: str, token: str) -> None:
        """
        Send the reset link to email.

        Raises:
            httpx.HTTPError: Mailgun unreachable or rejected the message
        """
        async with httpx.AsyncClient(
            timeout=self._timeout, transport=self._transport
        ) as client:
            response = await client.post(
                f"{MAILGUN_API_URL}/{self._domain}/messages",
                auth=("api", self._api_key),
                data={
                    "from": self._sender,
                    "to": email,
                    "subject": "Password reset",
                    "text": f"Reset your password: {self.reset_link(token)}",
                },
            )
            response.raise_for_status()

        logger.info("Password reset link sent via Mailgun")
