"""
Mattermost Credential Sync

Sets the Mattermost account password of a user through the Mattermost REST
API (v4), authenticated with an admin personal access token. The chat
account is matched by username.
"""

import logging
from typing import Optional
from urllib.parse import quote

import httpx

from src.app.services.chat_credential_sync import IChatCredentialSync
from src.domain.entities import User

logger = logging.getLogger(__name__)


class MattermostCredentialSync(IChatCredentialSync):
    """IChatCredentialSync implementation backed by the Mattermost API"""

    def __init__(
        self,
        *,
        base_url: str,
        access_token: str,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._base_url = base_url.rstrip("/")
        self._access_token = access_token
        self._timeout = timeout
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=f"{self._base_url}/api/v4",
            headers={"Authorization": f"Bearer {self._access_token}"},
            timeout=self._timeout,
            transport=self._transport,
        )

    async def set_password(self, user: User, new_password: str) -> bool:
        """
        Set the chat password for user.

        Returns:
            True if Mattermost accepted the new password, False if the chat
            account is missing or the update was rejected

        Raises:
            httpx.RequestError: Mattermost could not be reached
        """
        async with self._client() as client:
            response = await client.get(f"/users/username/{quote(user.username, safe='')}")
            if response.status_code != 200:
                logger.warning(
                    "Mattermost user lookup failed for %s: HTTP %s",
                    user.username,
                    response.status_code,
                )
                return False

            chat_user_id = response.json().get("id")
            if not chat_user_id:
                logger.warning("Mattermost returned no id for %s", user.username)
                return False

            response = await client.put(
                f"/users/{chat_user_id}/password",
                json={"new_password": new_password},
            )

        if response.status_code != 200:
            logger.warning(
                "Mattermost rejected password update for %s: HTTP %s",
                user.username,
                response.status_code,
            )
            return False

        return True
