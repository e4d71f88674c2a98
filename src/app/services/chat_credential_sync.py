from abc import ABC, abstractmethod

from src.domain.entities import User


class IChatCredentialSync(ABC):
    """Pushes a user's new password to the external chat system"""

    @abstractmethod
    async def set_password(self, user: User, new_password: str) -> bool:
        """
        Set the chat account password for user.

        Returns False when the chat system rejects the change. Transport
        failures may be raised instead; callers treat both the same way.
        """
        pass
