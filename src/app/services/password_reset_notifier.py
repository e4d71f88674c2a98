from abc import ABC, abstractmethod


class IPasswordResetNotifier(ABC):
    """Delivers a password reset link to the account owner"""

    @abstractmethod
    async def send_reset_link(self, email: str, token: str) -> None:
        """Send the reset link for token to email"""
        pass
