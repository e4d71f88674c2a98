import secrets


class SecretGenerator:
    """Fresh URL-safe random secret for every reset request"""

    def __init__(self, nbytes: int = 16):
        self.nbytes = nbytes

    def generate(self) -> str:
        return secrets.token_urlsafe(self.nbytes)
