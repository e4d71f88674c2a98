"""
Credential Reset Domain Entities

Each entity in its own file.
"""

from .user import User

__all__ = [
    "User",
]
