from datetime import timedelta
from unittest.mock import AsyncMock, MagicMock

import pytest

from src.app.use_cases.auth import PasswordResetSettings
from src.domain.entities import User
from src.domain.value_objects import PasswordPolicy, SessionContext
from tests.unit.fakes import NOW


@pytest.fixture
def mock_uow():
    uow = MagicMock()
    uow.__aenter__ = AsyncMock(return_value=uow)
    uow.__aexit__ = AsyncMock(return_value=False)  # Must return False to not suppress exceptions
    uow.commit = AsyncMock()
    uow.rollback = AsyncMock()

    uow.users = MagicMock()
    uow.users.get_by_username = AsyncMock(return_value=None)
    uow.users.get_by_email = AsyncMock(return_value=None)
    uow.users.get_by_id = AsyncMock(return_value=None)
    uow.users.update = AsyncMock()
    return uow


@pytest.fixture
def chat_sync():
    sync = MagicMock()
    sync.set_password = AsyncMock(return_value=True)
    return sync


@pytest.fixture
def settings():
    # Low bcrypt cost keeps the suite fast
    return PasswordResetSettings(
        token_ttl=timedelta(hours=24),
        password_policy=PasswordPolicy(min_length=8),
        bcrypt_rounds=4,
    )


@pytest.fixture
def session():
    return SessionContext(session_id="session-1", expires_at=NOW + timedelta(hours=1))


@pytest.fixture
def user():
    return User(
        id=3,
        username="c0d3r",
        email="c0d3r@c0d3.com",
        password_hash="old_hashed_password",
    )
