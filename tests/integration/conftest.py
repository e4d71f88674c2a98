from datetime import timedelta
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession
from src.depends import (
    get_chat_credential_sync,
    get_password_reset_settings,
    get_reset_notifier,
    get_unit_of_work,
)
from src.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from src.app.use_cases.auth import PasswordResetSettings
from src.domain.value_objects import PasswordPolicy


@pytest.fixture
def chat_sync():
    sync = MagicMock()
    sync.set_password = AsyncMock(return_value=True)
    return sync


@pytest.fixture
def notifier():
    reset_notifier = MagicMock()
    reset_notifier.send_reset_link = AsyncMock()
    return reset_notifier


@pytest_asyncio.fixture
async def engine():
    engine = create_async_engine("sqlite+aiosqlite:///./test.db")
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.drop_all)
    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(engine):
    Session = sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with Session() as session:
        yield session


@pytest_asyncio.fixture
async def client(engine, chat_sync, notifier):
    from httpx import ASGITransport
    from src.api.app import create_app
    from config import ApplicationConfig

    app = create_app(ApplicationConfig)
    Session = sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    async def override_get_unit_of_work():
        async with Session() as session:
            yield SqlAlchemyUnitOfWork(session)

    def override_get_password_reset_settings():
        return PasswordResetSettings(
            token_ttl=timedelta(hours=24),
            password_policy=PasswordPolicy(min_length=8),
            bcrypt_rounds=4,
        )

    app.dependency_overrides[get_unit_of_work] = override_get_unit_of_work
    app.dependency_overrides[get_chat_credential_sync] = lambda: chat_sync
    app.dependency_overrides[get_reset_notifier] = lambda: notifier
    app.dependency_overrides[get_password_reset_settings] = override_get_password_reset_settings

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
