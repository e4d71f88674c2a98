"""
Unit tests for PasswordResetService.change_password

Tests all business logic with mocked dependencies.
"""
from datetime import timedelta
from unittest.mock import AsyncMock, MagicMock

import bcrypt
import pytest

from src.app.services.token_codec import Base64TokenCodec
from src.app.use_cases.auth import PasswordResetService
from src.domain.errors import (
    ExternalSyncError,
    InvalidTokenError,
    MalformedTokenError,
    NoSessionError,
    UnexpectedError,
    UserNotFoundError,
    WeakPasswordError,
)
from src.domain.value_objects import SessionContext
from tests.unit.fakes import NOW, InMemoryUnitOfWork

codec = Base64TokenCodec()
SAMPLE_TOKEN = codec.encode(3, "abc123456")


def build_service(uow, chat_sync, settings, **kwargs):
    return PasswordResetService(uow, chat_sync, settings=settings, clock=lambda: NOW, **kwargs)


def with_pending_token(user, token=SAMPLE_TOKEN, expires_at=NOW + timedelta(hours=24)):
    user.pending_reset_token = token
    user.reset_expires_at = expires_at
    return user


@pytest.mark.asyncio
async def test_successful_password_change(mock_uow, chat_sync, settings, session, user):
    """Valid token, strong password and successful sync changes the password"""
    mock_uow.users.get_by_id.return_value = with_pending_token(user)
    service = build_service(mock_uow, chat_sync, settings)

    result = await service.change_password(SAMPLE_TOKEN, "newpassword", session)

    assert result.success is True
    assert result.model_dump() == {"success": True}
    mock_uow.users.get_by_id.assert_called_once_with(3)
    chat_sync.set_password.assert_called_once_with(user, "newpassword")

    mock_uow.users.update.assert_called_once()
    user_id, fields = mock_uow.users.update.call_args.args
    assert user_id == 3
    assert fields["pending_reset_token"] is None
    assert fields["reset_expires_at"] is None
    assert bcrypt.checkpw(b"newpassword", fields["password_hash"].encode())
    mock_uow.commit.assert_called_once()


@pytest.mark.asyncio
async def test_reset_then_change_scenario(chat_sync, settings, session, user):
    """Token from request_reset("c0d3r") with secret fake123 changes the password"""
    uow = InMemoryUnitOfWork([user])
    generator = MagicMock()
    generator.generate.return_value = "fake123"
    service = build_service(uow, chat_sync, settings, secret_generator=generator)

    issued = await service.request_reset("c0d3r")
    assert issued.token == codec.encode(3, "fake123")

    result = await service.change_password(issued.token, "newpassword", session)

    assert result.success is True
    assert user.pending_reset_token is None
    assert user.reset_expires_at is None
    assert bcrypt.checkpw(b"newpassword", user.password_hash.encode())


@pytest.mark.asyncio
async def test_token_is_single_use(chat_sync, settings, session, user):
    uow = InMemoryUnitOfWork([user])
    service = build_service(uow, chat_sync, settings)
    issued = await service.request_reset("c0d3r")

    await service.change_password(issued.token, "newpassword", session)

    with pytest.raises(InvalidTokenError):
        await service.change_password(issued.token, "otherpassword", session)
    assert chat_sync.set_password.call_count == 1


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "session_context",
    [None, SessionContext(session_id="old", expires_at=NOW - timedelta(minutes=1))],
)
async def test_no_session(mock_uow, chat_sync, settings, session_context):
    """Session is checked before the store is queried"""
    service = build_service(mock_uow, chat_sync, settings)

    with pytest.raises(NoSessionError) as exc_info:
        await service.change_password(SAMPLE_TOKEN, "newpassword", session_context)

    assert str(exc_info.value) == "Session does not exist"
    mock_uow.users.get_by_id.assert_not_called()
    mock_uow.__aenter__.assert_not_called()


@pytest.mark.asyncio
@pytest.mark.parametrize("token", ["", "not base64 at all!", codec.encode(3, "x")[:-3] + "###"])
async def test_malformed_token(mock_uow, chat_sync, settings, session, token):
    service = build_service(mock_uow, chat_sync, settings)

    with pytest.raises(MalformedTokenError):
        await service.change_password(token, "newpassword", session)

    mock_uow.users.get_by_id.assert_not_called()


@pytest.mark.asyncio
async def test_user_not_found(mock_uow, chat_sync, settings, session):
    service = build_service(mock_uow, chat_sync, settings)

    with pytest.raises(UserNotFoundError) as exc_info:
        await service.change_password(SAMPLE_TOKEN, "newpassword", session)

    assert str(exc_info.value) == "User does not exist"
    chat_sync.set_password.assert_not_called()


@pytest.mark.asyncio
async def test_weak_password(mock_uow, chat_sync, settings, session, user):
    """Policy failure wins even when the token is valid; nothing is mutated"""
    mock_uow.users.get_by_id.return_value = with_pending_token(user)
    service = build_service(mock_uow, chat_sync, settings)

    with pytest.raises(WeakPasswordError) as exc_info:
        await service.change_password(SAMPLE_TOKEN, "abc", session)

    assert str(exc_info.value) == "Password does not meet criteria"
    chat_sync.set_password.assert_not_called()
    mock_uow.users.update.assert_not_called()
    mock_uow.commit.assert_not_called()


@pytest.mark.asyncio
async def test_weak_password_checked_before_token(mock_uow, chat_sync, settings, session, user):
    """A weak password with a mismatched token reports the password, not the token"""
    mock_uow.users.get_by_id.return_value = with_pending_token(user, token=codec.encode(3, "other"))
    service = build_service(mock_uow, chat_sync, settings)

    with pytest.raises(WeakPasswordError):
        await service.change_password(SAMPLE_TOKEN, "abc", session)


@pytest.mark.asyncio
async def test_mismatched_token(mock_uow, chat_sync, settings, session, user):
    """Well-formed token with a different secret is invalid, not malformed"""
    mock_uow.users.get_by_id.return_value = with_pending_token(user, token=codec.encode(3, "abc211"))
    service = build_service(mock_uow, chat_sync, settings)

    with pytest.raises(InvalidTokenError) as exc_info:
        await service.change_password(SAMPLE_TOKEN, "newpassword", session)

    assert str(exc_info.value) == "Invalid Token"
    chat_sync.set_password.assert_not_called()
    mock_uow.users.update.assert_not_called()


@pytest.mark.asyncio
@pytest.mark.parametrize("expires_at", [NOW - timedelta(hours=24), NOW])
async def test_expired_token(mock_uow, chat_sync, settings, session, user, expires_at):
    """Matching token is rejected once expiry is not strictly in the future"""
    mock_uow.users.get_by_id.return_value = with_pending_token(user, expires_at=expires_at)
    service = build_service(mock_uow, chat_sync, settings)

    with pytest.raises(InvalidTokenError):
        await service.change_password(SAMPLE_TOKEN, "newpassword", session)

    chat_sync.set_password.assert_not_called()
    mock_uow.users.update.assert_not_called()


@pytest.mark.asyncio
async def test_no_pending_token(mock_uow, chat_sync, settings, session, user):
    mock_uow.users.get_by_id.return_value = user
    service = build_service(mock_uow, chat_sync, settings)

    with pytest.raises(InvalidTokenError):
        await service.change_password(SAMPLE_TOKEN, "newpassword", session)


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "set_password",
    [AsyncMock(return_value=False), AsyncMock(side_effect=ConnectionError("refused"))],
)
async def test_chat_sync_failure_leaves_user_unchanged(chat_sync, settings, session, user, set_password):
    """Rejected or raising sync fails the change and keeps the old credential"""
    with_pending_token(user)
    uow = InMemoryUnitOfWork([user])
    chat_sync.set_password = set_password
    error_sink = MagicMock()
    service = build_service(uow, chat_sync, settings, error_sink=error_sink)

    with pytest.raises(ExternalSyncError) as exc_info:
        await service.change_password(SAMPLE_TOKEN, "fakepassword101", session)

    assert str(exc_info.value) == "Mattermost did not set password"
    assert user.password_hash == "old_hashed_password"
    assert user.pending_reset_token == SAMPLE_TOKEN
    assert user.reset_expires_at == NOW + timedelta(hours=24)
    assert uow.commits == 0
    error_sink.assert_not_called()


@pytest.mark.asyncio
async def test_store_failure_is_reported_and_reraised(mock_uow, chat_sync, settings, session):
    failure = RuntimeError("database is down")
    mock_uow.users.get_by_id.side_effect = failure
    error_sink = MagicMock()
    service = build_service(mock_uow, chat_sync, settings, error_sink=error_sink)

    with pytest.raises(UnexpectedError) as exc_info:
        await service.change_password(SAMPLE_TOKEN, "newpassword", session)

    assert exc_info.value.__cause__ is failure
    error_sink.assert_called_once_with(failure)


@pytest.mark.asyncio
async def test_password_over_bcrypt_limit_is_weak(mock_uow, chat_sync, settings, session, user):
    """Passwords bcrypt cannot hash are rejected before the chat account is touched"""
    mock_uow.users.get_by_id.return_value = with_pending_token(user)
    service = build_service(mock_uow, chat_sync, settings)

    with pytest.raises(WeakPasswordError):
        await service.change_password(SAMPLE_TOKEN, "x" * 100, session)

    chat_sync.set_password.assert_not_called()
    mock_uow.users.update.assert_not_called()
    mock_uow.commit.assert_not_called()


@pytest.mark.asyncio
async def test_store_failure_after_sync_is_reported(chat_sync, settings, session, user):
    """Update failing after a successful sync is unexpected and nothing is committed"""
    with_pending_token(user)
    uow = InMemoryUnitOfWork([user])
    failure = RuntimeError("disk I/O error")
    uow.users.update = AsyncMock(side_effect=failure)
    error_sink = MagicMock()
    service = build_service(uow, chat_sync, settings, error_sink=error_sink)

    with pytest.raises(UnexpectedError) as exc_info:
        await service.change_password(SAMPLE_TOKEN, "newpassword", session)

    assert exc_info.value.__cause__ is failure
    chat_sync.set_password.assert_called_once_with(user, "newpassword")
    error_sink.assert_called_once_with(failure)
    assert uow.commits == 0
    assert user.password_hash == "old_hashed_password"
