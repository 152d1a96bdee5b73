"""
Tests for the session store
"""

import pytest
from lynk.models.session import AuthState
from lynk.utils.error_handler import APIError, AuthError, ValidationError
from tests.fakes import make_session


@pytest.mark.asyncio
async def test_resolve_without_cached_session(session_store, mock_auth_client):
    state = await session_store.resolve()

    assert state == AuthState.UNAUTHENTICATED
    assert session_store.session is None
    mock_auth_client.get_user.assert_not_called()


@pytest.mark.asyncio
async def test_resolve_restores_cached_session(session_store, session_cache_service, mock_auth_client):
    session_cache_service.save(make_session())

    state = await session_store.resolve()

    assert state == AuthState.AUTHENTICATED
    assert session_store.user.id == "user-1"
    mock_auth_client.get_user.assert_called_once_with("token-user-1")
    mock_auth_client.refresh_session.assert_not_called()


@pytest.mark.asyncio
async def test_resolve_refreshes_expired_session(session_store, session_cache_service, mock_auth_client):
    session_cache_service.save(make_session(expires_in=-10))

    state = await session_store.resolve()

    assert state == AuthState.AUTHENTICATED
    mock_auth_client.refresh_session.assert_called_once_with("refresh-user-1")


@pytest.mark.asyncio
async def test_resolve_error_means_signed_out(session_store, session_cache_service, mock_auth_client):
    session_cache_service.save(make_session())
    mock_auth_client.get_user.side_effect = APIError("invalid JWT", error_code="401")

    state = await session_store.resolve()

    assert state == AuthState.UNAUTHENTICATED
    assert session_cache_service.load() is None


@pytest.mark.asyncio
async def test_sign_in_notifies_subscribers(session_store):
    seen = []
    session_store.subscribe(lambda state, session: seen.append((state, session.user.id)))

    async def async_listener(state, session):
        seen.append(("async", state))

    session_store.subscribe(async_listener)

    await session_store.sign_in("user-1@example.com", "secret")

    assert seen == [
        (AuthState.AUTHENTICATED, "user-1"),
        ("async", AuthState.AUTHENTICATED),
    ]


@pytest.mark.asyncio
async def test_sign_in_rejected(session_store, mock_auth_client):
    mock_auth_client.sign_in_with_password.side_effect = AuthError("Invalid login credentials", "400")

    with pytest.raises(AuthError, match="Invalid login credentials"):
        await session_store.sign_in("user-1@example.com", "wrong")

    assert session_store.state == AuthState.UNRESOLVED


@pytest.mark.asyncio
async def test_sign_in_requires_both_fields(session_store, mock_auth_client):
    with pytest.raises(ValidationError):
        await session_store.sign_in("", "secret")
    mock_auth_client.sign_in_with_password.assert_not_called()


@pytest.mark.asyncio
async def test_sign_up_pending_confirmation(session_store):
    assert await session_store.sign_up("new@example.com", "secret") is None
    assert session_store.state == AuthState.UNRESOLVED


@pytest.mark.asyncio
async def test_sign_up_with_auto_confirm(session_store, mock_auth_client):
    mock_auth_client.sign_up.return_value = make_session("user-2")

    session = await session_store.sign_up("user-2@example.com", "secret")

    assert session.user.id == "user-2"
    assert session_store.is_authenticated


@pytest.mark.asyncio
async def test_sign_out_clears_session_even_if_remote_fails(session_store, session_cache_service, mock_auth_client):
    await session_store.sign_in("user-1@example.com", "secret")
    mock_auth_client.sign_out.side_effect = APIError("network down")

    await session_store.sign_out()

    assert session_store.state == AuthState.UNAUTHENTICATED
    assert session_store.session is None
    assert session_cache_service.load() is None


@pytest.mark.asyncio
async def test_unsubscribe_stops_notifications(session_store):
    seen = []
    subscription = session_store.subscribe(lambda state, session: seen.append(state))

    subscription.unsubscribe()
    subscription.unsubscribe()
    await session_store.sign_in("user-1@example.com", "secret")

    assert seen == []
    assert not subscription.active


@pytest.mark.asyncio
async def test_failing_listener_does_not_block_others(session_store):
    seen = []

    def broken(state, session):
        raise RuntimeError("boom")

    session_store.subscribe(broken)
    session_store.subscribe(lambda state, session: seen.append(state))

    await session_store.sign_in("user-1@example.com", "secret")

    assert seen == [AuthState.AUTHENTICATED]
