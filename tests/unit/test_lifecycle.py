"""Unit tests for init, connect, login and logout."""

import asyncio
from unittest.mock import AsyncMock

import pytest

from mvx_wc import WalletConnectV2Provider
from mvx_wc.constants import USER_DISCONNECTED_REASON
from mvx_wc.errors import (
    NotInitializedError,
    UnableToConnectError,
    UnableToConnectExistingError,
    UnableToInitError,
    UnableToLoginError,
    UnableToSignLoginTokenError,
)
from mvx_wc.state import ConnectionState
from tests.fixtures.mock_clients import ALICE, BOB, CHAIN_ID, PAIRING_URI, make_session


@pytest.mark.unit
class TestInit:
    """Test client acquisition and persisted-state recovery."""

    @pytest.mark.asyncio
    async def test_init(self, provider, client_factory, mock_client):
        """Test init acquires a client with the configured relay settings."""
        assert await provider.init() is True

        client_factory.assert_awaited_once_with(
            relay_url='wss://relay.example.org', project_id='test-project', metadata={'name': 'test dapp'}
        )
        assert provider.client is mock_client
        assert provider.is_initialized() is True
        assert provider.is_connected() is False
        assert provider.state.phase is ConnectionState.IDLE

    @pytest.mark.asyncio
    async def test_init_is_idempotent(self, provider, client_factory):
        await provider.init()
        await provider.init()

        assert client_factory.await_count == 1

    @pytest.mark.asyncio
    async def test_concurrent_init_acquires_one_client(self, provider, client_factory, mock_client):
        """Test overlapping init calls share a single client acquisition."""

        async def slow_factory(**kwargs):
            await asyncio.sleep(0.01)
            return mock_client

        client_factory.side_effect = slow_factory

        results = await asyncio.gather(provider.init(), provider.init(), provider.init())

        assert results == [True, True, True]
        assert client_factory.await_count == 1
        assert len(mock_client.handlers['session_delete']) == 1

    @pytest.mark.asyncio
    async def test_init_failure(self, provider, client_factory, callbacks):
        """Test a failing factory leaves the provider uninitialized."""
        client_factory.side_effect = ConnectionError('relay unreachable')

        with pytest.raises(UnableToInitError) as exc_info:
            await provider.init()

        assert isinstance(exc_info.value.__cause__, ConnectionError)
        assert provider.is_initialized() is False
        assert provider.state.phase is ConnectionState.UNINITIALIZED
        assert provider.state.is_initializing is False

    @pytest.mark.asyncio
    async def test_init_without_factory(self, callbacks):
        provider = WalletConnectV2Provider(callbacks, CHAIN_ID)

        with pytest.raises(UnableToInitError):
            await provider.init()

    @pytest.mark.asyncio
    async def test_init_recovers_persisted_session(self, provider, mock_client, callbacks):
        """Test a session left in the store by a previous run is restored."""
        mock_client.session.set(make_session('t1'))
        mock_client.pairing.set('p1')

        await provider.init()

        assert provider.get_address() == ALICE
        assert provider.is_connected() is True
        assert provider.state.topic == 't1'
        assert provider.state.phase is ConnectionState.AUTHENTICATED
        assert [p.topic for p in provider.get_pairings()] == ['p1']
        assert callbacks.logins == 1

    @pytest.mark.asyncio
    async def test_init_ignores_invalid_persisted_address(self, provider, mock_client, callbacks):
        """Test a stored session bound to a malformed address is dropped."""
        mock_client.session.set(make_session('t1', address='erd1invalid'))

        await provider.init()

        assert provider.get_address() == ''
        assert provider.is_connected() is False
        assert mock_client.disconnected == ['t1']
        assert callbacks.logins == 0

    def test_operations_require_init(self, provider):
        """Test reads fail before init."""
        with pytest.raises(NotInitializedError):
            provider.get_address()
        with pytest.raises(NotInitializedError):
            provider.get_signature()
        with pytest.raises(NotInitializedError):
            provider.get_pairings()

    @pytest.mark.asyncio
    async def test_logout_requires_init(self, provider):
        with pytest.raises(NotInitializedError):
            await provider.logout()


@pytest.mark.unit
class TestConnect:
    """Test session proposals."""

    @pytest.mark.asyncio
    async def test_connect(self, provider, mock_client):
        """Test connect proposes the chain's namespace and returns the pairing URI."""
        await provider.init()

        result = await provider.connect(events=['accountsChanged'], methods=['mvx_custom'])

        assert result.uri == PAIRING_URI
        assert callable(result.approval)
        proposal = mock_client.connect_calls[0]
        assert proposal['requiredNamespaces']['mvx']['chains'] == ['mvx:D']
        assert 'pairingTopic' not in proposal
        assert provider.events == ['accountsChanged']
        assert provider.methods[-1] == 'mvx_custom'
        assert provider.state.phase is ConnectionState.AWAITING_APPROVAL

    @pytest.mark.asyncio
    async def test_connect_initializes_lazily(self, provider, client_factory):
        await provider.connect()

        assert provider.is_initialized() is True
        assert client_factory.await_count == 1

    @pytest.mark.asyncio
    async def test_connect_with_failed_init(self, provider, client_factory):
        client_factory.side_effect = ConnectionError('relay unreachable')

        with pytest.raises(NotInitializedError):
            await provider.connect()

    @pytest.mark.asyncio
    async def test_connect_existing_pairing(self, provider, mock_client):
        await provider.init()

        await provider.connect(topic='p1', optional_methods=['mvx_cancelAction'])

        proposal = mock_client.connect_calls[0]
        assert proposal['pairingTopic'] == 'p1'
        assert proposal['optionalNamespaces']['mvx']['methods'] == ['mvx_cancelAction']

    @pytest.mark.asyncio
    async def test_connect_failure(self, provider, mock_client):
        await provider.init()
        mock_client.connect_error = RuntimeError('proposal rejected')

        with pytest.raises(UnableToConnectError) as exc_info:
            await provider.connect()

        assert not isinstance(exc_info.value, UnableToConnectExistingError)
        assert mock_client.disconnected == []
        assert provider.state.phase is ConnectionState.IDLE

    @pytest.mark.asyncio
    async def test_connect_existing_pairing_failure(self, provider, mock_client):
        """Test a failed proposal over a pairing disconnects that pairing."""
        await provider.init()
        mock_client.connect_error = RuntimeError('pairing expired')

        with pytest.raises(UnableToConnectExistingError):
            await provider.connect(topic='p1')

        assert mock_client.disconnected == ['p1']


@pytest.mark.unit
class TestLogin:
    """Test session approval and identity binding."""

    @pytest.mark.asyncio
    async def test_login(self, provider, mock_client, callbacks):
        """Test a fresh pairing ends authenticated with one login notification."""
        await provider.init()
        result = await provider.connect()
        mock_client.pending_session = make_session('t1')

        address = await provider.login(approval=result.approval)

        assert address == ALICE
        assert provider.get_address() == ALICE
        assert provider.get_signature() == ''
        assert provider.is_connected() is True
        assert provider.state.phase is ConnectionState.AUTHENTICATED
        assert provider.state.is_initializing is False
        assert callbacks.logins == 1

    @pytest.mark.asyncio
    async def test_login_with_token(self, provider, mock_client):
        """Test the login token signature is requested and stored."""
        await provider.init()
        result = await provider.connect()
        mock_client.pending_session = make_session('t1')
        mock_client.responses.append({'signature': 'c0ffee'})

        await provider.login(approval=result.approval, token='login-token')

        request = mock_client.requests[0]
        assert request['chainId'] == 'mvx:D'
        assert request['topic'] == 't1'
        assert request['request'] == {
            'method': 'mvx_signLoginToken',
            'params': {'token': 'login-token', 'address': ALICE},
        }
        assert provider.get_signature() == 'c0ffee'

    @pytest.mark.asyncio
    async def test_login_token_not_signed(self, provider, mock_client, callbacks):
        """Test a wallet declining the token leaves no identity bound."""
        await provider.init()
        result = await provider.connect()
        mock_client.pending_session = make_session('t1')
        mock_client.responses.append({})

        with pytest.raises(UnableToSignLoginTokenError):
            await provider.login(approval=result.approval, token='login-token')

        assert provider.get_address() == ''
        assert provider.get_signature() == ''
        assert provider.is_connected() is False
        assert callbacks.logins == 0

    @pytest.mark.asyncio
    async def test_login_approval_failure(self, provider, mock_client):
        await provider.init()
        approval = AsyncMock(side_effect=TimeoutError('proposal expired'))

        with pytest.raises(UnableToLoginError) as exc_info:
            await provider.login(approval=approval)

        assert type(exc_info.value) is UnableToLoginError
        assert provider.state.phase is ConnectionState.IDLE
        assert provider.state.is_initializing is False

    @pytest.mark.asyncio
    async def test_login_without_approval(self, provider):
        await provider.init()

        assert await provider.login() == ''

    @pytest.mark.asyncio
    async def test_login_connects_when_uninitialized(self, provider, client_factory):
        assert await provider.login() == ''

        assert provider.is_initialized() is True
        assert client_factory.await_count == 1

    @pytest.mark.asyncio
    async def test_login_replaces_current_session(self, provider, mock_client, callbacks):
        """Test logging in again disconnects the session held before."""
        mock_client.session.set(make_session('t1'))
        await provider.init()
        mock_client.pending_session = make_session('t2', address=BOB)

        address = await provider.login(approval=(await provider.connect()).approval)

        assert address == BOB
        assert mock_client.disconnected == ['t1']
        assert provider.state.topic == 't2'
        assert callbacks.logins == 2

    @pytest.mark.asyncio
    async def test_login_rejects_invalid_address(self, provider, mock_client, callbacks):
        await provider.init()
        mock_client.pending_session = make_session('t1', address='erd1invalid')

        address = await provider.login(approval=(await provider.connect()).approval)

        assert address == ''
        assert provider.is_connected() is False
        assert mock_client.disconnected == ['t1']
        assert callbacks.logins == 0


@pytest.mark.unit
class TestLogout:
    """Test disconnecting sessions."""

    @pytest.mark.asyncio
    async def test_logout(self, provider, mock_client):
        """Test logout disconnects the current session and clears identity."""
        mock_client.session.set(make_session('t1'))
        await provider.init()

        assert await provider.logout() is True

        assert mock_client.disconnected == ['t1']
        assert provider.get_address() == ''
        assert provider.get_signature() == ''
        assert provider.is_connected() is False
        assert provider.state.phase is ConnectionState.IDLE
        assert provider.state.processing_topic is None

    @pytest.mark.asyncio
    async def test_logout_sends_user_disconnected_reason(self, provider, mock_client):
        mock_client.session.set(make_session('t1'))
        await provider.init()
        mock_client.disconnect = AsyncMock()

        await provider.logout()

        mock_client.disconnect.assert_awaited_once_with({'topic': 't1', 'reason': USER_DISCONNECTED_REASON})

    @pytest.mark.asyncio
    async def test_logout_swallows_disconnect_failure(self, provider, mock_client):
        """Test local identity is cleared even if the relay disconnect fails."""
        mock_client.session.set(make_session('t1'))
        await provider.init()
        mock_client.disconnect_error = ConnectionError('socket closed')

        assert await provider.logout() is True

        assert provider.get_address() == ''
        assert provider.is_connected() is False

    @pytest.mark.asyncio
    async def test_logout_without_session(self, provider, mock_client):
        await provider.init()

        assert await provider.logout() is True
        assert mock_client.disconnected == []

    @pytest.mark.asyncio
    async def test_logout_expires_inactive_pairings(self, provider, mock_client):
        mock_client.session.set(make_session('t1'))
        mock_client.pairing.set('p1')
        mock_client.pairing.set('p2', active=False)
        await provider.init()

        await provider.logout()

        assert mock_client.pairing.expired == ['p2']
        assert [p.topic for p in provider.get_pairings()] == ['p1']

    @pytest.mark.asyncio
    async def test_logout_explicit_topic(self, provider, mock_client):
        """Test disconnecting a pairing topic drops it from the tracked pairings."""
        mock_client.pairing.set('p1')
        mock_client.pairing.set('p2')
        await provider.init()

        await provider.logout(topic='p1')

        assert mock_client.disconnected == ['p1']
        assert [p.topic for p in provider.get_pairings()] == ['p2']

    @pytest.mark.asyncio
    async def test_logout_same_topic_in_progress(self, provider, mock_client):
        """Test a logout for a topic already being disconnected does nothing."""
        await provider.init()
        provider.state.processing_topic = 't1'

        assert await provider.logout(topic='t1') is True

        assert mock_client.disconnected == []

    @pytest.mark.asyncio
    async def test_concurrent_logouts_disconnect_once(self, provider, mock_client):
        mock_client.session.set(make_session('t1'))
        await provider.init()
        disconnect = mock_client.disconnect

        async def slow_disconnect(params):
            await asyncio.sleep(0.01)
            await disconnect(params)

        mock_client.disconnect = slow_disconnect

        results = await asyncio.gather(provider.logout(), provider.logout(topic='t1'))

        assert results == [True, True]
        assert mock_client.disconnected == ['t1']


@pytest.mark.unit
class TestOverlappingOperations:
    """Test guard flags and identity across overlapping and repeated calls."""

    @pytest.mark.asyncio
    async def test_initializing_flag_cleared_after_overlapping_init_and_login(self, provider, mock_client, callbacks):
        """Test the initializing flag drops once both calls finish and pairing loss still logs out."""
        await asyncio.gather(provider.init(), provider.login())

        assert provider.state.is_initializing is False

        mock_client.pending_session = make_session('t1')
        await provider.login(approval=(await provider.connect()).approval)
        assert provider.get_address() == ALICE

        await mock_client.fire('pairing_expire', {'topic': 'p-gone'})

        assert provider.get_address() == ''
        assert callbacks.logouts == 1

    @pytest.mark.asyncio
    async def test_initializing_flag_cleared_after_failed_login(self, provider):
        await provider.init()

        with pytest.raises(UnableToLoginError):
            await provider.login(approval=AsyncMock(side_effect=RuntimeError('wallet closed')))

        assert provider.state.is_initializing is False

    @pytest.mark.asyncio
    async def test_successive_logins_bind_latest_session(self, provider, mock_client, callbacks):
        """Test each login with a fresh approval replaces the previous session."""
        await provider.init()

        mock_client.pending_session = make_session('t1')
        first = await provider.login(approval=(await provider.connect()).approval)
        mock_client.pending_session = make_session('t2', address=BOB)
        second = await provider.login(approval=(await provider.connect()).approval)

        assert (first, second) == (ALICE, BOB)
        assert provider.state.topic == 't2'
        assert mock_client.disconnected == ['t1']
        assert mock_client.session.keys == ['t2']
        assert callbacks.logins == 2

    @pytest.mark.asyncio
    async def test_init_skips_malformed_persisted_session(self, provider, mock_client, callbacks):
        """Test a corrupt stored record does not prevent recovering a valid one."""
        mock_client.session.set(make_session('t1'))
        mock_client.session.set({'topic': 't2', 'namespaces': 'corrupt'})

        assert await provider.init() is True

        assert provider.get_address() == ALICE
        assert provider.state.topic == 't1'
