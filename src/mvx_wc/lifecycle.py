"""Connection lifecycle: init, connect, login, logout and persisted-state recovery.

The lifecycle owns the provider state. Every write to the bound address,
signature and session goes through this module, either from a caller-facing
operation or from a relay event dispatched by the event router.
"""

import asyncio
import inspect
import logging
from contextlib import contextmanager
from typing import Any, Awaitable, Callable, Dict, Iterable, List, Optional

from .address import address_is_valid
from .constants import USER_DISCONNECTED_REASON, WALLETCONNECT_MULTIVERSX_NAMESPACE, Operation
from .errors import (
    NotInitializedError,
    SessionNotConnectedError,
    UnableToConnectError,
    UnableToConnectExistingError,
    UnableToInitError,
    UnableToLoginError,
    UnableToSignLoginTokenError,
)
from .events import EventRouter
from .interfaces import ClientCallbacks, ClientFactory, SignClient
from .models import ConnectResult, Pairing, Session, SignatureResponse, parse_response
from .params import get_connection_params
from .registry import SessionRegistry, get_address_from_session, to_session
from .state import ConnectionState, ProviderState

logger = logging.getLogger(__name__)

Approval = Callable[[], Awaitable[Any]]


class ConnectionLifecycle:
    """State machine keeping local identity consistent with the relay.

    Args:
        callbacks: Host application notifications (login, logout, session events)
        chain_id: MultiversX chain id the connection is bound to
        relay_url: WalletConnect relay URL
        project_id: WalletConnect project id
        options: Extra keyword arguments passed through to the client factory
        client_factory: Coroutine function returning an initialized relay client
    """

    def __init__(
        self,
        callbacks: ClientCallbacks,
        chain_id: str,
        relay_url: str,
        project_id: str,
        options: Optional[Dict[str, Any]] = None,
        client_factory: Optional[ClientFactory] = None,
    ):
        self.chain_id = chain_id
        self.relay_url = relay_url
        self.project_id = project_id
        self.options = dict(options or {})
        self.client: Optional[SignClient] = None
        self.registry: Optional[SessionRegistry] = None
        self.state = ProviderState()

        self._callbacks = callbacks
        self._client_factory = client_factory
        self._router = EventRouter(self)
        self._init_lock = asyncio.Lock()
        self._login_pending = False
        self._initializing_depth = 0

    @property
    def request_chain_id(self) -> str:
        """Chain id in the '<namespace>:<chainId>' form used on every request."""
        return f'{WALLETCONNECT_MULTIVERSX_NAMESPACE}:{self.chain_id}'

    def is_initialized(self) -> bool:
        return self.client is not None

    def is_connected(self) -> bool:
        return self.is_initialized() and self.state.session is not None

    def require_client(self, operation: str) -> SignClient:
        if self.client is None:
            logger.error(f'{operation}: WalletConnect is not initialized, call init() first')
            raise NotInitializedError()
        return self.client

    async def init(self) -> bool:
        """Acquire the relay client, wire events and recover persisted state.

        Concurrent calls share a single client acquisition.

        Returns:
            True once the provider holds a client

        Raises:
            UnableToInitError: If the client cannot be acquired or wired
        """
        if self.is_initialized() and not self.state.is_initializing:
            return True

        async with self._init_lock:
            if self.is_initialized():
                return True

            with self._initializing():
                self.reset()
                self._set_phase(ConnectionState.INITIALIZING)
                try:
                    if self._client_factory is None:
                        raise ValueError('No relay client factory configured')
                    client = await self._client_factory(
                        relay_url=self.relay_url,
                        project_id=self.project_id,
                        **self.options,
                    )
                    self.client = client
                    self.registry = SessionRegistry(client, self.chain_id)
                    self._router.subscribe(client)
                    await self._check_persisted_state()
                except Exception as e:
                    logger.error(f'init: WalletConnect is unable to init: {e}')
                    self.client = None
                    self.registry = None
                    self.reset()
                    raise UnableToInitError() from e

                if self.state.phase is ConnectionState.INITIALIZING:
                    self._set_phase(ConnectionState.IDLE)

        return self.is_initialized()

    async def connect(
        self,
        topic: Optional[str] = None,
        events: Optional[Iterable[str]] = None,
        methods: Optional[Iterable[str]] = None,
        optional_methods: Optional[Iterable[str]] = None,
    ) -> ConnectResult:
        """Propose a new session, optionally over an existing pairing.

        Args:
            topic: Existing pairing topic to reuse
            events: Events requested for the session
            methods: Methods requested on top of the baseline set
            optional_methods: Extension methods requested as optional

        Returns:
            ConnectResult with the pairing URI and the approval awaitable

        Raises:
            NotInitializedError: If no client could be acquired
            UnableToConnectExistingError: If reusing the pairing topic failed
            UnableToConnectError: If the proposal failed
        """
        if self.client is None:
            try:
                await self.init()
            except UnableToInitError as e:
                logger.error('connect: WalletConnect is not initialized')
                raise NotInitializedError() from e

        client = self.require_client('connect')
        params = get_connection_params(
            self.chain_id, methods=methods, events=events, topic=topic, optional_methods=optional_methods
        )
        if self.state.session is None:
            self._set_phase(ConnectionState.CONNECTING)

        try:
            result = ConnectResult.from_response(await client.connect(params.to_wire()))
        except Exception as e:
            self.reset()
            if topic:
                await self.logout(topic=topic)
                logger.error(f'connect: WalletConnect is unable to connect to existing pairing {topic}: {e}')
                raise UnableToConnectExistingError() from e
            logger.error(f'connect: WalletConnect is unable to connect: {e}')
            raise UnableToConnectError() from e

        namespace = params.required_namespaces[WALLETCONNECT_MULTIVERSX_NAMESPACE]
        self.state.events = list(namespace.events)
        self.state.methods = list(namespace.methods)
        if self.state.session is None:
            self._set_phase(ConnectionState.AWAITING_APPROVAL)

        return result

    async def login(self, approval: Optional[Approval] = None, token: Optional[str] = None) -> str:
        """Wait for wallet approval and bind the approved session.

        Any session already current is logged out first. When a login token is
        given the wallet must sign it before the session is accepted.

        Args:
            approval: Awaitable factory from connect(); resolves to the approved session
            token: Optional login token the wallet signs to prove address ownership

        Returns:
            The bound address, or '' when no address could be bound

        Raises:
            NotInitializedError: If no client could be acquired
            UnableToSignLoginTokenError: If the wallet returned no token signature
            UnableToLoginError: If approval or binding failed
        """
        with self._initializing():
            self._login_pending = True
            try:
                if self.client is None:
                    await self.connect()
                self.require_client('login')

                if self.state.session is not None:
                    await self.logout()

                if approval is None:
                    return ''

                return await self._approve(approval, token)
            finally:
                self._login_pending = False

    async def logout(self, topic: Optional[str] = None) -> bool:
        """Disconnect a session and clear local identity.

        Transport failures are logged and swallowed: local state is cleared
        whether or not the relay acknowledged the disconnect.

        Args:
            topic: Topic to disconnect; defaults to the current session, in
                which case local identity is reset and pairings are swept

        Returns:
            Always True

        Raises:
            NotInitializedError: If there is no client
        """
        client = self.require_client('logout')
        explicit = topic is not None
        target = topic if explicit else self._tracked_topic()

        if target is not None and target == self.state.processing_topic:
            logger.debug(f'logout: already disconnecting {target}')
            return True

        self.state.processing_topic = target
        if not explicit:
            self._set_phase(ConnectionState.LOGGING_OUT)
        try:
            if target:
                try:
                    await client.disconnect({'topic': target, 'reason': USER_DISCONNECTED_REASON})
                except Exception as e:
                    logger.warning(f'logout: WalletConnect was unable to disconnect {target}: {e}')

            if explicit:
                self._refresh_pairings(exclude=target)
            else:
                self.reset()
                self._sweep_pairings(exclude=target)
        finally:
            self.state.processing_topic = None

        return True

    def reset(self) -> None:
        """Clear address, signature and session. Pairings and the client are kept."""
        self.state.clear_identity()
        self._set_phase(ConnectionState.IDLE if self.client is not None else ConnectionState.UNINITIALIZED)

    def get_address(self) -> str:
        self.require_client('get_address')
        return self.state.address

    def get_signature(self) -> str:
        self.require_client('get_signature')
        return self.state.signature

    def get_pairings(self) -> List[Pairing]:
        self.require_client('get_pairings')
        if self.state.pairings is not None:
            return list(self.state.pairings)
        return self.registry.active_pairings()

    async def notify(self, name: str, *args: Any) -> None:
        """Invoke a host callback, awaiting it when it is a coroutine function."""
        callback = getattr(self._callbacks, name, None)
        if callback is None:
            return
        result = callback(*args)
        if inspect.isawaitable(result):
            await result

    # Event handlers, dispatched by EventRouter

    async def handle_session_update(self, topic: str, namespaces: Dict[str, Any]) -> None:
        if self.state.session is None or topic != self.state.topic:
            logger.debug(f'Ignoring session_update for stale topic {topic}')
            return

        data = self.state.session.model_dump(by_alias=True)
        data['namespaces'] = namespaces
        await self._on_session_connected(to_session(data))

    async def handle_session_event(self, topic: str, params: Dict[str, Any]) -> None:
        if self.state.session is None or topic != self.state.topic:
            logger.debug(f'Ignoring session_event for stale topic {topic}')
            return

        event = params.get('event') or {}
        if event.get('name'):
            await self.notify('on_client_event', event.get('data'))

    async def handle_session_end(self, topic: str) -> None:
        if self.state.session is None or topic != self.state.topic:
            logger.debug(f'Ignoring session end for stale topic {topic}')
            return

        logger.info(f'Session {topic} ended remotely')
        self.reset()
        self._sweep_pairings(exclude=topic)
        await self.notify('on_client_logout')

    async def handle_topic_update(self, topic: str) -> None:
        """React to a pairing going away underneath the current session."""
        previous = self.state.pairings or []
        most_recent = previous[-1].topic if previous else None
        self._refresh_pairings()

        if not self.state.address or self.state.is_initializing:
            return

        session = self.state.session
        related = {most_recent}
        if session is not None:
            related.update({session.topic, session.pairing_topic})

        if topic in related or not self.state.pairings:
            logger.info(f'Pairing {topic} removed, logging out')
            self.reset()
            await self.notify('on_client_logout')

    # Internals

    @contextmanager
    def _initializing(self):
        """Hold is_initializing while any init() or login() is in flight.

        Overlapping calls share the flag; it drops back to False once the
        last of them exits, whatever the exit path.
        """
        self._initializing_depth += 1
        self.state.is_initializing = True
        try:
            yield
        finally:
            self._initializing_depth = max(self._initializing_depth - 1, 0)
            self.state.is_initializing = self._initializing_depth > 0

    def _set_phase(self, phase: ConnectionState) -> None:
        if self.state.phase is not phase:
            logger.debug(f'Connection state {self.state.phase.value} -> {phase.value}')
            self.state.phase = phase

    def _tracked_topic(self) -> Optional[str]:
        if self.state.session is not None:
            return self.state.session.topic
        try:
            return self.registry.current_topic()
        except SessionNotConnectedError:
            return None

    def _refresh_pairings(self, exclude: Optional[str] = None) -> None:
        self.state.pairings = [pairing for pairing in self.registry.active_pairings() if pairing.topic != exclude]

    def _sweep_pairings(self, exclude: Optional[str] = None) -> None:
        """Expire inactive pairings and refresh the active list. Errors are logged."""
        try:
            for pairing in self.registry.inactive_pairings():
                self.client.pairing.expire(pairing.topic)
            self._refresh_pairings(exclude=exclude)
        except Exception as e:
            logger.warning(f'Unable to clean up pairings: {e}')

    async def _check_persisted_state(self) -> Optional[Session]:
        self._refresh_pairings()

        if self.state.session is not None or self.state.address or self._login_pending:
            return None

        try:
            session = self.registry.current_session()
        except SessionNotConnectedError:
            return None

        logger.info(f'Restoring persisted session {session.topic}')
        await self._on_session_connected(session)
        return session

    async def _approve(self, approval: Approval, token: Optional[str]) -> str:
        self._set_phase(ConnectionState.AWAITING_APPROVAL)
        try:
            session = to_session(await approval())
            signature = ''
            if token:
                signature = await self._sign_login_token(session, token)
            return await self._on_session_connected(session, signature)
        except UnableToLoginError:
            self.reset()
            raise
        except Exception as e:
            logger.error(f'login: WalletConnect is unable to login: {e}')
            self.reset()
            raise UnableToLoginError() from e

    async def _sign_login_token(self, session: Session, token: str) -> str:
        address = get_address_from_session(session)
        response = await self.client.request(
            {
                'chainId': self.request_chain_id,
                'topic': session.topic,
                'request': {
                    'method': Operation.SIGN_LOGIN_TOKEN.value,
                    'params': {'token': token, 'address': address},
                },
            }
        )

        parsed = parse_response(SignatureResponse, response)
        if parsed is None or not parsed.signature:
            logger.error('login: WalletConnect could not sign login token')
            raise UnableToSignLoginTokenError()

        return parsed.signature

    async def _on_session_connected(self, session: Session, signature: str = '') -> str:
        self.state.session = session
        address = get_address_from_session(session)
        if address:
            await self._login_account(address, signature)
        return self.state.address

    async def _login_account(self, address: str, signature: str = '') -> None:
        if not address_is_valid(address):
            logger.error(f'WalletConnect invalid address {address}')
            await self._reject_session()
            return

        changed = address != self.state.address
        self.state.address = address
        if signature:
            self.state.signature = signature
        self._set_phase(ConnectionState.AUTHENTICATED)
        if changed:
            await self.notify('on_client_login')

    async def _reject_session(self) -> None:
        topic = self.state.topic
        had_identity = bool(self.state.address)
        self.reset()

        if topic:
            try:
                await self.client.disconnect({'topic': topic, 'reason': USER_DISCONNECTED_REASON})
            except Exception as e:
                logger.warning(f'Unable to disconnect rejected session {topic}: {e}')
            self._refresh_pairings()

        if had_identity:
            await self.notify('on_client_logout')
