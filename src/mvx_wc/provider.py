"""WalletConnect v2 provider for MultiversX.

Delegates address discovery, message signing and transaction signing to a
remote wallet over a WalletConnect v2 relay client.
"""

from typing import Any, Dict, Iterable, List, Optional, Sequence, TypeVar

from .config import ProviderConfig
from .constants import DEFAULT_RELAY_URL
from .interfaces import ClientCallbacks, ClientFactory, SignableMessage, SignableTransaction
from .lifecycle import Approval, ConnectionLifecycle
from .models import ConnectResult, Pairing
from .signing import SigningGateway
from .state import ProviderState

M = TypeVar('M', bound=SignableMessage)
T = TypeVar('T', bound=SignableTransaction)


class WalletConnectV2Provider:
    """Session management and request signing against a remote wallet.

    Args:
        callbacks: Object exposing on_client_login(), on_client_logout() and on_client_event(data)
        chain_id: MultiversX chain id ('1', 'D', 'T', ...)
        relay_url: WalletConnect relay URL
        project_id: WalletConnect project id
        options: Passthrough options for the relay client factory
        client_factory: Coroutine function ``(relay_url=..., project_id=..., **options)``
            returning an initialized relay client

    Example:
        >>> provider = WalletConnectV2Provider(callbacks, 'D', project_id='...', client_factory=SignClient.init)
        >>> await provider.init()
        >>> result = await provider.connect()
        >>> show_qr(result.uri)
        >>> address = await provider.login(approval=result.approval)
        >>> signed = await provider.sign_transaction(transaction)
    """

    def __init__(
        self,
        callbacks: ClientCallbacks,
        chain_id: str,
        relay_url: str = DEFAULT_RELAY_URL,
        project_id: str = '',
        options: Optional[Dict[str, Any]] = None,
        client_factory: Optional[ClientFactory] = None,
    ):
        self._lifecycle = ConnectionLifecycle(
            callbacks,
            chain_id,
            relay_url,
            project_id,
            options=options,
            client_factory=client_factory,
        )
        self._signing = SigningGateway(self._lifecycle)

    @classmethod
    def from_config(
        cls, config: ProviderConfig, callbacks: ClientCallbacks, client_factory: ClientFactory
    ) -> 'WalletConnectV2Provider':
        return cls(
            callbacks,
            config.chain_id,
            relay_url=config.relay_url,
            project_id=config.project_id,
            options=config.options,
            client_factory=client_factory,
        )

    @property
    def chain_id(self) -> str:
        return self._lifecycle.chain_id

    @property
    def state(self) -> ProviderState:
        """Current lifecycle state (read-only by convention)."""
        return self._lifecycle.state

    @property
    def client(self):
        return self._lifecycle.client

    @property
    def events(self) -> List[str]:
        """Events negotiated by the last connect()."""
        return list(self._lifecycle.state.events)

    @property
    def methods(self) -> List[str]:
        """Methods negotiated by the last connect()."""
        return list(self._lifecycle.state.methods)

    async def init(self) -> bool:
        return await self._lifecycle.init()

    def is_initialized(self) -> bool:
        """True once init() acquired a relay client."""
        return self._lifecycle.is_initialized()

    def is_connected(self) -> bool:
        """True when initialized and a session is held."""
        return self._lifecycle.is_connected()

    async def connect(
        self,
        topic: Optional[str] = None,
        events: Optional[Iterable[str]] = None,
        methods: Optional[Iterable[str]] = None,
        optional_methods: Optional[Iterable[str]] = None,
    ) -> ConnectResult:
        return await self._lifecycle.connect(
            topic=topic, events=events, methods=methods, optional_methods=optional_methods
        )

    async def login(self, approval: Optional[Approval] = None, token: Optional[str] = None) -> str:
        return await self._lifecycle.login(approval=approval, token=token)

    async def logout(self, topic: Optional[str] = None) -> bool:
        return await self._lifecycle.logout(topic=topic)

    def get_address(self) -> str:
        return self._lifecycle.get_address()

    def get_signature(self) -> str:
        return self._lifecycle.get_signature()

    def get_pairings(self) -> List[Pairing]:
        return self._lifecycle.get_pairings()

    async def sign_message(self, message: M) -> M:
        return await self._signing.sign_message(message)

    async def sign_transaction(self, transaction: T) -> T:
        return await self._signing.sign_transaction(transaction)

    async def sign_transactions(self, transactions: Sequence[T]) -> List[T]:
        return await self._signing.sign_transactions(transactions)

    async def send_custom_request(self, request: Optional[Dict[str, Any]] = None) -> Any:
        return await self._signing.send_custom_request(request)

    async def ping(self) -> bool:
        return await self._signing.ping()
