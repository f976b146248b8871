"""Structural interfaces for the relay client, host callbacks and signable objects.

The provider never imports a concrete relay client or transaction model; any
object satisfying these protocols can be plugged in.
"""

from typing import Any, Awaitable, Callable, Dict, List, Optional, Protocol, Sequence, Union, runtime_checkable

from .address import UserAddress
from .primitives import Address, Signature

EventHandler = Callable[[Dict[str, Any]], Union[Awaitable[None], None]]


@runtime_checkable
class SessionStore(Protocol):
    """Ordered store of sessions known to the relay client."""

    @property
    def keys(self) -> Sequence[str]:
        """Session topics in insertion order."""

    def get(self, key: str) -> Any:
        """Return the session record stored under key."""

    def get_all(self) -> List[Any]:
        """Return every stored session in insertion order."""


@runtime_checkable
class PairingStore(Protocol):
    """Store of pairings known to the relay client."""

    def get_all(self, active: Optional[bool] = None) -> List[Any]:
        """Return pairings, optionally filtered by their active flag."""

    def expire(self, topic: str) -> None:
        """Mark a pairing for expiry and cleanup."""


@runtime_checkable
class SignClient(Protocol):
    """Relay/session client performing network I/O and session encryption."""

    session: SessionStore
    pairing: PairingStore

    async def connect(self, params: Dict[str, Any]) -> Any:
        """Propose a session; returns an object with ``uri`` and ``approval``."""

    async def request(self, params: Dict[str, Any]) -> Any:
        """Send a correlated request ``{chainId, topic, request: {method, params}}``."""

    async def disconnect(self, params: Dict[str, Any]) -> None:
        """Disconnect ``{topic, reason}``."""

    async def emit(self, params: Dict[str, Any]) -> None:
        """Emit ``{topic, event, chainId}`` to the wallet."""

    async def ping(self, params: Dict[str, Any]) -> None:
        """Ping ``{topic}``."""

    def on(self, event: str, handler: EventHandler) -> None:
        """Subscribe handler to a relay event."""


ClientFactory = Callable[..., Awaitable[SignClient]]


@runtime_checkable
class ClientCallbacks(Protocol):
    """Notifications the host application receives from the provider.

    Implementations may use plain functions or coroutine functions.
    """

    def on_client_login(self) -> Any: ...

    def on_client_logout(self) -> Any: ...

    def on_client_event(self, event: Any) -> Any: ...


@runtime_checkable
class SignableMessage(Protocol):
    """A message that can be sent for signing and accept the result."""

    message: Union[bytes, str]

    def apply_signature(self, signature: Signature) -> None: ...


@runtime_checkable
class SignableTransaction(Protocol):
    """A transaction that serializes to a plain object and accepts a signature."""

    chain_id: str

    def to_plain_object(self, sender: Address) -> Dict[str, Any]: ...

    def apply_signature(self, signature: Signature, signed_by: UserAddress) -> None: ...
