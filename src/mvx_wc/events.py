"""Routing of relay client events into the connection lifecycle."""

import logging
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Dict, Optional

from .constants import SessionEventName
from .interfaces import SignClient

if TYPE_CHECKING:
    from .lifecycle import ConnectionLifecycle

logger = logging.getLogger(__name__)

Payload = Dict[str, Any]


class EventRouter:
    """Subscribes once to a relay client and dispatches its session/pairing events.

    Handlers run outside any caller's awaited operation, so failures are
    logged and never propagated back to the relay client.
    """

    def __init__(self, lifecycle: 'ConnectionLifecycle'):
        self._lifecycle = lifecycle
        self._client: Optional[SignClient] = None

    def subscribe(self, client: SignClient) -> None:
        if client is self._client:
            return

        handlers = {
            SessionEventName.SESSION_UPDATE: self.on_session_update,
            SessionEventName.SESSION_EVENT: self.on_session_event,
            SessionEventName.SESSION_DELETE: self.on_session_end,
            SessionEventName.SESSION_EXPIRE: self.on_session_end,
            SessionEventName.PAIRING_DELETE: self.on_pairing_end,
            SessionEventName.PAIRING_EXPIRE: self.on_pairing_end,
        }
        for name, handler in handlers.items():
            client.on(name.value, self._guarded(name.value, handler))

        self._client = client
        logger.debug(f'Subscribed to {len(handlers)} relay events')

    def _guarded(self, name: str, handler: Callable[[Payload], Awaitable[None]]) -> Callable[[Payload], Awaitable[None]]:
        async def _dispatch(payload: Optional[Payload] = None) -> None:
            try:
                await handler(payload or {})
            except Exception:
                logger.exception(f'Error handling {name} event')

        return _dispatch

    async def on_session_update(self, payload: Payload) -> None:
        params = payload.get('params') or {}
        await self._lifecycle.handle_session_update(payload.get('topic'), params.get('namespaces') or {})

    async def on_session_event(self, payload: Payload) -> None:
        await self._lifecycle.handle_session_event(payload.get('topic'), payload.get('params') or {})

    async def on_session_end(self, payload: Payload) -> None:
        await self._lifecycle.handle_session_end(payload.get('topic'))

    async def on_pairing_end(self, payload: Payload) -> None:
        await self._lifecycle.handle_topic_update(payload.get('topic'))
