"""Session and pairing lookups over the relay client's stores."""

import logging
from typing import Any, Callable, List, Optional

from pydantic import ValidationError

from .constants import WALLETCONNECT_MULTIVERSX_NAMESPACE
from .errors import NotInitializedError, SessionNotConnectedError
from .interfaces import SignClient
from .models import ConnectParams, Pairing, Session
from .params import get_connection_params

logger = logging.getLogger(__name__)


def to_session(record: Any) -> Session:
    """Normalize a stored session record into a Session."""
    if isinstance(record, Session):
        return record
    return Session.model_validate(record)


def to_pairing(record: Any) -> Pairing:
    """Normalize a stored pairing record into a Pairing."""
    if isinstance(record, Pairing):
        return record
    return Pairing.model_validate(record)


def session_matches(session: Session, params: ConnectParams) -> bool:
    """Check that a session grants at least the capabilities in params."""
    for name, required in params.required_namespaces.items():
        granted = session.namespaces.get(name)
        if granted is None:
            return False
        if not set(required.chains) <= granted.chain_ids():
            return False
        if not set(required.methods) <= set(granted.methods):
            return False
        if not set(required.events) <= set(granted.events):
            return False
    return True


def get_address_from_session(session: Session, namespace: str = WALLETCONNECT_MULTIVERSX_NAMESPACE) -> str:
    """Extract the account address from a session.

    Accounts are formatted as '<namespace>:<chainId>:<address>'; only the
    first account is used when the wallet provides several.

    Returns:
        The address, or '' when the namespace carries no usable account
    """
    selected = session.namespaces.get(namespace)
    if selected is None or not selected.accounts:
        return ''

    parts = selected.accounts[0].split(':')
    if len(parts) < 3:
        logger.warning(f'Malformed session account {selected.accounts[0]!r} on topic {session.topic}')
        return ''

    return parts[2]


class SessionRegistry:
    """Answers which session is current and which pairings are alive.

    Ordering relies on the session store's insertion order: the most recently
    registered session wins, without any timestamp comparison.

    Args:
        client: Relay client whose stores are queried
        chain_id: Chain id used to build the session search filter
    """

    def __init__(self, client: Optional[SignClient], chain_id: str):
        self._client = client
        self.chain_id = chain_id

    def _require_client(self) -> SignClient:
        if self._client is None:
            raise NotInitializedError()
        return self._client


    def _validated(self, records: List[Any], parse: Callable[[Any], Any], kind: str) -> List[Any]:
        """Parse store records, skipping any that fail validation."""
        parsed = []
        for record in records:
            try:
                parsed.append(parse(record))
            except ValidationError as e:
                logger.warning(f'Skipping malformed stored {kind}: {e.error_count()} validation error(s)')
        return parsed

    def sessions(self) -> List[Session]:
        """All well-formed stored sessions in insertion order."""
        client = self._require_client()
        return self._validated(client.session.get_all(), to_session, 'session')

    def find(self, params: ConnectParams) -> List[Session]:
        """Stored sessions granting at least the capabilities in params."""
        return [session for session in self.sessions() if session_matches(session, params)]

    def current_session(self) -> Session:
        """Return the authoritative session for the configured chain.

        Prefers the last acknowledged session matching the chain's connection
        parameters, then falls back to the last well-formed stored session
        regardless of acknowledgment.

        Raises:
            NotInitializedError: If there is no relay client
            SessionNotConnectedError: If the session store holds no usable session
        """
        acknowledged = [session for session in self.find(get_connection_params(self.chain_id)) if session.acknowledged]
        if acknowledged:
            return acknowledged[-1]

        stored = self.sessions()
        if stored:
            return stored[-1]

        logger.error('current_session: Session is not connected')
        raise SessionNotConnectedError()

    def current_topic(self) -> str:
        """Topic of the current session.

        Raises:
            SessionNotConnectedError: If there is no session or it lacks a topic
        """
        session = self.current_session()
        if not session.topic:
            raise SessionNotConnectedError()
        return session.topic

    def active_pairings(self) -> List[Pairing]:
        """All pairings flagged active; an empty list is valid."""
        client = self._require_client()
        pairings = self._validated(client.pairing.get_all(active=True), to_pairing, 'pairing')
        return [pairing for pairing in pairings if pairing.active]

    def inactive_pairings(self) -> List[Pairing]:
        """Pairings no longer active, candidates for expiry."""
        client = self._require_client()
        pairings = self._validated(client.pairing.get_all(), to_pairing, 'pairing')
        return [pairing for pairing in pairings if not pairing.active]
