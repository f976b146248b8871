"""Connection phases and the single mutable state holder of a provider."""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from .models import Pairing, Session


class ConnectionState(Enum):
    """Phases of the connection lifecycle."""

    UNINITIALIZED = 'uninitialized'
    INITIALIZING = 'initializing'
    IDLE = 'idle'
    CONNECTING = 'connecting'
    AWAITING_APPROVAL = 'awaiting_approval'
    AUTHENTICATED = 'authenticated'
    LOGGING_OUT = 'logging_out'


@dataclass
class ProviderState:
    """Identity, session and guard flags owned by the connection lifecycle.

    Only the lifecycle (directly or through its event handlers) writes these
    fields; the signing gateway reads them.
    """

    phase: ConnectionState = ConnectionState.UNINITIALIZED
    address: str = ''
    signature: str = ''
    session: Optional[Session] = None
    pairings: Optional[List[Pairing]] = None
    is_initializing: bool = False
    processing_topic: Optional[str] = None
    events: List[str] = field(default_factory=list)
    methods: List[str] = field(default_factory=list)

    @property
    def topic(self) -> Optional[str]:
        return self.session.topic if self.session is not None else None

    def clear_identity(self) -> None:
        self.address = ''
        self.signature = ''
        self.session = None
