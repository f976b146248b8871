"""Data models for WalletConnect sessions, pairings and wallet responses.

Models mirror the records kept by the relay client so that sessions restored
from its stores can be validated the same way as freshly approved ones.
"""

from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, List, Mapping, Optional, Set

from pydantic import BaseModel, ConfigDict, Field, ValidationError


class SessionNamespace(BaseModel):
    """Capabilities granted by the wallet for one namespace."""

    accounts: List[str] = Field(default_factory=list, description='Accounts as <namespace>:<chainId>:<address>')
    methods: List[str] = Field(default_factory=list, description='Methods the wallet accepts')
    events: List[str] = Field(default_factory=list, description='Events the wallet may emit')
    chains: Optional[List[str]] = Field(None, description='Chains as <namespace>:<chainId>')

    def chain_ids(self) -> Set[str]:
        """Chains granted explicitly or implied by account prefixes."""
        granted = set(self.chains or [])
        for account in self.accounts:
            parts = account.split(':')
            if len(parts) >= 2:
                granted.add(f'{parts[0]}:{parts[1]}')
        return granted


class Session(BaseModel):
    """An authenticated channel to a single wallet."""

    model_config = ConfigDict(populate_by_name=True, extra='allow')

    topic: str = Field(..., description='Session topic')
    namespaces: Dict[str, SessionNamespace] = Field(default_factory=dict, description='Granted namespaces')
    acknowledged: bool = Field(False, description='Whether the relay acknowledged the settlement')
    pairing_topic: Optional[str] = Field(None, alias='pairingTopic', description='Topic of the underlying pairing')
    expiry: Optional[int] = Field(None, description='Expiry timestamp in seconds')


class Pairing(BaseModel):
    """A transport linkage between the application and a wallet."""

    model_config = ConfigDict(extra='allow')

    topic: str = Field(..., description='Pairing topic')
    active: bool = Field(False, description='Whether the wallet completed the pairing')
    expiry: Optional[int] = Field(None, description='Expiry timestamp in seconds')


class RequiredNamespace(BaseModel):
    """Capabilities requested for one namespace."""

    methods: List[str] = Field(default_factory=list)
    chains: List[str] = Field(default_factory=list)
    events: List[str] = Field(default_factory=list)


class ConnectParams(BaseModel):
    """Session proposal parameters, also used as a session search filter."""

    model_config = ConfigDict(populate_by_name=True)

    required_namespaces: Dict[str, RequiredNamespace] = Field(..., alias='requiredNamespaces')
    optional_namespaces: Optional[Dict[str, RequiredNamespace]] = Field(None, alias='optionalNamespaces')
    pairing_topic: Optional[str] = Field(None, alias='pairingTopic')

    def to_wire(self) -> Dict[str, Any]:
        """Render with camelCase keys, dropping unset entries."""
        return self.model_dump(by_alias=True, exclude_none=True)


@dataclass(frozen=True)
class ConnectResult:
    """Outcome of a session proposal.

    Attributes:
        uri: Pairing URI for out-of-band display (QR code); absent when an existing pairing is reused
        approval: Awaitable factory resolving once the wallet approves the session
    """

    approval: Callable[[], Awaitable[Any]]
    uri: Optional[str] = None

    @classmethod
    def from_response(cls, response: Any) -> 'ConnectResult':
        if isinstance(response, ConnectResult):
            return response
        if isinstance(response, Mapping):
            return cls(approval=response['approval'], uri=response.get('uri'))
        return cls(approval=response.approval, uri=getattr(response, 'uri', None))


class SignatureResponse(BaseModel):
    """Wallet response carrying a single signature."""

    model_config = ConfigDict(extra='allow')

    signature: Optional[str] = Field(None, description='Hex encoded signature')


class SignaturesResponse(BaseModel):
    """Wallet response for a batch of transactions."""

    model_config = ConfigDict(extra='allow')

    signatures: Optional[List[SignatureResponse]] = Field(None, description='One signature per transaction, by index')


class CustomRequestResponse(BaseModel):
    """Wallet response for an extension request."""

    model_config = ConfigDict(extra='allow')

    response: Any = Field(None, description='Opaque response body')


def parse_response(model, payload: Any):
    """Validate a wallet response, returning None when it does not fit the model."""
    if isinstance(payload, model):
        return payload
    try:
        return model.model_validate(payload)
    except ValidationError:
        return None
