"""Connection parameters for opening or searching MultiversX sessions."""

from typing import Iterable, List, Optional

from .constants import WALLETCONNECT_MULTIVERSX_METHODS, WALLETCONNECT_MULTIVERSX_NAMESPACE
from .models import ConnectParams, RequiredNamespace


def _unique(values: Iterable[str]) -> List[str]:
    seen = set()
    ordered = []
    for value in values:
        if value not in seen:
            seen.add(value)
            ordered.append(value)
    return ordered


def get_connection_params(
    chain_id: str,
    methods: Optional[Iterable[str]] = None,
    events: Optional[Iterable[str]] = None,
    topic: Optional[str] = None,
    optional_methods: Optional[Iterable[str]] = None,
    include_default_methods: bool = True,
) -> ConnectParams:
    """Build the namespace descriptor for a chain.

    The same structure serves as the proposal sent when opening a session and
    as the filter used when looking for an existing one.

    Args:
        chain_id: MultiversX chain id (e.g. '1', 'D', 'T')
        methods: Extra required methods appended after the baseline set
        events: Events the session should carry
        topic: Existing pairing topic to reuse
        optional_methods: Extension methods requested as optional
        include_default_methods: Set False to suppress the baseline methods

    Returns:
        ConnectParams with a single required namespace and a single chain
    """
    baseline = WALLETCONNECT_MULTIVERSX_METHODS if include_default_methods else []
    chains = [f'{WALLETCONNECT_MULTIVERSX_NAMESPACE}:{chain_id}']

    required = RequiredNamespace(
        methods=_unique([*baseline, *(methods or [])]),
        chains=chains,
        events=_unique(events or []),
    )

    optional_namespaces = None
    optional = _unique(optional_methods or [])
    if optional:
        optional_namespaces = {
            WALLETCONNECT_MULTIVERSX_NAMESPACE: RequiredNamespace(methods=optional, chains=chains, events=[])
        }

    return ConnectParams(
        required_namespaces={WALLETCONNECT_MULTIVERSX_NAMESPACE: required},
        optional_namespaces=optional_namespaces,
        pairing_topic=topic,
    )
