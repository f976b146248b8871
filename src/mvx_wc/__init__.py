"""MultiversX WalletConnect v2 provider - session lifecycle and request signing over a relay client."""

from mvx_wc.address import UserAddress, address_is_valid
from mvx_wc.config import ProviderConfig
from mvx_wc.constants import WALLETCONNECT_MULTIVERSX_NAMESPACE, Operation, OptionalOperation
from mvx_wc.errors import (
    InvalidAddressError,
    InvalidCustomRequestResponseError,
    InvalidMessageResponseError,
    InvalidMessageSignatureError,
    InvalidTransactionResponseError,
    NotInitializedError,
    RequestDifferentChainError,
    SessionNotConnectedError,
    TransactionError,
    UnableToConnectError,
    UnableToConnectExistingError,
    UnableToInitError,
    UnableToLoginError,
    UnableToSignLoginTokenError,
    WalletConnectV2ProviderError,
)
from mvx_wc.models import ConnectResult, Pairing, Session
from mvx_wc.params import get_connection_params
from mvx_wc.primitives import Address, Signature
from mvx_wc.provider import WalletConnectV2Provider
from mvx_wc.state import ConnectionState

__all__ = [
    'Address',
    'ConnectResult',
    'ConnectionState',
    'InvalidAddressError',
    'InvalidCustomRequestResponseError',
    'InvalidMessageResponseError',
    'InvalidMessageSignatureError',
    'InvalidTransactionResponseError',
    'NotInitializedError',
    'Operation',
    'OptionalOperation',
    'Pairing',
    'ProviderConfig',
    'RequestDifferentChainError',
    'Session',
    'SessionNotConnectedError',
    'Signature',
    'TransactionError',
    'UnableToConnectError',
    'UnableToConnectExistingError',
    'UnableToInitError',
    'UnableToLoginError',
    'UnableToSignLoginTokenError',
    'UserAddress',
    'WALLETCONNECT_MULTIVERSX_NAMESPACE',
    'WalletConnectV2Provider',
    'WalletConnectV2ProviderError',
    'address_is_valid',
    'get_connection_params',
]
