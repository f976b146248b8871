"""Exception hierarchy for WalletConnect v2 provider errors.

Every public provider operation either returns a well-formed result or raises
exactly one of the exceptions below. Each exception carries a machine-readable
error code alongside its human-readable message.
"""

from typing import Optional


class WalletConnectV2ProviderError(Exception):
    """Base exception for provider errors.

    Attributes:
        error_code: Machine-readable error code (SCREAMING_SNAKE_CASE)
        message: Human-readable error description
    """

    error_code = 'UNKNOWN'
    default_message = 'WalletConnect provider error'

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(f'[{self.error_code}] {self.message}')


# Lifecycle errors
class NotInitializedError(WalletConnectV2ProviderError):
    """Operation requires init() to have completed."""

    error_code = 'NOT_INITIALIZED'
    default_message = 'WalletConnect is not initialized, call init() first'


class UnableToInitError(WalletConnectV2ProviderError):
    """The relay client could not be acquired."""

    error_code = 'UNABLE_TO_INIT'
    default_message = 'WalletConnect is unable to init'


class UnableToConnectError(WalletConnectV2ProviderError):
    """The relay refused a new session proposal."""

    error_code = 'UNABLE_TO_CONNECT'
    default_message = 'WalletConnect is unable to connect'


class UnableToConnectExistingError(UnableToConnectError):
    """A session proposal over an existing pairing failed."""

    error_code = 'UNABLE_TO_CONNECT_EXISTING'
    default_message = 'WalletConnect is unable to connect to existing pairing'


class UnableToLoginError(WalletConnectV2ProviderError):
    """Session approval or identity binding failed."""

    error_code = 'UNABLE_TO_LOGIN'
    default_message = 'WalletConnect is unable to login'


class UnableToSignLoginTokenError(UnableToLoginError):
    """The wallet returned no signature for the login token."""

    error_code = 'UNABLE_TO_SIGN_LOGIN_TOKEN'
    default_message = 'WalletConnect could not sign login token'


class SessionNotConnectedError(WalletConnectV2ProviderError):
    """No current session exists."""

    error_code = 'SESSION_NOT_CONNECTED'
    default_message = 'Session is not connected'


class InvalidAddressError(WalletConnectV2ProviderError):
    """Address is not a valid bech32 account address."""

    error_code = 'INVALID_ADDRESS'
    default_message = 'Invalid address'


# Signing errors
class RequestDifferentChainError(WalletConnectV2ProviderError):
    """Transaction chain id differs from the connection chain id."""

    error_code = 'REQUEST_DIFFERENT_CHAIN'
    default_message = 'Transaction Chain Id different than Connection Chain Id'


class InvalidMessageResponseError(WalletConnectV2ProviderError):
    """Wallet returned no signature for a message."""

    error_code = 'INVALID_MESSAGE_RESPONSE'
    default_message = 'WalletConnect could not sign the message'


class InvalidMessageSignatureError(WalletConnectV2ProviderError):
    """Returned signature could not be applied to the message."""

    error_code = 'INVALID_MESSAGE_SIGNATURE'
    default_message = 'Invalid signature'


class InvalidTransactionResponseError(WalletConnectV2ProviderError):
    """Wallet returned a missing, malformed or mis-sized signature set."""

    error_code = 'INVALID_TRANSACTION_RESPONSE'
    default_message = 'WalletConnect could not sign the transactions. Invalid signatures.'


class TransactionError(WalletConnectV2ProviderError):
    """The signing request itself failed."""

    error_code = 'TRANSACTION_ERROR'
    default_message = 'Transaction error'


class InvalidCustomRequestResponseError(WalletConnectV2ProviderError):
    """Wallet returned no body for a custom request."""

    error_code = 'INVALID_CUSTOM_REQUEST_RESPONSE'
    default_message = 'WalletConnect could not send the custom request'
