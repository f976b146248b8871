"""Wire constants shared with MultiversX wallets over WalletConnect v2."""

from enum import Enum

# WalletConnect namespace for MultiversX
WALLETCONNECT_MULTIVERSX_NAMESPACE = 'mvx'

# Public relay used when no relay URL is configured
DEFAULT_RELAY_URL = 'wss://relay.walletconnect.com'

# Human-readable prefix of MultiversX bech32 account addresses
ADDRESS_HRP = 'erd'


class Operation(str, Enum):
    """Methods every session must support."""

    SIGN_TRANSACTION = 'mvx_signTransaction'
    SIGN_TRANSACTIONS = 'mvx_signTransactions'
    SIGN_MESSAGE = 'mvx_signMessage'
    SIGN_LOGIN_TOKEN = 'mvx_signLoginToken'


class OptionalOperation(str, Enum):
    """Extension methods a wallet may support."""

    SIGN_NATIVE_AUTH_TOKEN = 'mvx_signNativeAuthToken'
    CANCEL_ACTION = 'mvx_cancelAction'


class SessionEventName(str, Enum):
    """Relay client events the provider subscribes to."""

    SESSION_UPDATE = 'session_update'
    SESSION_EVENT = 'session_event'
    SESSION_DELETE = 'session_delete'
    SESSION_EXPIRE = 'session_expire'
    PAIRING_DELETE = 'pairing_delete'
    PAIRING_EXPIRE = 'pairing_expire'


# Baseline methods in declaration order
WALLETCONNECT_MULTIVERSX_METHODS = [operation.value for operation in Operation]

# Reason attached to every disconnect (WalletConnect USER_DISCONNECTED)
USER_DISCONNECTED_REASON = {'code': 6000, 'message': 'User disconnected.'}
