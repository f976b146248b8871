"""Signing requests correlated with the current session."""

import copy
import logging
from typing import Any, Dict, List, Optional, Sequence, Tuple, TypeVar

from .address import UserAddress
from .constants import Operation
from .errors import (
    InvalidCustomRequestResponseError,
    InvalidMessageResponseError,
    InvalidMessageSignatureError,
    InvalidTransactionResponseError,
    RequestDifferentChainError,
    SessionNotConnectedError,
    TransactionError,
)
from .interfaces import SignableMessage, SignableTransaction, SignClient
from .lifecycle import ConnectionLifecycle
from .models import CustomRequestResponse, SignatureResponse, SignaturesResponse, parse_response
from .primitives import Address, Signature

logger = logging.getLogger(__name__)

M = TypeVar('M', bound=SignableMessage)
T = TypeVar('T', bound=SignableTransaction)


class SigningGateway:
    """Issues signing requests over the lifecycle's current session.

    Every operation requires an initialized client and a current session.
    A missing session also notifies the host of a logout, since the caller is
    relying on authentication state that no longer exists.
    """

    def __init__(self, lifecycle: ConnectionLifecycle):
        self._lifecycle = lifecycle

    async def _require_session(self, operation: str) -> Tuple[SignClient, str]:
        client = self._lifecycle.require_client(operation)
        session = self._lifecycle.state.session
        if session is None:
            logger.error(f'{operation}: Session is not connected')
            await self._lifecycle.notify('on_client_logout')
            raise SessionNotConnectedError()
        return client, session.topic

    async def _request(self, client: SignClient, topic: str, method: str, params: Dict[str, Any]) -> Any:
        return await client.request(
            {
                'chainId': self._lifecycle.request_chain_id,
                'topic': topic,
                'request': {'method': method, 'params': params},
            }
        )

    def _check_chain(self, operation: str, transaction: SignableTransaction) -> None:
        chain_id = str(transaction.chain_id)
        if chain_id != self._lifecycle.chain_id:
            logger.error(
                f'{operation}: Transaction Chain Id {chain_id} different than Connection Chain Id {self._lifecycle.chain_id}'
            )
            raise RequestDifferentChainError()

    async def sign_message(self, message: M) -> M:
        """Sign a message and apply the returned signature to it.

        Raises:
            InvalidMessageResponseError: If the wallet returned no signature
            InvalidMessageSignatureError: If the signature could not be applied
        """
        client, topic = await self._require_session('sign_message')
        address = self._lifecycle.state.address

        payload = message.message
        text = payload.decode('utf-8', errors='replace') if isinstance(payload, (bytes, bytearray)) else str(payload)
        response = parse_response(
            SignatureResponse,
            await self._request(client, topic, Operation.SIGN_MESSAGE.value, {'address': address, 'message': text}),
        )

        if response is None or not response.signature:
            logger.error('sign_message: WalletConnect could not sign the message')
            raise InvalidMessageResponseError()

        try:
            message.apply_signature(Signature.from_hex(response.signature))
        except Exception as e:
            logger.error(f'sign_message: Invalid signature: {e}')
            raise InvalidMessageSignatureError() from e

        return message

    async def sign_transaction(self, transaction: T) -> T:
        """Sign a single transaction.

        The chain id is checked before anything is sent to the wallet.

        Raises:
            RequestDifferentChainError: If the transaction targets another chain
            InvalidTransactionResponseError: If the wallet returned no usable signature
            TransactionError: If the request itself failed
        """
        client, topic = await self._require_session('sign_transaction')
        self._check_chain('sign_transaction', transaction)

        address = self._lifecycle.state.address
        plain = transaction.to_plain_object(Address(address))
        try:
            raw = await self._request(client, topic, Operation.SIGN_TRANSACTION.value, {'transaction': plain})
        except Exception as e:
            logger.error(f'sign_transaction: {e}')
            raise TransactionError(str(e) or None) from e

        response = parse_response(SignatureResponse, raw)
        if response is None or not response.signature:
            logger.error('sign_transaction: WalletConnect could not sign the transaction')
            raise InvalidTransactionResponseError('WalletConnect could not sign the transaction')

        signature = self._decode_signature(response.signature)
        self._apply_signatures('sign_transaction', [(transaction, signature)], UserAddress(address))
        return transaction

    async def sign_transactions(self, transactions: Sequence[T]) -> List[T]:
        """Sign a batch of transactions in a single request.

        Every transaction's chain id is checked before the request is sent, and
        no transaction is mutated unless the whole batch is signed.

        Raises:
            RequestDifferentChainError: If any transaction targets another chain
            InvalidTransactionResponseError: If signatures are missing, malformed or mis-sized
            TransactionError: If the request itself failed
        """
        client, topic = await self._require_session('sign_transactions')
        for transaction in transactions:
            self._check_chain('sign_transactions', transaction)

        address = self._lifecycle.state.address
        sender = Address(address)
        plain = [transaction.to_plain_object(sender) for transaction in transactions]
        try:
            raw = await self._request(client, topic, Operation.SIGN_TRANSACTIONS.value, {'transactions': plain})
        except Exception as e:
            logger.error(f'sign_transactions: {e}')
            raise TransactionError(str(e) or None) from e

        response = parse_response(SignaturesResponse, raw)
        if response is None or not isinstance(response.signatures, list):
            logger.error('sign_transactions: WalletConnect could not sign the transactions')
            raise InvalidTransactionResponseError('WalletConnect could not sign the transactions')

        if len(response.signatures) != len(transactions):
            logger.error(
                f'sign_transactions: expected {len(transactions)} signatures, got {len(response.signatures)}'
            )
            raise InvalidTransactionResponseError()

        signatures = []
        for item in response.signatures:
            if not item.signature:
                raise InvalidTransactionResponseError()
            signatures.append(self._decode_signature(item.signature))

        self._apply_signatures('sign_transactions', list(zip(transactions, signatures)), UserAddress(address))
        return list(transactions)

    async def send_custom_request(self, request: Optional[Dict[str, Any]] = None) -> Any:
        """Send an extension request ``{method, params}`` and return the wallet's response body.

        Raises:
            InvalidCustomRequestResponseError: If the wallet returned no response body
        """
        client, topic = await self._require_session('send_custom_request')
        if not request:
            return None

        raw = await client.request({'chainId': self._lifecycle.request_chain_id, 'topic': topic, 'request': request})
        response = parse_response(CustomRequestResponse, raw)
        if response is None or response.response is None:
            logger.error('send_custom_request: WalletConnect could not send the custom request')
            raise InvalidCustomRequestResponseError()

        return response.response

    async def ping(self) -> bool:
        """Ping the current session; transport failures yield False."""
        client, topic = await self._require_session('ping')
        try:
            await client.ping({'topic': topic})
            return True
        except Exception as e:
            logger.warning(f'ping: Ping failed: {e}')
            return False

    @staticmethod
    def _apply_signatures(
        operation: str, signed: List[Tuple[SignableTransaction, Signature]], signed_by: UserAddress
    ) -> None:
        """Apply signatures only once every transaction has accepted its own on a copy.

        Raises:
            InvalidTransactionResponseError: If any transaction rejects its signature
        """
        try:
            for transaction, signature in signed:
                copy.deepcopy(transaction).apply_signature(signature, signed_by)
            for transaction, signature in signed:
                transaction.apply_signature(signature, signed_by)
        except Exception as e:
            logger.error(f'{operation}: Unable to apply signature: {e}')
            raise InvalidTransactionResponseError('Invalid signature') from e

    @staticmethod
    def _decode_signature(value: str) -> Signature:
        try:
            return Signature.from_hex(value)
        except ValueError as e:
            logger.error(f'Invalid signature {value!r}')
            raise InvalidTransactionResponseError('Invalid signature') from e
