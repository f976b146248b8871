"""Bech32 account address validation."""

from bech32 import bech32_decode

from .constants import ADDRESS_HRP
from .errors import InvalidAddressError


class UserAddress:
    """A bech32 account address known to carry the expected prefix."""

    def __init__(self, value: str):
        self._value = value

    @classmethod
    def from_bech32(cls, value: str, hrp: str = ADDRESS_HRP) -> 'UserAddress':
        """Decode and validate a bech32 address.

        Args:
            value: Address string (e.g. 'erd1...')
            hrp: Expected human-readable prefix

        Returns:
            UserAddress wrapping the original string

        Raises:
            InvalidAddressError: If value does not decode or has another prefix
        """
        if not isinstance(value, str) or not value:
            raise InvalidAddressError(f'Bad address: {value!r}')

        decoded = bech32_decode(value)
        decoded_hrp, data = decoded[0], decoded[1]
        if decoded_hrp is None or data is None:
            raise InvalidAddressError(f'Bad address: {value}')

        if decoded_hrp != hrp:
            raise InvalidAddressError(f'Bad address: {value} (expected prefix {hrp!r}, got {decoded_hrp!r})')

        return cls(value)

    def bech32(self) -> str:
        return self._value

    def __str__(self) -> str:
        return self._value

    def __eq__(self, other) -> bool:
        return isinstance(other, UserAddress) and other._value == self._value

    def __hash__(self) -> int:
        return hash(self._value)

    def __repr__(self) -> str:
        return f'UserAddress({self._value!r})'


def address_is_valid(address: str, hrp: str = ADDRESS_HRP) -> bool:
    """Return True if address decodes as bech32 under the expected prefix. Never raises."""
    try:
        return bool(UserAddress.from_bech32(address, hrp))
    except InvalidAddressError:
        return False
