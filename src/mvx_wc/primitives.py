"""Minimal signature and address values exchanged with signable objects."""

import binascii


class Signature:
    """Raw signature bytes as returned by the wallet."""

    def __init__(self, buffer: bytes):
        self._buffer = bytes(buffer)

    @classmethod
    def from_hex(cls, value: str) -> 'Signature':
        """Decode a hex signature.

        Raises:
            ValueError: If value is not valid hex
        """
        try:
            return cls(bytes.fromhex(value))
        except (TypeError, ValueError, binascii.Error) as e:
            raise ValueError(f'Invalid hex signature: {value!r}') from e

    def hex(self) -> str:
        return self._buffer.hex()

    def __bytes__(self) -> bytes:
        return self._buffer

    def __eq__(self, other) -> bool:
        return isinstance(other, Signature) and other._buffer == self._buffer

    def __hash__(self) -> int:
        return hash(self._buffer)

    def __repr__(self) -> str:
        return f'Signature({self.hex()!r})'


class Address:
    """Unvalidated bech32 sender address handed to transaction serializers."""

    def __init__(self, value: str):
        self._value = value

    def bech32(self) -> str:
        return self._value

    def __str__(self) -> str:
        return self._value

    def __repr__(self) -> str:
        return f'Address({self._value!r})'
