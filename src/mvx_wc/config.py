"""Provider configuration."""

import os
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field, field_validator

from .constants import DEFAULT_RELAY_URL

CHAIN_ID_ENV = 'MVX_WC_CHAIN_ID'
RELAY_URL_ENV = 'MVX_WC_RELAY_URL'
PROJECT_ID_ENV = 'MVX_WC_PROJECT_ID'


class ProviderConfig(BaseModel):
    """Settings needed to reach the relay and bind a chain."""

    chain_id: str = Field(..., description="MultiversX chain id ('1' mainnet, 'D' devnet, 'T' testnet)")
    relay_url: str = Field(DEFAULT_RELAY_URL, description='WalletConnect relay URL')
    project_id: str = Field('', description='WalletConnect project id')
    options: Dict[str, Any] = Field(default_factory=dict, description='Passthrough options for the relay client')

    @field_validator('chain_id')
    @classmethod
    def _chain_id_not_empty(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError('chain_id must not be empty')
        return value

    @classmethod
    def from_env(
        cls,
        chain_id: Optional[str] = None,
        relay_url: Optional[str] = None,
        project_id: Optional[str] = None,
        options: Optional[Dict[str, Any]] = None,
    ) -> 'ProviderConfig':
        """Resolve settings with priority: explicit argument > environment variable > default.

        Environment variables: MVX_WC_CHAIN_ID, MVX_WC_RELAY_URL, MVX_WC_PROJECT_ID.

        Raises:
            pydantic.ValidationError: If no chain id can be resolved
        """
        return cls(
            chain_id=chain_id or os.getenv(CHAIN_ID_ENV, ''),
            relay_url=relay_url or os.getenv(RELAY_URL_ENV) or DEFAULT_RELAY_URL,
            project_id=project_id or os.getenv(PROJECT_ID_ENV, ''),
            options=options or {},
        )
