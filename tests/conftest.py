# tests/conftest.py
"""
Shared pytest configuration and fixtures for the provider test suite.
"""

import logging
from unittest.mock import AsyncMock

import pytest

from mvx_wc import WalletConnectV2Provider
from tests.fixtures.mock_clients import CHAIN_ID, MockSignClient, RecordingCallbacks, make_session

logging.basicConfig(level=logging.INFO)


@pytest.fixture
def mock_client():
    """Relay client double with empty stores"""
    return MockSignClient()


@pytest.fixture
def client_factory(mock_client):
    """Client factory spy resolving to mock_client"""
    return AsyncMock(return_value=mock_client)


@pytest.fixture
def callbacks():
    """Host callbacks recording notifications"""
    return RecordingCallbacks()


@pytest.fixture
def provider(callbacks, client_factory):
    """Provider bound to the devnet chain, not yet initialized"""
    return WalletConnectV2Provider(
        callbacks,
        CHAIN_ID,
        relay_url='wss://relay.example.org',
        project_id='test-project',
        options={'metadata': {'name': 'test dapp'}},
        client_factory=client_factory,
    )


@pytest.fixture
def session_factory():
    """Factory for sessions granting the baseline methods"""
    return make_session
