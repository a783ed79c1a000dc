from unittest.mock import AsyncMock

import pytest

from bitfinex_sdk.contracts.ports.transport import BitfinexClientConfig, TransportPort
from bitfinex_sdk.toolkit.client import BitfinexClient


@pytest.fixture
def transport() -> AsyncMock:
    mock = AsyncMock(spec=TransportPort)
    mock.request.return_value = []
    return mock


@pytest.fixture
def client(transport: AsyncMock) -> BitfinexClient:
    return BitfinexClient(BitfinexClientConfig(api_key="key", api_secret="secret"), transport=transport)
