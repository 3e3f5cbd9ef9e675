from unittest.mock import MagicMock

import pytest

from weblattice.auth import SessionStore, SessionTokenAuth
from weblattice.client import WebLatticeClient
from weblattice.config import (
    EncryptionSettings,
    Environment,
    MetricsSettings,
    NetworkConfig,
)
from weblattice.models import MetricRecord

BASE_URL = "https://api.example.com"
SECRET = "s3cret-passphrase"


@pytest.fixture
def metric_records() -> list[MetricRecord]:
    """Collects every metric record emitted by the client under test."""
    return []


@pytest.fixture
def redirect() -> MagicMock:
    return MagicMock()


@pytest.fixture
def session_store() -> SessionStore:
    return SessionStore()


@pytest.fixture
def network_config() -> NetworkConfig:
    """DEV configuration with metrics on and console logging off."""
    return NetworkConfig(
        base_url=BASE_URL,
        environment=Environment.DEV,
        metrics=MetricsSettings(enabled=True, log_to_console=False),
    )


@pytest.fixture
def prod_config() -> NetworkConfig:
    """PROD configuration with encryption enabled."""
    return NetworkConfig(
        base_url=BASE_URL,
        environment=Environment.PROD,
        encryption=EncryptionSettings(enabled=True, secret_key=SECRET),
        metrics=MetricsSettings(enabled=True, log_to_console=False),
    )


def make_client(config, session_store, redirect, metric_records) -> WebLatticeClient:
    return WebLatticeClient(
        config,
        SessionTokenAuth(session_store),
        redirect=redirect,
        metrics_sinks=[metric_records.append],
    )


@pytest.fixture
def client(network_config, session_store, redirect, metric_records) -> WebLatticeClient:
    return make_client(network_config, session_store, redirect, metric_records)


@pytest.fixture
def prod_client(prod_config, session_store, redirect, metric_records) -> WebLatticeClient:
    return make_client(prod_config, session_store, redirect, metric_records)
