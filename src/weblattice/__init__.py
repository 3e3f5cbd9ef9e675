"""WebLattice: asynchronous HTTP client with payload encryption, metrics and GraphQL.

Every call goes through a request/response pipeline that injects tracing and
credential headers, encrypts bodies in production, records a metric and
returns a uniform `ApiResponse` envelope instead of raising.
"""

__version__ = "0.1.0"

from . import auth, client, config, crypto, exceptions, graphql, log_config, metrics, models
from .auth import NoAuth, SessionStore, SessionTokenAuth, StaticTokenAuth
from .client import WebLatticeClient, build_url, init_client
from .config import Environment, NetworkConfig, get_settings
from .crypto import decrypt_payload, encrypt_payload, generate_key_pair
from .graphql import gql
from .metrics import record_metrics
from .models import ApiResponse, MetricRecord

__all__ = [
    "__version__",
    "auth",
    "client",
    "config",
    "crypto",
    "exceptions",
    "graphql",
    "log_config",
    "metrics",
    "models",
    "ApiResponse",
    "Environment",
    "MetricRecord",
    "NetworkConfig",
    "NoAuth",
    "SessionStore",
    "SessionTokenAuth",
    "StaticTokenAuth",
    "WebLatticeClient",
    "build_url",
    "decrypt_payload",
    "encrypt_payload",
    "generate_key_pair",
    "get_settings",
    "gql",
    "init_client",
    "record_metrics",
]
