"""Constants used throughout the weblattice library.

Wire header names, default client settings and navigation targets.
"""

WEBLATTICE_VERSION: str = "1.0.0"
DEFAULT_PLATFORM: str = "web"
DEFAULT_TIMEOUT: float = 10.0  # seconds
DEFAULT_CONTENT_TYPE: str = "application/json"

# --- Wire headers --- #
HEADER_ENCRYPTION = "x-encryption"
HEADER_ENCRYPTION_KEY = "x-encryption-key"
HEADER_ENCRYPTION_IV = "x-encryption-iv"
HEADER_PUBLIC_KEY_ID = "x-public-key-id"
HEADER_CORRELATION_ID = "x-correlation-id"
HEADER_CLIENT_VERSION = "x-client-version"
HEADER_APP_PLATFORM = "x-app-platform"
HEADER_AUTHORIZATION = "Authorization"
HEADER_CONTENT_TYPE = "Content-Type"

# --- Key management --- #
REMOTE_KEY_ID = "remote-key-id"
LOCAL_KEY_ID = "local-key-id"

# --- Session storage --- #
ACCESS_TOKEN_KEY = "accessToken"

# --- Navigation targets --- #
UNAUTHORIZED_REDIRECT_PATH = "/enter-email"
SERVER_ERROR_REDIRECT_PATH = "/generic-error"

METRICS_LOG_PREFIX = "[WebLattice Metrics]"
