"""Navigation side effects triggered by failed calls.

A 401 sends the user back to the e-mail entry page and any 5xx to the generic
error page. What "navigation" means is up to the application; the default
`log_redirect` only logs it.
"""

from .constants import SERVER_ERROR_REDIRECT_PATH, UNAUTHORIZED_REDIRECT_PATH
from .log_config import logger
from .types import Redirector


def log_redirect(path: str) -> None:
    """Default redirector: records the navigation request in the log."""
    logger.warning(f"Redirect requested to {path}")


def redirect_path_for_status(status_code: int | None) -> str | None:
    """Return the navigation target for a failed response status, if any."""
    if status_code is None:
        return None
    if status_code == 401:
        return UNAUTHORIZED_REDIRECT_PATH
    if 500 <= status_code < 600:
        return SERVER_ERROR_REDIRECT_PATH
    return None


def redirect_for_status(status_code: int | None, redirect: Redirector) -> str | None:
    """Invoke ``redirect`` for statuses that require navigation.

    Fire-and-forget: errors raised by the redirector are logged, never raised.

    Returns:
        str | None: The path navigated to, if any.
    """
    path = redirect_path_for_status(status_code)
    if path is None:
        return None
    try:
        redirect(path)
    except Exception as e:
        logger.error(f"Redirect to {path} failed: {e}")
    return path
