"""Admin credential check."""

import hmac

from keygate.common.config import KeygateSettings
from keygate.common.exceptions import AuthError

API_KEY_HEADER = "X-Api-Key"


def require_admin_key(provided: str | None, settings: KeygateSettings) -> None:
    """Raise AuthError unless the header value matches the configured admin key."""
    if not provided or not hmac.compare_digest(
        provided.encode(), settings.api_key.encode()
    ):
        raise AuthError()
