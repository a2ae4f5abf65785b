"""Service-to-service authentication with bearer API keys"""
import secrets
from fastapi import Security
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from studyquest import config
from studyquest.exceptions import AuthenticationError, ConfigurationError

security = HTTPBearer()


def _matches_any(api_key: str, valid_keys: list[str]) -> bool:
    return any(secrets.compare_digest(api_key, key) for key in valid_keys)


async def verify_api_key(
    credentials: HTTPAuthorizationCredentials = Security(security)
) -> str:
    """
    Verify the caller's API key

    The presentation layer calls this API with one of the keys in API_KEYS.

    Raises:
        ConfigurationError: No keys are configured (503)
        AuthenticationError: Key is not one of the configured keys (401)
    """
    valid_keys = config.get_api_keys()

    if not valid_keys:
        raise ConfigurationError(
            "No API keys configured - rejecting all requests",
            config_key="API_KEYS",
            operation="verify_api_key"
        )

    api_key = credentials.credentials
    if not _matches_any(api_key, valid_keys):
        raise AuthenticationError(
            "Invalid API key",
            operation="verify_api_key",
            context={"key_suffix": api_key[-4:]}
        )

    return api_key
