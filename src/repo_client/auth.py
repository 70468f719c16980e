"""Authentication module for loading repository host credentials.

This module handles loading the API token and endpoint from environment
variables using python-dotenv. It validates that the token is present and
raises an appropriate error if it is missing.
"""

import os
from typing import NamedTuple

from dotenv import load_dotenv

from .errors import InvalidCredentialsError


DEFAULT_API_URL = "https://api.github.com"


class Credentials(NamedTuple):
    """Repository host API credentials."""
    api_url: str
    token: str


class Authenticator:
    """Loads and validates repository host credentials from environment variables.

    Credentials are loaded from a .env file using python-dotenv and are never
    cached or logged.

    Environment variables:
        SITESYNC_TOKEN: API token with contents read/write access (required)
        SITESYNC_API_URL: REST API base URL (default: https://api.github.com)

    Example:
        >>> auth = Authenticator()
        >>> creds = auth.get_credentials()
        >>> print(f"Connecting to {creds.api_url}")
    """

    def __init__(self):
        """Initialize the authenticator by loading environment variables from .env file."""
        load_dotenv()

    def get_credentials(self) -> Credentials:
        """Get repository host credentials from environment variables.

        Returns:
            Credentials: A named tuple containing api_url and token

        Raises:
            InvalidCredentialsError: If the token is missing
        """
        api_url = os.getenv('SITESYNC_API_URL') or DEFAULT_API_URL
        token = os.getenv('SITESYNC_TOKEN')

        if not token:
            raise InvalidCredentialsError(
                endpoint=api_url,
                reason="SITESYNC_TOKEN is not set"
            )

        return Credentials(api_url=api_url.rstrip('/'), token=token)
