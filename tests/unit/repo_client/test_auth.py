"""Unit tests for repo_client.auth module."""

import pytest
from unittest.mock import patch

from src.repo_client.auth import Authenticator, Credentials, DEFAULT_API_URL
from src.repo_client.errors import InvalidCredentialsError


@pytest.fixture
def clean_env(monkeypatch):
    monkeypatch.delenv('SITESYNC_TOKEN', raising=False)
    monkeypatch.delenv('SITESYNC_API_URL', raising=False)
    return monkeypatch


class TestAuthenticator:
    """Test cases for Authenticator class."""

    @patch('src.repo_client.auth.load_dotenv')
    def test_init_loads_dotenv(self, mock_load_dotenv):
        """Authenticator() should load the .env file."""
        Authenticator()
        mock_load_dotenv.assert_called_once()

    @patch('src.repo_client.auth.load_dotenv')
    def test_get_credentials_with_defaults(self, mock_load_dotenv, clean_env):
        """Token is read from the environment and the API URL defaults."""
        clean_env.setenv('SITESYNC_TOKEN', 'ghp_secret')

        creds = Authenticator().get_credentials()

        assert creds == Credentials(api_url=DEFAULT_API_URL, token='ghp_secret')

    @patch('src.repo_client.auth.load_dotenv')
    def test_custom_api_url_loses_trailing_slash(self, mock_load_dotenv, clean_env):
        """SITESYNC_API_URL overrides the default without a trailing slash."""
        clean_env.setenv('SITESYNC_TOKEN', 'tok')
        clean_env.setenv('SITESYNC_API_URL', 'https://git.example.com/api/v3/')

        creds = Authenticator().get_credentials()

        assert creds.api_url == 'https://git.example.com/api/v3'

    @patch('src.repo_client.auth.load_dotenv')
    def test_missing_token_raises(self, mock_load_dotenv, clean_env):
        """A missing token raises InvalidCredentialsError naming the variable."""
        with pytest.raises(InvalidCredentialsError) as exc_info:
            Authenticator().get_credentials()

        assert "SITESYNC_TOKEN" in str(exc_info.value)
        assert exc_info.value.endpoint == DEFAULT_API_URL
