"""API wrapper for a GitHub-compatible repository REST API.

This module wraps the host's contents, git data (blobs, trees, commits, refs)
endpoints with a requests session and provides error translation from HTTP
exceptions to our typed exception hierarchy. It integrates with the retry
logic for handling rate limits.
"""

import base64
import logging
import re
from typing import Any, Dict, List, Optional
from urllib.parse import quote

import requests
from requests.exceptions import Timeout, ConnectTimeout, ReadTimeout, ConnectionError

from .auth import Authenticator
from .errors import (
    APIAccessError,
    APIUnreachableError,
    ConflictError,
    InvalidCredentialsError,
    NotFoundError,
)
from .models import RepositoryRef
from .retry_logic import retry_on_rate_limit

logger = logging.getLogger(__name__)


class APIWrapper:
    """Thin wrapper over the repository host's REST API with error translation.

    This class provides:
    1. Lazy, authenticated requests session creation
    2. Translation of HTTP errors to typed exceptions
    3. Retry on 429/secondary rate limits
    4. Low-level tree/commit/ref primitives used for atomic multi-file commits

    Example:
        >>> api = APIWrapper(Authenticator(), RepositoryRef.parse("acme/site"))
        >>> head = api.get_ref("main")
    """

    TIMEOUT_SECONDS = 30

    def __init__(self, authenticator: Authenticator, repo: RepositoryRef):
        """Initialize the API wrapper.

        Args:
            authenticator: Authenticator instance for loading credentials
            repo: Repository the wrapper operates on
        """
        self._authenticator = authenticator
        self.repo = repo
        self._session: Optional[requests.Session] = None
        self._base_url: Optional[str] = None

    def _get_session(self) -> requests.Session:
        """Get or create the authenticated requests session.

        Raises:
            InvalidCredentialsError: If credentials are missing
        """
        if self._session is None:
            creds = self._authenticator.get_credentials()
            session = requests.Session()
            session.headers.update({
                'Authorization': f"Bearer {creds.token}",
                'Accept': 'application/vnd.github+json',
                'X-GitHub-Api-Version': '2022-11-28',
            })
            self._base_url = f"{creds.api_url}/repos/{self.repo.owner}/{self.repo.name}"
            self._session = session
        return self._session

    def _sanitize_credentials(self, text: str) -> str:
        """Mask tokens and Authorization headers in error or log text.

        Example:
            >>> api._sanitize_credentials("Authorization: Bearer ghp_abcdef123456")
            'Authorization: ***REDACTED***'
        """
        if not text:
            return text

        sanitized = re.sub(
            r'://([\w.-]+):([\w.-]+)@',
            r'://***:***@',
            text
        )
        sanitized = re.sub(
            r'Authorization:\s*[^\n\r]+',
            'Authorization: ***REDACTED***',
            sanitized,
            flags=re.IGNORECASE
        )
        sanitized = re.sub(
            r'Bearer\s+[^\s\n\r]+',
            'Bearer ***REDACTED***',
            sanitized,
            flags=re.IGNORECASE
        )
        # GitHub token prefixes (ghp_, gho_, ghs_, github_pat_)
        sanitized = re.sub(
            r'\b(gh[pousr]_|github_pat_)[A-Za-z0-9_]{8,}\b',
            '***REDACTED***',
            sanitized
        )
        sanitized = re.sub(
            r'(token)["\']?\s*[:=]\s*["\']?([^"\'\s&]+)',
            r'\1=***REDACTED***',
            sanitized,
            flags=re.IGNORECASE
        )
        return sanitized

    def _endpoint(self) -> str:
        try:
            return self._authenticator.get_credentials().api_url
        except InvalidCredentialsError:
            return "unknown"

    def _translate_error(self, exception: Exception, operation: str, path: str = "") -> Exception:
        """Translate HTTP exceptions to typed repository exceptions.

        Args:
            exception: The original exception from requests
            operation: Description of the operation that failed (for logging)
            path: Repository path or ref the operation targeted

        Returns:
            Exception: Translated exception (one of our typed exceptions)
        """
        if isinstance(exception, (Timeout, ConnectTimeout, ReadTimeout, ConnectionError)):
            return APIUnreachableError(endpoint=self._endpoint())

        status_code = getattr(exception, 'status_code', None)
        response = getattr(exception, 'response', None)
        if status_code is None and response is not None:
            status_code = getattr(response, 'status_code', None)

        detail = ""
        if response is not None:
            try:
                detail = str(response.json().get('message', ''))
            except (ValueError, AttributeError):
                detail = ""

        if status_code == 401:
            return InvalidCredentialsError(endpoint=self._endpoint(), reason=detail or None)

        if status_code == 404:
            return NotFoundError(path or operation)

        if status_code == 409 or (
            status_code == 422 and 'fast forward' in detail.lower()
        ):
            return ConflictError(
                f"Remote changed during {operation}: {detail or 'conflict'}",
                paths=[path] if path else None
            )

        safe_error_msg = self._sanitize_credentials(str(exception))
        logger.error(f"API operation failed: {operation} - {safe_error_msg}")
        return APIAccessError(
            f"Repository API failure during {operation}",
            status_code=status_code
        )

    def _request(
        self,
        method: str,
        url_path: str,
        operation: str,
        target: str = "",
        **kwargs
    ) -> Any:
        """Send one API request with rate-limit retry and error translation.

        Returns:
            Decoded JSON body, or None for empty responses
        """
        session = self._get_session()
        url = f"{self._base_url}/{url_path.lstrip('/')}"

        def _send() -> requests.Response:
            response = session.request(method, url, timeout=self.TIMEOUT_SECONDS, **kwargs)
            response.raise_for_status()
            return response

        try:
            response = retry_on_rate_limit(_send)
        except APIAccessError:
            raise
        except Exception as e:
            raise self._translate_error(e, operation, target) from e

        if not response.content:
            return None
        return response.json()

    def get_content(self, path: str) -> Any:
        """Fetch a file (dict) or directory listing (list) via the contents API.

        Raises:
            NotFoundError: If the path does not exist on the branch
        """
        return self._request(
            'GET',
            f"contents/{quote(path)}",
            operation=f"get_content({path})",
            target=path,
            params={'ref': self.repo.branch},
        )

    def get_ref(self, branch: Optional[str] = None) -> str:
        """Return the commit SHA the branch currently points to."""
        branch = branch or self.repo.branch
        data = self._request(
            'GET', f"git/ref/heads/{quote(branch)}",
            operation=f"get_ref({branch})", target=branch,
        )
        return data['object']['sha']

    def get_commit(self, commit_sha: str) -> Dict[str, Any]:
        return self._request(
            'GET', f"git/commits/{commit_sha}",
            operation=f"get_commit({commit_sha})", target=commit_sha,
        )

    def get_tree(self, tree_sha: str, recursive: bool = True) -> Dict[str, Any]:
        """Fetch a tree object, recursively expanded by default."""
        params = {'recursive': '1'} if recursive else {}
        data = self._request(
            'GET', f"git/trees/{tree_sha}",
            operation=f"get_tree({tree_sha})", target=tree_sha, params=params,
        )
        if data.get('truncated'):
            logger.warning(f"Tree listing for {tree_sha} was truncated by the host")
        return data

    def get_blob(self, blob_sha: str) -> bytes:
        """Fetch and decode a blob's raw bytes."""
        data = self._request(
            'GET', f"git/blobs/{blob_sha}",
            operation=f"get_blob({blob_sha})", target=blob_sha,
        )
        if data.get('encoding') == 'base64':
            return base64.b64decode(data.get('content', ''))
        return str(data.get('content', '')).encode('utf-8')

    def create_blob(self, content: bytes) -> str:
        data = self._request(
            'POST', "git/blobs",
            operation="create_blob",
            json={
                'content': base64.b64encode(content).decode('ascii'),
                'encoding': 'base64',
            },
        )
        return data['sha']

    def create_tree(self, base_tree: str, entries: List[Dict[str, Any]]) -> str:
        """Create a tree on top of base_tree.

        Entries with ``sha: None`` delete the path from the resulting tree.
        """
        data = self._request(
            'POST', "git/trees",
            operation="create_tree",
            json={'base_tree': base_tree, 'tree': entries},
        )
        return data['sha']

    def create_commit(self, message: str, tree_sha: str, parents: List[str]) -> str:
        data = self._request(
            'POST', "git/commits",
            operation="create_commit",
            json={'message': message, 'tree': tree_sha, 'parents': parents},
        )
        return data['sha']

    def update_ref(self, commit_sha: str, force: bool = False, branch: Optional[str] = None) -> None:
        """Move the branch to commit_sha.

        Raises:
            ConflictError: If the update is not a fast-forward and force is False
        """
        branch = branch or self.repo.branch
        self._request(
            'PATCH', f"git/refs/heads/{quote(branch)}",
            operation=f"update_ref({branch})", target=branch,
            json={'sha': commit_sha, 'force': force},
        )
