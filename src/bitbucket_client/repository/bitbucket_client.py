"""
Bitbucket API client: authenticated requests and pagination.
"""

import logging
from typing import Dict, Any, Optional, List, Union

import requests
from requests.auth import AuthBase

from .. import __version__
from ..auth import SessionManager
from ..config import BitbucketConfig
from ..error_handling import ApiError, UnsupportedAuthError
from ..models import Session

logger = logging.getLogger(__name__)

JsonValue = Union[Dict[str, Any], List[Any], str, int, float, bool, None]


class SessionAuth(AuthBase):
    """
    Attaches the session's Authorization header to a request.

    Passing it as ``auth=`` keeps requests from substituting netrc credentials.
    """

    def __init__(self, header: str):
        self.header = header

    def __call__(self, request: requests.PreparedRequest) -> requests.PreparedRequest:
        request.headers["Authorization"] = self.header
        return request


def extract_error_message(payload: Any) -> Optional[str]:
    """
    Pull a human-readable message out of a Bitbucket or OAuth error payload.

    Args:
        payload: Parsed error body

    Returns:
        Message text, or None when the payload has none
    """
    if not isinstance(payload, dict):
        return str(payload) if payload else None

    error = payload.get("error")
    if isinstance(error, dict):
        message = error.get("message")
        detail = error.get("detail")
        if message and detail:
            return f"{message} ({detail})"
        return message or detail
    if isinstance(error, str):
        description = payload.get("error_description")
        return f"{error}: {description}" if description else error

    return payload.get("message")


class BitbucketClient:
    """
    Issues requests against the Bitbucket API on behalf of the active session.

    Calls block until the response, or the whole page sequence, has been
    received. Failures surface immediately; there are no retries.
    """

    def __init__(
        self,
        session_manager: SessionManager,
        config: Optional[BitbucketConfig] = None,
        http: Optional[requests.Session] = None
    ):
        """
        Initialize Bitbucket API client.

        Args:
            session_manager: Source of the active session
            config: API endpoints and timeout
            http: HTTP session to send requests with
        """
        self.session_manager = session_manager
        self.config = config or BitbucketConfig()
        self.http = http or requests.Session()
        self.http.headers.update({
            "Accept": "application/json",
            "User-Agent": f"bitbucket-client/{__version__}"
        })

    @property
    def timeout(self) -> Optional[float]:
        return self.config.timeout

    def resolve_url(self, path: str, internal_api: bool = False) -> str:
        """
        Build the absolute URL for an endpoint path.

        Args:
            path: Endpoint path relative to the API root, or an absolute URL
            internal_api: Use the internal API root instead of the primary one

        Returns:
            Absolute request URL
        """
        if path.startswith(("https://", "http://")):
            return path

        base = self.config.internal_api_base_url if internal_api else self.config.api_base_url
        return f"{base.rstrip('/')}/{path.lstrip('/')}"

    def invoke(
        self,
        path: str,
        method: str = "GET",
        body: Optional[Dict[str, Any]] = None,
        paginated: bool = False,
        internal_api: bool = False
    ) -> JsonValue:
        """
        Issue one logical request against the API.

        Args:
            path: Endpoint path, e.g. ``repositories/team/slug``
            method: HTTP method
            body: JSON body, sent only when given
            paginated: Follow ``next`` links and return all ``values``
            internal_api: Target the internal API (bearer sessions only)

        Returns:
            Parsed response body, or the aggregated list of values when paginated

        Raises:
            NotAuthenticatedError: If no session is open
            UnsupportedAuthError: If the internal API is targeted without bearer auth
            ApiError: If the server answers with a non-2xx status
        """
        session = self.session_manager.get()

        if internal_api and not session.is_bearer:
            raise UnsupportedAuthError(
                "The internal API requires an OAuth (bearer) login",
                auth_type=session.auth_type.value
            )

        url = self.resolve_url(path, internal_api)

        if paginated:
            if body is not None:
                raise ValueError("Paginated requests cannot carry a body")
            return self._collect_pages(session, url)

        return self.send(session, method, url, body)

    def _collect_pages(self, session: Session, url: str) -> List[Any]:
        """
        Follow ``next`` links from ``url`` until the last page.

        The loop ends only when the server stops returning ``next``.
        """
        values: List[Any] = []
        pages = 0
        start_url = url

        while url:
            page = self.send(session, "GET", url) or {}
            if not isinstance(page, dict) or not isinstance(page.get("values", []), list):
                raise ApiError(
                    f"Malformed page {pages + 1} from {url}: expected an object with a 'values' list",
                    status_code=200,
                    payload=page,
                    method="GET",
                    url=url,
                    error_code="MALFORMED_PAGE"
                )
            page_values = page.get("values", [])
            values.extend(page_values)
            pages += 1
            logger.debug(f"Page {pages}: {len(page_values)} items from {url}")
            url = page.get("next")

        logger.info(f"Fetched {len(values)} items in {pages} pages from {start_url}")
        return values

    def send(
        self,
        session: Session,
        method: str,
        url: str,
        body: Optional[Dict[str, Any]] = None
    ) -> JsonValue:
        """
        Send a single request authenticated as ``session``.

        Args:
            session: Session supplying the Authorization header
            method: HTTP method
            url: Absolute request URL
            body: JSON body

        Returns:
            Parsed JSON body, or None for empty responses

        Raises:
            ApiError: If the server answers with a non-2xx status
        """
        method = method.upper()
        headers: Dict[str, str] = {}
        kwargs: Dict[str, Any] = {
            "headers": headers,
            "auth": SessionAuth(session.auth_header()),
            "timeout": self.timeout
        }
        if body is not None:
            headers["Content-Type"] = "application/json"
            kwargs["json"] = body

        logger.debug(f"{method} {url}")
        response = self.http.request(method, url, **kwargs)
        return self._handle_response(response, method, url)

    def _handle_response(self, response: requests.Response, method: str, url: str) -> JsonValue:
        if not response.ok:
            payload = self._error_payload(response)
            message = f"Bitbucket API request failed: {response.status_code} {method} {url}"
            detail = extract_error_message(payload)
            if detail:
                message += f" - {detail}"
            raise ApiError(message, status_code=response.status_code, payload=payload, method=method, url=url)

        if response.status_code == 204 or not response.content:
            return None
        return response.json()

    @staticmethod
    def _error_payload(response: requests.Response) -> Any:
        try:
            return response.json()
        except ValueError:
            return response.text or None

    def get_current_user(self, session: Session) -> Dict[str, Any]:
        """
        Look up the user that ``session`` authenticates as.

        Args:
            session: Session whose credentials are used, open or not

        Returns:
            User object from the ``user`` endpoint
        """
        return self.send(session, "GET", self.resolve_url("user"))

    def close(self) -> None:
        self.http.close()
