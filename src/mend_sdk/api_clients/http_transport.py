"""Low-level HTTP transport for the Mend REST API.

Serializes one request, maps failures into ``MendError`` and parses JSON
bodies. Knows nothing about credentials, retries or timeouts; those live in
the session manager and the authenticated request pipeline.
"""

import json
import logging
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple, Union

import httpx

from ..errors import ErrorCode, ErrorContext, MendError, RequestAbortedError
from .cancellation import CancellationToken, OperationCancelled, run_cancellable
from .network_error_handler import NetworkErrorHandler

logger = logging.getLogger(__name__)

ACCESS_TOKEN_HEADER = "X-Access-Token"

QueryScalar = Union[str, int, float, bool]
QueryValue = Union[QueryScalar, Sequence[QueryScalar]]
QueryParams = Mapping[str, QueryValue]


def _query_text(value: QueryScalar) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def serialize_query(query: Optional[QueryParams]) -> List[Tuple[str, str]]:
    """Flatten query parameters; list values repeat the key once per entry."""
    params: List[Tuple[str, str]] = []
    for key, value in (query or {}).items():
        if isinstance(value, (list, tuple)):
            params.extend((key, _query_text(item)) for item in value)
        else:
            params.append((key, _query_text(value)))
    return params


def redact_headers(headers: Mapping[str, str]) -> Dict[str, str]:
    """Copy of ``headers`` with the access token masked."""
    return {
        name: "***" if name.lower() == ACCESS_TOKEN_HEADER.lower() else value
        for name, value in headers.items()
    }


class HttpTransport:
    """Sends single JSON requests against the configured API endpoint."""

    def __init__(
        self,
        api_endpoint: str,
        default_headers: Optional[Mapping[str, str]] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """Initialize the transport.

        Args:
            api_endpoint: Base REST endpoint, without trailing slash
            default_headers: Headers sent with every request
            transport: Optional httpx transport (tests, proxies)
        """
        self.api_endpoint = api_endpoint.rstrip("/")
        self.default_headers: Dict[str, str] = dict(default_headers or {})
        self._transport = transport
        self._session: Optional[httpx.AsyncClient] = None
        self._network_error_handler = NetworkErrorHandler()

    @property
    def session(self) -> httpx.AsyncClient:
        """Get or create the pooled HTTP session."""
        if self._session is None or self._session.is_closed:
            # request deadlines are enforced by cancel scopes, not by httpx
            timeouts = httpx.Timeout(None, connect=10.0)
            limits = httpx.Limits(
                max_connections=10,
                max_keepalive_connections=5,
                keepalive_expiry=30.0,
            )
            self._session = httpx.AsyncClient(
                timeout=timeouts,
                limits=limits,
                follow_redirects=True,
                verify=True,
                transport=self._transport,
            )
        return self._session

    def build_headers(self, headers: Optional[Mapping[str, str]] = None) -> Dict[str, str]:
        """JSON defaults, then instance defaults, then per-call headers."""
        return {
            "Content-Type": "application/json",
            "Accept": "application/json",
            **self.default_headers,
            **(headers or {}),
        }

    async def send(
        self,
        method: str,
        path: str,
        body: Any = None,
        query: Optional[QueryParams] = None,
        headers: Optional[Mapping[str, str]] = None,
        cancel_token: Optional[CancellationToken] = None,
    ) -> Any:
        """Send one request and return the parsed JSON body.

        Returns:
            The decoded JSON value, or ``None`` for an empty body.

        Raises:
            RequestAbortedError: If ``cancel_token`` fired first
            MendError: On network failure, non-2xx status or invalid JSON
        """
        method = method.upper()
        params = serialize_query(query)
        url = self.api_endpoint + path
        if params:
            url = f"{url}?{httpx.QueryParams(params)}"
        request_headers = self.build_headers(headers)
        context = ErrorContext(
            url=url, method=method, headers=redact_headers(request_headers)
        )
        content = json.dumps(body) if body is not None else None

        logger.debug(f"{method} {url}")
        try:
            response = await run_cancellable(
                self.session.request(
                    method, url, content=content, headers=request_headers
                ),
                cancel_token,
            )
        except OperationCancelled as e:
            raise RequestAbortedError(
                f"Request aborted ({e.reason}): {method} {path}",
                reason=e.reason,
                context=context,
            ) from e
        except httpx.HTTPError as e:
            raise self._network_error_handler.classify_network_error(e, context) from e

        if not response.is_success:
            raise self._error_from_response(response, context)

        text = response.text
        if not text.strip():
            return None
        try:
            return json.loads(text)
        except json.JSONDecodeError as e:
            context.response_body = text
            raise MendError(
                f"Invalid JSON in response: {e}",
                ErrorCode.HTTP_ERROR,
                response.status_code,
                text,
                context,
            ) from e

    def _error_from_response(
        self, response: httpx.Response, context: ErrorContext
    ) -> MendError:
        """Map a non-2xx response into a MendError."""
        status = response.status_code
        message = f"HTTP {status} – {response.reason_phrase}"
        details: Any = None
        text = response.text
        if text:
            try:
                details = json.loads(text)
            except json.JSONDecodeError:
                details = text
                message = text
            else:
                if isinstance(details, dict):
                    server_message = details.get("message") or details.get("error")
                    if server_message:
                        message = str(server_message)

        code = ErrorCode.HTTP_ERROR
        if isinstance(details, dict):
            code = ErrorCode.from_server(details.get("code")) or ErrorCode.HTTP_ERROR

        context.response_body = details
        return MendError(message, code, status, details, context)

    async def close(self) -> None:
        if self._session is not None and not self._session.is_closed:
            await self._session.aclose()
        self._session = None
