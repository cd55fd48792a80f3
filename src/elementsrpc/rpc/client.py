"""
JSON-RPC client for an Elements / Bitcoin style daemon.

One ``RpcClient`` per endpoint. Each call is a blocking, self-contained
round trip with its own correlation id, so a client can be shared between
threads.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Optional

import click
import httpx
from loguru import logger

from ..utils import random_id
from .envelope import RpcRequest, RpcResponse
from .errors import ResultTypeMismatch, TransportFault


@dataclass(frozen=True)
class TraceEvent:
    """One echoed request or response, emitted when the client is verbose."""

    kind: str
    request_id: str
    method: str
    body: str
    status: Optional[int] = None


TraceSink = Callable[[TraceEvent], None]


def echo_trace(event: TraceEvent) -> None:
    if event.kind == "request":
        click.echo(f"rpc -> {event.body}", err=True)
    else:
        click.echo(f"rpc <- {event.status}, {event.body}", err=True)


class RpcClient:
    """
    Client handle holding the endpoint, credentials and trace settings.

    Args:
        url: Daemon RPC endpoint
        user: Basic auth user
        password: Basic auth password
        verbose: Echo every request and response to ``trace``
        trace: Receiver for trace events (default: echo to stderr)
        id_factory: Correlation id generator (default: ``random_id``)
        timeout: HTTP timeout in seconds (default: httpx's own default)
        http_client: Pre-built ``httpx.Client`` to send through
    """

    def __init__(
        self,
        url: str,
        user: str = "",
        password: str = "",
        *,
        verbose: bool = False,
        trace: Optional[TraceSink] = None,
        id_factory: Optional[Callable[[], str]] = None,
        timeout: Optional[float] = None,
        http_client: Optional[httpx.Client] = None,
    ) -> None:
        self.url = url
        self.user = user
        self.password = password
        self.verbose = verbose
        self.timeout = timeout
        self._trace = trace or echo_trace
        self._id_factory = id_factory or random_id
        self._http_client = http_client

    def __repr__(self) -> str:
        return f"RpcClient(url={self.url!r}, user={self.user!r}, verbose={self.verbose})"

    # ============ Envelope ============

    def request(self, method: str, *params: Any) -> RpcResponse:
        """
        Perform one RPC round trip.

        Returns:
            The response envelope. ``error`` may still carry a peer fault;
            see ``RpcResponse.unmarshal_error``.

        Raises:
            TransportFault: The HTTP call failed, the status was not 200, the
                body was not a response envelope or the echoed id differs.
                ``exc.response`` holds whatever was decoded.
        """
        request_id = self._id_factory()
        rpc_request = RpcRequest(id=request_id, method=method, params=list(params))
        payload = rpc_request.to_json()
        self._emit(TraceEvent("request", request_id, method, payload.decode("utf-8")))

        logger.debug("rpc call {} id={} params={}", method, request_id, len(rpc_request.params))
        try:
            http_response = self._post(payload)
        except httpx.HTTPError as exc:
            logger.debug("rpc call {} id={} failed: {}", method, request_id, exc)
            raise TransportFault(
                status=None,
                decode_error=str(exc),
                body=b"",
                request_id=request_id,
                response_id="",
                response=RpcResponse(),
            ) from exc

        status = http_response.status_code
        body = http_response.content
        self._emit(TraceEvent("response", request_id, method, body.decode("utf-8", errors="replace"), status))

        response, decode_error = RpcResponse.parse(body)
        if decode_error is not None or status != httpx.codes.OK or response.id != request_id:
            logger.debug("rpc call {} id={} rejected: status={} resid={}", method, request_id, status, response.id)
            raise TransportFault(
                status=status,
                decode_error=decode_error,
                body=body,
                request_id=request_id,
                response_id=response.id,
                response=response,
            )
        return response

    def _post(self, payload: bytes) -> httpx.Response:
        headers = {"Content-Type": "application/json"}
        auth = (self.user, self.password)
        if self._http_client is not None:
            return self._http_client.post(self.url, content=payload, headers=headers, auth=auth)

        client_kwargs: dict[str, Any] = {}
        if self.timeout is not None:
            client_kwargs["timeout"] = self.timeout
        with httpx.Client(**client_kwargs) as client:
            return client.post(self.url, content=payload, headers=headers, auth=auth)

    def _emit(self, event: TraceEvent) -> None:
        if self.verbose:
            self._trace(event)

    # ============ Coercion ============

    def request_and_unmarshal_result(self, target: Any, method: str, *params: Any) -> tuple[Any, RpcResponse]:
        """Call ``method`` and decode its object/array result into ``target``."""
        response = self.request(method, *params)
        return response.unmarshal_result(target), response

    def request_and_cast_number(self, method: str, *params: Any) -> tuple[float, RpcResponse]:
        response = self.request(method, *params)
        result = response.result
        if isinstance(result, bool) or not isinstance(result, (int, float)):
            raise ResultTypeMismatch("number", result, response=response)
        try:
            return float(result), response
        except OverflowError:
            raise ResultTypeMismatch("number", result, response=response)

    def request_and_cast_string(self, method: str, *params: Any) -> tuple[str, RpcResponse]:
        response = self.request(method, *params)
        if not isinstance(response.result, str):
            raise ResultTypeMismatch("string", response.result, response=response)
        return response.result, response

    def request_and_cast_bool(self, method: str, *params: Any) -> tuple[bool, RpcResponse]:
        response = self.request(method, *params)
        if not isinstance(response.result, bool):
            raise ResultTypeMismatch("bool", response.result, response=response)
        return response.result, response
