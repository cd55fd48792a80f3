from __future__ import annotations

from typing import TYPE_CHECKING, Any, Optional

if TYPE_CHECKING:
    from .envelope import RpcResponse


class RpcClientError(RuntimeError):
    """Base class for failures raised by the client. ``response`` is the
    envelope that was received, when there is one."""

    exit_code: int = 1

    def __init__(self, message: str, response: Optional["RpcResponse"] = None) -> None:
        super().__init__(message)
        self.response = response


class TransportFault(RpcClientError):
    exit_code = 2

    def __init__(
        self,
        *,
        status: Optional[int],
        decode_error: Optional[str],
        body: bytes,
        request_id: str,
        response_id: str,
        response: Optional["RpcResponse"] = None,
    ) -> None:
        text = body.decode("utf-8", errors="replace")
        super().__init__(
            f"status:{status}, error:{decode_error}, body:{text} "
            f"reqid:{request_id}, resid:{response_id}",
            response=response,
        )
        self.status = status
        self.decode_error = decode_error
        self.body = body
        self.request_id = request_id
        self.response_id = response_id


class NoResultPresent(RpcClientError):
    exit_code = 3


class NoFaultPresent(RpcClientError):
    exit_code = 3


class MalformedFault(RpcClientError):
    exit_code = 4


class UnsupportedResultShape(RpcClientError):
    exit_code = 4


class ResultTypeMismatch(RpcClientError):
    exit_code = 4

    def __init__(self, expected: str, actual: Any, response: Optional["RpcResponse"] = None) -> None:
        super().__init__(f"RpcResponse result cast error, expected {expected}: {actual!r}", response=response)
        self.expected = expected
        self.actual = actual
