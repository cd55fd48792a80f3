"""
JSON-RPC 1.0 envelopes.

``RpcResponse`` keeps ``result`` and ``error`` as plain JSON values. The
shape is only committed at the call site, with ``unmarshal_result`` or
``unmarshal_error``, because one transport serves every RPC method.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass, field
from typing import Any, Optional

from loguru import logger
from pydantic import BaseModel, ConfigDict, ValidationError

from ..records.models import StrictInt, StrictStr, decode_record
from ..utils import compact_json
from .errors import MalformedFault, NoFaultPresent, NoResultPresent, UnsupportedResultShape

JSONRPC_VERSION = "1.0"

_LONE_SURROGATE = re.compile("[\ud800-\udfff]")


def _reencode(value: Any) -> Any:
    """
    Copy a decoded JSON value the way a re-serialize/decode pass would.

    Unpaired surrogate escapes cannot be encoded as UTF-8 and become U+FFFD.
    """
    if isinstance(value, str):
        return _LONE_SURROGATE.sub("\ufffd", value)
    if isinstance(value, list):
        return [_reencode(item) for item in value]
    if isinstance(value, dict):
        return {_reencode(key): _reencode(item) for key, item in value.items()}
    return value


@dataclass(frozen=True)
class RpcRequest:
    id: str
    method: str
    params: list[Any] = field(default_factory=list)
    jsonrpc: str = JSONRPC_VERSION

    def to_dict(self) -> dict[str, Any]:
        return {
            "jsonrpc": self.jsonrpc,
            "id": self.id,
            "method": self.method,
            "params": list(self.params),
        }

    def to_json(self) -> bytes:
        return compact_json(self.to_dict())


class RpcFault(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)

    code: StrictInt = 0
    message: StrictStr = ""

    def __str__(self) -> str:
        return f"{self.code}: {self.message}"


@dataclass(frozen=True)
class RpcResponse:
    result: Any = None
    error: Any = None
    id: str = ""

    @classmethod
    def parse(cls, body: bytes) -> tuple["RpcResponse", Optional[str]]:
        """
        Parse a response body.

        Returns the envelope together with a decode error message, or None.
        Whatever could be read is kept in the envelope even when decoding
        failed, so callers can still inspect it.
        """
        try:
            payload = json.loads(body)
        except ValueError as exc:
            return cls(), str(exc)
        if not isinstance(payload, dict):
            return cls(), f"response body is a JSON {type(payload).__name__}, not an object"

        response_id = payload.get("id")
        problem = None
        if response_id is None:
            response_id = ""
        elif not isinstance(response_id, str):
            problem = f"response id {response_id!r} is not a string"
            response_id = ""
        return cls(result=payload.get("result"), error=payload.get("error"), id=response_id), problem

    def to_dict(self) -> dict[str, Any]:
        return {"result": self.result, "error": self.error, "id": self.id}

    def unmarshal_error(self) -> RpcFault:
        """
        Extract the peer's fault from ``error``.

        Raises:
            NoFaultPresent: ``error`` is null, the call succeeded
            MalformedFault: ``error`` is not a JSON object
        """
        if self.error is None:
            raise NoFaultPresent("RpcResponse error is null.", response=self)
        if not isinstance(self.error, dict):
            raise MalformedFault(f"RpcResponse error is not an object: {self.error!r}", response=self)

        payload = _reencode(self.error)
        try:
            return RpcFault.model_validate(payload)
        except ValidationError as exc:
            bad = {error["loc"][0] for error in exc.errors() if error["loc"]}
            logger.debug("ignoring undecodable fault fields {}: {}", sorted(map(str, bad)), exc)
        return RpcFault.model_validate({key: value for key, value in payload.items() if key not in bad})

    def unmarshal_result(self, target: Any) -> Any:
        """
        Decode ``result`` into ``target``, a record class or a ``list[...]``
        / ``dict[...]`` of them.

        Raises:
            NoResultPresent: ``result`` is null
            UnsupportedResultShape: ``result`` is neither an object nor an array
            pydantic.ValidationError: ``result`` does not fit ``target``
        """
        if self.result is None:
            raise NoResultPresent("RpcResponse result is null.", response=self)
        if not isinstance(self.result, (dict, list)):
            raise UnsupportedResultShape(
                f"RpcResponse result is neither an object nor an array: {self.result!r}",
                response=self,
            )
        return decode_record(target, _reencode(self.result))
