"""
Round-trip tests for RpcClient.

The daemon is replaced by respx routes that inspect the posted envelope and
answer with synthetic response envelopes.
"""

from __future__ import annotations

import base64
import json
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Callable

import httpx
import pytest
import respx
from loguru import logger

from elementsrpc.records.models import Unspent, UnspentList
from elementsrpc.rpc.client import RpcClient, TraceEvent
from elementsrpc.rpc.errors import (
    NoResultPresent,
    ResultTypeMismatch,
    TransportFault,
    UnsupportedResultShape,
)
from elementsrpc.utils import clock_id

RPC_URL = "http://127.0.0.1:18884"

_NOT_SET = object()


def _respond(
    result: Any = None,
    error: Any = None,
    status: int = 200,
    response_id: Any = _NOT_SET,
    captured: list[dict[str, Any]] | None = None,
) -> Callable[[httpx.Request], httpx.Response]:
    """Build a respx side effect that echoes the request id unless told otherwise."""

    def _handler(request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        if captured is not None:
            captured.append(body)
        echoed = body["id"] if response_id is _NOT_SET else response_id
        return httpx.Response(status, json={"result": result, "error": error, "id": echoed})

    return _handler


@pytest.fixture()
def route():
    with respx.mock(assert_all_called=False) as router:
        yield router.post(RPC_URL)


@pytest.fixture()
def client() -> RpcClient:
    return RpcClient(RPC_URL, "alice", "s3cret")


class TestRequest:
    """Tests for the envelope sender."""

    def test_id_round_trips(self, route, client: RpcClient) -> None:
        captured: list[dict[str, Any]] = []
        route.mock(side_effect=_respond(result=12.5, captured=captured))

        response = client.request("getbalance", "*", 1)

        assert response.id == captured[0]["id"]
        assert response.result == 12.5
        assert captured[0]["method"] == "getbalance"
        assert captured[0]["params"] == ["*", 1]
        assert captured[0]["jsonrpc"] == "1.0"

    def test_no_params_sends_empty_list(self, route, client: RpcClient) -> None:
        captured: list[dict[str, Any]] = []
        route.mock(side_effect=_respond(result=1, captured=captured))

        client.request("getblockcount")

        assert captured[0]["params"] == []

    def test_basic_auth_and_content_type(self, route, client: RpcClient) -> None:
        route.mock(side_effect=_respond(result=1))

        client.request("getblockcount")

        sent = route.calls.last.request
        expected = base64.b64encode(b"alice:s3cret").decode("ascii")
        assert sent.headers["Authorization"] == f"Basic {expected}"
        assert sent.headers["Content-Type"] == "application/json"
        assert sent.method == "POST"

    def test_fresh_id_per_call(self, route, client: RpcClient) -> None:
        captured: list[dict[str, Any]] = []
        route.mock(side_effect=_respond(result=1, captured=captured))

        client.request("getblockcount")
        client.request("getblockcount")

        assert captured[0]["id"] != captured[1]["id"]

    def test_mismatched_id(self, route, client: RpcClient) -> None:
        route.mock(side_effect=_respond(result=1, response_id="someone-else"))

        with pytest.raises(TransportFault) as excinfo:
            client.request("getblockcount")

        fault = excinfo.value
        assert fault.status == 200
        assert fault.response_id == "someone-else"
        assert fault.request_id != "someone-else"
        assert fault.response.result == 1

    def test_mismatched_id_with_error_status(self, route, client: RpcClient) -> None:
        route.mock(side_effect=_respond(status=500, response_id="other"))

        with pytest.raises(TransportFault):
            client.request("getblockcount")

    def test_non_200_status_with_matching_id(self, route, client: RpcClient) -> None:
        error = {"code": -32601, "message": "Method not found"}
        route.mock(side_effect=_respond(error=error, status=500))

        with pytest.raises(TransportFault) as excinfo:
            client.request("nosuchmethod")

        fault = excinfo.value
        assert fault.status == 500
        assert fault.decode_error is None
        assert fault.response.id == fault.request_id
        assert fault.response.unmarshal_error().code == -32601

    def test_undecodable_body(self, route, client: RpcClient) -> None:
        route.mock(return_value=httpx.Response(200, content=b"Unauthorized"))

        with pytest.raises(TransportFault) as excinfo:
            client.request("getblockcount")

        fault = excinfo.value
        assert fault.decode_error is not None
        assert fault.body == b"Unauthorized"
        assert "body:Unauthorized" in str(fault)

    def test_connection_failure(self, route, client: RpcClient) -> None:
        route.mock(side_effect=httpx.ConnectError("connection refused"))

        with pytest.raises(TransportFault) as excinfo:
            client.request("getblockcount")

        assert excinfo.value.status is None
        assert isinstance(excinfo.value.__cause__, httpx.ConnectError)

    def test_injected_http_client(self, route) -> None:
        route.mock(side_effect=_respond(result="ok"))

        with httpx.Client() as http_client:
            client = RpcClient(RPC_URL, "u", "p", http_client=http_client)
            assert client.request("ping").result == "ok"

    def test_peer_fault_is_not_a_transport_fault(self, route, client: RpcClient) -> None:
        route.mock(side_effect=_respond(error={"code": -5, "message": "Invalid address"}))

        response = client.request("validateaddress", "x")

        assert response.unmarshal_error().message == "Invalid address"


class TestClockIds:
    """The clock-second id scheme collides; the collision must be observable."""

    def test_same_second_calls_share_an_id(self, route) -> None:
        captured: list[dict[str, Any]] = []
        route.mock(side_effect=_respond(result=1, captured=captured))
        client = RpcClient(RPC_URL, id_factory=lambda: clock_id(lambda: 1700000000.25))

        first = client.request("getblockcount")
        second = client.request("getblockcount")

        assert captured[0]["id"] == captured[1]["id"] == "1700000000"
        assert first.id == second.id

    def test_next_second_gets_a_new_id(self, route) -> None:
        captured: list[dict[str, Any]] = []
        route.mock(side_effect=_respond(result=1, captured=captured))
        ticks = iter([1700000000.9, 1700000001.0])
        client = RpcClient(RPC_URL, id_factory=lambda: clock_id(lambda: next(ticks)))

        client.request("getblockcount")
        client.request("getblockcount")

        assert captured[0]["id"] != captured[1]["id"]

    def test_concurrent_calls_in_one_second_share_an_id(self, route) -> None:
        captured: list[dict[str, Any]] = []
        route.mock(side_effect=_respond(result=1, captured=captured))
        client = RpcClient(RPC_URL, id_factory=lambda: clock_id(lambda: 1700000000.25))

        with ThreadPoolExecutor(max_workers=2) as pool:
            futures = [pool.submit(client.request, "getblockcount") for _ in range(2)]
            responses = [future.result() for future in futures]

        assert len(captured) == 2
        assert captured[0]["id"] == captured[1]["id"] == "1700000000"
        assert responses[0].id == responses[1].id


class TestTrace:
    """Tests for verbose request/response echo."""

    def test_events_emitted_when_verbose(self, route) -> None:
        route.mock(side_effect=_respond(result=True))
        events: list[TraceEvent] = []
        client = RpcClient(RPC_URL, verbose=True, trace=events.append)

        response = client.request("walletlock")

        assert [e.kind for e in events] == ["request", "response"]
        assert json.loads(events[0].body)["method"] == "walletlock"
        assert events[1].status == 200
        assert events[1].request_id == response.id

    def test_silent_when_not_verbose(self, route) -> None:
        route.mock(side_effect=_respond(result=True))
        events: list[TraceEvent] = []
        client = RpcClient(RPC_URL, trace=events.append)

        client.request("walletlock")

        assert events == []

    def test_response_traced_even_on_fault(self, route) -> None:
        route.mock(side_effect=_respond(status=401))
        events: list[TraceEvent] = []
        client = RpcClient(RPC_URL, verbose=True, trace=events.append)

        with pytest.raises(TransportFault):
            client.request("getblockcount")

        assert events[-1].status == 401

    def test_default_trace_echoes_to_stderr(self, route, capsys: pytest.CaptureFixture[str]) -> None:
        route.mock(side_effect=_respond(result=3))

        RpcClient(RPC_URL, verbose=True).request("getblockcount")

        err = capsys.readouterr().err.splitlines()
        assert err[0].startswith("rpc -> ")
        assert '"method":"getblockcount"' in err[0]
        assert err[1].startswith("rpc <- 200, ")

    def test_library_is_silent_by_default(self, route, capsys: pytest.CaptureFixture[str]) -> None:
        route.mock(side_effect=_respond(result=3))
        messages: list[str] = []
        handler_id = logger.add(messages.append, level="DEBUG", format="{message}")
        try:
            RpcClient(RPC_URL).request("getblockcount")
        finally:
            logger.remove(handler_id)

        assert messages == []
        assert capsys.readouterr().err == ""


class TestCoercion:
    """Tests for the typed and scalar request helpers."""

    def test_unmarshal_result(self, route, client: RpcClient) -> None:
        route.mock(side_effect=_respond(result=[{"txid": "abc", "vout": 2, "spendable": True}]))

        unspents, response = client.request_and_unmarshal_result(UnspentList, "listunspent", 1)

        assert unspents == [Unspent(txid="abc", vout=2, spendable=True)]
        assert response.error is None

    def test_unmarshal_result_scalar(self, route, client: RpcClient) -> None:
        route.mock(side_effect=_respond(result=42))

        with pytest.raises(UnsupportedResultShape):
            client.request_and_unmarshal_result(Unspent, "getblockcount")

    def test_unmarshal_result_null(self, route, client: RpcClient) -> None:
        route.mock(side_effect=_respond(result=None, error={"code": -5, "message": "x"}))

        with pytest.raises(NoResultPresent):
            client.request_and_unmarshal_result(Unspent, "gettxout", "abc", 0)

    def test_bool_result(self, route, client: RpcClient) -> None:
        route.mock(side_effect=_respond(result=True))

        value, response = client.request_and_cast_bool("walletpassphrase", "pw", 60)
        assert value is True
        assert response.id

        with pytest.raises(ResultTypeMismatch) as excinfo:
            client.request_and_cast_number("walletpassphrase", "pw", 60)
        assert excinfo.value.actual is True

        with pytest.raises(ResultTypeMismatch):
            client.request_and_cast_string("walletpassphrase", "pw", 60)

    def test_number_result(self, route, client: RpcClient) -> None:
        route.mock(side_effect=_respond(result=101))

        value, _ = client.request_and_cast_number("getblockcount")

        assert value == 101.0
        assert isinstance(value, float)

    def test_number_too_large_for_float(self, route, client: RpcClient) -> None:
        huge = int("9" * 400)
        route.mock(side_effect=_respond(result=huge))

        with pytest.raises(ResultTypeMismatch) as excinfo:
            client.request_and_cast_number("getblockcount")
        assert excinfo.value.expected == "number"
        assert excinfo.value.response.result == huge

    def test_string_result(self, route, client: RpcClient) -> None:
        route.mock(side_effect=_respond(result="0200abcd"))

        value, _ = client.request_and_cast_string("getrawtransaction", "f00d")
        assert value == "0200abcd"

        with pytest.raises(ResultTypeMismatch):
            client.request_and_cast_bool("getrawtransaction", "f00d")

    def test_no_string_to_bool_coercion(self, route, client: RpcClient) -> None:
        route.mock(side_effect=_respond(result="true"))

        with pytest.raises(ResultTypeMismatch):
            client.request_and_cast_bool("walletlock")

    def test_null_is_a_mismatch(self, route, client: RpcClient) -> None:
        route.mock(side_effect=_respond(result=None))

        with pytest.raises(ResultTypeMismatch) as excinfo:
            client.request_and_cast_string("walletlock")
        assert excinfo.value.response.result is None

    def test_transport_fault_propagates(self, route, client: RpcClient) -> None:
        route.mock(side_effect=_respond(result=True, status=503))

        with pytest.raises(TransportFault):
            client.request_and_cast_bool("walletlock")
