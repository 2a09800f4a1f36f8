"""
Pytest configuration and shared fixtures for the publisher tests.

The GRC-20 API and the JSON-RPC node are simulated with httpx.MockTransport;
signing runs for real with a fixed throwaway key.
"""
from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Set

import httpx
import pytest
import rlp
from pytest_bdd import given, parsers

from grc20_publisher.chain import JsonRpcClient
from grc20_publisher.schema import ExecutionContext

# Well-known development key; never holds funds
TEST_PRIVATE_KEY = "0x4c0883a69102937d6231471b5dbb6204fe5129617082792ae468d01a3f362318"
TEST_CONTRACT = "0x1111111111111111111111111111111111111111"


@dataclass
class FakeGrc20Api:
    """Simulated IPFS upload and calldata endpoints."""

    upload_hash: str = "bafkreidefault"
    upload_status: int = 200
    upload_body: Optional[str] = None
    calldata: Dict[str, Any] = field(
        default_factory=lambda: {"to": TEST_CONTRACT, "data": "0xdeadbeef"}
    )
    calldata_status: int = 200
    calldata_body: Optional[str] = None
    unreachable: bool = False
    requests: List[httpx.Request] = field(default_factory=list)

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.unreachable:
            raise httpx.ConnectError("connection refused", request=request)

        path = request.url.path
        if path.endswith("/ipfs/upload-edit"):
            if self.upload_body is not None or self.upload_status != 200:
                return httpx.Response(self.upload_status, text=self.upload_body or "")
            return httpx.Response(200, json={"hash": self.upload_hash})
        if path.endswith("/edit/calldata"):
            if self.calldata_body is not None or self.calldata_status != 200:
                return httpx.Response(self.calldata_status, text=self.calldata_body or "")
            return httpx.Response(200, json=self.calldata)
        return httpx.Response(404, text="not found")

    def client(self) -> httpx.Client:
        return httpx.Client(transport=httpx.MockTransport(self.handler))

    def requests_to(self, suffix: str) -> List[httpx.Request]:
        return [r for r in self.requests if r.url.path.endswith(suffix)]


@dataclass
class FakeChain:
    """Simulated Ethereum JSON-RPC node."""

    chain_id: int = 1
    gas_price: int = 1_000_000_000
    nonce: int = 0
    block_number: int = 1
    status: int = 1
    gas_used: int = 21_000
    polls_before_receipt: int = 0
    reject_with: Optional[str] = None
    tx_hash: str = "0x" + "ab" * 32
    calls: List[tuple] = field(default_factory=list)
    raw_transactions: List[str] = field(default_factory=list)
    receipt_polls: int = 0
    null_results: Set[str] = field(default_factory=set)
    receipt_overrides: Dict[str, Any] = field(default_factory=dict)

    def handler(self, request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        method, params = body["method"], body["params"]
        self.calls.append((method, params))

        if method in self.null_results:
            result: Any = None
        elif method == "eth_chainId":
            result = hex(self.chain_id)
        elif method == "eth_gasPrice":
            result = hex(self.gas_price)
        elif method == "eth_getTransactionCount":
            result = hex(self.nonce)
        elif method == "eth_sendRawTransaction":
            if self.reject_with:
                return httpx.Response(
                    200,
                    json={
                        "jsonrpc": "2.0",
                        "id": body["id"],
                        "error": {"code": -32000, "message": self.reject_with},
                    },
                )
            self.raw_transactions.append(params[0])
            result = self.tx_hash
        elif method == "eth_getTransactionReceipt":
            self.receipt_polls += 1
            if self.receipt_polls <= self.polls_before_receipt:
                result = None
            else:
                result = {
                    "transactionHash": params[0],
                    "blockNumber": hex(self.block_number),
                    "status": hex(self.status),
                    "gasUsed": hex(self.gas_used),
                }
                result.update(self.receipt_overrides)
        else:
            return httpx.Response(
                200,
                json={"jsonrpc": "2.0", "id": body["id"], "error": {"code": -32601, "message": "method not found"}},
            )

        return httpx.Response(200, json={"jsonrpc": "2.0", "id": body["id"], "result": result})

    def rpc(self) -> JsonRpcClient:
        return JsonRpcClient(
            "https://rpc.test",
            client=httpx.Client(transport=httpx.MockTransport(self.handler)),
        )

    def methods(self) -> List[str]:
        return [method for method, _ in self.calls]


def decode_legacy_transaction(raw: str) -> Dict[str, Any]:
    """Decode a signed EIP-155 legacy transaction into its fields."""
    nonce, gas_price, gas, to, value, data, v, _r, _s = rlp.decode(bytes.fromhex(raw[2:]))

    def quantity(b: bytes) -> int:
        return int.from_bytes(b, "big")

    return {
        "nonce": quantity(nonce),
        "gasPrice": quantity(gas_price),
        "gas": quantity(gas),
        "to": "0x" + to.hex(),
        "value": quantity(value),
        "data": "0x" + data.hex(),
        "chainId": (quantity(v) - 35) // 2,
    }


@pytest.fixture
def test_context():
    """Shared context for passing data between steps."""
    return {}


@pytest.fixture
def captured_output() -> List[str]:
    return []


@pytest.fixture
def ctx(captured_output) -> ExecutionContext:
    """Execution context whose output lands in captured_output."""
    return ExecutionContext(run_id="test-run", output_sink=captured_output.append)


@pytest.fixture
def grc20_api() -> FakeGrc20Api:
    return FakeGrc20Api()


@pytest.fixture
def fake_chain() -> FakeChain:
    return FakeChain()


@pytest.fixture
def test_private_key() -> str:
    return TEST_PRIVATE_KEY


@pytest.fixture
def decode_transaction():
    """Decoder for raw transactions captured by the fake chain."""
    return decode_legacy_transaction


# =============================================================================
# Shared Given Steps
# =============================================================================


@given(parsers.parse("the node answers {method} with no result"))
def node_answers_null(fake_chain, method: str):
    fake_chain.null_results.add(method)


@given("the node reports a receipt without a status")
def receipt_without_status(fake_chain):
    fake_chain.receipt_overrides["status"] = None
