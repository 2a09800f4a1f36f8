"""
Transaction Submitter: signs and broadcasts the calldata transaction.

JSON-RPC over httpx for chain reads and broadcast, eth-account for signing.
The wait for confirmation is unbounded: there is no fee bump, replacement or
timeout-driven abandonment.
"""
from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

import httpx
from eth_account import Account
from eth_utils import from_wei, to_checksum_address, to_hex
from pydantic import ValidationError

from .io import sys_log
from .schema import Calldata, ExecutionContext, Receipt

DEFAULT_RPC_URL = "https://rpc.ankr.com/eth"
DEFAULT_GAS_LIMIT = 300_000
DEFAULT_POLL_INTERVAL = 2.0


class SubmissionError(Exception):
    """Signing, broadcast or confirmation failed."""

    pass


class RpcError(SubmissionError):
    """The JSON-RPC node returned an error or could not be reached."""

    pass


class JsonRpcClient:
    """Minimal Ethereum JSON-RPC client for the calls the submitter needs."""

    def __init__(self, url: str = DEFAULT_RPC_URL, client: httpx.Client | None = None):
        self.url = url
        self._client = client or httpx.Client(timeout=30.0)
        self._owns_client = client is None
        self._request_id = 0

    def call(self, method: str, params: Optional[List[Any]] = None) -> Any:
        self._request_id += 1
        request = {
            "jsonrpc": "2.0",
            "id": self._request_id,
            "method": method,
            "params": params or [],
        }
        try:
            response = self._client.post(self.url, json=request)
        except httpx.HTTPError as e:
            raise RpcError(f"{method}: network error: {e}") from e

        if not response.is_success:
            raise RpcError(f"{method}: HTTP {response.status_code}: {response.text}")

        try:
            body = response.json()
        except ValueError as e:
            raise RpcError(f"{method}: invalid JSON response: {response.text}") from e

        if not isinstance(body, dict):
            raise RpcError(f"{method}: unexpected response: {response.text}")
        if body.get("error"):
            error = body["error"]
            if not isinstance(error, dict):
                raise RpcError(f"{method}: {error}")
            raise RpcError(f"{method}: {error.get('code')} {error.get('message')}")
        return body.get("result")

    def quantity(self, method: str, params: Optional[List[Any]] = None) -> int:
        """Call a method whose result is a hex quantity."""
        result = self.call(method, params)
        if not isinstance(result, str) or not result.startswith("0x"):
            raise RpcError(f"{method}: expected a hex quantity, got {result!r}")
        try:
            return int(result, 16)
        except ValueError as e:
            raise RpcError(f"{method}: expected a hex quantity, got {result!r}") from e

    def chain_id(self) -> int:
        return self.quantity("eth_chainId")

    def gas_price(self) -> int:
        return self.quantity("eth_gasPrice")

    def transaction_count(self, address: str, block: str = "latest") -> int:
        return self.quantity("eth_getTransactionCount", [address, block])

    def send_raw_transaction(self, raw_transaction: str) -> str:
        tx_hash = self.call("eth_sendRawTransaction", [raw_transaction])
        if not isinstance(tx_hash, str) or not tx_hash:
            raise RpcError(f"eth_sendRawTransaction: expected a transaction hash, got {tx_hash!r}")
        return tx_hash

    def get_transaction_receipt(self, tx_hash: str) -> Optional[Dict[str, Any]]:
        return self.call("eth_getTransactionReceipt", [tx_hash])

    def wait_for_receipt(
        self,
        tx_hash: str,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        sleep: Callable[[float], None] = time.sleep,
    ) -> Receipt:
        """Poll until the transaction is mined. Blocks indefinitely."""
        while True:
            receipt = self.get_transaction_receipt(tx_hash)
            if receipt is not None and not isinstance(receipt, dict):
                raise RpcError(f"eth_getTransactionReceipt: malformed receipt: {receipt!r}")
            if receipt and receipt.get("blockNumber"):
                try:
                    return Receipt.model_validate(receipt)
                except ValidationError as e:
                    raise RpcError(f"eth_getTransactionReceipt: malformed receipt: {receipt}") from e
            sleep(poll_interval)

    def close(self) -> None:
        if self._owns_client:
            self._client.close()


@dataclass
class TransactionRecord:
    """The transaction as submitted: destination, payload, gas and nonce."""

    to: str
    data: str
    gas_limit: int
    gas_price: int
    nonce: int
    chain_id: int

    def to_tx_dict(self) -> Dict[str, Any]:
        return {
            "to": to_checksum_address(self.to),
            "data": self.data,
            "value": 0,
            "gas": self.gas_limit,
            "gasPrice": self.gas_price,
            "nonce": self.nonce,
            "chainId": self.chain_id,
        }


@dataclass
class TransactionOutcome:
    """What was observed after confirmation."""

    tx_hash: str
    block_number: int
    status: str
    gas_used: int

    @property
    def succeeded(self) -> bool:
        return self.status == "Success"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "txHash": self.tx_hash,
            "blockNumber": self.block_number,
            "status": self.status,
            "gasUsed": self.gas_used,
        }


def submit_transaction(
    calldata: Calldata,
    private_key: str,
    *,
    rpc: JsonRpcClient,
    ctx: Optional[ExecutionContext] = None,
    gas_limit: int = DEFAULT_GAS_LIMIT,
    poll_interval: float = DEFAULT_POLL_INTERVAL,
) -> TransactionOutcome:
    """
    Sign, broadcast and confirm the calldata transaction.

    Args:
        calldata: Destination and payload from the space API
        private_key: Hex signing key; held only for the duration of the call
        rpc: JSON-RPC client for the target chain
        ctx: Execution context for progress output
        gas_limit: Fixed gas limit for the transaction
        poll_interval: Seconds between receipt polls

    Returns:
        TransactionOutcome with hash, block, status and gas used

    Raises:
        SubmissionError: If signing, any RPC call, or the broadcast fails
    """
    try:
        account = Account.from_key(private_key)
    except (TypeError, ValueError) as e:
        # Never echo the key itself
        raise SubmissionError("Invalid signing key") from e

    sys_log(f"Wallet address: {account.address}", ctx)

    gas_price = rpc.gas_price()
    sys_log(f"Current gas price: {from_wei(gas_price, 'gwei')} gwei", ctx)

    nonce = rpc.transaction_count(account.address)
    sys_log(f"Current nonce: {nonce}", ctx)

    record = TransactionRecord(
        to=calldata.to,
        data=calldata.data,
        gas_limit=gas_limit,
        gas_price=gas_price,
        nonce=nonce,
        chain_id=rpc.chain_id(),
    )
    sys_log(
        f"Transaction details: to={record.to} gasLimit={record.gas_limit} "
        f"gasPrice={from_wei(record.gas_price, 'gwei')} gwei nonce={record.nonce}",
        ctx,
    )

    try:
        signed = account.sign_transaction(record.to_tx_dict())
    except (TypeError, ValueError) as e:
        raise SubmissionError(f"Failed to sign transaction: {e}") from e

    sys_log("Signing and sending transaction...", ctx)
    tx_hash = rpc.send_raw_transaction(to_hex(signed.raw_transaction))
    sys_log(f"Transaction sent! Hash: {tx_hash}", ctx)
    sys_log("Waiting for transaction confirmation...", ctx)

    receipt = rpc.wait_for_receipt(tx_hash, poll_interval=poll_interval)
    outcome = TransactionOutcome(
        tx_hash=tx_hash,
        block_number=receipt.block_number,
        status="Success" if receipt.status == 1 else "Failed",
        gas_used=receipt.gas_used,
    )
    sys_log(f"Transaction confirmed in block: {outcome.block_number}", ctx)
    sys_log(f"Transaction status: {outcome.status}", ctx, level="info" if outcome.succeeded else "warn")
    sys_log(f"Gas used: {outcome.gas_used}", ctx)
    return outcome
