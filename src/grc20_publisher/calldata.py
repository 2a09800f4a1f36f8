"""
Calldata Fetcher: asks the space API for the transaction that applies an edit.

POST {api_url}/space/{space_id}/edit/calldata with {cid, network};
the answer is the contract address (to) and the encoded call (data).
Single attempt, no retry.
"""
from __future__ import annotations

import json
from typing import Optional

import httpx
from pydantic import ValidationError

from .io import sys_log
from .ipfs import DEFAULT_API_URL
from .schema import Calldata, ExecutionContext, Network


class CalldataError(Exception):
    """The space API failed or returned an unusable body."""

    def __init__(self, message: str, status_code: int | None = None, body: str | None = None):
        super().__init__(message)
        self.status_code = status_code
        self.body = body


def fetch_calldata(
    space_id: str,
    cid: str,
    network: Network | str,
    *,
    client: httpx.Client,
    api_url: str = DEFAULT_API_URL,
    ctx: Optional[ExecutionContext] = None,
) -> Calldata:
    """
    Fetch calldata for publishing a CID into a space.

    Args:
        space_id: Target space (namespace) id
        cid: Content identifier returned by the publisher
        network: TESTNET or MAINNET
        client: HTTP client
        api_url: Base URL of the GRC-20 API
        ctx: Execution context for progress output

    Returns:
        Calldata with the destination address and payload

    Raises:
        CalldataError: Non-2xx status, non-JSON body, missing or malformed fields, or network error
    """
    network = Network(network)
    url = f"{api_url.rstrip('/')}/space/{space_id}/edit/calldata"
    payload = {"cid": cid, "network": network.value}
    sys_log(f"Getting calldata for space {space_id} on {network.value}: {json.dumps(payload)}", ctx)

    try:
        response = client.post(
            url,
            json=payload,
            headers={"Content-Type": "application/json", "Accept": "application/json"},
        )
    except httpx.HTTPError as e:
        raise CalldataError(f"Network error calling space API: {e}") from e

    # Capture the raw body before any check so failures carry it
    body = response.text
    sys_log(f"Space API raw response: {body}", ctx, level="debug")

    if not response.is_success:
        sys_log(f"Space API error: {response.status_code} {response.reason_phrase}", ctx, level="error")
        raise CalldataError(
            f"Space API call failed: {response.status_code} {response.reason_phrase}\nResponse: {body}",
            status_code=response.status_code,
            body=body,
        )

    try:
        data = json.loads(body)
    except json.JSONDecodeError as e:
        raise CalldataError(
            f"Failed to parse response as JSON: {body}",
            status_code=response.status_code,
            body=body,
        ) from e

    if not isinstance(data, dict) or not data.get("to") or not data.get("data"):
        raise CalldataError(
            f"Space API response missing fields (to, data): {body}",
            status_code=response.status_code,
            body=body,
        )

    try:
        calldata = Calldata(to=data["to"], data=data["data"])
    except ValidationError as e:
        raise CalldataError(
            f"Space API response has malformed fields (to, data): {body}",
            status_code=response.status_code,
            body=body,
        ) from e

    sys_log(f"Received calldata for contract {calldata.to}", ctx)
    return calldata
