"""
Batch Publisher: uploads an Edit to the content-addressed store.

The GRC-20 API fronts IPFS: the encoded edit is posted as a multipart file
and the response carries the content hash. A single blocking round-trip; any
failure aborts the run.
"""
from __future__ import annotations

import json
from typing import Optional

import httpx
from pydantic_core import PydanticSerializationError

from .io import sys_log
from .schema import Edit, ExecutionContext

DEFAULT_API_URL = "https://api-testnet.grc-20.thegraph.com"
IPFS_SCHEME = "ipfs://"


class PublishError(Exception):
    """The edit could not be serialized or uploaded."""

    pass


def encode_edit(edit: Edit) -> bytes:
    """Serialize an edit to its wire form (camelCase JSON)."""
    try:
        return edit.model_dump_json(by_alias=True).encode("utf-8")
    except PydanticSerializationError as e:
        raise PublishError(f"Failed to serialize edit {edit.id}: {e}") from e


def publish_edit(
    edit: Edit,
    *,
    client: httpx.Client,
    api_url: str = DEFAULT_API_URL,
    ctx: Optional[ExecutionContext] = None,
) -> str:
    """
    Publish an edit and return its content identifier.

    Args:
        edit: The sealed edit batch
        client: HTTP client used for the upload
        api_url: Base URL of the GRC-20 API
        ctx: Execution context for progress output

    Returns:
        Content identifier of the form ipfs://<hash>

    Raises:
        PublishError: On serialization, network, status or response errors
    """
    payload = encode_edit(edit)
    url = f"{api_url.rstrip('/')}/ipfs/upload-edit"
    sys_log(f"Publishing edit '{edit.name}' ({len(edit.ops)} ops) to IPFS...", ctx)

    try:
        response = client.post(
            url,
            files={"file": ("edit.json", payload, "application/json")},
            headers={"Accept": "application/json"},
        )
    except httpx.HTTPError as e:
        raise PublishError(f"Network error publishing edit: {e}") from e

    body = response.text
    if not response.is_success:
        raise PublishError(
            f"IPFS upload failed: {response.status_code} {response.reason_phrase}\nResponse: {body}"
        )

    try:
        data = json.loads(body)
    except json.JSONDecodeError as e:
        raise PublishError(f"Failed to parse upload response as JSON: {body}") from e

    content_hash = (data.get("cid") or data.get("hash")) if isinstance(data, dict) else None
    if not isinstance(content_hash, str) or not content_hash:
        raise PublishError(f"Upload response missing content hash: {body}")

    cid = content_hash if content_hash.startswith(IPFS_SCHEME) else f"{IPFS_SCHEME}{content_hash}"
    sys_log(f"Published to IPFS with CID: {cid}", ctx)
    return cid
