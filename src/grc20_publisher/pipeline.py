"""
Pipeline: build → publish → fetch calldata → sign → broadcast → report.

Control flows strictly forward. The first failing stage aborts the run and
the failure is returned as a PipelineResult for the caller (CLI or test)
to surface.
"""
from __future__ import annotations

from typing import Optional

import httpx
from pydantic import ValidationError

from .calldata import CalldataError, fetch_calldata
from .chain import JsonRpcClient, SubmissionError, submit_transaction
from .graph import BuilderSealedError, EditBuilder
from .io import sys_log, ui_render
from .ipfs import PublishError, publish_edit
from .keyring import Keyring, SpaceBinding
from .recipes import build_recipe, get_recipe
from .schema import Edit, ExecutionContext, PipelineResult, PipelineStage

GEOBROWSER_URL = "https://geobrowser.io/space"


def _failure(
    stage: PipelineStage,
    error: Exception,
    edit: Optional[Edit],
    ctx: Optional[ExecutionContext],
) -> PipelineResult:
    sys_log(f"{stage.value} stage failed: {error}", ctx, level="error")
    return PipelineResult(
        ok=False,
        error_kind=stage,
        error_message=str(error),
        edit=edit,
    )


def run_pipeline(
    edit: Edit,
    space: SpaceBinding,
    keyring: Keyring,
    *,
    http_client: Optional[httpx.Client] = None,
    rpc: Optional[JsonRpcClient] = None,
    ctx: Optional[ExecutionContext] = None,
    poll_interval: float = 2.0,
) -> PipelineResult:
    """
    Publish an edit into a space and, with a signer, apply it on-chain.

    Args:
        edit: The sealed edit batch
        space: Target space and network
        keyring: Endpoints, gas limit and optional signer
        http_client: Client for the GRC-20 API (created if None)
        rpc: JSON-RPC client (created from keyring.rpc_url if None and needed)
        ctx: Execution context for progress output
        poll_interval: Seconds between receipt polls

    Returns:
        PipelineResult. On success data holds {cid, to, data} and, when a
        transaction was submitted, {txHash, blockNumber, status, gasUsed}.
    """
    owns_client = http_client is None
    client = http_client or httpx.Client(timeout=60.0)

    try:
        try:
            cid = publish_edit(edit, client=client, api_url=keyring.api_url, ctx=ctx)
        except PublishError as e:
            return _failure(PipelineStage.PUBLISH, e, edit, ctx)

        try:
            calldata = fetch_calldata(
                space.space_id,
                cid,
                space.network,
                client=client,
                api_url=keyring.api_url,
                ctx=ctx,
            )
        except CalldataError as e:
            return _failure(PipelineStage.CALLDATA, e, edit, ctx)
    finally:
        if owns_client:
            client.close()

    data = {"cid": cid, "to": calldata.to, "data": calldata.data}

    if keyring.signer is None:
        ui_render(
            "No signing key in use (PRIVATE_KEY unset or manual mode). Transaction not submitted.",
            ctx,
            style="warning",
        )
        ui_render(
            f"To: {calldata.to}\nData: {calldata.data}",
            ctx,
            style="box",
            title="Submit manually with this calldata",
        )
        return PipelineResult(ok=True, data=data, edit=edit)

    owns_rpc = rpc is None
    rpc = rpc or JsonRpcClient(keyring.rpc_url)
    try:
        sys_log("Submitting transaction to blockchain...", ctx)
        outcome = submit_transaction(
            calldata,
            keyring.signer.private_key,
            rpc=rpc,
            ctx=ctx,
            gas_limit=keyring.gas_limit,
            poll_interval=poll_interval,
        )
    except SubmissionError as e:
        return _failure(PipelineStage.SUBMISSION, e, edit, ctx)
    finally:
        if owns_rpc:
            rpc.close()

    sys_log(f"View your entity in the geobrowser: {GEOBROWSER_URL}/{space.space_id}", ctx)
    data.update(outcome.to_dict())
    return PipelineResult(ok=True, data=data, edit=edit)


def run_recipe(
    recipe_name: str,
    keyring: Keyring,
    *,
    space: Optional[SpaceBinding] = None,
    builder: Optional[EditBuilder] = None,
    timestamp: Optional[str] = None,
    http_client: Optional[httpx.Client] = None,
    rpc: Optional[JsonRpcClient] = None,
    ctx: Optional[ExecutionContext] = None,
    poll_interval: float = 2.0,
) -> PipelineResult:
    """
    Build a recipe's edit, then run the pipeline with it.

    The target space resolves as: explicit space, keyring default space,
    then the recipe's own default.
    """
    recipe = get_recipe(recipe_name)
    builder = builder or EditBuilder()

    ui_render(f"Recipe '{recipe.name}': {recipe.description}", ctx, style="heading")
    try:
        edit = build_recipe(recipe.name, builder=builder, timestamp=timestamp)
    except (ValidationError, ValueError, BuilderSealedError) as e:
        return _failure(PipelineStage.SCHEMA, e, None, ctx)
    sys_log(f"Built edit '{edit.name}' with {len(edit.ops)} ops", ctx)

    if space is None:
        space = keyring.get_default_space() or SpaceBinding(
            space_id=recipe.space_id,
            network=recipe.network,
        )

    return run_pipeline(
        edit,
        space,
        keyring,
        http_client=http_client,
        rpc=rpc,
        ctx=ctx,
        poll_interval=poll_interval,
    )
