"""
grc20-publisher: build, publish and submit GRC-20 knowledge-graph edits.

Public API re-exports from the pipeline stages.
"""
from .schema import (
    Calldata,
    Edit,
    ExecutionContext,
    Network,
    PipelineResult,
    RelationValue,
    Value,
    ValueType,
)
from .graph import BuilderSealedError, EditBuilder
from .ipfs import PublishError, publish_edit
from .calldata import CalldataError, fetch_calldata
from .chain import JsonRpcClient, RpcError, SubmissionError, submit_transaction
from .keyring import Keyring, SpaceBinding, create_keyring, load_keyring
from .pipeline import run_pipeline, run_recipe

__all__ = [
    # Schema
    "Calldata",
    "Edit",
    "ExecutionContext",
    "Network",
    "PipelineResult",
    "RelationValue",
    "Value",
    "ValueType",
    # Builder
    "BuilderSealedError",
    "EditBuilder",
    # Stages
    "PublishError",
    "publish_edit",
    "CalldataError",
    "fetch_calldata",
    "JsonRpcClient",
    "RpcError",
    "SubmissionError",
    "submit_transaction",
    # Config
    "Keyring",
    "SpaceBinding",
    "create_keyring",
    "load_keyring",
    # Pipeline
    "run_pipeline",
    "run_recipe",
]
