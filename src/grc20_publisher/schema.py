from __future__ import annotations

from enum import Enum
from typing import Annotated, Any, Callable, Dict, List, Literal, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


SPEC_VERSION = "0.0.1"
INITIAL_RELATION_INDEX = "a0"


class ValueType(str, Enum):
    TEXT = "TEXT"
    NUMBER = "NUMBER"
    CHECKBOX = "CHECKBOX"
    URL = "URL"
    TIME = "TIME"
    POINT = "POINT"
    RELATION = "RELATION"


class Network(str, Enum):
    TESTNET = "TESTNET"
    MAINNET = "MAINNET"


class Value(BaseModel):
    """A scalar value with an explicit type tag."""

    type: ValueType
    value: str

    model_config = ConfigDict(frozen=True)

    @field_validator("value", mode="before")
    @classmethod
    def _coerce_number(cls, v: Any) -> Any:
        if isinstance(v, bool):
            return "1" if v else "0"
        if isinstance(v, (int, float)):
            return str(v)
        return v

    @model_validator(mode="after")
    def _check_scalar(self) -> "Value":
        if self.type == ValueType.RELATION:
            raise ValueError("RELATION is not a scalar value type; use RelationValue")
        if self.type == ValueType.NUMBER:
            try:
                float(self.value)
            except ValueError:
                raise ValueError(f"NUMBER value is not numeric: {self.value!r}")
        if self.type == ValueType.CHECKBOX and self.value not in ("0", "1", "true", "false"):
            raise ValueError(f"CHECKBOX value must be a boolean flag: {self.value!r}")
        return self


class RelationValue(BaseModel):
    """A property value pointing at another entity."""

    to: str

    model_config = ConfigDict(frozen=True)


PropertyValue = Union[Value, RelationValue]


class Triple(BaseModel):
    entity: str
    attribute: str
    value: Value

    model_config = ConfigDict(frozen=True)


class Relation(BaseModel):
    id: str
    type: str
    from_entity: str = Field(alias="fromEntity")
    to_entity: str = Field(alias="toEntity")
    index: str = INITIAL_RELATION_INDEX

    model_config = ConfigDict(frozen=True, populate_by_name=True)


class SetTripleOp(BaseModel):
    type: Literal["SET_TRIPLE"] = "SET_TRIPLE"
    triple: Triple

    model_config = ConfigDict(frozen=True)


class CreateRelationOp(BaseModel):
    type: Literal["CREATE_RELATION"] = "CREATE_RELATION"
    relation: Relation

    model_config = ConfigDict(frozen=True)


Op = Annotated[Union[SetTripleOp, CreateRelationOp], Field(discriminator="type")]


class Edit(BaseModel):
    """
    An edit batch: the ordered operations plus metadata.

    Frozen once built; the publisher consumes it exactly once.
    """

    spec_version: str = Field(default=SPEC_VERSION, alias="specVersion")
    type: Literal["ADD_EDIT"] = "ADD_EDIT"
    id: str
    name: str
    ops: Tuple[Op, ...] = ()
    authors: Tuple[str, ...] = ()

    model_config = ConfigDict(frozen=True, populate_by_name=True)


class Calldata(BaseModel):
    to: str
    data: str

    model_config = ConfigDict(frozen=True)


class Receipt(BaseModel):
    """Transaction receipt, parsed from JSON-RPC hex quantities."""

    transaction_hash: str = Field(alias="transactionHash")
    block_number: int = Field(alias="blockNumber")
    status: int
    gas_used: int = Field(alias="gasUsed")

    model_config = ConfigDict(populate_by_name=True)

    @field_validator("block_number", "status", "gas_used", mode="before")
    @classmethod
    def _parse_quantity(cls, v: Any) -> Any:
        if isinstance(v, str) and v.startswith("0x"):
            return int(v, 16)
        return v


class ExecutionContext(BaseModel):
    """Context passed through the pipeline stages.

    The output_sink enables the I/O Membrane pattern: stage logic is decoupled
    from display. The CLI passes print, tests pass a list collector.
    """

    run_id: Optional[str] = None

    # The Membrane Injection - excluded from serialization (Callable can't be JSON)
    output_sink: Optional[Callable[[str], None]] = Field(default=None, exclude=True)

    model_config = ConfigDict(arbitrary_types_allowed=True)

    def emit(self, content: str) -> None:
        """Send output to the configured sink, or stdout as fallback."""
        if self.output_sink:
            self.output_sink(content)
        else:
            print(content)


class PipelineStage(str, Enum):
    SCHEMA = "schema"
    PUBLISH = "publish"
    CALLDATA = "calldata"
    SUBMISSION = "submission"


class PipelineResult(BaseModel):
    """Result of a pipeline run: either the whole pipeline completed or it aborted."""

    ok: bool
    data: Dict[str, Any] = Field(default_factory=dict)
    error_kind: Optional[PipelineStage] = None
    error_message: Optional[str] = None
    edit: Optional[Edit] = Field(default=None, exclude=True)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        result: Dict[str, Any] = {"ok": self.ok, "data": self.data}
        if not self.ok:
            result["error_kind"] = self.error_kind.value if self.error_kind else None
            result["error_message"] = self.error_message
        return result


__all__: List[str] = [
    "Calldata",
    "CreateRelationOp",
    "Edit",
    "ExecutionContext",
    "INITIAL_RELATION_INDEX",
    "Network",
    "Op",
    "PipelineResult",
    "PipelineStage",
    "PropertyValue",
    "Receipt",
    "Relation",
    "RelationValue",
    "SPEC_VERSION",
    "SetTripleOp",
    "Triple",
    "Value",
    "ValueType",
]
