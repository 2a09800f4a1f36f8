"""
Domain: Graph Schema Builder

Builds the operations that describe properties, types, entities and relations.
The builder owns its operation list exclusively: each create_* call assigns a
fresh id, appends the ops it produced and returns them, and to_edit() seals
the builder into an immutable Edit.

Operations:
  - create_property: A property with a value type
  - create_type: A schema type listing its properties
  - create_entity: An entity with types and property values
  - create_relation: A typed edge between two entities
  - to_edit: Seal the accumulated ops into an Edit batch
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Sequence, Set, Tuple

from pydantic import TypeAdapter

from . import ids
from .schema import (
    INITIAL_RELATION_INDEX,
    CreateRelationOp,
    Edit,
    Op,
    PropertyValue,
    Relation,
    RelationValue,
    SetTripleOp,
    Triple,
    Value,
    ValueType,
)

_property_value = TypeAdapter(PropertyValue)
_value_type = TypeAdapter(ValueType)


class BuilderSealedError(Exception):
    """The builder was already turned into an Edit."""

    pass


@dataclass(frozen=True)
class Created:
    """The id assigned to a new item and the ops that create it."""

    id: str
    ops: Tuple[Op, ...]


class EditBuilder:
    """
    Accumulates graph operations for a single edit.

    Example:
        builder = EditBuilder()
        rating = builder.create_property("Rating", ValueType.NUMBER)
        image = builder.create_type("Image", properties=[rating.id])
        edit = builder.to_edit("Create Image type")
    """

    def __init__(self, id_factory: Callable[[], str] = ids.generate_id):
        self._id_factory = id_factory
        self._ops: List[Op] = []
        self._ids: List[str] = []
        self._sealed = False

    @property
    def ops(self) -> Tuple[Op, ...]:
        """Snapshot of the operations accumulated so far."""
        return tuple(self._ops)

    @property
    def ids(self) -> Tuple[str, ...]:
        """Ids assigned by this builder, in creation order."""
        return tuple(self._ids)

    @property
    def sealed(self) -> bool:
        return self._sealed

    # -------------------------------------------------------------------------
    # Creation
    # -------------------------------------------------------------------------

    def create_property(
        self,
        name: str,
        value_type: ValueType | str,
        description: Optional[str] = None,
    ) -> Created:
        value_type = _value_type.validate_python(value_type)
        property_id = self._assign()

        ops: List[Op] = self._describe(property_id, name, description)
        ops.append(self._relation(property_id, ids.PROPERTY, ids.TYPES_PROPERTY))
        ops.append(
            self._relation(property_id, ids.VALUE_TYPE_IDS[value_type], ids.VALUE_TYPE_PROPERTY)
        )
        return self._commit(property_id, ops)

    def create_type(
        self,
        name: str,
        properties: Sequence[str] = (),
        description: Optional[str] = None,
    ) -> Created:
        type_id = self._assign()

        ops: List[Op] = self._describe(type_id, name, description)
        ops.append(self._relation(type_id, ids.SCHEMA_TYPE, ids.TYPES_PROPERTY))
        for property_id in properties:
            ops.append(self._relation(type_id, property_id, ids.PROPERTIES))
        return self._commit(type_id, ops)

    def create_entity(
        self,
        name: Optional[str] = None,
        types: Sequence[str] = (),
        properties: Optional[Mapping[str, PropertyValue | Dict[str, Any]]] = None,
        description: Optional[str] = None,
    ) -> Created:
        """
        Create an entity.

        Each property value is either a scalar Value ({"type": ..., "value": ...})
        which becomes a triple, or a RelationValue ({"to": entity_id}) which
        becomes a relation typed by the property id.
        """
        # Validate every value before assigning an id
        values = {
            property_id: _property_value.validate_python(raw)
            for property_id, raw in (properties or {}).items()
        }
        entity_id = self._assign()

        ops: List[Op] = self._describe(entity_id, name, description)
        for type_id in types:
            ops.append(self._relation(entity_id, type_id, ids.TYPES_PROPERTY))
        for property_id, value in values.items():
            if isinstance(value, RelationValue):
                ops.append(self._relation(entity_id, value.to, property_id))
            else:
                ops.append(self._triple(entity_id, property_id, value))
        return self._commit(entity_id, ops)

    def create_relation(
        self,
        from_entity: str,
        to_entity: str,
        relation_type: str,
        index: str = INITIAL_RELATION_INDEX,
    ) -> Created:
        self._check_open()
        op = self._relation(from_entity, to_entity, relation_type, index=index)
        relation_id = op.relation.id
        self._ids.append(relation_id)
        return self._commit(relation_id, [op])

    def to_edit(self, name: str, author: Optional[str] = None) -> Edit:
        """Seal the builder and return the immutable Edit."""
        self._check_open()
        self._sealed = True
        return Edit(
            id=self._id_factory(),
            name=name,
            ops=tuple(self._ops),
            authors=(author,) if author else (),
        )

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    def _check_open(self) -> None:
        if self._sealed:
            raise BuilderSealedError("Edit already built; start a new EditBuilder")

    def _assign(self) -> str:
        self._check_open()
        new_id = self._id_factory()
        self._ids.append(new_id)
        return new_id

    def _commit(self, item_id: str, ops: List[Op]) -> Created:
        self._ops.extend(ops)
        return Created(id=item_id, ops=tuple(ops))

    def _describe(self, entity_id: str, name: Optional[str], description: Optional[str]) -> List[Op]:
        ops: List[Op] = []
        if name is not None:
            ops.append(self._triple(entity_id, ids.NAME_PROPERTY, Value(type=ValueType.TEXT, value=name)))
        if description is not None:
            ops.append(
                self._triple(
                    entity_id, ids.DESCRIPTION_PROPERTY, Value(type=ValueType.TEXT, value=description)
                )
            )
        return ops

    @staticmethod
    def _triple(entity_id: str, attribute: str, value: Value) -> SetTripleOp:
        return SetTripleOp(triple=Triple(entity=entity_id, attribute=attribute, value=value))

    def _relation(
        self,
        from_entity: str,
        to_entity: str,
        relation_type: str,
        index: str = INITIAL_RELATION_INDEX,
    ) -> CreateRelationOp:
        return CreateRelationOp(
            relation=Relation(
                id=self._id_factory(),
                type=relation_type,
                from_entity=from_entity,
                to_entity=to_entity,
                index=index,
            )
        )


# =============================================================================
# Reference checks
# =============================================================================


def _op_subject(op: Op) -> str:
    if isinstance(op, SetTripleOp):
        return op.triple.entity
    return op.relation.from_entity


def _op_references(op: Op) -> List[str]:
    if isinstance(op, SetTripleOp):
        return [op.triple.attribute]
    return [op.relation.type, op.relation.to_entity]


def unresolved_references(
    ops: Iterable[Op],
    known: Iterable[str] = ids.SYSTEM_IDS,
) -> List[str]:
    """
    List ids referenced by ops before any op in the sequence created them.

    An id counts as created by the first op whose subject it is. Ids from an
    earlier edit are legitimately unresolved here; this is a diagnostic, not a
    validation gate.
    """
    seen: Set[str] = set(known)
    missing: List[str] = []
    for op in ops:
        seen.add(_op_subject(op))
        for ref in _op_references(op):
            if ref not in seen and ref not in missing:
                missing.append(ref)
    return missing
