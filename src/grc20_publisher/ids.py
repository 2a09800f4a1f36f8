"""
Identifiers for the knowledge graph.

Entity ids are base58-encoded UUIDv4 values. A small vocabulary of system ids
names the protocol's own attributes and types; edits may reference these
without creating them.
"""
from __future__ import annotations

import re
import uuid
from typing import Dict, FrozenSet

from .schema import ValueType

BASE58_ALPHABET = "123456789ABCDEFGHJKLMNPQRSTUVWXYZabcdefghijkmnopqrstuvwxyz"

_ID_PATTERN = re.compile(f"^[{BASE58_ALPHABET}]{{16,22}}$")


def encode_base58(raw: bytes) -> str:
    """Encode bytes as base58 (Bitcoin alphabet), keeping leading zero bytes."""
    number = int.from_bytes(raw, "big")
    encoded = ""
    while number > 0:
        number, remainder = divmod(number, 58)
        encoded = BASE58_ALPHABET[remainder] + encoded

    leading_zeros = len(raw) - len(raw.lstrip(b"\0"))
    return BASE58_ALPHABET[0] * leading_zeros + encoded


def generate_id() -> str:
    """Generate a fresh entity id."""
    return encode_base58(uuid.uuid4().bytes)


def is_valid_id(value: str) -> bool:
    return bool(_ID_PATTERN.match(value))


# =============================================================================
# System ids
# =============================================================================

NAME_PROPERTY = "LuBWqZAu6pz54eiJS5mLv8"
DESCRIPTION_PROPERTY = "LA1DqP5v6QAdsgLPXGF3YA"
TYPES_PROPERTY = "Jfmby78N4BCseZinBmdVov"
PROPERTIES = "9zBADaYzyfzyFJn4GU1cC"
VALUE_TYPE_PROPERTY = "WQfdWjboZWFuTseDhG5Cw1"

SCHEMA_TYPE = "VdTsW1mGiy1XSooJaBBLc4"
PROPERTY = "GscJ2GELQjmLoaVrYyR3xm"

TEXT = "LckSTmjBrYAJaFcDs89am5"
NUMBER = "LBdMpTNyycNffsF51t2eSp"
CHECKBOX = "G9NpD4c7GB7nH5YU9Tesgf"
URL = "5xroh3gbWYbWY4oR3nFXzy"
TIME = "3mswMrL91GuYTfBq29EuNE"
POINT = "UZBZNbA7Uhx1f8ebLi1Qj5"
RELATION = "AKDxovGvZaPSWnmKnSoZJY"

VALUE_TYPE_IDS: Dict[ValueType, str] = {
    ValueType.TEXT: TEXT,
    ValueType.NUMBER: NUMBER,
    ValueType.CHECKBOX: CHECKBOX,
    ValueType.URL: URL,
    ValueType.TIME: TIME,
    ValueType.POINT: POINT,
    ValueType.RELATION: RELATION,
}

SYSTEM_IDS: FrozenSet[str] = frozenset(
    [
        NAME_PROPERTY,
        DESCRIPTION_PROPERTY,
        TYPES_PROPERTY,
        PROPERTIES,
        VALUE_TYPE_PROPERTY,
        SCHEMA_TYPE,
        PROPERTY,
        *VALUE_TYPE_IDS.values(),
    ]
)
