"""Closed field schema for transaction records.

The schema is the single source of truth for which columns are numeric and
which are categorical. Both the ingestion coercer and the submission
validator read from it, so a column can never be typed differently on the
two paths.
"""

from dataclasses import dataclass
from enum import StrEnum


class FieldKind(StrEnum):
    NUMERIC = "numeric"
    CATEGORICAL = "categorical"


@dataclass(frozen=True)
class FieldSpec:
    name: str
    kind: FieldKind
    required: bool = False

    @property
    def is_numeric(self) -> bool:
        return self.kind is FieldKind.NUMERIC

    @property
    def empty_value(self) -> float | str:
        return 0.0 if self.is_numeric else ""


# Named roles used by validation and export
AMOUNT_FIELD = "TransactionAmt"
TIMESTAMP_FIELD = "TransactionDT"
PRODUCT_CODE_FIELD = "ProductCD"
CARD_ID_FIELD = "card1"
CARD_TYPE_FIELD = "card4"
PURCHASER_EMAIL_FIELD = "P_emaildomain"
RECIPIENT_EMAIL_FIELD = "R_emaildomain"

REQUIRED_FIELDS: frozenset[str] = frozenset(
    {TIMESTAMP_FIELD, AMOUNT_FIELD, PRODUCT_CODE_FIELD, CARD_ID_FIELD}
)

_NUMERIC_NAMES: list[str] = [
    TIMESTAMP_FIELD,
    AMOUNT_FIELD,
    "card1", "card2", "card3", "card5",
    "addr1", "addr2",
    "dist1", "dist2",
    *[f"C{i}" for i in range(1, 15)],
    "D1", "D2", "D3", "D4", "D5", "D10", "D15",
    *[f"V{i}" for i in range(1, 21)],
]

_CATEGORICAL_NAMES: list[str] = [
    PRODUCT_CODE_FIELD,
    "card4", "card6",
    PURCHASER_EMAIL_FIELD,
    RECIPIENT_EMAIL_FIELD,
    *[f"M{i}" for i in range(1, 10)],
]


def _build_fields() -> dict[str, FieldSpec]:
    fields: dict[str, FieldSpec] = {}
    for name in _NUMERIC_NAMES:
        fields[name] = FieldSpec(name, FieldKind.NUMERIC, name in REQUIRED_FIELDS)
    for name in _CATEGORICAL_NAMES:
        fields[name] = FieldSpec(name, FieldKind.CATEGORICAL, name in REQUIRED_FIELDS)
    return fields


TRANSACTION_FIELDS: dict[str, FieldSpec] = _build_fields()

NUMERIC_FIELDS: frozenset[str] = frozenset(
    name for name, spec in TRANSACTION_FIELDS.items() if spec.is_numeric
)
CATEGORICAL_FIELDS: frozenset[str] = frozenset(
    name for name, spec in TRANSACTION_FIELDS.items() if not spec.is_numeric
)


def get_field(name: str) -> FieldSpec | None:
    """Look up a field by column name. Unknown columns return None."""
    return TRANSACTION_FIELDS.get(name)


def is_numeric(name: str) -> bool:
    return name in NUMERIC_FIELDS


def is_required(name: str) -> bool:
    return name in REQUIRED_FIELDS


def blank_record() -> dict[str, float | str]:
    """Every schema field at its empty value, in schema order."""
    return {name: spec.empty_value for name, spec in TRANSACTION_FIELDS.items()}
