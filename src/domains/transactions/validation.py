"""Business-rule checks gating single-transaction submission.

Every rule runs on every call and all violations are returned together,
in a stable order, so the operator can fix a form in one pass.
"""

import math
import re
from collections.abc import Mapping
from typing import Any

from .errors import ValidationFailure
from .schema import (
    AMOUNT_FIELD,
    CARD_ID_FIELD,
    PRODUCT_CODE_FIELD,
    PURCHASER_EMAIL_FIELD,
    RECIPIENT_EMAIL_FIELD,
    TIMESTAMP_FIELD,
)

_LABEL = r"[a-z0-9](?:[a-z0-9-]{0,61}[a-z0-9])?"
EMAIL_DOMAIN_RE = re.compile(rf"{_LABEL}(?:\.{_LABEL})*", re.IGNORECASE)


def is_valid_email_domain(domain: str) -> bool:
    return EMAIL_DOMAIN_RE.fullmatch(domain) is not None


def _is_positive(value: Any) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return math.isfinite(value) and value > 0


def _is_blank(value: Any) -> bool:
    return not isinstance(value, str) or value.strip() == ""


def validate_transaction(record: Mapping[str, Any]) -> list[str]:
    """Return the list of rule violations. Empty means the record may be submitted."""
    errors: list[str] = []

    if not _is_positive(record.get(TIMESTAMP_FIELD)):
        errors.append("Transaction DateTime is required and must be positive")

    if not _is_positive(record.get(AMOUNT_FIELD)):
        errors.append("Transaction Amount is required and must be positive")

    if _is_blank(record.get(PRODUCT_CODE_FIELD)):
        errors.append("Product Code is required")

    if not _is_positive(record.get(CARD_ID_FIELD)):
        errors.append("Card1 is required and must be positive")

    purchaser = record.get(PURCHASER_EMAIL_FIELD)
    if purchaser and not is_valid_email_domain(str(purchaser)):
        errors.append("Purchaser email domain format is invalid")

    recipient = record.get(RECIPIENT_EMAIL_FIELD)
    if recipient and not is_valid_email_domain(str(recipient)):
        errors.append("Recipient email domain format is invalid")

    return errors


def ensure_valid(record: Mapping[str, Any]) -> None:
    """Raise ValidationFailure carrying every violation, if there are any."""
    errors = validate_transaction(record)
    if errors:
        raise ValidationFailure(errors)
