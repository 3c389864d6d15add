"""
Shared building blocks for the entity models.

Every entity carries a color tag, money fields are Decimal, and every
document lives in a per-user collection. The helpers here are used by
all four entity modules.
"""

import unicodedata
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Annotated, Any, Optional

from pydantic import AfterValidator, BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError


# =============================================================================
# CONSTANTS
# =============================================================================

HEX_COLOR_PATTERN = r"^#[0-9A-Fa-f]{6}$"

NAME_MAX_LENGTH = 50
TRANSACTION_NAME_MAX_LENGTH = 100

ColorTag = Annotated[
    str,
    Field(pattern=HEX_COLOR_PATTERN, description="Hex color, e.g. #1A2B3C"),
]
EntityName = Annotated[
    str,
    Field(min_length=1, max_length=NAME_MAX_LENGTH),
]
PositiveMoney = Annotated[
    Decimal,
    Field(gt=0, decimal_places=2),
]
NonNegativeMoney = Annotated[
    Decimal,
    Field(ge=0, decimal_places=2),
]


def as_utc(v: Optional[datetime]) -> Optional[datetime]:
    # Naive datetimes are taken to be UTC
    if v is not None and v.tzinfo is None:
        return v.replace(tzinfo=timezone.utc)
    return v


UtcDatetime = Annotated[datetime, AfterValidator(as_utc)]


class EntityKind(str, Enum):
    """Collections a user owns."""
    BUDGETS = "budgets"
    INCOMES = "incomes"
    POTS = "pots"
    TRANSACTIONS = "transactions"

    @property
    def singular(self) -> str:
        return self.value[:-1]


def user_collection(user_id: str, kind: EntityKind) -> str:
    """Path of the collection holding one user's documents of a kind."""
    return f"users/{user_id}/{kind.value}"


# =============================================================================
# BASE MODELS
# =============================================================================

class EntityDto(BaseModel):
    """
    Fields every stored entity exposes.

    user_id is intentionally absent: ownership is encoded in the
    collection path and never leaves the repositories.
    """
    model_config = ConfigDict(extra="ignore")

    id: str
    created_at: datetime
    updated_at: datetime


class MoneyOperation(BaseModel):
    """Amount moved into or out of a pot."""
    amount: PositiveMoney


def reject_explicit_null(v: Any) -> Any:
    """
    Used on update schemas: a field may be omitted, but a field that is
    sent must carry a value.
    """
    if v is None:
        raise ValueError("Field cannot be null")
    return v


# =============================================================================
# HELPERS
# =============================================================================

_ZERO_WIDTH_JOINER = "\u200d"
_VARIATION_SELECTORS = {"\ufe0e", "\ufe0f"}
_KEYCAP = "\u20e3"


def _is_skin_tone(char: str) -> bool:
    return 0x1F3FB <= ord(char) <= 0x1F3FF


def _is_tag(char: str) -> bool:
    return 0xE0020 <= ord(char) <= 0xE007F


def is_emoji_only(text: str) -> bool:
    """
    True when text is made up of emoji and nothing else.

    Joiners, variation selectors, skin tones, keycaps and tag sequences
    are accepted as parts of an emoji but do not count as one on their own.
    """
    if not text:
        return False

    seen_symbol = False
    for index, char in enumerate(text):
        if unicodedata.category(char) == "So":
            seen_symbol = True
        elif (
            char == _ZERO_WIDTH_JOINER
            or char in _VARIATION_SELECTORS
            or _is_skin_tone(char)
            or _is_tag(char)
            or char == _KEYCAP
        ):
            continue
        elif char in "#*0123456789" and _KEYCAP in text[index + 1:index + 3]:
            # Keycap base, e.g. "1" + VS16 + keycap
            seen_symbol = True
        else:
            return False
    return seen_symbol


def format_validation_errors(exc: PydanticValidationError) -> dict[str, str]:
    """
    Flatten a pydantic error into {dotted.field.path: message}.

    The first message per field wins. Errors raised by model-level
    validators have no location and are keyed "_schema".
    """
    errors: dict[str, str] = {}
    for error in exc.errors():
        loc = ".".join(str(part) for part in error.get("loc", ()))
        key = loc or "_schema"
        message = error.get("msg", "Invalid value")
        # Strip pydantic's "Value error, " prefix for custom validators
        if message.startswith("Value error, "):
            message = message[len("Value error, "):]
        errors.setdefault(key, message)
    return errors
