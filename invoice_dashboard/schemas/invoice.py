# schemas/invoice.py - Invoice Form Schemas
# ============================================================================

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic_core import ErrorDetails, PydanticCustomError
import datetime
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Dict, List, Mapping, Optional
from invoice_dashboard.models.invoice import InvoiceStatus

CUSTOMER_REQUIRED = "Please select a customer"
CUSTOMER_INVALID = "Please select a valid customer"
AMOUNT_NOT_POSITIVE = "Please enter an amount greater than $0"
AMOUNT_INVALID = "Please enter a valid amount"
AMOUNT_TOO_LARGE = "Please enter an amount no greater than $21,474,836.47"
STATUS_REQUIRED = "Please select an invoice status"
STATUS_INVALID = "Please select a valid invoice status"

# The amount column holds cents in a 32-bit integer
MAX_AMOUNT = Decimal("21474836.47")


def to_cents(amount: Decimal) -> int:
    return int((amount * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


class FieldErrors(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    customer_id: Optional[List[str]] = Field(default=None, alias="customerId")
    amount: Optional[List[str]] = None
    status: Optional[List[str]] = None


class FormState(BaseModel):
    """Outcome of one form submission, rendered back to the caller."""

    errors: Optional[FieldErrors] = None
    message: Optional[str] = None

    def to_response_body(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


class InvoiceForm(BaseModel):
    """Fields a user may submit when creating or editing an invoice.

    ``id`` and ``date`` are never read from the form: ids come from the
    route and dates are stamped server side.
    """

    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)

    customer_id: str = Field(alias="customerId", min_length=1)
    amount: Decimal = Field(gt=0, le=MAX_AMOUNT)
    status: InvoiceStatus

    @field_validator("amount", mode="before")
    @classmethod
    def blank_amount_is_zero(cls, value: Any) -> Any:
        # An empty number input submits "", which counts as 0
        if isinstance(value, str):
            value = value.strip()
            if not value:
                return Decimal(0)
        return value

    @field_validator("amount")
    @classmethod
    def at_least_one_cent(cls, value: Decimal) -> Decimal:
        if to_cents(value) <= 0:
            raise PydanticCustomError("amount_below_one_cent", "Amount rounds to zero cents")
        return value

    @field_validator("status", mode="before")
    @classmethod
    def strip_status(cls, value: Any) -> Any:
        return value.strip() if isinstance(value, str) else value

    @property
    def amount_in_cents(self) -> int:
        return to_cents(self.amount)

    @classmethod
    def safe_parse(cls, raw: Mapping[str, Any]) -> "ParseResult":
        try:
            return ParseResult(success=True, data=cls.model_validate(dict(raw)))
        except ValidationError as exc:
            return ParseResult(success=False, errors=flatten_errors(exc))


class ParseResult(BaseModel):
    success: bool
    data: Optional[InvoiceForm] = None
    errors: Optional[FieldErrors] = None


def _message_for(field: str, error: ErrorDetails) -> str:
    kind = error["type"]
    if field == "customerId":
        if kind in ("missing", "string_too_short"):
            return CUSTOMER_REQUIRED
        return CUSTOMER_INVALID
    if field == "amount":
        if kind in ("greater_than", "amount_below_one_cent"):
            return AMOUNT_NOT_POSITIVE
        if kind == "less_than_equal":
            return AMOUNT_TOO_LARGE
        return AMOUNT_INVALID
    if field == "status":
        if kind == "missing" or error.get("input") == "":
            return STATUS_REQUIRED
        return STATUS_INVALID
    return error["msg"]


def flatten_errors(exc: ValidationError) -> FieldErrors:
    """Group validation errors by form field, one message per failure."""
    grouped: Dict[str, List[str]] = {}
    for error in exc.errors():
        field = str(error["loc"][0]) if error["loc"] else "form"
        message = _message_for(field, error)
        messages = grouped.setdefault(field, [])
        if message not in messages:
            messages.append(message)
    return FieldErrors.model_validate(grouped)


class InvoiceListItem(BaseModel):
    id: str
    amount: int
    date: datetime.date
    status: InvoiceStatus
    name: str
    email: str
    image_url: Optional[str] = None
