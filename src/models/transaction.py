"""
Core Data Models for Studio Ledger

These models define the schemas for data flowing through the AI
transaction-extraction pipeline:
1. What a provider returns (TransactionAnalysis)
2. How a user's provider credentials are stored (ProviderConfig)
3. What the user reviews before anything is saved (TransactionDraft)

DESIGN DECISION: TransactionAnalysis does NOT enforce the category
taxonomy itself. Model output is untrusted and is coerced by the
normalizer; this model only guarantees shape and value ranges.
"""

from datetime import date, datetime
from enum import Enum
from typing import Optional
from uuid import UUID, uuid4

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
)


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class TransactionType(str, Enum):
    """Direction of money flow for a project."""
    INCOME = "income"
    EXPENSE = "expense"


class ProviderName(str, Enum):
    """
    Supported LLM vendors.

    The value is the key used in the credential store.
    """
    GEMINI = "gemini"
    CLAUDE = "claude"


class DraftStatus(str, Enum):
    """
    Draft lifecycle.

    CRITICAL: Drafts are only CONFIRMED by explicit user action.
    """
    PENDING_REVIEW = "pending_review"
    CONFIRMED = "confirmed"
    REJECTED = "rejected"


# =============================================================================
# CATEGORY TAXONOMY
# =============================================================================

INCOME_CATEGORIES: tuple[str, ...] = (
    "Current Account",
    "Savings Account",
    "Cash",
    "Cheque",
    "Others",
)

EXPENSE_CATEGORIES: tuple[str, ...] = (
    "Measurements",
    "Designer/Architect",
    "Construction Material",
    "Labour",
    "Carpentry",
    "Electrical",
    "Plumbing",
    "Painting",
    "Furniture & Fixtures",
    "Transport",
    "Site Expenses",
    "Others",
)

TRANSACTION_CATEGORIES: dict[TransactionType, tuple[str, ...]] = {
    TransactionType.INCOME: INCOME_CATEGORIES,
    TransactionType.EXPENSE: EXPENSE_CATEGORIES,
}

# Used when a model omits or invents a category
DEFAULT_CATEGORIES: dict[TransactionType, str] = {
    TransactionType.INCOME: "Current Account",
    TransactionType.EXPENSE: "Others",
}

# Used when seeding an editable draft without a category
DRAFT_DEFAULT_CATEGORIES: dict[TransactionType, str] = {
    TransactionType.INCOME: "Current Account",
    TransactionType.EXPENSE: "Construction Material",
}


def categories_for(transaction_type: Optional[TransactionType]) -> tuple[str, ...]:
    """Allowed categories for a type (empty when the type is unknown)."""
    if transaction_type is None:
        return ()
    return TRANSACTION_CATEGORIES[transaction_type]


# =============================================================================
# AI ANALYSIS
# =============================================================================

class TransactionAnalysis(BaseModel):
    """
    Structured transaction extracted from a receipt image or a message.

    Constructed fresh by the normalizer on every successful call and
    never mutated afterwards. Field aliases match the JSON keys the
    models are asked to emit.
    """
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    amount: float = Field(
        default=0.0,
        ge=0,
        description="Amount in INR; 0 means the amount could not be determined"
    )
    # Only the text path leaves this unset
    type: Optional[TransactionType] = Field(
        default=TransactionType.EXPENSE,
        description="Income or expense"
    )
    category: Optional[str] = None
    subcategory: Optional[str] = None
    description: str = Field(default="Transaction")
    vendor_name: Optional[str] = Field(default=None, alias="vendorName")
    transaction_date: Optional[str] = Field(default=None, alias="transactionDate")
    payment_method: Optional[str] = Field(default=None, alias="paymentMethod")
    confidence: float = Field(default=0.8, ge=0.0, le=1.0)

    def to_payload(self) -> dict:
        """Serialize with the camelCase keys used on the wire."""
        return self.model_dump(mode="json", by_alias=True)


# =============================================================================
# PROVIDER SETTINGS
# =============================================================================

def mask_api_key(api_key: str) -> str:
    """
    Mask an API key for display and logs.

    Keeps the first and last four characters; short keys are returned
    unchanged since there is nothing meaningful to hide.
    """
    if len(api_key) <= 8:
        return api_key
    return api_key[:4] + "•" * (len(api_key) - 8) + api_key[-4:]


class ProviderConfig(BaseModel):
    """
    One user's settings for one provider.

    At most one row exists per (user_id, provider); saving again
    replaces the existing row.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    id: str = Field(
        default_factory=lambda: str(uuid4()),
        description="Row identifier in the credential store"
    )
    user_id: str = Field(..., min_length=1)
    provider: ProviderName
    api_key: str = Field(default="", description="Provider API key (secret)")
    is_active: bool = Field(default=True)
    priority: int = Field(
        default=1,
        ge=1,
        description="Failover rank; lower is tried first"
    )
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    @property
    def masked_api_key(self) -> str:
        return mask_api_key(self.api_key)

    def to_log_dict(self) -> dict:
        """Loggable view of the row (API key masked)."""
        return {
            "id": self.id,
            "user_id": self.user_id,
            "provider": self.provider.value,
            "api_key": self.masked_api_key,
            "is_active": self.is_active,
            "priority": self.priority,
        }


class ProviderStatus(BaseModel):
    """In-memory availability of one registered provider."""

    provider: ProviderName
    available: bool


# =============================================================================
# DRAFT TRANSACTIONS
# =============================================================================

class TransactionDraft(BaseModel):
    """
    A pending, unpersisted transaction seeded from an AI analysis.

    The user may edit any field before confirming. Nothing here is
    saved by this package; confirmed drafts are handed to the caller.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    draft_id: UUID = Field(default_factory=uuid4)
    project_id: Optional[str] = None
    amount: float = Field(..., ge=0)
    type: Optional[TransactionType] = None
    category: Optional[str] = None
    subcategory: Optional[str] = None
    description: Optional[str] = None
    vendor_name: Optional[str] = None
    payment_method: Optional[str] = None
    transaction_date: date = Field(default_factory=date.today)
    confidence: float = Field(default=0.8, ge=0.0, le=1.0)
    status: DraftStatus = Field(default=DraftStatus.PENDING_REVIEW)

    @field_validator("category")
    @classmethod
    def blank_category_is_none(cls, v: Optional[str]) -> Optional[str]:
        return v or None

    def update(self, **changes) -> "TransactionDraft":
        """Return a copy with user edits applied (re-validated)."""
        data = self.model_dump()
        data.update(changes)
        return TransactionDraft(**data)


# =============================================================================
# VALIDATION MODELS
# =============================================================================

class ValidationIssue(BaseModel):
    """A single problem found while validating a draft."""

    field: str
    issue_type: str = Field(
        description="Type: missing, invalid_value, out_of_taxonomy, suspicious_value, future_date, low_confidence"
    )
    message: str
    severity: str = Field(
        default="error",
        description="error blocks confirmation; warning does not"
    )
    suggested_fix: Optional[str] = None


class ValidationResult(BaseModel):
    """Outcome of validating a draft before confirmation."""

    draft_id: UUID
    is_valid: bool
    issues: list[ValidationIssue] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
    validated_at: datetime = Field(default_factory=datetime.utcnow)

    @property
    def has_errors(self) -> bool:
        return any(issue.severity == "error" for issue in self.issues)

    @property
    def error_count(self) -> int:
        return sum(1 for issue in self.issues if issue.severity == "error")


# =============================================================================
# FORMATTING
# =============================================================================

def format_inr(amount: float) -> str:
    """
    Format an amount in rupees with Indian digit grouping.

    >>> format_inr(100000)
    '₹1,00,000'
    """
    rounded = int(round(abs(amount)))
    digits = str(rounded)
    if len(digits) > 3:
        head, tail = digits[:-3], digits[-3:]
        groups = []
        while len(head) > 2:
            groups.insert(0, head[-2:])
            head = head[:-2]
        if head:
            groups.insert(0, head)
        digits = ",".join(groups) + "," + tail
    sign = "-" if amount < 0 and rounded else ""
    return f"{sign}₹{digits}"
