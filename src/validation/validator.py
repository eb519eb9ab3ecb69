"""
Draft Validation

DESIGN DECISION: An AI analysis is never saved directly. It seeds an
editable draft, and the draft is validated before the user confirms it.

Checks fall into two severities:

ERRORS (block confirmation):
- Missing or non-positive amount
- Missing transaction type
- Category outside the taxonomy for the type

WARNINGS (shown, but the user may proceed):
- Low model confidence
- Unusually large amount
- Transaction dated in the future

IMPORTANT: Validation NEVER silently fixes issues.
It reports them for human review.
"""

from datetime import date, timedelta
from typing import Optional

from src.config import AppSettings, get_settings
from src.models.transaction import (
    DRAFT_DEFAULT_CATEGORIES,
    TransactionAnalysis,
    TransactionDraft,
    ValidationIssue,
    ValidationResult,
    categories_for,
    format_inr,
)
from src.providers.parsing import to_calendar_date


class TransactionValidator:
    """
    Builds drafts from analyses and validates them before confirmation.
    """

    def __init__(self, settings: Optional[AppSettings] = None):
        self._settings = settings or get_settings().app

    def build_draft(
        self,
        analysis: TransactionAnalysis,
        project_id: Optional[str] = None,
    ) -> Optional[TransactionDraft]:
        """
        Seed an editable draft from an analysis.

        Returns None unless the analysis has both an amount and a type;
        there is nothing useful to confirm otherwise.
        """
        if not analysis.amount or analysis.type is None:
            return None

        return TransactionDraft(
            project_id=project_id,
            amount=analysis.amount,
            type=analysis.type,
            category=analysis.category or DRAFT_DEFAULT_CATEGORIES[analysis.type],
            subcategory=analysis.subcategory,
            description=analysis.description,
            vendor_name=analysis.vendor_name,
            payment_method=analysis.payment_method,
            transaction_date=to_calendar_date(analysis.transaction_date) or date.today(),
            confidence=analysis.confidence,
        )

    def _check_required(self, draft: TransactionDraft) -> list[ValidationIssue]:
        issues = []

        if draft.amount <= 0:
            issues.append(ValidationIssue(
                field="amount",
                issue_type="invalid_value",
                message="Amount must be greater than zero",
                severity="error",
                suggested_fix="Check if the amount was read correctly",
            ))

        if draft.type is None:
            issues.append(ValidationIssue(
                field="type",
                issue_type="missing",
                message="Please choose whether this is income or expense",
                severity="error",
            ))
            return issues

        allowed = categories_for(draft.type)
        if draft.category is None:
            issues.append(ValidationIssue(
                field="category",
                issue_type="missing",
                message="Category is required",
                severity="error",
                suggested_fix=f"Choose one of: {', '.join(allowed)}",
            ))
        elif draft.category.lower() not in {c.lower() for c in allowed}:
            issues.append(ValidationIssue(
                field="category",
                issue_type="out_of_taxonomy",
                message=f"\"{draft.category}\" is not a valid {draft.type.value} category",
                severity="error",
                suggested_fix=f"Choose one of: {', '.join(allowed)}",
            ))

        return issues

    def _check_plausibility(self, draft: TransactionDraft) -> list[ValidationIssue]:
        issues = []

        if draft.confidence < self._settings.low_confidence_threshold:
            issues.append(ValidationIssue(
                field="confidence",
                issue_type="low_confidence",
                message=f"The assistant was not very sure about this ({draft.confidence:.0%})",
                severity="warning",
                suggested_fix="Please review all fields carefully",
            ))

        if draft.amount > self._settings.max_transaction_amount:
            issues.append(ValidationIssue(
                field="amount",
                issue_type="suspicious_value",
                message=f"Amount ({format_inr(draft.amount)}) seems unusually high",
                severity="warning",
                suggested_fix="Please verify this amount is correct",
            ))

        # Future date check (with tolerance)
        max_future_date = date.today() + timedelta(days=self._settings.future_date_tolerance_days)
        if draft.transaction_date > max_future_date:
            issues.append(ValidationIssue(
                field="transaction_date",
                issue_type="future_date",
                message=f"Transaction date ({draft.transaction_date}) is in the future",
                severity="warning",
                suggested_fix="Please verify the date is correct",
            ))

        return issues

    def validate(self, draft: TransactionDraft) -> ValidationResult:
        """
        Validate a draft before confirmation.

        Returns:
            ValidationResult; is_valid is False when any error was found
        """
        issues = self._check_required(draft) + self._check_plausibility(draft)
        warnings = [issue.message for issue in issues if issue.severity == "warning"]

        return ValidationResult(
            draft_id=draft.draft_id,
            is_valid=not any(issue.severity == "error" for issue in issues),
            issues=issues,
            warnings=warnings,
        )

    def get_user_friendly_summary(
        self,
        result: ValidationResult,
    ) -> str:
        """
        Generate a user-friendly summary of validation results.

        This is what we show to non-technical users.
        """
        if result.is_valid and not result.warnings:
            return "✅ All checks passed! Please review the details below."

        lines = []

        if result.has_errors:
            lines.append("❌ Some details need fixing:")
            for issue in result.issues:
                if issue.severity == "error":
                    lines.append(f"   • {issue.message}")
                    if issue.suggested_fix:
                        lines.append(f"     💡 {issue.suggested_fix}")

        if result.warnings:
            if lines:
                lines.append("")
            lines.append("⚠️ Please verify the following:")
            for warning in result.warnings:
                lines.append(f"   • {warning}")

        lines.append("")
        if result.is_valid:
            lines.append("You can still proceed, but please review carefully.")
        else:
            lines.append("Please fix the issues above before continuing.")

        return "\n".join(lines)
