"""Leave entitlement policy: the fixed annual entitlement, the effective-year gate, and usage buckets."""

from __future__ import annotations

from dataclasses import dataclass

from leave_balance.config import get_settings
from leave_balance.exceptions import PolicyNotApplicable
from leave_balance.models.enums import UsageCategory

ANNUAL_ENTITLEMENT = 45
EFFECTIVE_YEAR = 2025

# Inclusive upper bounds of used/entitlement for the buckets above NO_LEAVE_TAKEN.
_LOW_USAGE_MAX_RATIO = 0.25
_MODERATE_USAGE_MAX_RATIO = 0.50


@dataclass(frozen=True)
class EntitlementPolicy:
    """Fixed annual entitlement applied to every employee regardless of group."""

    annual_entitlement: int = ANNUAL_ENTITLEMENT
    effective_year: int = EFFECTIVE_YEAR

    def is_applicable(self, year: int) -> bool:
        return year >= self.effective_year

    def ensure_applicable(self, year: int) -> None:
        """Raise PolicyNotApplicable when the year precedes the effective policy year."""
        if not self.is_applicable(year):
            raise PolicyNotApplicable(year, self.effective_year)

    def remaining_for(self, used_days: int) -> int:
        """Remaining entitlement after used_days, floored at zero."""
        return max(0, self.annual_entitlement - used_days)


def categorize_usage(used_days: int, annual_entitlement: int) -> UsageCategory:
    """Bucket a balance by the share of its entitlement already used.

    Computed at read time from persisted numbers and never stored, so the
    thresholds can change without touching existing rows.
    """
    if used_days <= 0:
        return UsageCategory.NO_LEAVE_TAKEN
    if annual_entitlement <= 0:
        return UsageCategory.HIGH_USAGE

    ratio = used_days / annual_entitlement
    if ratio <= _LOW_USAGE_MAX_RATIO:
        return UsageCategory.LOW_USAGE
    if ratio <= _MODERATE_USAGE_MAX_RATIO:
        return UsageCategory.MODERATE_USAGE
    return UsageCategory.HIGH_USAGE


def get_entitlement_policy() -> EntitlementPolicy:
    """Build the policy from application settings."""
    settings = get_settings()
    return EntitlementPolicy(
        annual_entitlement=settings.annual_entitlement,
        effective_year=settings.effective_year,
    )
