"""User-facing copy for every insight the rules can produce."""
from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from .models import InsightKind
from .services import InsightDraft

CENTS = Decimal("0.01")


def money(value: Decimal) -> str:
    return f"{Decimal(value).quantize(CENTS):.2f}"


@dataclass(frozen=True, slots=True)
class InsightTemplate:
    kind: InsightKind
    title: str
    body: str
    rationale: str
    category: str | None = None  # None: use the triggering record's category

    def render(self, *, date_bucket: date, category: str | None = None, **values: str) -> InsightDraft:
        resolved_category = self.category or category or ""
        fields = {"category": resolved_category, **values}
        return InsightDraft(
            kind=self.kind,
            title=self.title.format(**fields),
            body=self.body.format(**fields),
            category=resolved_category,
            rationale=self.rationale,
            date_bucket=date_bucket,
        )


HIGH_SPENDING = InsightTemplate(
    kind=InsightKind.ALERT,
    title="High Spending on {category}",
    body="You spent ${amount} on {category}. Your 4-week avg is ~${average}.",
    rationale="Your recent expense is significantly above your average.",
)

CATEGORY_SPIKE = InsightTemplate(
    kind=InsightKind.ALERT,
    title="Category Spike: {category}",
    body="You spent ${amount} on {category}. 7-day avg: ~${average}.",
    rationale="This transaction is far above normal activity for this category.",
)

NEW_CATEGORY = InsightTemplate(
    kind=InsightKind.ALERT,
    title="New Category: {category}",
    body='You spent ${amount} on "{category}" for the first time.',
    rationale="You've never spent in this category before.",
)

INCOME_DROP = InsightTemplate(
    kind=InsightKind.ALERT,
    title="Income Drop Alert",
    body="Your new income of ${amount} is less than half your recent average of ~${average}.",
    rationale="Latest income is significantly lower than your previous average.",
    category="Income",
)

NEGATIVE_BALANCE = InsightTemplate(
    kind=InsightKind.ALERT,
    title="Negative Balance Alert",
    body="Your spending has exceeded income this month. Spent: ${expense}, Earned: ${income}.",
    rationale="Your expenses this month have exceeded your income.",
    category="Budget",
)

STRONG_RECOVERY = InsightTemplate(
    kind=InsightKind.ADVICE,
    title="Strong Financial Recovery!",
    body=(
        "Awesome! Your income (${income}) is up significantly and exceeds your "
        "expenses (${expense}). Keep it up!"
    ),
    rationale="Your income now exceeds your expenses this month.",
    category="Budget",
)

BALANCE_RECOVERED = InsightTemplate(
    kind=InsightKind.ADVICE,
    title="Balance Back to Positive!",
    body="Great job! Your income (${income}) has exceeded expenses (${expense}) for this month.",
    rationale="Your income now exceeds your expenses this month.",
    category="Budget",
)

# Emitted when a deleted expense brings the month back out of the red.
BALANCE_RESTORED = InsightTemplate(
    kind=InsightKind.ADVICE,
    title="Balance Back to Positive!",
    body="Your income (${income}) has exceeded expenses (${expense}) for this month.",
    rationale="Your income now exceeds your expenses this month.",
    category="Budget",
)

BUDGET_BREACH = InsightTemplate(
    kind=InsightKind.ALERT,
    title="Budget Breach Alert",
    body="You spent ${expense} but earned only ${income} last month.",
    rationale="Your total expenses exceeded your income last month.",
    category="Budget",
)

RECOVERY_TITLES = (STRONG_RECOVERY.title, BALANCE_RECOVERED.title)
