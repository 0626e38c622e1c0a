"""Plain values the billing engine reads. Built by callers, never mutated here."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from billing.models.enums import BillingModel, BillingPeriod, ContractStatus
from billing.services.calendar import DateLike

Amount = Decimal | int | float | str | None


@dataclass(frozen=True)
class MonthlyRate:
    """Monthly HT amount in force from `start_date` to `end_date` (open when None)."""

    start_date: DateLike = None
    end_date: DateLike = None
    amount_excl_tax: Amount = None


@dataclass(frozen=True)
class ContractTerms:
    billing_model: BillingModel | str | None
    billing_period: BillingPeriod | str | None = BillingPeriod.ONE_TIME
    tax_rate_pct: Amount = None
    total_amount_excl_tax: Amount = None
    one_shot_amount_excl_tax: Amount = None
    monthly_amount_excl_tax: Amount = None
    start_date: DateLike = None
    planned_end_date: DateLike = None
    months_of_commitment: int | str | None = None
    status: ContractStatus | str | None = None
    recurring_billing_start_date: DateLike = None
    signature_date: DateLike = None
    monthly_rates: tuple[MonthlyRate, ...] = ()


@dataclass(frozen=True)
class PaymentFact:
    payment_date: DateLike = None
    amount_excl_tax: Amount = None
    amount_incl_tax: Amount = None


def parse_billing_model(value: BillingModel | str | None) -> BillingModel | None:
    if value is None:
        return None
    try:
        return BillingModel(value)
    except ValueError:
        return None


def parse_billing_period(value: BillingPeriod | str | None) -> BillingPeriod | None:
    if value is None:
        return None
    try:
        return BillingPeriod(value)
    except ValueError:
        return None


def parse_contract_status(value: ContractStatus | str | None) -> ContractStatus | None:
    if value is None:
        return None
    try:
        return ContractStatus(value.strip() if isinstance(value, str) else value)
    except ValueError:
        return None
