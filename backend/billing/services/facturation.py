from __future__ import annotations

import datetime as dt
import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from decimal import Decimal

from billing.models.enums import BillingModel, BillingPeriod
from billing.services.calendar import add_months, as_of_date, first_date, month_start, months_between, parse_date
from billing.services.money import (
    DEFAULT_TAX_RATE_PCT,
    ZERO,
    non_negative,
    parse_amount,
    tax_multiplier,
)
from billing.services.terms import (
    ContractTerms,
    MonthlyRate,
    PaymentFact,
    parse_billing_model,
    parse_billing_period,
)

logger = logging.getLogger(__name__)

RECURRING_MODELS = frozenset({BillingModel.RECURRING, BillingModel.MIXED})

# Length in months of the periods that accrue over time. ONE_TIME is absent on purpose:
# it is billed like a one-shot contract.
PRORATED_PERIOD_MONTHS: dict[BillingPeriod, int] = {
    BillingPeriod.MONTHLY: 1,
    BillingPeriod.QUARTERLY: 3,
    BillingPeriod.YEARLY: 12,
}

# (start, end, monthly HT amount) of a tariff period; end None means still in force.
RatePeriod = tuple[dt.date, dt.date | None, Decimal]


@dataclass(frozen=True)
class FacturationSnapshot:
    """
    Point-in-time billing figures for one contract.

    HT = excluding tax, TTC = including tax. `data_issues` lists every input that had
    to be coerced (bad date, bad number, incomplete payment); the figures are then
    conservative rather than wrong-looking.
    """

    tax_rate_pct: Decimal
    months_total: int
    months_elapsed: int

    engagement_total_ht: Decimal
    engagement_total_ttc: Decimal

    due_ht: Decimal
    due_ttc: Decimal

    paid_ht: Decimal
    paid_ttc: Decimal

    remaining_due_ht: Decimal
    remaining_due_ttc: Decimal

    engagement_future_ht: Decimal
    engagement_future_ttc: Decimal

    data_issues: tuple[str, ...] = ()

    @property
    def is_degraded(self) -> bool:
        return bool(self.data_issues)


@dataclass(frozen=True)
class PortfolioSummary:
    contracts_count: int
    engagement_total_ht: Decimal
    engagement_total_ttc: Decimal
    paid_ht: Decimal
    paid_ttc: Decimal
    remaining_due_ht: Decimal
    remaining_due_ttc: Decimal
    recurring_current_month_ht: Decimal
    recurring_current_month_ttc: Decimal
    recurring_next_month_ht: Decimal
    recurring_next_month_ttc: Decimal


def _amount(value, field: str, issues: list[str]) -> Decimal:
    d = parse_amount(value)
    if d is None:
        if value is not None and str(value).strip():
            issues.append(f"invalid_amount:{field}")
        return ZERO
    return d


def _date(value, field: str, issues: list[str]) -> dt.date | None:
    d = parse_date(value)
    if d is None and value is not None and str(value).strip():
        issues.append(f"invalid_date:{field}")
    return d


def resolve_tax_rate(value, *, default_tax_rate_pct: Decimal, issues: list[str]) -> Decimal:
    """Contract rate, or the configured default when unset. Malformed or negative -> 0."""
    if value is None:
        return default_tax_rate_pct
    rate = _amount(value, "tax_rate_pct", issues)
    if rate < 0:
        issues.append("negative_tax_rate")
        return ZERO
    return rate


def commitment_months(value, issues: list[str]) -> int:
    """Explicit commitment in whole months; 0 when unset, not positive or not a whole number."""
    n = _amount(value, "months_of_commitment", issues)
    if n <= 0:
        return 0
    if n != n.to_integral_value():
        issues.append("invalid_amount:months_of_commitment")
        return 0
    return int(n)


def months_of_commitment(
    explicit,
    start: dt.date | None,
    end: dt.date | None,
    issues: list[str],
) -> int:
    """
    Total months of commitment.

    An explicit positive whole value wins; otherwise calendar months from start to
    planned end, both included; otherwise 0.
    """
    n = commitment_months(explicit, issues)
    if n > 0:
        return n
    if start is not None and end is not None:
        total = months_between(start, end) + 1
        if total < 0:
            issues.append("inconsistent_duration")
            return 0
        return total
    return 0


def prorated_period_months(model: BillingModel | None, period: BillingPeriod | None) -> int | None:
    """Period length in months when the contract accrues over time, else None."""
    if model not in RECURRING_MODELS or period is None:
        return None
    return PRORATED_PERIOD_MONTHS.get(period)


def elapsed_months(start: dt.date, ref: dt.date, *, months_total: int, period_months: int = 1) -> int:
    """
    Months accrued at `ref`, counting whole started periods from the start month.

    The current period counts as soon as it has begun; the result is clamped to
    [0, months_total].
    """
    raw_diff = months_between(month_start(start), month_start(ref))
    started_periods = raw_diff // period_months + 1
    return min(max(started_periods * period_months, 0), months_total)


def sum_payments(
    payments: Iterable[PaymentFact] | None,
    multiplier: Decimal,
    issues: list[str],
) -> tuple[Decimal, Decimal]:
    """
    Returns (paid_ht, paid_ttc).

    A missing side is derived from the other through the tax multiplier; a payment
    with neither side contributes nothing.
    """
    paid_ht = ZERO
    paid_ttc = ZERO
    for p in payments or ():
        if p.amount_excl_tax is None and p.amount_incl_tax is None:
            issues.append("incomplete_payment")
            continue
        if p.amount_incl_tax is not None:
            ttc = _amount(p.amount_incl_tax, "payment.amount_incl_tax", issues)
        else:
            ttc = _amount(p.amount_excl_tax, "payment.amount_excl_tax", issues) * multiplier
        if p.amount_excl_tax is not None:
            ht = _amount(p.amount_excl_tax, "payment.amount_excl_tax", issues)
        else:
            ht = ttc / multiplier
        paid_ht += ht
        paid_ttc += ttc
    return paid_ht, paid_ttc


def compute_facturation_snapshot(
    contract: ContractTerms,
    payments: Sequence[PaymentFact] | None = (),
    today: dt.date | dt.datetime | None = None,
    *,
    default_tax_rate_pct: Decimal = DEFAULT_TAX_RATE_PCT,
) -> FacturationSnapshot:
    """
    Engagement, accrued-to-date, paid, remaining and future amounts of a contract.

    Never raises: unusable inputs are coerced to 0 / absent and listed in
    `data_issues`.
    """
    issues: list[str] = []
    ref = as_of_date(today)

    tax_rate = resolve_tax_rate(contract.tax_rate_pct, default_tax_rate_pct=default_tax_rate_pct, issues=issues)
    multiplier = tax_multiplier(tax_rate)

    total_amount_ht = _amount(contract.total_amount_excl_tax, "total_amount_excl_tax", issues)
    monthly_ht = _amount(contract.monthly_amount_excl_tax, "monthly_amount_excl_tax", issues)
    one_shot_ht = _amount(contract.one_shot_amount_excl_tax, "one_shot_amount_excl_tax", issues)

    start = _date(contract.start_date, "start_date", issues)
    end = _date(contract.planned_end_date, "planned_end_date", issues)

    model = parse_billing_model(contract.billing_model)
    if model is None:
        issues.append("unknown_billing_model")
    period = parse_billing_period(contract.billing_period)
    if period is None:
        issues.append("unknown_billing_period")

    months_total = months_of_commitment(contract.months_of_commitment, start, end, issues)
    period_months = prorated_period_months(model, period)

    if period_months is not None:
        engagement_total_ht = monthly_ht * months_total + one_shot_ht
    else:
        engagement_total_ht = total_amount_ht if total_amount_ht > 0 else one_shot_ht

    if period_months is not None and start is not None and months_total > 0:
        months_elapsed = elapsed_months(start, ref, months_total=months_total, period_months=period_months)
        due_ht = monthly_ht * months_elapsed + (one_shot_ht if ref >= start else ZERO)
    else:
        # Nothing accrues over time: everything is due from the start date.
        months_elapsed = 0
        due_ht = engagement_total_ht if start is None or ref >= start else ZERO

    paid_ht, paid_ttc = sum_payments(payments, multiplier, issues)

    due_ttc = due_ht * multiplier
    engagement_future_ht = non_negative(engagement_total_ht - due_ht)

    if issues:
        logger.debug("facturation_snapshot: degraded inputs=%s", ",".join(issues))

    return FacturationSnapshot(
        tax_rate_pct=tax_rate,
        months_total=months_total,
        months_elapsed=months_elapsed,
        engagement_total_ht=engagement_total_ht,
        engagement_total_ttc=engagement_total_ht * multiplier,
        due_ht=due_ht,
        due_ttc=due_ttc,
        paid_ht=paid_ht,
        paid_ttc=paid_ttc,
        remaining_due_ht=non_negative(due_ht - paid_ht),
        remaining_due_ttc=non_negative(due_ttc - paid_ttc),
        engagement_future_ht=engagement_future_ht,
        engagement_future_ttc=engagement_future_ht * multiplier,
        data_issues=tuple(dict.fromkeys(issues)),
    )


def has_remaining_due(snapshot: FacturationSnapshot, tolerance: Decimal = Decimal("0.01")) -> bool:
    return snapshot.remaining_due_ttc > tolerance


def rate_periods(rates: Iterable[MonthlyRate] | None) -> list[RatePeriod]:
    """Tariff periods sorted by start. Undated or non-positive periods are skipped."""
    periods: list[RatePeriod] = []
    for r in rates or ():
        start = parse_date(r.start_date)
        amount = parse_amount(r.amount_excl_tax)
        if start is None or amount is None or amount <= 0:
            continue
        periods.append((start, parse_date(r.end_date), amount))
    periods.sort(key=lambda p: p[0])
    return periods


def monthly_rate_for_month(periods: Sequence[RatePeriod], month: dt.date, fallback_ht: Decimal) -> Decimal:
    """Amount of the latest period covering `month`, else the contract's own monthly amount."""
    for start, end, amount in reversed(periods):
        if start <= month and (end is None or end >= month):
            return amount
    return non_negative(fallback_ht)


def recurring_amount_for_month(
    contract: ContractTerms,
    month: dt.date,
    *,
    default_tax_rate_pct: Decimal = DEFAULT_TAX_RATE_PCT,
) -> tuple[Decimal, Decimal]:
    """
    (HT, TTC) recurring amount billed for the month containing `month`.

    The monthly amount comes from the tariff period in force that month, else from
    the contract. Quarterly and yearly contracts bill a whole period in its first
    month, like their snapshot accrues it. Zero before the start month and after the
    committed end month; open-ended when the contract has neither a commitment nor a
    planned end date. The start falls back to the signature date, then to the first
    tariff period.
    """
    issues: list[str] = []
    model = parse_billing_model(contract.billing_model)
    period_months = prorated_period_months(model, parse_billing_period(contract.billing_period))
    if period_months is None:
        return ZERO, ZERO

    monthly_ht = _amount(contract.monthly_amount_excl_tax, "monthly_amount_excl_tax", issues)
    periods = rate_periods(contract.monthly_rates)
    if not periods and monthly_ht <= 0:
        return ZERO, ZERO

    start = first_date(contract.start_date, contract.signature_date)
    if start is None and periods:
        start = periods[0][0]
    if start is None:
        return ZERO, ZERO

    start_month = month_start(start)
    target = month_start(month)
    offset = months_between(start_month, target)
    if offset < 0:
        return ZERO, ZERO

    # Month offsets only: a long commitment may end past the last representable date.
    last_offset = None
    commitment = commitment_months(contract.months_of_commitment, issues)
    if commitment > 0:
        last_offset = commitment - 1
    else:
        end = parse_date(contract.planned_end_date)
        if end is not None:
            last_offset = months_between(start_month, end)

    if last_offset is not None and offset > last_offset:
        return ZERO, ZERO
    if offset % period_months:
        return ZERO, ZERO

    billed_months = period_months
    if last_offset is not None:
        billed_months = min(period_months, last_offset - offset + 1)

    rate_ht = monthly_rate_for_month(periods, target, monthly_ht)
    if rate_ht <= 0:
        return ZERO, ZERO

    ht = rate_ht * billed_months
    tax_rate = resolve_tax_rate(contract.tax_rate_pct, default_tax_rate_pct=default_tax_rate_pct, issues=issues)
    return ht, ht * tax_multiplier(tax_rate)


def summarize_portfolio(
    entries: Iterable[tuple[ContractTerms, Sequence[PaymentFact]]],
    today: dt.date | dt.datetime | None = None,
    *,
    default_tax_rate_pct: Decimal = DEFAULT_TAX_RATE_PCT,
) -> PortfolioSummary:
    """Totals across contracts, plus the recurring amounts of the current and next month."""
    ref = as_of_date(today)
    current_month = month_start(ref)
    next_month = add_months(current_month, 1)

    count = 0
    eng_ht = eng_ttc = paid_ht = paid_ttc = rest_ht = rest_ttc = ZERO
    cur_ht = cur_ttc = nxt_ht = nxt_ttc = ZERO

    for contract, payments in entries:
        snap = compute_facturation_snapshot(contract, payments, ref, default_tax_rate_pct=default_tax_rate_pct)
        count += 1
        eng_ht += snap.engagement_total_ht
        eng_ttc += snap.engagement_total_ttc
        paid_ht += snap.paid_ht
        paid_ttc += snap.paid_ttc
        rest_ht += snap.remaining_due_ht
        rest_ttc += snap.remaining_due_ttc

        ht, ttc = recurring_amount_for_month(contract, current_month, default_tax_rate_pct=default_tax_rate_pct)
        cur_ht += ht
        cur_ttc += ttc
        ht, ttc = recurring_amount_for_month(contract, next_month, default_tax_rate_pct=default_tax_rate_pct)
        nxt_ht += ht
        nxt_ttc += ttc

    return PortfolioSummary(
        contracts_count=count,
        engagement_total_ht=eng_ht,
        engagement_total_ttc=eng_ttc,
        paid_ht=paid_ht,
        paid_ttc=paid_ttc,
        remaining_due_ht=rest_ht,
        remaining_due_ttc=rest_ttc,
        recurring_current_month_ht=cur_ht,
        recurring_current_month_ttc=cur_ttc,
        recurring_next_month_ht=nxt_ht,
        recurring_next_month_ttc=nxt_ttc,
    )
