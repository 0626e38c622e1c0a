from __future__ import annotations

import datetime as dt
from dataclasses import dataclass

from billing.models.enums import BillingModel
from billing.services.calendar import DateLike, as_of_date, first_date
from billing.services.terms import parse_billing_model


@dataclass(frozen=True)
class InitialBillingDates:
    one_shot_invoice_date: dt.date | None
    recurring_start_date: dt.date | None


def compute_initial_billing_dates(
    billing_model: BillingModel | str | None,
    contract_start_date: DateLike = None,
    explicit_recurring_start: DateLike = None,
    today: dt.date | dt.datetime | None = None,
) -> InitialBillingDates:
    """
    Billing dates to store when a contract is created.

    - one_shot: invoiced today, no recurring part.
    - recurring: recurring start = explicit start, else contract start, else today.
    - mixed: both of the above.
    """
    model = parse_billing_model(billing_model)
    base = as_of_date(today)

    one_shot_invoice_date = None
    recurring_start_date = None

    if model in (BillingModel.ONE_SHOT, BillingModel.MIXED):
        one_shot_invoice_date = base
    if model in (BillingModel.RECURRING, BillingModel.MIXED):
        recurring_start_date = first_date(explicit_recurring_start, contract_start_date) or base

    return InitialBillingDates(
        one_shot_invoice_date=one_shot_invoice_date,
        recurring_start_date=recurring_start_date,
    )
