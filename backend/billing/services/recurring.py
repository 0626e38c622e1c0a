from __future__ import annotations

import datetime as dt

from billing.models.enums import BillingModel, ContractStatus
from billing.services.calendar import as_of_date, parse_date
from billing.services.terms import ContractTerms, parse_billing_model, parse_contract_status

# Signed-but-not-started contracts do not bill recurring amounts yet.
RECURRING_BILLABLE_STATUSES = frozenset({ContractStatus.ACTIVE, ContractStatus.COMPLETED})


def can_start_recurring_billing(contract: ContractTerms, now: dt.date | dt.datetime | None = None) -> bool:
    """
    True once a recurring or mixed contract is active (or completed) and its
    recurring billing start date has been reached.

    A missing or malformed start date means "not yet eligible", never an error.
    """
    model = parse_billing_model(contract.billing_model)
    if model is None or model == BillingModel.ONE_SHOT:
        return False

    if parse_contract_status(contract.status) not in RECURRING_BILLABLE_STATUSES:
        return False

    start = parse_date(contract.recurring_billing_start_date)
    if start is None:
        return False

    return start <= as_of_date(now)
