import datetime as dt

from billing.models.enums import BillingModel, ContractStatus
from billing.services.recurring import can_start_recurring_billing
from billing.services.terms import ContractTerms


def _contract(model=BillingModel.RECURRING, status=ContractStatus.ACTIVE, start="2024-01-01") -> ContractTerms:
    return ContractTerms(billing_model=model, status=status, recurring_billing_start_date=start)


def test_draft_contract_cannot_start_regardless_of_date():
    """Status gate fails first."""
    contract = _contract(status=ContractStatus.DRAFT)
    assert can_start_recurring_billing(contract, dt.date(2025, 1, 1)) is False


def test_one_shot_never_starts_recurring_billing():
    contract = _contract(model=BillingModel.ONE_SHOT)
    assert can_start_recurring_billing(contract, dt.date(2030, 1, 1)) is False


def test_signed_but_not_active_cannot_start():
    for status in (ContractStatus.AWAITING_SIGNATURE, ContractStatus.SIGNED, ContractStatus.CANCELLED):
        assert can_start_recurring_billing(_contract(status=status), dt.date(2025, 1, 1)) is False


def test_active_or_completed_after_start_date():
    assert can_start_recurring_billing(_contract(), dt.date(2024, 6, 1)) is True
    assert can_start_recurring_billing(_contract(status=ContractStatus.COMPLETED), dt.date(2024, 6, 1)) is True
    assert can_start_recurring_billing(_contract(model=BillingModel.MIXED), dt.date(2024, 6, 1)) is True


def test_start_date_itself_is_eligible():
    assert can_start_recurring_billing(_contract(), dt.date(2024, 1, 1)) is True
    assert can_start_recurring_billing(_contract(), dt.datetime(2024, 1, 1, 0, 0)) is True


def test_before_start_date_is_not_eligible():
    assert can_start_recurring_billing(_contract(), dt.date(2023, 12, 31)) is False


def test_missing_or_malformed_start_date_is_not_eligible():
    assert can_start_recurring_billing(_contract(start=None), dt.date(2025, 1, 1)) is False
    assert can_start_recurring_billing(_contract(start="bientôt"), dt.date(2025, 1, 1)) is False


def test_raw_store_values_are_understood():
    contract = ContractTerms(billing_model="recurrent", status="en_cours", recurring_billing_start_date="2024-01-01")
    assert can_start_recurring_billing(contract, dt.date(2024, 2, 1)) is True


def test_unknown_model_or_status_is_not_eligible():
    assert can_start_recurring_billing(_contract(model="weekly"), dt.date(2025, 1, 1)) is False
    assert can_start_recurring_billing(_contract(status="archived"), dt.date(2025, 1, 1)) is False
