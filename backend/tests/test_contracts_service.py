"""Tests for the contract billing adapter (rows from the contracts store -> snapshots)."""

import datetime as dt
from decimal import Decimal

import pytest
from fastapi import HTTPException
from sqlalchemy.orm import Session

from billing.models.contract import Contract, ContractMonthlyRate, ContractPayment
from billing.models.enums import ContractStatusFilter
from billing.services.contracts import (
    client_facturation,
    contract_facturation,
    contract_recurring_eligibility,
    matches_status_filter,
    to_snapshot_out,
)


def _monthly_contract(db: Session, **overrides) -> Contract:
    fields = {
        "client_id": 1,
        "title": "Maintenance site vitrine",
        "status": "en_cours",
        "billing_model": "recurrent",
        "billing_period": "monthly",
        "tax_rate_pct": Decimal("20.00"),
        "monthly_amount_excl_tax": Decimal("100.00"),
        "start_date": dt.date(2024, 1, 1),
        "months_of_commitment": 12,
        "signature_date": dt.date(2023, 12, 15),
        "recurring_billing_start_date": dt.date(2024, 1, 1),
    }
    fields.update(overrides)
    c = Contract(**fields)
    db.add(c)
    db.commit()
    db.refresh(c)
    return c


def _one_shot_contract(db: Session, **overrides) -> Contract:
    fields = {
        "client_id": 1,
        "title": "Refonte logo",
        "status": "signe",
        "billing_model": "one_shot",
        "billing_period": "one_time",
        "tax_rate_pct": None,
        "total_amount_excl_tax": Decimal("1000.00"),
        "signature_date": dt.date(2024, 2, 1),
    }
    fields.update(overrides)
    c = Contract(**fields)
    db.add(c)
    db.commit()
    db.refresh(c)
    return c


def test_contract_facturation_reads_payments(db: Session):
    c = _monthly_contract(db)
    db.add(ContractPayment(contract_id=c.id, payment_date=dt.date(2024, 2, 1), amount_incl_tax=Decimal("120.00")))
    db.commit()

    snap = contract_facturation(db, contract_id=c.id, today=dt.date(2024, 3, 15))
    assert snap.months_elapsed == 3
    assert snap.due_ht == Decimal("300")
    assert snap.paid_ht == Decimal("100")
    assert snap.remaining_due_ht == Decimal("200")
    assert not snap.is_degraded


def test_contract_facturation_unknown_contract(db: Session):
    with pytest.raises(HTTPException) as exc:
        contract_facturation(db, contract_id=999, today=dt.date(2024, 3, 15))
    assert exc.value.status_code == 404


def test_missing_tax_rate_uses_configured_default(db: Session):
    c = _one_shot_contract(db)
    snap = contract_facturation(db, contract_id=c.id, today=dt.date(2024, 3, 15))
    assert snap.tax_rate_pct == Decimal("20")
    assert snap.engagement_total_ttc == Decimal("1200")


def test_recurring_eligibility_from_store(db: Session):
    active = _monthly_contract(db)
    draft = _monthly_contract(db, status="brouillon")

    out = contract_recurring_eligibility(db, contract_id=active.id, now=dt.date(2024, 2, 1))
    assert out["can_start_recurring_billing"] is True
    assert out["recurring_billing_start_date"] == dt.date(2024, 1, 1)

    out = contract_recurring_eligibility(db, contract_id=draft.id, now=dt.date(2024, 2, 1))
    assert out["can_start_recurring_billing"] is False


def test_status_filter():
    assert matches_status_filter("brouillon", ContractStatusFilter.ALL)
    assert matches_status_filter("brouillon", ContractStatusFilter.DRAFT)
    assert not matches_status_filter("signe", ContractStatusFilter.DRAFT)
    assert matches_status_filter("signe", ContractStatusFilter.SIGNED)
    assert matches_status_filter("en_cours", ContractStatusFilter.OTHER)
    assert not matches_status_filter("signe", ContractStatusFilter.OTHER)


def test_client_facturation_filters_and_totals(db: Session):
    monthly = _monthly_contract(db)
    paid_up = _one_shot_contract(db, title="Audit SEO")
    db.add(ContractPayment(contract_id=monthly.id, payment_date=dt.date(2024, 2, 1), amount_incl_tax=Decimal("120.00")))
    db.add(ContractPayment(contract_id=paid_up.id, payment_date=dt.date(2024, 2, 10), amount_excl_tax=Decimal("1000.00")))
    _one_shot_contract(db, client_id=2, title="Other client")
    db.commit()

    rows, summary = client_facturation(db, client_id=1, today=dt.date(2024, 3, 15))
    assert {c.title for c, _ in rows} == {"Maintenance site vitrine", "Audit SEO"}
    assert summary.contracts_count == 2
    assert summary.remaining_due_ht == Decimal("200")
    assert summary.recurring_current_month_ht == Decimal("100")

    rows, summary = client_facturation(db, client_id=1, only_with_balance=True, today=dt.date(2024, 3, 15))
    assert [c.id for c, _ in rows] == [monthly.id]
    assert summary.contracts_count == 1

    rows, _ = client_facturation(db, client_id=1, status_filter=ContractStatusFilter.SIGNED, today=dt.date(2024, 3, 15))
    assert [c.id for c, _ in rows] == [paid_up.id]


def test_client_recurring_totals_follow_stored_tariff_periods(db: Session):
    c = _monthly_contract(db)
    db.add(
        ContractMonthlyRate(
            contract_id=c.id, start_date=dt.date(2024, 1, 1), end_date=dt.date(2024, 3, 31), amount_excl_tax=Decimal("100.00")
        )
    )
    db.add(ContractMonthlyRate(contract_id=c.id, start_date=dt.date(2024, 4, 1), amount_excl_tax=Decimal("130.00")))
    db.commit()

    _, summary = client_facturation(db, client_id=1, today=dt.date(2024, 3, 15))
    assert summary.recurring_current_month_ht == Decimal("100")
    assert summary.recurring_next_month_ht == Decimal("130")
    assert summary.recurring_next_month_ttc == Decimal("156")


def test_client_recurring_totals_survive_very_long_commitment(db: Session):
    _monthly_contract(db, months_of_commitment=100000)
    _, summary = client_facturation(db, client_id=1, today=dt.date(2024, 3, 15))
    assert summary.recurring_current_month_ht == Decimal("100")


def test_snapshot_out_rounds_to_cents():
    from billing.services.facturation import compute_facturation_snapshot
    from billing.services.terms import ContractTerms

    snap = compute_facturation_snapshot(
        ContractTerms(billing_model="one_shot", tax_rate_pct="5.5", total_amount_excl_tax="33.33"),
        [],
        dt.date(2024, 3, 15),
    )
    out = to_snapshot_out(snap)
    assert out["engagement_total_ttc"] == Decimal("35.16")
    assert out["due_ht"] == Decimal("33.33")
    assert out["data_issues"] == []
