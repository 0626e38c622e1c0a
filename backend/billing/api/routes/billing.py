from __future__ import annotations

from fastapi import APIRouter

from billing.core.config import settings
from billing.schemas.facturation import (
    FacturationSnapshotOut,
    InitialDatesOut,
    InitialDatesRequest,
    SnapshotRequest,
)
from billing.services.contracts import to_snapshot_out
from billing.services.facturation import compute_facturation_snapshot
from billing.services.initial_dates import compute_initial_billing_dates
from billing.services.terms import ContractTerms, PaymentFact

router = APIRouter()


@router.post("/snapshot", response_model=FacturationSnapshotOut)
def snapshot(payload: SnapshotRequest):
    """Stateless calculation for callers that already hold the contract and its payments."""
    terms = ContractTerms(**payload.contract.model_dump())
    payments = [PaymentFact(**p.model_dump()) for p in payload.payments]
    snap = compute_facturation_snapshot(
        terms,
        payments,
        payload.as_of,
        default_tax_rate_pct=settings.default_tax_rate_pct,
    )
    return FacturationSnapshotOut(**to_snapshot_out(snap))


@router.post("/initial-dates", response_model=InitialDatesOut)
def initial_dates(payload: InitialDatesRequest):
    dates = compute_initial_billing_dates(
        payload.billing_model,
        contract_start_date=payload.contract_start_date,
        explicit_recurring_start=payload.explicit_recurring_start,
        today=payload.as_of,
    )
    return InitialDatesOut(
        one_shot_invoice_date=dates.one_shot_invoice_date,
        recurring_start_date=dates.recurring_start_date,
    )
