from __future__ import annotations

import datetime as dt

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from billing.db.session import get_db
from billing.schemas.facturation import FacturationSnapshotOut, RecurringBillingOut
from billing.services import contracts as contract_service

router = APIRouter()


@router.get("/{contract_id}/facturation", response_model=FacturationSnapshotOut)
def contract_facturation(
    contract_id: int,
    as_of: dt.date | None = Query(default=None),
    db: Session = Depends(get_db),
):
    snap = contract_service.contract_facturation(db, contract_id=contract_id, today=as_of)
    return FacturationSnapshotOut(**contract_service.to_snapshot_out(snap))


@router.get("/{contract_id}/recurring-billing", response_model=RecurringBillingOut)
def recurring_billing(
    contract_id: int,
    as_of: dt.date | None = Query(default=None),
    db: Session = Depends(get_db),
):
    s = contract_service.contract_recurring_eligibility(db, contract_id=contract_id, now=as_of)
    return RecurringBillingOut(**s)
