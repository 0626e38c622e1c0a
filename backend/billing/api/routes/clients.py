from __future__ import annotations

import datetime as dt

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from billing.db.session import get_db
from billing.models.enums import ContractStatusFilter
from billing.schemas.facturation import (
    ClientFacturationOut,
    ContractFacturationRow,
    FacturationSnapshotOut,
    PortfolioSummaryOut,
)
from billing.services import contracts as contract_service
from billing.services.calendar import as_of_date

router = APIRouter()


@router.get("/{client_id}/facturation", response_model=ClientFacturationOut)
def client_facturation(
    client_id: int,
    status: ContractStatusFilter = Query(default=ContractStatusFilter.ALL),
    only_with_balance: bool = Query(default=False),
    as_of: dt.date | None = Query(default=None),
    db: Session = Depends(get_db),
):
    ref = as_of_date(as_of)
    rows, summary = contract_service.client_facturation(
        db,
        client_id=client_id,
        status_filter=status,
        only_with_balance=only_with_balance,
        today=ref,
    )
    return ClientFacturationOut(
        client_id=client_id,
        as_of=ref,
        contracts=[
            ContractFacturationRow(
                contract_id=c.id,
                title=c.title,
                status=c.status,
                currency=c.currency,
                snapshot=FacturationSnapshotOut(**contract_service.to_snapshot_out(snap)),
            )
            for c, snap in rows
        ],
        summary=PortfolioSummaryOut(**contract_service.to_summary_out(summary)),
    )
