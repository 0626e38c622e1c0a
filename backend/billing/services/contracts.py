from __future__ import annotations

import datetime as dt
import logging

from fastapi import HTTPException, status
from sqlalchemy.orm import Session, selectinload

from billing.core.config import settings
from billing.models.contract import Contract
from billing.models.enums import ContractStatus, ContractStatusFilter
from billing.services.calendar import as_of_date
from billing.services.facturation import (
    FacturationSnapshot,
    PortfolioSummary,
    compute_facturation_snapshot,
    has_remaining_due,
    summarize_portfolio,
)
from billing.services.money import q_money
from billing.services.recurring import can_start_recurring_billing
from billing.services.terms import ContractTerms, MonthlyRate, PaymentFact, parse_contract_status

logger = logging.getLogger(__name__)


def get_contract(db: Session, contract_id: int) -> Contract:
    c = db.query(Contract).filter(Contract.id == contract_id).first()
    if not c:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Contract not found")
    return c


def contract_terms(c: Contract) -> ContractTerms:
    return ContractTerms(
        billing_model=c.billing_model,
        billing_period=c.billing_period,
        tax_rate_pct=c.tax_rate_pct,
        total_amount_excl_tax=c.total_amount_excl_tax,
        one_shot_amount_excl_tax=c.one_shot_amount_excl_tax,
        monthly_amount_excl_tax=c.monthly_amount_excl_tax,
        start_date=c.start_date,
        planned_end_date=c.planned_end_date,
        months_of_commitment=c.months_of_commitment,
        status=c.status,
        recurring_billing_start_date=c.recurring_billing_start_date,
        signature_date=c.signature_date,
        monthly_rates=tuple(
            MonthlyRate(start_date=r.start_date, end_date=r.end_date, amount_excl_tax=r.amount_excl_tax)
            for r in c.monthly_rates
        ),
    )


def payment_facts(c: Contract) -> list[PaymentFact]:
    return [
        PaymentFact(payment_date=p.payment_date, amount_excl_tax=p.amount_excl_tax, amount_incl_tax=p.amount_incl_tax)
        for p in c.payments
    ]


def _snapshot(c: Contract, today: dt.date) -> FacturationSnapshot:
    snap = compute_facturation_snapshot(
        contract_terms(c),
        payment_facts(c),
        today,
        default_tax_rate_pct=settings.default_tax_rate_pct,
    )
    if snap.is_degraded:
        logger.warning("contract_facturation: contract_id=%d data_issues=%s", c.id, ",".join(snap.data_issues))
    return snap


def contract_facturation(db: Session, *, contract_id: int, today: dt.date | None = None) -> FacturationSnapshot:
    c = get_contract(db, contract_id)
    return _snapshot(c, as_of_date(today))


def contract_recurring_eligibility(db: Session, *, contract_id: int, now: dt.date | None = None) -> dict:
    c = get_contract(db, contract_id)
    return {
        "contract_id": c.id,
        "recurring_billing_start_date": c.recurring_billing_start_date,
        "can_start_recurring_billing": can_start_recurring_billing(contract_terms(c), now),
    }


def matches_status_filter(raw_status: str | None, status_filter: ContractStatusFilter) -> bool:
    if status_filter == ContractStatusFilter.ALL:
        return True
    s = parse_contract_status(raw_status)
    if status_filter == ContractStatusFilter.DRAFT:
        return s == ContractStatus.DRAFT
    if status_filter == ContractStatusFilter.SIGNED:
        return s == ContractStatus.SIGNED
    return s not in (ContractStatus.DRAFT, ContractStatus.SIGNED)


def list_client_contracts(db: Session, client_id: int) -> list[Contract]:
    return (
        db.query(Contract)
        .options(selectinload(Contract.payments), selectinload(Contract.monthly_rates))
        .filter(Contract.client_id == client_id)
        .order_by(Contract.signature_date.desc(), Contract.id.desc())
        .all()
    )


def client_facturation(
    db: Session,
    *,
    client_id: int,
    status_filter: ContractStatusFilter = ContractStatusFilter.ALL,
    only_with_balance: bool = False,
    today: dt.date | None = None,
) -> tuple[list[tuple[Contract, FacturationSnapshot]], PortfolioSummary]:
    """
    Per-contract snapshots for a client, after filters, and the totals of what is shown.

    `only_with_balance` keeps contracts whose remaining TTC exceeds the configured tolerance.
    """
    ref = as_of_date(today)
    rows: list[tuple[Contract, FacturationSnapshot]] = []
    for c in list_client_contracts(db, client_id):
        if not matches_status_filter(c.status, status_filter):
            continue
        snap = _snapshot(c, ref)
        if only_with_balance and not has_remaining_due(snap, settings.remaining_due_tolerance):
            continue
        rows.append((c, snap))

    summary = summarize_portfolio(
        ((contract_terms(c), payment_facts(c)) for c, _ in rows),
        ref,
        default_tax_rate_pct=settings.default_tax_rate_pct,
    )
    logger.info(
        "client_facturation: client_id=%d contracts_shown=%d remaining_due_ttc=%s",
        client_id,
        len(rows),
        q_money(summary.remaining_due_ttc),
    )
    return rows, summary


def to_snapshot_out(snap: FacturationSnapshot) -> dict:
    return {
        "tax_rate_pct": snap.tax_rate_pct,
        "months_total": snap.months_total,
        "months_elapsed": snap.months_elapsed,
        "engagement_total_ht": q_money(snap.engagement_total_ht),
        "engagement_total_ttc": q_money(snap.engagement_total_ttc),
        "due_ht": q_money(snap.due_ht),
        "due_ttc": q_money(snap.due_ttc),
        "paid_ht": q_money(snap.paid_ht),
        "paid_ttc": q_money(snap.paid_ttc),
        "remaining_due_ht": q_money(snap.remaining_due_ht),
        "remaining_due_ttc": q_money(snap.remaining_due_ttc),
        "engagement_future_ht": q_money(snap.engagement_future_ht),
        "engagement_future_ttc": q_money(snap.engagement_future_ttc),
        "data_issues": list(snap.data_issues),
        "is_degraded": snap.is_degraded,
    }


def to_summary_out(summary: PortfolioSummary) -> dict:
    return {
        "contracts_count": summary.contracts_count,
        "engagement_total_ht": q_money(summary.engagement_total_ht),
        "engagement_total_ttc": q_money(summary.engagement_total_ttc),
        "paid_ht": q_money(summary.paid_ht),
        "paid_ttc": q_money(summary.paid_ttc),
        "remaining_due_ht": q_money(summary.remaining_due_ht),
        "remaining_due_ttc": q_money(summary.remaining_due_ttc),
        "recurring_current_month_ht": q_money(summary.recurring_current_month_ht),
        "recurring_current_month_ttc": q_money(summary.recurring_current_month_ttc),
        "recurring_next_month_ht": q_money(summary.recurring_next_month_ht),
        "recurring_next_month_ttc": q_money(summary.recurring_next_month_ttc),
    }
