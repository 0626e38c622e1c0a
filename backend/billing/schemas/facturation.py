from __future__ import annotations

import datetime as dt
from decimal import Decimal

from pydantic import BaseModel, Field

from billing.models.enums import BillingModel, BillingPeriod, ContractStatus


class ContractTermsIn(BaseModel):
    billing_model: BillingModel
    billing_period: BillingPeriod = BillingPeriod.ONE_TIME
    status: ContractStatus | None = None
    tax_rate_pct: Decimal | None = Field(default=None, ge=0)  # If omitted, the configured default applies

    total_amount_excl_tax: Decimal | None = Field(default=None, ge=0)
    one_shot_amount_excl_tax: Decimal | None = Field(default=None, ge=0)
    monthly_amount_excl_tax: Decimal | None = Field(default=None, ge=0)

    start_date: dt.date | None = None
    planned_end_date: dt.date | None = None
    months_of_commitment: int | None = Field(default=None, gt=0)
    recurring_billing_start_date: dt.date | None = None


class PaymentIn(BaseModel):
    payment_date: dt.date
    amount_excl_tax: Decimal | None = Field(default=None, ge=0)
    amount_incl_tax: Decimal | None = Field(default=None, ge=0)


class SnapshotRequest(BaseModel):
    contract: ContractTermsIn
    payments: list[PaymentIn] = Field(default_factory=list)
    as_of: dt.date | None = None  # If omitted, today


class FacturationSnapshotOut(BaseModel):
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
    data_issues: list[str]
    is_degraded: bool


class RecurringBillingOut(BaseModel):
    contract_id: int
    recurring_billing_start_date: dt.date | None
    can_start_recurring_billing: bool


class InitialDatesRequest(BaseModel):
    billing_model: BillingModel
    contract_start_date: dt.date | None = None
    explicit_recurring_start: dt.date | None = None
    as_of: dt.date | None = None


class InitialDatesOut(BaseModel):
    one_shot_invoice_date: dt.date | None
    recurring_start_date: dt.date | None


class ContractFacturationRow(BaseModel):
    contract_id: int
    title: str
    status: str
    currency: str
    snapshot: FacturationSnapshotOut


class PortfolioSummaryOut(BaseModel):
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


class ClientFacturationOut(BaseModel):
    client_id: int
    as_of: dt.date
    contracts: list[ContractFacturationRow]
    summary: PortfolioSummaryOut
