from __future__ import annotations

import datetime as dt
from decimal import Decimal

from sqlalchemy import Date, DateTime, ForeignKey, Integer, Numeric, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from billing.db.session import Base


class Contract(Base):
    """
    Billing-relevant columns of a client contract.

    Rows are written by the contract screens; this service only reads them. Billing
    model / period / status are kept as plain strings because older rows carry
    legacy spellings ("recurrent", "mixte") that the billing engine normalises.
    """

    __tablename__ = "contracts"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    client_id: Mapped[int] = mapped_column(Integer, index=True)
    title: Mapped[str] = mapped_column(String(200))
    status: Mapped[str] = mapped_column(String(32), default="brouillon", index=True)
    currency: Mapped[str] = mapped_column(String(3), default="EUR")

    billing_model: Mapped[str] = mapped_column(String(32), default="one_shot")
    billing_period: Mapped[str] = mapped_column(String(32), default="one_time")
    tax_rate_pct: Mapped[Decimal | None] = mapped_column(Numeric(5, 2), nullable=True)

    total_amount_excl_tax: Mapped[Decimal | None] = mapped_column(Numeric(14, 2), nullable=True)  # global fallback
    one_shot_amount_excl_tax: Mapped[Decimal | None] = mapped_column(Numeric(14, 2), nullable=True)
    monthly_amount_excl_tax: Mapped[Decimal | None] = mapped_column(Numeric(14, 2), nullable=True)

    signature_date: Mapped[dt.date | None] = mapped_column(Date, nullable=True, index=True)
    start_date: Mapped[dt.date | None] = mapped_column(Date, nullable=True)
    planned_end_date: Mapped[dt.date | None] = mapped_column(Date, nullable=True)
    months_of_commitment: Mapped[int | None] = mapped_column(Integer, nullable=True)

    one_shot_invoice_date: Mapped[dt.date | None] = mapped_column(Date, nullable=True)
    recurring_billing_start_date: Mapped[dt.date | None] = mapped_column(Date, nullable=True)

    created_at: Mapped[dt.datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())

    payments = relationship(
        "ContractPayment",
        back_populates="contract",
        cascade="all, delete-orphan",
        order_by="ContractPayment.payment_date",
    )
    monthly_rates = relationship(
        "ContractMonthlyRate",
        back_populates="contract",
        cascade="all, delete-orphan",
        order_by="ContractMonthlyRate.start_date",
    )


class ContractPayment(Base):
    __tablename__ = "contract_payments"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    contract_id: Mapped[int] = mapped_column(ForeignKey("contracts.id", ondelete="CASCADE"), index=True)

    payment_date: Mapped[dt.date] = mapped_column(Date, index=True)
    # At least one side is expected; the other is derived from the contract tax rate.
    amount_excl_tax: Mapped[Decimal | None] = mapped_column(Numeric(14, 2), nullable=True)
    amount_incl_tax: Mapped[Decimal | None] = mapped_column(Numeric(14, 2), nullable=True)

    payment_method: Mapped[str | None] = mapped_column(String(32), nullable=True)
    note: Mapped[str | None] = mapped_column(Text, nullable=True)

    created_at: Mapped[dt.datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())

    contract = relationship("Contract", back_populates="payments")


class ContractMonthlyRate(Base):
    """Monthly tariff in force over a period; `end_date` is None for the current tariff."""

    __tablename__ = "contract_monthly_rates"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    contract_id: Mapped[int] = mapped_column(ForeignKey("contracts.id", ondelete="CASCADE"), index=True)

    start_date: Mapped[dt.date] = mapped_column(Date, index=True)
    end_date: Mapped[dt.date | None] = mapped_column(Date, nullable=True)
    amount_excl_tax: Mapped[Decimal] = mapped_column(Numeric(14, 2))

    created_at: Mapped[dt.datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())

    contract = relationship("Contract", back_populates="monthly_rates")
