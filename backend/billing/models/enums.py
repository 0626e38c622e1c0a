from __future__ import annotations

import enum


class BillingModel(str, enum.Enum):
    ONE_SHOT = "one_shot"
    RECURRING = "recurring"
    MIXED = "mixed"

    @classmethod
    def _missing_(cls, value):  # noqa: ANN001
        # Rows written by the billing screens use the French spellings.
        if not isinstance(value, str):
            return None
        v = value.strip().lower()
        for member in cls:
            if member.value == v:
                return member
        return {"recurrent": cls.RECURRING, "mixte": cls.MIXED}.get(v)


class BillingPeriod(str, enum.Enum):
    ONE_TIME = "one_time"
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    YEARLY = "yearly"

    @classmethod
    def _missing_(cls, value):  # noqa: ANN001
        if not isinstance(value, str):
            return None
        v = value.strip().lower()
        for member in cls:
            if member.value == v:
                return member
        return None


class ContractStatus(str, enum.Enum):
    DRAFT = "brouillon"
    AWAITING_SIGNATURE = "en_attente_signature"
    SIGNED = "signe"
    ACTIVE = "en_cours"
    COMPLETED = "termine"
    CANCELLED = "annule"


class ContractStatusFilter(str, enum.Enum):
    ALL = "all"
    DRAFT = "draft"
    SIGNED = "signed"
    OTHER = "other"  # neither draft nor signed
