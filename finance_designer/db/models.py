"""
Module: finance_designer.db.models
Responsibility: ORM persistence for canonical voucher type definitions.
Architecture position: DB.  May import from db/base.py only.

Invariants enforced:
    - One row per (company_id, code) (uq_voucher_type_company_code).
    - ``document`` holds the Schema V2 document exactly as produced by
      ``definition_to_dict``; ``schema_version`` is duplicated as a column
      so legacy rows can be found without parsing JSON.

Failure modes:
    - IntegrityError on a duplicate (company_id, code).
"""

from typing import Any

from sqlalchemy import JSON, Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from finance_designer.db.base import TrackedBase


class VoucherTypeDefinitionRecord(TrackedBase):
    """Stored canonical definition of one voucher type for one company."""

    __tablename__ = "voucher_type_definitions"

    __table_args__ = (
        UniqueConstraint("company_id", "code", name="uq_voucher_type_company_code"),
        Index("idx_voucher_type_company", "company_id"),
    )

    company_id: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
    )

    # Voucher code (PAYMENT, RECEIPT, ...)
    code: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
    )

    # Canonical definition id, as carried inside the document
    definition_id: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
    )

    name: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )

    schema_version: Mapped[int] = mapped_column(
        nullable=False,
    )

    document: Mapped[dict[str, Any]] = mapped_column(
        JSON,
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<VoucherTypeDefinitionRecord {self.company_id}/{self.code} v{self.schema_version}>"
