"""
SqlVoucherTypeRepository -- SQLAlchemy storage for canonical definitions.

Responsibility:
    Implements the ``VoucherTypeRepository`` protocol over the
    ``voucher_type_definitions`` table, scoped to one company.  Converts
    between stored Schema V2 documents and ``VoucherTypeDefinition``.

Architecture position:
    DB -- imperative shell.  Used by ``DesignerService`` through the
    protocol; never imported by the domain or converter layers.

Invariants enforced:
    - Load lock: every document read is checked with ``validate_schema_v2``;
      legacy documents never become definitions.
    - Save lock: every document written is checked the same way, and the
      object handed in passes ``assert_not_layout``.
    - Flush-only: never commits or rolls back the session.

Failure modes:
    - VoucherDefinitionNotFoundError: no row for (company_id, code).
    - SchemaValidationError: stored or outgoing document is not Schema V2,
      or its code / company does not match the row it targets.
    - DefinitionError: ``create`` for a code that already exists.
    - PersistenceViolationError: a layout-shaped object was passed to a
      save method.

Audit relevance:
    Writes are logged with company, code and definition id.  ``list()``
    logs every document it skips as invalid.
"""

from __future__ import annotations

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from finance_designer.db.models import VoucherTypeDefinitionRecord
from finance_designer.domain.canonical import (
    VoucherTypeDefinition,
    definition_from_dict,
    definition_to_dict,
    validate_schema_v2,
)
from finance_designer.domain.guards import assert_not_layout
from finance_designer.exceptions import (
    DefinitionError,
    SchemaValidationError,
    VoucherDefinitionNotFoundError,
)
from finance_designer.logging_config import get_logger

logger = get_logger("db.repository")


class SqlVoucherTypeRepository:
    """
    Company-scoped repository of canonical voucher type definitions.

    Contract:
        ``get`` / ``update`` satisfy ``VoucherTypeRepository``; ``create``
        and ``list`` are adapter extras for seeding and administration.

    Non-goals:
        - Does NOT call ``session.commit()`` -- caller controls boundaries.
        - Does NOT migrate legacy documents.
    """

    def __init__(self, session: Session, company_id: str, actor_id: UUID | None = None):
        self._session = session
        self._company_id = company_id
        self._actor_id = actor_id

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get(self, voucher_code: str) -> VoucherTypeDefinition:
        record = self._find(voucher_code)
        if record is None:
            raise VoucherDefinitionNotFoundError(voucher_code, self._company_id)
        return self._to_definition(record)

    def list(self) -> list[VoucherTypeDefinition]:
        """All valid definitions of the company, ordered by code."""
        stmt = (
            select(VoucherTypeDefinitionRecord)
            .where(VoucherTypeDefinitionRecord.company_id == self._company_id)
            .order_by(VoucherTypeDefinitionRecord.code)
        )
        definitions = []
        for record in self._session.scalars(stmt):
            try:
                definitions.append(self._to_definition(record))
            except DefinitionError as exc:
                logger.warning(
                    "invalid_definition_skipped",
                    extra={
                        "company_id": self._company_id,
                        "voucher_code": record.code,
                        "error_code": exc.code,
                        "error": str(exc),
                    },
                )
        return definitions

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def create(self, definition: VoucherTypeDefinition) -> VoucherTypeDefinition:
        document = self._checked_document(definition, definition.code, "create")
        if self._find(definition.code) is not None:
            raise DefinitionError(
                f"Voucher type definition {definition.code} already exists "
                f"for company {self._company_id}"
            )

        record = VoucherTypeDefinitionRecord(
            company_id=self._company_id,
            code=definition.code,
            definition_id=definition.id,
            name=definition.name,
            schema_version=definition.schema_version,
            document=document,
            created_by_id=self._actor_id,
        )
        self._session.add(record)
        self._session.flush()

        logger.info(
            "voucher_type_definition_created",
            extra={
                "company_id": self._company_id,
                "voucher_code": definition.code,
                "definition_id": definition.id,
            },
        )
        return definition

    def update(self, voucher_code: str, definition: VoucherTypeDefinition) -> None:
        document = self._checked_document(definition, voucher_code, "update")
        record = self._find(voucher_code)
        if record is None:
            raise VoucherDefinitionNotFoundError(voucher_code, self._company_id)

        record.document = document
        record.name = definition.name
        record.definition_id = definition.id
        record.schema_version = definition.schema_version
        record.updated_by_id = self._actor_id
        self._session.flush()

        logger.info(
            "voucher_type_definition_updated",
            extra={
                "company_id": self._company_id,
                "voucher_code": voucher_code,
                "definition_id": definition.id,
            },
        )

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _find(self, voucher_code: str) -> VoucherTypeDefinitionRecord | None:
        stmt = select(VoucherTypeDefinitionRecord).where(
            VoucherTypeDefinitionRecord.company_id == self._company_id,
            VoucherTypeDefinitionRecord.code == voucher_code,
        )
        return self._session.scalars(stmt).first()

    def _to_definition(self, record: VoucherTypeDefinitionRecord) -> VoucherTypeDefinition:
        context = f"load {record.company_id}/{record.code}"
        errors = validate_schema_v2(record.document, context)
        if errors:
            raise SchemaValidationError(context, errors)
        return definition_from_dict(record.document, context)

    def _checked_document(
        self,
        definition: VoucherTypeDefinition,
        voucher_code: str,
        operation: str,
    ) -> dict:
        context = f"{operation} {self._company_id}/{voucher_code}"
        assert_not_layout(definition, context)

        problems = []
        if definition.code != voucher_code:
            problems.append(f"Definition code {definition.code} does not match {voucher_code}")
        if definition.company_id != self._company_id:
            problems.append(
                f"Definition company {definition.company_id} does not match {self._company_id}"
            )

        document = definition_to_dict(definition)
        problems.extend(validate_schema_v2(document, context))
        if problems:
            raise SchemaValidationError(context, problems)
        return document
