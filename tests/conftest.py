"""
Pytest fixtures for the voucher designer test suite.

Provides:
- The field registry loaded from the shipped YAML sets
- Canonical PAYMENT and JOURNAL_ENTRY definitions
- An in-memory repository fake for lifecycle tests
- A SQLite-backed SQLAlchemy session for the persistence adapter

No network and no external database are needed.
"""

from dataclasses import replace
from typing import Generator

import pytest
from sqlalchemy.orm import Session

from finance_designer.config import get_field_registry
from finance_designer.db.engine import (
    create_tables,
    drop_tables,
    get_session,
    init_engine_from_url,
    reset_engine,
)
from finance_designer.domain.canonical import (
    SCHEMA_VERSION,
    FieldDefinition,
    PostingRole,
    TableColumn,
    VoucherTypeDefinition,
)
from finance_designer.domain.fields import FieldType
from finance_designer.domain.registry import SystemFieldRegistry
from finance_designer.exceptions import VoucherDefinitionNotFoundError
from finance_designer.logging_config import LogContext, reset_logging

COMPANY_ID = "company-001"


@pytest.fixture(autouse=True)
def _clean_logging():
    """Reset logging state between tests."""
    reset_logging()
    LogContext.clear()
    yield
    LogContext.clear()
    reset_logging()


# ---------------------------------------------------------------------------
# Registry and canonical definitions
# ---------------------------------------------------------------------------


@pytest.fixture(scope="session")
def field_registry() -> SystemFieldRegistry:
    return get_field_registry()


@pytest.fixture
def payment_definition() -> VoucherTypeDefinition:
    """PAYMENT definition with six header fields, all CORE in the registry."""
    return VoucherTypeDefinition(
        id="vt-payment",
        company_id=COMPANY_ID,
        name="Payment Voucher",
        code="PAYMENT",
        module="ACCOUNTING",
        schema_version=SCHEMA_VERSION,
        header_fields=(
            FieldDefinition(
                id="date", label="Payment Date", type=FieldType.DATE,
                required=True, width="1/2",
                is_posting=True, posting_role=PostingRole.DATE,
            ),
            FieldDefinition(
                id="amount", label="Amount", type=FieldType.NUMBER,
                required=True, width="1/2",
                validation_rules=({"type": "min", "value": 0},),
                is_posting=True, posting_role=PostingRole.AMOUNT,
            ),
            FieldDefinition(
                id="cashAccountId", label="Cash/Bank Account", type=FieldType.RELATION,
                required=True, width="1/2",
                is_posting=True, posting_role=PostingRole.ACCOUNT,
            ),
            FieldDefinition(
                id="expenseAccountId", label="Expense Account", type=FieldType.RELATION,
                required=True, width="1/2",
                is_posting=True, posting_role=PostingRole.ACCOUNT,
            ),
            FieldDefinition(
                id="description", label="Description", type=FieldType.TEXTAREA,
                required=True, width="full",
            ),
            FieldDefinition(
                id="currency", label="Currency", type=FieldType.SELECT,
                width="1/4", default_value="USD",
                is_posting=True, posting_role=PostingRole.CURRENCY,
            ),
        ),
        required_posting_roles=(PostingRole.DATE, PostingRole.ACCOUNT, PostingRole.AMOUNT),
    )


@pytest.fixture
def journal_entry_definition() -> VoucherTypeDefinition:
    return VoucherTypeDefinition(
        id="vt-journal",
        company_id=COMPANY_ID,
        name="Journal Entry",
        code="JOURNAL_ENTRY",
        module="ACCOUNTING",
        schema_version=SCHEMA_VERSION,
        header_fields=(
            FieldDefinition(
                id="date", label="Entry Date", type=FieldType.DATE,
                required=True, width="1/2",
                is_posting=True, posting_role=PostingRole.DATE,
            ),
            FieldDefinition(
                id="description", label="Description", type=FieldType.TEXTAREA,
                required=True, width="full",
            ),
            FieldDefinition(
                id="exchangeRate", label="Exchange Rate", type=FieldType.NUMBER,
                width="1/4",
                is_posting=True, posting_role=PostingRole.EXCHANGE_RATE,
            ),
        ),
        table_columns=(
            TableColumn(field_id="account", width="250px"),
            TableColumn(field_id="debit", width="150px"),
            TableColumn(field_id="credit", width="150px"),
            TableColumn(field_id="lineAmount"),
        ),
        required_posting_roles=(PostingRole.DATE,),
        layout={"gridColumns": 2, "theme": "compact"},
    )


# ---------------------------------------------------------------------------
# Repository fake
# ---------------------------------------------------------------------------


class InMemoryVoucherTypeRepository:
    """Dict-backed repository recording every update it receives."""

    def __init__(self, *definitions: VoucherTypeDefinition):
        self.definitions = {d.code: d for d in definitions}
        self.updates: list[tuple[str, object]] = []
        self.fail_on_update: Exception | None = None
        self.fail_on_get: Exception | None = None

    def get(self, voucher_code: str) -> VoucherTypeDefinition:
        if self.fail_on_get is not None:
            raise self.fail_on_get
        try:
            return self.definitions[voucher_code]
        except KeyError:
            raise VoucherDefinitionNotFoundError(voucher_code) from None

    def update(self, voucher_code: str, definition: VoucherTypeDefinition) -> None:
        if self.fail_on_update is not None:
            raise self.fail_on_update
        self.updates.append((voucher_code, definition))
        self.definitions[voucher_code] = definition


@pytest.fixture
def payment_repository(payment_definition) -> InMemoryVoucherTypeRepository:
    return InMemoryVoucherTypeRepository(payment_definition)


@pytest.fixture
def legacy_payment_definition(payment_definition) -> VoucherTypeDefinition:
    return replace(payment_definition, schema_version=1)


# ---------------------------------------------------------------------------
# SQLite session
# ---------------------------------------------------------------------------


@pytest.fixture
def db_session() -> Generator[Session, None, None]:
    init_engine_from_url("sqlite://")
    create_tables()
    # init_engine_from_url configures handlers; keep caplog working
    reset_logging()
    session = get_session()
    try:
        yield session
    finally:
        session.rollback()
        session.close()
        drop_tables()
        reset_engine()
