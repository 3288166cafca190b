"""
Line-table columns (``finance_designer.domain.line_columns``).

Essential columns (account, debit, credit) can never be removed or moved
out of the table.  Optional columns may be added, removed and reordered
freely.  ``is_essential_column`` is the single predicate consulted before
any column-removal action.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from finance_designer.domain.fields import FieldType


@dataclass(frozen=True)
class LineColumnDefinition:
    id: str
    data_key: str
    label: str
    type: FieldType
    essential: bool
    order: int
    visible: bool = True
    editable: bool = True
    width: int | None = None
    component_type: str | None = None
    align: str = "left"
    format: str | None = None


def _essential(id, data_key, label, type, order, width, component_type, align="left", format=None):
    return LineColumnDefinition(
        id=id, data_key=data_key, label=label, type=FieldType(type), essential=True,
        order=order, visible=True, editable=True, width=width,
        component_type=component_type, align=align, format=format,
    )


def _optional(id, data_key, label, type, order, width, component_type, align="left",
              format=None, visible=False, editable=True):
    return LineColumnDefinition(
        id=id, data_key=data_key, label=label, type=FieldType(type), essential=False,
        order=order, visible=visible, editable=editable, width=width,
        component_type=component_type, align=align, format=format,
    )


ESSENTIAL_LINE_COLUMNS: tuple[LineColumnDefinition, ...] = (
    _essential("account", "accountId", "Account", "RELATION", 1, 250, "ACCOUNT_PICKER"),
    _essential("debit", "debit", "Debit", "NUMBER", 2, 150, "NUMBER_INPUT", "right", "currency"),
    _essential("credit", "credit", "Credit", "NUMBER", 3, 150, "NUMBER_INPUT", "right", "currency"),
)

OPTIONAL_LINE_COLUMNS: tuple[LineColumnDefinition, ...] = (
    _optional("description", "description", "Description", "TEXTAREA", 4, 200, "TEXTAREA",
              visible=True),
    _optional("costCenter", "costCenterId", "Cost Center", "RELATION", 5, 150, "DROPDOWN"),
    _optional("project", "projectId", "Project", "RELATION", 6, 150, "DROPDOWN"),
    _optional("currency", "currency", "Currency", "SELECT", 7, 100, "CURRENCY_SELECTOR", "center"),
    _optional("exchangeRate", "exchangeRate", "Exchange Rate", "NUMBER", 8, 120, "NUMBER_INPUT",
              "right", "decimal"),
    _optional("reference", "reference", "Reference", "TEXT", 9, 150, "TEXT_INPUT"),
    _optional("taxCode", "taxCodeId", "Tax Code", "RELATION", 10, 120, "DROPDOWN"),
    # Usually calculated
    _optional("taxAmount", "taxAmount", "Tax Amount", "NUMBER", 11, 120, "NUMBER_INPUT",
              "right", "currency", editable=False),
    _optional("quantity", "quantity", "Quantity", "NUMBER", 12, 100, "NUMBER_INPUT",
              "right", "decimal"),
    _optional("unitPrice", "unitPrice", "Unit Price", "NUMBER", 13, 120, "NUMBER_INPUT",
              "right", "currency"),
)

_ESSENTIAL_IDS = frozenset(c.id for c in ESSENTIAL_LINE_COLUMNS)


@dataclass(frozen=True)
class LineTableConfiguration:
    columns: tuple[LineColumnDefinition, ...]
    show_line_numbers: bool = True
    show_totals: bool = True
    allow_add_lines: bool = True
    allow_delete_lines: bool = True
    allow_reorder_lines: bool = True
    min_lines: int | None = 1
    max_lines: int | None = None
    default_lines: int = 3


@dataclass
class LineTableValidationResult:
    errors: list[str] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return len(self.errors) == 0


def is_essential_column(column_id: str) -> bool:
    return column_id in _ESSENTIAL_IDS


def get_all_available_line_columns() -> tuple[LineColumnDefinition, ...]:
    return ESSENTIAL_LINE_COLUMNS + OPTIONAL_LINE_COLUMNS


def get_default_line_table_config() -> LineTableConfiguration:
    """Essential columns plus the optional columns visible by default."""
    return LineTableConfiguration(
        columns=ESSENTIAL_LINE_COLUMNS + tuple(c for c in OPTIONAL_LINE_COLUMNS if c.visible),
    )


def validate_line_table_config(columns) -> LineTableValidationResult:
    """Report missing essential columns and duplicate column ids."""
    if isinstance(columns, LineTableConfiguration):
        columns = columns.columns
    result = LineTableValidationResult()
    ids = [c.id for c in columns]

    for column in ESSENTIAL_LINE_COLUMNS:
        if column.id not in ids:
            result.errors.append(f"Essential column missing: {column.id}")

    seen: set[str] = set()
    duplicates: list[str] = []
    for column_id in ids:
        if column_id in seen and column_id not in duplicates:
            duplicates.append(column_id)
        seen.add(column_id)
    if duplicates:
        result.errors.append(f"Duplicate columns: {', '.join(duplicates)}")

    return result
