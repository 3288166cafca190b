"""
Layout -> canonical reconciliation (``finance_designer.converters.layout_to_canonical``).

Responsibility
--------------
Applies the UI-permitted edits of a ``VoucherLayoutV2`` onto the ORIGINAL
canonical definition (the one loaded before editing) and returns a new
definition.  Accounting semantics always come from the original.

Architecture position
---------------------
**Converter layer** -- pure function, zero I/O.

Invariants enforced
-------------------
* ``id``, ``company_id``, ``code``, ``module`` and
  ``required_posting_roles`` come from ``original``; the layout does not
  even carry them.  ``schema_version`` is forced to 2.
* Header fields: only the properties in ``PERMITTED_FIELD_PROPERTIES`` are
  copied from the matching layout field (matched by id).  Everything else,
  ``is_posting`` and ``posting_role`` included, stays as in the original.
  Original fields absent from the layout are kept untouched.
* Table columns: only ``width`` may change, matched by field id.
* Grid metadata becomes ``layout`` display hints (``gridColumns``,
  ``gap``, ``headerLayout``, the stored document keys), which are not business fields.

Failure modes
-------------
* ``SchemaVersionError`` -- ``original`` is not Schema V2.
* ``VoucherTypeMismatchError`` -- layout built for another voucher type.
"""

from __future__ import annotations

from dataclasses import replace

from finance_designer.domain.canonical import (
    SCHEMA_VERSION,
    FieldDefinition,
    TableColumn,
    VoucherTypeDefinition,
)
from finance_designer.domain.fields import FieldDefinitionV2
from finance_designer.domain.layout import (
    HINT_GAP,
    HINT_GRID_COLUMNS,
    HINT_HEADER_LAYOUT,
    VoucherLayoutV2,
)
from finance_designer.exceptions import SchemaVersionError, VoucherTypeMismatchError
from finance_designer.logging_config import get_logger

logger = get_logger("converters.layout_to_canonical")

# The complete set of header-field properties a layout may change.
PERMITTED_FIELD_PROPERTIES: tuple[str, ...] = (
    "label",
    "required",
    "read_only",
    "width",
    "validation_rules",
    "visibility_rules",
    "default_value",
)

# Copied even when the layout value is None
_ALWAYS_COPIED = frozenset({"label", "required", "read_only"})


def apply_layout_to_canonical(
    original: VoucherTypeDefinition,
    layout: VoucherLayoutV2,
) -> VoucherTypeDefinition:
    """
    Reconcile ``layout`` edits into a copy of ``original``.

    Preconditions:
        - ``original.schema_version == 2``.
        - ``layout.voucher_type == original.code``.
    Postconditions:
        - Returns a new definition; ``original`` is not modified.
        - Identifiers, posting roles and header-field posting semantics
          equal those of ``original``.
    Raises:
        SchemaVersionError, VoucherTypeMismatchError.
    """
    if original.schema_version != SCHEMA_VERSION:
        raise SchemaVersionError(original.schema_version, "apply_layout_to_canonical")

    if layout.voucher_type != original.code:
        raise VoucherTypeMismatchError(layout.voucher_type, original.code)

    layout_fields = {f.id: f for f in layout.body.fields}
    header_fields = tuple(
        _apply_field_changes(f, layout_fields.get(f.id)) for f in original.header_fields
    )
    table_columns = _apply_column_changes(original.table_columns, layout.lines.columns)

    hints = dict(original.layout)
    hints.update({
        HINT_GRID_COLUMNS: layout.body.columns,
        HINT_GAP: layout.body.gap,
        HINT_HEADER_LAYOUT: layout.header.layout,
    })

    updated = replace(
        original,
        schema_version=SCHEMA_VERSION,
        header_fields=header_fields,
        table_columns=table_columns,
        layout=hints,
    )

    logger.debug(
        "layout_applied_to_canonical",
        extra={
            "voucher_code": original.code,
            "changed_fields": [
                f.id for f, o in zip(header_fields, original.header_fields) if f != o
            ],
        },
    )
    return updated


def _apply_field_changes(
    canonical: FieldDefinition,
    edited: FieldDefinitionV2 | None,
) -> FieldDefinition:
    if edited is None:
        return canonical

    changes = {}
    for name in PERMITTED_FIELD_PROPERTIES:
        value = getattr(edited, name)
        if value is not None or name in _ALWAYS_COPIED:
            changes[name] = value
    return replace(canonical, **changes)


def _apply_column_changes(
    columns: tuple[TableColumn, ...],
    layout_columns: tuple[FieldDefinitionV2, ...] | None,
) -> tuple[TableColumn, ...]:
    if layout_columns is None:
        return columns

    widths = {c.id: c.width for c in layout_columns}
    return tuple(
        replace(column, width=widths.get(column.field_id) or column.width)
        for column in columns
    )
