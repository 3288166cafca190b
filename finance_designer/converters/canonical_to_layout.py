"""
Canonical -> layout projection (``finance_designer.converters.canonical_to_layout``).

Responsibility
--------------
Builds the ephemeral ``VoucherLayoutV2`` view model from a canonical Schema
V2 ``VoucherTypeDefinition``.  One-way: accounting semantics
(``is_posting``, ``posting_role``, ``schema_version``,
``required_posting_roles``) are dropped, and the resulting field type has
no attribute able to hold them.

Architecture position
---------------------
**Converter layer** -- pure function, zero I/O.  Depends on the domain
layer and an injected ``SystemFieldRegistry``.

Invariants enforced
-------------------
* Precondition ``definition.schema_version == 2``; otherwise
  ``SchemaVersionError`` is raised before any layout object is built.
* ``lines.type`` is derived from ``definition.code`` only.
* The header area is a fixed read-only field set, never derived from
  ``header_fields``.

Failure modes
-------------
* ``SchemaVersionError`` -- fatal, not retried.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import replace
from typing import Any

from finance_designer.domain.canonical import (
    SCHEMA_VERSION,
    FieldDefinition,
    TableColumn,
    VoucherTypeDefinition,
)
from finance_designer.domain.fields import (
    FieldCategory,
    FieldDefinitionV2,
    FieldType,
    create_core_field,
    create_shared_field,
)
from finance_designer.domain.layout import (
    DEFAULT_GAP,
    DEFAULT_GRID_COLUMNS,
    DEFAULT_HEADER_LAYOUT,
    HINT_GAP,
    HINT_GRID_COLUMNS,
    HINT_HEADER_LAYOUT,
    MAX_TABLE_LINES,
    ActionButton,
    ActionsArea,
    BodyArea,
    ButtonAction,
    ButtonVariant,
    DisplayMode,
    HeaderArea,
    LinesArea,
    LinesAreaType,
    VoucherLayoutV2,
    lines_type_for,
)
from finance_designer.domain.registry import SystemFieldRegistry
from finance_designer.exceptions import RegistryLookupError, SchemaVersionError
from finance_designer.logging_config import get_logger

logger = get_logger("converters.canonical_to_layout")

_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])")


def canonical_to_layout(
    definition: VoucherTypeDefinition,
    mode: DisplayMode | str = DisplayMode.CLASSIC,
    registry: SystemFieldRegistry | None = None,
) -> VoucherLayoutV2:
    """
    Project a canonical definition onto a fresh layout view model.

    Args:
        definition: Canonical definition; ``schema_version`` must be 2.
        mode: Display mode of the generated layout.
        registry: Field registry used to classify body fields.  Fields the
            registry does not know are classified CORE when required,
            SHARED otherwise.

    Raises:
        SchemaVersionError: ``definition`` is not Schema V2.
    """
    if definition.schema_version != SCHEMA_VERSION:
        raise SchemaVersionError(definition.schema_version, "canonical_to_layout")

    lines_type = lines_type_for(definition.code)
    body_fields = tuple(
        _header_field_to_body_field(definition.code, f, registry)
        for f in definition.header_fields
    )
    line_columns = None
    if lines_type is LinesAreaType.TABLE:
        line_columns = tuple(
            _table_column_to_line_column(col, index)
            for index, col in enumerate(definition.table_columns)
        )

    layout = VoucherLayoutV2(
        voucher_type=definition.code,
        mode=DisplayMode(mode),
        header=_build_header_area(definition.layout),
        body=_build_body_area(body_fields, definition.layout),
        lines=_build_lines_area(lines_type, line_columns),
        actions=_build_actions_area(),
    )

    logger.debug(
        "layout_generated",
        extra={
            "voucher_code": definition.code,
            "body_field_count": len(body_fields),
            "lines_type": lines_type.value,
        },
    )
    return layout


def _classify(
    code: str,
    field_def: FieldDefinition,
    registry: SystemFieldRegistry | None,
) -> tuple[FieldCategory, str]:
    """Return (category, semantic meaning) for a canonical header field."""
    if registry is not None:
        try:
            known = registry.get_field(code, field_def.id)
        except RegistryLookupError:
            known = None
        if known is not None:
            return known.category, known.semantic_meaning
    category = FieldCategory.CORE if field_def.required else FieldCategory.SHARED
    return category, ""


def _header_field_to_body_field(
    code: str,
    field_def: FieldDefinition,
    registry: SystemFieldRegistry | None,
) -> FieldDefinitionV2:
    # is_posting / posting_role are not read here on purpose
    category, meaning = _classify(code, field_def, registry)
    create = create_core_field if category is FieldCategory.CORE else create_shared_field
    return create(
        id=field_def.id,
        data_key=field_def.binding,
        label=field_def.label,
        type=field_def.type,
        semantic_meaning=meaning,
        required=field_def.required,
        width=field_def.width,
        read_only=field_def.read_only,
        validation_rules=field_def.validation_rules,
        visibility_rules=field_def.visibility_rules,
        default_value=field_def.default_value,
    )


def format_column_label(field_id: str) -> str:
    """``payToAccountId`` -> ``Pay To Account Id``."""
    words = _CAMEL_BOUNDARY.sub(" ", field_id).strip()
    return words[:1].upper() + words[1:]


def infer_column_type(field_id: str) -> FieldType:
    lowered = field_id.lower()
    if "account" in lowered:
        return FieldType.RELATION
    if "amount" in lowered or "debit" in lowered or "credit" in lowered:
        return FieldType.NUMBER
    if "date" in lowered:
        return FieldType.DATE
    return FieldType.TEXT


def _table_column_to_line_column(column: TableColumn, index: int) -> FieldDefinitionV2:
    return replace(
        create_shared_field(
            id=column.field_id,
            label=format_column_label(column.field_id),
            type=infer_column_type(column.field_id),
            width=column.width,
        ),
        order=index,
    )


def _metadata_field(id: str, label: str, type: FieldType) -> FieldDefinitionV2:
    return create_shared_field(
        id=id,
        label=label,
        type=type,
        semantic_meaning="System metadata",
        width="1/4",
        read_only=True,
    )


def _build_header_area(hints: Mapping[str, Any]) -> HeaderArea:
    return HeaderArea(
        fields=(
            _metadata_field("voucherNo", "Voucher No", FieldType.TEXT),
            _metadata_field("status", "Status", FieldType.TEXT),
            _metadata_field("createdDate", "Created", FieldType.DATE),
        ),
        locked=True,
        layout=hints.get(HINT_HEADER_LAYOUT) or DEFAULT_HEADER_LAYOUT,
    )


def _build_body_area(
    fields: tuple[FieldDefinitionV2, ...],
    hints: Mapping[str, Any],
) -> BodyArea:
    return BodyArea(
        fields=fields,
        columns=hints.get(HINT_GRID_COLUMNS) or DEFAULT_GRID_COLUMNS,
        gap=hints.get(HINT_GAP) or DEFAULT_GAP,
    )


def _build_lines_area(
    lines_type: LinesAreaType,
    columns: tuple[FieldDefinitionV2, ...] | None,
) -> LinesArea:
    is_table = lines_type is LinesAreaType.TABLE
    return LinesArea(
        type=lines_type,
        columns=columns,
        min_lines=1 if is_table else None,
        max_lines=MAX_TABLE_LINES if is_table else None,
        show_totals=is_table,
        show_add_button=is_table,
    )


def _build_actions_area() -> ActionsArea:
    return ActionsArea(
        buttons=(
            ActionButton("submit", "Submit", ButtonVariant.PRIMARY, ButtonAction.SUBMIT, order=1),
            ActionButton("draft", "Save Draft", ButtonVariant.SECONDARY, ButtonAction.SAVE_DRAFT, order=2),
            ActionButton("print", "Print", ButtonVariant.SECONDARY, ButtonAction.PRINT, order=3),
        ),
        alignment="right",
    )
