"""
Voucher designer wizard (``finance_designer.domain.wizard``).

Responsibility
--------------
Holds the state of one wizard run: current step, chosen voucher type,
field selection, personal fields, the customization overlay on system
fields, the line-table columns and the display mode.  Gates forward
navigation with ``can_proceed``.

Architecture position
---------------------
**Domain layer** -- in-memory state machine, zero I/O.  Receives the
``SystemFieldRegistry`` by injection; one wizard instance per session, no
state shared between instances.

Invariants enforced
-------------------
* Step order is fixed (``STEP_ORDER``); ``next_step`` / ``prev_step`` move
  one position and are no-ops at either end.
* FIELD_SELECTION cannot be left while a CORE field id of the chosen type
  is missing from the selection.
* Selecting a voucher type seeds the selection with its CORE field ids as
  a union; re-selecting the same type changes nothing.
* The overlay stores only properties that differ from the registry
  default (``CUSTOMIZABLE_PROPERTIES``); an empty diff removes the entry.
* Essential line columns cannot be removed.

Failure modes
-------------
* ``UnknownVoucherTypeError`` / ``RegistryLookupError`` -- voucher code not
  in the registry.
* ``FieldNotModifiableError`` -- action not allowed for the field's
  category (e.g. removing a CORE field, hiding a CORE field).
* ``EssentialColumnError`` -- essential line column removed.
* ``FieldConfigurationError`` -- duplicate or unknown field / column id.

The VALIDATION step is advisory: ``validate()`` reports problems but
``can_proceed(VALIDATION)`` stays True.  The save-time forbidden-change
validator remains the backstop.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field, replace
from enum import Enum, unique
from typing import Any

from finance_designer.domain.canonical import VoucherCode
from finance_designer.domain.fields import (
    FieldAction,
    FieldCategory,
    FieldDefinitionV2,
    is_field_modifiable,
)
from finance_designer.domain.layout import DisplayMode
from finance_designer.domain.line_columns import (
    ESSENTIAL_LINE_COLUMNS,
    LineColumnDefinition,
    get_default_line_table_config,
    is_essential_column,
    validate_line_table_config,
)
from finance_designer.domain.metadata_fields import (
    SYSTEM_METADATA_FIELDS,
    get_metadata_field,
    is_system_metadata_field,
)
from finance_designer.domain.registry import SystemFieldRegistry
from finance_designer.exceptions import (
    EssentialColumnError,
    FieldConfigurationError,
    FieldNotModifiableError,
    RegistryLookupError,
)
from finance_designer.logging_config import get_logger

logger = get_logger("domain.wizard")


@unique
class WizardStep(str, Enum):
    SELECT_TYPE = "SELECT_TYPE"
    FIELD_SELECTION = "FIELD_SELECTION"
    LINE_CONFIG = "LINE_CONFIG"
    LAYOUT_EDITOR = "LAYOUT_EDITOR"
    VALIDATION = "VALIDATION"
    REVIEW = "REVIEW"


STEP_ORDER: tuple[WizardStep, ...] = (
    WizardStep.SELECT_TYPE,
    WizardStep.FIELD_SELECTION,
    WizardStep.LINE_CONFIG,
    WizardStep.LAYOUT_EDITOR,
    WizardStep.VALIDATION,
    WizardStep.REVIEW,
)

# Properties of a system field the layout editor may customize
CUSTOMIZABLE_PROPERTIES: tuple[str, ...] = ("label", "width", "style", "placeholder")


@dataclass
class WizardValidationResult:
    """
    Outcome of the VALIDATION step.

    ``is_valid`` is informational only; it does not gate navigation.
    """

    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    core_fields_count: int = 0
    shared_fields_count: int = 0
    personal_fields_count: int = 0
    metadata_fields_count: int = 0
    total_fields_count: int = 0

    @property
    def is_valid(self) -> bool:
        return len(self.errors) == 0


class VoucherWizard:
    """
    Step-by-step voucher layout designer state.

    Contract:
        Mutable session object; every method leaves the wizard in a
        consistent state or raises without changing it.
    """

    def __init__(
        self,
        registry: SystemFieldRegistry,
        initial_type: VoucherCode | str | None = None,
    ):
        self._registry = registry
        self.reset()
        if initial_type is not None:
            self.select_voucher_type(initial_type)
            self.current_step = WizardStep.FIELD_SELECTION

    def reset(self) -> None:
        """Return to an empty wizard at SELECT_TYPE."""
        self.current_step = WizardStep.SELECT_TYPE
        self.voucher_type: VoucherCode | None = None
        self.selected_field_ids: list[str] = []
        self.personal_fields: list[FieldDefinitionV2] = []
        self.line_columns: tuple[LineColumnDefinition, ...] = (
            get_default_line_table_config().columns
        )
        self.display_mode = DisplayMode.WINDOWS
        self._overlay: dict[str, dict[str, Any]] = {}

    # ------------------------------------------------------------------
    # Navigation
    # ------------------------------------------------------------------

    def can_proceed(self, step: WizardStep | str | None = None) -> bool:
        """Whether forward navigation out of ``step`` (default: current) is allowed."""
        step = WizardStep(step) if step is not None else self.current_step

        if step is WizardStep.SELECT_TYPE:
            return self.voucher_type is not None
        if step is WizardStep.FIELD_SELECTION:
            if self.voucher_type is None:
                return False
            return self._registry.validate_core_fields_present(
                self.voucher_type, self.selected_field_ids
            ).valid
        if step is WizardStep.LAYOUT_EDITOR:
            return len(self.all_fields()) > 0
        # LINE_CONFIG is optional; VALIDATION is advisory
        return True

    def next_step(self) -> bool:
        """Advance one step.  Returns False if blocked or already at the end."""
        index = STEP_ORDER.index(self.current_step)
        if index == len(STEP_ORDER) - 1 or not self.can_proceed():
            return False
        self._move_to(STEP_ORDER[index + 1])
        return True

    def prev_step(self) -> bool:
        """Go back one step.  Returns False at the first step."""
        index = STEP_ORDER.index(self.current_step)
        if index == 0:
            return False
        self._move_to(STEP_ORDER[index - 1])
        return True

    def set_current_step(self, step: WizardStep | str) -> None:
        self._move_to(WizardStep(step))

    def _move_to(self, step: WizardStep) -> None:
        logger.debug(
            "wizard_step_changed",
            extra={"from_step": self.current_step.value, "to_step": step.value},
        )
        self.current_step = step

    # ------------------------------------------------------------------
    # Voucher type and field selection
    # ------------------------------------------------------------------

    def select_voucher_type(self, code: VoucherCode | str) -> None:
        """Choose the voucher type and seed the selection with its CORE ids."""
        registry = self._registry.get_voucher_type_registry(code)
        self.voucher_type = registry.voucher_type
        for field_id in registry.core_field_ids:
            if field_id not in self.selected_field_ids:
                self.selected_field_ids.append(field_id)

    def update_field_selection(
        self,
        field_ids: Iterable[str],
        personal_fields: Sequence[FieldDefinitionV2] | None = None,
    ) -> None:
        """Replace the selection (and optionally the personal fields)."""
        self.selected_field_ids = list(dict.fromkeys(field_ids))
        if personal_fields is not None:
            for f in personal_fields:
                self._require_personal(f)
            self.personal_fields = list(personal_fields)

    def toggle_shared_field(self, field_id: str) -> bool:
        """
        Select or deselect a SHARED field.  Returns True if now selected.

        System metadata fields (``createdBy``, ``status`` ...) toggle the
        same way.

        Raises:
            FieldNotModifiableError: ``field_id`` is a CORE field.
        """
        system_field = self._system_field(field_id)
        if field_id in self.selected_field_ids:
            if not is_field_modifiable(system_field, FieldAction.HIDE):
                raise FieldNotModifiableError(field_id, FieldAction.HIDE.value)
            self.selected_field_ids.remove(field_id)
            return False
        self.selected_field_ids.append(field_id)
        return True

    def add_personal_field(self, personal_field: FieldDefinitionV2) -> None:
        self._require_personal(personal_field)
        taken = {f.id for f in self.personal_fields}
        if self.voucher_type is not None:
            taken.update(f.id for f in self._system_fields())
        taken.update(f.id for f in SYSTEM_METADATA_FIELDS)
        if personal_field.id in taken:
            raise FieldConfigurationError(f"Field id {personal_field.id!r} is already in use")
        self.personal_fields.append(personal_field)
        self.selected_field_ids.append(personal_field.id)

    def remove_personal_field(self, field_id: str) -> None:
        """
        Remove a PERSONAL field.

        Raises:
            FieldNotModifiableError: ``field_id`` is a CORE or SHARED field.
            FieldConfigurationError: ``field_id`` is not a PERSONAL field and
                no voucher type is selected.
            RegistryLookupError: no field with that id.
        """
        for f in self.personal_fields:
            if f.id == field_id:
                target = f
                break
        else:
            target = self._system_field(field_id)

        if not is_field_modifiable(target, FieldAction.REMOVE):
            raise FieldNotModifiableError(field_id, FieldAction.REMOVE.value)

        self.personal_fields = [f for f in self.personal_fields if f.id != field_id]
        self.selected_field_ids = [i for i in self.selected_field_ids if i != field_id]
        self._overlay.pop(field_id, None)

    # ------------------------------------------------------------------
    # Layout editor customizations
    # ------------------------------------------------------------------

    def update_fields(self, fields: Sequence[FieldDefinitionV2]) -> None:
        """
        Take the layout editor's field list.

        CORE/SHARED fields are diffed against their registry (or metadata
        catalog) defaults and only differing ``CUSTOMIZABLE_PROPERTIES`` are
        kept in the overlay.  PERSONAL fields are stored whole.
        """
        for f in fields:
            if f.category is FieldCategory.PERSONAL:
                continue
            default = self._default_field(f.id)
            if default is None:
                continue
            diff = {
                name: getattr(f, name)
                for name in CUSTOMIZABLE_PROPERTIES
                if getattr(f, name) != getattr(default, name)
            }
            if diff:
                self._overlay[f.id] = diff
            else:
                self._overlay.pop(f.id, None)

        self.selected_field_ids = list(dict.fromkeys(f.id for f in fields))
        self.personal_fields = [f for f in fields if f.category is FieldCategory.PERSONAL]

    def reset_field_customization(self, field_id: str) -> None:
        self._overlay.pop(field_id, None)

    def customization_overlay(self) -> dict[str, dict[str, Any]]:
        """Copy of the overlay, keyed by field id."""
        return {field_id: dict(diff) for field_id, diff in self._overlay.items()}

    def all_fields(self) -> list[FieldDefinitionV2]:
        """CORE + selected SHARED + PERSONAL + selected metadata fields, overlay applied."""
        if self.voucher_type is None:
            return []
        registry = self._registry.get_voucher_type_registry(self.voucher_type)
        selected = set(self.selected_field_ids)
        fields = list(registry.core_fields)
        fields.extend(f for f in registry.shared_fields if f.id in selected)
        fields.extend(self.personal_fields)
        fields.extend(f for f in SYSTEM_METADATA_FIELDS if f.id in selected)
        return [
            replace(f, **self._overlay[f.id]) if f.id in self._overlay else f
            for f in fields
        ]

    def update_display_mode(self, mode: DisplayMode | str) -> None:
        self.display_mode = DisplayMode(mode)

    # ------------------------------------------------------------------
    # Line table
    # ------------------------------------------------------------------

    def update_line_columns(self, columns: Sequence[LineColumnDefinition]) -> None:
        """
        Replace the line-table columns.

        Raises:
            EssentialColumnError: an essential column is missing.
            FieldConfigurationError: duplicate column ids.
        """
        ids = {c.id for c in columns}
        for essential in ESSENTIAL_LINE_COLUMNS:
            if essential.id not in ids:
                raise EssentialColumnError(essential.id)
        result = validate_line_table_config(columns)
        if not result.is_valid:
            raise FieldConfigurationError("; ".join(result.errors))
        self.line_columns = tuple(columns)

    def remove_line_column(self, column_id: str) -> None:
        if is_essential_column(column_id):
            raise EssentialColumnError(column_id)
        self.line_columns = tuple(c for c in self.line_columns if c.id != column_id)

    def move_line_column(self, column_id: str, new_index: int) -> None:
        """Reorder a column within the table and renumber ``order`` from 1."""
        columns = list(self.line_columns)
        for index, column in enumerate(columns):
            if column.id == column_id:
                moved = columns.pop(index)
                break
        else:
            raise FieldConfigurationError(f"Unknown line column {column_id!r}")
        new_index = max(0, min(new_index, len(columns)))
        columns.insert(new_index, moved)
        self.line_columns = tuple(
            replace(c, order=position) for position, c in enumerate(columns, start=1)
        )

    # ------------------------------------------------------------------
    # VALIDATION step
    # ------------------------------------------------------------------

    def validate(self, fields: Sequence[FieldDefinitionV2] | None = None) -> WizardValidationResult:
        """
        Check the current design.  Never raises; never blocks navigation.

        Args:
            fields: Field list to check.  Defaults to ``all_fields()``.
        """
        result = WizardValidationResult()
        if self.voucher_type is None:
            result.errors.append("No voucher type selected")
            return result

        fields = list(fields) if fields is not None else self.all_fields()
        registry = self._registry.get_voucher_type_registry(self.voucher_type)

        presence = self._registry.validate_core_fields_present(
            self.voucher_type, self.selected_field_ids
        )
        core_labels = {f.id: f.label for f in registry.core_fields}
        for field_id in presence.missing_fields:
            result.errors.append(f"Missing CORE field: {core_labels[field_id]}")

        for f in fields:
            if f.category is FieldCategory.CORE and f.hidden:
                result.errors.append(f'CORE field "{f.label}" cannot be hidden')
            if not f.label or not f.label.strip():
                result.warnings.append(f'Field "{f.id}" is missing a label')

        result.core_fields_count = sum(1 for f in fields if f.category is FieldCategory.CORE)
        result.metadata_fields_count = sum(1 for f in fields if is_system_metadata_field(f.id))
        result.shared_fields_count = sum(
            1 for f in fields
            if f.category is FieldCategory.SHARED and not is_system_metadata_field(f.id)
        )
        result.personal_fields_count = sum(
            1 for f in fields if f.category is FieldCategory.PERSONAL
        )
        result.total_fields_count = len(fields)

        logger.debug(
            "wizard_validated",
            extra={
                "voucher_code": self.voucher_type.value,
                "error_count": len(result.errors),
                "warning_count": len(result.warnings),
            },
        )
        return result

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _system_fields(self) -> tuple[FieldDefinitionV2, ...]:
        registry = self._registry.get_voucher_type_registry(self.voucher_type)
        return registry.core_fields + registry.shared_fields

    def _system_field(self, field_id: str) -> FieldDefinitionV2:
        if self.voucher_type is None:
            raise FieldConfigurationError("No voucher type selected")
        system_field = self._default_field(field_id)
        if system_field is None:
            raise RegistryLookupError(
                self.voucher_type.value,
                f"Field {field_id!r} is not registered for {self.voucher_type.value}",
            )
        return system_field

    def _default_field(self, field_id: str) -> FieldDefinitionV2 | None:
        if self.voucher_type is None:
            return None
        return self._registry.get_field(self.voucher_type, field_id) or get_metadata_field(field_id)

    @staticmethod
    def _require_personal(f: FieldDefinitionV2) -> None:
        if f.category is not FieldCategory.PERSONAL:
            raise FieldConfigurationError(
                f"Field {f.id!r} is {f.category.value}; only PERSONAL fields can be added"
            )
