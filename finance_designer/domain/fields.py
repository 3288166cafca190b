"""
Field classification model (``finance_designer.domain.fields``).

Responsibility
--------------
Defines the three-tier field category system (CORE / SHARED / PERSONAL),
the enforcement flags each category implies, and the only constructors
allowed to produce a ``FieldDefinitionV2``.

Architecture position
---------------------
**Domain layer** -- pure value objects.  ZERO I/O.  Leaf module: imports
nothing else from the package.

Invariants enforced
-------------------
* CORE: ``can_remove=False``, ``can_hide=False``.
* SHARED: ``can_remove=False``, ``can_hide=True``.
* PERSONAL: ``can_remove=True``, ``can_hide=True``, and every
  visibility/export flag is False (never in journals, reports, search,
  exports or management views).
* ``can_rename_label`` is True for every category.
* ``can_change_data_key`` / ``can_change_type`` are True only for PERSONAL.
* Flags are computed once, in ``category_capabilities``; call sites read
  the precomputed flags through ``is_field_modifiable``.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, unique
from types import MappingProxyType
from typing import Any, Mapping


@unique
class FieldCategory(str, Enum):
    """Enforcement tier of a voucher field."""

    CORE = "CORE"
    SHARED = "SHARED"
    PERSONAL = "PERSONAL"


@unique
class FieldType(str, Enum):
    """Closed set of field input types."""

    TEXT = "TEXT"
    TEXTAREA = "TEXTAREA"
    NUMBER = "NUMBER"
    DATE = "DATE"
    SELECT = "SELECT"
    RELATION = "RELATION"
    CHECKBOX = "CHECKBOX"
    UPLOAD = "UPLOAD"


@unique
class StorageLocation(str, Enum):
    """Where a field's value is stored."""

    VOUCHER = "voucher"
    USER_PREFERENCES = "userPreferences"


@unique
class FieldAction(str, Enum):
    """User actions gated by the enforcement flags."""

    REMOVE = "remove"
    HIDE = "hide"
    RENAME = "rename"
    CHANGE_TYPE = "changeType"


@dataclass(frozen=True)
class CategoryCapabilities:
    """Enforcement and visibility flags implied by a category."""

    can_remove: bool
    can_hide: bool
    can_rename_label: bool
    can_change_data_key: bool
    can_change_type: bool
    stored_in: StorageLocation
    show_in_journal: bool
    show_in_reports: bool
    show_in_search: bool
    allow_export: bool
    visible_to_management: bool


_SYSTEM_VISIBILITY = dict(
    show_in_journal=True,
    show_in_reports=True,
    show_in_search=True,
    allow_export=True,
    visible_to_management=True,
)

_CAPABILITIES: Mapping[FieldCategory, CategoryCapabilities] = MappingProxyType({
    FieldCategory.CORE: CategoryCapabilities(
        can_remove=False,
        can_hide=False,
        can_rename_label=True,
        can_change_data_key=False,
        can_change_type=False,
        stored_in=StorageLocation.VOUCHER,
        **_SYSTEM_VISIBILITY,
    ),
    FieldCategory.SHARED: CategoryCapabilities(
        can_remove=False,
        can_hide=True,
        can_rename_label=True,
        can_change_data_key=False,
        can_change_type=False,
        stored_in=StorageLocation.VOUCHER,
        **_SYSTEM_VISIBILITY,
    ),
    # Isolated from every shared view
    FieldCategory.PERSONAL: CategoryCapabilities(
        can_remove=True,
        can_hide=True,
        can_rename_label=True,
        can_change_data_key=True,
        can_change_type=True,
        stored_in=StorageLocation.USER_PREFERENCES,
        show_in_journal=False,
        show_in_reports=False,
        show_in_search=False,
        allow_export=False,
        visible_to_management=False,
    ),
})


def category_capabilities(category: FieldCategory) -> CategoryCapabilities:
    """Return the flag set for a category."""
    return _CAPABILITIES[FieldCategory(category)]


@dataclass(frozen=True)
class FieldDefinitionV2:
    """
    UI-facing field definition with category enforcement flags.

    Contract:
        Built only through ``create_core_field``, ``create_shared_field`` or
        ``create_personal_field``; edits go through ``dataclasses.replace``
        on presentation attributes.

    Non-goals:
        Carries no accounting semantics.  There is no ``is_posting``,
        ``posting_role`` or ``schema_version`` attribute on this type, so a
        UI projection cannot see them even by accident.
    """

    id: str
    data_key: str
    label: str
    type: FieldType
    category: FieldCategory
    semantic_meaning: str

    # Enforcement
    can_remove: bool
    can_hide: bool
    can_rename_label: bool
    can_change_data_key: bool
    can_change_type: bool

    # Storage
    stored_in: StorageLocation

    # Visibility & export
    show_in_journal: bool
    show_in_reports: bool
    show_in_search: bool
    allow_export: bool
    visible_to_management: bool

    # Presentation
    required: bool = False
    read_only: bool = False
    hidden: bool = False
    width: str | None = None
    placeholder: str | None = None
    style: Mapping[str, Any] | None = None
    order: int | None = None
    validation_rules: tuple[Mapping[str, Any], ...] | None = None
    visibility_rules: tuple[Mapping[str, Any], ...] | None = None
    default_value: Any = None

    @property
    def name(self) -> str:
        return self.data_key


def _build(
    category: FieldCategory,
    *,
    id: str,
    data_key: str,
    label: str,
    type: FieldType | str,
    semantic_meaning: str,
    required: bool,
    width: str | None,
    **presentation: Any,
) -> FieldDefinitionV2:
    caps = category_capabilities(category)
    return FieldDefinitionV2(
        id=id,
        data_key=data_key,
        label=label,
        type=FieldType(type),
        category=category,
        semantic_meaning=semantic_meaning,
        can_remove=caps.can_remove,
        can_hide=caps.can_hide,
        can_rename_label=caps.can_rename_label,
        can_change_data_key=caps.can_change_data_key,
        can_change_type=caps.can_change_type,
        stored_in=caps.stored_in,
        show_in_journal=caps.show_in_journal,
        show_in_reports=caps.show_in_reports,
        show_in_search=caps.show_in_search,
        allow_export=caps.allow_export,
        visible_to_management=caps.visible_to_management,
        required=required,
        width=width,
        **presentation,
    )


def create_core_field(
    id: str,
    label: str,
    type: FieldType | str,
    semantic_meaning: str = "",
    data_key: str | None = None,
    required: bool = True,
    width: str | None = "1/2",
    **presentation: Any,
) -> FieldDefinitionV2:
    """Create a CORE field: required by the backend, never removed or hidden."""
    return _build(
        FieldCategory.CORE,
        id=id,
        data_key=data_key or id,
        label=label,
        type=type,
        semantic_meaning=semantic_meaning,
        required=required,
        width=width,
        **presentation,
    )


def create_shared_field(
    id: str,
    label: str,
    type: FieldType | str,
    semantic_meaning: str = "",
    data_key: str | None = None,
    required: bool = False,
    width: str | None = "1/2",
    **presentation: Any,
) -> FieldDefinitionV2:
    """Create a SHARED field: system-defined, may be hidden, never removed."""
    return _build(
        FieldCategory.SHARED,
        id=id,
        data_key=data_key or id,
        label=label,
        type=type,
        semantic_meaning=semantic_meaning,
        required=required,
        width=width,
        **presentation,
    )


def create_personal_field(
    id: str,
    label: str,
    type: FieldType | str,
    width: str | None = "full",
    **presentation: Any,
) -> FieldDefinitionV2:
    """Create a PERSONAL field: a user-private annotation keyed by its id."""
    return _build(
        FieldCategory.PERSONAL,
        id=id,
        data_key=id,
        label=label,
        type=type,
        semantic_meaning="Personal user annotation",
        required=False,
        width=width,
        **presentation,
    )


def create_field(category: FieldCategory | str, **config: Any) -> FieldDefinitionV2:
    """Dispatch to the constructor for ``category``."""
    category = FieldCategory(category)
    if category is FieldCategory.CORE:
        return create_core_field(**config)
    if category is FieldCategory.SHARED:
        return create_shared_field(**config)
    config.pop("data_key", None)
    config.pop("semantic_meaning", None)
    config.pop("required", None)
    return create_personal_field(**config)


def is_field_modifiable(field_def: FieldDefinitionV2, action: FieldAction | str) -> bool:
    """Whether ``action`` is permitted, read from the precomputed flags."""
    try:
        action = FieldAction(action)
    except ValueError:
        return False
    if action is FieldAction.REMOVE:
        return field_def.can_remove
    if action is FieldAction.HIDE:
        return field_def.can_hide
    if action is FieldAction.RENAME:
        return field_def.can_rename_label
    return field_def.can_change_type
