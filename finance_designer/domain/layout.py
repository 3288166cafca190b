"""
Layout view model (``finance_designer.domain.layout``).

Responsibility
--------------
The ephemeral, rendering-oriented projection of a canonical definition:
four areas (header, body, lines, actions) plus the voucher type and
display mode it was built for.

Architecture position
---------------------
**Domain layer** -- pure value objects.  ZERO I/O.  This module exports
no save or persistence function, and nothing that persists imports it
for anything but the converters' signatures.

Invariants enforced
-------------------
* A ``VoucherLayoutV2`` must never be written to durable storage.  It
  lives for one edit session and is discarded after a successful save.
* The layout carries no canonical identifiers (``id``, ``company_id``,
  ``module``, ``required_posting_roles``) and no accounting semantics.
* ``lines.type`` is derived from the voucher code by ``lines_type_for``.

The ``__do_not_persist__`` marker and the four area attributes are what
``domain.guards.assert_not_layout`` detects at runtime.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, unique
from typing import ClassVar

from finance_designer.domain.fields import FieldDefinitionV2

DEFAULT_GRID_COLUMNS = 4
DEFAULT_GAP = 16
MAX_TABLE_LINES = 999
DEFAULT_HEADER_LAYOUT = "inline"

# Display-hint keys in a canonical definition's ``layout`` (stored document form)
HINT_GRID_COLUMNS = "gridColumns"
HINT_GAP = "gap"
HINT_HEADER_LAYOUT = "headerLayout"

# Codes whose lines area is a multi-line table
TABLE_VOUCHER_CODES = frozenset({"JOURNAL_ENTRY", "OPENING_BALANCE"})


@unique
class DisplayMode(str, Enum):
    CLASSIC = "classic"
    WINDOWS = "windows"


@unique
class LinesAreaType(str, Enum):
    TABLE = "table"
    SINGLE_LINE = "single-line"
    PREVIEW = "preview"


@unique
class ButtonVariant(str, Enum):
    PRIMARY = "primary"
    SECONDARY = "secondary"
    DANGER = "danger"


@unique
class ButtonAction(str, Enum):
    SUBMIT = "submit"
    SAVE_DRAFT = "saveDraft"
    PRINT = "print"
    EXPORT = "export"
    EMAIL = "email"
    CUSTOM = "custom"


@dataclass(frozen=True)
class ActionButton:
    id: str
    label: str
    variant: ButtonVariant
    action: ButtonAction
    visible: bool = True
    order: int = 0


@dataclass(frozen=True)
class HeaderArea:
    """Locked, read-only system metadata fields."""

    fields: tuple[FieldDefinitionV2, ...]
    locked: bool = True
    layout: str = DEFAULT_HEADER_LAYOUT


@dataclass(frozen=True)
class BodyArea:
    """The customizable area."""

    fields: tuple[FieldDefinitionV2, ...]
    columns: int = DEFAULT_GRID_COLUMNS
    gap: int = DEFAULT_GAP

    def field(self, field_id: str) -> FieldDefinitionV2 | None:
        for f in self.fields:
            if f.id == field_id:
                return f
        return None


@dataclass(frozen=True)
class LinesArea:
    type: LinesAreaType
    columns: tuple[FieldDefinitionV2, ...] | None = None
    min_lines: int | None = None
    max_lines: int | None = None
    show_totals: bool = False
    show_add_button: bool = False


@dataclass(frozen=True)
class ActionsArea:
    buttons: tuple[ActionButton, ...]
    alignment: str = "right"


@dataclass(frozen=True)
class VoucherLayoutV2:
    """
    Ephemeral four-area view model.  NEVER persisted.

    Contract:
        Produced by ``canonical_to_layout``; edited by replacing areas with
        ``dataclasses.replace``; consumed by ``apply_layout_to_canonical``.
    """

    __do_not_persist__: ClassVar[bool] = True

    voucher_type: str
    mode: DisplayMode
    header: HeaderArea
    body: BodyArea
    lines: LinesArea
    actions: ActionsArea
    is_default: bool = False


def lines_type_for(code: str) -> LinesAreaType:
    """JOURNAL_ENTRY and OPENING_BALANCE get a table; everything else a single line."""
    if code in TABLE_VOUCHER_CODES:
        return LinesAreaType.TABLE
    return LinesAreaType.SINGLE_LINE
