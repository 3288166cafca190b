"""
Reconciliation guards (``finance_designer.domain.guards``).

Responsibility
--------------
Two save-path backstops:

* ``validate_no_forbidden_changes`` -- structural diff between the original
  canonical definition and the reconciled one.  Rejects any drift of an
  immutable identifier or of a header field's posting semantics.
* ``assert_not_layout`` -- shape-based detector that keeps a layout-shaped
  object away from every save call.

Architecture position
---------------------
**Domain layer** -- pure checks, zero I/O apart from logging.  Called by
``services.designer_service`` immediately before persisting.  Deliberately
redundant with the reverse converter's allow-list: these guards exist to
catch converter bugs, not to be the only line of defense.

Invariants enforced
-------------------
* ``id``, ``company_id``, ``code``, ``module``, ``schema_version`` (== 2)
  and ``required_posting_roles`` are identical before and after.
* Every original header field survives with identical ``is_posting`` and
  ``posting_role``.
* Nothing with a layout marker, a header/body/lines/actions member, or
  without canonical header_fields/table_columns arrays reaches storage.

Failure modes
-------------
* ``ForbiddenChangeError`` -- one aggregated error listing every violation.
* ``PersistenceViolationError`` -- layout-shaped object on a save path.
  Also logged at CRITICAL on the ``finance_designer.alerts`` logger and
  forwarded to the optional ``on_violation`` callback.

Audit relevance
---------------
A persistence violation is a latent data-corruption defect.  The alert
record carries the save context and the detected shape so the offending
call path can be traced.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from typing import Any

from finance_designer.domain.canonical import SCHEMA_VERSION, VoucherTypeDefinition
from finance_designer.exceptions import ForbiddenChangeError, PersistenceViolationError
from finance_designer.logging_config import get_logger

logger = get_logger("domain.guards")
alert_logger = get_logger("alerts")

ViolationHandler = Callable[[PersistenceViolationError], None]

IMMUTABLE_IDENTIFIERS: tuple[str, ...] = (
    "id",
    "company_id",
    "code",
    "module",
    "required_posting_roles",
)

LAYOUT_MARKERS: tuple[str, ...] = ("__do_not_persist__", "__DO_NOT_PERSIST__")
LAYOUT_AREAS: tuple[str, ...] = ("header", "body", "lines", "actions")

# (attribute name on objects, key in stored documents)
CANONICAL_ARRAYS: tuple[tuple[str, str], ...] = (
    ("header_fields", "headerFields"),
    ("table_columns", "tableColumns"),
)


# ---------------------------------------------------------------------------
# Forbidden-change validator
# ---------------------------------------------------------------------------


def validate_no_forbidden_changes(
    original: VoucherTypeDefinition,
    updated: VoucherTypeDefinition,
) -> None:
    """
    Diff ``updated`` against ``original`` and reject forbidden changes.

    Preconditions:
        ``original`` is the definition loaded before editing.
    Postconditions:
        Returns None when nothing forbidden changed.
    Raises:
        ForbiddenChangeError: carrying every violation found.
    """
    violations: list[str] = []

    if updated.schema_version != SCHEMA_VERSION:
        violations.append(
            f"schema_version changed from {original.schema_version} "
            f"to {updated.schema_version}"
        )

    for name in IMMUTABLE_IDENTIFIERS:
        before = getattr(original, name)
        after = getattr(updated, name)
        if before != after:
            violations.append(f"{name} changed from {before!r} to {after!r}")

    updated_fields = {f.id: f for f in updated.header_fields}
    original_ids = {f.id for f in original.header_fields}

    for original_field in original.header_fields:
        updated_field = updated_fields.get(original_field.id)
        if updated_field is None:
            violations.append(f"Field {original_field.id}: removed")
            continue
        if updated_field.is_posting != original_field.is_posting:
            violations.append(
                f"Field {original_field.id}: is_posting changed from "
                f"{original_field.is_posting} to {updated_field.is_posting}"
            )
        if updated_field.posting_role != original_field.posting_role:
            violations.append(
                f"Field {original_field.id}: posting_role changed from "
                f"{_role(original_field.posting_role)} to {_role(updated_field.posting_role)}"
            )

    for field_id in updated_fields:
        if field_id not in original_ids:
            violations.append(f"Field {field_id}: added")

    if violations:
        logger.warning(
            "forbidden_changes_detected",
            extra={
                "voucher_code": original.code,
                "violation_count": len(violations),
                "violations": violations,
            },
        )
        raise ForbiddenChangeError(violations)


def _role(role: Any) -> str:
    return role.value if role is not None else "None"


# ---------------------------------------------------------------------------
# Persistence guard
# ---------------------------------------------------------------------------


def _has_member(obj: Any, name: str) -> bool:
    if isinstance(obj, Mapping):
        return name in obj
    return hasattr(obj, name)


def _detect_layout_shape(obj: Any) -> str | None:
    """Return the reason ``obj`` must not be persisted, or None."""
    for marker in LAYOUT_MARKERS:
        if isinstance(obj, Mapping):
            if marker in obj:
                return f"Object carries the layout marker {marker}"
        elif getattr(obj, marker, False):
            return f"Object carries the layout marker {marker}"

    present = [area for area in LAYOUT_AREAS if _has_member(obj, area)]
    if present:
        return (
            f"Object has layout properties ({', '.join(present)}); "
            f"only canonical voucher type definitions can be persisted"
        )

    for attribute, key in CANONICAL_ARRAYS:
        if isinstance(obj, Mapping):
            value, label = obj.get(key), key
        else:
            value, label = getattr(obj, attribute, None), attribute
        if not isinstance(value, (list, tuple)):
            return f"Missing {label} array; expected a canonical voucher type definition"

    return None


def assert_not_layout(
    obj: Any,
    context: str,
    on_violation: ViolationHandler | None = None,
) -> None:
    """
    Reject ``obj`` if it is layout-shaped.  Run immediately before saving.

    Works on canonical dataclasses and on stored documents (mappings), so the
    check holds on either side of a serialization boundary.

    Raises:
        PersistenceViolationError: ``obj`` must not be persisted.
    """
    reason = _detect_layout_shape(obj)
    if reason is None:
        logger.debug(
            "persistence_attempt_validated",
            extra={
                "context": context,
                "object_type": type(obj).__name__,
            },
        )
        return

    error = PersistenceViolationError(context, reason)
    alert_logger.critical(
        "persistence_violation_blocked",
        extra={
            "context": context,
            "reason": reason,
            "object_type": type(obj).__name__,
        },
    )
    if on_violation is not None:
        on_violation(error)
    raise error
