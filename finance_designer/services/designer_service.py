"""
DesignerService -- load / edit / save lifecycle of one designer session.

Responsibility:
    Owns two slots: ``original_canonical`` (the persisted definition as
    loaded) and ``layout`` (the ephemeral view model being edited).  Loads
    through the forward converter, saves through the reverse converter,
    the forbidden-change validator and the persistence guard.

Architecture position:
    Services -- imperative shell.  Depends on the domain and converter
    layers and on an injected ``VoucherTypeRepository`` and
    ``SystemFieldRegistry``.  Synchronous: the two repository calls are made
    one after the other, never concurrently.

Invariants enforced:
    - Reconciliation always runs against ``original_canonical`` as captured
      at load time, never a re-fetched copy.
    - ``assert_not_layout`` runs with context ``"pre-save"`` immediately
      before ``repository.update``.
    - After a successful ``repository.update`` the layout is discarded and
      a fresh one is regenerated by reloading.
    - On any save failure ``original_canonical`` and ``layout`` are left as
      they were, so the user can correct and retry.

Failure modes:
    - PreconditionError: save / edit without the required state.
    - SchemaVersionError: loaded definition is not Schema V2.
    - VoucherTypeMismatchError, ForbiddenChangeError,
      PersistenceViolationError: reconciliation or guard failures on save.
    - InvalidStateTransitionError: operation not allowed in current state.
    - Repository errors propagate unchanged.
    None of them is retried or swallowed; ``last_error`` keeps the latest.

Audit relevance:
    ``designer_loaded``, ``designer_saved`` and ``layout_discarded`` are
    logged with the voucher code and definition id.  Failures are logged
    at WARNING with the exception's code and attributes.
"""

from __future__ import annotations

from finance_designer.converters.canonical_to_layout import canonical_to_layout
from finance_designer.converters.layout_to_canonical import apply_layout_to_canonical
from finance_designer.domain.canonical import SCHEMA_VERSION, VoucherTypeDefinition
from finance_designer.domain.guards import (
    ViolationHandler,
    assert_not_layout,
    validate_no_forbidden_changes,
)
from finance_designer.domain.layout import DisplayMode, VoucherLayoutV2
from finance_designer.domain.registry import SystemFieldRegistry
from finance_designer.exceptions import (
    InvalidStateTransitionError,
    PreconditionError,
    SchemaVersionError,
)
from finance_designer.logging_config import LogContext, get_logger
from finance_designer.services.lifecycle import DesignerState, validate_transition
from finance_designer.services.repository import VoucherTypeRepository

logger = get_logger("services.designer")


class DesignerService:
    """
    Lifecycle controller for a single voucher type.

    Contract:
        One instance per edit session.  ``load()`` must succeed before
        ``edit()`` or ``save()``.  Instances share no mutable state.

    Guarantees:
        - ``is_layout_persistable()`` is always False.
        - A failed ``save()`` keeps the edited layout.

    Non-goals:
        - Does NOT commit transactions; the repository's owner does.
        - Does NOT merge edits from concurrent sessions (last save wins
          once the forbidden-change validator has cleared it).
    """

    def __init__(
        self,
        repository: VoucherTypeRepository,
        registry: SystemFieldRegistry,
        voucher_code: str,
        mode: DisplayMode | str = DisplayMode.CLASSIC,
        on_violation: ViolationHandler | None = None,
    ):
        self._repository = repository
        self._registry = registry
        self.voucher_code = str(getattr(voucher_code, "value", voucher_code))
        self._mode = DisplayMode(mode)
        self._on_violation = on_violation

        self.original_canonical: VoucherTypeDefinition | None = None
        self.layout: VoucherLayoutV2 | None = None
        self.state = DesignerState.IDLE
        self.last_error: Exception | None = None

    # ------------------------------------------------------------------
    # Load
    # ------------------------------------------------------------------

    def load(self) -> VoucherLayoutV2:
        """
        Fetch the canonical definition and project a fresh layout.

        Postconditions:
            ``original_canonical`` and ``layout`` are set; state LOADED.
        Raises:
            SchemaVersionError: definition is not Schema V2.
        """
        self._transition(DesignerState.LOADING)
        with LogContext.bind(voucher_code=self.voucher_code):
            try:
                canonical = self._repository.get(self.voucher_code)
                if canonical.schema_version != SCHEMA_VERSION:
                    raise SchemaVersionError(canonical.schema_version, "load")
                layout = canonical_to_layout(canonical, self._mode, self._registry)
            except Exception as exc:
                self._fail("load", exc)
                raise

            self.original_canonical = canonical
            self.layout = layout
            self.last_error = None
            self._transition(DesignerState.LOADED)
            logger.info(
                "designer_loaded",
                extra={
                    "definition_id": canonical.id,
                    "header_field_count": len(canonical.header_fields),
                    "mode": self._mode.value,
                },
            )
        return layout

    def reload(self) -> VoucherLayoutV2:
        return self.load()

    # ------------------------------------------------------------------
    # Edit
    # ------------------------------------------------------------------

    def edit(self, layout: VoucherLayoutV2) -> None:
        """Replace the in-memory layout.  No I/O."""
        if self.original_canonical is None:
            raise PreconditionError("edit", "no canonical definition loaded")
        self._transition(DesignerState.EDITING)
        self.layout = layout

    def discard_changes(self) -> VoucherLayoutV2:
        """Drop in-memory edits and regenerate the layout from ``original_canonical``."""
        if self.original_canonical is None:
            raise PreconditionError("discard changes", "no canonical definition loaded")
        self._transition(DesignerState.LOADED)
        self.layout = canonical_to_layout(self.original_canonical, self._mode, self._registry)
        logger.info(
            "layout_discarded",
            extra={"voucher_code": self.voucher_code, "reason": "discard_changes"},
        )
        return self.layout

    # ------------------------------------------------------------------
    # Save
    # ------------------------------------------------------------------

    def save(self) -> VoucherTypeDefinition:
        """
        Reconcile the layout into the canonical definition and persist it.

        Returns:
            The definition handed to ``repository.update``.
        Raises:
            PreconditionError: nothing loaded, or no layout.
            Any reconciliation, guard or repository error, after which
            ``layout`` and ``original_canonical`` are unchanged.
        """
        if self.original_canonical is None:
            raise PreconditionError("save", "no canonical definition loaded")
        if self.layout is None:
            raise PreconditionError("save", "no layout to save")

        original = self.original_canonical
        self._transition(DesignerState.SAVING)

        with LogContext.bind(voucher_code=self.voucher_code):
            try:
                updated = apply_layout_to_canonical(original, self.layout)
                validate_no_forbidden_changes(original, updated)
                assert_not_layout(updated, "pre-save", self._on_violation)
                if updated.schema_version != SCHEMA_VERSION:
                    raise SchemaVersionError(updated.schema_version, "pre-save")
                self._repository.update(self.voucher_code, updated)
            except Exception as exc:
                self._fail("save", exc)
                raise

            # Persisted: the layout must not be reused, even if reload fails
            self.layout = None
            logger.info(
                "layout_discarded",
                extra={"voucher_code": self.voucher_code, "reason": "saved"},
            )
            self._transition(DesignerState.SAVED)
            logger.info(
                "designer_saved",
                extra={
                    "definition_id": updated.id,
                    "schema_version": updated.schema_version,
                },
            )

        self.load()
        return updated

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def is_layout_persistable(self) -> bool:
        return False

    def is_canonical_valid(self) -> bool:
        return (
            self.original_canonical is not None
            and self.original_canonical.schema_version == SCHEMA_VERSION
        )

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _transition(self, target: DesignerState) -> None:
        if not validate_transition(self.state, target):
            raise InvalidStateTransitionError(self.state.value, target.value)
        self.state = target

    def _fail(self, operation: str, exc: Exception) -> None:
        self.last_error = exc
        self.state = DesignerState.ERROR
        logger.warning(
            f"designer_{operation}_failed",
            extra={"error_code": getattr(exc, "code", None)},
            exc_info=exc,
        )
