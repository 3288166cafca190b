"""
Typed Exception Hierarchy for the Voucher Designer.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

The designer guards accounting-critical data.  Callers (the UI shell, the
alerting pipeline, tests) must be able to tell a user-correctable condition
from a defect without parsing message strings:

  1. Every error has a TYPED exception class (catch by type, not message)
  2. Every exception has a CODE attribute (machine-readable, API-safe)
  3. Exceptions carry structured DATA (not just a message string)

Example:
    try:
        service.save()
    except ForbiddenChangeError as e:
        for violation in e.violations:      # every violation, not just the first
            log.error(violation)
    except PersistenceViolationError as e:
        page_on_call(e.context, e.reason)  # a defect, never a user error

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    FinanceDesignerError (base)
    |
    +-- DefinitionError
    |   +-- SchemaVersionError
    |   +-- SchemaValidationError
    |   +-- VoucherDefinitionNotFoundError
    |
    +-- ReconciliationError
    |   +-- VoucherTypeMismatchError
    |   +-- ForbiddenChangeError
    |
    +-- PersistenceViolationError
    |
    +-- LifecycleError
    |   +-- PreconditionError
    |   +-- InvalidStateTransitionError
    |
    +-- RegistryError
    |   +-- RegistryLookupError
    |   |   +-- UnknownVoucherTypeError
    |   +-- RegistryValidationError
    |
    +-- FieldConfigurationError
        +-- FieldNotModifiableError
        +-- EssentialColumnError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category        | Code                          | When Raised
----------------|-------------------------------|---------------------------------------
Definition      | SCHEMA_VERSION_UNSUPPORTED    | Canonical definition is not Schema V2
                | SCHEMA_VALIDATION_FAILED      | Stored document fails the V2 shape check
                | VOUCHER_DEFINITION_NOT_FOUND  | No definition for company/voucher code
----------------|-------------------------------|---------------------------------------
Reconciliation  | VOUCHER_TYPE_MISMATCH         | Layout attached to the wrong definition
                | FORBIDDEN_CHANGE              | Immutable / posting property drifted
----------------|-------------------------------|---------------------------------------
Persistence     | PERSISTENCE_VIOLATION         | Layout-shaped object reached a save path
----------------|-------------------------------|---------------------------------------
Lifecycle       | PRECONDITION_FAILED           | Save without loaded canonical or layout
                | INVALID_STATE_TRANSITION      | Designer state machine misuse
----------------|-------------------------------|---------------------------------------
Registry        | UNKNOWN_VOUCHER_TYPE          | Voucher code not in the registry
                | REGISTRY_VALIDATION_FAILED    | Loaded registry fails its self-test
----------------|-------------------------------|---------------------------------------
Field config    | FIELD_NOT_MODIFIABLE          | Action not permitted for field category
                | ESSENTIAL_COLUMN_REQUIRED     | Essential line column removed/moved

===============================================================================
DESIGN DECISIONS
===============================================================================

1. ALL FATAL.  Every error in this module aborts the current operation.
   The designer never repairs a detected invariant violation.

2. AGGREGATED FORBIDDEN CHANGES.  ForbiddenChangeError carries the full
   tuple of violations so one validation run reports every drift.

3. PERSISTENCE VIOLATIONS ARE DEFECTS.  They are also reported on the
   ``finance_designer.alerts`` logger by the guard that raises them.

===============================================================================
"""


class FinanceDesignerError(Exception):
    """
    Base exception for all designer errors.

    All subclasses must have a `code` class attribute for machine-readable
    error identification.
    """

    code: str = "FINANCE_DESIGNER_ERROR"


# Definition exceptions


class DefinitionError(FinanceDesignerError):
    """Base exception for canonical definition errors."""

    code: str = "DEFINITION_ERROR"


class SchemaVersionError(DefinitionError):
    """Canonical definition is not Schema V2."""

    code: str = "SCHEMA_VERSION_UNSUPPORTED"

    def __init__(self, schema_version, context: str = ""):
        self.schema_version = schema_version
        self.context = context
        where = f" ({context})" if context else ""
        super().__init__(
            f"Only Schema V2 definitions are supported{where}: "
            f"received schema version {schema_version!r}"
        )


class SchemaValidationError(DefinitionError):
    """Stored document does not conform to canonical Schema V2."""

    code: str = "SCHEMA_VALIDATION_FAILED"

    def __init__(self, context: str, errors: list[str]):
        self.context = context
        self.errors = list(errors)
        super().__init__(
            f"Schema V2 validation failed ({context}): "
            + "; ".join(self.errors)
        )


class VoucherDefinitionNotFoundError(DefinitionError):
    """No canonical definition exists for the voucher code."""

    code: str = "VOUCHER_DEFINITION_NOT_FOUND"

    def __init__(self, voucher_code: str, company_id: str | None = None):
        self.voucher_code = voucher_code
        self.company_id = company_id
        owner = f" for company {company_id}" if company_id else ""
        super().__init__(f"Voucher type definition not found: {voucher_code}{owner}")


# Reconciliation exceptions


class ReconciliationError(FinanceDesignerError):
    """Base exception for layout-to-canonical reconciliation errors."""

    code: str = "RECONCILIATION_ERROR"


class VoucherTypeMismatchError(ReconciliationError):
    """
    Layout voucher type does not match the canonical code.

    Always a programming error: a layout was attached to the wrong session.
    """

    code: str = "VOUCHER_TYPE_MISMATCH"

    def __init__(self, layout_voucher_type: str, definition_code: str):
        self.layout_voucher_type = layout_voucher_type
        self.definition_code = definition_code
        super().__init__(
            f"Layout mismatch: layout is for {layout_voucher_type} "
            f"but definition is {definition_code}"
        )


class ForbiddenChangeError(ReconciliationError):
    """One or more immutable or accounting-semantic properties changed."""

    code: str = "FORBIDDEN_CHANGE"

    def __init__(self, violations: list[str]):
        self.violations = tuple(violations)
        super().__init__(
            "Forbidden changes detected:\n- "
            + "\n- ".join(self.violations)
            + "\nOnly UI properties (labels, visibility, layout) can be changed."
        )


# Persistence exceptions


class PersistenceViolationError(FinanceDesignerError):
    """
    A layout-shaped object reached a save path.

    This is a latent data-corruption defect, not a user error.
    """

    code: str = "PERSISTENCE_VIOLATION"

    def __init__(self, context: str, reason: str):
        self.context = context
        self.reason = reason
        super().__init__(f"Persistence violation ({context}): {reason}")


# Lifecycle exceptions


class LifecycleError(FinanceDesignerError):
    """Base exception for designer lifecycle errors."""

    code: str = "LIFECYCLE_ERROR"


class PreconditionError(LifecycleError):
    """Operation attempted without its required state."""

    code: str = "PRECONDITION_FAILED"

    def __init__(self, operation: str, missing: str):
        self.operation = operation
        self.missing = missing
        super().__init__(f"Cannot {operation}: {missing}")


class InvalidStateTransitionError(LifecycleError):
    """Designer state machine transition is not allowed."""

    code: str = "INVALID_STATE_TRANSITION"

    def __init__(self, current_state: str, target_state: str):
        self.current_state = current_state
        self.target_state = target_state
        super().__init__(
            f"Invalid designer state transition: {current_state} -> {target_state}"
        )


# Registry exceptions


class RegistryError(FinanceDesignerError):
    """Base exception for system field registry errors."""

    code: str = "REGISTRY_ERROR"


class RegistryLookupError(RegistryError):
    """Registry lookup failed."""

    code: str = "REGISTRY_LOOKUP_FAILED"

    def __init__(self, voucher_code: str, message: str | None = None):
        self.voucher_code = voucher_code
        super().__init__(message or f"Registry lookup failed for {voucher_code!r}")


class UnknownVoucherTypeError(RegistryLookupError):
    """Voucher code is not one of the registered voucher types."""

    code: str = "UNKNOWN_VOUCHER_TYPE"

    def __init__(self, voucher_code: str):
        super().__init__(voucher_code, f"Unknown voucher type: {voucher_code!r}")


class RegistryValidationError(RegistryError):
    """A loaded field registry failed its structural self-test."""

    code: str = "REGISTRY_VALIDATION_FAILED"

    def __init__(self, voucher_type: str, errors: list[str]):
        self.voucher_type = voucher_type
        self.errors = list(errors)
        super().__init__(
            f"Field registry for {voucher_type} is invalid: " + "; ".join(self.errors)
        )


# Field configuration exceptions


class FieldConfigurationError(FinanceDesignerError):
    """Base exception for field and column configuration errors."""

    code: str = "FIELD_CONFIGURATION_ERROR"


class FieldNotModifiableError(FieldConfigurationError):
    """Requested action is not permitted for the field's category."""

    code: str = "FIELD_NOT_MODIFIABLE"

    def __init__(self, field_id: str, action: str):
        self.field_id = field_id
        self.action = action
        super().__init__(f"Field {field_id!r} does not allow action {action!r}")


class EssentialColumnError(FieldConfigurationError):
    """Essential line column cannot be removed or moved out of the table."""

    code: str = "ESSENTIAL_COLUMN_REQUIRED"

    def __init__(self, column_id: str):
        self.column_id = column_id
        super().__init__(f"Line column {column_id!r} is essential and cannot be removed")
