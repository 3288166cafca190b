"""
SystemFieldRegistry -- CORE and SHARED fields per voucher type.

Responsibility:
    Catalogs the backend's contractual field set for each voucher code:
    CORE fields (required by the posting handlers) and SHARED fields
    (optional, system-defined), plus the per-type line-table columns.

Architecture position:
    Domain -- pure functional core, zero I/O.  Instances are built once by
    ``finance_designer.config.get_field_registry()`` and passed by reference
    to the converters, the designer service and the wizard.  There is no
    module-level registry.

Invariants enforced:
    - Every CORE field has category CORE, can_remove=False, can_hide=False
      and is stored in the voucher (checked by ``validate_field_registry``).
    - No duplicate field ids across core + shared fields.
    - Lookups by unknown voucher code fail with ``UnknownVoucherTypeError``.

Failure modes:
    - UnknownVoucherTypeError: code is not a voucher code.
    - RegistryLookupError: code is valid but this registry does not carry it.

Audit relevance:
    ``validate_core_fields_present`` is the gate the wizard uses before a
    field selection may leave FIELD_SELECTION; a layout can never drop a
    field the posting handler needs.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field

from finance_designer.domain.canonical import VoucherCode
from finance_designer.domain.fields import (
    FieldCategory,
    FieldDefinitionV2,
    StorageLocation,
)
from finance_designer.exceptions import RegistryLookupError, UnknownVoucherTypeError
from finance_designer.logging_config import get_logger

logger = get_logger("domain.registry")


@dataclass(frozen=True)
class VoucherTypeFieldRegistry:
    """
    Field registry for a single voucher type.

    Attributes:
        core_fields: CORE fields, never removed or hidden.
        shared_fields: SHARED fields, may be hidden, never removed.
        line_columns: Line-table columns for table vouchers (empty otherwise).
    """

    voucher_type: VoucherCode
    core_fields: tuple[FieldDefinitionV2, ...]
    shared_fields: tuple[FieldDefinitionV2, ...] = ()
    line_columns: tuple[FieldDefinitionV2, ...] = ()

    @property
    def core_field_ids(self) -> tuple[str, ...]:
        return tuple(f.id for f in self.core_fields)


@dataclass
class FieldRegistryValidationResult:
    """
    Result of a registry self-test.

    Contract
    --------
    * ``is_valid`` returns ``True`` only when ``errors`` is empty.
    * Warnings do not invalidate the registry.
    """

    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return len(self.errors) == 0


@dataclass(frozen=True)
class CoreFieldPresence:
    valid: bool
    missing_fields: tuple[str, ...] = ()


def get_all_system_fields(registry: VoucherTypeFieldRegistry) -> tuple[FieldDefinitionV2, ...]:
    """CORE fields followed by SHARED fields."""
    return registry.core_fields + registry.shared_fields


def validate_field_registry(registry: VoucherTypeFieldRegistry) -> FieldRegistryValidationResult:
    """
    Check the structural invariants of one voucher type's registry.

    Postconditions:
        Returns every violation; never raises.  This is a registry
        self-test, not a runtime guard.
    """
    result = FieldRegistryValidationResult()

    if not registry.core_fields:
        result.errors.append("CORE fields are required")

    for f in registry.core_fields:
        if f.category is not FieldCategory.CORE:
            result.errors.append(f'Field "{f.id}" must have category CORE')
        if f.can_remove:
            result.errors.append(f'CORE field "{f.id}" cannot have can_remove=True')
        if f.can_hide:
            result.errors.append(f'CORE field "{f.id}" cannot have can_hide=True')
        if f.stored_in is not StorageLocation.VOUCHER:
            result.errors.append(f'CORE field "{f.id}" must be stored in voucher')

    for f in registry.shared_fields:
        if f.category is not FieldCategory.SHARED:
            result.errors.append(f'Field "{f.id}" must have category SHARED')
        if f.can_remove:
            result.errors.append(f'SHARED field "{f.id}" cannot have can_remove=True')
        if not f.can_hide:
            result.warnings.append(f'SHARED field "{f.id}" should have can_hide=True')
        if f.stored_in is not StorageLocation.VOUCHER:
            result.errors.append(f'SHARED field "{f.id}" must be stored in voucher')

    seen: set[str] = set()
    duplicates: list[str] = []
    for f in get_all_system_fields(registry):
        if f.id in seen and f.id not in duplicates:
            duplicates.append(f.id)
        seen.add(f.id)
    if duplicates:
        result.errors.append(f"Duplicate field IDs: {', '.join(duplicates)}")

    return result


class SystemFieldRegistry:
    """
    Registry of field catalogs keyed by voucher code.

    Contract:
        Immutable after construction.  Built once at startup and injected
        into its consumers, so tests substitute fixture registries without
        touching module state.

    Guarantees:
        - ``get_voucher_type_registry()`` never returns None.
        - ``validate_core_fields_present()`` reports every missing CORE id.

    Non-goals:
        - Does NOT load YAML (that is ``finance_designer.config``).
        - Does NOT run ``validate_field_registry`` on construction.
    """

    def __init__(self, registries: Iterable[VoucherTypeFieldRegistry]):
        self._registries: dict[VoucherCode, VoucherTypeFieldRegistry] = {
            r.voucher_type: r for r in registries
        }

    @staticmethod
    def _coerce(code: str | VoucherCode) -> VoucherCode:
        try:
            return VoucherCode(code)
        except ValueError:
            raise UnknownVoucherTypeError(str(code)) from None

    def voucher_codes(self) -> tuple[VoucherCode, ...]:
        return tuple(self._registries)

    def get_voucher_type_registry(self, code: str | VoucherCode) -> VoucherTypeFieldRegistry:
        """
        Return the registry for one voucher code.

        Raises:
            UnknownVoucherTypeError: ``code`` is not a voucher code.
            RegistryLookupError: ``code`` is valid but not registered here.
        """
        voucher_code = self._coerce(code)
        registry = self._registries.get(voucher_code)
        if registry is None:
            logger.debug("registry_not_found", extra={"voucher_code": voucher_code.value})
            raise RegistryLookupError(
                voucher_code.value,
                f"No field registry loaded for {voucher_code.value}",
            )
        return registry

    def get_core_fields(self, code: str | VoucherCode) -> tuple[FieldDefinitionV2, ...]:
        return self.get_voucher_type_registry(code).core_fields

    def get_shared_fields(self, code: str | VoucherCode) -> tuple[FieldDefinitionV2, ...]:
        return self.get_voucher_type_registry(code).shared_fields

    def get_line_columns(self, code: str | VoucherCode) -> tuple[FieldDefinitionV2, ...]:
        return self.get_voucher_type_registry(code).line_columns

    def get_field(self, code: str | VoucherCode, field_id: str) -> FieldDefinitionV2 | None:
        for f in get_all_system_fields(self.get_voucher_type_registry(code)):
            if f.id == field_id:
                return f
        return None

    def validate_core_fields_present(
        self,
        code: str | VoucherCode,
        user_field_ids: Iterable[str],
    ) -> CoreFieldPresence:
        """Check that every CORE field id of ``code`` is in ``user_field_ids``."""
        present = set(user_field_ids)
        missing = tuple(
            field_id
            for field_id in self.get_voucher_type_registry(code).core_field_ids
            if field_id not in present
        )
        return CoreFieldPresence(valid=not missing, missing_fields=missing)

    def validate(self) -> Mapping[VoucherCode, FieldRegistryValidationResult]:
        """Run ``validate_field_registry`` on every voucher type."""
        return {code: validate_field_registry(r) for code, r in self._registries.items()}
