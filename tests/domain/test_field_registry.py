"""Tests for the system field registry and its self-test."""

from dataclasses import replace

import pytest

from finance_designer.domain.canonical import VoucherCode
from finance_designer.domain.fields import (
    FieldCategory,
    create_core_field,
    create_personal_field,
    create_shared_field,
)
from finance_designer.domain.registry import (
    SystemFieldRegistry,
    VoucherTypeFieldRegistry,
    get_all_system_fields,
    validate_field_registry,
)
from finance_designer.exceptions import RegistryLookupError, UnknownVoucherTypeError


def _registry(**overrides) -> VoucherTypeFieldRegistry:
    values = dict(
        voucher_type=VoucherCode.PAYMENT,
        core_fields=(create_core_field(id="date", label="Date", type="DATE"),),
        shared_fields=(create_shared_field(id="notes", label="Notes", type="TEXT"),),
    )
    values.update(overrides)
    return VoucherTypeFieldRegistry(**values)


class TestRegistryLookup:
    def test_payment_core_fields(self, field_registry):
        ids = [f.id for f in field_registry.get_core_fields("PAYMENT")]
        assert ids == [
            "date", "amount", "cashAccountId", "expenseAccountId", "description", "currency",
        ]

    def test_journal_entry_core_fields(self, field_registry):
        assert field_registry.get_voucher_type_registry("JOURNAL_ENTRY").core_field_ids == (
            "date", "description", "currency",
        )

    def test_all_voucher_codes_loaded(self, field_registry):
        assert set(field_registry.voucher_codes()) == set(VoucherCode)

    def test_get_field_finds_shared_field(self, field_registry):
        f = field_registry.get_field(VoucherCode.RECEIPT, "salesInvoiceNo")
        assert f is not None
        assert f.category is FieldCategory.SHARED

    def test_get_field_unknown_id_returns_none(self, field_registry):
        assert field_registry.get_field("PAYMENT", "doesNotExist") is None

    def test_unknown_voucher_code_raises(self, field_registry):
        with pytest.raises(UnknownVoucherTypeError) as exc_info:
            field_registry.get_voucher_type_registry("INVOICE")

        assert exc_info.value.voucher_code == "INVOICE"
        assert isinstance(exc_info.value, RegistryLookupError)

    def test_valid_code_missing_from_registry_raises_lookup_error(self):
        registry = SystemFieldRegistry([_registry()])

        with pytest.raises(RegistryLookupError) as exc_info:
            registry.get_core_fields("RECEIPT")

        assert not isinstance(exc_info.value, UnknownVoucherTypeError)

    def test_line_columns_only_for_table_vouchers(self, field_registry):
        assert field_registry.get_line_columns("PAYMENT") == ()
        je_columns = [c.id for c in field_registry.get_line_columns("JOURNAL_ENTRY")]
        assert je_columns[:3] == ["account", "debit", "credit"]

    def test_all_system_fields_core_then_shared(self):
        registry = _registry()
        assert [f.id for f in get_all_system_fields(registry)] == ["date", "notes"]


class TestValidateCoreFieldsPresent:
    def test_all_core_present(self, field_registry):
        result = field_registry.validate_core_fields_present(
            "JOURNAL_ENTRY", ["date", "description", "currency", "notes"]
        )
        assert result.valid is True
        assert result.missing_fields == ()

    def test_reports_every_missing_core_field(self, field_registry):
        result = field_registry.validate_core_fields_present("PAYMENT", ["date", "amount"])

        assert result.valid is False
        assert result.missing_fields == (
            "cashAccountId", "expenseAccountId", "description", "currency",
        )


class TestValidateFieldRegistry:
    def test_shipped_registries_are_valid(self, field_registry):
        for code, result in field_registry.validate().items():
            assert result.is_valid, (code, result.errors)
            assert result.warnings == []

    def test_requires_core_fields(self):
        result = validate_field_registry(_registry(core_fields=()))
        assert "CORE fields are required" in result.errors

    def test_core_field_with_wrong_category(self):
        shared = create_shared_field(id="date", label="Date", type="DATE")
        result = validate_field_registry(_registry(core_fields=(shared,)))
        assert 'Field "date" must have category CORE' in result.errors

    def test_hand_built_removable_core_field_rejected(self):
        broken = replace(create_core_field(id="date", label="Date", type="DATE"), can_remove=True)
        result = validate_field_registry(_registry(core_fields=(broken,)))
        assert 'CORE field "date" cannot have can_remove=True' in result.errors

    def test_hand_built_hideable_core_field_rejected(self):
        broken = replace(create_core_field(id="date", label="Date", type="DATE"), can_hide=True)
        result = validate_field_registry(_registry(core_fields=(broken,)))
        assert 'CORE field "date" cannot have can_hide=True' in result.errors

    def test_personal_field_in_core_list_rejected(self):
        personal = create_personal_field(id="mine", label="Mine", type="TEXT")
        result = validate_field_registry(_registry(core_fields=(personal,)))

        assert 'CORE field "mine" must be stored in voucher' in result.errors
        assert not result.is_valid

    def test_shared_field_not_hideable_is_warning(self):
        rigid = replace(create_shared_field(id="notes", label="Notes", type="TEXT"), can_hide=False)
        result = validate_field_registry(_registry(shared_fields=(rigid,)))

        assert result.is_valid
        assert result.warnings == ['SHARED field "notes" should have can_hide=True']

    def test_duplicate_ids_rejected(self):
        result = validate_field_registry(
            _registry(shared_fields=(create_shared_field(id="date", label="Due", type="DATE"),))
        )
        assert "Duplicate field IDs: date" in result.errors
