"""
Tests for the designer load / edit / save lifecycle.

Uses the in-memory repository from conftest so that every call the
service makes to storage can be inspected.
"""

import logging
from dataclasses import replace

import pytest

from conftest import InMemoryVoucherTypeRepository
from finance_designer.converters import canonical_to_layout
from finance_designer.domain.canonical import VoucherTypeDefinition
from finance_designer.domain.layout import DisplayMode
from finance_designer.exceptions import (
    ForbiddenChangeError,
    InvalidStateTransitionError,
    PersistenceViolationError,
    PreconditionError,
    SchemaVersionError,
    VoucherDefinitionNotFoundError,
    VoucherTypeMismatchError,
)
from finance_designer.services import DesignerService, DesignerState, validate_transition
from finance_designer.services.repository import VoucherTypeRepository

SERVICE_MODULE = "finance_designer.services.designer_service"


def _edit_body_field(layout, field_id, **changes):
    fields = tuple(
        replace(f, **changes) if f.id == field_id else f for f in layout.body.fields
    )
    return replace(layout, body=replace(layout.body, fields=fields))


@pytest.fixture
def service(payment_repository, field_registry) -> DesignerService:
    return DesignerService(payment_repository, field_registry, "PAYMENT")


@pytest.fixture
def loaded_service(service) -> DesignerService:
    service.load()
    return service


class TestLoad:
    def test_load_sets_both_slots(self, service, payment_definition):
        layout = service.load()

        assert service.state is DesignerState.LOADED
        assert service.original_canonical == payment_definition
        assert service.layout is layout
        assert layout.voucher_type == "PAYMENT"
        assert layout.mode is DisplayMode.CLASSIC
        assert service.is_canonical_valid()

    def test_load_logs(self, service, caplog):
        with caplog.at_level(logging.INFO, logger="finance_designer"):
            service.load()

        record = next(r for r in caplog.records if r.getMessage() == "designer_loaded")
        assert record.definition_id == "vt-payment"

    def test_legacy_definition_rejected(self, legacy_payment_definition, field_registry):
        service = DesignerService(
            InMemoryVoucherTypeRepository(legacy_payment_definition), field_registry, "PAYMENT"
        )

        with pytest.raises(SchemaVersionError):
            service.load()

        assert service.state is DesignerState.ERROR
        assert service.layout is None
        assert service.original_canonical is None
        assert isinstance(service.last_error, SchemaVersionError)

    def test_repository_error_propagates(self, service, payment_repository):
        payment_repository.fail_on_get = VoucherDefinitionNotFoundError("PAYMENT")

        with pytest.raises(VoucherDefinitionNotFoundError):
            service.load()

        assert service.state is DesignerState.ERROR

    def test_reload_after_error(self, service, payment_repository):
        payment_repository.fail_on_get = RuntimeError("connection lost")
        with pytest.raises(RuntimeError):
            service.load()

        payment_repository.fail_on_get = None
        service.reload()

        assert service.state is DesignerState.LOADED
        assert service.last_error is None

    def test_windows_mode(self, payment_repository, field_registry):
        service = DesignerService(payment_repository, field_registry, "PAYMENT", mode="windows")
        assert service.load().mode is DisplayMode.WINDOWS


class TestEdit:
    def test_edit_requires_load(self, service):
        with pytest.raises(PreconditionError) as exc_info:
            service.edit(None)

        assert exc_info.value.operation == "edit"

    def test_edit_replaces_layout(self, loaded_service):
        edited = _edit_body_field(loaded_service.layout, "amount", label="Payment Amount")

        loaded_service.edit(edited)

        assert loaded_service.state is DesignerState.EDITING
        assert loaded_service.layout is edited

    def test_discard_changes_regenerates(self, loaded_service):
        loaded_service.edit(_edit_body_field(loaded_service.layout, "amount", label="X"))

        layout = loaded_service.discard_changes()

        assert loaded_service.state is DesignerState.LOADED
        assert layout.body.field("amount").label == "Amount"

    def test_layout_never_persistable(self, loaded_service):
        assert loaded_service.is_layout_persistable() is False


class TestSave:
    def test_save_requires_load(self, service):
        with pytest.raises(PreconditionError) as exc_info:
            service.save()

        assert exc_info.value.missing == "no canonical definition loaded"
        assert service.state is DesignerState.IDLE

    def test_save_persists_permitted_edits(self, loaded_service, payment_repository, payment_definition):
        layout = _edit_body_field(loaded_service.layout, "amount", label="Payment Amount")
        layout = _edit_body_field(layout, "cashAccountId", width="full")
        loaded_service.edit(layout)

        updated = loaded_service.save()

        assert len(payment_repository.updates) == 1
        code, stored = payment_repository.updates[0]
        assert code == "PAYMENT"
        assert stored is updated
        assert isinstance(stored, VoucherTypeDefinition)
        assert stored.header_field("amount").label == "Payment Amount"
        assert stored.header_field("cashAccountId").width == "full"
        for before, after in zip(payment_definition.header_fields, stored.header_fields):
            assert (after.is_posting, after.posting_role) == (before.is_posting, before.posting_role)

    def test_save_reloads_fresh_layout(self, loaded_service):
        old_layout = _edit_body_field(loaded_service.layout, "amount", label="Payment Amount")
        loaded_service.edit(old_layout)

        updated = loaded_service.save()

        assert loaded_service.state is DesignerState.LOADED
        assert loaded_service.layout is not old_layout
        assert loaded_service.original_canonical == updated
        assert loaded_service.layout.body.field("amount").label == "Payment Amount"

    def test_save_logs_discard(self, loaded_service, caplog):
        with caplog.at_level(logging.INFO, logger="finance_designer"):
            loaded_service.save()

        reasons = [r.reason for r in caplog.records if r.getMessage() == "layout_discarded"]
        assert reasons == ["saved"]

    def test_forbidden_change_keeps_layout(
        self, loaded_service, payment_repository, monkeypatch
    ):
        layout = _edit_body_field(loaded_service.layout, "amount", label="Payment Amount")
        loaded_service.edit(layout)
        monkeypatch.setattr(
            f"{SERVICE_MODULE}.apply_layout_to_canonical",
            lambda original, _layout: replace(original, module="SALES"),
        )

        with pytest.raises(ForbiddenChangeError):
            loaded_service.save()

        assert payment_repository.updates == []
        assert loaded_service.layout is layout
        assert loaded_service.state is DesignerState.ERROR
        assert isinstance(loaded_service.last_error, ForbiddenChangeError)

    def test_retry_after_failure(self, loaded_service, payment_repository):
        payment_repository.fail_on_update = RuntimeError("disk full")
        layout = _edit_body_field(loaded_service.layout, "amount", label="Payment Amount")
        loaded_service.edit(layout)

        with pytest.raises(RuntimeError):
            loaded_service.save()
        assert loaded_service.layout is layout

        payment_repository.fail_on_update = None
        loaded_service.save()

        assert loaded_service.state is DesignerState.LOADED
        assert len(payment_repository.updates) == 1

    def test_layout_shaped_payload_blocked(
        self, payment_repository, field_registry, monkeypatch, caplog
    ):
        violations = []
        service = DesignerService(
            payment_repository, field_registry, "PAYMENT", on_violation=violations.append
        )
        service.load()
        monkeypatch.setattr(
            f"{SERVICE_MODULE}.apply_layout_to_canonical", lambda original, layout: layout
        )
        monkeypatch.setattr(
            f"{SERVICE_MODULE}.validate_no_forbidden_changes", lambda original, updated: None
        )

        with caplog.at_level(logging.CRITICAL, logger="finance_designer.alerts"):
            with pytest.raises(PersistenceViolationError) as exc_info:
                service.save()

        assert exc_info.value.context == "pre-save"
        assert violations == [exc_info.value]
        assert payment_repository.updates == []
        assert any(r.name == "finance_designer.alerts" for r in caplog.records)

    def test_layout_for_other_voucher_rejected(
        self, loaded_service, journal_entry_definition, field_registry
    ):
        loaded_service.edit(canonical_to_layout(journal_entry_definition, registry=field_registry))

        with pytest.raises(VoucherTypeMismatchError):
            loaded_service.save()

    def test_save_failure_logged_with_code(self, loaded_service, monkeypatch, caplog):
        monkeypatch.setattr(
            f"{SERVICE_MODULE}.apply_layout_to_canonical",
            lambda original, _layout: replace(original, code="RECEIPT"),
        )

        with caplog.at_level(logging.WARNING, logger="finance_designer"):
            with pytest.raises(ForbiddenChangeError):
                loaded_service.save()

        record = next(r for r in caplog.records if r.getMessage() == "designer_save_failed")
        assert record.error_code == "FORBIDDEN_CHANGE"


class TestStateMachine:
    def test_cannot_save_while_saving(self, loaded_service):
        loaded_service.state = DesignerState.SAVING

        with pytest.raises(InvalidStateTransitionError) as exc_info:
            loaded_service.save()

        assert exc_info.value.current_state == "saving"
        assert exc_info.value.target_state == "saving"

    @pytest.mark.parametrize(
        "current, target, expected",
        [
            (DesignerState.IDLE, DesignerState.LOADING, True),
            (DesignerState.IDLE, DesignerState.SAVING, False),
            (DesignerState.SAVING, DesignerState.SAVED, True),
            (DesignerState.SAVING, DesignerState.EDITING, False),
            (DesignerState.ERROR, DesignerState.SAVING, True),
            (DesignerState.SAVED, DesignerState.LOADING, True),
        ],
    )
    def test_validate_transition(self, current, target, expected):
        assert validate_transition(current, target) is expected

    def test_in_memory_repository_satisfies_protocol(self, payment_repository):
        assert isinstance(payment_repository, VoucherTypeRepository)
