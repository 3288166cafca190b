"""
Tests for layout -> canonical reconciliation.

Accounting semantics must survive any layout edit: identifiers, posting
flags and posting roles always come from the original definition.
"""

from dataclasses import replace

import pytest

from finance_designer.converters import apply_layout_to_canonical, canonical_to_layout
from finance_designer.domain.canonical import (
    SCHEMA_VERSION,
    FieldDefinition,
    definition_from_dict,
    definition_to_dict,
)
from finance_designer.domain.fields import FieldType
from finance_designer.domain.guards import validate_no_forbidden_changes
from finance_designer.exceptions import SchemaVersionError, VoucherTypeMismatchError


def _edit_body_field(layout, field_id, **changes):
    fields = tuple(
        replace(f, **changes) if f.id == field_id else f for f in layout.body.fields
    )
    return replace(layout, body=replace(layout.body, fields=fields))


class TestRoundTrip:
    def test_unedited_layout_changes_only_hints(self, payment_definition, field_registry):
        layout = canonical_to_layout(payment_definition, registry=field_registry)

        updated = apply_layout_to_canonical(payment_definition, layout)

        assert replace(updated, layout=payment_definition.layout) == payment_definition
        assert updated.layout == {"gridColumns": 4, "gap": 16, "headerLayout": "inline"}

    def test_table_definition_round_trip(self, journal_entry_definition):
        layout = canonical_to_layout(journal_entry_definition)

        updated = apply_layout_to_canonical(journal_entry_definition, layout)

        assert updated.table_columns == journal_entry_definition.table_columns
        assert updated.header_fields == journal_entry_definition.header_fields

    def test_existing_hints_preserved(self, journal_entry_definition):
        updated = apply_layout_to_canonical(
            journal_entry_definition, canonical_to_layout(journal_entry_definition)
        )
        assert updated.layout["theme"] == "compact"
        assert updated.layout["gridColumns"] == 2

    def test_stored_hints_survive_round_trip(self, payment_definition):
        document = definition_to_dict(payment_definition)
        document["layout"] = {"gridColumns": 2, "gap": 8, "headerLayout": "stacked"}
        stored = definition_from_dict(document)

        layout = canonical_to_layout(stored)
        updated = apply_layout_to_canonical(stored, layout)

        assert (layout.body.columns, layout.body.gap, layout.header.layout) == (2, 8, "stacked")
        assert updated.layout == {"gridColumns": 2, "gap": 8, "headerLayout": "stacked"}
        assert definition_to_dict(updated)["layout"] == document["layout"]


class TestPermittedEdits:
    def test_payment_label_and_width_edit(self, payment_definition, field_registry):
        layout = canonical_to_layout(payment_definition, registry=field_registry)
        layout = _edit_body_field(layout, "amount", label="Payment Amount")
        layout = _edit_body_field(layout, "cashAccountId", width="full")

        updated = apply_layout_to_canonical(payment_definition, layout)

        amount = updated.header_field("amount")
        cash = updated.header_field("cashAccountId")
        assert amount.label == "Payment Amount"
        assert amount.is_posting is True
        assert amount.posting_role is payment_definition.header_field("amount").posting_role
        assert cash.width == "full"
        assert cash.posting_role is payment_definition.header_field("cashAccountId").posting_role
        assert updated.schema_version == SCHEMA_VERSION
        validate_no_forbidden_changes(payment_definition, updated)

    def test_posting_semantics_in_layout_entry_ignored(self, payment_definition):
        layout = canonical_to_layout(payment_definition)
        impostor = FieldDefinition(
            id="amount", label="Payment Amount", type=FieldType.NUMBER,
            required=True, width="1/2", is_posting=False, posting_role=None,
        )
        fields = tuple(impostor if f.id == "amount" else f for f in layout.body.fields)
        layout = replace(layout, body=replace(layout.body, fields=fields))

        updated = apply_layout_to_canonical(payment_definition, layout)

        amount = updated.header_field("amount")
        original_amount = payment_definition.header_field("amount")
        assert amount.label == "Payment Amount"
        assert amount.is_posting is True
        assert amount.posting_role is original_amount.posting_role
        validate_no_forbidden_changes(payment_definition, updated)

    def test_original_not_modified(self, payment_definition):
        layout = _edit_body_field(canonical_to_layout(payment_definition), "date", label="When")

        apply_layout_to_canonical(payment_definition, layout)

        assert payment_definition.header_field("date").label == "Payment Date"

    def test_required_and_read_only_copied(self, payment_definition):
        layout = _edit_body_field(
            canonical_to_layout(payment_definition), "currency", required=True, read_only=True
        )

        currency = apply_layout_to_canonical(payment_definition, layout).header_field("currency")

        assert (currency.required, currency.read_only) == (True, True)

    def test_none_does_not_clear_optional_properties(self, payment_definition):
        layout = _edit_body_field(
            canonical_to_layout(payment_definition),
            "amount", validation_rules=None, width=None,
        )

        amount = apply_layout_to_canonical(payment_definition, layout).header_field("amount")

        assert amount.validation_rules == ({"type": "min", "value": 0},)
        assert amount.width == "1/2"

    def test_data_key_and_type_not_copied(self, payment_definition):
        layout = _edit_body_field(
            canonical_to_layout(payment_definition), "description", data_key="memo", type="TEXT"
        )

        description = apply_layout_to_canonical(payment_definition, layout).header_field("description")

        assert description == payment_definition.header_field("description")

    def test_field_missing_from_layout_kept(self, payment_definition):
        layout = canonical_to_layout(payment_definition)
        layout = replace(
            layout,
            body=replace(layout.body, fields=tuple(f for f in layout.body.fields if f.id != "currency")),
        )

        updated = apply_layout_to_canonical(payment_definition, layout)

        assert updated.header_fields == payment_definition.header_fields

    def test_extra_layout_field_ignored(self, payment_definition):
        layout = canonical_to_layout(payment_definition)
        extra = replace(layout.body.fields[0], id="injected")
        layout = replace(layout, body=replace(layout.body, fields=layout.body.fields + (extra,)))

        updated = apply_layout_to_canonical(payment_definition, layout)

        assert [f.id for f in updated.header_fields] == [
            f.id for f in payment_definition.header_fields
        ]

    def test_grid_changes_become_hints(self, payment_definition):
        layout = canonical_to_layout(payment_definition)
        layout = replace(layout, body=replace(layout.body, columns=3, gap=8))

        updated = apply_layout_to_canonical(payment_definition, layout)

        assert updated.layout["gridColumns"] == 3
        assert updated.layout["gap"] == 8
        assert payment_definition.layout == {}


class TestTableColumnWidths:
    def test_width_edit_applied(self, journal_entry_definition):
        layout = canonical_to_layout(journal_entry_definition)
        columns = tuple(
            replace(c, width="300px") if c.id == "debit" else c for c in layout.lines.columns
        )
        layout = replace(layout, lines=replace(layout.lines, columns=columns))

        updated = apply_layout_to_canonical(journal_entry_definition, layout)

        widths = {c.field_id: c.width for c in updated.table_columns}
        assert widths == {
            "account": "250px", "debit": "300px", "credit": "150px", "lineAmount": None,
        }

    def test_columns_cannot_be_added_or_removed(self, journal_entry_definition):
        layout = canonical_to_layout(journal_entry_definition)
        layout = replace(
            layout, lines=replace(layout.lines, columns=layout.lines.columns[:1])
        )

        updated = apply_layout_to_canonical(journal_entry_definition, layout)

        assert updated.table_columns == journal_entry_definition.table_columns


class TestPreconditions:
    def test_legacy_original_rejected(self, payment_definition, legacy_payment_definition):
        layout = canonical_to_layout(payment_definition)

        with pytest.raises(SchemaVersionError):
            apply_layout_to_canonical(legacy_payment_definition, layout)

    def test_voucher_type_mismatch(self, payment_definition, journal_entry_definition):
        layout = canonical_to_layout(journal_entry_definition)

        with pytest.raises(VoucherTypeMismatchError) as exc_info:
            apply_layout_to_canonical(payment_definition, layout)

        assert exc_info.value.layout_voucher_type == "JOURNAL_ENTRY"
        assert exc_info.value.definition_code == "PAYMENT"
