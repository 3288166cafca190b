"""
System metadata field catalog (``finance_designer.domain.metadata_fields``).

Responsibility
--------------
Lists the read-only lifecycle fields (audit trail, status, approval
workflow) a designer may place on a voucher form next to its registry
fields.  They are filled by the system, never by the user.

Architecture position
---------------------
**Domain layer** -- static catalog, zero I/O.  Consumed by the wizard.

Invariants enforced
-------------------
* Every metadata field is SHARED (can be hidden, never removed) and
  ``read_only``.
* Metadata field ids are unique and disjoint from the header-field ids of
  the shipped registry sets.
"""

from __future__ import annotations

from enum import Enum, unique

from finance_designer.domain.fields import FieldDefinitionV2, FieldType, create_shared_field


@unique
class MetadataType(str, Enum):
    AUDIT = "audit"
    STATUS = "status"
    WORKFLOW = "workflow"


def _metadata(id: str, label: str, type: FieldType, meaning: str, width: str = "1/2") -> FieldDefinitionV2:
    return create_shared_field(
        id=id,
        label=label,
        type=type,
        semantic_meaning=meaning,
        width=width,
        read_only=True,
    )


_CATALOG: tuple[tuple[MetadataType, FieldDefinitionV2], ...] = (
    (MetadataType.AUDIT, _metadata("createdAt", "Created At", FieldType.DATE, "Timestamp when voucher was created")),
    (MetadataType.AUDIT, _metadata("createdBy", "Created By", FieldType.RELATION, "User who created the voucher")),
    (MetadataType.AUDIT, _metadata("updatedAt", "Last Updated", FieldType.DATE, "Timestamp of last modification")),
    (MetadataType.AUDIT, _metadata("updatedBy", "Updated By", FieldType.RELATION, "User who last modified the voucher")),
    (MetadataType.STATUS, _metadata("status", "Status", FieldType.SELECT, "Current voucher status", "1/4")),
    (MetadataType.STATUS, _metadata("voucherNumber", "Voucher Number", FieldType.TEXT, "System-generated voucher number", "1/4")),
    (MetadataType.WORKFLOW, _metadata("submittedAt", "Submitted At", FieldType.DATE, "When voucher was submitted for approval")),
    (MetadataType.WORKFLOW, _metadata("submittedBy", "Submitted By", FieldType.RELATION, "User who submitted for approval")),
    (MetadataType.WORKFLOW, _metadata("approvedAt", "Approved At", FieldType.DATE, "When voucher was approved")),
    (MetadataType.WORKFLOW, _metadata("approvedBy", "Approved By", FieldType.RELATION, "User who approved the voucher")),
    (MetadataType.WORKFLOW, _metadata("rejectedAt", "Rejected At", FieldType.DATE, "When voucher was rejected")),
    (MetadataType.WORKFLOW, _metadata("rejectedBy", "Rejected By", FieldType.RELATION, "User who rejected the voucher")),
    (MetadataType.WORKFLOW, _metadata("rejectionReason", "Rejection Reason", FieldType.TEXTAREA, "Why voucher was rejected", "full")),
)

SYSTEM_METADATA_FIELDS: tuple[FieldDefinitionV2, ...] = tuple(f for _, f in _CATALOG)

_BY_ID: dict[str, FieldDefinitionV2] = {f.id: f for f in SYSTEM_METADATA_FIELDS}


def get_metadata_fields_by_type(metadata_type: MetadataType | str) -> tuple[FieldDefinitionV2, ...]:
    metadata_type = MetadataType(metadata_type)
    return tuple(f for t, f in _CATALOG if t is metadata_type)


def get_all_metadata_field_ids() -> tuple[str, ...]:
    return tuple(_BY_ID)


def is_system_metadata_field(field_id: str) -> bool:
    return field_id in _BY_ID


def get_metadata_field(field_id: str) -> FieldDefinitionV2 | None:
    return _BY_ID.get(field_id)
