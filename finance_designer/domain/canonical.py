"""
Canonical voucher type definition (``finance_designer.domain.canonical``).

Responsibility
--------------
Defines the persisted, backend-authoritative Schema V2 voucher type
definition, its header fields and table columns, and the conversion
between the frozen dataclasses and the stored document form.

Architecture position
---------------------
**Domain layer** -- pure value objects.  ZERO I/O.  Imports only
``domain.fields`` and ``exceptions``.

Invariants enforced
-------------------
* ``schema_version`` must equal ``SCHEMA_VERSION`` (2).  Anything else is
  a hard incompatibility, never a soft default.
* Every header field carries ``is_posting`` and ``posting_role``; a field
  that does not post has ``posting_role=None``.
* Legacy (pre-V2) document keys are rejected, not ignored.

Failure modes
-------------
* ``SchemaVersionError`` -- document declares a schema version other than 2.
* ``SchemaValidationError`` -- any other structural violation.

Audit relevance
---------------
``definition_to_dict`` is the exact document handed to storage.  Its keys
are the camelCase keys of the stored documents so a definition written here
reads identically from any other consumer of the same collection.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum, unique
from typing import Any

from finance_designer.domain.fields import FieldType
from finance_designer.exceptions import SchemaValidationError, SchemaVersionError

SCHEMA_VERSION = 2

# Keys of pre-V2 documents that must not appear in a V2 document
LEGACY_DOCUMENT_KEYS: tuple[str, ...] = (
    "abbreviation",
    "color",
    "mode",
    "status",
    "customFields",
    "tableFields",
    "nameTranslations",
)


@unique
class VoucherCode(str, Enum):
    """The voucher types the designer is keyed on."""

    PAYMENT = "PAYMENT"
    RECEIPT = "RECEIPT"
    JOURNAL_ENTRY = "JOURNAL_ENTRY"
    OPENING_BALANCE = "OPENING_BALANCE"


@unique
class PostingRole(str, Enum):
    """Role a header field plays when the voucher is posted."""

    DATE = "DATE"
    ACCOUNT = "ACCOUNT"
    AMOUNT = "AMOUNT"
    CURRENCY = "CURRENCY"
    EXCHANGE_RATE = "EXCHANGE_RATE"


@dataclass(frozen=True)
class FieldDefinition:
    """
    Canonical header field.

    ``is_posting`` and ``posting_role`` are accounting-only: the forward
    converter drops them and the reverse converter never copies them from
    a layout.
    """

    id: str
    label: str
    type: FieldType
    data_key: str | None = None
    required: bool = False
    read_only: bool = False
    width: str | None = None
    validation_rules: tuple[Mapping[str, Any], ...] | None = None
    visibility_rules: tuple[Mapping[str, Any], ...] | None = None
    default_value: Any = None
    is_posting: bool = False
    posting_role: PostingRole | None = None

    @property
    def binding(self) -> str:
        """Backend data key (defaults to the field id)."""
        return self.data_key or self.id


@dataclass(frozen=True)
class TableColumn:
    """Line-table column reference; only ``width`` is editable."""

    field_id: str
    width: str | None = None


@dataclass(frozen=True)
class VoucherTypeDefinition:
    """
    Canonical, persisted voucher type definition.

    Contract:
        Created and updated only through the reverse converter and the
        repository.  ``id``, ``company_id``, ``code``, ``module`` and
        ``schema_version`` never change across a reconciliation.
    """

    id: str
    company_id: str
    name: str
    code: str
    module: str
    schema_version: int
    header_fields: tuple[FieldDefinition, ...] = ()
    table_columns: tuple[TableColumn, ...] = ()
    required_posting_roles: tuple[PostingRole, ...] = ()
    layout: Mapping[str, Any] = field(default_factory=dict)

    def header_field(self, field_id: str) -> FieldDefinition | None:
        for f in self.header_fields:
            if f.id == field_id:
                return f
        return None


# ---------------------------------------------------------------------------
# Document validation
# ---------------------------------------------------------------------------


def validate_schema_v2(document: Mapping[str, Any], context: str = "document") -> list[str]:
    """
    Validate a stored document against canonical Schema V2.

    Postconditions:
        Returns every violation found (empty list when valid).  Never raises.
    """
    errors: list[str] = []

    version = document.get("schemaVersion")
    if not isinstance(version, int) or isinstance(version, bool):
        errors.append("Missing schemaVersion property")
    elif version < SCHEMA_VERSION:
        errors.append(f"Legacy schema version {version} not supported (must be 2)")
    elif version != SCHEMA_VERSION:
        errors.append(f"Unknown schema version {version} (must be 2)")

    for key in ("id", "companyId", "name", "code", "module"):
        value = document.get(key)
        if not value or not isinstance(value, str):
            errors.append(f"Missing or invalid {key}")

    header_fields = document.get("headerFields")
    if not isinstance(header_fields, list):
        errors.append("Missing or invalid headerFields array")
    else:
        for index, raw in enumerate(header_fields):
            if not isinstance(raw, Mapping):
                errors.append(f"headerFields[{index}] is not an object")
                continue
            if not isinstance(raw.get("isPosting"), bool):
                errors.append(f"headerFields[{index}] missing isPosting property")
            if "postingRole" not in raw:
                errors.append(f"headerFields[{index}] missing postingRole property")

    if not isinstance(document.get("tableColumns"), list):
        errors.append("Missing or invalid tableColumns array")

    for key in LEGACY_DOCUMENT_KEYS:
        if key in document:
            errors.append(f"Legacy field '{key}' not allowed in Schema V2")

    return errors


# ---------------------------------------------------------------------------
# Document <-> dataclass conversion
# ---------------------------------------------------------------------------


def _rules(value: Any) -> tuple[Mapping[str, Any], ...] | None:
    if value is None:
        return None
    return tuple(dict(rule) for rule in value)


def field_from_dict(data: Mapping[str, Any]) -> FieldDefinition:
    role = data.get("postingRole")
    return FieldDefinition(
        id=data["id"],
        label=data.get("label", ""),
        type=FieldType(data["type"]),
        data_key=data.get("dataKey"),
        required=bool(data.get("required", False)),
        read_only=bool(data.get("readOnly", False)),
        width=data.get("width"),
        validation_rules=_rules(data.get("validationRules")),
        visibility_rules=_rules(data.get("visibilityRules")),
        default_value=data.get("defaultValue"),
        is_posting=bool(data.get("isPosting", False)),
        posting_role=PostingRole(role) if role is not None else None,
    )


def field_to_dict(f: FieldDefinition) -> dict[str, Any]:
    data: dict[str, Any] = {
        "id": f.id,
        "label": f.label,
        "type": f.type.value,
        "required": f.required,
        "readOnly": f.read_only,
        "isPosting": f.is_posting,
        "postingRole": f.posting_role.value if f.posting_role is not None else None,
    }
    if f.data_key is not None:
        data["dataKey"] = f.data_key
    if f.width is not None:
        data["width"] = f.width
    if f.validation_rules is not None:
        data["validationRules"] = [dict(r) for r in f.validation_rules]
    if f.visibility_rules is not None:
        data["visibilityRules"] = [dict(r) for r in f.visibility_rules]
    if f.default_value is not None:
        data["defaultValue"] = f.default_value
    return data


def definition_from_dict(
    document: Mapping[str, Any],
    context: str = "document",
) -> VoucherTypeDefinition:
    """
    Parse a stored document into a ``VoucherTypeDefinition``.

    Raises:
        SchemaVersionError: if the document is not Schema V2.
        SchemaValidationError: for any other structural violation.
    """
    version = document.get("schemaVersion")
    if version != SCHEMA_VERSION:
        raise SchemaVersionError(version, context)

    errors = validate_schema_v2(document, context)
    if errors:
        raise SchemaValidationError(context, errors)

    try:
        header_fields = tuple(field_from_dict(raw) for raw in document["headerFields"])
        table_columns = tuple(
            TableColumn(field_id=raw["fieldId"], width=raw.get("width"))
            for raw in document["tableColumns"]
        )
        roles = tuple(PostingRole(r) for r in document.get("requiredPostingRoles") or ())
    except (KeyError, ValueError, TypeError) as exc:
        raise SchemaValidationError(context, [f"Malformed definition: {exc}"]) from exc

    return VoucherTypeDefinition(
        id=document["id"],
        company_id=document["companyId"],
        name=document["name"],
        code=document["code"],
        module=document["module"],
        schema_version=version,
        header_fields=header_fields,
        table_columns=table_columns,
        required_posting_roles=roles,
        layout=dict(document.get("layout") or {}),
    )


def definition_to_dict(definition: VoucherTypeDefinition) -> dict[str, Any]:
    """Serialize a definition to its stored document form."""
    return {
        "id": definition.id,
        "companyId": definition.company_id,
        "name": definition.name,
        "code": definition.code,
        "module": definition.module,
        "schemaVersion": definition.schema_version,
        "requiredPostingRoles": [r.value for r in definition.required_posting_roles],
        "headerFields": [field_to_dict(f) for f in definition.header_fields],
        "tableColumns": [
            {"fieldId": c.field_id, "width": c.width} for c in definition.table_columns
        ],
        "layout": dict(definition.layout),
    }
