"""
Field registry loader (``finance_designer.config.loader``).

Responsibility
--------------
Loads the per-voucher-type YAML fragments and parses them into
``VoucherTypeFieldRegistry`` instances.  Every field goes through the
category constructors in ``domain.fields``, so enforcement flags can never
be hand-assembled in YAML.  The single public entry point for runtime use
is ``finance_designer.config.get_field_registry()``.

Architecture position
---------------------
**Config layer** -- infrastructure tooling.  Depends on the domain layer
only.

Invariants enforced
-------------------
* Missing required keys raise ``KeyError``; no silent defaults for
  ``voucher_type``, ``core_fields``, ``id``, ``label`` or ``type``.
* ``compute_checksum`` produces a deterministic SHA-256 hash of the loaded
  fragments.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Unknown voucher code, category or field type  -> ``ValueError``.
"""

from __future__ import annotations

import hashlib
import json
from pathlib import Path
from typing import Any

import yaml

from finance_designer.domain.canonical import VoucherCode
from finance_designer.domain.fields import (
    FieldCategory,
    FieldDefinitionV2,
    create_core_field,
    create_field,
    create_shared_field,
)
from finance_designer.domain.registry import VoucherTypeFieldRegistry

# YAML keys accepted on a field entry, besides id / label / type / category
_FIELD_OPTIONS = (
    "data_key",
    "semantic_meaning",
    "required",
    "read_only",
    "width",
    "placeholder",
    "default_value",
)


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
    """
    with open(path) as f:
        return yaml.safe_load(f) or {}


def _field_kwargs(data: dict[str, Any]) -> dict[str, Any]:
    kwargs = {
        "id": data["id"],
        "label": data["label"],
        "type": data["type"],
    }
    for key in _FIELD_OPTIONS:
        if key in data:
            kwargs[key] = data[key]
    return kwargs


def parse_core_field(data: dict[str, Any]) -> FieldDefinitionV2:
    return create_core_field(**_field_kwargs(data))


def parse_shared_field(data: dict[str, Any]) -> FieldDefinitionV2:
    return create_shared_field(**_field_kwargs(data))


def parse_line_column(data: dict[str, Any]) -> FieldDefinitionV2:
    """Line columns declare their own category (CORE or SHARED)."""
    category = FieldCategory(data.get("category", FieldCategory.SHARED.value))
    if category is FieldCategory.PERSONAL:
        raise ValueError(f"Line column {data['id']!r} cannot be PERSONAL")
    return create_field(category, **_field_kwargs(data))


def parse_voucher_type_registry(data: dict[str, Any]) -> VoucherTypeFieldRegistry:
    """
    Parse one registry fragment.

    Preconditions:
        - ``data`` contains ``voucher_type`` and ``core_fields``.
    Raises:
        KeyError: missing required keys.
        ValueError: unknown voucher code, category or field type.
    """
    return VoucherTypeFieldRegistry(
        voucher_type=VoucherCode(data["voucher_type"]),
        core_fields=tuple(parse_core_field(f) for f in data["core_fields"]),
        shared_fields=tuple(parse_shared_field(f) for f in data.get("shared_fields") or ()),
        line_columns=tuple(parse_line_column(f) for f in data.get("line_columns") or ()),
    )


def load_registry_fragments(sets_dir: Path) -> list[dict[str, Any]]:
    """Load every ``*.yaml`` fragment in ``sets_dir``, in file-name order."""
    return [load_yaml_file(path) for path in sorted(sets_dir.glob("*.yaml"))]


def compute_checksum(data: Any) -> str:
    """SHA-256 of the canonical JSON serialization of ``data``."""
    canonical = json.dumps(data, sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode()).hexdigest()
