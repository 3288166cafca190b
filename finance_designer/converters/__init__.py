"""Canonical <-> layout converters."""

from finance_designer.converters.canonical_to_layout import canonical_to_layout
from finance_designer.converters.layout_to_canonical import (
    PERMITTED_FIELD_PROPERTIES,
    apply_layout_to_canonical,
)

__all__ = [
    "PERMITTED_FIELD_PROPERTIES",
    "apply_layout_to_canonical",
    "canonical_to_layout",
]
