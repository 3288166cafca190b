"""Designer session services (lifecycle controller, repository contract)."""

from finance_designer.services.designer_service import DesignerService
from finance_designer.services.lifecycle import (
    ALLOWED_TRANSITIONS,
    DesignerState,
    validate_transition,
)
from finance_designer.services.repository import VoucherTypeRepository

__all__ = [
    "ALLOWED_TRANSITIONS",
    "DesignerService",
    "DesignerState",
    "VoucherTypeRepository",
    "validate_transition",
]
