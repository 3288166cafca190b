"""
Repository contract for canonical voucher type definitions.

The designer depends on this protocol only; storage is an external
collaborator.  ``finance_designer.db.repository.SqlVoucherTypeRepository``
is the SQLAlchemy implementation.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from finance_designer.domain.canonical import VoucherTypeDefinition


@runtime_checkable
class VoucherTypeRepository(Protocol):
    """
    Contract:
        - ``get`` returns the canonical definition for ``voucher_code``.
          Implementations reject anything that is not Schema V2.
        - ``update`` persists ``definition`` for ``voucher_code``.  Callers
          run ``assert_not_layout`` before calling it.
    Raises:
        VoucherDefinitionNotFoundError: no definition for the code.
    """

    def get(self, voucher_code: str) -> VoucherTypeDefinition: ...

    def update(self, voucher_code: str, definition: VoucherTypeDefinition) -> None: ...
