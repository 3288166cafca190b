"""
Finance Designer - voucher layout projection and reconciliation engine.

Derives an ephemeral, UI-only layout from a persisted Schema V2 voucher
type definition and reconciles layout edits back into that definition with:
- Three-tier field classification (CORE / SHARED / PERSONAL)
- Accounting semantics stripped from every UI projection
- Allow-list reconciliation with a redundant forbidden-change backstop
- Shape-based guard against persisting the view model
- Step-gated configuration wizard with minimal customization overlays
"""

__version__ = "0.1.0"
