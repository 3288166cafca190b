"""
Designer lifecycle states.

A designer session loads one canonical definition, edits an ephemeral
layout derived from it, and saves the reconciled definition.  A failed
save keeps the edited layout, so ERROR may go back to EDITING or straight
to SAVING for a retry.
"""

from enum import Enum, unique


@unique
class DesignerState(str, Enum):
    """Lifecycle state of a designer session."""

    IDLE = "idle"
    LOADING = "loading"
    LOADED = "loaded"
    EDITING = "editing"
    SAVING = "saving"
    SAVED = "saved"
    ERROR = "error"


# Allowed state transitions (from -> set of valid next states)
ALLOWED_TRANSITIONS: dict[DesignerState, frozenset[DesignerState]] = {
    DesignerState.IDLE: frozenset({DesignerState.LOADING}),
    DesignerState.LOADING: frozenset({DesignerState.LOADED, DesignerState.ERROR}),
    DesignerState.LOADED: frozenset({
        DesignerState.LOADED,  # discard_changes
        DesignerState.EDITING,
        DesignerState.SAVING,
        DesignerState.LOADING,
    }),
    DesignerState.EDITING: frozenset({
        DesignerState.EDITING,
        DesignerState.SAVING,
        DesignerState.LOADED,  # discard_changes
        DesignerState.LOADING,
    }),
    DesignerState.SAVING: frozenset({DesignerState.SAVED, DesignerState.ERROR}),
    DesignerState.SAVED: frozenset({DesignerState.LOADING, DesignerState.LOADED}),
    DesignerState.ERROR: frozenset({
        DesignerState.LOADED,
        DesignerState.IDLE,
        DesignerState.LOADING,
        DesignerState.EDITING,
        DesignerState.SAVING,
    }),
}


def validate_transition(current: DesignerState, target: DesignerState) -> bool:
    """Check if a state transition is valid."""
    return target in ALLOWED_TRANSITIONS.get(current, frozenset())
