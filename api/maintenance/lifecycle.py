# api/maintenance/lifecycle.py
"""
Asset lifecycle transition table.

Encodes which state changes are legal; persistence and locking live in
db_manager. The table is checked when this module is imported.
"""
from db_models.asset import AssetState
from core.errors import ConflictError


TERMINAL_STATES = frozenset({AssetState.DEACTIVATED})

TRANSITIONS: dict[AssetState, frozenset[AssetState]] = {
    AssetState.AVAILABLE: frozenset({AssetState.IN_MAINTENANCE}),
    AssetState.IN_MAINTENANCE: frozenset({AssetState.READY_FOR_PICKUP, AssetState.DEACTIVATED}),
    AssetState.READY_FOR_PICKUP: frozenset({AssetState.AVAILABLE, AssetState.DEACTIVATED}),
    AssetState.DEACTIVATED: frozenset(),
}


def _check_table() -> None:
    missing = set(AssetState) - set(TRANSITIONS)
    if missing:
        raise RuntimeError(f"Lifecycle table has no entry for {sorted(s.value for s in missing)}")
    for state in TERMINAL_STATES:
        if TRANSITIONS[state]:
            raise RuntimeError(f"Terminal state {state.value} has outgoing transitions")
    for source, targets in TRANSITIONS.items():
        if source in targets:
            raise RuntimeError(f"Self transition on {source.value}")


_check_table()


def can_transition(current: AssetState, target: AssetState) -> bool:
    return target in TRANSITIONS[current]


def validate_transition(asset_id: int, current: AssetState, target: AssetState) -> None:
    """Raise ConflictError unless ``current -> target`` is in the table."""
    if not can_transition(current, target):
        raise ConflictError(
            f"Asset {asset_id} cannot move from {current.value} to {target.value}"
        )


def close_target(final: bool) -> AssetState:
    """State an asset lands in when its open event closes.

    A final event deactivates directly; the asset never stops at
    READY_FOR_PICKUP on the way.
    """
    return AssetState.DEACTIVATED if final else AssetState.READY_FOR_PICKUP
