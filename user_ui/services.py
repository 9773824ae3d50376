from __future__ import annotations

from typing import Any, Dict, Optional

from explorer.report import snapshot_to_dict
from explorer.state import SELECTION, VIEW, ExplorerState, Snapshot


class ServiceError(RuntimeError):
    pass


# The whole UI drives one view-model; the server runs single-threaded.
_EXPLORER: Optional[ExplorerState] = None


_NAVIGATION = {
    "view_back": (VIEW, "back"),
    "view_forward": (VIEW, "forward"),
    "select_back": (SELECTION, "back"),
    "select_forward": (SELECTION, "forward"),
}


def configure_explorer(state: Optional[ExplorerState]) -> None:
    global _EXPLORER
    _EXPLORER = state


def get_explorer() -> ExplorerState:
    if _EXPLORER is None:
        raise ServiceError("Explorer is not configured")
    return _EXPLORER


def current_queries() -> Dict[str, str]:
    state = get_explorer()
    return {
        "view_query": state.view.text,
        "selection_query": state.selection.text,
    }


def apply_queries(view_query: str, selection_query: str) -> Snapshot:
    """
    Store both query texts and run one processing tick.
    """
    state = get_explorer()
    state.set_text(VIEW, view_query)
    state.set_text(SELECTION, selection_query)
    state.tick()
    return state.snapshot()


def navigate_history(action: str) -> Snapshot:
    """
    Recall the previous or next query of one field and apply it.
    """
    try:
        name, direction = _NAVIGATION[action]
    except KeyError:
        raise ServiceError(f"Unknown history action: {action}") from None

    state = get_explorer()
    if direction == "back":
        state.history_back(name)
    else:
        state.history_forward(name)
    state.tick()
    return state.snapshot()


def current_snapshot() -> Snapshot:
    state = get_explorer()
    state.tick()
    return state.snapshot()


def snapshot_payload(snapshot: Snapshot) -> Dict[str, Any]:
    payload = snapshot_to_dict(snapshot)
    payload["layout_epoch"] = get_explorer().layout_epoch
    return payload
