# memory/store.py
from __future__ import annotations

import copy
from typing import Dict, Optional, Protocol, Tuple

from memory.models import ConversationState


class StateStore(Protocol):
    """Key-value storage for per-user conversation state."""

    def get(self, user_id: str) -> Optional[ConversationState]: ...

    def set(self, user_id: str, state: ConversationState) -> None: ...

    def delete(self, user_id: str) -> None: ...


class InMemoryStateStore:
    """
    Process-local store. Lost on restart.
    get() hands out a deep copy so a turn only becomes visible once it is set() back.
    """

    def __init__(self) -> None:
        self._states: Dict[str, ConversationState] = {}

    def get(self, user_id: str) -> Optional[ConversationState]:
        state = self._states.get(str(user_id))
        return copy.deepcopy(state) if state is not None else None

    def set(self, user_id: str, state: ConversationState) -> None:
        self._states[str(user_id)] = copy.deepcopy(state)

    def delete(self, user_id: str) -> None:
        self._states.pop(str(user_id), None)

    def __len__(self) -> int:
        return len(self._states)


# -----------------------
# Accessors
# -----------------------
def get_or_create_state(store: StateStore, user_id: str) -> Tuple[ConversationState, bool]:
    """Returns (state, created)."""
    state = store.get(user_id)
    if state is None:
        return ConversationState(), True
    return state, False
