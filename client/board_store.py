"""
Client-side board state.

The board is three ordered columns of cards. State only changes through
`board_reducer`, a pure function over four actions; `BoardStore` holds the
current state and notifies subscribers after each dispatch. Nothing in this
module talks to the network.
"""
from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Callable, Iterable, List, Optional, Tuple, Union

COLUMNS = ("todo", "inProgress", "done")
COLUMN_TITLES = {
    "todo": "To-Do",
    "inProgress": "In Progress",
    "done": "Done",
}


@dataclass(frozen=True)
class Card:
    id: str
    text: str


@dataclass(frozen=True)
class BoardState:
    todo: Tuple[Card, ...] = ()
    inProgress: Tuple[Card, ...] = ()
    done: Tuple[Card, ...] = ()

    def column(self, key: str) -> Tuple[Card, ...]:
        return getattr(self, key)

    def locate(self, card_id: str) -> Optional[str]:
        """Return the column holding `card_id`, or None."""
        for key in COLUMNS:
            if any(c.id == card_id for c in self.column(key)):
                return key
        return None

    def cards(self) -> List[Card]:
        return [c for key in COLUMNS for c in self.column(key)]


@dataclass(frozen=True)
class LoadTasks:
    state: BoardState


@dataclass(frozen=True)
class AddTask:
    card: Card


@dataclass(frozen=True)
class MoveTask:
    card_id: str
    source: str
    dest: str


@dataclass(frozen=True)
class DeleteTask:
    card_id: str
    source: str


Action = Union[LoadTasks, AddTask, MoveTask, DeleteTask]


def board_reducer(state: BoardState, action: Action) -> BoardState:
    if isinstance(action, LoadTasks):
        return action.state

    if isinstance(action, AddTask):
        if action.card is None or state.locate(action.card.id) is not None:
            return state
        return replace(state, todo=state.todo + (action.card,))

    if isinstance(action, MoveTask):
        if action.source not in COLUMNS or action.dest not in COLUMNS:
            return state
        card = next((c for c in state.column(action.source) if c.id == action.card_id), None)
        if card is None:
            return state
        remaining = tuple(c for c in state.column(action.source) if c.id != action.card_id)
        moved = replace(state, **{action.source: remaining})
        return replace(moved, **{action.dest: moved.column(action.dest) + (replace(card),)})

    if isinstance(action, DeleteTask):
        if action.source not in COLUMNS:
            return state
        remaining = tuple(c for c in state.column(action.source) if c.id != action.card_id)
        return replace(state, **{action.source: remaining})

    return state


def group_tasks(tasks: Iterable[dict]) -> BoardState:
    """Group the server's task documents into columns by status."""
    grouped = {key: [] for key in COLUMNS}
    for task in tasks:
        status = task.get("status")
        if status not in grouped:
            continue
        grouped[status].append(Card(id=str(task["_id"]), text=task.get("text", "")))
    return BoardState(**{key: tuple(cards) for key, cards in grouped.items()})


Listener = Callable[[BoardState], None]


class BoardStore:
    """Holds the current BoardState; view code shares one instance."""

    def __init__(self, state: Optional[BoardState] = None):
        self.state = state or BoardState()
        self._listeners: List[Listener] = []

    def dispatch(self, action: Action) -> BoardState:
        self.state = board_reducer(self.state, action)
        for listener in list(self._listeners):
            listener(self.state)
        return self.state

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe
