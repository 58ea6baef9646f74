"""
Board controller: the client's task input, columns, trash zone and auth
screens, minus the rendering.

Every user action updates the local store first and then issues the matching
API call. A failed call leaves the local state as already mutated and records
the message in `error`; the next `refresh()` reconciles with the server.
"""
from __future__ import annotations

import logging
from typing import Optional

from board_api import ApiError, AuthError, BoardApiClient
from board_session import Session, SessionStore
from board_store import (
    COLUMNS,
    AddTask,
    BoardState,
    BoardStore,
    Card,
    DeleteTask,
    LoadTasks,
    MoveTask,
    group_tasks,
)

logger = logging.getLogger(__name__)


class BoardController:
    def __init__(self, api: BoardApiClient, sessions: SessionStore, store: Optional[BoardStore] = None):
        self.api = api
        self.sessions = sessions
        self.store = store or BoardStore()
        self.error = ""
        self.session = sessions.load()
        if self.session:
            self.api.token = self.session.token

    @property
    def logged_in(self) -> bool:
        return self.session is not None

    @property
    def username(self) -> str:
        return self.session.username if self.session else ""

    def _fail(self, exc: ApiError) -> bool:
        self.error = exc.message
        if isinstance(exc, AuthError):
            self.logout()
        return False

    # Auth screens
    def signup(self, username: str, password: str) -> bool:
        self.error = ""
        try:
            self.api.signup(username, password)
        except ApiError as exc:
            self.error = exc.message
            return False
        return True

    def login(self, username: str, password: str) -> bool:
        self.error = ""
        try:
            data = self.api.login(username, password)
        except ApiError as exc:
            self.error = exc.message or "Login failed"
            return False
        self._start_session(Session(token=data["token"], username=data.get("username") or username))
        return True

    def google_login(self, credential: str) -> bool:
        self.error = ""
        try:
            data = self.api.google_login(credential)
        except ApiError as exc:
            self.error = exc.message
            return False
        self._start_session(Session(token=data["token"], username=data["user"]["username"]))
        return True

    def _start_session(self, session: Session) -> None:
        self.session = session
        self.api.token = session.token
        self.sessions.save(session)

    def logout(self) -> None:
        self.session = None
        self.api.token = None
        self.sessions.clear()
        self.store.dispatch(LoadTasks(BoardState()))

    # Board
    def refresh(self) -> bool:
        """Rebuild the board from the server; a missing or rejected token logs out."""
        if not self.session:
            self.logout()
            return False
        try:
            tasks = self.api.list_tasks()
        except ApiError as exc:
            self.error = exc.message
            # Any answer from the server other than success rejects the session.
            if exc.status_code:
                self.logout()
            return False
        self.store.dispatch(LoadTasks(group_tasks(tasks)))
        return True

    def find_card(self, ref: str) -> Optional[Card]:
        """Find a card by full id or by an unambiguous id prefix."""
        cards = self.store.state.cards()
        for card in cards:
            if card.id == ref:
                return card
        matches = [c for c in cards if ref and c.id.startswith(ref)]
        return matches[0] if len(matches) == 1 else None

    def add_task(self, text: str) -> bool:
        if not text.strip():
            self.error = "Task cannot be empty."
            return False
        if not self.session:
            self.error = "Please log in again."
            self.logout()
            return False
        try:
            task_id = self.api.add_task(text)
        except ApiError as exc:
            self.error = f"Failed: {exc.message}"
            if isinstance(exc, AuthError):
                self.logout()
            return False
        self.store.dispatch(AddTask(Card(id=task_id, text=text)))
        self.error = ""
        self.refresh()
        return True

    def move_card(self, card_id: str, dest: str) -> bool:
        if dest not in COLUMNS:
            self.error = f"Unknown column: {dest}"
            return False
        source = self.store.state.locate(card_id)
        if source is None:
            self.error = "Card not found"
            return False
        if source == dest:
            return True
        self.store.dispatch(MoveTask(card_id, source, dest))
        try:
            self.api.update_task(card_id, status=dest)
        except ApiError as exc:
            return self._fail(exc)
        logger.debug("Moved %s from %s to %s", card_id, source, dest)
        return True

    def delete_card(self, card_id: str) -> bool:
        """Trash zone: drop the card locally, then delete it on the server."""
        source = self.store.state.locate(card_id)
        if source is None:
            self.error = "Card not found"
            return False
        self.store.dispatch(DeleteTask(card_id, source))
        try:
            self.api.delete_task(card_id)
        except ApiError as exc:
            return self._fail(exc)
        return True

    def share_card(self, card_id: str, username: str) -> bool:
        if not username.strip():
            self.error = "Username required"
            return False
        try:
            self.api.share_task(card_id, username.strip())
        except ApiError as exc:
            return self._fail(exc)
        return True
