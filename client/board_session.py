from __future__ import annotations

import json
import logging
import os
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Session:
    token: str
    username: str


class SessionStore:
    """Keeps the bearer token and username in a private JSON file."""

    def __init__(self, path: Path):
        self.path = Path(path)

    def load(self) -> Optional[Session]:
        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return None
        except (OSError, ValueError) as exc:
            logger.warning("Ignoring unreadable session file %s: %s", self.path, exc)
            return None
        if not isinstance(raw, dict) or not raw.get("token"):
            return None
        return Session(token=str(raw["token"]), username=str(raw.get("username") or ""))

    def save(self, session: Session) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd = os.open(self.path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            # O_CREAT mode only applies to new files.
            os.chmod(self.path, 0o600)
            json.dump(asdict(session), f)

    def clear(self) -> None:
        try:
            self.path.unlink()
        except FileNotFoundError:
            pass
