"""Conversation Session - In-memory transcript with optional persistence.

The session owns the full, append-only history of completed turns. The
context budgeter only ever receives a read-only view of it, so turns that are
excluded from a generation call are still kept here and still persisted.

Transcripts are stored as line-delimited JSON, one turn per line:

    {"timestamp": "2026-01-01T12:00:00+00:00", "user": "hi", "assistant": "hello"}
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable, Optional

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Turn:
    """One completed user/assistant exchange.

    Attributes:
        user: What the user sent
        assistant: What the model answered
        timestamp: When the turn was recorded (persistence only)
    """

    user: str
    assistant: str
    timestamp: Optional[datetime] = field(default=None, compare=False)

    def to_dict(self) -> dict[str, str]:
        """Convert to transcript line format."""
        stamp = self.timestamp or datetime.now(timezone.utc)
        return {
            "timestamp": stamp.isoformat(),
            "user": self.user,
            "assistant": self.assistant,
        }

    @classmethod
    def from_dict(cls, data: dict) -> Turn:
        """Build a turn from a transcript line.

        Raises:
            KeyError, TypeError, ValueError: If the record is malformed
        """
        user = data["user"]
        assistant = data["assistant"]
        if not isinstance(user, str) or not isinstance(assistant, str):
            raise TypeError("user and assistant must be strings")
        raw_stamp = data.get("timestamp")
        stamp = datetime.fromisoformat(raw_stamp.replace("Z", "+00:00")) if raw_stamp else None
        return cls(user=user, assistant=assistant, timestamp=stamp)


class ConversationSession:
    """Ordered, append-only conversation history for one REPL run."""

    def __init__(self, system: Optional[str] = None, turns: Iterable[Turn] = ()):
        self.system = system
        self._turns: list[Turn] = list(turns)

    @property
    def turns(self) -> tuple[Turn, ...]:
        """Read-only view of the history, oldest first."""
        return tuple(self._turns)

    def add_turn(self, user: str, assistant: str) -> Turn:
        turn = Turn(user=user, assistant=assistant, timestamp=datetime.now(timezone.utc))
        self._turns.append(turn)
        return turn

    def is_empty(self) -> bool:
        return not self._turns

    def clear(self) -> None:
        self._turns.clear()

    def __len__(self) -> int:
        return len(self._turns)


class TranscriptStore:
    """Line-delimited JSON transcript file.

    Example:
        store = TranscriptStore("chat.jsonl")
        store.save(session.turns)
        restored = ConversationSession(turns=store.load())
    """

    def __init__(self, path: str | os.PathLike):
        self.path = Path(path).expanduser()

    def save(self, turns: Iterable[Turn]) -> None:
        """Write the whole transcript, replacing any previous file.

        The file is written to a temporary sibling first and then moved into
        place, so a crash never leaves a half-written transcript behind.
        """
        lines = [json.dumps(turn.to_dict(), ensure_ascii=False) for turn in turns]
        content = "".join(line + "\n" for line in lines)

        directory = self.path.parent
        directory.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(prefix=f".{self.path.name}.", dir=directory)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(content)
            os.replace(tmp_name, self.path)
        except BaseException:
            if os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise

        logger.debug("[aicli.session] Saved %d turn(s) to %s", len(lines), self.path)

    def load(self) -> list[Turn]:
        """Read turns in file order.

        Blank and malformed lines are skipped with a warning.

        Raises:
            FileNotFoundError: If the transcript does not exist
        """
        turns: list[Turn] = []
        with open(self.path, "r", encoding="utf-8") as f:
            for lineno, line in enumerate(f, 1):
                line = line.strip()
                if not line:
                    continue
                try:
                    turns.append(Turn.from_dict(json.loads(line)))
                except (json.JSONDecodeError, KeyError, TypeError, ValueError, AttributeError) as e:
                    logger.warning(
                        "[aicli.session] Skipping malformed line %d in %s: %s", lineno, self.path, e
                    )

        logger.debug("[aicli.session] Loaded %d turn(s) from %s", len(turns), self.path)
        return turns


__all__ = ["Turn", "ConversationSession", "TranscriptStore"]
