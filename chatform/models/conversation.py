# /chatform/models/conversation.py

import copy
from enum import Enum
from typing import Dict, Iterator, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class Sender(str, Enum):
    BOT = "bot"
    USER = "user"


class ChatStatus(str, Enum):
    """Driver state as seen by the presentation layer."""
    ACTIVE = "active"        # auto-advancing, input disabled
    WAITING = "waiting"      # suspended on an input step
    COMPLETED = "completed"  # no step left


class Message(BaseModel):
    """Represents one transcript entry."""
    model_config = ConfigDict(frozen=True)

    text: str = Field(default="", description="Message text content")
    sender: Sender = Field(..., description="Who produced the message")


class Transcript:
    """Append-only, ordered list of messages owned by one conversation."""

    def __init__(self):
        self._messages: List[Message] = []

    def append(self, message: Message) -> None:
        self._messages.append(message)

    @property
    def messages(self) -> List[Message]:
        return list(self._messages)

    def __iter__(self) -> Iterator[Message]:
        return iter(list(self._messages))

    def __len__(self) -> int:
        return len(self._messages)


class AnswerStore:
    """
    Collected answers keyed by input name.

    A name can be asked several times inside a `while` block, so every
    name maps to the values in submission order. Values are never removed.
    """

    def __init__(self):
        self._values: Dict[str, List[str]] = {}

    def append(self, name: str, value: str) -> None:
        self._values.setdefault(name, []).append(value)

    def get(self, name: str) -> Optional[List[str]]:
        values = self._values.get(name)
        return list(values) if values is not None else None

    def snapshot(self) -> Dict[str, List[str]]:
        return copy.deepcopy(self._values)

    def __contains__(self, name: str) -> bool:
        return name in self._values


class ChatContext:
    """Read-only view over an AnswerStore handed to template callbacks."""

    __slots__ = ("_store",)

    def __init__(self, store: AnswerStore):
        self._store = store

    def get_from_name(self, name: str) -> Optional[List[str]]:
        return self._store.get(name)

    def get_first_from_name(self, name: str) -> Optional[str]:
        values = self._store.get(name)
        return values[0] if values else None

    def get_last_from_name(self, name: str) -> Optional[str]:
        values = self._store.get(name)
        return values[-1] if values else None
