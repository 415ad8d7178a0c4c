"""Per-thread conversation checkpoints."""

from __future__ import annotations

import copy
from typing import Any

Message = dict[str, Any]


class ConversationStore:
    """In-memory message history keyed by ``thread_id``.

    Histories are stored and returned as deep copies so an in-flight turn
    cannot mutate a committed checkpoint.
    """

    def __init__(self) -> None:
        self._threads: dict[str, list[Message]] = {}

    def load(self, thread_id: str) -> list[Message]:
        return copy.deepcopy(self._threads.get(thread_id, []))

    def save(self, thread_id: str, messages: list[Message]) -> None:
        self._threads[thread_id] = copy.deepcopy(messages)

    def clear(self, thread_id: str) -> None:
        self._threads.pop(thread_id, None)

    def __contains__(self, thread_id: object) -> bool:
        return thread_id in self._threads
