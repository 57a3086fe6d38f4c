# Events reported while a rewrite system is being completed. Completion
# reports what it does to an observer: any callable taking the event and its
# nesting depth. Nothing in the completion depends on the observer.

import logging
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Callable, Iterator, List, Optional, Tuple

from word import Word

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RoundStarted:
    round: int

    def describe(self) -> str:
        return f"round {self.round}"


@dataclass(frozen=True)
class OverlapFound:
    rule1: Tuple[Word, Word]
    rule2: Tuple[Word, Word]
    overlap: Word

    def describe(self) -> str:
        (l1, r1), (l2, r2) = self.rule1, self.rule2
        return f"found overlap {self.overlap} between {l1} -> {r1} and {l2} -> {r2}"


@dataclass(frozen=True)
class CriticalPairReduced:
    word: Word
    reduced1: Word
    reduced2: Word

    def describe(self) -> str:
        if self.reduced1 == self.reduced2:
            return f"{self.word} reduces to {self.reduced1} both ways"
        return f"{self.word} reduces to {self.reduced1} and to {self.reduced2}"


@dataclass(frozen=True)
class RuleAdded:
    left: Word
    right: Word

    def describe(self) -> str:
        return f"add rule {self.left} -> {self.right}"


@dataclass(frozen=True)
class RuleRemoved:
    left: Word
    right: Word

    def describe(self) -> str:
        return f"remove obsolete rule {self.left} -> {self.right}"


@dataclass(frozen=True)
class CompletionFinished:
    rounds: int
    rules: int

    def describe(self) -> str:
        return f"confluent after {self.rounds} rounds with {self.rules} rules"


CompletionEvent = (
    RoundStarted
    | OverlapFound
    | CriticalPairReduced
    | RuleAdded
    | RuleRemoved
    | CompletionFinished
)

Observer = Callable[[CompletionEvent, int], None]


def log_event(event: CompletionEvent, depth: int) -> None:
    logger.info("%s%s", "  " * depth, event.describe())


class EventCollector:
    def __init__(self):
        self.events: List[Tuple[CompletionEvent, int]] = []

    def __call__(self, event: CompletionEvent, depth: int) -> None:
        self.events.append((event, depth))

    def of_type(self, kind: type) -> List[CompletionEvent]:
        return [event for event, _depth in self.events if isinstance(event, kind)]


class CompletionTrace:
    def __init__(self, *observers: Optional[Observer]):
        self._observers = [obs for obs in observers if obs is not None]
        self._depth = 0

    def emit(self, event: CompletionEvent) -> None:
        for obs in self._observers:
            obs(event, self._depth)

    @contextmanager
    def nested(self, event: CompletionEvent) -> Iterator[None]:
        # Events emitted inside the block are one level deeper than this one.
        self.emit(event)
        self._depth += 1
        try:
            yield
        finally:
            self._depth -= 1
