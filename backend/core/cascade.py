"""Dependent dropdown chains: university → domain → subject, and the two
category → item taxonomies for skills and exams.

A chain is an ordered list of levels. The first level's options are loaded
up front; every other level's options come from its loader called with the
parent's selected value. Selecting a value at any level clears all levels
below it before loading the next one.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List

logger = logging.getLogger(__name__)

Loader = Callable[[Any], List[Dict[str, Any]]]


class FieldState(str, Enum):
    UNSELECTED = "unselected"
    LOADING = "loading"
    POPULATED = "populated"


@dataclass
class Level:
    name: str
    loader: Loader
    options: List[Dict[str, Any]] = field(default_factory=list)
    value: Any = None
    state: FieldState = FieldState.UNSELECTED

    def reset(self) -> None:
        self.options = []
        self.value = None
        self.state = FieldState.UNSELECTED


class SelectorChain:
    def __init__(self, levels: List[Level]):
        if not levels:
            raise ValueError("a selector chain needs at least one level")
        self.levels = levels
        self._index = {level.name: i for i, level in enumerate(levels)}

    def __getitem__(self, name: str) -> Level:
        return self.levels[self._index[name]]

    @property
    def names(self) -> List[str]:
        return [level.name for level in self.levels]

    @property
    def values(self) -> Dict[str, Any]:
        return {level.name: level.value for level in self.levels}

    @property
    def is_complete(self) -> bool:
        return all(level.value not in (None, "") for level in self.levels)

    def options(self, name: str) -> List[Dict[str, Any]]:
        return self[name].options

    def load_root(self) -> List[Dict[str, Any]]:
        """Load the first level (its loader gets ``None`` as parent)."""
        root = self.levels[0]
        self._load(root, None)
        return root.options

    def select(self, name: str, value: Any) -> None:
        index = self._index[name]
        level = self.levels[index]
        level.value = None if value == "" else value
        for child in self.levels[index + 1:]:
            child.reset()
        if level.value is not None and index + 1 < len(self.levels):
            self._load(self.levels[index + 1], level.value)

    def clear(self) -> None:
        """Drop every selection; root options are kept."""
        self.levels[0].value = None
        for child in self.levels[1:]:
            child.reset()

    def _load(self, level: Level, parent: Any) -> None:
        level.state = FieldState.LOADING
        try:
            options = level.loader(parent)
        except Exception:
            # A failed fetch leaves the list empty; the form stays usable
            logger.exception("loading %s options failed (parent=%r)", level.name, parent)
            options = []
        level.options = list(options or [])
        level.state = FieldState.POPULATED


def university_chain(client) -> SelectorChain:
    return SelectorChain([
        Level("university", lambda _parent: client.universities()),
        Level("domain", client.domains),
        Level("subject", client.subjects),
    ])


def skill_chain(client) -> SelectorChain:
    return SelectorChain([
        Level("skill_category", lambda _parent: client.skill_categories()),
        Level("skill", client.skills),
    ])


def exam_chain(client) -> SelectorChain:
    return SelectorChain([
        Level("exam_category", lambda _parent: client.exam_categories()),
        Level("exam", client.exams),
    ])
