"""Shared data types for cluster analysis results."""

from __future__ import annotations

import abc
from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class Sensitive:
    """A piece of text that may be replaced by its masked form."""

    unmasked: str
    masked: str


@dataclass
class Failure:
    """A single problem found on an object."""

    text: str
    sensitive: list[Sensitive] = field(default_factory=list)


@dataclass
class Result:
    """Analysis outcome for one object."""

    kind: str
    name: str
    error: list[Failure] = field(default_factory=list)
    details: str = ""
    parent_object: str = ""

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON-ready representation of this result."""
        return {
            "kind": self.kind,
            "name": self.name,
            "error": [
                {
                    "Text": failure.text,
                    "Sensitive": [
                        {"Unmasked": item.unmasked, "Masked": item.masked}
                        for item in failure.sensitive
                    ],
                }
                for failure in self.error
            ],
            "details": self.details,
            "parentObject": self.parent_object,
        }


@dataclass
class Analyzer:
    """Everything an analyzer needs for one run."""

    client: Any
    namespace: str = ""
    ai_client: Any = None
    pre_analysis: dict[str, Any] = field(default_factory=dict)
    results: list[Result] = field(default_factory=list)


class BaseAnalyzer(abc.ABC):
    """Interface implemented by every resource analyzer."""

    @abc.abstractmethod
    def analyze(self, analysis: Analyzer) -> list[Result]:
        """Inspect the cluster and return the results found."""