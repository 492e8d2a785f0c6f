"""A minimal labelled gauge with Prometheus text exposition."""

from __future__ import annotations

import math
import threading
from collections.abc import Mapping, Sequence


class Gauge:
    """A single value that can be set."""

    def __init__(self) -> None:
        self._value = 0.0
        self._lock = threading.Lock()

    @property
    def value(self) -> float:
        return self._value

    def set(self, value: float) -> None:
        """Set the gauge to ``value``."""
        with self._lock:
            self._value = float(value)


def _format_value(value: float) -> str:
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "+Inf" if value > 0 else "-Inf"
    if value.is_integer() and abs(value) < 1e21:
        return str(int(value))
    return repr(value)


def _escape(value: str) -> str:
    return value.replace("\\", "\\\\").replace("\n", "\\n").replace('"', '\\"')


class GaugeVec:
    """A family of gauges partitioned by label values."""

    def __init__(self, name: str, help_text: str, label_names: Sequence[str]):
        self.name = name
        self.help_text = help_text
        self.label_names = tuple(label_names)
        self._gauges: dict[tuple[str, ...], Gauge] = {}
        self._lock = threading.Lock()

    def with_label_values(self, *args: str) -> Gauge:
        """Return the gauge for these label values, creating it if needed."""
        if len(args) != len(self.label_names):
            raise ValueError(
                f"{self.name}: expected {len(self.label_names)} label values, got {len(args)}"
            )
        key = tuple(str(a) for a in args)
        with self._lock:
            return self._gauges.setdefault(key, Gauge())

    def delete_partial_match(self, labels: Mapping[str, str]) -> int:
        """Remove every gauge whose labels include ``labels``; return the count."""
        positions = {}
        for name, value in labels.items():
            if name not in self.label_names:
                return 0
            positions[self.label_names.index(name)] = value
        with self._lock:
            doomed = [
                key
                for key in self._gauges
                if all(key[i] == value for i, value in positions.items())
            ]
            for key in doomed:
                del self._gauges[key]
        return len(doomed)

    def samples(self) -> list[tuple[dict[str, str], float]]:
        """Return (labels, value) pairs sorted by label values."""
        with self._lock:
            items = sorted(self._gauges.items())
        return [(dict(zip(self.label_names, key)), gauge.value) for key, gauge in items]

    def expose(self) -> str:
        """Render the family in the Prometheus text format."""
        lines = [f"# HELP {self.name} {self.help_text}", f"# TYPE {self.name} gauge"]
        for labels, value in self.samples():
            rendered = ",".join(f'{k}="{_escape(v)}"' for k, v in labels.items())
            lines.append(f"{self.name}{{{rendered}}} {_format_value(value)}")
        return "\n".join(lines) + "\n"


ANALYZER_ERRORS_METRIC = GaugeVec(
    "analyzer_errors",
    "Number of errors detected by analyzer",
    ["analyzer_name", "object_name", "namespace"],
)