"""Cluster status gauges in Prometheus text exposition format."""

from __future__ import annotations

import math
from typing import Sequence

CONTROLLER_SUBSYSTEM = "controller"


def _format_value(value: float) -> str:
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "+Inf" if value > 0 else "-Inf"
    if value == int(value) and abs(value) < 1e15:
        return str(int(value))
    return repr(float(value))


def _escape(value: str) -> str:
    return value.replace("\\", "\\\\").replace("\n", "\\n").replace('"', '\\"')


def _build_name(*parts: str) -> str:
    return "_".join(part for part in parts if part)


class GaugeVec:
    """A gauge partitioned by a fixed set of label names."""

    def __init__(self, name: str, help: str, label_names: Sequence[str]) -> None:
        self.name = name
        self.help = help
        self.label_names = tuple(label_names)
        self._values: dict[tuple[str, ...], float] = {}

    def _key(self, labels: Sequence[str]) -> tuple[str, ...]:
        key = tuple(str(label) for label in labels)
        if len(key) != len(self.label_names):
            raise ValueError(
                f"expected {len(self.label_names)} label values, got {len(key)}"
            )
        return key

    def set(self, labels: Sequence[str], value: float) -> None:
        """Set the gauge for the given label values."""
        self._values[self._key(labels)] = float(value)

    def delete(self, labels: Sequence[str]) -> bool:
        """Remove the series for the given label values; True if it existed."""
        return self._values.pop(self._key(labels), None) is not None

    def expose(self) -> str:
        """Render this gauge; empty when it has no series."""
        if not self._values:
            return ""
        order = sorted(range(len(self.label_names)), key=lambda i: self.label_names[i])
        samples = []
        for key, value in self._values.items():
            ordered = tuple(key[i] for i in order)
            pairs = ",".join(
                f'{self.label_names[i]}="{_escape(key[i])}"' for i in order
            )
            samples.append((ordered, f"{self.name}{{{pairs}}} {_format_value(value)}"))
        lines = [f"# HELP {self.name} {self.help}", f"# TYPE {self.name} gauge"]
        lines.extend(line for _, line in sorted(samples))
        return "\n".join(lines) + "\n"


class Registry:
    """A set of gauges exposed together."""

    def __init__(self) -> None:
        self._gauges: dict[str, GaugeVec] = {}

    def register(self, gauge: GaugeVec) -> None:
        """Add a gauge; raise ValueError if its name is already taken."""
        if gauge.name in self._gauges:
            raise ValueError(f"duplicate metrics collector registration: {gauge.name}")
        self._gauges[gauge.name] = gauge

    def expose(self) -> str:
        """Render all registered gauges, sorted by name."""
        return "".join(self._gauges[name].expose() for name in sorted(self._gauges))


class Recorder:
    """Records the status of each managed failover cluster."""

    def __init__(self, namespace: str, registry: Registry) -> None:
        self.cluster_ok = GaugeVec(
            _build_name(namespace, CONTROLLER_SUBSYSTEM, "cluster_ok"),
            "Number of failover clusters managed by the operator.",
            ("namespace", "name"),
        )
        registry.register(self.cluster_ok)

    def set_cluster_ok(self, namespace: str, name: str) -> None:
        self.cluster_ok.set((namespace, name), 1)

    def set_cluster_error(self, namespace: str, name: str) -> None:
        self.cluster_ok.set((namespace, name), 0)

    def delete_cluster(self, namespace: str, name: str) -> None:
        self.cluster_ok.delete((namespace, name))


class DummyRecorder:
    """A recorder that keeps cluster status in memory and exposes nothing."""

    def __init__(self) -> None:
        self.statuses: dict[tuple[str, str], bool] = {}

    def set_cluster_ok(self, namespace: str, name: str) -> None:
        self.statuses[(namespace, name)] = True

    def set_cluster_error(self, namespace: str, name: str) -> None:
        self.statuses[(namespace, name)] = False

    def delete_cluster(self, namespace: str, name: str) -> None:
        self.statuses.pop((namespace, name), None)


DUMMY = DummyRecorder()