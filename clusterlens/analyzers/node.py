"""Checks Node conditions for anything other than a healthy state."""

from __future__ import annotations

from clusterlens.common import Analyzer, BaseAnalyzer, Failure, Result, Sensitive
from clusterlens.metrics import ANALYZER_ERRORS_METRIC
from clusterlens.util import get_parent, mask_string

KIND = "Node"


def _condition_failure(node_name: str, condition: dict) -> Failure:
    return Failure(
        f"{node_name} has condition of type {condition.get('type', '')}, "
        f"reason {condition.get('reason', '')}: {condition.get('message', '')}",
        [Sensitive(node_name, mask_string(node_name))],
    )


def _is_unhealthy(condition: dict) -> bool:
    status = condition.get("status", "")
    if condition.get("type") == "Ready":
        return status != "True"
    # Any other condition, including unknown ones, is a problem unless False.
    return status != "False"


class NodeAnalyzer(BaseAnalyzer):
    """Reports nodes that are not ready or carry a pressure condition."""

    def analyze(self, analysis: Analyzer) -> list[Result]:
        ANALYZER_ERRORS_METRIC.delete_partial_match({"analyzer_name": KIND})

        client = analysis.client
        nodes = client.list(KIND)
        pre_analysis: dict[str, tuple[dict, list[Failure]]] = {}

        for node in nodes:
            meta = node.get("metadata") or {}
            name = meta.get("name", "")
            conditions = (node.get("status") or {}).get("conditions") or []
            failures = [
                _condition_failure(name, condition)
                for condition in conditions
                if _is_unhealthy(condition)
            ]
            if failures:
                pre_analysis[name] = (meta, failures)
                ANALYZER_ERRORS_METRIC.with_label_values(KIND, name, "").set(len(failures))

        results = list(analysis.results)
        for key, (meta, failures) in pre_analysis.items():
            results.append(
                Result(
                    kind=KIND,
                    name=key,
                    error=failures,
                    parent_object=get_parent(client, meta),
                )
            )
        return results