"""Checks ReplicaSets that have no replicas because pod creation failed."""

from __future__ import annotations

from clusterlens.common import Analyzer, BaseAnalyzer, Failure, Result
from clusterlens.metrics import ANALYZER_ERRORS_METRIC
from clusterlens.util import get_parent

KIND = "ReplicaSet"


class ReplicaSetAnalyzer(BaseAnalyzer):
    """Reports empty ReplicaSets with a failed-create condition."""

    def analyze(self, analysis: Analyzer) -> list[Result]:
        ANALYZER_ERRORS_METRIC.delete_partial_match({"analyzer_name": KIND})

        client = analysis.client
        replica_sets = client.list(KIND, analysis.namespace)
        pre_analysis: dict[str, tuple[dict, list[Failure]]] = {}

        for rs in replica_sets:
            meta = rs.get("metadata") or {}
            name = meta.get("name", "")
            namespace = meta.get("namespace", "")
            status = rs.get("status") or {}
            failures: list[Failure] = []

            if status.get("replicas", 0) == 0:
                failures.extend(
                    Failure(condition.get("message", ""))
                    for condition in status.get("conditions") or []
                    if condition.get("type") == "ReplicaFailure"
                    and condition.get("reason") == "FailedCreate"
                )

            if failures:
                pre_analysis[f"{namespace}/{name}"] = (meta, failures)
                ANALYZER_ERRORS_METRIC.with_label_values(KIND, name, namespace).set(
                    len(failures)
                )

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