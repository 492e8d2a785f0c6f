"""Checks HorizontalPodAutoscalers and the workloads they scale."""

from __future__ import annotations

from typing import Any

from clusterlens.common import Analyzer, BaseAnalyzer, Failure, Result, Sensitive
from clusterlens.kubernetes import ApiError
from clusterlens.metrics import ANALYZER_ERRORS_METRIC
from clusterlens.util import get_parent, mask_string

KIND = "HorizontalPodAutoscaler"

_TARGET_KINDS = frozenset({"Deployment", "ReplicationController", "ReplicaSet", "StatefulSet"})


def pod_spec_of(workload: dict[str, Any]) -> dict[str, Any]:
    """Return the pod template spec of a Deployment-like workload."""
    template = (workload.get("spec") or {}).get("template") or {}
    return template.get("spec") or {}


def _has_resources(container: dict[str, Any]) -> bool:
    resources = container.get("resources") or {}
    return resources.get("requests") is not None and resources.get("limits") is not None


class HpaAnalyzer(BaseAnalyzer):
    """Reports autoscalers with missing targets or targets without resources."""

    def analyze(self, analysis: Analyzer) -> list[Result]:
        ANALYZER_ERRORS_METRIC.delete_partial_match({"analyzer_name": KIND})

        client = analysis.client
        autoscalers = client.list(KIND, analysis.namespace)
        pre_analysis: dict[str, tuple[dict, list[Failure]]] = {}

        for hpa in autoscalers:
            meta = hpa.get("metadata") or {}
            name = meta.get("name", "")
            namespace = meta.get("namespace", "")
            target = (hpa.get("spec") or {}).get("scaleTargetRef") or {}
            target_kind = target.get("kind", "")
            target_name = target.get("name", "")

            failures: list[Failure] = []
            workload = None
            if target_kind in _TARGET_KINDS:
                try:
                    workload = client.get(target_kind, namespace, target_name)
                except ApiError:
                    workload = None
            else:
                failures.append(
                    Failure(
                        f"HorizontalPodAutoscaler uses {target_kind} as ScaleTargetRef "
                        "which is not an option."
                    )
                )

            if workload is None:
                failures.append(
                    Failure(
                        f"HorizontalPodAutoscaler uses {target_kind}/{target_name} as "
                        "ScaleTargetRef which does not exist.",
                        [Sensitive(target_name, mask_string(target_name))],
                    )
                )
            else:
                containers = pod_spec_of(workload).get("containers") or []
                configured = sum(1 for c in containers if _has_resources(c))
                if configured <= 0:
                    failures.append(
                        Failure(
                            f"{target_kind} {analysis.namespace}/{target_name} "
                            "does not have resource configured.",
                            [Sensitive(target_name, mask_string(target_name))],
                        )
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