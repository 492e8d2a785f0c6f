"""Checks Deployments whose replica count differs from what is running."""

from __future__ import annotations

from clusterlens.common import Analyzer, BaseAnalyzer, Failure, Result, Sensitive
from clusterlens.metrics import ANALYZER_ERRORS_METRIC
from clusterlens.util import mask_string

KIND = "Deployment"


class DeploymentAnalyzer(BaseAnalyzer):
    """Reports Deployments whose desired and current replicas differ."""

    def analyze(self, analysis: Analyzer) -> list[Result]:
        ANALYZER_ERRORS_METRIC.delete_partial_match({"analyzer_name": KIND})

        deployments = analysis.client.list(KIND, analysis.namespace)
        pre_analysis: dict[str, list[Failure]] = {}

        for deployment in deployments:
            meta = deployment.get("metadata") or {}
            name = meta.get("name", "")
            namespace = meta.get("namespace", "")
            desired = (deployment.get("spec") or {}).get("replicas", 1)
            current = (deployment.get("status") or {}).get("replicas", 0)

            failures: list[Failure] = []
            if desired != current:
                failures.append(
                    Failure(
                        f"Deployment {namespace}/{name} has {desired} replicas "
                        f"but {current} are available",
                        [
                            Sensitive(namespace, mask_string(namespace)),
                            Sensitive(name, mask_string(name)),
                        ],
                    )
                )

            if failures:
                pre_analysis[f"{namespace}/{name}"] = failures
                ANALYZER_ERRORS_METRIC.with_label_values(KIND, name, namespace).set(
                    len(failures)
                )

        results = list(analysis.results)
        results.extend(
            Result(kind=KIND, name=key, error=failures)
            for key, failures in pre_analysis.items()
        )
        return results