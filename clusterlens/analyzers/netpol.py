"""Checks NetworkPolicies that select every pod or no pod at all."""

from __future__ import annotations

from clusterlens.common import Analyzer, BaseAnalyzer, Failure, Result, Sensitive
from clusterlens.metrics import ANALYZER_ERRORS_METRIC
from clusterlens.util import get_pod_list_by_labels, mask_string

KIND = "NetworkPolicy"


class NetworkPolicyAnalyzer(BaseAnalyzer):
    """Reports policies that match all pods or that apply to none."""

    def analyze(self, analysis: Analyzer) -> list[Result]:
        ANALYZER_ERRORS_METRIC.delete_partial_match({"analyzer_name": KIND})

        client = analysis.client
        policies = client.list(KIND, analysis.namespace)
        pre_analysis: dict[str, list[Failure]] = {}

        for policy in policies:
            meta = policy.get("metadata") or {}
            name = meta.get("name", "")
            namespace = meta.get("namespace", "")
            selector = (policy.get("spec") or {}).get("podSelector") or {}
            match_labels = selector.get("matchLabels") or {}
            failures: list[Failure] = []

            if not match_labels:
                failures.append(
                    Failure(
                        f"Network policy allows traffic to all pods: {name}",
                        [Sensitive(name, mask_string(name))],
                    )
                )
            else:
                pods = get_pod_list_by_labels(client, analysis.namespace, match_labels)
                if not pods:
                    failures.append(
                        Failure(
                            f"Network policy is not applied to any pods: {name}",
                            [Sensitive(name, mask_string(name))],
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