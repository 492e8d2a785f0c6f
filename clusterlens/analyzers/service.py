"""Checks Services that have no endpoints or not-ready endpoints."""

from __future__ import annotations

from clusterlens.common import Analyzer, BaseAnalyzer, Failure, Result, Sensitive
from clusterlens.kubernetes import ApiError
from clusterlens.metrics import ANALYZER_ERRORS_METRIC
from clusterlens.util import get_parent, mask_string

KIND = "Service"


class ServiceAnalyzer(BaseAnalyzer):
    """Reports services whose endpoints are missing or not ready."""

    def analyze(self, analysis: Analyzer) -> list[Result]:
        ANALYZER_ERRORS_METRIC.delete_partial_match({"analyzer_name": KIND})

        client = analysis.client
        endpoints = client.list("Endpoints", analysis.namespace)
        pre_analysis: dict[str, tuple[dict, list[Failure]]] = {}

        for ep in endpoints:
            meta = ep.get("metadata") or {}
            name = meta.get("name", "")
            namespace = meta.get("namespace", "")
            subsets = ep.get("subsets") or []
            failures: list[Failure] = []

            if not subsets:
                try:
                    service = client.get(KIND, namespace, name)
                except ApiError:
                    print(f"Service {namespace}/{name} does not exist")
                    continue
                selector = (service.get("spec") or {}).get("selector") or {}
                for key, value in selector.items():
                    failures.append(
                        Failure(
                            f"Service has no endpoints, expected label {key}={value}",
                            [
                                Sensitive(key, mask_string(key)),
                                Sensitive(value, mask_string(value)),
                            ],
                        )
                    )
            else:
                count = 0
                pods: list[str] = []
                for subset in subsets:
                    not_ready = subset.get("notReadyAddresses") or []
                    if not not_ready:
                        continue
                    for address in not_ready:
                        count += 1
                        ref = address.get("targetRef") or {}
                        pods.append(f"{ref.get('kind', '')}/{ref.get('name', '')}")
                    failures.append(
                        Failure(
                            "Service has not ready endpoints, pods: "
                            f"[{' '.join(pods)}], expected {count}"
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