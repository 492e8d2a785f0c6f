"""Checks StatefulSets for missing services and storage classes."""

from __future__ import annotations

from typing import Any

from clusterlens.common import Analyzer, BaseAnalyzer, Failure, Result, Sensitive
from clusterlens.kubernetes import ApiError
from clusterlens.metrics import ANALYZER_ERRORS_METRIC
from clusterlens.util import get_parent, mask_string

KIND = "StatefulSet"


def _exists(client: Any, kind: str, namespace: str, name: str) -> bool:
    try:
        client.get(kind, namespace, name)
    except ApiError:
        return False
    return True


class StatefulSetAnalyzer(BaseAnalyzer):
    """Reports StatefulSets that refer to missing services or storage classes."""

    def analyze(self, analysis: Analyzer) -> list[Result]:
        ANALYZER_ERRORS_METRIC.delete_partial_match({"analyzer_name": KIND})

        client = analysis.client
        stateful_sets = client.list(KIND, analysis.namespace)
        pre_analysis: dict[str, tuple[dict, list[Failure]]] = {}

        for sts in stateful_sets:
            meta = sts.get("metadata") or {}
            name = meta.get("name", "")
            namespace = meta.get("namespace", "")
            spec = sts.get("spec") or {}
            failures: list[Failure] = []

            service_name = spec.get("serviceName", "")
            if not _exists(client, "Service", namespace, service_name):
                failures.append(
                    Failure(
                        f"StatefulSet uses the service {namespace}/{service_name} "
                        "which does not exist.",
                        [
                            Sensitive(namespace, mask_string(namespace)),
                            Sensitive(service_name, mask_string(service_name)),
                        ],
                    )
                )

            for template in spec.get("volumeClaimTemplates") or []:
                storage_class = (template.get("spec") or {}).get("storageClassName")
                if storage_class is None:
                    continue
                if not _exists(client, "StorageClass", "", storage_class):
                    failures.append(
                        Failure(
                            f"StatefulSet uses the storage class {storage_class} "
                            "which does not exist.",
                            [Sensitive(storage_class, mask_string(storage_class))],
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