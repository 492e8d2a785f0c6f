"""Checks PersistentVolumeClaims that fail to provision."""

from __future__ import annotations

from clusterlens.analyzers.events import fetch_latest_event
from clusterlens.common import Analyzer, BaseAnalyzer, Failure, Result
from clusterlens.kubernetes import ApiError
from clusterlens.metrics import ANALYZER_ERRORS_METRIC
from clusterlens.util import get_parent

KIND = "PersistentVolumeClaim"


class PvcAnalyzer(BaseAnalyzer):
    """Reports pending claims whose latest event is a provisioning failure."""

    def analyze(self, analysis: Analyzer) -> list[Result]:
        ANALYZER_ERRORS_METRIC.delete_partial_match({"analyzer_name": KIND})

        client = analysis.client
        claims = client.list(KIND, analysis.namespace)
        pre_analysis: dict[str, tuple[dict, list[Failure]]] = {}

        for pvc in claims:
            meta = pvc.get("metadata") or {}
            name = meta.get("name", "")
            namespace = meta.get("namespace", "")
            failures: list[Failure] = []

            if (pvc.get("status") or {}).get("phase") == "Pending":
                try:
                    event = fetch_latest_event(client, namespace, name)
                except ApiError:
                    continue
                if event is None:
                    continue
                if event.get("reason") == "ProvisioningFailed" and event.get("message"):
                    failures.append(Failure(event["message"]))

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