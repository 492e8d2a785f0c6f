"""Checks Pods that cannot be scheduled, crash, or fail readiness."""

from __future__ import annotations

from typing import Any

from clusterlens.analyzers.events import fetch_latest_event
from clusterlens.common import Analyzer, BaseAnalyzer, Failure, Result
from clusterlens.kubernetes import ApiError
from clusterlens.metrics import ANALYZER_ERRORS_METRIC
from clusterlens.util import get_parent

KIND = "Pod"

_BACKOFF_REASONS = frozenset({"CrashLoopBackOff", "ImagePullBackOff"})


def _latest_event(client: Any, namespace: str, name: str) -> dict | None:
    try:
        return fetch_latest_event(client, namespace, name)
    except ApiError:
        return None


class PodAnalyzer(BaseAnalyzer):
    """Reports pods that are stuck, crashing or not ready."""

    def analyze(self, analysis: Analyzer) -> list[Result]:
        ANALYZER_ERRORS_METRIC.delete_partial_match({"analyzer_name": KIND})

        client = analysis.client
        pods = client.list(KIND, analysis.namespace)
        pre_analysis: dict[str, tuple[dict, list[Failure]]] = {}

        for pod in pods:
            meta = pod.get("metadata") or {}
            name = meta.get("name", "")
            namespace = meta.get("namespace", "")
            status = pod.get("status") or {}
            phase = status.get("phase", "")
            failures: list[Failure] = []

            if phase == "Pending":
                for condition in status.get("conditions") or []:
                    if (
                        condition.get("type") == "PodScheduled"
                        and condition.get("reason") == "Unschedulable"
                        and condition.get("message")
                    ):
                        failures.append(Failure(condition["message"]))

            for container in status.get("containerStatuses") or []:
                waiting = (container.get("state") or {}).get("waiting")
                if waiting is not None:
                    reason = waiting.get("reason", "")
                    if reason in _BACKOFF_REASONS and waiting.get("message"):
                        failures.append(Failure(waiting["message"]))
                    if reason == "ContainerCreating" and phase == "Pending":
                        event = _latest_event(client, namespace, name)
                        if event is None:
                            continue
                        if event.get("reason") == "FailedCreatePodSandBox" and event.get(
                            "message"
                        ):
                            failures.append(Failure(event["message"]))
                elif not container.get("ready", False) and phase == "Running":
                    event = _latest_event(client, namespace, name)
                    if event is None:
                        continue
                    if event.get("reason") == "Unhealthy" and event.get("message"):
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