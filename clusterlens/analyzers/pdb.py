"""Checks PodDisruptionBudgets whose selectors match no pods."""

from __future__ import annotations

from typing import Any

from clusterlens.analyzers.events import fetch_latest_event
from clusterlens.common import Analyzer, BaseAnalyzer, Failure, Result, Sensitive
from clusterlens.kubernetes import ApiError
from clusterlens.metrics import ANALYZER_ERRORS_METRIC
from clusterlens.util import get_parent, mask_string

KIND = "PodDisruptionBudget"


def _format_expression(expression: dict[str, Any]) -> str:
    values = " ".join(str(v) for v in expression.get("values") or [])
    return f"{{{expression.get('key', '')} {expression.get('operator', '')} [{values}]}}"


class PdbAnalyzer(BaseAnalyzer):
    """Reports budgets that an event marks as matching no pods."""

    def analyze(self, analysis: Analyzer) -> list[Result]:
        ANALYZER_ERRORS_METRIC.delete_partial_match({"analyzer_name": KIND})

        client = analysis.client
        budgets = client.list(KIND, analysis.namespace)
        pre_analysis: dict[str, tuple[dict, list[Failure]]] = {}

        for pdb in budgets:
            meta = pdb.get("metadata") or {}
            name = meta.get("name", "")
            namespace = meta.get("namespace", "")
            failures: list[Failure] = []

            try:
                event = fetch_latest_event(client, namespace, name)
            except ApiError:
                continue
            if event is None:
                continue

            message = event.get("message", "")
            if event.get("reason") == "NoPods" and message:
                selector = (pdb.get("spec") or {}).get("selector")
                if selector is not None:
                    for key, value in (selector.get("matchLabels") or {}).items():
                        failures.append(
                            Failure(
                                f"{message}, expected label {key}={value}",
                                [
                                    Sensitive(key, mask_string(key)),
                                    Sensitive(value, mask_string(value)),
                                ],
                            )
                        )
                    for expression in selector.get("matchExpressions") or []:
                        failures.append(
                            Failure(
                                f"{message}, expected expression "
                                f"{_format_expression(expression)}"
                            )
                        )
                else:
                    failures.append(Failure(f"{message}, selector is nil"))

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