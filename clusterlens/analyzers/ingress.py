"""Checks Ingresses for missing classes, services and TLS secrets."""

from __future__ import annotations

from typing import Any

from clusterlens.common import Analyzer, BaseAnalyzer, Failure, Result, Sensitive
from clusterlens.kubernetes import ApiError
from clusterlens.metrics import ANALYZER_ERRORS_METRIC
from clusterlens.util import get_parent, mask_string

KIND = "Ingress"
_CLASS_ANNOTATION = "kubernetes.io/ingress.class"


def _sensitive(*values: str) -> list[Sensitive]:
    return [Sensitive(unmasked=value, masked=mask_string(value)) for value in values]


def _exists(client: Any, kind: str, namespace: str, name: str) -> bool:
    try:
        client.get(kind, namespace, name)
    except ApiError:
        return False
    return True


class IngressAnalyzer(BaseAnalyzer):
    """Reports Ingresses that refer to objects which are missing."""

    def analyze(self, analysis: Analyzer) -> list[Result]:
        ANALYZER_ERRORS_METRIC.delete_partial_match({"analyzer_name": KIND})

        client = analysis.client
        ingresses = client.list(KIND, analysis.namespace)
        pre_analysis: dict[str, tuple[dict, list[Failure]]] = {}

        for ingress in ingresses:
            meta = ingress.get("metadata") or {}
            name = meta.get("name", "")
            namespace = meta.get("namespace", "")
            spec = ingress.get("spec") or {}
            failures: list[Failure] = []

            class_name = spec.get("ingressClassName")
            if class_name is None:
                annotated = (meta.get("annotations") or {}).get(_CLASS_ANNOTATION, "")
                if annotated:
                    class_name = annotated
                else:
                    failures.append(
                        Failure(
                            f"Ingress {namespace}/{name} does not specify an Ingress class.",
                            _sensitive(namespace, name),
                        )
                    )

            if class_name is not None and not _exists(client, "IngressClass", "", class_name):
                failures.append(
                    Failure(
                        f"Ingress uses the ingress class {class_name} which does not exist.",
                        _sensitive(class_name),
                    )
                )

            for rule in spec.get("rules") or []:
                for path in (rule.get("http") or {}).get("paths") or []:
                    service = (path.get("backend") or {}).get("service")
                    if service is None:
                        continue
                    service_name = service.get("name", "")
                    if not _exists(client, "Service", namespace, service_name):
                        failures.append(
                            Failure(
                                f"Ingress uses the service {namespace}/{service_name} "
                                "which does not exist.",
                                _sensitive(namespace, service_name),
                            )
                        )

            for tls in spec.get("tls") or []:
                secret_name = tls.get("secretName", "")
                if not _exists(client, "Secret", namespace, secret_name):
                    failures.append(
                        Failure(
                            f"Ingress uses the secret {namespace}/{secret_name} "
                            "as a TLS certificate which does not exist.",
                            _sensitive(namespace, secret_name),
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