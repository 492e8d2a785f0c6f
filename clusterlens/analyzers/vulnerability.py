"""Reports critical vulnerabilities found by the vulnerability scanner operator."""

from __future__ import annotations

from clusterlens.common import Analyzer, BaseAnalyzer, Failure, Result
from clusterlens.util import get_parent

KIND = "VulnerabilityReport"

_NAMESPACE_LABEL = "trivy-operator.resource.namespace"
_NAME_LABEL = "trivy-operator.resource.name"


class TrivyAnalyzer(BaseAnalyzer):
    """Turns critical entries of VulnerabilityReports into results."""

    def analyze(self, analysis: Analyzer) -> list[Result]:
        client = analysis.client
        reports = client.list(KIND)
        pre_analysis: dict[str, tuple[dict, list[Failure]]] = {}

        for report in reports:
            meta = report.get("metadata") or {}
            vulnerabilities = (report.get("report") or {}).get("vulnerabilities") or []
            failures = [
                Failure(
                    "critical Vulnerability found ID: "
                    f"{vuln.get('vulnerabilityID', '')} "
                    f"(learn more at: {vuln.get('primaryLink', '')})"
                )
                for vuln in vulnerabilities
                if vuln.get("severity") == "CRITICAL"
            ]
            if failures:
                labels = meta.get("labels") or {}
                key = f"{labels.get(_NAMESPACE_LABEL, '')}/{labels.get(_NAME_LABEL, '')}"
                pre_analysis[key] = (meta, failures)

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