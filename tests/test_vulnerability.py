import pytest

from clusterlens.analyzers.vulnerability import TrivyAnalyzer
from clusterlens.common import Analyzer, Result
from clusterlens.kubernetes import ApiError, InMemoryClient


def _report(name, namespace, vulnerabilities, owner=None):
    meta = {
        "name": name,
        "namespace": namespace,
        "labels": {
            "trivy-operator.resource.namespace": namespace,
            "trivy-operator.resource.name": "app",
        },
    }
    if owner is not None:
        meta["ownerReferences"] = [owner]
    return {
        "kind": "VulnerabilityReport",
        "metadata": meta,
        "report": {"vulnerabilities": vulnerabilities},
    }


def test_critical_vulnerability_reported():
    client = InMemoryClient(
        _report(
            "replicaset-app",
            "default",
            [
                {
                    "vulnerabilityID": "CVE-2023-0001",
                    "severity": "CRITICAL",
                    "primaryLink": "https://example.com/CVE-2023-0001",
                },
                {
                    "vulnerabilityID": "CVE-2023-0002",
                    "severity": "HIGH",
                    "primaryLink": "https://example.com/CVE-2023-0002",
                },
            ],
        )
    )
    results = TrivyAnalyzer().analyze(Analyzer(client=client, namespace="default"))
    assert len(results) == 1
    assert results[0].kind == "VulnerabilityReport"
    assert results[0].name == "default/app"
    assert [f.text for f in results[0].error] == [
        "critical Vulnerability found ID: CVE-2023-0001 "
        "(learn more at: https://example.com/CVE-2023-0001)"
    ]
    assert results[0].parent_object == "replicaset-app"


def test_no_critical_gives_no_results():
    client = InMemoryClient(
        _report("r", "default", [{"vulnerabilityID": "CVE-1", "severity": "LOW"}])
    )
    assert TrivyAnalyzer().analyze(Analyzer(client=client)) == []


def test_parent_follows_owner():
    client = InMemoryClient(
        _report(
            "r",
            "default",
            [{"vulnerabilityID": "CVE-1", "severity": "CRITICAL"}],
            owner={"kind": "Deployment", "name": "web"},
        ),
        {"kind": "Deployment", "metadata": {"name": "web", "namespace": "default"}},
    )
    results = TrivyAnalyzer().analyze(Analyzer(client=client))
    assert results[0].parent_object == "Deployment/web"


def test_existing_results_are_kept():
    client = InMemoryClient(
        _report("r", "default", [{"vulnerabilityID": "CVE-1", "severity": "CRITICAL"}])
    )
    earlier = Result(kind="Pod", name="default/p")
    results = TrivyAnalyzer().analyze(Analyzer(client=client, results=[earlier]))
    assert results[0] == earlier
    assert len(results) == 2


class _FailingClient:
    def list(self, kind, namespace="", field_selector="", label_selector=""):
        raise ApiError("forbidden", 403)


def test_api_error_propagates():
    with pytest.raises(ApiError):
        TrivyAnalyzer().analyze(Analyzer(client=_FailingClient()))