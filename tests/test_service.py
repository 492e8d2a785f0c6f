from clusterlens.analyzers.service import ServiceAnalyzer
from clusterlens.common import Analyzer
from clusterlens.kubernetes import InMemoryClient


def _endpoints(namespace="default", subsets=None):
    obj = {
        "kind": "Endpoints",
        "metadata": {"name": "example", "namespace": namespace, "annotations": {}},
    }
    if subsets is not None:
        obj["subsets"] = subsets
    return obj


def _service(namespace="default"):
    return {
        "kind": "Service",
        "metadata": {"name": "example", "namespace": namespace, "annotations": {}},
        "spec": {"selector": {"app": "example"}},
    }


def _run(*objects):
    client = InMemoryClient(*objects)
    return ServiceAnalyzer().analyze(Analyzer(client=client, namespace="default"))


def test_service_analyzer():
    results = _run(_endpoints(), _service())
    assert len(results) == 1
    assert results[0].kind == "Service"
    assert results[0].error[0].text == "Service has no endpoints, expected label app=example"


def test_service_analyzer_namespace_filtering():
    results = _run(
        _endpoints(),
        _service(),
        _endpoints("other-namespace"),
        _service("other-namespace"),
    )
    assert len(results) == 1
    assert results[0].name == "default/example"


def test_missing_service_is_skipped(capsys):
    results = _run(_endpoints())
    assert results == []
    assert "Service default/example does not exist" in capsys.readouterr().out


def test_not_ready_addresses_reported():
    subsets = [
        {
            "notReadyAddresses": [
                {"targetRef": {"kind": "Pod", "name": "a"}},
                {"targetRef": {"kind": "Pod", "name": "b"}},
            ]
        }
    ]
    results = _run(_endpoints(subsets=subsets), _service())
    assert [f.text for f in results[0].error] == [
        "Service has not ready endpoints, pods: [Pod/a Pod/b], expected 2"
    ]


def test_ready_endpoints_not_reported():
    subsets = [{"addresses": [{"ip": "10.0.0.1"}]}]
    assert _run(_endpoints(subsets=subsets), _service()) == []