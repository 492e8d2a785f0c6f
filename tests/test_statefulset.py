from clusterlens.analyzers.statefulset import StatefulSetAnalyzer
from clusterlens.common import Analyzer
from clusterlens.kubernetes import InMemoryClient


def _sts(namespace="default", spec=None):
    obj = {"kind": "StatefulSet", "metadata": {"name": "example", "namespace": namespace}}
    if spec is not None:
        obj["spec"] = spec
    return obj


def _claim_template(storage_class):
    return {
        "kind": "PersistentVolumeClaim",
        "apiVersion": "v1",
        "metadata": {"name": "pvc-example"},
        "spec": {
            "storageClassName": storage_class,
            "accessModes": ["ReadWriteOnce"],
            "resources": {"requests": {"storage": "1Gi"}},
        },
    }


def _run(*objects):
    client = InMemoryClient(*objects)
    return StatefulSetAnalyzer().analyze(Analyzer(client=client, namespace="default"))


def _texts(results):
    return [failure.text for result in results for failure in result.error]


def test_statefulset_analyzer():
    results = _run(_sts())
    assert len(results) == 1


def test_statefulset_analyzer_without_service():
    results = _run(_sts(spec={"serviceName": "example-svc"}))
    assert "StatefulSet uses the service default/example-svc which does not exist." in _texts(
        results
    )


def test_statefulset_analyzer_missing_storage_class():
    spec = {
        "serviceName": "example-svc",
        "volumeClaimTemplates": [_claim_template("example-sc")],
    }
    results = _run(_sts(spec=spec))
    assert "StatefulSet uses the storage class example-sc which does not exist." in _texts(
        results
    )


def test_statefulset_analyzer_namespace_filtering():
    results = _run(_sts(), _sts("other-namespace"))
    assert len(results) == 1
    assert results[0].name == "default/example"


def test_statefulset_with_existing_service_and_class():
    spec = {
        "serviceName": "example-svc",
        "volumeClaimTemplates": [_claim_template("example-sc")],
    }
    service = {"kind": "Service", "metadata": {"name": "example-svc", "namespace": "default"}}
    storage_class = {"kind": "StorageClass", "metadata": {"name": "example-sc"}}
    assert _run(_sts(spec=spec), service, storage_class) == []