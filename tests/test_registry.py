from clusterlens.analyzers.pod import PodAnalyzer
from clusterlens.analyzers.registry import get_analyzer_map, list_filters
from clusterlens.analyzers.vulnerability import TrivyAnalyzer
from clusterlens.integration import IntegrationBackend, IntegrationRegistry

CORE = {
    "Pod",
    "Deployment",
    "ReplicaSet",
    "PersistentVolumeClaim",
    "Service",
    "Ingress",
    "StatefulSet",
    "CronJob",
    "Node",
}
ADDITIONAL = {"HorizontalPodAutoScaler", "PodDisruptionBudget", "NetworkPolicy"}


class FakeBackend(IntegrationBackend):
    def __init__(self, active):
        self.active = active

    def deploy(self, namespace):
        pass

    def undeploy(self, namespace):
        pass

    def add_analyzer(self, analyzers):
        analyzers["VulnerabilityReport"] = TrivyAnalyzer()

    def analyzer_name(self):
        return "VulnerabilityReport"

    def is_activate(self):
        return self.active


def test_list_filters_without_integrations():
    core, additional, integrations = list_filters()
    assert set(core) == CORE
    assert set(additional) == ADDITIONAL
    assert integrations == []


def test_list_filters_with_active_integration():
    registry = IntegrationRegistry({"trivy": FakeBackend(True)})
    _, _, integrations = list_filters(registry)
    assert integrations == ["VulnerabilityReport"]


def test_list_filters_ignores_inactive_integration():
    registry = IntegrationRegistry({"trivy": FakeBackend(False)})
    assert list_filters(registry)[2] == []


def test_get_analyzer_map_core_and_merged():
    core, merged = get_analyzer_map()
    assert set(core) == CORE
    assert set(merged) == CORE | ADDITIONAL
    assert isinstance(core["Pod"], PodAnalyzer)


def test_get_analyzer_map_adds_integration_analyzer():
    registry = IntegrationRegistry({"trivy": FakeBackend(True)})
    core, merged = get_analyzer_map(registry)
    assert "VulnerabilityReport" not in core
    assert set(merged) == CORE | ADDITIONAL | {"VulnerabilityReport"}


def test_get_analyzer_map_does_not_leak_between_calls():
    get_analyzer_map(IntegrationRegistry({"trivy": FakeBackend(True)}))
    _, merged = get_analyzer_map()
    assert "VulnerabilityReport" not in merged