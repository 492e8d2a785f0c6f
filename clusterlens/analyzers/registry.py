"""The set of available analyzers, including those added by integrations."""

from __future__ import annotations

from clusterlens.analyzers.cronjob import CronJobAnalyzer
from clusterlens.analyzers.deployment import DeploymentAnalyzer
from clusterlens.analyzers.hpa import HpaAnalyzer
from clusterlens.analyzers.ingress import IngressAnalyzer
from clusterlens.analyzers.netpol import NetworkPolicyAnalyzer
from clusterlens.analyzers.node import NodeAnalyzer
from clusterlens.analyzers.pdb import PdbAnalyzer
from clusterlens.analyzers.pod import PodAnalyzer
from clusterlens.analyzers.pvc import PvcAnalyzer
from clusterlens.analyzers.replicaset import ReplicaSetAnalyzer
from clusterlens.analyzers.service import ServiceAnalyzer
from clusterlens.analyzers.statefulset import StatefulSetAnalyzer
from clusterlens.common import BaseAnalyzer
from clusterlens.integration import IntegrationRegistry

CORE_ANALYZERS: dict[str, BaseAnalyzer] = {
    "Pod": PodAnalyzer(),
    "Deployment": DeploymentAnalyzer(),
    "ReplicaSet": ReplicaSetAnalyzer(),
    "PersistentVolumeClaim": PvcAnalyzer(),
    "Service": ServiceAnalyzer(),
    "Ingress": IngressAnalyzer(),
    "StatefulSet": StatefulSetAnalyzer(),
    "CronJob": CronJobAnalyzer(),
    "Node": NodeAnalyzer(),
}

ADDITIONAL_ANALYZERS: dict[str, BaseAnalyzer] = {
    "HorizontalPodAutoScaler": HpaAnalyzer(),
    "PodDisruptionBudget": PdbAnalyzer(),
    "NetworkPolicy": NetworkPolicyAnalyzer(),
}


def _registry(integrations: IntegrationRegistry | None) -> IntegrationRegistry:
    return integrations if integrations is not None else IntegrationRegistry()


def list_filters(
    integrations: IntegrationRegistry | None = None,
) -> tuple[list[str], list[str], list[str]]:
    """Return core, additional and active-integration analyzer names."""
    registry = _registry(integrations)
    integration_analyzers = [
        registry.get(name).analyzer_name()
        for name in registry.list()
        if registry.is_activate(name)
    ]
    return list(CORE_ANALYZERS), list(ADDITIONAL_ANALYZERS), integration_analyzers


def get_analyzer_map(
    integrations: IntegrationRegistry | None = None,
) -> tuple[dict[str, BaseAnalyzer], dict[str, BaseAnalyzer]]:
    """Return the core analyzers and every analyzer available, by filter name."""
    registry = _registry(integrations)
    core = dict(CORE_ANALYZERS)
    merged = {**CORE_ANALYZERS, **ADDITIONAL_ANALYZERS}
    for name in registry.list():
        if registry.is_activate(name):
            registry.get(name).add_analyzer(merged)
    return core, merged