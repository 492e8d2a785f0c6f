"""Optional integrations that add analyzers when they are activated."""

from __future__ import annotations

import abc
from collections.abc import Mapping, MutableMapping
from typing import Any

from clusterlens.common import BaseAnalyzer
from clusterlens.util import remove_duplicates

ACTIVE_FILTERS_KEY = "active_filters"


class IntegrationError(Exception):
    """Raised when an integration cannot be found, activated or removed."""


class IntegrationBackend(abc.ABC):
    """An integration that can be deployed to a cluster and adds an analyzer."""

    @abc.abstractmethod
    def deploy(self, namespace: str) -> None:
        """Install the integration into ``namespace``."""

    @abc.abstractmethod
    def undeploy(self, namespace: str) -> None:
        """Remove the integration from ``namespace``."""

    @abc.abstractmethod
    def add_analyzer(self, analyzers: MutableMapping[str, BaseAnalyzer]) -> None:
        """Register the integration's analyzer in ``analyzers``."""

    @abc.abstractmethod
    def remove_analyzer(self) -> None:
        """Undo what :meth:`add_analyzer` registered."""

    @abc.abstractmethod
    def analyzer_name(self) -> str:
        """Return the filter name of the integration's analyzer."""

    @abc.abstractmethod
    def is_activate(self) -> bool:
        """Return whether the integration is installed."""


class IntegrationRegistry:
    """Known integrations, and their activation in the configuration."""

    def __init__(
        self,
        backends: Mapping[str, IntegrationBackend] | None = None,
        config: Any = None,
    ):
        self._backends = dict(backends or {})
        self.config = config

    def list(self) -> list[str]:
        """Return the names of all known integrations."""
        return list(self._backends)

    def get(self, name: str) -> IntegrationBackend:
        """Return the integration called ``name``."""
        try:
            return self._backends[name]
        except KeyError:
            raise IntegrationError("integration not found") from None

    def _require_config(self) -> Any:
        if self.config is None:
            raise IntegrationError("no configuration store")
        return self.config

    def activate(self, name: str, namespace: str, active_filters: list[str]) -> None:
        """Deploy an integration and add its analyzer to the active filters."""
        backend = self.get(name)
        config = self._require_config()

        merged = [*active_filters, backend.analyzer_name()]
        unique, duplicated = remove_duplicates(merged)
        if duplicated:
            raise IntegrationError(f"Integration already activated : {', '.join(duplicated)}")

        config.set(ACTIVE_FILTERS_KEY, unique)
        backend.deploy(namespace)
        config.write()

    def deactivate(self, name: str, namespace: str) -> None:
        """Remove an integration and drop its analyzer from the active filters."""
        backend = self.get(name)
        config = self._require_config()

        filters = list(config.get_string_list(ACTIVE_FILTERS_KEY))
        analyzer = backend.analyzer_name()
        if analyzer not in filters:
            raise IntegrationError(
                f"Integration {name} does not exist in configuration file. "
                "Please add the integration first."
            )
        filters.remove(analyzer)

        backend.undeploy(namespace)
        config.set(ACTIVE_FILTERS_KEY, filters)
        config.write()

    def is_activate(self, name: str) -> bool:
        """Return whether the integration called ``name`` is installed."""
        return self.get(name).is_activate()