"""Access to the Kubernetes API: a REST client and an in-memory store."""

from __future__ import annotations

import base64
import copy
import os
import re
import tempfile
from pathlib import Path
from typing import Any, NamedTuple
from urllib.parse import quote

import requests
import yaml


class ApiError(Exception):
    """Raised when the API server rejects or fails a request."""

    def __init__(self, message: str, status: int | None = None):
        super().__init__(message)
        self.status = status


class NotFoundError(ApiError):
    """Raised when a requested object does not exist."""

    def __init__(self, message: str):
        super().__init__(message, 404)


class _Resource(NamedTuple):
    api: str
    plural: str
    namespaced: bool


_RESOURCE_TABLE: tuple[tuple[str, str, str, bool], ...] = (
    ("Pod", "api/v1", "pods", True),
    ("Event", "api/v1", "events", True),
    ("Endpoints", "api/v1", "endpoints", True),
    ("Service", "api/v1", "services", True),
    ("Secret", "api/v1", "secrets", True),
    ("PersistentVolumeClaim", "api/v1", "persistentvolumeclaims", True),
    ("ReplicationController", "api/v1", "replicationcontrollers", True),
    ("Node", "api/v1", "nodes", False),
    ("Deployment", "apis/apps/v1", "deployments", True),
    ("ReplicaSet", "apis/apps/v1", "replicasets", True),
    ("StatefulSet", "apis/apps/v1", "statefulsets", True),
    ("DaemonSet", "apis/apps/v1", "daemonsets", True),
    ("CronJob", "apis/batch/v1", "cronjobs", True),
    ("HorizontalPodAutoscaler", "apis/autoscaling/v1", "horizontalpodautoscalers", True),
    ("Ingress", "apis/networking.k8s.io/v1", "ingresses", True),
    ("IngressClass", "apis/networking.k8s.io/v1", "ingressclasses", False),
    ("NetworkPolicy", "apis/networking.k8s.io/v1", "networkpolicies", True),
    ("PodDisruptionBudget", "apis/policy/v1", "poddisruptionbudgets", True),
    ("StorageClass", "apis/storage.k8s.io/v1", "storageclasses", False),
    (
        "VulnerabilityReport",
        "apis/aquasecurity.github.io/v1alpha1",
        "vulnerabilityreports",
        True,
    ),
)

_RESOURCES: dict[str, _Resource] = {
    kind: _Resource(api, plural, namespaced)
    for kind, api, plural, namespaced in _RESOURCE_TABLE
}

_LABEL_KEY = re.compile(r"^[A-Za-z0-9]([-A-Za-z0-9_./]*[A-Za-z0-9])?$")

_SERVICE_ACCOUNT_DIR = Path("/var/run/secrets/kubernetes.io/serviceaccount")


def _is_namespaced(kind: str) -> bool:
    resource = _RESOURCES.get(kind)
    return resource.namespaced if resource else True


def _parse_label_selector(selector: str) -> list[tuple[str, str, str]]:
    requirements = []
    for term in (t.strip() for t in selector.split(",")):
        if not term:
            continue
        if "!=" in term:
            key, value = term.split("!=", 1)
            op = "!="
        elif "==" in term:
            key, value = term.split("==", 1)
            op = "="
        elif "=" in term:
            key, value = term.split("=", 1)
            op = "="
        elif term.startswith("!"):
            key, value, op = term[1:], "", "!"
        else:
            key, value, op = term, "", "exists"
        key = key.strip()
        if not _LABEL_KEY.match(key):
            raise ApiError(f"invalid label selector: {selector!r}", 400)
        requirements.append((key, op, value.strip()))
    return requirements


def _labels_match(labels: dict[str, str], requirements: list[tuple[str, str, str]]) -> bool:
    for key, op, value in requirements:
        if op == "=" and labels.get(key) != value:
            return False
        if op == "!=" and labels.get(key) == value:
            return False
        if op == "exists" and key not in labels:
            return False
        if op == "!" and key in labels:
            return False
    return True


def _field_value(obj: Any, path: str) -> str:
    for part in path.split("."):
        if not isinstance(obj, dict):
            return ""
        obj = obj.get(part)
    return "" if obj is None else str(obj)


def _fields_match(obj: dict, selector: str) -> bool:
    for term in (t.strip() for t in selector.split(",")):
        if not term:
            continue
        if "!=" in term:
            path, value = term.split("!=", 1)
            if _field_value(obj, path.strip()) == value.strip():
                return False
            continue
        path, _, value = term.replace("==", "=", 1).partition("=")
        if _field_value(obj, path.strip()) != value.strip():
            return False
    return True


class InMemoryClient:
    """A cluster held in memory, answering the same queries as the API."""

    def __init__(self, *objects: dict):
        self._objects: dict[tuple[str, str, str], dict] = {}
        self.add(*objects)

    def add(self, *args: dict) -> None:
        """Store objects; each needs a ``kind`` and ``metadata.name``."""
        for obj in args:
            kind = obj.get("kind")
            meta = obj.get("metadata") or {}
            name = meta.get("name")
            if not kind or not name:
                raise ValueError("object needs a kind and metadata.name")
            namespace = meta.get("namespace", "") if _is_namespaced(kind) else ""
            self._objects[(kind, namespace, name)] = copy.deepcopy(obj)

    def list(
        self,
        kind: str,
        namespace: str = "",
        field_selector: str = "",
        label_selector: str = "",
    ) -> list[dict]:
        """Return objects of ``kind``; an empty namespace means all of them."""
        requirements = _parse_label_selector(label_selector)
        scoped = _is_namespaced(kind) and namespace
        found = []
        for (obj_kind, obj_ns, _), obj in self._objects.items():
            if obj_kind != kind or (scoped and obj_ns != namespace):
                continue
            labels = (obj.get("metadata") or {}).get("labels") or {}
            if not _labels_match(labels, requirements):
                continue
            if field_selector and not _fields_match(obj, field_selector):
                continue
            found.append(copy.deepcopy(obj))
        return found

    def get(self, kind: str, namespace: str, name: str) -> dict:
        """Return one object or raise :class:`NotFoundError`."""
        key = (kind, namespace if _is_namespaced(kind) else "", name)
        try:
            return copy.deepcopy(self._objects[key])
        except KeyError:
            raise NotFoundError(f'{kind} "{name}" not found') from None


class KubeClient:
    """A read-only client for the Kubernetes REST API."""

    def __init__(
        self,
        server: str,
        *,
        token: str | None = None,
        verify: bool | str = True,
        cert: tuple[str, str] | None = None,
        auth: tuple[str, str] | None = None,
        session: Any = None,
        timeout: float = 30.0,
    ):
        self.server = server.rstrip("/")
        self.timeout = timeout
        self.session = session if session is not None else requests.Session()
        self.session.verify = verify
        self.session.cert = cert
        self.session.auth = auth
        if token:
            self.session.headers["Authorization"] = f"Bearer {token}"

    def _url(self, kind: str, namespace: str, name: str | None = None) -> str:
        try:
            resource = _RESOURCES[kind]
        except KeyError:
            raise ValueError(f"unsupported kind: {kind}") from None
        parts = [self.server, resource.api]
        if resource.namespaced and namespace:
            parts += ["namespaces", quote(namespace, safe="")]
        parts.append(resource.plural)
        if name is not None:
            parts.append(quote(name, safe=""))
        return "/".join(parts)

    def _request(self, url: str, params: dict[str, str] | None = None) -> dict:
        try:
            response = self.session.get(url, params=params, timeout=self.timeout)
        except requests.RequestException as exc:
            raise ApiError(str(exc)) from exc
        if response.status_code >= 400:
            try:
                message = response.json().get("message") or response.text
            except ValueError:
                message = response.text
            if response.status_code == 404:
                raise NotFoundError(message)
            raise ApiError(message, response.status_code)
        return response.json()

    def list(
        self,
        kind: str,
        namespace: str = "",
        field_selector: str = "",
        label_selector: str = "",
    ) -> list[dict]:
        """Return objects of ``kind``; an empty namespace means all of them."""
        params = {}
        if field_selector:
            params["fieldSelector"] = field_selector
        if label_selector:
            params["labelSelector"] = label_selector
        data = self._request(self._url(kind, namespace), params or None)
        items = data.get("items") or []
        for item in items:
            item.setdefault("kind", kind)
        return items

    def get(self, kind: str, namespace: str, name: str) -> dict:
        """Return one object or raise :class:`NotFoundError`."""
        obj = self._request(self._url(kind, namespace, name))
        obj.setdefault("kind", kind)
        return obj


def _write_temp(data_b64: str, suffix: str) -> str:
    handle = tempfile.NamedTemporaryFile(delete=False, suffix=suffix)
    with handle:
        handle.write(base64.b64decode(data_b64))
    return handle.name


def _named(entries: list[dict] | None, name: str, section: str) -> dict:
    for entry in entries or []:
        if entry.get("name") == name:
            return entry.get(section) or {}
    raise ValueError(f"{section} {name!r} not found in kubeconfig")


def load_kubeconfig(path: str | os.PathLike | None = None, context: str | None = None) -> dict:
    """Read a kubeconfig file and return connection settings for one context."""
    if not path:
        env = os.environ.get("KUBECONFIG", "")
        first = next((p for p in env.split(os.pathsep) if p), "")
        path = first or Path.home() / ".kube" / "config"
    path = Path(path)
    with path.open(encoding="utf-8") as handle:
        config = yaml.safe_load(handle) or {}
    base = path.parent

    def resolve(file_name: str) -> str:
        return str(base / file_name)

    context_name = context or config.get("current-context")
    if not context_name:
        raise ValueError("no context selected in kubeconfig")
    ctx = _named(config.get("contexts"), context_name, "context")
    cluster = _named(config.get("clusters"), ctx.get("cluster", ""), "cluster")
    user = _named(config.get("users"), ctx.get("user", ""), "user") if ctx.get("user") else {}

    server = cluster.get("server")
    if not server:
        raise ValueError("cluster has no server")

    verify: bool | str = True
    if cluster.get("insecure-skip-tls-verify"):
        verify = False
    elif cluster.get("certificate-authority-data"):
        verify = _write_temp(cluster["certificate-authority-data"], ".crt")
    elif cluster.get("certificate-authority"):
        verify = resolve(cluster["certificate-authority"])

    token = user.get("token")
    token_file = user.get("tokenFile")
    if not token and token_file:
        token = Path(resolve(token_file)).read_text(encoding="utf-8").strip()

    cert = None
    cert_data = user.get("client-certificate-data")
    key_data = user.get("client-key-data")
    cert_path = user.get("client-certificate")
    key_path = user.get("client-key")
    if cert_data and key_data:
        cert = (_write_temp(cert_data, ".crt"), _write_temp(key_data, ".key"))
    elif cert_path and key_path:
        cert = (resolve(cert_path), resolve(key_path))

    username = user.get("username")
    password_value = user.get("password")
    basic = (username, password_value) if username and password_value else None

    return {
        "server": server,
        "token": token,
        "verify": verify,
        "cert": cert,
        "auth": basic,
        "namespace": ctx.get("namespace", ""),
    }


def _in_cluster_settings() -> dict | None:
    host = os.environ.get("KUBERNETES_SERVICE_HOST")
    port = os.environ.get("KUBERNETES_SERVICE_PORT")
    if not host or not port:
        return None
    try:
        token = (_SERVICE_ACCOUNT_DIR / "token").read_text(encoding="utf-8").strip()
    except OSError:
        return None
    if ":" in host:
        host = f"[{host}]"
    ca_file = _SERVICE_ACCOUNT_DIR / "ca.crt"
    return {
        "server": f"https://{host}:{port}",
        "token": token,
        "verify": str(ca_file) if ca_file.exists() else True,
        "cert": None,
        "auth": None,
    }


def new_client(kubecontext: str = "", kubeconfig: str = "") -> KubeClient:
    """Build a client from the in-cluster service account or a kubeconfig."""
    settings = _in_cluster_settings()
    if settings is None:
        settings = load_kubeconfig(kubeconfig or None, kubecontext or None)
        settings.pop("namespace", None)
    return KubeClient(**settings)