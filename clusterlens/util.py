"""Small helpers shared by analyzers and commands."""

from __future__ import annotations

import base64
import hashlib
import os
import re
from collections.abc import Iterable, Mapping
from typing import Any

from clusterlens.kubernetes import ApiError

_ANONYMIZE_PATTERN = (
    "abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789"
    "!@#$%^&*()-_=+[]{}|;':\",./<>?"
)

_PARENT_KINDS = frozenset({"ReplicaSet", "Deployment", "StatefulSet", "DaemonSet", "Ingress"})


def slice_contains_string(items: Iterable[str], s: str) -> bool:
    """Return whether ``s`` is one of ``items``."""
    return s in items


def get_parent(client: Any, meta: Mapping[str, Any]) -> str:
    """Follow owner references up to the top-level owner and describe it.

    Returns ``Kind/name`` for a known owner, the object's own name when it
    has no known owner, and an empty string when an owner cannot be read.
    """
    owners = meta.get("ownerReferences")
    if owners is not None:
        for owner in owners:
            kind = owner.get("kind")
            if kind not in _PARENT_KINDS:
                continue
            try:
                obj = client.get(kind, meta.get("namespace", ""), owner.get("name", ""))
            except ApiError:
                return ""
            obj_meta = obj.get("metadata") or {}
            if obj_meta.get("ownerReferences") is not None:
                return get_parent(client, obj_meta)
            return f"{kind}/{obj_meta.get('name', '')}"
    return meta.get("name", "")


def remove_duplicates(items: Iterable[str]) -> tuple[list[str], list[str]]:
    """Split items into the unique values and the repeated occurrences."""
    seen: dict[str, None] = {}
    duplicates: list[str] = []
    for value in items:
        if value in seen:
            duplicates.append(value)
        else:
            seen[value] = None
    return list(seen), duplicates


def slice_diff(source: Iterable[str], dest: Iterable[str]) -> list[str]:
    """Return the items of ``source`` that are not in ``dest``."""
    excluded = set(dest)
    return [item for item in source if item not in excluded]


def mask_string(text: str) -> str:
    """Replace ``text`` with random characters and base64-encode the result."""
    key = os.urandom(len(text.encode("utf-8")))
    masked = "".join(_ANONYMIZE_PATTERN[b % len(_ANONYMIZE_PATTERN)] for b in key)
    return base64.b64encode(masked.encode("utf-8")).decode("ascii")


def replace_if_match(text: str, pattern: str, replacement: str) -> str:
    """Replace every match of ``pattern`` ending at a word boundary."""
    regex = re.compile(f"{pattern}(\\b)", re.ASCII)
    return regex.sub(lambda _match: replacement, text)


def get_cache_key(provider: str, language: str, s_enc: str) -> str:
    """Return the hex SHA-256 cache key for a provider, language and payload."""
    data = f"{provider}-{language}-{s_enc}"
    return hashlib.sha256(data.encode("utf-8")).hexdigest()


def format_label_selector(labels: Mapping[str, str]) -> str:
    """Format equality labels as a selector string, sorted by key."""
    if not labels:
        return "<none>"
    return ",".join(f"{key}={labels[key]}" for key in sorted(labels))


def get_pod_list_by_labels(client: Any, namespace: str, labels: Mapping[str, str]) -> list[dict]:
    """List the pods in ``namespace`` that carry all of ``labels``."""
    return client.list("Pod", namespace, label_selector=format_label_selector(labels))


def file_exists(path: str | os.PathLike) -> bool:
    """Return whether ``path`` exists; other stat errors propagate."""
    try:
        os.stat(path)
    except FileNotFoundError:
        return False
    return True


def ensure_dir_exists(directory: str | os.PathLike) -> None:
    """Create ``directory`` and its parents if they are missing."""
    os.makedirs(directory, mode=0o755, exist_ok=True)