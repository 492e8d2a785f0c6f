# clusterlens

clusterlens inspects the objects in a Kubernetes cluster and reports the ones
that look broken: pods stuck in `CrashLoopBackOff`, deployments short of
replicas, services without endpoints, ingresses that point at missing
services or secrets, cron jobs with unparseable schedules, nodes under
pressure, and more. Each finding is a `clusterlens.common.Result` naming the
kind, the `namespace/name` of the object (just the name for nodes), the
failures found on it and, for most kinds, the owning workload in
`parent_object`. `Result.to_dict()` gives a JSON-ready form.

It is a library: you call the analyzers from your own Python code.

## What gets checked

Core analyzers (`clusterlens.analyzers.registry.CORE_ANALYZERS`):

| Filter name             | Analyzer              | Looks for                                                         |
|-------------------------|-----------------------|-------------------------------------------------------------------|
| Pod                     | `PodAnalyzer`         | unschedulable, crash-looping, image-pull failures, failed probes  |
| Deployment              | `DeploymentAnalyzer`  | desired replicas differing from current replicas                  |
| ReplicaSet              | `ReplicaSetAnalyzer`  | empty sets with `FailedCreate` conditions                         |
| PersistentVolumeClaim   | `PvcAnalyzer`         | pending claims whose latest event is `ProvisioningFailed`         |
| Service                 | `ServiceAnalyzer`     | no endpoints, or endpoints that are not ready                     |
| Ingress                 | `IngressAnalyzer`     | missing ingress class, backend services or TLS secrets            |
| StatefulSet             | `StatefulSetAnalyzer` | missing governing service or storage class                        |
| CronJob                 | `CronJobAnalyzer`     | suspended jobs, invalid schedules, negative starting deadlines    |
| Node                    | `NodeAnalyzer`        | not-ready nodes and any other condition that is not `False`       |

Additional analyzers (`ADDITIONAL_ANALYZERS`):

| Filter name             | Analyzer                | Looks for                                                   |
|-------------------------|-------------------------|-------------------------------------------------------------|
| HorizontalPodAutoScaler | `HpaAnalyzer`           | scale targets that are missing, unsupported or unresourced  |
| PodDisruptionBudget     | `PdbAnalyzer`           | budgets whose latest event reports `NoPods`                 |
| NetworkPolicy           | `NetworkPolicyAnalyzer` | policies selecting every pod, or no pod at all              |

Each analyzer lives in its own module under `clusterlens.analyzers`
(`pod`, `deployment`, `replicaset`, `pvc`, `service`, `ingress`,
`statefulset`, `cronjob`, `node`, `hpa`, `pdb`, `netpol`).

`clusterlens.analyzers.vulnerability.TrivyAnalyzer` reports every `CRITICAL`
entry in the cluster's `VulnerabilityReport` objects. It is not in either map
above; run it directly, or register it through an integration (see below).

The cron schedule check is available on its own as
`clusterlens.analyzers.cronjob.check_cron_schedule_is_valid`, which returns
`True` or raises `CronScheduleError`.

## Installation

Install the package with pip into the environment you use; it needs Python
3.10 or later and depends on `requests` and `pyyaml`. The `test` extra adds
`pytest`.

## Usage

`clusterlens.kubernetes.new_client(kubecontext, kubeconfig)` uses the
in-cluster service account when it runs inside a pod, and otherwise reads the
kubeconfig (the given path, else the first entry of `KUBECONFIG`, else
`~/.kube/config`) for the chosen context or the current one. Tokens, token
files, client certificates and basic credentials are supported. Hand the
client to an analyzer through an `Analyzer`:

```python
from clusterlens.common import Analyzer
from clusterlens.kubernetes import new_client
from clusterlens.analyzers.pod import PodAnalyzer

client = new_client("my-context", "")
analysis = Analyzer(client=client, namespace="default")

for result in PodAnalyzer().analyze(analysis):
    print(result.kind, result.name, result.parent_object)
    for failure in result.error:
        print("  -", failure.text)
```

An empty `namespace` means all namespaces. API failures raise
`clusterlens.kubernetes.ApiError` (`NotFoundError` for a 404).

To run every analyzer, take the maps from
`clusterlens.analyzers.registry.get_analyzer_map`, which returns the core
analyzers and the merged set (core, additional and those of active
integrations). `list_filters` returns the names in each group.

### Trying it without a cluster

`InMemoryClient` holds Kubernetes objects as plain dictionaries and answers
the same `list` and `get` calls as the live client, including field and label
selectors:

```python
from clusterlens.common import Analyzer
from clusterlens.kubernetes import InMemoryClient
from clusterlens.analyzers.deployment import DeploymentAnalyzer

client = InMemoryClient()
client.add({
    "kind": "Deployment",
    "metadata": {"name": "web", "namespace": "default"},
    "spec": {"replicas": 3},
    "status": {"replicas": 2},
})

results = DeploymentAnalyzer().analyze(Analyzer(client=client, namespace="default"))
print([r.name for r in results])   # ['default/web']
```

### Masking sensitive names

Failures carry a list of `Sensitive` entries pairing a real name with a
masked stand-in from `clusterlens.util.mask_string` (random characters,
base64-encoded), so findings can be passed on without revealing namespaces
or object names.

### Integrations

`clusterlens.integration.IntegrationRegistry` holds named
`IntegrationBackend` objects that you supply. `activate` adds a backend's
analyzer name to the `active_filters` setting of a `ConfigStore`, deploys the
backend and saves the configuration; `deactivate` reverses it. Errors raise
`IntegrationError`. Active backends add their analyzers in
`get_analyzer_map`.

### Configuration and caching

`clusterlens.config.ConfigStore` keeps settings in a YAML file, by default
`$XDG_CONFIG_HOME/clusterlens/config.yaml`, with case-insensitive dotted keys.

`clusterlens.cache.new_cache` returns a `FileBasedCache` that keeps one file
per key, by default under `$XDG_CACHE_HOME/clusterlens`; keys can be made
with `clusterlens.util.get_cache_key`. `add_remote_cache` and
`remove_remote_cache` record or clear a bucket name and region in the
configuration, and `remote_cache_enabled` tells whether both are set.

### Metrics

Analyzers record how many failures each object has in the gauge
`clusterlens.metrics.ANALYZER_ERRORS_METRIC` (`analyzer_errors`, labelled by
analyzer, object name and namespace). `clusterlens.server.MetricsServer`
serves it in the Prometheus text format on `/metrics`, with `/healthz`
answering 200; call `serve()` in a thread and `shutdown()` to stop.
The same module has `add_config` and `remove_config` for the remote cache
settings, `get_bool_param`, `log_request` and a `Health` record.

## What it does not do

- There is no command-line program; everything is called from Python.
- There is no API server for running analyses remotely; the only server is
  the metrics and health endpoint.
- Results are not explained or summarised; they are returned as found.
- A remote cache is only recorded in the configuration; nothing is stored in
  or read from a bucket. Caching is local files only.
- No integration backend is included, so nothing is installed into the
  cluster unless you provide a backend that does so.