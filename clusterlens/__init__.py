"""Find misconfigured and failing resources in a Kubernetes cluster."""

__version__ = "0.1.0"