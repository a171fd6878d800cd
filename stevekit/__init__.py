"""Schema attributes, RBAC access evaluation, an in-memory cluster cache, metrics and debug settings for a Kubernetes resource API server."""

__version__ = "0.1.0"