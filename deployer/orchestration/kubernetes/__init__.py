"""
Kubernetes Deployment Module

- helpers: build apps/v1 Deployment manifests from DeploymentIntent (pure)
- KubernetesWorkloadClient: update/create/delete verbs over AppsV1Api
- DeploymentManager: update-then-create reconciliation and deletion
"""

from .client import KubernetesWorkloadClient, load_kubernetes_api_client
from .helpers import (
    build_deployment_manifest,
    create_container_ports,
    create_env_vars,
    create_host_path_volumes,
    create_readiness_probe,
    create_rolling_update_strategy,
    get_selector_labels,
    get_standard_labels,
    resolve_image_pull_policy,
    serialize_manifest,
)
from .manager import DeploymentManager, create_deployment_manager

__all__ = [
    # Client
    "KubernetesWorkloadClient",
    "load_kubernetes_api_client",
    # Manifest Helpers
    "build_deployment_manifest",
    "create_container_ports",
    "create_env_vars",
    "create_host_path_volumes",
    "create_readiness_probe",
    "create_rolling_update_strategy",
    "get_selector_labels",
    "get_standard_labels",
    "resolve_image_pull_policy",
    "serialize_manifest",
    # Manager
    "DeploymentManager",
    "create_deployment_manager",
]
