"""
Workload Orchestration

BaseWorkloadClient is the capability the reconciler depends on; the
kubernetes subpackage provides the real implementation.
"""

from .base import BaseWorkloadClient
from .kubernetes import (
    DeploymentManager,
    KubernetesWorkloadClient,
    build_deployment_manifest,
    create_deployment_manager,
)

__all__ = [
    "BaseWorkloadClient",
    "DeploymentManager",
    "KubernetesWorkloadClient",
    "build_deployment_manifest",
    "create_deployment_manager",
]
