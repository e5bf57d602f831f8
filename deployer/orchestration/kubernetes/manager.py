"""
Kubernetes Deployment Manager

Builds Deployment manifests from intent and reconciles them against the
cluster through an injected workload client.

Reconciliation is update-then-create: an update that fails because the
Deployment does not exist falls back to exactly one create. Every other
update failure is raised as-is, since turning it into a create against a
resource that exists gives undefined results on the server side.
"""

import logging
from typing import Any, Mapping, Optional, Union

from kubernetes import client

from ...config import Settings, get_settings
from ...errors import NotFoundError
from ...retry_config import retry_from_settings
from ...schemas import DeploymentIntent
from ..base import BaseWorkloadClient
from .helpers import build_deployment_manifest

logger = logging.getLogger(__name__)


class DeploymentManager:
    """
    Deploys, updates and deletes application workloads.

    The workload client is passed in rather than looked up globally, so
    tests and embedding applications choose what the manager talks to.
    """

    def __init__(
        self,
        workload_client: BaseWorkloadClient,
        settings: Optional[Settings] = None
    ):
        self.workload_client = workload_client
        self.settings = settings or get_settings()
        self._retry = retry_from_settings(self.settings)

        logger.info("[K8S:MANAGER] Deployment manager initialized")

    # =========================================================================
    # BUILD
    # =========================================================================

    def build(self, intent: Union[DeploymentIntent, Mapping[str, Any]]) -> client.V1Deployment:
        """
        Build the Deployment manifest for an intent (no I/O).

        Raises:
            MalformedIntentError: If the intent cannot be validated
        """
        return build_deployment_manifest(intent)

    # =========================================================================
    # RECONCILE
    # =========================================================================

    async def apply(
        self,
        deployment: client.V1Deployment,
        timeout: Optional[float] = None
    ) -> client.V1Deployment:
        """
        Update the Deployment, or create it if it does not exist yet.

        Transient failures of each individual call are retried up to
        ``k8s_retry_max_attempts`` times; nothing else is.

        Args:
            deployment: Manifest from ``build``
            timeout: Per-request timeout in seconds

        Returns:
            The live Deployment acknowledged by the orchestrator

        Raises:
            ConflictError: Concurrent modification (update is not retried)
            InvalidDescriptorError: Manifest rejected by the API server
            TransientError: Still unavailable after the bounded retry
            FatalError: Any other failure
        """
        name = deployment.metadata.name
        namespace = deployment.metadata.namespace

        logger.info(f"[K8S:MANAGER] Update or create deployment {namespace}/{name}...")

        try:
            result = await self._retry(self.workload_client.update)(deployment, timeout=timeout)
            logger.info(f"[K8S:MANAGER] Deployment {namespace}/{name} updated")
            return result
        except NotFoundError:
            logger.info(f"[K8S:MANAGER] Deployment {namespace}/{name} not found, creating...")

        result = await self._retry(self.workload_client.create)(deployment, timeout=timeout)
        logger.info(f"[K8S:MANAGER] Deployment {namespace}/{name} created")
        return result

    async def deploy(
        self,
        intent: Union[DeploymentIntent, Mapping[str, Any]],
        timeout: Optional[float] = None
    ) -> client.V1Deployment:
        """
        Build and apply in one step.

        Malformed intent is rejected before anything is sent to the cluster.
        """
        deployment = self.build(intent)
        return await self.apply(deployment, timeout=timeout)

    # =========================================================================
    # DELETE
    # =========================================================================

    async def delete(
        self,
        name: str,
        namespace: str,
        options: Optional[client.V1DeleteOptions] = None,
        timeout: Optional[float] = None
    ) -> bool:
        """
        Delete a Deployment. No retry here; that is the caller's call.

        Returns:
            True if the orchestrator accepted the delete, False if the
            Deployment was already gone. Either way it is not running.
        """
        try:
            await self.workload_client.delete(name, namespace, options=options, timeout=timeout)
        except NotFoundError:
            logger.info(f"[K8S:MANAGER] Deployment {namespace}/{name} already gone")
            return False
        return True


def create_deployment_manager(
    settings: Optional[Settings] = None,
    api_client: Optional[client.ApiClient] = None
) -> DeploymentManager:
    """
    Wire settings, an ApiClient and a workload client into a manager.

    A fresh ApiClient is loaded from in-cluster or kubeconfig credentials
    when none is given.
    """
    from .client import KubernetesWorkloadClient, load_kubernetes_api_client

    settings = settings or get_settings()
    if api_client is None:
        api_client = load_kubernetes_api_client(settings)

    return DeploymentManager(
        workload_client=KubernetesWorkloadClient(api_client=api_client, settings=settings),
        settings=settings
    )
