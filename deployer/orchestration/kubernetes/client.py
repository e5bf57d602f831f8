"""
Kubernetes Workload Client

Adapter from the AppsV1 Deployment API to BaseWorkloadClient. Blocking
client calls run in a worker thread so callers can cancel or bound them,
and every call forwards a request timeout to the API server.

Errors raised by the kubernetes client are translated into the typed errors
in ``deployer.errors``; nothing transport-specific leaks out.
"""

from kubernetes import client, config
import asyncio
import logging
from typing import Any, Callable, Optional

from ...config import Settings, get_settings
from ...errors import CLIENT_EXCEPTIONS, classify_exception
from ..base import BaseWorkloadClient

logger = logging.getLogger(__name__)


def load_kubernetes_api_client(settings: Optional[Settings] = None) -> client.ApiClient:
    """
    Create an ApiClient with in-cluster or kubeconfig credentials.

    The returned client is owned by the caller, who may share it between
    any number of workload clients.

    Raises:
        RuntimeError: If neither configuration source is available
    """
    settings = settings or get_settings()
    configuration = client.Configuration()

    try:
        # Try in-cluster config first (for production)
        config.load_incluster_config(client_configuration=configuration)
        logger.info("Loaded in-cluster Kubernetes configuration")
    except config.ConfigException:
        try:
            # Fall back to kubeconfig (for development)
            config.load_kube_config(
                context=settings.k8s_kubeconfig_context or None,
                client_configuration=configuration
            )
            logger.info("Loaded kubeconfig for development")
        except config.ConfigException as e:
            logger.error(f"Failed to load Kubernetes config: {e}")
            raise RuntimeError("Cannot load Kubernetes configuration") from e

    return client.ApiClient(configuration)


class KubernetesWorkloadClient(BaseWorkloadClient):
    """
    Deployment verbs against the Kubernetes API.

    Holds no per-call state, so one instance can serve concurrent callers.
    """

    def __init__(
        self,
        api_client: Optional[client.ApiClient] = None,
        settings: Optional[Settings] = None,
        apps_v1: Optional[client.AppsV1Api] = None
    ):
        """
        Args:
            api_client: Shared ApiClient (created by the caller)
            settings: Settings for the default request timeout
            apps_v1: Pre-built AppsV1Api, mostly for tests
        """
        self.settings = settings or get_settings()
        self.apps_v1 = apps_v1 or client.AppsV1Api(api_client)

    def _request_timeout(self, timeout: Optional[float]) -> Optional[float]:
        if timeout is not None:
            return timeout
        return self.settings.k8s_request_timeout_seconds or None

    async def _call(
        self,
        func: Callable[..., Any],
        resource_name: str,
        resource_namespace: str,
        timeout: Optional[float],
        /,
        **kwargs
    ) -> Any:
        # kwargs go to the API method and usually carry name/namespace too
        try:
            return await asyncio.to_thread(
                func,
                _request_timeout=self._request_timeout(timeout),
                **kwargs
            )
        except CLIENT_EXCEPTIONS as e:
            raise classify_exception(e, resource_name, resource_namespace) from e

    # =========================================================================
    # DEPLOYMENT VERBS
    # =========================================================================

    async def update(
        self,
        deployment: client.V1Deployment,
        timeout: Optional[float] = None
    ) -> client.V1Deployment:
        """Replace an existing Deployment."""
        name = deployment.metadata.name
        namespace = deployment.metadata.namespace
        result = await self._call(
            self.apps_v1.replace_namespaced_deployment,
            name,
            namespace,
            timeout,
            name=name,
            namespace=namespace,
            body=deployment
        )
        logger.info(f"[K8S] ✅ Updated deployment: {namespace}/{name}")
        return result

    async def create(
        self,
        deployment: client.V1Deployment,
        timeout: Optional[float] = None
    ) -> client.V1Deployment:
        """Create a Deployment."""
        name = deployment.metadata.name
        namespace = deployment.metadata.namespace
        result = await self._call(
            self.apps_v1.create_namespaced_deployment,
            name,
            namespace,
            timeout,
            namespace=namespace,
            body=deployment
        )
        logger.info(f"[K8S] ✅ Created deployment: {namespace}/{name}")
        return result

    async def delete(
        self,
        name: str,
        namespace: str,
        options: Optional[client.V1DeleteOptions] = None,
        timeout: Optional[float] = None
    ) -> None:
        """Delete a Deployment; ``options`` is sent verbatim as the request body."""
        logger.debug(f"[K8S] Deleting deployment {namespace}/{name}")
        kwargs = {"name": name, "namespace": namespace}
        if options is not None:
            kwargs["body"] = options
        await self._call(
            self.apps_v1.delete_namespaced_deployment,
            name,
            namespace,
            timeout,
            **kwargs
        )
        logger.info(f"[K8S] Deleted deployment: {namespace}/{name}")
