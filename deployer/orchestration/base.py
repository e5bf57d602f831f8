"""
Abstract Workload Client

Defines the narrow capability the reconciler needs from a cluster: update,
create and delete of a namespaced Deployment. Any implementation (the real
Kubernetes adapter, or a fake in tests) must raise the typed errors from
``deployer.errors`` instead of transport-specific exceptions.
"""

from abc import ABC, abstractmethod
from typing import Optional

from kubernetes import client


class BaseWorkloadClient(ABC):
    """
    Capability interface over a namespaced workload collection.

    Implementations must be safe to share between concurrent callers
    working on different workload identities.
    """

    @abstractmethod
    async def update(
        self,
        deployment: client.V1Deployment,
        timeout: Optional[float] = None
    ) -> client.V1Deployment:
        """
        Replace the existing Deployment named by ``deployment.metadata``.

        Returns:
            The live Deployment acknowledged by the orchestrator

        Raises:
            NotFoundError: If the Deployment does not exist
            ConflictError, TransientError, InvalidDescriptorError, FatalError
        """
        pass

    @abstractmethod
    async def create(
        self,
        deployment: client.V1Deployment,
        timeout: Optional[float] = None
    ) -> client.V1Deployment:
        """
        Create the Deployment named by ``deployment.metadata``.

        Returns:
            The live Deployment acknowledged by the orchestrator

        Raises:
            ConflictError: If a Deployment with that name already exists
            TransientError, InvalidDescriptorError, FatalError
        """
        pass

    @abstractmethod
    async def delete(
        self,
        name: str,
        namespace: str,
        options: Optional[client.V1DeleteOptions] = None,
        timeout: Optional[float] = None
    ) -> None:
        """
        Delete a Deployment.

        Raises:
            NotFoundError: If the Deployment does not exist
            TransientError, FatalError
        """
        pass
