"""
Test configuration and fixtures for pytest.

Provides settings with retry backoff disabled, a fake workload client that
records calls, and sample intents.
"""

import os
import sys
from pathlib import Path
import pytest

# Add the project root to sys.path
project_dir = Path(__file__).parent.parent
sys.path.insert(0, str(project_dir))

from deployer.config import Settings
from deployer.errors import NotFoundError
from deployer.orchestration.base import BaseWorkloadClient
from deployer.orchestration.kubernetes.helpers import build_deployment_manifest


def pytest_configure(config):
    """
    Pytest hook called before test collection.
    Sets up test environment variables and registers custom markers.
    """
    os.environ.setdefault("LOG_LEVEL", "DEBUG")

    from deployer.config import get_settings
    get_settings.cache_clear()

    config.addinivalue_line("markers", "unit: mark test as a unit test")
    config.addinivalue_line("markers", "kubernetes: mark test as exercising Kubernetes objects")


@pytest.fixture
def settings():
    """Settings with no backoff so retry tests run instantly."""
    return Settings(
        k8s_retry_max_attempts=3,
        k8s_retry_min_wait=0,
        k8s_retry_max_wait=0,
        k8s_request_timeout_seconds=15.0
    )


class FakeWorkloadClient(BaseWorkloadClient):
    """
    In-memory stand-in for the cluster.

    ``store`` maps (namespace, name) to the live Deployment. Errors queued in
    ``update_errors``/``create_errors``/``delete_errors`` are raised, one per
    call, before the store is consulted.
    """

    def __init__(self):
        self.store = {}
        self.calls = []
        self.update_errors = []
        self.create_errors = []
        self.delete_errors = []

    @staticmethod
    def _key(deployment):
        return (deployment.metadata.namespace, deployment.metadata.name)

    async def update(self, deployment, timeout=None):
        self.calls.append(("update", self._key(deployment), timeout))
        if self.update_errors:
            raise self.update_errors.pop(0)
        if self._key(deployment) not in self.store:
            raise NotFoundError("404 Not Found", *reversed(self._key(deployment)))
        self.store[self._key(deployment)] = deployment
        return deployment

    async def create(self, deployment, timeout=None):
        self.calls.append(("create", self._key(deployment), timeout))
        if self.create_errors:
            raise self.create_errors.pop(0)
        self.store[self._key(deployment)] = deployment
        return deployment

    async def delete(self, name, namespace, options=None, timeout=None):
        self.calls.append(("delete", (namespace, name), timeout))
        if self.delete_errors:
            raise self.delete_errors.pop(0)
        if (namespace, name) not in self.store:
            raise NotFoundError("404 Not Found", name, namespace)
        del self.store[(namespace, name)]

    def verbs(self):
        return [call[0] for call in self.calls]


@pytest.fixture
def fake_workload_client():
    return FakeWorkloadClient()


@pytest.fixture
def hello_world_intent():
    """The canonical example intent as raw caller input."""
    return {
        "name": "hello-world",
        "namespace": "demo",
        "image": "registry/demo/hello-world:v1",
        "ports": [8080],
        "env": {"ENV": "prod"},
        "replicas": 2,
    }


@pytest.fixture
def live_deployment(hello_world_intent):
    """A Deployment as the API server would echo it back."""
    deployment = build_deployment_manifest(hello_world_intent)
    deployment.metadata.resource_version = "42"
    return deployment
