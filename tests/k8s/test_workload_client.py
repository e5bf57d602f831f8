"""
Unit tests for KubernetesWorkloadClient.

Tests that each verb calls the right AppsV1Api method, forwards the request
timeout, and translates ApiException / transport failures into typed errors.
"""

import pytest
from unittest.mock import Mock, patch

pytest.importorskip("kubernetes")

from kubernetes import client, config
from kubernetes.client.rest import ApiException
from urllib3.exceptions import MaxRetryError

from deployer.errors import (
    ConflictError,
    FatalError,
    InvalidDescriptorError,
    NotFoundError,
    TransientError,
)
from deployer.orchestration.kubernetes.client import (
    KubernetesWorkloadClient,
    load_kubernetes_api_client,
)
from deployer.orchestration.kubernetes.helpers import build_deployment_manifest


@pytest.fixture
def mock_apps_v1():
    """Mock AppsV1Api (sync, like the real client)."""
    return Mock(spec=client.AppsV1Api)


@pytest.fixture
def workload_client(mock_apps_v1, settings):
    return KubernetesWorkloadClient(settings=settings, apps_v1=mock_apps_v1)


@pytest.fixture
def deployment(hello_world_intent):
    return build_deployment_manifest(hello_world_intent)


@pytest.mark.unit
@pytest.mark.kubernetes
class TestVerbs:
    """Test verb to API method mapping."""

    @pytest.mark.asyncio
    async def test_update_replaces_deployment(self, workload_client, mock_apps_v1, deployment, live_deployment):
        mock_apps_v1.replace_namespaced_deployment.return_value = live_deployment

        result = await workload_client.update(deployment)

        assert result is live_deployment
        mock_apps_v1.replace_namespaced_deployment.assert_called_once_with(
            name="hello-world",
            namespace="demo",
            body=deployment,
            _request_timeout=15.0
        )

    @pytest.mark.asyncio
    async def test_create_deployment(self, workload_client, mock_apps_v1, deployment, live_deployment):
        mock_apps_v1.create_namespaced_deployment.return_value = live_deployment

        result = await workload_client.create(deployment, timeout=2.5)

        assert result is live_deployment
        mock_apps_v1.create_namespaced_deployment.assert_called_once_with(
            namespace="demo",
            body=deployment,
            _request_timeout=2.5
        )

    @pytest.mark.asyncio
    async def test_delete_forwards_options(self, workload_client, mock_apps_v1):
        options = client.V1DeleteOptions(propagation_policy="Foreground")

        await workload_client.delete("hello-world", "demo", options=options)

        mock_apps_v1.delete_namespaced_deployment.assert_called_once_with(
            name="hello-world",
            namespace="demo",
            body=options,
            _request_timeout=15.0
        )

    @pytest.mark.asyncio
    async def test_delete_without_options_sends_no_body(self, workload_client, mock_apps_v1):
        await workload_client.delete("hello-world", "demo")

        kwargs = mock_apps_v1.delete_namespaced_deployment.call_args.kwargs
        assert "body" not in kwargs


@pytest.mark.unit
@pytest.mark.kubernetes
class TestErrorTranslation:
    """Test that client failures surface as typed errors."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status,error_cls", [
        (404, NotFoundError),
        (409, ConflictError),
        (422, InvalidDescriptorError),
        (400, InvalidDescriptorError),
        (503, TransientError),
        (429, TransientError),
        (403, FatalError),
    ])
    async def test_update_status_mapping(self, workload_client, mock_apps_v1, deployment, status, error_cls):
        mock_apps_v1.replace_namespaced_deployment.side_effect = ApiException(status=status, reason="Boom")

        with pytest.raises(error_cls) as exc_info:
            await workload_client.update(deployment)

        error = exc_info.value
        assert error.status == status
        assert error.name == "hello-world"
        assert error.namespace == "demo"
        assert isinstance(error.__cause__, ApiException)

    @pytest.mark.asyncio
    async def test_transport_failure_is_transient(self, workload_client, mock_apps_v1, deployment):
        mock_apps_v1.create_namespaced_deployment.side_effect = MaxRetryError(None, "/apis/apps/v1")

        with pytest.raises(TransientError, match="Transport failure"):
            await workload_client.create(deployment)

    @pytest.mark.asyncio
    async def test_delete_missing_is_not_found(self, workload_client, mock_apps_v1):
        mock_apps_v1.delete_namespaced_deployment.side_effect = ApiException(status=404, reason="Not Found")

        with pytest.raises(NotFoundError):
            await workload_client.delete("ghost", "demo")

    @pytest.mark.asyncio
    async def test_programming_errors_propagate(self, workload_client, mock_apps_v1, deployment):
        mock_apps_v1.replace_namespaced_deployment.side_effect = AttributeError("bug")

        with pytest.raises(AttributeError):
            await workload_client.update(deployment)


@pytest.mark.unit
@pytest.mark.kubernetes
class TestConfigurationLoading:
    """Test in-cluster / kubeconfig fallback."""

    def test_prefers_in_cluster(self, settings):
        with patch("deployer.orchestration.kubernetes.client.config") as mock_config:
            mock_config.ConfigException = config.ConfigException
            api_client = load_kubernetes_api_client(settings)

        assert isinstance(api_client, client.ApiClient)
        mock_config.load_incluster_config.assert_called_once()
        mock_config.load_kube_config.assert_not_called()

    def test_falls_back_to_kubeconfig_context(self):
        from deployer.config import Settings

        settings = Settings(k8s_kubeconfig_context="staging")
        with patch("deployer.orchestration.kubernetes.client.config") as mock_config:
            mock_config.ConfigException = config.ConfigException
            mock_config.load_incluster_config.side_effect = config.ConfigException("not in cluster")
            load_kubernetes_api_client(settings)

        assert mock_config.load_kube_config.call_args.kwargs["context"] == "staging"

    def test_no_configuration_raises(self, settings):
        with patch("deployer.orchestration.kubernetes.client.config") as mock_config:
            mock_config.ConfigException = config.ConfigException
            mock_config.load_incluster_config.side_effect = config.ConfigException("no")
            mock_config.load_kube_config.side_effect = config.ConfigException("no")

            with pytest.raises(RuntimeError, match="Cannot load Kubernetes configuration"):
                load_kubernetes_api_client(settings)
