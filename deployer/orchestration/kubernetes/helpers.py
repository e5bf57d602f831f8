"""
Kubernetes Deployment Manifest Builders

Pure functions that turn a DeploymentIntent into a complete apps/v1
Deployment. Nothing here talks to the cluster.

Fixed policy baked into every manifest:
- Rolling update with max-unavailable 0 and max-surge 1. A rollout never drops
  below the desired replica count, so the cluster needs room for one extra
  pod while it runs.
- Revision history limit of 10 for rollback.
- Labels always carry ``app`` and ``version``; the selector matches on ``app``
  only because selectors are immutable and the version changes every rollout.
"""

from kubernetes import client
from typing import Any, Dict, List, Mapping, Sequence, Tuple, Union
import json
import logging

from ...schemas import DeploymentIntent, ImageReference, PortSpec

logger = logging.getLogger(__name__)

API_VERSION = "apps/v1"
KIND = "Deployment"
MAX_UNAVAILABLE = 0
MAX_SURGE = 1
REVISION_HISTORY_LIMIT = 10

PULL_ALWAYS = "Always"
PULL_IF_NOT_PRESENT = "IfNotPresent"


# =============================================================================
# Labels and Image
# =============================================================================

def get_standard_labels(intent: DeploymentIntent) -> Dict[str, str]:
    """
    Get labels for the deployment and its pod template.

    Caller labels are kept; ``app`` and ``version`` always win.

    Args:
        intent: Deployment intent

    Returns:
        Dict of labels
    """
    labels = dict(intent.labels)
    labels["app"] = intent.name
    labels["version"] = intent.image_reference.version
    return labels


def get_selector_labels(intent: DeploymentIntent) -> Dict[str, str]:
    """Labels the deployment selects its pods by (must be a subset of pod labels)."""
    return {"app": intent.name}


def resolve_image_pull_policy(image: ImageReference) -> str:
    """
    Choose the pull policy from how the image is addressed.

    A tag can move, so tag-addressed images are always pulled. A digest is
    immutable, so a cached copy is reused.
    """
    if image.is_digest_addressed:
        return PULL_IF_NOT_PRESENT
    return PULL_ALWAYS


# =============================================================================
# Ports, Environment, Volumes
# =============================================================================

def create_container_ports(ports: Sequence[PortSpec]) -> List[client.V1ContainerPort]:
    """
    Translate ports into container port entries.

    Unnamed ports get ``PortSpec.effective_name`` (``http-<port>``, with a
    protocol suffix for UDP and SCTP).
    """
    return [
        client.V1ContainerPort(
            name=port.effective_name,
            container_port=port.container_port,
            protocol=port.protocol
        )
        for port in ports
    ]


def create_env_vars(env: Mapping[str, str]) -> List[client.V1EnvVar]:
    """Translate an env mapping into env entries, in the mapping's iteration order."""
    return [client.V1EnvVar(name=key, value=value) for key, value in env.items()]


def create_host_path_volumes(
    host_path_volumes: Mapping[str, str]
) -> Tuple[List[client.V1Volume], List[client.V1VolumeMount]]:
    """
    Create host-path volumes and the matching mounts.

    Volumes are named ``volume1``, ``volume2``, ... in iteration order; each
    mount references the volume created alongside it.

    Args:
        host_path_volumes: Host path -> mount path

    Returns:
        (volumes for the pod spec, mounts for the container)
    """
    volumes = []
    volume_mounts = []
    for index, (host_path, mount_path) in enumerate(host_path_volumes.items(), start=1):
        volume_name = f"volume{index}"
        volumes.append(
            client.V1Volume(
                name=volume_name,
                host_path=client.V1HostPathVolumeSource(path=host_path)
            )
        )
        volume_mounts.append(
            client.V1VolumeMount(
                name=volume_name,
                mount_path=mount_path
            )
        )
    return volumes, volume_mounts


# =============================================================================
# Probes and Strategy
# =============================================================================

def create_readiness_probe(path: str, port: Union[int, str]) -> client.V1Probe:
    """HTTP readiness probe against the application's health endpoint."""
    return client.V1Probe(
        http_get=client.V1HTTPGetAction(path=path, port=port),
        initial_delay_seconds=5,
        period_seconds=10,
        timeout_seconds=3,
        failure_threshold=3
    )


def create_rolling_update_strategy() -> client.V1DeploymentStrategy:
    """Zero-downtime rolling update: never unavailable, one pod of surge."""
    return client.V1DeploymentStrategy(
        type="RollingUpdate",
        rolling_update=client.V1RollingUpdateDeployment(
            max_unavailable=MAX_UNAVAILABLE,
            max_surge=MAX_SURGE
        )
    )


# =============================================================================
# Deployment
# =============================================================================

def build_deployment_manifest(intent: Union[DeploymentIntent, Mapping[str, Any]]) -> client.V1Deployment:
    """
    Build the complete Deployment manifest for an intent.

    Args:
        intent: DeploymentIntent, or a raw mapping that is validated first

    Returns:
        V1Deployment manifest

    Raises:
        MalformedIntentError: If a raw mapping fails validation
    """
    intent = DeploymentIntent.parse(intent)
    image = intent.image_reference

    labels = get_standard_labels(intent)
    ports = create_container_ports(intent.ports)
    volumes, volume_mounts = create_host_path_volumes(intent.host_path_volumes)

    container = client.V1Container(
        name=intent.name,
        image=intent.image,
        image_pull_policy=resolve_image_pull_policy(image),
        ports=ports or None,
        env=create_env_vars(intent.env) or None,
        volume_mounts=volume_mounts or None
    )

    if intent.health_endpoint:
        # HTTP readiness checks need a TCP port; the intent guarantees one
        tcp_port = next(p for p in ports if p.protocol == "TCP")
        container.readiness_probe = create_readiness_probe(
            path=intent.health_endpoint,
            port=tcp_port.name
        )

    pod_spec = client.V1PodSpec(
        containers=[container],
        volumes=volumes or None
    )

    if intent.node_selector:
        pod_spec.node_selector = dict(intent.node_selector)

    if intent.force:
        logger.debug(f"[K8S] force flag set for {intent.namespace}/{intent.name}; no effect on the manifest")

    deployment = client.V1Deployment(
        api_version=API_VERSION,
        kind=KIND,
        metadata=client.V1ObjectMeta(
            name=intent.name,
            namespace=intent.namespace,
            labels=labels
        ),
        spec=client.V1DeploymentSpec(
            replicas=intent.replicas,
            selector=client.V1LabelSelector(
                match_labels=get_selector_labels(intent)
            ),
            strategy=create_rolling_update_strategy(),
            revision_history_limit=REVISION_HISTORY_LIMIT,
            template=client.V1PodTemplateSpec(
                metadata=client.V1ObjectMeta(
                    name=intent.name,
                    labels=dict(labels)
                ),
                spec=pod_spec
            )
        )
    )

    if logger.isEnabledFor(logging.DEBUG):
        logger.debug(f"[K8S] Built deployment manifest: {json.dumps(serialize_manifest(deployment))}")

    return deployment


def serialize_manifest(deployment: client.V1Deployment) -> Dict[str, Any]:
    """Wire-shaped (camelCase, no null fields) dict for a manifest or live object."""
    return client.ApiClient().sanitize_for_serialization(deployment)
