from pydantic import BaseModel, Field, AliasChoices, ValidationError, field_validator, model_validator
from dataclasses import dataclass
from typing import Optional, List, Dict, Any
import re

from .errors import MalformedIntentError

# RFC 1123 label: what Kubernetes accepts for deployment names and namespaces
DNS_LABEL_RE = re.compile(r'^[a-z0-9]([-a-z0-9]*[a-z0-9])?$')
LABEL_VALUE_MAX = 63
VALID_PROTOCOLS = ("TCP", "UDP", "SCTP")


def _stringify(value: Any, field: str) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return ""
    if isinstance(value, (str, int, float)):
        return str(value)
    raise ValueError(f'{field} values must be scalars, got {type(value).__name__}')


def parse_node_selector(expression: str) -> Dict[str, str]:
    """
    Parse a node selector expression such as ``disktype=ssd`` or
    ``disktype=ssd,zone=a`` into a mapping.

    Raises:
        ValueError: If a segment has no ``=`` or an empty key
    """
    selector = {}
    for segment in expression.split(','):
        segment = segment.strip()
        if not segment:
            continue
        if '=' not in segment:
            raise ValueError(f'node selector "{segment}" must have the form key=value')
        key, value = segment.split('=', 1)
        key = key.strip()
        if not key:
            raise ValueError(f'node selector "{segment}" has an empty key')
        selector[key] = value.strip()
    return selector


@dataclass(frozen=True)
class ImageReference:
    """Parsed container image reference (``repo[:tag][@digest]``)."""
    repository: str
    tag: Optional[str] = None
    digest: Optional[str] = None

    @classmethod
    def parse(cls, image: str) -> "ImageReference":
        name, _, digest = image.partition('@')
        tag = None
        # A colon before the last slash belongs to a registry host:port
        last_slash = name.rfind('/')
        last_colon = name.rfind(':')
        if last_colon > last_slash:
            name, tag = name[:last_colon], name[last_colon + 1:]
        return cls(repository=name, tag=tag or None, digest=digest or None)

    @property
    def is_digest_addressed(self) -> bool:
        return self.digest is not None

    @property
    def version(self) -> str:
        """Label-safe version: the tag, else a short digest, else ``latest``."""
        if self.tag:
            version = self.tag
        elif self.digest:
            algorithm, _, hex_digest = self.digest.partition(':')
            version = f"{algorithm}-{hex_digest[:12]}" if hex_digest else algorithm
        else:
            version = "latest"
        # Label values must start and end with an alphanumeric
        version = version[:LABEL_VALUE_MAX].strip('-_.')
        return version or "latest"

    def __str__(self) -> str:
        image = self.repository
        if self.tag:
            image += f":{self.tag}"
        if self.digest:
            image += f"@{self.digest}"
        return image


class PortSpec(BaseModel):
    """A single exposed container port."""
    container_port: int = Field(
        ...,
        ge=1,
        le=65535,
        validation_alias=AliasChoices('container_port', 'containerPort', 'port')
    )
    name: Optional[str] = Field(None, max_length=15, description="Defaults to http-<port>, suffixed with the protocol for UDP and SCTP")
    protocol: str = "TCP"

    @field_validator('protocol')
    @classmethod
    def validate_protocol(cls, v):
        v = v.upper()
        if v not in VALID_PROTOCOLS:
            raise ValueError(f'protocol must be one of {", ".join(VALID_PROTOCOLS)}')
        return v

    @property
    def effective_name(self) -> str:
        """The explicit name, else ``http-<port>`` (``http-<port>-<proto>`` for non-TCP)."""
        if self.name:
            return self.name
        if self.protocol == "TCP":
            return f"http-{self.container_port}"
        return f"http-{self.container_port}-{self.protocol.lower()}"

    class Config:
        frozen = True
        populate_by_name = True


class DeploymentIntent(BaseModel):
    """
    Application-level description of a workload.

    Built once at the boundary; loosely-typed port, env, volume and node
    selector input is converted here so the builder only ever sees typed
    values. Use ``DeploymentIntent.parse`` to get a MalformedIntentError
    instead of a pydantic ValidationError.
    """
    name: str = Field(..., description="Application name, also the deployment name")
    namespace: str = Field(
        ...,
        validation_alias=AliasChoices('namespace', 'project'),
        description="Namespace / project the workload lives in"
    )
    image: str = Field(..., description="Full image reference")
    ports: List[PortSpec] = Field(default_factory=list)
    env: Dict[str, str] = Field(default_factory=dict)
    labels: Dict[str, str] = Field(default_factory=dict)
    replicas: int = Field(1, ge=0)
    host_path_volumes: Dict[str, str] = Field(
        default_factory=dict,
        validation_alias=AliasChoices('host_path_volumes', 'volumes', 'hostPathVolume'),
        description="Host path -> mount path"
    )
    node_selector: Dict[str, str] = Field(default_factory=dict)
    health_endpoint: Optional[str] = None
    force: bool = False

    class Config:
        frozen = True
        populate_by_name = True

    @model_validator(mode='before')
    @classmethod
    def apply_defaults(cls, data):
        """
        Default the namespace to ``Settings.k8s_default_namespace`` and compose
        ``<registry>/<namespace>/<name>:<tag>`` when no image is given.
        """
        if not isinstance(data, dict):
            return data
        if data.get('namespace') is None and data.get('project') is None:
            from .config import get_settings
            data = {**data, 'namespace': get_settings().k8s_default_namespace}
        if data.get('image'):
            return data
        tag = data.get('image_tag')
        if not tag:
            raise ValueError('either image or image_tag is required')
        namespace = data.get('namespace') or data.get('project')
        name = data.get('name')
        registry = (data.get('docker_registry') or '').rstrip('/')
        image = f"{namespace}/{name}:{tag}"
        if registry:
            image = f"{registry}/{image}"
        data = {k: v for k, v in data.items() if k not in ('image_tag', 'docker_registry')}
        data['image'] = image
        return data

    @field_validator('name', 'namespace')
    @classmethod
    def validate_dns_label(cls, v):
        if len(v) > LABEL_VALUE_MAX or not DNS_LABEL_RE.match(v):
            raise ValueError(
                f'"{v}" must be a lowercase RFC 1123 label (a-z, 0-9, "-", at most 63 characters)'
            )
        return v

    @field_validator('image')
    @classmethod
    def validate_image(cls, v):
        v = v.strip()
        if not v or any(c.isspace() for c in v):
            raise ValueError('image must be a non-empty reference without whitespace')
        return v

    @field_validator('ports', mode='before')
    @classmethod
    def coerce_ports(cls, v):
        if v is None:
            return []
        if isinstance(v, (str, int)) or not hasattr(v, '__iter__') or isinstance(v, dict):
            raise ValueError('ports must be a list')
        ports = []
        for item in v:
            if isinstance(item, bool):
                raise ValueError(f'invalid port {item!r}')
            if isinstance(item, (PortSpec, dict)):
                ports.append(item)
            elif isinstance(item, int):
                ports.append({'container_port': item})
            elif isinstance(item, str) and item.strip().isdigit():
                ports.append({'container_port': int(item)})
            else:
                raise ValueError(f'invalid port {item!r}')
        return ports

    @field_validator('ports')
    @classmethod
    def dedupe_ports(cls, v):
        seen = set()
        ports = []
        for port in v:
            key = (port.container_port, port.protocol)
            if key not in seen:
                seen.add(key)
                ports.append(port)
        # Synthesized names count too; the pod spec rejects any duplicate
        names = [p.effective_name for p in ports]
        if len(names) != len(set(names)):
            raise ValueError('port names must be unique')
        return ports

    @field_validator('env', mode='before')
    @classmethod
    def coerce_env(cls, v):
        if v is None:
            return {}
        if isinstance(v, dict):
            items = v.items()
        elif isinstance(v, (list, tuple)):
            items = []
            for entry in v:
                if not isinstance(entry, dict) or 'name' not in entry:
                    raise ValueError(f'env entry {entry!r} must be a mapping with a name')
                items.append((entry['name'], entry.get('value')))
        else:
            raise ValueError('env must be a mapping or a list of {name, value} entries')

        env = {}
        for key, value in items:
            if not isinstance(key, str) or not key:
                raise ValueError(f'env name {key!r} must be a non-empty string')
            env[key] = _stringify(value, 'env')
        return env

    @field_validator('labels', mode='before')
    @classmethod
    def coerce_labels(cls, v):
        if v is None:
            return {}
        if not isinstance(v, dict):
            raise ValueError('labels must be a mapping')
        return {str(k): _stringify(val, 'label') for k, val in v.items()}

    @field_validator('host_path_volumes', mode='before')
    @classmethod
    def coerce_volumes(cls, v):
        if v is None:
            return {}
        if not isinstance(v, dict):
            raise ValueError('host_path_volumes must be a mapping of host path to mount path')
        return v

    @field_validator('host_path_volumes')
    @classmethod
    def validate_volumes(cls, v):
        for host_path, mount_path in v.items():
            if not host_path.startswith('/') or not mount_path.startswith('/'):
                raise ValueError(f'volume {host_path}:{mount_path} must use absolute paths')
        if len(set(v.values())) != len(v):
            raise ValueError('volume mount paths must be unique')
        return v

    @field_validator('node_selector', mode='before')
    @classmethod
    def coerce_node_selector(cls, v):
        if v is None:
            return {}
        if isinstance(v, str):
            return parse_node_selector(v)
        if isinstance(v, dict):
            return {str(k): _stringify(val, 'node_selector') for k, val in v.items()}
        raise ValueError('node_selector must be a key=value expression or a mapping')

    @field_validator('health_endpoint')
    @classmethod
    def validate_health_endpoint(cls, v):
        if v is None or not v.strip():
            return None
        v = v.strip()
        return v if v.startswith('/') else f'/{v}'

    @model_validator(mode='after')
    def check_health_endpoint_port(self):
        if self.health_endpoint and not any(p.protocol == "TCP" for p in self.ports):
            raise ValueError('health_endpoint requires at least one TCP port')
        return self

    @property
    def image_reference(self) -> ImageReference:
        return ImageReference.parse(self.image)

    @classmethod
    def parse(cls, data: Any) -> "DeploymentIntent":
        """
        Validate raw intent at the system boundary.

        Raises:
            MalformedIntentError: If any field cannot be converted
        """
        if isinstance(data, cls):
            return data
        try:
            return cls.model_validate(data)
        except ValidationError as e:
            name = namespace = None
            if isinstance(data, dict):
                name = data.get('name')
                namespace = data.get('namespace') or data.get('project')
            raise MalformedIntentError(
                f"Invalid deployment intent: {e}",
                name=name,
                namespace=namespace
            ) from e

    @classmethod
    def from_registry(
        cls,
        app: str,
        project: str,
        image_tag: str,
        docker_registry: Optional[str] = None,
        **kwargs
    ) -> "DeploymentIntent":
        """
        Build an intent whose image is composed from registry, project, app and tag.

        ``docker_registry`` defaults to ``Settings.docker_registry``.
        """
        if docker_registry is None:
            from .config import get_settings
            docker_registry = get_settings().docker_registry

        return cls.parse({
            'name': app,
            'namespace': project,
            'image_tag': image_tag,
            'docker_registry': docker_registry,
            **kwargs
        })
