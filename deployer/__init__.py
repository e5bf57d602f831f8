"""Translate application deployment intent into Kubernetes Deployments and reconcile them."""

from .errors import (
    ConflictError,
    DeploymentError,
    FatalError,
    InvalidDescriptorError,
    MalformedIntentError,
    NotFoundError,
    TransientError,
)
from .schemas import DeploymentIntent, ImageReference, PortSpec

__all__ = [
    "ConflictError",
    "DeploymentError",
    "DeploymentIntent",
    "FatalError",
    "ImageReference",
    "InvalidDescriptorError",
    "MalformedIntentError",
    "NotFoundError",
    "PortSpec",
    "TransientError",
]
