"""
Deployment Error Taxonomy

Every public operation either returns the orchestrator's live descriptor or
raises exactly one of these errors. The reconciler branches on the class:

- MalformedIntentError: intent rejected before a descriptor is built
- NotFoundError: target workload does not exist (update falls back to create)
- ConflictError: concurrent modification detected by the API server
- TransientError: network or server-side unavailability (bounded retry)
- InvalidDescriptorError: API server rejected the descriptor schema
- FatalError: anything else (authentication, authorization, ...)
"""

import json
from typing import Optional

from kubernetes.client.rest import ApiException
from urllib3.exceptions import HTTPError as Urllib3HTTPError


class DeploymentError(Exception):
    """Base class for all deployer errors."""

    def __init__(
        self,
        message: str,
        name: Optional[str] = None,
        namespace: Optional[str] = None,
        status: Optional[int] = None,
        reason: Optional[str] = None
    ):
        self.name = name
        self.namespace = namespace
        self.status = status
        self.reason = reason
        if name or namespace:
            message = f"{message} (deployment {namespace}/{name})"
        super().__init__(message)


class MalformedIntentError(DeploymentError, ValueError):
    """Intent could not be converted into a descriptor."""


class NotFoundError(DeploymentError):
    """The named workload does not exist."""


class ConflictError(DeploymentError):
    """The API server refused a write because of a concurrent modification."""


class TransientError(DeploymentError):
    """Network failure or temporary server-side unavailability."""


class InvalidDescriptorError(DeploymentError):
    """The API server rejected the descriptor as invalid."""


class FatalError(DeploymentError):
    """Any other failure; never retried."""


# Statuses worth retrying: throttling and server-side unavailability.
# Status 0 is what the client reports when no HTTP response was received.
TRANSIENT_STATUSES = frozenset({0, 429, 500, 502, 503, 504})
INVALID_STATUSES = frozenset({400, 422})


def _api_message(exc: ApiException) -> str:
    """Extract the human-readable message from a Status body, if any."""
    if exc.body:
        raw = exc.body
        if isinstance(raw, bytes):
            raw = raw.decode("utf-8", errors="replace")
        try:
            body = json.loads(raw)
        except (TypeError, ValueError):
            return str(raw)
        if isinstance(body, dict) and body.get("message"):
            return body["message"]
    return exc.reason or "unknown error"


def classify_api_exception(
    exc: ApiException,
    name: Optional[str] = None,
    namespace: Optional[str] = None
) -> DeploymentError:
    """
    Map a Kubernetes ApiException onto the deployer error taxonomy.

    Args:
        exc: Exception raised by the kubernetes client
        name: Deployment name (for diagnostics)
        namespace: Deployment namespace (for diagnostics)

    Returns:
        The typed error (not raised)
    """
    status = exc.status or 0
    message = _api_message(exc)

    if status == 404:
        error_cls = NotFoundError
    elif status == 409:
        error_cls = ConflictError
    elif status in INVALID_STATUSES:
        error_cls = InvalidDescriptorError
    elif status in TRANSIENT_STATUSES:
        error_cls = TransientError
    else:
        error_cls = FatalError

    return error_cls(
        f"{status} {exc.reason}: {message}",
        name=name,
        namespace=namespace,
        status=status,
        reason=exc.reason
    )


def classify_exception(
    exc: Exception,
    name: Optional[str] = None,
    namespace: Optional[str] = None
) -> Optional[DeploymentError]:
    """
    Map any exception raised by a client call onto the taxonomy.

    Returns None for exceptions that are not client failures (programming
    errors), which callers should let propagate untouched.
    """
    if isinstance(exc, DeploymentError):
        return exc
    if isinstance(exc, ApiException):
        return classify_api_exception(exc, name, namespace)
    if isinstance(exc, (Urllib3HTTPError, ConnectionError, TimeoutError)):
        return TransientError(
            f"Transport failure: {exc}",
            name=name,
            namespace=namespace
        )
    return None


# Exceptions a client call can raise that classify_exception understands
CLIENT_EXCEPTIONS = (ApiException, Urllib3HTTPError, ConnectionError, TimeoutError)
