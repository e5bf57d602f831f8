from pydantic_settings import BaseSettings
from functools import lru_cache

class Settings(BaseSettings):
    # Logging level: DEBUG, INFO, WARNING, ERROR, CRITICAL
    log_level: str = "INFO"

    # Registry used when an image reference is composed from
    # registry/namespace/app:tag instead of being passed in full
    # Example: registry.example.com
    docker_registry: str = ""

    # ==========================================================================
    # Kubernetes Connection Settings
    # ==========================================================================
    # Namespace used when a caller does not name one
    k8s_default_namespace: str = "default"

    # Kubeconfig context to load outside the cluster (empty = current context)
    k8s_kubeconfig_context: str = ""

    # Per-request timeout forwarded to the API server call (seconds)
    k8s_request_timeout_seconds: float = 30.0

    # ==========================================================================
    # Transient Failure Retry
    # ==========================================================================
    # Total attempts per API call for network/server-side unavailability.
    # 1 disables retry. Conflicts and validation errors are never retried.
    k8s_retry_max_attempts: int = 3
    k8s_retry_min_wait: float = 1.0  # Seconds before the first retry
    k8s_retry_max_wait: float = 10.0  # Upper bound on backoff between retries

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"  # Ignore extra fields from .env file
        case_sensitive = False  # Allow lowercase env vars to match uppercase field names

@lru_cache()
def get_settings():
    return Settings()
