"""
Settings and configuration for layer-blobs.

Centralizes configuration values and provides validation with fail-fast behavior.
Loads settings from environment variables at adapter construction time.
"""
from __future__ import annotations

import os
import re
from dataclasses import dataclass
from typing import Optional

__all__ = ["Settings", "create_settings_from_env"]


@dataclass(frozen=True)
class Settings:
    """
    Configuration settings for layer-blobs adapters.
    
    Registry Settings:
        registry_url: OCI registry URL (required for registry access)
        registry_repo: Repository holding the layer blobs (required for registry access)
        registry_insecure: Allow HTTP connections for local/dev use
        registry_user: Username for registry authentication
        registry_pass: Password for registry authentication
        http_timeout_s: HTTP request timeout in seconds
        http_retry: Attempts per request on transport timeouts (1=no retry)
    """
    # Registry settings
    registry_url: str
    registry_repo: str
    registry_insecure: bool = False
    registry_user: Optional[str] = None
    registry_pass: Optional[str] = None
    http_timeout_s: float = 30.0
    http_retry: int = 3
    
    def __post_init__(self):
        """Validate settings on construction."""
        if not self.registry_url:
            raise ValueError("registry_url is required")
        
        # Basic URL validation - should be host[:port] or https://host[:port]
        url_pattern = r"^(?:https?://)?[a-zA-Z0-9.-]+(?::[0-9]+)?(?:/.*)?$"
        if not re.match(url_pattern, self.registry_url):
            raise ValueError(f"Invalid registry_url format: {self.registry_url}")
        
        if not self.registry_repo:
            raise ValueError("registry_repo is required")
        
        # Repository name must follow OCI naming conventions
        repo_pattern = r"^[a-z0-9][a-z0-9._-]*(?:/[a-z0-9][a-z0-9._-]*)*$"
        if not re.match(repo_pattern, self.registry_repo):
            raise ValueError(f"Invalid registry_repo format: {self.registry_repo}. Must follow OCI naming conventions.")
        
        if self.http_timeout_s <= 0:
            raise ValueError(f"http_timeout_s must be positive, got {self.http_timeout_s}")
        
        if self.http_retry < 1:
            raise ValueError(f"http_retry must be at least 1, got {self.http_retry}")
        
        if bool(self.registry_user) != bool(self.registry_pass):
            raise ValueError("registry_user and registry_pass must be given together")


def create_settings_from_env() -> Settings:
    """
    Load settings from environment variables.
    
    Environment Variables:
        - LAYER_BLOBS_REGISTRY_URL (required)
        - LAYER_BLOBS_REGISTRY_REPO (required)
        - LAYER_BLOBS_REGISTRY_INSECURE (default: false)
        - LAYER_BLOBS_REGISTRY_USERNAME (optional)
        - LAYER_BLOBS_REGISTRY_PASSWORD (optional)
        - LAYER_BLOBS_HTTP_TIMEOUT (default: 30.0)
        - LAYER_BLOBS_HTTP_RETRY (default: 3)
    
    Returns:
        Settings object with validated configuration
        
    Raises:
        ValueError: If configuration is invalid or required values missing
        
    Note:
        Creates a fresh Settings instance every time (no caching).
    """
    def str_to_bool(value: str) -> bool:
        return value.lower() in ('true', '1', 'yes', 'on')
    
    def get_float(key: str, default: float) -> float:
        value = os.getenv(key)
        return float(value) if value else default
    
    def get_int(key: str, default: int) -> int:
        value = os.getenv(key)
        return int(value) if value else default
    
    registry_url = os.getenv("LAYER_BLOBS_REGISTRY_URL")
    registry_repo = os.getenv("LAYER_BLOBS_REGISTRY_REPO")
    
    if not registry_url:
        raise ValueError("LAYER_BLOBS_REGISTRY_URL environment variable is required")
    if not registry_repo:
        raise ValueError("LAYER_BLOBS_REGISTRY_REPO environment variable is required")
    
    return Settings(
        registry_url=registry_url,
        registry_repo=registry_repo,
        registry_insecure=str_to_bool(os.getenv("LAYER_BLOBS_REGISTRY_INSECURE", "false")),
        registry_user=os.getenv("LAYER_BLOBS_REGISTRY_USERNAME"),
        registry_pass=os.getenv("LAYER_BLOBS_REGISTRY_PASSWORD"),
        http_timeout_s=get_float("LAYER_BLOBS_HTTP_TIMEOUT", 30.0),
        http_retry=get_int("LAYER_BLOBS_HTTP_RETRY", 3),
    )
