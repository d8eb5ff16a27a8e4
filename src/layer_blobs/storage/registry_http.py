"""
Registry HTTP content store for the OCI Distribution API.

Reads the first bytes of layer blobs straight from a registry with ranged
GET requests, so a layer's compression can be sniffed without downloading it.
Implements the Docker Registry v2 Bearer token flow with credentials taken
from settings or the Docker config file.
"""
from __future__ import annotations

import base64
import binascii
import io
import json
import logging
import os
import re
import time
from pathlib import Path
from typing import BinaryIO, Dict, Optional, Tuple
from urllib.parse import urljoin

import httpx
from tenacity import Retrying, retry_if_exception_type, stop_after_attempt, wait_exponential

from ..compression import SNIFF_SIZE
from ..errors import BlobDownloadError, BlobNotFoundError
from ..settings import Settings
from .base import ContentStore, split_digest

__all__ = ["DockerAuth", "RegistryBlobStore"]

logger = logging.getLogger(__name__)


class DockerAuth:
    """Registry credentials from a Docker config.json (``$DOCKER_CONFIG`` or ``~/.docker``)."""
    
    def __init__(self, config_path: Optional[Path] = None):
        if config_path is None:
            config_dir = os.getenv("DOCKER_CONFIG") or str(Path.home() / ".docker")
            config_path = Path(config_dir) / "config.json"
        self.config_path = config_path
        self._loaded: Optional[Tuple[float, dict]] = None
    
    def get_credentials(self, registry: str) -> Optional[Tuple[str, str]]:
        """Return (username, password) stored for registry, or None."""
        auths = self._auths()
        host = registry.split("://", 1)[-1]
        for key in (registry, f"https://{host}", host):
            entry = auths.get(key)
            if entry is not None:
                return self._decode_entry(key, entry)
        return None
    
    @staticmethod
    def _decode_entry(key: str, entry: dict) -> Optional[Tuple[str, str]]:
        encoded = entry.get("auth")
        if encoded:
            try:
                user, sep, password = base64.b64decode(encoded).decode().partition(":")
            except (binascii.Error, UnicodeDecodeError) as e:
                logger.debug(f"Ignoring malformed auth entry for {key}: {e}")
            else:
                if sep:
                    return (user, password)
        if "username" in entry and "password" in entry:
            return (entry["username"], entry["password"])
        return None
    
    def _auths(self) -> dict:
        """The "auths" section, re-read only when the file's mtime changes."""
        try:
            mtime = self.config_path.stat().st_mtime
        except FileNotFoundError:
            return {}
        except OSError as e:
            logger.debug(f"Cannot stat Docker config {self.config_path}: {e}")
            return {}
        
        if self._loaded is None or self._loaded[0] != mtime:
            try:
                config = json.loads(self.config_path.read_text())
            except (OSError, ValueError) as e:
                logger.debug(f"Failed to read Docker config {self.config_path}: {e}")
                return {}
            self._loaded = (mtime, config if isinstance(config, dict) else {})
        return self._loaded[1].get("auths") or {}


class RegistryBlobStore(ContentStore):
    """
    ContentStore reading blob prefixes from an OCI registry.
    
    reader_at() fetches at most prefix_size bytes of the blob using an HTTP
    Range request and returns them as an in-memory stream. Registries that
    ignore Range and answer 200 are handled by truncating the body.
    """
    
    def __init__(self, registry: str, repository: str, *,
                 auth: Optional[DockerAuth] = None,
                 credentials: Optional[Tuple[str, str]] = None,
                 insecure: bool = False,
                 timeout_s: float = 30.0,
                 retry_attempts: int = 3,
                 retry_wait=None,
                 prefix_size: int = SNIFF_SIZE,
                 client: Optional[httpx.Client] = None):
        """
        Initialize registry blob store.
        
        Args:
            registry: Registry hostname or URL (e.g., "localhost:5000", "https://ghcr.io")
            repository: Repository path holding the blobs (e.g., "library/busybox")
            auth: Docker auth handler (defaults to standard Docker config)
            credentials: Explicit (username, password); takes precedence over auth
            insecure: Allow HTTP for development registries
            timeout_s: Read/write timeout in seconds
            retry_attempts: Attempts per request when the transport times out
            retry_wait: tenacity wait strategy (defaults to exponential backoff)
            prefix_size: Number of leading bytes fetched per blob
            client: Pre-built httpx client (tests inject a MockTransport client)
        """
        self.registry = registry
        self.repository = repository
        self.auth = auth or DockerAuth()
        self.credentials = credentials
        self.insecure = insecure
        self.retry_attempts = retry_attempts
        self.retry_wait = retry_wait or wait_exponential(multiplier=1, min=1, max=10)
        self.prefix_size = prefix_size
        
        if insecure and not registry.startswith("http"):
            self.base_url = f"http://{registry}"
        elif not registry.startswith("http"):
            self.base_url = f"https://{registry}"
        else:
            self.base_url = registry
        
        self.client = client or httpx.Client(
            timeout=httpx.Timeout(connect=5.0, read=timeout_s, write=timeout_s, pool=5.0),
            follow_redirects=True,
            verify=not insecure,
            headers={"User-Agent": "layer-blobs/0.1.0"}
        )
        
        # Token cache: {service/scope: (token, expiry_timestamp)}
        self._token_cache: Dict[str, Tuple[str, float]] = {}
        logger.debug(f"Registry blob store for {self.base_url}/{repository}, "
                     f"attempts: {retry_attempts}, insecure: {insecure}")
    
    @classmethod
    def from_settings(cls, settings: Settings, **kwargs) -> "RegistryBlobStore":
        """Build a store from validated settings."""
        credentials = None
        if settings.registry_user and settings.registry_pass:
            credentials = (settings.registry_user, settings.registry_pass)
        return cls(
            settings.registry_url,
            settings.registry_repo,
            credentials=credentials,
            insecure=settings.registry_insecure,
            timeout_s=settings.http_timeout_s,
            retry_attempts=settings.http_retry,
            **kwargs,
        )
    
    def reader_at(self, digest: str) -> BinaryIO:
        """
        Fetch the first prefix_size bytes of a blob.
        
        The response is streamed and closed as soon as the prefix is
        buffered, so a registry that ignores Range costs one chunk, not
        the whole layer.
        
        Raises:
            ValueError: If digest is malformed
            BlobNotFoundError: If the registry has no such blob
            BlobDownloadError: On auth, HTTP or network errors
        """
        split_digest(digest)
        url = f"/v2/{self.repository}/blobs/{digest}"
        headers = {"Range": f"bytes=0-{self.prefix_size - 1}"}
        
        try:
            response = self._request("GET", url, headers=headers)
            prefix = self._read_prefix(response)
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            if status == 404:
                raise BlobNotFoundError(f"Blob not found: {self.repository}@{digest}", digest=digest) from e
            if status in (401, 403):
                raise BlobDownloadError(f"Authentication failed for blob {digest}") from e
            if status == 416:
                # Range not satisfiable: the blob is empty
                logger.debug(f"Blob {digest} is empty (HTTP 416)")
                return io.BytesIO(b"")
            raise BlobDownloadError(f"Registry error {status} fetching blob {digest}") from e
        except httpx.RequestError as e:
            raise BlobDownloadError(f"Network error fetching blob {digest}: {e}") from e
        
        logger.debug(f"Fetched {len(prefix)} bytes of {digest} (HTTP {response.status_code})")
        return io.BytesIO(prefix)
    
    def _read_prefix(self, response: httpx.Response) -> bytes:
        """Buffer at most prefix_size bytes of a streamed body, then close it."""
        buffered = bytearray()
        try:
            for chunk in response.iter_bytes():
                buffered.extend(chunk)
                if len(buffered) >= self.prefix_size:
                    break
        finally:
            response.close()
        return bytes(buffered[:self.prefix_size])
    
    def _request(self, method: str, path: str, headers: Optional[dict] = None, **kwargs) -> httpx.Response:
        """Open a streamed HTTP request, retrying transport timeouts."""
        retrying = Retrying(
            stop=stop_after_attempt(self.retry_attempts),
            wait=self.retry_wait,
            retry=retry_if_exception_type(httpx.TimeoutException),
            reraise=True,
        )
        for attempt in retrying:
            with attempt:
                return self._send(method, path, headers=headers, **kwargs)
    
    def _send(self, method: str, path: str, headers: Optional[dict] = None, **kwargs) -> httpx.Response:
        """
        Send one streamed request with transparent Bearer token auth flow.
        
        On 401 with a Bearer challenge, a token is obtained (explicit
        credentials, then Docker config, then anonymous) and the request is
        sent once more. The returned response is open and must be closed by
        the caller; error responses are closed before raising.
        """
        url = urljoin(self.base_url, path)
        request_headers = dict(headers or {})
        
        response = self.client.send(
            self.client.build_request(method, url, headers=request_headers, **kwargs), stream=True)
        
        if response.status_code == 401:
            challenge = response.headers.get("WWW-Authenticate", "")
            token = self._handle_bearer_auth(challenge) if challenge.startswith("Bearer ") else None
            if token:
                response.close()
                request_headers["Authorization"] = f"Bearer {token}"
                response = self.client.send(
                    self.client.build_request(method, url, headers=request_headers, **kwargs), stream=True)
        
        if response.is_error:
            response.close()
            response.raise_for_status()
        return response
    
    def _handle_bearer_auth(self, www_authenticate: str) -> Optional[str]:
        """Parse a Bearer challenge, exchange credentials for a token and cache it."""
        bearer_params = {}
        for match in re.finditer(r'(\w+)="([^"]*)"', www_authenticate):
            bearer_params[match.group(1)] = match.group(2)
        
        realm = bearer_params.get("realm")
        service = bearer_params.get("service")
        scope = bearer_params.get("scope")
        
        if not all([realm, service]):
            return None
        
        cache_key = f"{service}:{scope or ''}"
        if cache_key in self._token_cache:
            token, expiry = self._token_cache[cache_key]
            if time.time() < expiry - 30:  # 30s buffer before expiry
                return token
        
        creds = self.credentials or self.auth.get_credentials(self.registry)
        params = {"service": service, "scope": scope} if scope else {"service": service}
        
        try:
            if creds:
                auth_response = self.client.get(realm, auth=creds, params=params)
            else:
                # Anonymous token (public repositories)
                auth_response = self.client.get(realm, params=params)
            auth_response.raise_for_status()
            token_data = auth_response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.debug(f"Token exchange with {realm} failed: {e}")
            return None
        
        token = token_data.get("token") or token_data.get("access_token")
        if not token:
            return None
        
        expires_in = token_data.get("expires_in", 3600)
        self._token_cache[cache_key] = (token, time.time() + expires_in)
        return token
    
    def close(self):
        """Close HTTP client."""
        self.client.close()
    
    def __enter__(self):
        return self
    
    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
