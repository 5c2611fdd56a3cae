"""Blob store port and adapters.

The snapshot repository only needs two operations from storage: list object
names under a prefix and fetch one object's bytes. ``GcsBlobStore`` talks to
the public Google Cloud Storage JSON/XML endpoints over httpx;
``LocalBlobStore`` serves a directory of snapshot files for offline use.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path

import httpx
import structlog

from ..config import Settings, settings as default_settings
from ..errors import FetchError, UpstreamFetchError

log = structlog.get_logger()


class BlobStore(ABC):
    @abstractmethod
    def list_objects(self, prefix: str = "") -> list[str]:
        """Return object names starting with ``prefix``. Raises UpstreamFetchError."""
        ...

    @abstractmethod
    def fetch_object(self, name: str) -> bytes:
        """Return the object's body. Raises FetchError."""
        ...

    def describe(self, name: str) -> str:
        return name


class GcsBlobStore(BlobStore):
    def __init__(
        self,
        bucket: str,
        base_url: str = "https://storage.googleapis.com",
        timeout: float = 30.0,
        client: httpx.Client | None = None,
    ):
        self.bucket = bucket
        self.base = base_url.rstrip("/")
        self.timeout = timeout
        self._client = client

    def _get(self, url: str, params: dict | None = None) -> httpx.Response:
        if self._client is not None:
            return self._client.get(url, params=params, timeout=self.timeout)
        with httpx.Client(timeout=self.timeout) as client:
            return client.get(url, params=params)

    def describe(self, name: str) -> str:
        return f"{self.base}/{self.bucket}/{name}"

    def list_objects(self, prefix: str = "") -> list[str]:
        url = f"{self.base}/storage/v1/b/{self.bucket}/o"
        names: list[str] = []
        page_token = None
        while True:
            params = {"prefix": prefix} if prefix else {}
            if page_token:
                params["pageToken"] = page_token
            try:
                r = self._get(url, params=params)
            except httpx.HTTPError as exc:
                raise UpstreamFetchError("Failed to list bucket objects", str(exc)) from exc
            if r.status_code != 200:
                raise UpstreamFetchError(
                    f"Failed to list bucket objects: status {r.status_code}", r.text[:500]
                )
            try:
                payload = r.json()
            except ValueError as exc:
                raise UpstreamFetchError("Failed to parse bucket listing", str(exc)) from exc
            for item in payload.get("items") or []:
                name = item.get("name")
                if isinstance(name, str):
                    names.append(name)
            page_token = payload.get("nextPageToken")
            if not page_token:
                return names

    def fetch_object(self, name: str) -> bytes:
        url = self.describe(name)
        try:
            r = self._get(url)
        except httpx.HTTPError as exc:
            raise FetchError("Failed to fetch or parse data", str(exc)) from exc
        if r.status_code != 200:
            raise FetchError(f"Failed to fetch data from remote source: {url}")
        return r.content


class LocalBlobStore(BlobStore):
    def __init__(self, root_dir: str | Path):
        self.root_dir = Path(root_dir)

    def describe(self, name: str) -> str:
        return str(self.root_dir / name)

    def list_objects(self, prefix: str = "") -> list[str]:
        if not self.root_dir.is_dir():
            raise UpstreamFetchError(f"Snapshot directory not found: {self.root_dir}")
        return sorted(
            path.name
            for path in self.root_dir.iterdir()
            if path.is_file() and path.name.startswith(prefix)
        )

    def fetch_object(self, name: str) -> bytes:
        path = self.root_dir / name
        try:
            return path.read_bytes()
        except OSError as exc:
            raise FetchError(f"Failed to fetch data from remote source: {path}", str(exc)) from exc


def build_blob_store(cfg: Settings | None = None) -> BlobStore:
    cfg = cfg or default_settings
    backend = cfg.blob_backend.lower()
    if backend == "local":
        return LocalBlobStore(cfg.blob_local_dir)
    if backend != "gcs":
        log.warning("blob_backend_unknown", backend=cfg.blob_backend, fallback="gcs")
    return GcsBlobStore(cfg.blob_bucket, base_url=cfg.gcs_base_url, timeout=cfg.http_timeout_seconds)
