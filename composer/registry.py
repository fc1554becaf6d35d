"""HTTP client for the module registry API."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import httpx

from composer.models import ApiEnvelope, Module, Source
from composer.types import slot_spec

logger = logging.getLogger(__name__)

# Endpoint families. The notebook and rag-multimodal tools expose the
# same module contract under different prefixes.
MODULE_ENDPOINTS: dict[str, str] = {
    "rag_multimodal": "/api/v1/rag-multimodal-modules",
    "notebook": "/api/v1/notebook-modules",
}

SOURCE_ENDPOINTS: dict[str, tuple[str, str]] = {
    "rag_multimodal": ("/api/v1/rag-multimodal-sources", "rag_multimodal_id"),
    "notebook": ("/api/v1/notebook-sources", "notebook_id"),
}

TOOLS_ENDPOINT = "/api/v1/tools"
DEFAULT_TITLE = "RAG Multimodal"


class ApiError(Exception):
    """Request failed at the transport, HTTP or envelope level."""

    def __init__(self, code: str, message: str, status: int | None = None):
        super().__init__(message)
        self.code = code
        self.message = message
        self.status = status

    def __str__(self) -> str:
        if self.status:
            return f"{self.code} ({self.status}): {self.message}"
        return f"{self.code}: {self.message}"


class ModuleRegistry:
    """Async client for notebook module bindings."""

    def __init__(
        self,
        api_url: str,
        token: str | None = None,
        *,
        kind: str = "rag_multimodal",
        client: httpx.AsyncClient | None = None,
        timeout: float = 30.0,
    ):
        if kind not in MODULE_ENDPOINTS:
            raise ValueError(f"Unknown module kind: {kind!r}")
        self.api_url = api_url.rstrip("/")
        self.token = token
        self.kind = kind
        self.client = client or httpx.AsyncClient(timeout=timeout, follow_redirects=True)

    @property
    def modules_path(self) -> str:
        return MODULE_ENDPOINTS[self.kind]

    def _headers(self, accept: str = "application/json") -> dict:
        """Build request headers."""
        headers = {"Content-Type": "application/json", "Accept": accept}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    def _url(self, path: str) -> str:
        return f"{self.api_url}/{path.lstrip('/')}"

    async def _send(self, method: str, path: str, *, accept: str = "application/json", **kwargs: Any) -> httpx.Response:
        url = self._url(path)
        try:
            return await self.client.request(method, url, headers=self._headers(accept), follow_redirects=True, **kwargs)
        except httpx.HTTPError as e:
            raise ApiError("NETWORK_ERROR", str(e) or "Network request failed") from e

    async def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        """Make a JSON request and unwrap the response envelope."""
        res = await self._send(method, path, **kwargs)

        if res.status_code == 204 or not res.content:
            if not res.is_success:
                raise ApiError("API_ERROR", f"Request failed with status {res.status_code}", res.status_code)
            return None

        try:
            payload = res.json()
        except ValueError as e:
            raise ApiError("SERVER_ERROR", "Invalid response format from server", res.status_code) from e

        if isinstance(payload, dict) and "success" in payload:
            envelope = ApiEnvelope.model_validate(payload)
            if envelope.success:
                return envelope.data
            detail = envelope.error
            raise ApiError(
                detail.code if detail and detail.code else "API_ERROR",
                detail.message if detail and detail.message else f"Request failed with status {res.status_code}",
                res.status_code,
            )

        if not res.is_success:
            raise ApiError("API_ERROR", f"Request failed with status {res.status_code}", res.status_code)
        return payload

    # -- modules --

    async def list(self, notebook_id: int) -> list[Module]:
        """Fetch all current slot bindings for a notebook, in backend order."""
        data = await self._request("GET", f"{self.modules_path}/{notebook_id}")
        return [Module.model_validate(item) for item in data or []]

    async def assign(self, notebook_id: int, module_type: str, source_id: int) -> Module | None:
        """
        Bind a source to a slot.

        HEADER/FOOTER replace any existing binding server-side; BODY appends.
        """
        spec = slot_spec(module_type)
        data = await self._request(
            "PUT",
            f"{self.modules_path}/{notebook_id}/{spec.type.lower()}",
            json={"source_id": source_id},
        )
        logger.info("assigned source %s to %s of notebook %s", source_id, spec.type, notebook_id)
        return Module.model_validate(data) if isinstance(data, dict) else None

    async def unassign(self, notebook_id: int, module_type: str, module_id: int | None = None) -> None:
        """Remove one binding (module_id given) or clear the whole slot."""
        spec = slot_spec(module_type)
        params = {"module_id": module_id} if module_id is not None else None
        await self._request(
            "DELETE",
            f"{self.modules_path}/{notebook_id}/{spec.type.lower()}",
            params=params,
        )
        logger.info("unassigned %s module=%s of notebook %s", spec.type, module_id, notebook_id)

    async def fetch_fragment(self, module_id: int) -> str:
        """Fetch the rendered HTML document of one module."""
        res = await self._send("GET", f"{self.modules_path}/module/{module_id}/html", accept="text/html")
        if not res.is_success:
            raise ApiError("HTTP_ERROR", f"HTTP {res.status_code}", res.status_code)
        return res.text

    # -- sources & tool --

    async def list_sources(self, notebook_id: int) -> list[Source]:
        """Fetch every uploaded source of a notebook (all types)."""
        path, param = SOURCE_ENDPOINTS[self.kind]
        data = await self._request("GET", path, params={param: notebook_id})
        return [Source.model_validate(item) for item in data or []]

    async def get_title(self, notebook_id: int) -> str:
        """Title of the tool that owns the notebook."""
        data = await self._request("GET", f"{TOOLS_ENDPOINT}/{notebook_id}")
        if isinstance(data, dict) and data.get("title"):
            return data["title"]
        return DEFAULT_TITLE

    def resolve_url(self, source_file_path: str | None) -> str:
        """Absolute link to a module's source file."""
        if not source_file_path:
            return ""
        if source_file_path.startswith("http"):
            return source_file_path
        return f"{self.api_url}{source_file_path}"

    # -- export --

    async def download_index(self, notebook_id: int, dest_dir: Path | str = ".") -> Path:
        """
        Download the server-generated index.html for the current assignment.

        Returns the written file path.
        """
        res = await self._send("GET", f"{self.modules_path}/{notebook_id}/generate-index", accept="text/html")
        if not res.is_success:
            raise ApiError("HTTP_ERROR", f"Failed to generate index: {res.status_code}", res.status_code)

        dest = Path(dest_dir)
        dest.mkdir(parents=True, exist_ok=True)
        target = dest / f"index-{notebook_id}.html"
        target.write_bytes(res.content)
        logger.info("wrote %d bytes to %s", len(res.content), target)
        return target

    async def aclose(self) -> None:
        """Close client."""
        await self.client.aclose()
