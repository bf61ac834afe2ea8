"""HTTP API client transport.

Talks JSON to the vectorization API with ``Authorization: Bearer <key>``.
Routes:
  GET    /auth/validate
  GET    /projects                          POST /projects
  GET    /projects/{p}/folders              POST /projects/{p}/folders
  PUT    /projects/{p}/folders/{f}          DELETE /projects/{p}/folders/{f}
  GET    /projects/{p}/folders/{f}/documents
  POST   /projects/{p}/folders/{f}/documents
  PATCH  /projects/{p}/folders/{f}/documents/{d}
  DELETE /projects/{p}/folders/{f}/documents/{d}

Blocking urllib calls run in a worker thread so the event loop stays free.
No retries: a failed call surfaces as TransportFailure.
"""

from __future__ import annotations

import asyncio
import json
import logging
import urllib.error
import urllib.parse
import urllib.request
from http.client import HTTPResponse
from typing import Any

from vectordesk.errors import TransportFailure
from vectordesk.models import (
    CreateDocumentPayload,
    CreateFolderPayload,
    CreateProjectPayload,
    Document,
    Folder,
    Project,
)
from vectordesk.transport.base import Transport

logger = logging.getLogger(__name__)

_USER_AGENT = "vectordesk/0.1"
_ALLOWED_SCHEMES = {"https", "http"}
_REJECTED = {401, 403}


class HttpTransport(Transport):
    """Transport for the remote vectorization API."""

    def __init__(self, base_url: str, api_key: str = "", timeout: float = 30.0) -> None:
        parsed = urllib.parse.urlparse(base_url)
        if parsed.scheme not in _ALLOWED_SCHEMES or not parsed.netloc:
            raise ValueError(
                f"Unsupported API URL '{base_url}'. Use an https:// or http:// URL."
            )
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.timeout = timeout

    async def validate_api_key(self, api_key: str) -> bool:
        """Return False when the API rejects the key; other failures propagate."""
        try:
            await self._call("GET", "/auth/validate", api_key=api_key)
        except TransportFailure as exc:
            rejected = exc.__cause__
            if isinstance(rejected, urllib.error.HTTPError) and rejected.code in _REJECTED:
                logger.warning("API key rejected: HTTP %d", rejected.code)
                return False
            raise
        return True

    def set_api_key(self, api_key: str) -> None:
        self.api_key = api_key

    # -- projects -------------------------------------------------------

    async def list_projects(self) -> list[Project]:
        data = await self._call("GET", "/projects")
        return [Project.from_dict(p) for p in data or []]

    async def create_project(self, payload: CreateProjectPayload) -> Project:
        data = await self._call("POST", "/projects", payload.to_dict())
        return Project.from_dict(data)

    # -- folders --------------------------------------------------------

    async def list_folders(self, project_id: str) -> list[Folder]:
        data = await self._call("GET", f"/projects/{_q(project_id)}/folders")
        return [Folder.from_dict(f) for f in data or []]

    async def create_folder(self, payload: CreateFolderPayload) -> Folder:
        data = await self._call(
            "POST", f"/projects/{_q(payload.project_id)}/folders", payload.to_dict()
        )
        return Folder.from_dict(data)

    async def update_folder(
        self, project_id: str, folder_id: str, payload: CreateFolderPayload
    ) -> Folder:
        data = await self._call(
            "PUT",
            f"/projects/{_q(project_id)}/folders/{_q(folder_id)}",
            payload.to_dict(),
        )
        return Folder.from_dict(data)

    async def delete_folder(self, project_id: str, folder_id: str) -> None:
        await self._call("DELETE", f"/projects/{_q(project_id)}/folders/{_q(folder_id)}")

    # -- documents ------------------------------------------------------

    async def list_documents(self, project_id: str, folder_id: str) -> list[Document]:
        data = await self._call(
            "GET", f"/projects/{_q(project_id)}/folders/{_q(folder_id)}/documents"
        )
        return [Document.from_dict(d) for d in data or []]

    async def create_document(self, payload: CreateDocumentPayload) -> Document:
        data = await self._call(
            "POST",
            f"/projects/{_q(payload.project_id)}/folders/{_q(payload.folder_id)}/documents",
            payload.to_dict(),
        )
        return Document.from_dict(data)

    async def save_document_status(self, document: Document) -> None:
        body: dict[str, Any] = {"status": document.status.value}
        if document.vector_count is not None:
            body["vectorCount"] = document.vector_count
        if document.error_message is not None:
            body["errorMessage"] = document.error_message
        await self._call(
            "PATCH",
            f"/projects/{_q(document.project_id)}/folders/{_q(document.folder_id)}"
            f"/documents/{_q(document.id)}",
            body,
        )

    async def delete_document(
        self, project_id: str, folder_id: str, document_id: str
    ) -> None:
        await self._call(
            "DELETE",
            f"/projects/{_q(project_id)}/folders/{_q(folder_id)}/documents/{_q(document_id)}",
        )

    # ------------------------------------------------------------------
    # Request pipeline
    # ------------------------------------------------------------------

    async def _call(
        self,
        method: str,
        path: str,
        body: dict[str, Any] | None = None,
        *,
        api_key: str | None = None,
    ) -> Any:
        return await asyncio.to_thread(self._request, method, path, body, api_key)

    def _request(
        self,
        method: str,
        path: str,
        body: dict[str, Any] | None,
        api_key: str | None,
    ) -> Any:
        key = api_key if api_key is not None else self.api_key
        headers = {
            "User-Agent": _USER_AGENT,
            "Accept": "application/json",
            "Authorization": f"Bearer {key}",
        }
        data = None
        if body is not None:
            data = json.dumps(body).encode("utf-8")
            headers["Content-Type"] = "application/json"

        request = urllib.request.Request(
            self.base_url + path, data=data, headers=headers, method=method
        )
        operation = f"{method} {path}"
        try:
            response: HTTPResponse = urllib.request.urlopen(request, timeout=self.timeout)
        except urllib.error.HTTPError as exc:
            raise TransportFailure(operation, RuntimeError(f"HTTP {exc.code}")) from exc
        except urllib.error.URLError as exc:
            raise TransportFailure(operation, exc) from exc

        with response:
            raw = response.read()
        if not raw:
            return None
        try:
            return json.loads(raw.decode("utf-8"))
        except ValueError as exc:
            raise TransportFailure(operation, exc) from exc


def _q(segment: str) -> str:
    return urllib.parse.quote(segment, safe="")
