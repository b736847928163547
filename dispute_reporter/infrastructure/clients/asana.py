"""Asana REST client for filing report tasks"""

import logging
from datetime import date
from pathlib import Path

import httpx

from dispute_reporter.config import settings
from dispute_reporter.domain.exceptions import DeliveryError

logger = logging.getLogger(__name__)


class AsanaClient:
    """Client for creating tasks and uploading attachments"""

    def __init__(
        self,
        access_token: str | None = None,
        project_id: str | None = None,
        assignee_id: str | None = None,
        base_url: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.access_token = access_token or settings.asana_access_token
        self.project_id = project_id or settings.asana_project_id
        self.assignee_id = assignee_id or settings.asana_assignee_id
        self.base_url = base_url or settings.asana_api_base
        self.timeout = timeout or settings.http_timeout_seconds
        self.transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.base_url,
            headers={"Authorization": f"Bearer {self.access_token}"},
            timeout=self.timeout,
            transport=self.transport,
        )

    async def create_task(self, title: str, notes: str, due_on: date) -> str:
        """
        Create a task in the configured project.

        Returns:
            The new task's gid

        Raises:
            DeliveryError: On timeout, HTTP errors, or invalid response
        """
        task = {
            "name": title,
            "notes": notes,
            "projects": [self.project_id],
            "due_on": due_on.isoformat(),
        }
        if self.assignee_id:
            task["assignee"] = self.assignee_id

        async with self._client() as client:
            try:
                response = await client.post("/tasks", json={"data": task})
                response.raise_for_status()
                task_id = response.json()["data"]["gid"]
            except httpx.TimeoutException as e:
                raise DeliveryError(f"Asana API timeout after {self.timeout}s") from e
            except httpx.HTTPStatusError as e:
                raise DeliveryError(f"Asana task creation failed: {e.response.status_code}") from e
            except httpx.RequestError as e:
                raise DeliveryError(f"Asana API unreachable: {e}") from e
            except (KeyError, ValueError, TypeError) as e:
                raise DeliveryError(f"Invalid task response from Asana: {e}") from e

        logger.info("Created Asana task", extra={"task_id": task_id})
        return task_id

    async def attach_file(self, task_id: str, path: Path) -> None:
        """
        Upload a file as an attachment of `task_id`.

        Raises:
            DeliveryError: If the file cannot be read or the upload fails
        """
        try:
            content = path.read_bytes()
        except OSError as e:
            raise DeliveryError(f"Could not read attachment {path.name}: {e}") from e

        async with self._client() as client:
            try:
                response = await client.post(
                    "/attachments",
                    data={"parent": task_id},
                    files={"file": (path.name, content, "text/csv")},
                )
                response.raise_for_status()
            except httpx.TimeoutException as e:
                raise DeliveryError(f"Asana upload timeout after {self.timeout}s") from e
            except httpx.HTTPStatusError as e:
                raise DeliveryError(f"Asana upload failed: {e.response.status_code}") from e
            except httpx.RequestError as e:
                raise DeliveryError(f"Asana API unreachable: {e}") from e

        logger.info("Uploaded report to Asana task", extra={"task_id": task_id, "file_name": path.name})
