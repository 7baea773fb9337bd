"""
Workflow Persistence — where validated graphs are loaded from and saved to.

``WorkflowPersistenceAdapter`` is the boundary the edit session talks
to. Two implementations:

* ``JsonFileWorkflowStore`` — one JSON file per workflow on local disk.
* ``HttpWorkflowService``   — the remote workflow service over HTTP.

Both raise ``WorkflowPersistenceError`` for I/O and transport failures.
Structural problems are never reported through this class.
"""

from __future__ import annotations

import asyncio
import json
from abc import ABC, abstractmethod
from logging import getLogger
from pathlib import Path
from typing import Any, Dict, List, Optional

import httpx
from pydantic import ValidationError

from flowbuilder.config import BuilderConfig, get_builder_config
from flowbuilder.workflow.nodes.tool_nodes import ToolDefinition
from flowbuilder.workflow.workflow_model import WorkflowDefinition, WorkflowGraph

logger = getLogger(__name__)

_DEFAULT_DIR = Path(__file__).parent.parent.parent / "workflows"


class WorkflowPersistenceError(RuntimeError):
    """Loading or saving failed for transport / storage reasons."""

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class WorkflowPersistenceAdapter(ABC):
    """Load and save the graph of one workflow."""

    @abstractmethod
    async def load(self, workflow_id: str) -> Optional[WorkflowGraph]:
        """Return the stored graph, or ``None`` if nothing is saved yet."""

    @abstractmethod
    async def save(self, workflow_id: str, graph: WorkflowGraph) -> Dict[str, Any]:
        """Persist ``graph``; returns an acknowledgement payload."""


def _parse_visual_steps(workflow_id: str, raw: Any) -> Optional[WorkflowGraph]:
    if not raw:
        return None
    try:
        return WorkflowGraph.model_validate(raw)
    except ValidationError as e:
        logger.warning(f"Stored graph for workflow {workflow_id} is malformed, ignoring it: {e}")
        return None


# ============================================================================
# Local JSON files
# ============================================================================


class JsonFileWorkflowStore(WorkflowPersistenceAdapter):
    """Persist WorkflowDefinition records as JSON files.

    File writes are serialised by an asyncio lock.
    """

    def __init__(self, storage_dir: Optional[Path] = None) -> None:
        self._dir = storage_dir or get_builder_config().storage_path() or _DEFAULT_DIR
        self._dir.mkdir(parents=True, exist_ok=True)
        self._lock = asyncio.Lock()
        logger.info(f"JsonFileWorkflowStore initialized at {self._dir}")

    # ── Adapter ──

    async def load(self, workflow_id: str) -> Optional[WorkflowGraph]:
        record = await asyncio.to_thread(self.get_definition, workflow_id)
        if record is None:
            return None
        if not record.visual_steps.nodes:
            return None
        return record.visual_steps

    async def save(self, workflow_id: str, graph: WorkflowGraph) -> Dict[str, Any]:
        async with self._lock:
            record = await asyncio.to_thread(self._store_graph, workflow_id, graph)
        return {"id": record.id, "updated_at": record.updated_at}

    def _store_graph(self, workflow_id: str, graph: WorkflowGraph) -> WorkflowDefinition:
        record = self.get_definition(workflow_id) or WorkflowDefinition(id=workflow_id)
        record.visual_steps = graph
        self.write_definition(record)
        return record

    # ── Records ──

    def create(self, name: str, description: str = "", agent_id: Optional[int] = None) -> WorkflowDefinition:
        """Create and store a new, empty workflow record."""
        from flowbuilder.workflow.templates import create_blank_graph

        record = WorkflowDefinition(
            name=name,
            description=description,
            agent_id=agent_id,
            visual_steps=create_blank_graph(),
        )
        self.write_definition(record)
        return record

    def get_definition(self, workflow_id: str) -> Optional[WorkflowDefinition]:
        path = self._path_for(workflow_id)
        if not path.exists():
            return None
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            logger.error(f"Failed to read workflow {workflow_id}: {e}")
            raise WorkflowPersistenceError(f"Failed to read workflow {workflow_id}: {e}") from e

        steps = _parse_visual_steps(workflow_id, data.pop("visual_steps", None))
        try:
            record = WorkflowDefinition(**data)
        except ValidationError as e:
            raise WorkflowPersistenceError(f"Workflow record {workflow_id} is malformed: {e}") from e
        if steps is not None:
            record.visual_steps = steps
        return record

    def write_definition(self, record: WorkflowDefinition) -> None:
        record.touch()
        payload = record.model_dump(mode="json", exclude={"visual_steps"})
        payload["visual_steps"] = record.visual_steps.to_persisted()
        try:
            self._path_for(record.id).write_text(
                json.dumps(payload, indent=2, ensure_ascii=False),
                encoding="utf-8",
            )
        except OSError as e:
            logger.error(f"Failed to write workflow {record.id}: {e}")
            raise WorkflowPersistenceError(f"Failed to write workflow {record.id}: {e}") from e
        logger.info(f"Workflow saved: {record.name} ({record.id})")

    def delete(self, workflow_id: str) -> bool:
        """Delete a workflow record."""
        path = self._path_for(workflow_id)
        if path.exists():
            path.unlink()
            logger.info(f"Workflow deleted: {workflow_id}")
            return True
        return False

    def exists(self, workflow_id: str) -> bool:
        return self._path_for(workflow_id).exists()

    def list_all(self) -> List[WorkflowDefinition]:
        """List all stored workflow records, skipping unreadable files."""
        records: List[WorkflowDefinition] = []
        for path in sorted(self._dir.glob("*.json")):
            try:
                record = self.get_definition(path.stem)
            except WorkflowPersistenceError as e:
                logger.warning(f"Skipping malformed workflow file {path.name}: {e}")
                continue
            if record is not None:
                records.append(record)
        return records

    # ── Internals ──

    def _path_for(self, workflow_id: str) -> Path:
        # Sanitize ID for filesystem
        safe_id = "".join(c for c in str(workflow_id) if c.isalnum() or c in "-_")
        return self._dir / f"{safe_id}.json"


# ============================================================================
# Remote workflow service
# ============================================================================


def _decode(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError as e:
        url = response.request.url.path
        logger.error(f"{url} returned a non-JSON body (HTTP {response.status_code})")
        raise WorkflowPersistenceError(
            f"{url} returned a non-JSON body: {e}", status_code=response.status_code,
        ) from e


class HttpWorkflowService(WorkflowPersistenceAdapter):
    """Workflow service client.

    Endpoints::

        GET  /api/v1/workflows/{id}          → {..., "visual_steps": {...}}
        PUT  /api/v1/workflows/{id}          ← {"visual_steps": {...}, ...}
        GET  /api/v1/tools/?company_id=N     → [{name, parameters}, ...]
    """

    def __init__(
        self,
        config: Optional[BuilderConfig] = None,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self._config = config or get_builder_config()
        self._client = client or httpx.AsyncClient(
            base_url=self._config.api_base_url,
            timeout=self._config.request_timeout,
        )
        self._owns_client = client is None

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> "HttpWorkflowService":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    # ── Adapter ──

    async def load(self, workflow_id: str) -> Optional[WorkflowGraph]:
        response = await self._request("GET", f"/api/v1/workflows/{workflow_id}", allow_404=True)
        if response is None:
            return None
        body = _decode(response) or {}
        if not isinstance(body, dict):
            raise WorkflowPersistenceError(
                f"Workflow {workflow_id} response is not a JSON object",
                status_code=response.status_code,
            )
        return _parse_visual_steps(workflow_id, body.get("visual_steps"))

    async def save(
        self,
        workflow_id: str,
        graph: WorkflowGraph,
        details: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        payload: Dict[str, Any] = dict(details or {})
        payload["visual_steps"] = graph.to_persisted()
        response = await self._request("PUT", f"/api/v1/workflows/{workflow_id}", json=payload)
        logger.info(f"Workflow {workflow_id} saved to workflow service")
        ack = _decode(response) if response.content else {}
        return ack if isinstance(ack, dict) else {"result": ack}

    # ── Catalog ──

    async def fetch_tools(self) -> List[ToolDefinition]:
        """Fetch the company's tool definitions for the node catalogue."""
        company_id = str(self._config.company_id)
        response = await self._request(
            "GET",
            "/api/v1/tools/",
            params={"company_id": company_id},
            headers={"X-Company-ID": company_id},
        )
        items = _decode(response) or []
        if not isinstance(items, list):
            raise WorkflowPersistenceError(
                "Tool list response is not a JSON array", status_code=response.status_code,
            )
        tools: List[ToolDefinition] = []
        for item in items:
            try:
                tools.append(ToolDefinition.model_validate(item))
            except ValidationError as e:
                logger.warning(f"Skipping malformed tool definition: {e}")
        return tools

    # ── Internals ──

    async def _request(
        self, method: str, url: str, allow_404: bool = False, **kwargs: Any,
    ) -> Optional[httpx.Response]:
        try:
            response = await self._client.request(method, url, **kwargs)
        except httpx.HTTPError as e:
            logger.error(f"{method} {url} failed: {e}")
            raise WorkflowPersistenceError(f"{method} {url} failed: {e}") from e

        if allow_404 and response.status_code == 404:
            return None
        if response.is_error:
            logger.error(f"{method} {url} returned HTTP {response.status_code}")
            raise WorkflowPersistenceError(
                f"{method} {url} returned HTTP {response.status_code}",
                status_code=response.status_code,
            )
        return response
