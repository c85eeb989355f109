"""
HttpTaskDataSource — TaskDataSource over a REST task backend (httpx).

Endpoints (relative to DataSourceConfig.base_url):
    GET    /tasks          ?status&priority&category&sort&descending&cursor&limit
                           → {"items": [...], "next_cursor": str|null, "has_more": bool}
    GET    /tasks/search   ?q&limit → {"items": [...]}
    PATCH  /tasks/{id}     {"status": "..."} → task
    DELETE /tasks/{id}     → 2xx

Error mapping:
    404                      → NotFoundError (no retry)
    5xx / 429 / transport    → retried with exponential backoff, then DataSourceError
    other non-2xx            → DataSourceError (no retry)

Pull-only: subscribe() returns None.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Any, Dict, List, Optional

import httpx
from pydantic import ValidationError as PydanticValidationError

from taskdeck.datasource.base import SortSpec, TaskDataSource, TaskPage
from taskdeck.engine.config import DataSourceConfig
from taskdeck.engine.errors import DataSourceError, NotFoundError
from taskdeck.engine.logging import log, log_datasource_call
from taskdeck.records.enums import TaskStatus
from taskdeck.records.task import TaskRecord
from taskdeck.rules.filtering import FilterCriteria

logger = logging.getLogger("taskdeck.datasource.http")

RETRYABLE_STATUS = {429, 500, 502, 503, 504}


class HttpTaskDataSource(TaskDataSource):
    """
    REST client for the task backend.

    One pooled httpx.AsyncClient per instance; close() releases it.
    A pre-built client may be injected (tests pass one with MockTransport).
    """

    def __init__(
        self,
        config: Optional[DataSourceConfig] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self._config = config or DataSourceConfig()
        self._client = client
        self._owns_client = client is None

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            headers = {"Accept": "application/json"}
            if self._config.api_key:
                headers["Authorization"] = f"Bearer {self._config.api_key}"
            self._client = httpx.AsyncClient(
                base_url=self._config.base_url,
                headers=headers,
                limits=httpx.Limits(max_connections=10, max_keepalive_connections=5),
                timeout=httpx.Timeout(self._config.timeout, connect=10.0),
                follow_redirects=True,
            )
            logger.info(f"Created httpx client for {self._config.base_url}")
        return self._client

    async def close(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            logger.info(f"Closed httpx client for {self._config.base_url}")
        self._client = None

    # -----------------------------------------------------------------------
    # Request / retry
    # -----------------------------------------------------------------------

    @staticmethod
    def _calc_delay(attempt: int, base_delay: float) -> float:
        return base_delay * (2 ** attempt)

    async def _request(
        self,
        operation: str,
        method: str,
        path: str,
        *,
        params: Optional[Dict[str, Any]] = None,
        json: Optional[Dict[str, Any]] = None,
        task_id: Optional[str] = None,
    ) -> httpx.Response:
        client = self._get_client()
        max_retries = self._config.retry_count
        start_time = time.monotonic()
        last_error: Optional[str] = None
        last_status: Optional[int] = None

        for attempt in range(max_retries + 1):
            try:
                response = await client.request(method, path, params=params, json=json)
            except httpx.HTTPError as e:
                last_error = f"{type(e).__name__}: {e}"
                last_status = None
            else:
                last_status = response.status_code
                if response.is_success:
                    return response
                if response.status_code == 404:
                    self._log_failure(operation, start_time, task_id, "HTTP 404")
                    raise NotFoundError(
                        f"{operation}: task '{task_id}' not found" if task_id else f"{operation}: not found",
                        operation=operation,
                        status_code=404,
                        task_id=task_id,
                    )
                last_error = f"HTTP {response.status_code}"
                if response.status_code not in RETRYABLE_STATUS:
                    break

            if attempt < max_retries:
                delay = self._calc_delay(attempt, self._config.retry_delay)
                logger.warning(
                    f"{operation} failed ({last_error}), retrying in {delay}s "
                    f"(attempt {attempt + 1}/{max_retries})"
                )
                await asyncio.sleep(delay)

        self._log_failure(operation, start_time, task_id, last_error)
        raise DataSourceError(
            f"{operation} failed: {last_error}",
            operation=operation,
            status_code=last_status,
            task_id=task_id,
        )

    @staticmethod
    def _log_failure(operation: str, start_time: float, task_id: Optional[str], error: Optional[str]) -> None:
        duration_ms = (time.monotonic() - start_time) * 1000
        log(log_datasource_call(operation, duration_ms, success=False, task_id=task_id, error=error))

    @staticmethod
    def _parse_json(operation: str, response: httpx.Response) -> Any:
        try:
            return response.json()
        except ValueError as e:
            raise DataSourceError(
                f"{operation}: response is not JSON",
                operation=operation,
                status_code=response.status_code,
            ) from e

    @staticmethod
    def _parse_records(operation: str, items: Any) -> List[TaskRecord]:
        if not isinstance(items, list):
            raise DataSourceError(f"{operation}: expected a list of tasks", operation=operation)
        try:
            return [TaskRecord.model_validate(item) for item in items]
        except PydanticValidationError as e:
            raise DataSourceError(
                f"{operation}: malformed task payload ({e.error_count()} errors)",
                operation=operation,
            ) from e

    # -----------------------------------------------------------------------
    # TaskDataSource
    # -----------------------------------------------------------------------

    async def fetch_page(
        self,
        filters: FilterCriteria,
        sort: Optional[SortSpec],
        cursor: Optional[str],
        page_size: int,
    ) -> TaskPage:
        start_time = time.monotonic()
        params: Dict[str, Any] = filters.to_query_params()
        if sort is not None:
            params.update(sort.to_query_params())
        if cursor:
            params["cursor"] = cursor
        params["limit"] = page_size

        response = await self._request("fetch_page", "GET", "/tasks", params=params)
        body = self._parse_json("fetch_page", response)
        if not isinstance(body, dict):
            raise DataSourceError("fetch_page: expected an object", operation="fetch_page")
        records = self._parse_records("fetch_page", body.get("items", []))
        next_cursor = body.get("next_cursor")
        has_more = bool(body.get("has_more", next_cursor is not None))

        log(log_datasource_call(
            "fetch_page", (time.monotonic() - start_time) * 1000,
            success=True, record_count=len(records),
        ))
        return TaskPage(records=tuple(records), next_cursor=next_cursor, has_more=has_more)

    async def search(self, query: str, limit: int) -> List[TaskRecord]:
        start_time = time.monotonic()
        response = await self._request(
            "search", "GET", "/tasks/search", params={"q": query, "limit": limit}
        )
        body = self._parse_json("search", response)
        items = body.get("items", []) if isinstance(body, dict) else body
        records = self._parse_records("search", items)[:limit]
        log(log_datasource_call(
            "search", (time.monotonic() - start_time) * 1000,
            success=True, record_count=len(records),
        ))
        return records

    async def mutate_status(self, task_id: str, status: TaskStatus) -> TaskRecord:
        start_time = time.monotonic()
        response = await self._request(
            "mutate_status", "PATCH", f"/tasks/{task_id}",
            json={"status": status.value}, task_id=task_id,
        )
        body = self._parse_json("mutate_status", response)
        record = self._parse_records("mutate_status", [body])[0]
        log(log_datasource_call(
            "mutate_status", (time.monotonic() - start_time) * 1000,
            success=True, task_id=task_id,
        ))
        return record

    async def delete(self, task_id: str) -> None:
        start_time = time.monotonic()
        await self._request("delete", "DELETE", f"/tasks/{task_id}", task_id=task_id)
        log(log_datasource_call(
            "delete", (time.monotonic() - start_time) * 1000,
            success=True, task_id=task_id,
        ))
