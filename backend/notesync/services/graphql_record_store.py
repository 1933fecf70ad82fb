"""
NoteSync Backend: GraphQL Record Store
======================================

What:  RecordStore implementation talking to a remote GraphQL API that
       exposes listNotes / createNote / deleteNote (AppSync-style schema).
How:   POSTs {query, variables} with httpx; authenticates with the
       x-api-key header; retries transient failures with tenacity.
Who:   Selected when RECORD_STORE_BACKEND=graphql.

Resilience Strategy:
    Retried (exponential backoff + jitter, RETRY_MAX_ATTEMPTS attempts):
        - httpx transport errors (connect/read timeouts, resets)
        - HTTP 5xx responses
    Not retried:
        - HTTP 4xx (auth, bad request)
        - GraphQL `errors` in a 200 response
    When retries are exhausted the last error becomes RecordStoreError.
    The synchronizer above never retries on its own.

Operations:
    listNotes { items { id name description image } }
    createNote(input: {name, description, image?}) { id }
    deleteNote(input: {id}) { id }
"""

import logging
import uuid
from typing import Any, Dict, List, Optional

import httpx
from tenacity import (
    AsyncRetrying,
    before_sleep_log,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential_jitter,
)
from tenacity.wait import wait_base

from notesync.config import settings
from notesync.exceptions import RecordStoreError
from notesync.schemas.note import Draft, ImageKey, Note
from notesync.services.store_base import RecordStore

logger = logging.getLogger(__name__)


LIST_NOTES = """
query ListNotes {
  listNotes {
    items {
      id
      name
      description
      image
    }
  }
}
"""

CREATE_NOTE = """
mutation CreateNote($input: CreateNoteInput!) {
  createNote(input: $input) {
    id
    name
    description
    image
  }
}
"""

DELETE_NOTE = """
mutation DeleteNote($input: DeleteNoteInput!) {
  deleteNote(input: $input) {
    id
  }
}
"""

HEALTH_QUERY = "query Health { __typename }"


def _is_transient(exc: BaseException) -> bool:
    """Transport failures and 5xx responses are worth another attempt."""
    if isinstance(exc, httpx.TransportError):
        return True
    if isinstance(exc, httpx.HTTPStatusError):
        return exc.response.status_code >= 500
    return False


def item_to_note(item: Dict[str, Any]) -> Note:
    """Convert a listNotes item; null or empty image means no image."""
    image = item.get("image")
    return Note(
        id=item["id"],
        name=item.get("name") or "",
        description=item.get("description") or "",
        image=ImageKey(key=image) if image else None,
    )


class GraphQLRecordStore(RecordStore):
    """
    httpx-based GraphQL record store.

    Lifecycle:
        Owns its AsyncClient unless one is injected; aclose() closes an owned
        client and is called from the app lifespan on shutdown.
    """

    def __init__(
        self,
        url: Optional[str] = None,
        api_key: Optional[str] = None,
        client: Optional[httpx.AsyncClient] = None,
        max_attempts: Optional[int] = None,
        wait: Optional[wait_base] = None,
    ):
        """
        Args:
            url: GraphQL endpoint (defaults to settings.graphql_url).
            api_key: Value for the x-api-key header (defaults to settings).
            client: Injected AsyncClient (tests use httpx.MockTransport).
            max_attempts: Override settings.retry_max_attempts.
            wait: Override the backoff strategy (tests use wait_none()).
        """
        self.url = url or settings.graphql_url
        key = settings.graphql_api_key if api_key is None else api_key

        self._headers = {"Content-Type": "application/json"}
        if key:
            self._headers["x-api-key"] = key

        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=settings.graphql_timeout)

        self.max_attempts = max_attempts or settings.retry_max_attempts
        self._wait = wait or wait_exponential_jitter(
            initial=settings.retry_min_wait,
            max=settings.retry_max_wait,
            jitter=1,
        )

        logger.info(
            "GraphQLRecordStore initialized with url=%s, max_attempts=%d",
            self.url,
            self.max_attempts,
        )

    def _retrying(self) -> AsyncRetrying:
        return AsyncRetrying(
            retry=retry_if_exception(_is_transient),
            stop=stop_after_attempt(self.max_attempts),
            wait=self._wait,
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True,
        )

    async def _post(self, body: Dict[str, Any]) -> Dict[str, Any]:
        """POST one GraphQL request, retrying transient failures."""
        async for attempt in self._retrying():
            with attempt:
                response = await self._client.post(self.url, json=body, headers=self._headers)
                response.raise_for_status()
        return response.json()

    async def _execute(
        self,
        operation: str,
        query: str,
        variables: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        """
        Run a GraphQL operation and return its `data` object.

        Raises:
            RecordStoreError: HTTP failure after retries, undecodable body,
                GraphQL errors, or a response without data.
        """
        request_id = str(uuid.uuid4())[:8]
        body: Dict[str, Any] = {"query": query}
        if variables is not None:
            body["variables"] = variables

        logger.debug("[%s] GraphQL %s -> %s", request_id, operation, self.url)

        try:
            payload = await self._post(body)
        except httpx.HTTPStatusError as e:
            logger.error(
                "[%s] GraphQL %s failed with HTTP %d",
                request_id,
                operation,
                e.response.status_code,
            )
            raise RecordStoreError(
                message="The note service rejected the request. Please try again later.",
                operation=operation,
                context={"request_id": request_id, "status_code": e.response.status_code},
            )
        except httpx.HTTPError as e:
            logger.error("[%s] GraphQL %s transport error: %s", request_id, operation, str(e))
            raise RecordStoreError(
                message="The note service is unreachable. Please try again later.",
                operation=operation,
                context={"request_id": request_id, "error_type": type(e).__name__},
            )
        except ValueError as e:
            logger.error("[%s] GraphQL %s returned invalid JSON: %s", request_id, operation, str(e))
            raise RecordStoreError(
                message="The note service returned an invalid response.",
                operation=operation,
                context={"request_id": request_id},
            )

        errors = payload.get("errors")
        if errors:
            first = errors[0]
            message = first.get("message", "Unknown GraphQL error") if isinstance(first, dict) else str(first)
            logger.error("[%s] GraphQL %s returned errors: %s", request_id, operation, errors)
            raise RecordStoreError(
                message=message,
                operation=operation,
                context={"request_id": request_id, "errors": errors},
            )

        data = payload.get("data")
        if not isinstance(data, dict):
            raise RecordStoreError(
                message="The note service returned no data.",
                operation=operation,
                context={"request_id": request_id},
            )
        return data

    async def list(self) -> List[Note]:
        data = await self._execute("list", LIST_NOTES)
        connection = data.get("listNotes") or {}
        items = connection.get("items") or []
        # AppSync may return null entries for items the caller cannot read
        notes = [item_to_note(item) for item in items if item]
        logger.debug("Listed %d notes from GraphQL", len(notes))
        return notes

    async def create(self, draft: Draft) -> str:
        data = await self._execute("create", CREATE_NOTE, {"input": draft.record_fields()})
        created = data.get("createNote") or {}
        note_id = created.get("id")
        if not note_id:
            raise RecordStoreError(
                message="The note service did not return an identifier for the new note.",
                operation="create",
            )
        logger.info("Note record created: %s", note_id)
        return note_id

    async def delete(self, note_id: str) -> None:
        await self._execute("delete", DELETE_NOTE, {"input": {"id": note_id}})
        logger.info("Note record deleted: %s", note_id)

    async def health_check(self) -> bool:
        try:
            await self._execute("health", HEALTH_QUERY)
            return True
        except RecordStoreError as e:
            logger.warning("GraphQL health check failed: %s", e.message)
            return False

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()
