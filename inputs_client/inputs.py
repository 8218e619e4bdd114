"""
Inputs Client
Public entry point for the inputs collection: list, create, get, delete,
bulk concept updates, search and status.
"""
from collections.abc import Iterable
from typing import Any, Dict, List, Optional, Sequence, Union

import httpx
import structlog

from inputs_client.config import Settings, get_settings
from inputs_client.constants import (
    DELETE_CONCEPTS,
    DELETE_RECORDS,
    INPUT_PATH,
    INPUTS_PATH,
    INPUTS_STATUS_PATH,
    MERGE_CONCEPTS,
    OVERWRITE_CONCEPTS,
    SEARCH_PATH,
    replace_vars,
)
from inputs_client.models.schemas import Record, RecordCollection
from inputs_client.services.auth import AuthExecutor
from inputs_client.services.batching import (
    BatchReport,
    aggregate_batches,
    dispatch_all,
    dispatch_fail_fast,
    plan_batches,
)
from inputs_client.services.formatting import RecordLike, format_record
from inputs_client.services.mutations import BulkMutation
from inputs_client.services.query_compiler import PredicateArg, QueryCompiler
from inputs_client.services.transport import HttpTransport

logger = structlog.get_logger()


def _check_input_id(input_id: Any) -> None:
    # A blank id would address the collection path instead of one input
    if input_id is None or (isinstance(input_id, str) and not input_id.strip()):
        raise ValueError(f"Invalid input id: {input_id!r}")


def _as_record_list(records: Any) -> List[RecordLike]:
    """One record (dict, Record or URL string) or any iterable of them."""
    if isinstance(records, (str, bytes, dict, Record)) or not isinstance(records, Iterable):
        return [records]
    return list(records)


class InputsClient:
    """Client for the inputs collection of the recognition API."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        http_client: Optional[httpx.AsyncClient] = None,
        with_auth=None,
    ):
        """
        Args:
            settings: Client settings (default: loaded from the environment)
            http_client: Preconfigured httpx.AsyncClient to send requests with
            with_auth: Replacement for the default AuthExecutor; any callable
                taking ``fn(headers)`` and returning its awaited result
        """
        self.settings = settings or get_settings()
        self.transport = HttpTransport(self.settings, client=http_client)
        self.with_auth = with_auth or AuthExecutor(self.transport, self.settings)
        self.mutations = BulkMutation(self.transport, self.with_auth)
        self.query_compiler = QueryCompiler()

    async def __aenter__(self) -> "InputsClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self.transport.aclose()

    async def _call(self, method: str, path: str, **kwargs: Any) -> Any:
        async def send(headers):
            return await self.transport.request(method, path, headers=headers, **kwargs)

        return await self.with_auth(send)

    # ─────────────────────────────────────────────────────────────
    # Reads
    # ─────────────────────────────────────────────────────────────

    async def list(self, page: Optional[int] = None, per_page: Optional[int] = None) -> RecordCollection:
        """List inputs in the app, one page at a time."""
        body = await self._call("GET", INPUTS_PATH, params={"page": page, "per_page": per_page})
        return RecordCollection.from_raw(body.get("records"))

    async def get(self, id: str) -> Record:
        """Get one input by id."""
        body = await self._call("GET", replace_vars(INPUT_PATH, id=id))
        return Record.from_raw(body["record"])

    async def get_status(self) -> Dict[str, Any]:
        """Counts of inputs by processing state (processed, to process, errors)."""
        body = await self._call("GET", INPUTS_STATUS_PATH)
        return body.get("counts", body)

    # ─────────────────────────────────────────────────────────────
    # Create
    # ─────────────────────────────────────────────────────────────

    def _plan_create(self, records: Union[RecordLike, Iterable[RecordLike]]) -> List[List[dict]]:
        formatted = [format_record(record, include_media=True) for record in _as_record_list(records)]
        batches = plan_batches(formatted, self.settings.max_batch_size)
        logger.info(
            "Creating inputs",
            count=len(formatted),
            batches=len(batches),
            max_batch_size=self.settings.max_batch_size,
        )
        return batches

    async def _send_create_batch(self, index: int, batch: List[dict]) -> RecordCollection:
        data = {"records": batch}

        async def send(headers):
            return await self.transport.request("POST", INPUTS_PATH, headers=headers, json=data)

        body = await self.with_auth(send)
        logger.debug("Batch created", batch=index, size=len(batch))
        return RecordCollection.from_raw(body.get("records"))

    async def create(self, records: Union[RecordLike, Iterable[RecordLike]]) -> RecordCollection:
        """
        Add one input or many.

        More than max_batch_size records are split into several requests sent
        concurrently; the result lists the created records in input order as
        if a single request had been made.

        If any batch fails, its exception is raised unchanged. Batches already
        applied are not rolled back and batches still in flight keep running;
        use create_report() to learn which batches succeeded.

        Args:
            records: Record, dict or image URL, or a list (or any other
                iterable, such as a generator) of them

        Returns:
            RecordCollection of the created inputs
        """
        batches = self._plan_create(records)
        results = await dispatch_fail_fast(batches, self._send_create_batch)
        return aggregate_batches(results)

    async def create_report(self, records: Union[RecordLike, Iterable[RecordLike]]) -> BatchReport:
        """
        Like create(), but waits for every batch and reports each outcome.

        Returns:
            BatchReport; call raise_for_failures() to turn failed batches
            into a PartialBatchFailure
        """
        batches = self._plan_create(records)
        return await dispatch_all(batches, self._send_create_batch)

    # ─────────────────────────────────────────────────────────────
    # Updates
    # ─────────────────────────────────────────────────────────────

    async def update(self, records: Sequence[RecordLike], action: str) -> RecordCollection:
        """Apply a bulk action (e.g. "merge_concepts") to inputs."""
        return await self.mutations.mutate(action, records)

    async def add_concepts(self, records: Sequence[RecordLike]) -> RecordCollection:
        """Merge concepts into existing inputs."""
        return await self.mutations.mutate(MERGE_CONCEPTS, records)

    async def delete_concepts(self, records: Sequence[RecordLike]) -> RecordCollection:
        """Remove concepts from existing inputs."""
        return await self.mutations.mutate(DELETE_CONCEPTS, records)

    async def overwrite_concepts(self, records: Sequence[RecordLike]) -> RecordCollection:
        """Replace the concepts of existing inputs."""
        return await self.mutations.mutate(OVERWRITE_CONCEPTS, records)

    # ─────────────────────────────────────────────────────────────
    # Delete
    # ─────────────────────────────────────────────────────────────

    async def delete(self, id: Union[str, Sequence[str], None] = None) -> Any:
        """
        Delete one input, a list of inputs, or every input.

        Args:
            id: Input id, list of ids, or None to delete ALL inputs of the app

        Returns:
            Raw service response; a RecordCollection for a list of ids
        """
        if id is None:
            if not self.settings.allow_implicit_delete_all:
                raise ValueError(
                    "delete() without an id deletes every input; call delete_all(confirm=True)"
                )
            return await self._delete_all()

        if isinstance(id, (list, tuple)):
            if not id:
                raise ValueError("No input ids given")
            for input_id in id:
                _check_input_id(input_id)
            return await self.mutations.mutate(DELETE_RECORDS, [{"id": input_id} for input_id in id])

        _check_input_id(id)
        return await self._call("DELETE", replace_vars(INPUT_PATH, id=id))

    async def delete_all(self, confirm: bool = False) -> Any:
        """Delete every input of the app. Requires confirm=True."""
        if not confirm:
            raise ValueError("delete_all() removes every input; pass confirm=True")
        return await self._delete_all()

    async def _delete_all(self) -> Any:
        logger.warning("Deleting all inputs")
        return await self._call("DELETE", INPUTS_PATH)

    # ─────────────────────────────────────────────────────────────
    # Search
    # ─────────────────────────────────────────────────────────────

    async def search(
        self,
        ands: PredicateArg = None,
        ors: PredicateArg = None,
        page: Optional[int] = None,
        per_page: Optional[int] = None,
    ) -> RecordCollection:
        """
        Search inputs or outputs by concepts or images.

        Args:
            ands: Predicate(s) that must all match. A dict with "name" is a
                concept term, anything else an image term (url / base64, crop)
            ors: Predicate(s) of which at least one must match
            page: Page number
            per_page: Results per page

        Returns:
            RecordCollection of the hits, each record carrying its score
        """
        data = self.query_compiler.compile(ands, ors, page=page, per_page=per_page)
        body = await self._call("POST", SEARCH_PATH, json=data)
        hits = RecordCollection.from_raw(body.get("hits"))
        logger.info("Search complete", results=len(hits))
        return hits


# Singleton instance
_inputs_client: Optional[InputsClient] = None


def get_inputs_client() -> InputsClient:
    """Get singleton inputs client configured from the environment."""
    global _inputs_client
    if _inputs_client is None:
        _inputs_client = InputsClient()
    return _inputs_client
