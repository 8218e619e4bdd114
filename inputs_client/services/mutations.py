"""
Bulk Mutation Service
Applies a named action to a list of inputs in a single PATCH request.
"""
from typing import Awaitable, Callable, Dict, Sequence

import structlog

from inputs_client.constants import INPUTS_PATH
from inputs_client.models.schemas import RecordCollection
from inputs_client.services.formatting import RecordLike, format_record
from inputs_client.services.transport import HttpTransport

logger = structlog.get_logger()

Executor = Callable[[Callable[[Dict[str, str]], Awaitable]], Awaitable]


class BulkMutation:
    """
    Shared request path for every bulk update action.

    Adding an action only needs a new action name; see the constants module
    for the known ones.
    """

    def __init__(self, transport: HttpTransport, with_auth: Executor):
        self.transport = transport
        self.with_auth = with_auth

    def build_body(self, action: str, records: Sequence[RecordLike]) -> dict:
        """Request body for an action; media is never re-sent."""
        return {
            "action": action,
            "records": [format_record(record, include_media=False) for record in records],
        }

    async def mutate(self, action: str, records: Sequence[RecordLike]) -> RecordCollection:
        """
        Apply an action to records.

        Args:
            action: Action name, e.g. "merge_concepts"
            records: Records carrying at least an id

        Returns:
            RecordCollection of the updated records

        Raises:
            RemoteRejection: The service refused the update
        """
        data = self.build_body(action, records)
        logger.info("Applying bulk mutation", action=action, count=len(data["records"]))

        async def send(headers):
            return await self.transport.request("PATCH", INPUTS_PATH, headers=headers, json=data)

        body = await self.with_auth(send)
        return RecordCollection.from_raw(body.get("records"))
