"""Doctor search agent executor.

Drives one task through ``working`` to ``completed`` or ``failed``:
extract parameters, query the directory, format the result and publish it.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

import logfire

from .config import RequirementPolicy
from .errors import COLLABORATOR_ERROR, INTERNAL_ERROR, InvalidParamsError
from .events import EventQueue, TaskUpdater
from .extraction import extract_search_query
from .formatting import build_search_result, format_results_text
from .models import DoctorRecord
from .schemas import DataPart, Message, Task, TextPart
from .search import DoctorSearch

logger = logging.getLogger(__name__)

# Configure Logfire for observability
# 'if-token-present' means nothing will be sent if logfire is not configured
logfire.configure(send_to_logfire="if-token-present")

ARTIFACT_NAME = "SearchResults"
INTERNAL_ERROR_MESSAGE = "Internal error during doctor search"


@dataclass
class RequestContext:
    """Everything the executor needs to know about one message/send call."""

    message: Message
    task_id: str
    context_id: str
    current_task: Task | None = None
    metadata: dict[str, Any] = field(default_factory=dict)

    def get_user_input(self) -> str:
        return self.message.text()


class DoctorSearchExecutor:
    """Runs doctor searches for incoming messages.

    Failures never escape ``execute``: invalid parameters, directory errors
    and unexpected exceptions all end the task in ``failed`` with an error
    code on the status.
    """

    def __init__(
        self,
        backend: DoctorSearch,
        policy: RequirementPolicy = RequirementPolicy.ZIPCODE_OR_LASTNAME,
    ) -> None:
        self.backend = backend
        self.policy = policy

    async def execute(self, context: RequestContext, event_queue: EventQueue) -> None:
        updater = TaskUpdater(event_queue, context.task_id, context.context_id)

        with logfire.span("doctor search", task_id=context.task_id):
            try:
                updater.start_work()
                await self._run(context, updater)
            except Exception:
                logger.exception("[Task %s] Error during doctor search", context.task_id)
                updater.failed(INTERNAL_ERROR, INTERNAL_ERROR_MESSAGE)

    async def _run(self, context: RequestContext, updater: TaskUpdater) -> None:
        task_id = context.task_id
        logger.info("[Task %s] Processing query: '%s'", task_id, context.get_user_input()[:80])

        try:
            query = extract_search_query(context.message, context.metadata, policy=self.policy)
        except InvalidParamsError as e:
            logger.info("[Task %s] Missing search parameters", task_id)
            logfire.info("search rejected", task_id=task_id, reason=e.message)
            updater.failed(e.code, e.message)
            return

        logger.info("[Task %s] Search params: %s", task_id, query.model_dump(exclude_none=True))
        response = await self.backend.search(query)

        if not response.ok:
            logger.warning(
                "[Task %s] Doctor directory returned %s: %s",
                task_id,
                response.status_code,
                response.result,
            )
            logfire.info("search failed", task_id=task_id, status_code=response.status_code)
            updater.failed(COLLABORATOR_ERROR, str(response.result))
            return

        rows = response.result if isinstance(response.result, list) else []
        records = [DoctorRecord.from_row(row) for row in rows]
        text = format_results_text(records)
        result = build_search_result(records, query)

        updater.add_artifact(
            [
                TextPart(text=text),
                DataPart(data=result.model_dump(mode="json", exclude_none=True)),
            ],
            name=ARTIFACT_NAME,
        )
        updater.complete(updater.new_agent_message(text))

        logger.info("[Task %s] Completed with %d doctors", task_id, len(records))
        logfire.info("search completed", task_id=task_id, count=len(records))
