# core/streaming.py
import asyncio
from typing import Any, AsyncIterator, Final, Sequence
from core.verification_pipeline import verify_claims
from model.api import StreamEvent
from model.source import Source
from util.types import ErrorPayload, ProgressPayload
import logging

logger = logging.getLogger(__name__)

_FINISHED: Final[object] = object()


async def verify_claims_stream(
    answer: str, sources: Sequence[Source], **options: Any
) -> AsyncIterator[StreamEvent]:
    """
    Run verify_claims in the background and emit:
      - progress events as extraction, evidence and each claim finish
      - one result event carrying the serialized VerificationOutput
      - or one error event if the run itself failed
    Closing the generator early cancels the run.
    """
    events: asyncio.Queue = asyncio.Queue()

    def _on_progress(payload: ProgressPayload) -> None:
        events.put_nowait(StreamEvent(type="progress", payload=dict(payload)))

    task = asyncio.create_task(
        verify_claims(answer, sources, on_progress=_on_progress, **options)
    )
    task.add_done_callback(lambda _: events.put_nowait(_FINISHED))

    try:
        while True:
            item = await events.get()
            if item is _FINISHED:
                break
            yield item

        error = task.exception()
        if error is not None:
            logger.error("stream.verify.error", exc_info=error)
            payload = ErrorPayload(message="Verification failed")
            yield StreamEvent(type="error", payload=dict(payload))
            return

        yield StreamEvent(type="result", payload=task.result().model_dump(mode="json"))
        logger.info("stream.done")
    finally:
        if not task.done():
            task.cancel()
