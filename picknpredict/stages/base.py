from __future__ import annotations
import asyncio
import logging
from enum import IntEnum
from typing import Any, Callable, Optional

from picknpredict.context import PipelineContext
from picknpredict.errors import NoticeChannel, RemoteFailure, StaleResult, WizardError

logger = logging.getLogger(__name__)


class Stage(IntEnum):
    UPLOAD = 1
    PREPROCESS = 2
    SPLIT = 3
    MODEL = 4
    RESULTS = 5

    @property
    def title(self) -> str:
        return _TITLES[self]


_TITLES = {
    Stage.UPLOAD: "Upload",
    Stage.PREPROCESS: "Preprocess",
    Stage.SPLIT: "Split",
    Stage.MODEL: "Model",
    Stage.RESULTS: "Results",
}

CompleteFn = Callable[[Stage, PipelineContext], None]


class StageController:
    """Per-stage scratch state plus the calls that can finish the stage.

    Built by the wizard when the stage becomes active and closed when it stops
    being active. Once closed, results that arrive late are dropped.
    """

    stage: Stage

    def __init__(
        self,
        context: PipelineContext,
        client: Any,
        on_complete: CompleteFn,
        notices: Optional[NoticeChannel] = None,
    ):
        self.context = context
        self.client = client
        self._on_complete = on_complete
        self.notices = notices if notices is not None else NoticeChannel()
        self.processing = False
        self.error: Optional[str] = None
        self.closed = False

    def close(self) -> None:
        self.closed = True

    async def _remote(self, operation: Callable[..., Any], *args, **kwargs) -> Any:
        """Run a blocking client call off the loop; raise ``StaleResult`` if we were closed meanwhile."""
        self.processing = True
        self.error = None
        try:
            result = await asyncio.to_thread(operation, *args, **kwargs)
        except RemoteFailure:
            if self.closed:
                raise StaleResult("stage closed while request was in flight")
            raise
        finally:
            if not self.closed:
                self.processing = False
        if self.closed:
            raise StaleResult("stage closed while request was in flight")
        return result

    def _fail(self, exc: WizardError) -> None:
        if isinstance(exc, StaleResult) or self.closed:
            logger.debug("%s: dropped late result (%s)", self.stage.title, exc.message)
            return
        self.error = exc.message
        if isinstance(exc, RemoteFailure):
            self.notices.post(exc.message, kind="error")

    def _finish(self, new_context: PipelineContext) -> bool:
        if self.closed:
            return False
        self._on_complete(self.stage, new_context)
        return True
