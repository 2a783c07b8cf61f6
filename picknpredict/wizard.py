"""
picknpredict/wizard.py

The wizard state machine: ``(current_stage, max_stage_reached, context)``.

Stages 1..5 run in order. A stage moves the wizard forward only by completing
(``complete``); the user can jump back to any stage already reached, and
``reset`` starts over from an empty context. The active StageController is
rebuilt from the context every time a stage is entered and closed when it is
left, so late responses for a stage that is gone are dropped by that stage.
"""
from __future__ import annotations
import logging
from typing import Any, Callable, Dict, Optional

from picknpredict import config
from picknpredict.context import EMPTY_CONTEXT, PipelineContext
from picknpredict.errors import NoticeChannel
from picknpredict.stages.base import Stage, StageController
from picknpredict.stages.model_select import ModelSelectStage
from picknpredict.stages.preprocess import PreprocessStage
from picknpredict.stages.results import ResultsStage
from picknpredict.stages.split import SplitStage
from picknpredict.stages.upload import UploadStage

logger = logging.getLogger(__name__)

FIRST_STAGE = Stage.UPLOAD
LAST_STAGE = Stage.RESULTS


class WizardController:
    def __init__(self, client: Any, auto_apply_delay: float = config.AUTO_APPLY_DELAY):
        self.client = client
        self.notices = NoticeChannel()
        self._factories: Dict[Stage, Callable[..., StageController]] = {
            Stage.UPLOAD: UploadStage,
            Stage.PREPROCESS: lambda *a, **kw: PreprocessStage(*a, delay=auto_apply_delay, **kw),
            Stage.SPLIT: SplitStage,
            Stage.MODEL: ModelSelectStage,
            Stage.RESULTS: ResultsStage,
        }
        self.current_stage = FIRST_STAGE
        self.max_stage_reached = FIRST_STAGE
        self.context: PipelineContext = EMPTY_CONTEXT
        self._stage: Optional[StageController] = None
        self._enter()

    @property
    def stage(self) -> StageController:
        """Controller for the active stage."""
        return self._stage

    @property
    def state(self):
        return (self.current_stage, self.max_stage_reached, self.context)

    def can_jump_to(self, stage_id: int) -> bool:
        return FIRST_STAGE <= stage_id <= self.max_stage_reached

    # ---- transitions ------------------------------------------------------

    def advance(self) -> None:
        if self.current_stage == LAST_STAGE:
            return
        self.current_stage = Stage(self.current_stage + 1)
        self.max_stage_reached = max(self.max_stage_reached, self.current_stage)
        logger.info("advanced to %s (reached %d)", self.current_stage.title, self.max_stage_reached)
        self._enter()

    def jump_to(self, stage_id: int) -> bool:
        if not self.can_jump_to(stage_id):
            return False
        if stage_id == self.current_stage:
            return True
        self.current_stage = Stage(stage_id)
        logger.info("jumped to %s", self.current_stage.title)
        self._enter()
        return True

    def complete(self, stage_id: int, new_context: PipelineContext) -> None:
        if stage_id != self.current_stage:
            logger.debug("ignored completion from inactive stage %s", stage_id)
            return
        if stage_id == Stage.UPLOAD:
            self.context = new_context  # first artifact: start over from it
        else:
            self.context = self.context.merged(new_context)
        self.advance()

    def reset(self) -> None:
        self.current_stage = FIRST_STAGE
        self.max_stage_reached = FIRST_STAGE
        self.context = EMPTY_CONTEXT
        logger.info("wizard reset")
        self._enter()

    def _enter(self) -> None:
        if self._stage is not None:
            self._stage.close()
        factory = self._factories[self.current_stage]
        self._stage = factory(self.context, self.client, self.complete, self.notices)
