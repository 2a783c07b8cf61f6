from __future__ import annotations
import logging
from typing import Optional

from picknpredict.context import ModelType, TrainingResults
from picknpredict.errors import ValidationFailure, WizardError
from picknpredict.models.registry import MODELS, incompatible_columns
from picknpredict.stages.base import Stage, StageController

logger = logging.getLogger(__name__)


class ModelSelectStage(StageController):
    stage = Stage.MODEL

    def __init__(self, context, client, on_complete, notices=None):
        super().__init__(context, client, on_complete, notices)
        self.model_type: Optional[ModelType] = context.model_type

    def choose(self, model_type: str) -> None:
        self.model_type = ModelType(model_type)
        self.error = None

    def check(self) -> None:
        """Local pre-flight; raises ValidationFailure without touching the network."""
        if self.model_type is None:
            raise ValidationFailure("Choose how the model should learn first.")
        if self.context.target_column is None or self.context.test_size is None:
            raise ValidationFailure("Split the data first.")
        bad = incompatible_columns(
            self.model_type,
            self.context.selected_columns or (),
            self.context.numeric_columns or (),
        )
        if bad:
            name = MODELS[self.model_type].name
            raise ValidationFailure(
                f"{name} can't understand words in: {', '.join(bad)}. "
                "Choose Decision Tree, or go back and encode them to numbers."
            )

    async def submit(self) -> bool:
        if self.processing:
            return False
        ctx = self.context
        try:
            self.check()
            model_type = self.model_type
            payload = await self._remote(
                self.client.train,
                ctx.file_id,
                model_type.value,
                ctx.target_column,
                ctx.test_size,
                tuple(ctx.selected_columns or ()),
            )
        except WizardError as exc:
            self._fail(exc)
            return False
        results = TrainingResults.from_payload(payload)
        logger.info("trained %s: accuracy=%s", model_type.value, results.accuracy)
        return self._finish(ctx.evolve(results=results, model_type=model_type))
