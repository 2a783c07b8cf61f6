from __future__ import annotations
import logging
from typing import List, Optional

from picknpredict import config
from picknpredict.errors import ValidationFailure, WizardError
from picknpredict.stages.base import Stage, StageController

logger = logging.getLogger(__name__)

TRAIN_RATIOS = tuple(range(config.TRAIN_RATIO_MIN, config.TRAIN_RATIO_MAX + 1, config.TRAIN_RATIO_STEP))


def ratio_to_test_size(train_ratio: int) -> float:
    return round((100 - train_ratio) / 100.0, 2)


def ratio_for_test_size(test_size: float) -> int:
    return int(round(100 - test_size * 100))


class SplitStage(StageController):
    stage = Stage.SPLIT

    def __init__(self, context, client, on_complete, notices=None):
        super().__init__(context, client, on_complete, notices)
        ratio = config.TRAIN_RATIO_DEFAULT
        if context.test_size is not None and ratio_for_test_size(context.test_size) in TRAIN_RATIOS:
            ratio = ratio_for_test_size(context.test_size)
        self.train_ratio = ratio

        candidates = self.candidates
        if context.target_column in candidates:
            self.target_column: Optional[str] = context.target_column
        else:
            self.target_column = candidates[-1] if candidates else None

    @property
    def candidates(self) -> List[str]:
        """Columns that may be predicted: everything not used as a feature."""
        return self.context.target_candidates()

    @property
    def test_size(self) -> float:
        return ratio_to_test_size(self.train_ratio)

    def set_train_ratio(self, percent: int) -> bool:
        if percent not in TRAIN_RATIOS:
            return False
        self.train_ratio = int(percent)
        return True

    def select_target(self, column: str) -> bool:
        if column not in self.candidates:
            return False
        self.target_column = column
        self.error = None
        return True

    async def submit(self) -> bool:
        if self.processing:
            return False
        try:
            if not self.target_column:
                raise ValidationFailure(
                    "Pick a column to predict. Every column is selected as a feature; "
                    "go back and leave at least one out."
                )
            target, test_size = self.target_column, self.test_size
            selected = tuple(self.context.selected_columns or ())
            artifact = await self._remote(
                self.client.split, self.context.file_id, target, test_size, selected,
            )
        except WizardError as exc:
            self._fail(exc)
            return False
        logger.info("split on %r with test_size=%.2f", target, test_size)
        return self._finish(self.context.evolve(
            split=artifact, target_column=target, test_size=test_size,
        ))
