from __future__ import annotations
import logging
from typing import Any, Dict, Optional, Tuple

from picknpredict.context import TrainingResults
from picknpredict.errors import ValidationFailure, WizardError
from picknpredict.stages.base import Stage, StageController

logger = logging.getLogger(__name__)

_BINARY_KEYSTROKES = ("", "0", "1")


class ResultsStage(StageController):
    """Terminal stage: shows metrics and runs one-off predictions.

    Predictions never touch the pipeline context; ``clear()`` only forgets
    the form.
    """

    stage = Stage.RESULTS

    def __init__(self, context, client, on_complete, notices=None):
        super().__init__(context, client, on_complete, notices)
        self.results: TrainingResults = context.results or TrainingResults()
        self.inputs: Dict[str, str] = {}
        self.prediction: Optional[Any] = None
        self.validation_error: Optional[str] = None

    @property
    def features(self) -> Tuple[str, ...]:
        return self.results.features

    def set_input(self, feature: str, value: str) -> bool:
        """Per-keystroke update. Binary features only ever hold '', '0' or '1'."""
        value = "" if value is None else str(value)
        if feature not in self.features:
            return False
        if self.results.is_binary(feature) and value not in _BINARY_KEYSTROKES:
            return False
        self.inputs[feature] = value
        self.validation_error = None
        self.error = None
        return True

    def value(self, feature: str) -> str:
        return self.inputs.get(feature, "")

    def _check(self) -> Dict[str, str]:
        missing = [f for f in self.features if not self.value(f).strip()]
        if missing:
            raise ValidationFailure("Please fill in all the inputs first!")
        for feature in self.features:
            if not self.results.is_binary(feature):
                continue
            try:
                val = float(self.value(feature))
            except ValueError:
                val = None
            if val not in (0.0, 1.0):
                raise ValidationFailure(f"{feature} must be 0 or 1!")
        return {f: self.value(f) for f in self.features}

    async def predict(self) -> bool:
        if self.processing or not self.features:
            return False
        self.prediction = None
        try:
            try:
                inputs = self._check()
            except ValidationFailure as exc:
                self.validation_error = exc.message
                raise
            payload = await self._remote(self.client.predict, self.context.file_id, inputs)
        except WizardError as exc:
            self._fail(exc)
            return False
        self.prediction = payload.get("prediction")
        logger.debug("prediction: %r", self.prediction)
        return True

    def clear(self) -> None:
        self.inputs = {}
        self.prediction = None
        self.validation_error = None
        self.error = None
