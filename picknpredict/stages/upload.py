from __future__ import annotations
import logging
import os
from typing import Optional

from picknpredict import config, data_io
from picknpredict.context import PipelineContext
from picknpredict.errors import ValidationFailure, WizardError
from picknpredict.stages.base import Stage, StageController

logger = logging.getLogger(__name__)


def check_extension(path: str) -> str:
    ext = os.path.splitext(path)[1].lower()
    if ext not in config.ALLOWED_EXTENSIONS:
        raise ValidationFailure("Invalid file format. Please upload a CSV or Excel file.")
    return ext


class UploadStage(StageController):
    stage = Stage.UPLOAD

    async def submit(self, path: Optional[str]) -> bool:
        if self.processing:
            return False
        try:
            if not path:
                raise ValidationFailure("Choose a file to upload.")
            check_extension(path)
            payload = await self._remote(self.client.upload, path)
            new_context = PipelineContext.from_upload(payload)
        except WizardError as exc:
            self._fail(exc)
            return False
        except ValueError as exc:
            # response did not satisfy the context invariants
            self._fail(ValidationFailure(str(exc)))
            return False
        logger.info("uploaded %s as %s (%d columns)",
                    os.path.basename(path), new_context.file_id, len(new_context.columns))
        return self._finish(new_context)

    async def submit_sample(self, name: str) -> bool:
        try:
            path = data_io.write_sample_csv(name)
        except ValueError as exc:
            self._fail(ValidationFailure(str(exc)))
            return False
        return await self.submit(path)
