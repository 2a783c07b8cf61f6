"""
picknpredict/stages/preprocess.py

Preprocess stage: feature selection, scaling and encoding, with the preview
re-applied automatically once the controls have been quiet for a moment.

Ordering rules:
- only the last edit that stayed unchanged for ``delay`` seconds is sent;
- a response is applied only if it belongs to the most recently *dispatched*
  request (last request wins, whatever order responses arrive in);
- nothing is applied once the stage is closed.
"""
from __future__ import annotations
import asyncio
import logging
from typing import Any, Dict, Iterable, Mapping, Optional, Tuple

from picknpredict import config
from picknpredict.context import EncodingType, PipelineContext, ScalerType
from picknpredict.errors import RemoteFailure, ValidationFailure
from picknpredict.scheduler import Debouncer
from picknpredict.stages.base import Stage, StageController

logger = logging.getLogger(__name__)


class PreprocessStage(StageController):
    stage = Stage.PREPROCESS

    def __init__(self, context: PipelineContext, client: Any, on_complete, notices=None,
                 delay: float = config.AUTO_APPLY_DELAY):
        super().__init__(context, client, on_complete, notices)
        self.columns: Tuple[str, ...] = tuple(context.columns or ())
        self.scaler_type = ScalerType(context.scaler_type or ScalerType.STANDARD)
        self.encoding_type = EncodingType(context.encoding_type or EncodingType.NONE)
        if context.selected_columns is None:
            self.selected_columns = self.columns
        else:
            self.selected_columns = tuple(context.selected_columns)

        self.preview = tuple(context.preview or ())
        self.numeric_columns = tuple(context.numeric_columns or ())
        self.last_result: Optional[Dict[str, Any]] = None

        self._dispatched = 0  # version of the newest request sent
        self._debouncer = Debouncer(delay, self._apply)
        # initial run on entry; held back until an event loop picks it up
        self._latest: Optional[asyncio.Task] = self._debouncer.schedule()

    # ---- edits ------------------------------------------------------------

    def _changed(self) -> Optional[asyncio.Task]:
        self.error = None
        self._latest = self._debouncer.schedule()
        return self._latest

    def _normalise(self, cols: Iterable[str]) -> Tuple[str, ...]:
        wanted = set(cols)
        unknown = wanted.difference(self.columns)
        if unknown:
            raise ValidationFailure(f"Unknown columns: {', '.join(sorted(unknown))}")
        return tuple(c for c in self.columns if c in wanted)

    def set_selection(self, cols: Iterable[str]) -> Optional[asyncio.Task]:
        self.selected_columns = self._normalise(cols)
        return self._changed()

    def toggle_column(self, col: str) -> Optional[asyncio.Task]:
        if col in self.selected_columns:
            return self.set_selection(c for c in self.selected_columns if c != col)
        return self.set_selection(self.selected_columns + (col,))

    def select_all(self) -> Optional[asyncio.Task]:
        return self.set_selection(self.columns)

    def deselect_all(self) -> Optional[asyncio.Task]:
        return self.set_selection(())

    def set_scaler(self, scaler: str) -> Optional[asyncio.Task]:
        self.scaler_type = ScalerType(scaler)
        return self._changed()

    def set_encoding(self, encoding: str) -> Optional[asyncio.Task]:
        self.encoding_type = EncodingType(encoding)
        return self._changed()

    def update(self, selected: Iterable[str], scaler: str, encoding: str) -> Optional[asyncio.Task]:
        """Apply all three controls at once (one debounce restart)."""
        self.selected_columns = self._normalise(selected)
        self.scaler_type = ScalerType(scaler)
        self.encoding_type = EncodingType(encoding)
        return self._changed()

    @property
    def pending(self) -> bool:
        return self._debouncer.pending

    async def settle(self) -> None:
        """Wait until the latest scheduled run has fired and its response is in."""
        started = self._debouncer.resume()
        if started is not None:
            self._latest = started
        if self._latest is not None:
            await asyncio.wait({self._latest})

    # ---- auto-apply -------------------------------------------------------

    async def _apply(self, version: int) -> None:
        self._dispatched = version
        self.processing = True
        self.error = None
        request = (self.context.file_id, self.selected_columns,
                   self.scaler_type.value, self.encoding_type.value)
        logger.debug("preprocess v%d: %s", version, request[1:])
        try:
            payload = await asyncio.to_thread(self.client.preprocess, *request)
        except RemoteFailure as exc:
            if self._is_current(version):
                self.processing = False
                self._fail(exc)
            else:
                logger.debug("preprocess v%d failure ignored (superseded)", version)
            return
        if not self._is_current(version):
            logger.debug("preprocess v%d response ignored (superseded)", version)
            return
        self.processing = False
        try:
            self._store(payload)
        except (AttributeError, TypeError, ValueError) as exc:
            logger.warning("preprocess v%d: unreadable response (%s)", version, exc)
            self._fail(RemoteFailure("Malformed response from preprocess"))

    def _is_current(self, version: int) -> bool:
        return not self.closed and version == self._dispatched

    def _store(self, payload: Mapping[str, Any]) -> None:
        # parse everything first so a bad payload leaves the last good one in place
        preview = payload.get("preview")
        if preview is not None:
            preview = tuple(dict(r) for r in preview)
        numeric = payload.get("numeric_columns")
        if numeric is not None:
            numeric = tuple(str(c) for c in numeric)
        self.last_result = dict(payload)
        if preview is not None:
            self.preview = preview
        if numeric is not None:
            self.numeric_columns = numeric

    # ---- leaving the stage ------------------------------------------------

    @property
    def can_continue(self) -> bool:
        if self.processing:
            return False
        if self.scaler_type != ScalerType.NONE and not self.selected_columns:
            return False
        return True

    def build_context(self) -> PipelineContext:
        changes: Dict[str, Any] = dict(
            selected_columns=self.selected_columns,
            scaler_type=self.scaler_type,
            encoding_type=self.encoding_type,
        )
        if self.last_result is not None:
            changes.update(
                preprocessing=self.last_result,
                preview=self.preview,
                numeric_columns=self.numeric_columns,
            )
        # target is dropped here and restored by the merge unless it became a feature
        return self.context.evolve(target_column=None, **changes)

    def proceed(self) -> bool:
        if self.closed:
            return False
        if self.processing:
            return False
        if not self.can_continue:
            self._fail(ValidationFailure("Select at least one column to scale, or choose no scaling."))
            return False
        try:
            new_context = self.build_context()
        except ValueError as exc:
            self._fail(ValidationFailure(str(exc)))
            return False
        if self.last_result is None:
            logger.info("leaving preprocess without an applied preview")
        return self._finish(new_context)

    def close(self) -> None:
        super().close()
        self._debouncer.close()
