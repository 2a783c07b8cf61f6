# common.py
from __future__ import annotations
import itertools
from typing import Optional, Type

import gradio as gr

from picknpredict.stages.base import Stage, StageController
from picknpredict.wizard import WizardController

_tokens = itertools.count(1)


def next_token() -> int:
    """New value for the hidden stage token; every tab re-renders on change."""
    return next(_tokens)


def tab_label(stage: Stage) -> str:
    return f"{int(stage)}. {stage.title}"


def active(wz: WizardController, kind: Type[StageController]) -> Optional[StageController]:
    stage = wz.stage
    return stage if isinstance(stage, kind) else None


def flush_notices(wz: WizardController) -> None:
    # service errors become toasts; the tab's own status line repeats the latest one
    for notice in wz.notices.drain():
        gr.Warning(notice.message)


def status_md(stage: StageController, busy: str, idle: str) -> str:
    if stage.processing:
        return f"⏳ {busy}"
    if stage.error:
        return f"⚠️ {stage.error}"
    return idle


def unchanged(n: int):
    return tuple(gr.update() for _ in range(n))
