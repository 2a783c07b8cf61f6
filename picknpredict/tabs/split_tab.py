# split_tab.py
from __future__ import annotations
from typing import Callable, Optional

import gradio as gr

from picknpredict import config
from picknpredict.stages.base import Stage
from picknpredict.stages.split import SplitStage
from picknpredict.tabs.common import active, flush_notices, next_token, status_md, tab_label, unchanged
from picknpredict.wizard import WizardController

_get_state: Optional[Callable[[], WizardController]] = None

IDLE = "Pick what to guess, move the slider and click on Split Data!"


def bind_state(get_state: Callable[[], WizardController]) -> None:
    global _get_state
    _get_state = get_state


def _ratio_md(train_ratio: int) -> str:
    return f"**Training data:** {train_ratio}%  |  **Testing data:** {100 - train_ratio}%"


def make_split_tab(version_token: gr.Number) -> gr.Tab:
    if _get_state is None:
        raise RuntimeError("bind_state(...) must be called before make_split_tab().")

    with gr.Tab(tab_label(Stage.SPLIT), id=int(Stage.SPLIT), interactive=False) as tab:
        status = gr.Markdown()
        target_dd = gr.Dropdown(
            label="Target column",
            info="Select the column you want to predict. Feature columns are not offered.",
        )
        ratio = gr.Slider(
            minimum=config.TRAIN_RATIO_MIN,
            maximum=config.TRAIN_RATIO_MAX,
            step=config.TRAIN_RATIO_STEP,
            value=config.TRAIN_RATIO_DEFAULT,
            label="Training data (%)",
        )
        ratio_md = gr.Markdown(_ratio_md(config.TRAIN_RATIO_DEFAULT))
        split_btn = gr.Button("Split data", variant="primary")

        view_outputs = [status, target_dd, ratio, ratio_md]

        def _view(stage: SplitStage):
            return (
                status_md(stage, "Splitting data...", IDLE),
                gr.update(choices=stage.candidates, value=stage.target_column),
                gr.update(value=stage.train_ratio),
                _ratio_md(stage.train_ratio),
            )

        def on_render(_token):
            stage = active(_get_state(), SplitStage)
            if stage is None:
                return unchanged(len(view_outputs))
            return _view(stage)

        def on_target(col):
            stage = active(_get_state(), SplitStage)
            if stage is None:
                return unchanged(len(view_outputs))
            stage.select_target(col)
            return _view(stage)

        def on_ratio(val):
            stage = active(_get_state(), SplitStage)
            if stage is None:
                return unchanged(len(view_outputs))
            stage.set_train_ratio(int(round(val)))
            return _view(stage)

        async def on_split():
            wz = _get_state()
            stage = active(wz, SplitStage)
            if stage is None:
                raise gr.Error("Go back to the Split step first.")
            ok = await stage.submit()
            flush_notices(wz)
            return status_md(stage, "Splitting data...", IDLE), (
                gr.update(value=next_token()) if ok else gr.update()
            )

        target_dd.input(on_target, [target_dd], view_outputs)
        ratio.release(on_ratio, [ratio], view_outputs)
        split_btn.click(on_split, None, [status, version_token])
        version_token.change(on_render, [version_token], view_outputs)

    return tab
