# model_tab.py
from __future__ import annotations
from typing import Callable, Optional

import gradio as gr

from picknpredict.models import registry
from picknpredict.stages.base import Stage
from picknpredict.stages.model_select import ModelSelectStage
from picknpredict.tabs.common import active, flush_notices, next_token, status_md, tab_label, unchanged
from picknpredict.wizard import WizardController

_get_state: Optional[Callable[[], WizardController]] = None


def bind_state(get_state: Callable[[], WizardController]) -> None:
    global _get_state
    _get_state = get_state


def _models_md() -> str:
    lines = []
    for spec in registry.MODELS.values():
        lines.append(f"**{spec.name}**: {spec.description} _{spec.data_note}_")
    return "\n\n".join(lines)


def _idle(stage: ModelSelectStage) -> str:
    if stage.model_type is None:
        return "Choose how I should learn!"
    return "Click the button to start training!"


def make_model_tab(version_token: gr.Number) -> gr.Tab:
    if _get_state is None:
        raise RuntimeError("bind_state(...) must be called before make_model_tab().")

    with gr.Tab(tab_label(Stage.MODEL), id=int(Stage.MODEL), interactive=False) as tab:
        status = gr.Markdown()
        gr.Markdown(_models_md())
        model_radio = gr.Radio(registry.choices(), label="Select a model")
        train_btn = gr.Button("Start training", variant="primary", interactive=False)

        view_outputs = [status, model_radio, train_btn]

        def _view(stage: ModelSelectStage):
            return (
                status_md(stage, "Learning now...", _idle(stage)),
                gr.update(value=stage.model_type.value if stage.model_type else None),
                gr.update(
                    interactive=stage.model_type is not None and not stage.processing,
                    value="Training model..." if stage.processing else "Start training",
                ),
            )

        def on_render(_token):
            stage = active(_get_state(), ModelSelectStage)
            if stage is None:
                return unchanged(len(view_outputs))
            return _view(stage)

        def on_choose(value):
            stage = active(_get_state(), ModelSelectStage)
            if stage is None or not value:
                return unchanged(len(view_outputs))
            stage.choose(value)
            return _view(stage)

        async def on_train():
            wz = _get_state()
            stage = active(wz, ModelSelectStage)
            if stage is None:
                raise gr.Error("Go back to the Model step first.")
            ok = await stage.submit()
            flush_notices(wz)
            return _view(stage) + (gr.update(value=next_token()) if ok else gr.update(),)

        model_radio.input(on_choose, [model_radio], view_outputs)
        train_btn.click(on_train, None, view_outputs + [version_token])
        version_token.change(on_render, [version_token], view_outputs)

    return tab
