# preprocess_tab.py
from __future__ import annotations
from typing import Callable, Optional

import gradio as gr

from picknpredict.context import EncodingType, ScalerType
from picknpredict.preview import styled_preview
from picknpredict.stages.base import Stage
from picknpredict.stages.preprocess import PreprocessStage
from picknpredict.tabs.common import active, flush_notices, next_token, status_md, tab_label, unchanged
from picknpredict.wizard import WizardController

_get_state: Optional[Callable[[], WizardController]] = None

IDLE = "I caught the changes! Data is transformed on the spot."

SCALERS = [
    ("Standardization: centred around zero", ScalerType.STANDARD.value),
    ("Normalization: squished between 0 and 1", ScalerType.MINMAX.value),
    ("None: keep the data as is", ScalerType.NONE.value),
]
ENCODINGS = [
    ("Convert words to numbers", EncodingType.LABEL.value),
    ("Keep words as words", EncodingType.NONE.value),
]


def bind_state(get_state: Callable[[], WizardController]) -> None:
    global _get_state
    _get_state = get_state


def make_preprocess_tab(version_token: gr.Number) -> gr.Tab:
    if _get_state is None:
        raise RuntimeError("bind_state(...) must be called before make_preprocess_tab().")

    with gr.Tab(tab_label(Stage.PREPROCESS), id=int(Stage.PREPROCESS), interactive=False) as tab:
        status = gr.Markdown()

        with gr.Row():
            with gr.Column(scale=1, min_width=280):
                encoding = gr.Radio(ENCODINGS, label="Data encoding")
                scaler = gr.Radio(SCALERS, label="Scaling method")
                columns_cg = gr.CheckboxGroup(label="Feature selection")
                with gr.Row():
                    all_btn = gr.Button("All", size="sm")
                    none_btn = gr.Button("None", size="sm")
            with gr.Column(scale=3):
                preview_df = gr.Dataframe(interactive=False, label="Data preview", wrap=True)
                continue_btn = gr.Button("Looks good! Go next", variant="primary")

        view_outputs = [status, columns_cg, scaler, encoding, preview_df, continue_btn]

        def _view(stage: PreprocessStage):
            return (
                status_md(stage, "Cleaning up numbers...", IDLE),
                gr.update(choices=list(stage.columns), value=list(stage.selected_columns)),
                gr.update(value=stage.scaler_type.value),
                gr.update(value=stage.encoding_type.value),
                styled_preview(stage.preview, stage.columns, stage.selected_columns),
                gr.update(
                    interactive=stage.can_continue,
                    value="Thinking..." if stage.processing else "Looks good! Go next",
                ),
            )

        async def _edit_and_wait(edit):
            # yield the edited controls at once, then again when the debounced run lands
            wz = _get_state()
            stage = active(wz, PreprocessStage)
            if stage is None:
                yield unchanged(len(view_outputs))
                return
            edit(stage)
            yield _view(stage)
            await stage.settle()
            flush_notices(wz)
            if not stage.closed:
                yield _view(stage)

        async def on_controls(selected, scaler_val, encoding_val):
            async for out in _edit_and_wait(
                lambda st: st.update(selected or [], scaler_val, encoding_val)
            ):
                yield out

        async def on_all():
            async for out in _edit_and_wait(lambda st: st.select_all()):
                yield out

        async def on_none():
            async for out in _edit_and_wait(lambda st: st.deselect_all()):
                yield out

        async def on_render(_token):
            wz = _get_state()
            stage = active(wz, PreprocessStage)
            if stage is None:
                yield unchanged(len(view_outputs))
                return
            yield _view(stage)
            await stage.settle()  # the run scheduled on entry
            flush_notices(wz)
            if not stage.closed:
                yield _view(stage)

        async def on_continue():
            wz = _get_state()
            stage = active(wz, PreprocessStage)
            if stage is None:
                return gr.update(), gr.update()
            ok = stage.proceed()
            return status_md(stage, "Cleaning up numbers...", IDLE), (
                gr.update(value=next_token()) if ok else gr.update()
            )

        controls = [columns_cg, scaler, encoding]
        for comp in controls:
            comp.input(on_controls, controls, view_outputs,
                       concurrency_limit=None, trigger_mode="multiple")
        all_btn.click(on_all, None, view_outputs, concurrency_limit=None, trigger_mode="multiple")
        none_btn.click(on_none, None, view_outputs, concurrency_limit=None, trigger_mode="multiple")
        continue_btn.click(on_continue, None, [status, version_token])
        version_token.change(on_render, [version_token], view_outputs, concurrency_limit=None)

    return tab
