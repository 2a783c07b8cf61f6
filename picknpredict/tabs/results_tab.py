# results_tab.py
from __future__ import annotations
from typing import Callable, List, Optional

import gradio as gr
import pandas as pd

from picknpredict.context import TrainingResults
from picknpredict.plots import results_figure
from picknpredict.stages.base import Stage
from picknpredict.stages.results import ResultsStage
from picknpredict.tabs.common import active, flush_notices, next_token, tab_label, unchanged
from picknpredict.wizard import WizardController

_get_state: Optional[Callable[[], WizardController]] = None

MAX_FEATS = 30  # pre-allocate inputs; toggle visibility per feature
CLASS_COLUMNS = ["class", "precision", "recall", "support"]


def bind_state(get_state: Callable[[], WizardController]) -> None:
    global _get_state
    _get_state = get_state


def _pct(x) -> str:
    return f"{x * 100:.2f}%" if isinstance(x, (int, float)) else "0.00%"


def _metrics_md(results: TrainingResults) -> str:
    return (
        "### Training complete\n"
        f"**My score (accuracy):** {_pct(results.accuracy)}  \n"
        f"**Trust factor (precision):** {_pct(results.precision)}  \n"
        f"**Detective skill (recall):** {_pct(results.recall)}"
    )


def _class_table(results: TrainingResults) -> pd.DataFrame:
    rows = [
        {
            "class": label,
            "precision": round(float(m.get("precision", 0.0)), 4),
            "recall": round(float(m.get("recall", 0.0)), 4),
            "support": m.get("support"),
        }
        for label, m in results.class_rows()
    ]
    return pd.DataFrame(rows, columns=CLASS_COLUMNS)


def _mascot(stage: ResultsStage) -> str:
    if stage.error:
        return f"⚠️ {stage.error}"
    if stage.prediction is not None:
        return f"✨ I predict the result is: **{stage.prediction}**"
    if stage.processing:
        return "⏳ Let me think... calculations in progress!"
    return "Look what I learned! Want to try a prediction?"


def make_results_tab(version_token: gr.Number) -> gr.Tab:
    if _get_state is None:
        raise RuntimeError("bind_state(...) must be called before make_results_tab().")

    with gr.Tab(tab_label(Stage.RESULTS), id=int(Stage.RESULTS), interactive=False) as tab:
        status = gr.Markdown()
        with gr.Row():
            with gr.Column(scale=1):
                metrics_md = gr.Markdown()
                class_df = gr.Dataframe(headers=CLASS_COLUMNS, interactive=False,
                                        label="How well I know each group")
                cm_plot = gr.Plot(label="Confusion matrix")
            with gr.Column(scale=1):
                gr.Markdown("### Let's make a prediction!")
                inputs: List[gr.Textbox] = []
                with gr.Group():
                    for i in range(MAX_FEATS):
                        inputs.append(gr.Textbox(label=f"feature_{i+1}", visible=False))
                predict_btn = gr.Button("Predict now!", variant="primary")
                clear_btn = gr.Button("Clear inputs", size="sm")
                reset_btn = gr.Button("Build another pipeline")

        def _input_updates(stage: ResultsStage):
            upd = []
            for idx in range(MAX_FEATS):
                if idx < len(stage.features):
                    feat = stage.features[idx]
                    binary = stage.results.is_binary(feat)
                    upd.append(gr.update(
                        label=f"{feat} (0 or 1)" if binary else feat,
                        placeholder=f"Enter {feat}...",
                        value=stage.value(feat),
                        visible=True,
                    ))
                else:
                    upd.append(gr.update(visible=False, value=""))
            return tuple(upd)

        view_outputs = [status, metrics_md, class_df, cm_plot] + inputs

        def on_render(_token):
            stage = active(_get_state(), ResultsStage)
            if stage is None:
                return unchanged(len(view_outputs))
            res = stage.results
            return (
                _mascot(stage),
                _metrics_md(res),
                _class_table(res),
                results_figure(res),
            ) + _input_updates(stage)

        def _make_on_input(idx: int):
            def on_input(value):
                stage = active(_get_state(), ResultsStage)
                if stage is None or idx >= len(stage.features):
                    return gr.update(), gr.update()
                feat = stage.features[idx]
                if not stage.set_input(feat, value):
                    # reject the keystroke: put the last accepted value back
                    return gr.update(value=stage.value(feat)), gr.update()
                return gr.update(), _mascot(stage)
            return on_input

        async def on_predict():
            wz = _get_state()
            stage = active(wz, ResultsStage)
            if stage is None:
                raise gr.Error("Train a model first.")
            await stage.predict()
            flush_notices(wz)
            if stage.validation_error:
                return f"⚠️ {stage.validation_error}"
            return _mascot(stage)

        def on_clear():
            stage = active(_get_state(), ResultsStage)
            if stage is None:
                return (gr.update(),) * (1 + MAX_FEATS)
            stage.clear()
            return (_mascot(stage),) + _input_updates(stage)

        async def on_reset():
            _get_state().reset()
            return gr.update(value=next_token())

        for idx, box in enumerate(inputs):
            box.input(_make_on_input(idx), [box], [box, status])
        predict_btn.click(on_predict, None, [status])
        clear_btn.click(on_clear, None, [status] + inputs)
        reset_btn.click(on_reset, None, [version_token])
        version_token.change(on_render, [version_token], view_outputs)

    return tab
