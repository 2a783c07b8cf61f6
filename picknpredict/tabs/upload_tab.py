# upload_tab.py
from __future__ import annotations
from typing import Callable, Optional

import gradio as gr

from picknpredict import config, data_io
from picknpredict.stages.base import Stage
from picknpredict.stages.upload import UploadStage
from picknpredict.tabs.common import active, flush_notices, next_token, status_md, tab_label
from picknpredict.wizard import WizardController

_get_state: Optional[Callable[[], WizardController]] = None

IDLE = "Hi! Upload a CSV or Excel file to start, or pick a sample."


def bind_state(get_state: Callable[[], WizardController]) -> None:
    global _get_state
    _get_state = get_state


def make_upload_tab(version_token: gr.Number) -> gr.Tab:
    if _get_state is None:
        raise RuntimeError("bind_state(...) must be called before make_upload_tab().")

    with gr.Tab(tab_label(Stage.UPLOAD), id=int(Stage.UPLOAD)) as tab:
        status = gr.Markdown(IDLE)

        with gr.Row():
            with gr.Column(scale=1):
                file_in = gr.File(
                    label="Upload dataset",
                    file_types=list(config.ALLOWED_EXTENSIONS),
                    type="filepath",
                )
                upload_btn = gr.Button("Upload", variant="primary")
            with gr.Column(scale=1):
                sample_dd = gr.Dropdown(list(data_io.SAMPLES), label="or load a sample")
                sample_btn = gr.Button("Load sample")

        gr.Markdown("Supported formats: CSV, Excel (.xls, .xlsx)")

        async def _run(submit):
            wz = _get_state()
            stage = active(wz, UploadStage)
            if stage is None:
                raise gr.Error("Go back to the Upload step first.")
            ok = await submit(stage)
            flush_notices(wz)
            token = gr.update(value=next_token()) if ok else gr.update()
            return status_md(stage, "Reading your file...", IDLE), token

        async def on_upload(path):
            return await _run(lambda st: st.submit(path))

        async def on_sample(name):
            if not name:
                raise gr.Error("Choose a sample first.")
            return await _run(lambda st: st.submit_sample(name))

        def on_render(_token):
            wz = _get_state()
            if wz.current_stage != Stage.UPLOAD:
                return gr.update()
            return IDLE

        upload_btn.click(on_upload, [file_in], [status, version_token])
        sample_btn.click(on_sample, [sample_dd], [status, version_token])
        version_token.change(on_render, [version_token], [status])

    return tab
