import gradio as gr

from picknpredict import config
from picknpredict.client import RemoteArtifactClient
from picknpredict.stages.base import Stage
from picknpredict.wizard import WizardController

from picknpredict.tabs.common import next_token
from picknpredict.tabs.upload_tab import make_upload_tab, bind_state as bind_state_upload
from picknpredict.tabs.preprocess_tab import make_preprocess_tab, bind_state as bind_state_preprocess
from picknpredict.tabs.split_tab import make_split_tab, bind_state as bind_state_split
from picknpredict.tabs.model_tab import make_model_tab, bind_state as bind_state_model
from picknpredict.tabs.results_tab import make_results_tab, bind_state as bind_state_results

config.configure_logging()

wizard = WizardController(RemoteArtifactClient(config.API_BASE_URL, config.REQUEST_TIMEOUT))


with gr.Blocks(title="Pick-n-Predict") as demo:
    # Give all tabs access to the same WizardController
    get_state = lambda: wizard
    bind_state_upload(get_state)
    bind_state_preprocess(get_state)
    bind_state_split(get_state)
    bind_state_model(get_state)
    bind_state_results(get_state)

    gr.Markdown(
        """
        # Pick-n-Predict
        Small, clear steps from **upload → preprocess → split → train → predict**.

        - Upload a CSV or Excel file
        - Pick features, scaling and encoding, with a live preview
        - Choose what to predict and how much data to hold out
        - Train a Logistic Regression or a Decision Tree
        - Try the model on your own values
        """
    )

    # bumped after every stage transition; each tab re-renders on change
    stage_token = gr.Number(value=0, visible=False)

    with gr.Tabs(selected=int(Stage.UPLOAD)) as stepper:
        tabs = [
            make_upload_tab(version_token=stage_token),
            make_preprocess_tab(version_token=stage_token),
            make_split_tab(version_token=stage_token),
            make_model_tab(version_token=stage_token),
            make_results_tab(version_token=stage_token),
        ]

    def on_sync_stepper(_token):
        wz = get_state()
        return (gr.update(selected=int(wz.current_stage)),) + tuple(
            gr.update(interactive=wz.can_jump_to(stage)) for stage in Stage
        )

    stage_token.change(on_sync_stepper, [stage_token], [stepper] + tabs)

    # Clicking a tab is only possible for reached stages (others are greyed out)
    def _make_on_jump(stage: Stage):
        async def on_jump():
            wz = get_state()
            if stage == wz.current_stage:
                return gr.update()
            # a refused jump still re-syncs the stepper back to the active tab
            wz.jump_to(stage)
            return gr.update(value=next_token())
        return on_jump

    for stage, tab in zip(Stage, tabs):
        tab.select(_make_on_jump(stage), None, [stage_token])


if __name__ == "__main__":
    demo.launch()
