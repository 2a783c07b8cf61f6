"""Auto-apply timing and ordering for the preprocess stage."""

from __future__ import annotations

import asyncio
import time

import pytest

from picknpredict.context import EncodingType, ScalerType
from picknpredict.errors import RemoteFailure, ValidationFailure
from picknpredict.stages.base import Stage
from picknpredict.stages.preprocess import PreprocessStage

from conftest import NUMERIC, PREVIEW


DELAY = 0.05


def _stage(ctx, client, completions, delay=DELAY):
    return PreprocessStage(ctx, client, completions, delay=delay)


def _echo_scaler(file_id, cols, scaler, enc):
    return {"preview": [{"scaler": scaler}], "numeric_columns": NUMERIC}


class TestDefaults:

    def test_everything_selected_with_standard_scaling(self, uploaded, client, completions):
        async def scenario():
            stage = _stage(uploaded, client, completions)
            assert stage.selected_columns == ("age", "income", "label")
            assert stage.scaler_type is ScalerType.STANDARD
            assert stage.encoding_type is EncodingType.NONE
            await stage.settle()
            stage.close()

        asyncio.run(scenario())
        assert len(client.ops("preprocess")) == 1

    def test_entry_sends_current_controls(self, uploaded, client, completions):
        async def scenario():
            stage = _stage(uploaded, client, completions)
            await stage.settle()
            assert stage.last_result is not None
            assert stage.preview == tuple(PREVIEW)
            stage.close()

        asyncio.run(scenario())
        (call,) = client.ops("preprocess")
        assert call["args"] == ("f-1", ("age", "income", "label"), "standard", "none")


class TestDebounce:

    def test_burst_of_edits_sends_one_request(self, uploaded, client, completions):
        async def scenario():
            stage = _stage(uploaded, client, completions, delay=0.3)
            start = time.monotonic()
            stage.set_selection(["age", "income"])
            await asyncio.sleep(0.1)
            stage.set_scaler("minmax")
            await asyncio.sleep(0.15)
            stage.set_encoding("label")
            await stage.settle()
            stage.close()
            return start

        start = asyncio.run(scenario())
        (call,) = client.ops("preprocess")
        assert 0.5 <= call["at"] - start <= 0.75
        assert call["args"] == ("f-1", ("age", "income"), "minmax", "label")

    def test_quiet_gap_sends_two_requests(self, uploaded, client, completions):
        async def scenario():
            stage = _stage(uploaded, client, completions, delay=0.3)
            stage.set_scaler("minmax")
            await asyncio.sleep(0.4)
            stage.set_scaler("none")
            await stage.settle()
            stage.close()

        asyncio.run(scenario())
        scalers = [c["args"][2] for c in client.ops("preprocess")]
        assert scalers == ["minmax", "none"]

    def test_selection_follows_column_order(self, uploaded, client, completions):
        async def scenario():
            stage = _stage(uploaded, client, completions)
            stage.set_selection(["label", "age"])
            assert stage.selected_columns == ("age", "label")
            stage.toggle_column("income")
            assert stage.selected_columns == ("age", "income", "label")
            stage.deselect_all()
            assert stage.selected_columns == ()
            stage.select_all()
            assert stage.selected_columns == ("age", "income", "label")
            stage.close()

        asyncio.run(scenario())

    def test_unknown_column_is_rejected(self, uploaded, client, completions):
        async def scenario():
            stage = _stage(uploaded, client, completions)
            with pytest.raises(ValidationFailure):
                stage.set_selection(["age", "colour"])
            stage.close()

        asyncio.run(scenario())


class TestOrdering:

    def test_late_response_from_older_request_is_ignored(self, uploaded, client, completions):
        client.responses["preprocess"] = _echo_scaler
        client.delays["preprocess"] = [0.3, 0.0]

        async def scenario():
            stage = _stage(uploaded, client, completions)
            stage.set_scaler("standard")
            await asyncio.sleep(DELAY + 0.05)  # first request is now in flight
            stage.set_scaler("minmax")
            await stage.settle()
            assert stage.preview == ({"scaler": "minmax"},)
            await asyncio.sleep(0.3)  # first response lands now
            assert stage.preview == ({"scaler": "minmax"},)
            assert not stage.processing
            stage.close()

        asyncio.run(scenario())
        assert len(client.ops("preprocess")) == 2

    def test_processing_stays_on_until_newest_response(self, uploaded, client, completions):
        client.delays["preprocess"] = [0.0, 0.3]

        async def scenario():
            stage = _stage(uploaded, client, completions)
            await stage.settle()
            stage.set_scaler("minmax")
            await asyncio.sleep(DELAY + 0.1)
            assert stage.processing
            assert not stage.can_continue
            assert not stage.proceed()
            await stage.settle()
            assert not stage.processing
            stage.close()

        asyncio.run(scenario())
        assert completions.calls == []

    def test_closed_stage_discards_in_flight_result(self, uploaded, client, completions):
        client.delays["preprocess"] = 0.2

        async def scenario():
            stage = _stage(uploaded, client, completions)
            await asyncio.sleep(DELAY + 0.05)
            stage.close()
            await asyncio.sleep(0.3)
            return stage

        stage = asyncio.run(scenario())
        assert len(client.ops("preprocess")) == 1
        assert stage.last_result is None
        assert completions.calls == []

    def test_close_cancels_pending_timer(self, uploaded, client, completions):
        async def scenario():
            stage = _stage(uploaded, client, completions)
            stage.close()
            assert not stage.pending
            await asyncio.sleep(DELAY + 0.05)

        asyncio.run(scenario())
        assert client.ops("preprocess") == []

    def test_service_failure_surfaces_as_notice(self, uploaded, client, completions):
        client.responses["preprocess"] = RemoteFailure("Server Error: 500")

        async def scenario():
            stage = _stage(uploaded, client, completions)
            await stage.settle()
            stage.close()
            return stage

        stage = asyncio.run(scenario())
        assert stage.error == "Server Error: 500"
        assert stage.notices.latest().message == "Server Error: 500"
        assert not stage.processing


    def test_unreadable_response_is_reported(self, uploaded, client, completions):
        client.responses["preprocess"] = {"preview": [1, 2], "numeric_columns": NUMERIC}

        async def scenario():
            stage = _stage(uploaded, client, completions)
            await stage.settle()
            stage.close()
            return stage

        stage = asyncio.run(scenario())
        assert stage.error == "Malformed response from preprocess"
        assert stage.last_result is None
        assert stage.preview == tuple(PREVIEW)
        assert not stage.processing


class TestOutsideEventLoop:

    def test_entry_run_waits_for_a_loop(self, uploaded, client, completions):
        stage = _stage(uploaded, client, completions)
        assert stage.pending
        stage.set_scaler("minmax")
        assert client.calls == []

        asyncio.run(stage.settle())
        stage.close()
        (call,) = client.ops("preprocess")
        assert call["args"][2] == "minmax"

    def test_closing_drops_the_held_back_run(self, uploaded, client, completions):
        stage = _stage(uploaded, client, completions)
        stage.close()
        assert not stage.pending
        asyncio.run(stage.settle())
        assert client.calls == []


class TestContinue:

    def test_scaling_nothing_blocks_continue(self, uploaded, client, completions):
        async def scenario():
            stage = _stage(uploaded, client, completions)
            stage.deselect_all()
            await stage.settle()
            assert not stage.can_continue
            assert not stage.proceed()
            assert stage.error == "Select at least one column to scale, or choose no scaling."
            stage.set_scaler("none")
            await stage.settle()
            assert stage.can_continue
            assert stage.proceed()
            stage.close()

        asyncio.run(scenario())
        stage_id, ctx = completions.calls[-1]
        assert stage_id == Stage.PREPROCESS
        assert ctx.selected_columns == ()
        assert ctx.scaler_type is ScalerType.NONE

    def test_applied_result_is_carried_forward(self, uploaded, client, completions):
        async def scenario():
            stage = _stage(uploaded, client, completions)
            stage.update(["age", "label"], "minmax", "label")
            await stage.settle()
            assert stage.proceed()
            stage.close()

        asyncio.run(scenario())
        ctx = completions.last
        assert ctx.preprocessing is not None
        assert ctx.numeric_columns == ("age", "income", "label")
        assert ctx.encoding_type is EncodingType.LABEL

    def test_leaving_before_any_result_means_no_preprocessing(self, uploaded, client, completions):
        async def scenario():
            stage = _stage(uploaded, client, completions, delay=0.3)
            stage.set_selection(["age"])
            assert stage.proceed()
            stage.close()
            await asyncio.sleep(0.35)

        asyncio.run(scenario())
        ctx = completions.last
        assert ctx.preprocessing is None
        assert ctx.selected_columns == ("age",)
        assert ctx.numeric_columns == tuple(NUMERIC)
        assert client.ops("preprocess") == []
