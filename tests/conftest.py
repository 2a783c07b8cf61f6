"""Shared fixtures: a scripted stand-in for the processing service."""

from __future__ import annotations

import time
from typing import Any, Dict, List, Optional

import pytest

from picknpredict.context import PipelineContext


COLUMNS = ["age", "income", "label"]
NUMERIC = ["age", "income"]
PREVIEW = [
    {"age": 25, "income": 40000, "label": "no"},
    {"age": 40, "income": 85000, "label": "yes"},
]

TRAIN_PAYLOAD = {
    "accuracy": 0.875,
    "classification_report": {
        "no": {"precision": 0.9, "recall": 0.85, "f1-score": 0.87, "support": 20},
        "yes": {"precision": 0.8, "recall": 0.9, "f1-score": 0.85, "support": 12},
        "accuracy": 0.875,
        "macro avg": {"precision": 0.85, "recall": 0.875, "f1-score": 0.86, "support": 32},
        "weighted avg": {"precision": 0.86, "recall": 0.87, "f1-score": 0.86, "support": 32},
    },
    "confusion_matrix": [[17, 3], [1, 11]],
    "model_type": "decision_tree",
    "features": ["age", "income"],
    "feature_metadata": {
        "age": {"min": 18, "max": 90, "is_binary": False},
        "income": {"min": 0, "max": 250000, "is_binary": False},
    },
}


class FakeClient:
    """Records every call; replies from ``responses`` after an optional delay.

    A response may be a dict, an exception instance (raised) or a callable
    taking the call's arguments. ``delays[name]`` is either one number or a
    list consumed call by call.
    """

    def __init__(self):
        self.calls: List[Dict[str, Any]] = []
        self.responses: Dict[str, Any] = {
            "upload": {"file_id": "f-1", "columns": COLUMNS, "numeric_columns": NUMERIC,
                       "preview": PREVIEW},
            "preprocess": lambda file_id, cols, scaler, enc: {
                "preview": PREVIEW,
                "numeric_columns": NUMERIC + (["label"] if enc == "label" else []),
            },
            "split": {"train_size": 26, "test_size": 6},
            "train": TRAIN_PAYLOAD,
            "predict": {"prediction": "yes"},
        }
        self.delays: Dict[str, Any] = {}

    def _reply(self, name: str, *args):
        self.calls.append({"op": name, "args": args, "at": time.monotonic()})
        delay = self.delays.get(name, 0)
        if isinstance(delay, list):
            delay = delay.pop(0) if delay else 0
        if delay:
            time.sleep(delay)
        response = self.responses[name]
        if isinstance(response, Exception):
            raise response
        if callable(response):
            return response(*args)
        return dict(response)

    def ops(self, name: Optional[str] = None) -> List[Dict[str, Any]]:
        return [c for c in self.calls if name is None or c["op"] == name]

    def upload(self, path):
        return self._reply("upload", path)

    def preprocess(self, file_id, selected_columns, scaler_type, encoding_type):
        return self._reply("preprocess", file_id, tuple(selected_columns), scaler_type, encoding_type)

    def split(self, file_id, target_column, test_size, selected_columns):
        return self._reply("split", file_id, target_column, test_size, tuple(selected_columns))

    def train(self, file_id, model_type, target_column, test_size, selected_columns):
        return self._reply("train", file_id, model_type, target_column, test_size,
                           tuple(selected_columns))

    def predict(self, file_id, inputs):
        return self._reply("predict", file_id, dict(inputs))


class Completions:
    """Captures what a stage hands to the wizard."""

    def __init__(self):
        self.calls = []

    def __call__(self, stage, context):
        self.calls.append((stage, context))

    @property
    def last(self) -> PipelineContext:
        return self.calls[-1][1]


@pytest.fixture
def client():
    return FakeClient()


@pytest.fixture
def completions():
    return Completions()


@pytest.fixture
def uploaded():
    return PipelineContext.from_upload({
        "file_id": "f-1", "columns": COLUMNS, "numeric_columns": NUMERIC, "preview": PREVIEW,
    })


@pytest.fixture
def csv_file(tmp_path):
    path = tmp_path / "people.csv"
    path.write_text("age,income,label\n25,40000,no\n40,85000,yes\n")
    return str(path)


@pytest.fixture
def train_payload():
    return dict(TRAIN_PAYLOAD)
