"""Preview tables, the confusion-matrix plot and bundled sample data."""

from __future__ import annotations

import os

import matplotlib.pyplot as plt
import pytest

from picknpredict.context import TrainingResults
from picknpredict.data_io import load_sample, write_sample_csv
from picknpredict.plots import plot_confusion_matrix, results_figure
from picknpredict.preview import preview_frame, styled_preview


class TestPreview:

    def test_frame_keeps_full_schema_and_rounds(self):
        df = preview_frame([{"a": 1.234567, "b": "x"}], ["a", "b", "c"])
        assert list(df.columns) == ["a", "b", "c"]
        assert df.loc[0, "a"] == pytest.approx(1.2346)

    def test_styler_highlights_selected_only(self):
        styler = styled_preview([{"a": 1.0, "b": 2.0}], ["a", "b"], ["b"])
        html = styler.to_html()
        assert "#1d4ed8" in html
        assert styler.data.shape == (1, 2)


class TestPlots:

    def test_confusion_matrix_figure(self, train_payload):
        fig = results_figure(TrainingResults.from_payload(train_payload))
        ax = fig.axes[0]
        assert [t.get_text() for t in ax.get_xticklabels()] == ["no", "yes"]

    def test_rendering_leaves_no_open_pyplot_figures(self, train_payload):
        before = plt.get_fignums()
        for _ in range(3):
            results_figure(TrainingResults.from_payload(train_payload))
        assert plt.get_fignums() == before

    def test_empty_matrix_gives_no_figure(self):
        assert plot_confusion_matrix([]) is None


class TestSamples:

    def test_iris_target_uses_class_names(self):
        df, target = load_sample("Iris")
        assert target == df.columns[-1]
        assert set(df[target]) == {"setosa", "versicolor", "virginica"}

    def test_sample_written_once(self, tmp_path):
        path = write_sample_csv("Wine", cache_dir=str(tmp_path))
        stamp = os.path.getmtime(path)
        assert write_sample_csv("Wine", cache_dir=str(tmp_path)) == path
        assert os.path.getmtime(path) == stamp
        assert path.endswith(".csv")
