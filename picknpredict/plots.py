from typing import Optional, Sequence

import numpy as np
from matplotlib.backends.backend_agg import FigureCanvasAgg
from matplotlib.figure import Figure

from picknpredict.context import TrainingResults


def plot_confusion_matrix(cm: Sequence[Sequence[int]], labels: Optional[Sequence[str]] = None) -> Optional[Figure]:
    """Heatmap of true vs predicted counts.

    Built on a bare Figure rather than pyplot, so re-rendering the results tab
    never piles up open figures.
    """
    counts = np.asarray(cm, dtype=int)
    if counts.ndim != 2 or counts.size == 0:
        return None
    n = counts.shape[0]
    names = list(labels) if labels is not None and len(labels) == n else [str(i) for i in range(n)]

    fig = Figure(figsize=(5, 4), dpi=110)
    FigureCanvasAgg(fig)
    ax = fig.add_subplot()
    heat = ax.imshow(counts, aspect="auto", cmap="Blues")
    ax.set(xticks=range(n), yticks=range(n), xlabel="Predicted", ylabel="True",
           title="Confusion Matrix")
    ax.set_xticklabels(names)
    ax.set_yticklabels(names)
    threshold = counts.max() / 2
    for (i, j), value in np.ndenumerate(counts):
        ax.text(j, i, value, ha="center", va="center", fontsize=9,
                color="white" if value > threshold else "black")
    fig.colorbar(heat, ax=ax, fraction=0.046, pad=0.04)
    fig.tight_layout()
    return fig


def results_figure(results: TrainingResults) -> Optional[Figure]:
    labels = [label for label, _ in results.class_rows()]
    return plot_confusion_matrix(results.confusion_matrix, labels or None)
