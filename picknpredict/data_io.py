import os
import tempfile
from typing import Tuple

import pandas as pd
from sklearn import datasets

SAMPLES_DIR = os.path.join(tempfile.gettempdir(), "picknpredict-samples")

# name -> (loader, csv file name)
SAMPLES = {
    "Iris": (datasets.load_iris, "iris.csv"),
    "Wine": (datasets.load_wine, "wine.csv"),
    "Breast Cancer": (datasets.load_breast_cancer, "breast_cancer.csv"),
}


# -----------------
# Built-in samples
# -----------------
def load_sample(name: str) -> Tuple[pd.DataFrame, str]:
    """Return (df, target_column). The target is the last column."""
    if name not in SAMPLES:
        raise ValueError(f"Unknown sample: {name}")
    loader, _ = SAMPLES[name]
    data = loader(as_frame=True)
    df = data.frame.copy()
    df.columns = [str(c) for c in df.columns]
    target = data.target.name
    # class labels read better than 0/1/2 in the prediction box
    names = getattr(data, "target_names", None)
    if names is not None and len(names):
        df[target] = df[target].map(dict(enumerate(str(n) for n in names)))
    return df, target


def _ensure_dir(path: str) -> None:
    os.makedirs(path, exist_ok=True)


def write_sample_csv(name: str, cache_dir: str = SAMPLES_DIR) -> str:
    """Write a bundled sample to CSV (once) and return its path for upload."""
    if name not in SAMPLES:
        raise ValueError(f"Unknown sample: {name}")
    _ensure_dir(cache_dir)
    path = os.path.join(cache_dir, SAMPLES[name][1])
    if not os.path.exists(path):
        df, _ = load_sample(name)
        df.to_csv(path, index=False)
    return path
