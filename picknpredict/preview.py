from typing import Any, Dict, Iterable, List, Sequence

import pandas as pd

SELECTED_CSS = {"background-color": "#eff6ff", "color": "#1d4ed8", "font-weight": "600"}


def preview_frame(rows: Iterable[Dict[str, Any]], columns: Sequence[str]) -> pd.DataFrame:
    """Rows as a DataFrame over the full original schema, floats to 4 decimals."""
    df = pd.DataFrame(list(rows), columns=list(columns))
    for col in df.columns:
        if df[col].dtype.kind == "f":
            df[col] = df[col].round(4)
    return df


def styled_preview(rows, columns: Sequence[str], selected: Sequence[str]):
    """Same frame, with the selected feature columns highlighted."""
    df = preview_frame(rows, columns)
    chosen: List[str] = [c for c in df.columns if c in set(selected)]
    styler = df.style.format(precision=4)
    if chosen:
        styler = styler.set_properties(subset=chosen, **SELECTED_CSS)
    return styler
