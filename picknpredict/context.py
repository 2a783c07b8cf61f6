from __future__ import annotations
from dataclasses import dataclass, field, fields, replace
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple


class ScalerType(str, Enum):
    NONE = "none"
    STANDARD = "standard"
    MINMAX = "minmax"


class EncodingType(str, Enum):
    NONE = "none"
    LABEL = "label"


class ModelType(str, Enum):
    LOGISTIC = "logistic"
    DECISION_TREE = "decision_tree"


_SUMMARY_ROWS = ("accuracy", "macro avg", "weighted avg")


@dataclass(frozen=True)
class TrainingResults:
    """What the service sends back after training. Never modified afterwards."""
    accuracy: Optional[float] = None
    classification_report: Mapping[str, Any] = field(default_factory=dict)
    confusion_matrix: Sequence[Sequence[int]] = ()
    model_type: Optional[str] = None
    features: Tuple[str, ...] = ()
    feature_metadata: Mapping[str, Mapping[str, Any]] = field(default_factory=dict)

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "TrainingResults":
        return cls(
            accuracy=payload.get("accuracy"),
            classification_report=dict(payload.get("classification_report") or {}),
            confusion_matrix=tuple(tuple(r) for r in payload.get("confusion_matrix") or ()),
            model_type=payload.get("model_type"),
            features=tuple(payload.get("features") or ()),
            feature_metadata=dict(payload.get("feature_metadata") or {}),
        )

    def is_binary(self, feature: str) -> bool:
        meta = self.feature_metadata.get(feature) or {}
        return bool(meta.get("is_binary"))

    def _weighted(self, key: str) -> Optional[float]:
        row = self.classification_report.get("weighted avg") or {}
        return row.get(key)

    @property
    def precision(self) -> Optional[float]:
        return self._weighted("precision")

    @property
    def recall(self) -> Optional[float]:
        return self._weighted("recall")

    def class_rows(self) -> List[Tuple[str, Mapping[str, Any]]]:
        # per-class entries only; the report also carries summary rows
        return [
            (label, metrics)
            for label, metrics in self.classification_report.items()
            if label not in _SUMMARY_ROWS and isinstance(metrics, Mapping)
        ]


@dataclass(frozen=True)
class PipelineContext:
    """Accumulated output of every completed stage.

    The wizard owns the only live instance; stages receive it read-only and
    hand back a new value on completion. ``None`` means "not set yet"; an empty
    tuple for ``selected_columns`` is a real (empty) selection.
    """
    # Upload
    file_id: Optional[str] = None
    columns: Optional[Tuple[str, ...]] = None
    numeric_columns: Optional[Tuple[str, ...]] = None
    preview: Optional[Tuple[Dict[str, Any], ...]] = None

    # Preprocess
    selected_columns: Optional[Tuple[str, ...]] = None
    scaler_type: Optional[ScalerType] = None
    encoding_type: Optional[EncodingType] = None
    preprocessing: Optional[Mapping[str, Any]] = None  # last known good payload

    # Split
    target_column: Optional[str] = None
    test_size: Optional[float] = None
    split: Optional[Mapping[str, Any]] = None

    # Train
    model_type: Optional[ModelType] = None
    results: Optional[TrainingResults] = None

    def __post_init__(self):
        if self.selected_columns is not None:
            known = set(self.columns or ())
            unknown = [c for c in self.selected_columns if c not in known]
            if unknown:
                raise ValueError(f"Selected columns not in dataset: {', '.join(unknown)}")
        if self.target_column is not None and self.target_column in (self.selected_columns or ()):
            raise ValueError(f"Target column {self.target_column!r} is also selected as a feature.")
        if self.test_size is not None and not (0.0 < self.test_size < 1.0):
            raise ValueError(f"test_size must lie strictly between 0 and 1, got {self.test_size}")

    @classmethod
    def from_upload(cls, payload: Mapping[str, Any]) -> "PipelineContext":
        columns = tuple(str(c) for c in payload.get("columns") or ())
        return cls(
            file_id=payload.get("file_id"),
            columns=columns,
            numeric_columns=tuple(payload.get("numeric_columns") or ()),
            preview=tuple(dict(row) for row in payload.get("preview") or ()),
        )

    @property
    def is_empty(self) -> bool:
        return self == PipelineContext()

    def evolve(self, **changes: Any) -> "PipelineContext":
        return replace(self, **changes)

    def merged(self, newer: "PipelineContext") -> "PipelineContext":
        """Fields set on ``newer`` win; everything else is kept."""
        changes = {
            f.name: getattr(newer, f.name)
            for f in fields(self)
            if getattr(newer, f.name) is not None
        }
        # A target that has since been picked as a feature is no longer valid.
        selected = changes.get("selected_columns", self.selected_columns) or ()
        if changes.get("target_column", self.target_column) in selected:
            changes["target_column"] = None
        return replace(self, **changes)

    def is_numeric(self, column: str) -> bool:
        return column in (self.numeric_columns or ())

    def target_candidates(self) -> List[str]:
        chosen = set(self.selected_columns or ())
        return [c for c in (self.columns or ()) if c not in chosen]


EMPTY_CONTEXT = PipelineContext()
