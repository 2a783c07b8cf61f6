from dataclasses import dataclass
from typing import Dict, List, Sequence

from picknpredict.context import ModelType


@dataclass(frozen=True)
class ModelSpec:
    name: str
    description: str
    data_note: str
    numeric_only: bool


# The service trains these; we only need to know what each one accepts.
MODELS: Dict[ModelType, ModelSpec] = {
    ModelType.LOGISTIC: ModelSpec(
        name="Logistic Regression",
        description="Like drawing a line to separate two groups. Great for Yes/No questions!",
        data_note="Only for numerical data!",
        numeric_only=True,
    ),
    ModelType.DECISION_TREE: ModelSpec(
        name="Decision Tree",
        description="Like playing 20 Questions to find the answer. Good for complex patterns!",
        data_note="Good for numbers and word data!",
        numeric_only=False,
    ),
}


def choices() -> List[tuple]:
    """(label, value) pairs for a radio control."""
    return [(spec.name, mt.value) for mt, spec in MODELS.items()]


def incompatible_columns(model_type: ModelType, selected: Sequence[str], numeric: Sequence[str]) -> List[str]:
    if not MODELS[ModelType(model_type)].numeric_only:
        return []
    numeric_set = set(numeric)
    return [c for c in selected if c not in numeric_set]
