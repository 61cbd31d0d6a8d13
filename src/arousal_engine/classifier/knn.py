"""Personal k-nearest-neighbour model trained on one child's labelled clips.

"Training" a k-NN model only means z-normalising the examples and storing
them together with the normalisation parameters.  The feature dimension is
fixed when the model is built; predicting with a vector of any other length
is a programming error and raises :class:`FeatureDimensionError`.
"""

from __future__ import annotations

import math
import statistics
from collections.abc import Sequence

import structlog
from pydantic import BaseModel, ConfigDict, Field, model_validator

from arousal_engine.models import ArousalState

logger = structlog.get_logger(__name__)

DEFAULT_K = 5

# Near-constant features are left unscaled.
_MIN_STD = 1e-4


class FeatureDimensionError(ValueError):
    """A feature vector does not match the personal model's dimension."""


class TrainingExample(BaseModel):
    model_config = ConfigDict(frozen=True)

    features: list[float]
    label: ArousalState


class PersonalModel(BaseModel):
    """A trained k-NN classifier.

    ``training_data`` holds *normalised* feature vectors; raw vectors passed
    to :meth:`predict` are normalised with ``feature_means`` /
    ``feature_stds`` first.
    """

    model_config = ConfigDict(frozen=True)

    training_data: list[TrainingExample] = Field(..., min_length=1)
    feature_means: list[float]
    feature_stds: list[float]
    k: int = Field(DEFAULT_K, ge=1)

    @model_validator(mode="after")
    def _check_dimensions(self) -> PersonalModel:
        dim = len(self.feature_means)
        if len(self.feature_stds) != dim:
            raise FeatureDimensionError(
                f"feature_stds has {len(self.feature_stds)} entries, expected {dim}"
            )
        for example in self.training_data:
            if len(example.features) != dim:
                raise FeatureDimensionError(
                    f"training example has {len(example.features)} features, expected {dim}"
                )
        if any(s == 0 for s in self.feature_stds):
            raise ValueError("feature_stds must be non-zero")
        return self

    @property
    def feature_dimension(self) -> int:
        return len(self.feature_means)

    def normalise(self, features: Sequence[float]) -> list[float]:
        if len(features) != self.feature_dimension:
            raise FeatureDimensionError(
                f"got {len(features)} features, model expects {self.feature_dimension}"
            )
        return [
            (value - mean) / std
            for value, mean, std in zip(features, self.feature_means, self.feature_stds)
        ]

    def predict(self, features: Sequence[float]) -> ArousalState:
        """Majority vote among the ``k`` nearest training examples.

        Ties are broken in favour of the label whose nearest member is
        closest to the query.
        """
        query = self.normalise(features)
        ranked = sorted(
            (math.dist(query, example.features), example.label)
            for example in self.training_data
        )
        nearest = ranked[: self.k]

        votes: dict[ArousalState, int] = {}
        closest: dict[ArousalState, float] = {}
        for distance, label in nearest:
            votes[label] = votes.get(label, 0) + 1
            closest.setdefault(label, distance)

        return max(votes, key=lambda label: (votes[label], -closest[label]))


# ── Building & evaluation ────────────────────────────────────


def build_personal_model(
    examples: Sequence[TrainingExample],
    k: int = DEFAULT_K,
) -> PersonalModel:
    """Normalise raw training examples and wrap them in a :class:`PersonalModel`.

    Raises
    ------
    ValueError
        If *examples* is empty.
    FeatureDimensionError
        If the examples disagree on feature length.
    """
    if not examples:
        raise ValueError("cannot build a personal model without training examples")

    dim = len(examples[0].features)
    for example in examples:
        if len(example.features) != dim:
            raise FeatureDimensionError(
                f"training examples disagree on dimension ({len(example.features)} != {dim})"
            )

    columns = list(zip(*(e.features for e in examples)))
    means = [statistics.fmean(col) for col in columns]
    stds = []
    for col in columns:
        std = statistics.pstdev(col)
        stds.append(std if std >= _MIN_STD else 1.0)

    normalised = [
        TrainingExample(
            features=[(v - m) / s for v, m, s in zip(e.features, means, stds)],
            label=e.label,
        )
        for e in examples
    ]
    model = PersonalModel(
        training_data=normalised,
        feature_means=means,
        feature_stds=stds,
        k=k,
    )
    logger.info(
        "personal_model.built",
        examples=len(normalised),
        dimension=dim,
        k=k,
    )
    return model


def evaluate_personal_model(
    model: PersonalModel,
    validation: Sequence[TrainingExample],
) -> float:
    """Fraction of *validation* examples (raw features) predicted correctly."""
    if not validation:
        return 0.0
    correct = sum(1 for e in validation if model.predict(e.features) == e.label)
    return correct / len(validation)
