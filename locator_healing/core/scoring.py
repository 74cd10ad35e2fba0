from __future__ import annotations

from dataclasses import dataclass, field

from locator_healing.utils.similarity import clamp


@dataclass(slots=True, frozen=True)
class WeightProfile:
    """Feature weights for the shared weighted-sum scorer.

    Features missing from ``weights`` contribute with ``default`` weight.
    """

    weights: dict[str, float] = field(default_factory=dict)
    default: float = 0.1

    def weight_for(self, feature: str) -> float:
        return self.weights.get(feature, self.default)


BASE_WEIGHTS = WeightProfile(
    weights={"attribute": 0.3, "text": 0.25, "role": 0.2, "structure": 0.15, "visual": 0.1},
    default=0.1,
)

ATTRIBUTE_RELAXATION_WEIGHTS = WeightProfile(
    weights={
        "attribute": 0.35,
        "text": 0.15,
        "tagMatch": 0.1,
        "visibility": 0.1,
        "simplicity": 0.1,
        "stability": 0.2,
    },
    default=0.05,
)

ROLE_NAME_WEIGHTS = WeightProfile(
    weights={
        "role": 0.3,
        "text": 0.3,
        "attribute": 0.1,
        "structure": 0.1,
        "visual": 0.05,
        "stability": 0.15,
    },
    default=0.05,
)

CONFIDENCE_LEVELS: tuple[tuple[float, str], ...] = (
    (0.8, "high"),
    (0.6, "medium"),
    (0.4, "low"),
)


def weighted_score(features: dict[str, float], profile: WeightProfile = BASE_WEIGHTS) -> float:
    score = sum(profile.weight_for(name) * clamp(value) for name, value in features.items())
    return round(clamp(score), 4)


def confidence_level(confidence: float) -> str:
    for floor, label in CONFIDENCE_LEVELS:
        if confidence >= floor:
            return label
    return "very-low"
