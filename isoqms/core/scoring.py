"""
Risk Scoring

Probability x impact matrix on a 1..5 scale for both axes.
"""
from isoqms.utils.logging import get_logger
import enum

logger = get_logger(__name__)

MIN_SCORE = 1
MAX_SCORE = 5


class RiskLevel(str, enum.Enum):
    VERY_LOW = "very_low"
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    VERY_HIGH = "very_high"


# (highest score in band, level), checked in order
_LEVEL_BANDS = (
    (2, RiskLevel.VERY_LOW),
    (4, RiskLevel.LOW),
    (9, RiskLevel.MEDIUM),
    (16, RiskLevel.HIGH),
)


def _check_axis(name: str, value) -> int:
    # bool is an int subclass; True/False are not scores
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"{name} must be an integer between {MIN_SCORE} and {MAX_SCORE}, got {value!r}")
    if not MIN_SCORE <= value <= MAX_SCORE:
        raise ValueError(f"{name} must be between {MIN_SCORE} and {MAX_SCORE}, got {value}")
    return value


def get_risk_score(probability: int, impact: int) -> int:
    return _check_axis("probability", probability) * _check_axis("impact", impact)


def get_risk_level(probability: int, impact: int) -> str:
    """
    Map a probability/impact pair to a risk level label.

    score <= 2 -> very_low, 3..4 -> low, 5..9 -> medium,
    10..16 -> high, >= 17 -> very_high.

    Raises:
        ValueError: either input is not an integer in 1..5
    """
    score = get_risk_score(probability, impact)
    for upper, level in _LEVEL_BANDS:
        if score <= upper:
            return level.value
    return RiskLevel.VERY_HIGH.value
