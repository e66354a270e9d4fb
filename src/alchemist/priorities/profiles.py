# src/alchemist/priorities/profiles.py
"""
@brief
Priority weights and predefined weighting profiles.

@details
Weights are opaque to this system: they are exported for the downstream
allocation engine and never influence validation.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from pydantic import ValidationError as PydanticValidationError

from alchemist.errors import ConfigError, DataError
from alchemist.schemas.models import PriorityProfile, PriorityWeight

logger = logging.getLogger(__name__)

_DESCRIPTIONS: dict[str, str] = {
    "clientPriority": "Client Priority Level",
    "requestFulfillment": "Request Fulfillment",
    "fairDistribution": "Fair Distribution",
    "workerEfficiency": "Worker Efficiency",
    "phaseBalance": "Phase Balance",
}


def _weights(values: dict[str, int]) -> list[PriorityWeight]:
    return [
        PriorityWeight(name=name, description=_DESCRIPTIONS[name], weight=weight)
        for name, weight in values.items()
    ]


DEFAULT_WEIGHTS: tuple[PriorityWeight, ...] = tuple(
    _weights(
        {
            "clientPriority": 5,
            "requestFulfillment": 4,
            "fairDistribution": 3,
            "workerEfficiency": 3,
            "phaseBalance": 2,
        }
    )
)

PREDEFINED_PROFILES: tuple[PriorityProfile, ...] = (
    PriorityProfile(
        name="Maximize Fulfillment",
        description="Prioritize fulfilling as many client requests as possible",
        weights=_weights(
            {
                "clientPriority": 5,
                "requestFulfillment": 5,
                "fairDistribution": 2,
                "workerEfficiency": 3,
                "phaseBalance": 2,
            }
        ),
    ),
    PriorityProfile(
        name="Fair Distribution",
        description="Balance work fairly across all workers",
        weights=_weights(
            {
                "clientPriority": 3,
                "requestFulfillment": 3,
                "fairDistribution": 5,
                "workerEfficiency": 2,
                "phaseBalance": 4,
            }
        ),
    ),
    PriorityProfile(
        name="Worker Efficiency",
        description="Optimize for worker skill utilization and efficiency",
        weights=_weights(
            {
                "clientPriority": 2,
                "requestFulfillment": 3,
                "fairDistribution": 2,
                "workerEfficiency": 5,
                "phaseBalance": 3,
            }
        ),
    ),
    PriorityProfile(
        name="Phase Balance",
        description="Distribute work evenly across all phases",
        weights=_weights(
            {
                "clientPriority": 2,
                "requestFulfillment": 3,
                "fairDistribution": 3,
                "workerEfficiency": 2,
                "phaseBalance": 5,
            }
        ),
    ),
)


def default_weights() -> list[PriorityWeight]:
    """Fresh copy of the default weights."""
    return [w.model_copy() for w in DEFAULT_WEIGHTS]


def get_profile(name: str) -> PriorityProfile:
    """
    @brief
    Look up a predefined profile by exact name.

    @raises
        ConfigError
            If no profile carries that name.
    """
    for profile in PREDEFINED_PROFILES:
        if profile.name == name:
            return profile.model_copy(deep=True)
    raise ConfigError(
        message=f"Unknown priority profile: {name!r}",
        source="priorities.get_profile",
        suggested_action=(
            f"Use one of: {', '.join(p.name for p in PREDEFINED_PROFILES)}"
        ),
    )


def resolve_weights(profile_name: str | None) -> list[PriorityWeight]:
    """Weights of the named profile, or the defaults when no name is given."""
    if not profile_name:
        return default_weights()
    weights = get_profile(profile_name).weights
    logger.info("Using priority profile %r", profile_name)
    return weights


def set_weight(weights: Sequence[PriorityWeight], name: str, value: int) -> list[PriorityWeight]:
    """
    @brief
    Return a new weight list with one weight replaced.

    @details
    The input list is not modified.

    @raises
        DataError
            If ``name`` is not present or ``value`` is outside [1, 5].
    """
    # (1) Locate the weight
    if name not in {w.name for w in weights}:
        raise DataError(
            message=f"Unknown priority weight: {name!r}",
            source="priorities.set_weight",
            suggested_action=f"Use one of: {', '.join(w.name for w in weights)}",
        )

    # (2) Replace it through model validation so the range is enforced
    out: list[PriorityWeight] = []
    for w in weights:
        if w.name != name:
            out.append(w)
            continue
        try:
            out.append(PriorityWeight(name=w.name, description=w.description, weight=value))
        except PydanticValidationError as e:
            raise DataError(
                message=f"Invalid weight {value!r} for {name!r}: must be an integer in [1, 5]",
                source="priorities.set_weight",
            ) from e
    return out


__all__ = [
    "DEFAULT_WEIGHTS",
    "PREDEFINED_PROFILES",
    "default_weights",
    "get_profile",
    "resolve_weights",
    "set_weight",
]
