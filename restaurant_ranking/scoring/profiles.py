from __future__ import annotations

from dataclasses import dataclass

from ..errors import ConfigurationError


@dataclass(frozen=True)
class ScoringProfile:
    """One scoring dimension: which tags to read, what ideal to compare against, where to write."""

    name: str
    category: str
    score_field: str
    reference_tags: tuple[str, ...]


# Edit these ideal tags to match the target experience.
AMBIANCE_PROFILE = ScoringProfile(
    name="ambiance",
    category="ambiance",
    score_field="ambianceScore",
    reference_tags=("cozy", "romantic", "intimate", "stylish", "warm", "inviting"),
)

PROFILES: dict[str, ScoringProfile] = {
    AMBIANCE_PROFILE.name: AMBIANCE_PROFILE,
}


def get_profile(name: str, profiles: dict[str, ScoringProfile] = PROFILES) -> ScoringProfile:
    try:
        return profiles[name]
    except KeyError:
        known = ", ".join(sorted(profiles)) or "none"
        raise ConfigurationError(f"unknown scoring profile {name!r} (known: {known})") from None
