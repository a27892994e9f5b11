"""
Recommendation schemas: tiers, per-method match results and the tiered
partition returned for one selection.

MatchResult is immutable. ``to_dict`` gives the camelCase shape used by the
CLI ``--json`` output and the HTTP API.
"""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, FrozenSet, List, Optional, Tuple

from methodfinder.schemas.catalog import Method


# --- Tiers ---

class Tier(Enum):
    """Bucket a method lands in for a given selection."""
    BEST_FIT = "best_fit"
    GOOD_ALTERNATIVE = "good_alternative"
    STRETCH_OPTION = "stretch_option"
    EXCLUDED = "excluded"          # Vetoed by a semantic rule
    UNLISTED = "unlisted"          # Valid but matched none of the filters


TIER_LABELS: Dict[Tier, str] = {
    Tier.BEST_FIT: "Best Fit",
    Tier.GOOD_ALTERNATIVE: "Good Alternative",
    Tier.STRETCH_OPTION: "Stretch Option",
    Tier.EXCLUDED: "Excluded",
    Tier.UNLISTED: "Unlisted",
}

# Percentage thresholds (inclusive lower bounds)
BEST_FIT_THRESHOLD = 1.0
GOOD_ALTERNATIVE_THRESHOLD = 0.8


# --- Per-method result ---

@dataclass(frozen=True)
class MatchResult:
    """Score and verdict for one (method, selection) pair."""
    method: Method
    matched_categories: FrozenSet[str] = frozenset()
    total_filtered_categories: int = 0
    match_percentage: float = 1.0

    # Filled in by the semantic validator
    excluded: bool = False
    exclusion_reasons: Tuple[str, ...] = ()

    # Filled in by the tier classifier
    tier: Optional[Tier] = None

    @property
    def method_name(self) -> str:
        return self.method.name

    def with_exclusion(self, reasons: List[str]) -> "MatchResult":
        """Copy of this result marked as semantically excluded."""
        return replace(
            self,
            excluded=True,
            exclusion_reasons=tuple(reasons),
            tier=Tier.EXCLUDED,
        )

    def with_tier(self, tier: Tier) -> "MatchResult":
        return replace(self, tier=tier)

    def to_dict(self) -> Dict[str, Any]:
        """Plain representation for JSON output (CLI --json, HTTP API)."""
        data: Dict[str, Any] = {
            "method": self.method.name,
            "description": self.method.description,
            "matchPercentage": self.match_percentage,
            "matchedCategories": sorted(self.matched_categories),
            "totalFilteredCategories": self.total_filtered_categories,
            "tier": self.tier.value if self.tier else None,
        }
        for key, value in (
            ("costTier", self.method.cost_tier),
            ("connectivity", self.method.connectivity),
            ("type", self.method.type),
            ("link", self.method.link),
            ("link2", self.method.link2),
        ):
            if value is not None:
                data[key] = value
        if self.excluded:
            data["exclusionReasons"] = list(self.exclusion_reasons)
        return data


# --- Aggregate result ---

@dataclass
class TieredRecommendations:
    """
    Partition of the catalog for one selection.

    Every catalog method appears in exactly one of the five sequences.
    ``unlisted`` holds methods that passed validation but matched none of
    the filtered categories; it is diagnostic and never shown as a
    suggestion.
    """
    best_fit: List[MatchResult] = field(default_factory=list)
    good_alternatives: List[MatchResult] = field(default_factory=list)
    stretch_options: List[MatchResult] = field(default_factory=list)
    excluded: List[MatchResult] = field(default_factory=list)
    unlisted: List[MatchResult] = field(default_factory=list)

    def bucket(self, tier: Tier) -> List[MatchResult]:
        """The sequence holding a given tier."""
        return {
            Tier.BEST_FIT: self.best_fit,
            Tier.GOOD_ALTERNATIVE: self.good_alternatives,
            Tier.STRETCH_OPTION: self.stretch_options,
            Tier.EXCLUDED: self.excluded,
            Tier.UNLISTED: self.unlisted,
        }[tier]

    @property
    def suggestions(self) -> List[MatchResult]:
        """Suggested methods in display order (best fit first)."""
        return self.best_fit + self.good_alternatives + self.stretch_options

    def tier_of(self, method_name: str) -> Optional[Tier]:
        """Which tier a method landed in, or None if it is not in the catalog."""
        for tier in Tier:
            if any(r.method.name == method_name for r in self.bucket(tier)):
                return tier
        return None

    def __len__(self) -> int:
        return sum(len(self.bucket(tier)) for tier in Tier)

    def to_dict(self, include_unlisted: bool = False) -> Dict[str, Any]:
        data = {
            "bestFit": [r.to_dict() for r in self.best_fit],
            "goodAlternatives": [r.to_dict() for r in self.good_alternatives],
            "stretchOptions": [r.to_dict() for r in self.stretch_options],
            "excluded": [r.to_dict() for r in self.excluded],
        }
        if include_unlisted:
            data["unlisted"] = [r.to_dict() for r in self.unlisted]
        return data
