"""
Tier Classifier.

Combines semantic validity and match percentage into the final partition:

    invalid                  -> excluded
    100%                     -> best fit
    >= 80%                   -> good alternative
    > 0%                     -> stretch option
    0% with filters applied  -> unlisted (never suggested)

Each bucket is ordered by descending percentage; ties keep catalog order.
"""

from typing import Iterable, Optional

from methodfinder.schemas.catalog import Method, UserSelection
from methodfinder.schemas.recommendation import (
    GOOD_ALTERNATIVE_THRESHOLD,
    MatchResult,
    Tier,
    TieredRecommendations,
)
from methodfinder.services.recommendation.match_scorer import MatchScorer
from methodfinder.services.recommendation.semantic_validator import SemanticValidator


def tier_for(result: MatchResult) -> Tier:
    """Tier for a result that passed semantic validation."""
    if result.total_filtered_categories == 0:
        return Tier.BEST_FIT
    if len(result.matched_categories) == result.total_filtered_categories:
        return Tier.BEST_FIT
    if result.match_percentage >= GOOD_ALTERNATIVE_THRESHOLD:
        return Tier.GOOD_ALTERNATIVE
    if result.match_percentage > 0:
        return Tier.STRETCH_OPTION
    return Tier.UNLISTED


class TierClassifier:
    """Buckets every catalog method for one selection."""

    def __init__(
        self,
        scorer: Optional[MatchScorer] = None,
        validator: Optional[SemanticValidator] = None,
    ):
        self.scorer = scorer or MatchScorer()
        self.validator = validator or SemanticValidator()

    def classify_method(self, method: Method, selection: UserSelection) -> MatchResult:
        """
        Validate, score and tier a single method.

        Excluded results still carry their raw score for diagnostics.
        """
        invalid, reasons = self.validator.is_semantically_invalid(method, selection)
        result = self.scorer.score(method, selection)

        if invalid:
            return result.with_exclusion(reasons)
        return result.with_tier(tier_for(result))

    def classify(self, methods: Iterable[Method], selection: UserSelection) -> TieredRecommendations:
        """Partition methods into tiers, preserving catalog order within ties."""
        tiers = TieredRecommendations()

        for method in methods:
            result = self.classify_method(method, selection)
            tiers.bucket(result.tier).append(result)

        for tier in (Tier.BEST_FIT, Tier.GOOD_ALTERNATIVE, Tier.STRETCH_OPTION):
            # list.sort is stable
            tiers.bucket(tier).sort(key=lambda r: r.match_percentage, reverse=True)

        return tiers
