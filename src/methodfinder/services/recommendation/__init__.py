"""
Matching and tiering engine.

- Match Scorer: fraction of filtered categories a method satisfies
- Semantic Validator: rule veto that overrides any score
- Tier Classifier: Best Fit / Good Alternative / Stretch Option / Excluded

Usage:
    from methodfinder.services.recommendation import RecommendationEngine

    engine = RecommendationEngine(catalog, rule_config)
    tiers = engine.recommend({"sem_level": ["Individual"]})
"""

from methodfinder.services.recommendation.attribute_model import AttributeModel
from methodfinder.services.recommendation.engine import (
    RecommendationEngine,
    create_recommendation_engine,
)
from methodfinder.services.recommendation.match_scorer import MatchScorer
from methodfinder.services.recommendation.semantic_validator import (
    ExclusionRule,
    RuleViolation,
    SemanticValidator,
)
from methodfinder.services.recommendation.tier_classifier import TierClassifier, tier_for

__all__ = [
    "AttributeModel",
    "ExclusionRule",
    "MatchScorer",
    "RecommendationEngine",
    "RuleViolation",
    "SemanticValidator",
    "TierClassifier",
    "create_recommendation_engine",
    "tier_for",
]
