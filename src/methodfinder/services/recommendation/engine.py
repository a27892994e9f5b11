"""
Recommendation Engine facade.

Wires catalog, attribute model, rule configuration, scorer, validator and
classifier together. Build one engine per catalog and call ``recommend``
once per request; the engine keeps no per-request state.
"""

from typing import Iterable, Mapping, Optional, Union

from methodfinder.config.rules import SemanticRuleConfig, load_rule_config
from methodfinder.schemas.catalog import UserSelection
from methodfinder.schemas.recommendation import TieredRecommendations
from methodfinder.services.method_catalog import MethodCatalog
from methodfinder.services.recommendation.attribute_model import AttributeModel
from methodfinder.services.recommendation.match_scorer import MatchScorer
from methodfinder.services.recommendation.semantic_validator import SemanticValidator
from methodfinder.services.recommendation.tier_classifier import TierClassifier
from methodfinder.utils.logger import log


SelectionInput = Union[UserSelection, Mapping[str, Iterable[str]]]


class RecommendationEngine:
    """
    Recommends catalog methods for a user's filter selection.

    Usage:
        engine = RecommendationEngine(catalog)
        tiers = engine.recommend({"sem_level": ["Individual"]})
        for result in tiers.best_fit:
            print(result.method.name, result.match_percentage)
    """

    def __init__(
        self,
        catalog: MethodCatalog,
        rule_config: Optional[SemanticRuleConfig] = None,
        attribute_model: Optional[AttributeModel] = None,
    ):
        """
        Args:
            catalog: Loaded method catalog (shared read-only)
            rule_config: Semantic rule table. Defaults to the bundled
                         data/semantic_rules.yaml
            attribute_model: Known categories. Built from the catalog when omitted
        """
        self.catalog = catalog
        self.rule_config = rule_config if rule_config is not None else load_rule_config()
        self.attribute_model = attribute_model or AttributeModel(
            catalog.categories,
            role_categories=self.rule_config.role_categories(),
        )

        self.validator = SemanticValidator(self.rule_config)
        self.scorer = MatchScorer(self.attribute_model)
        self.classifier = TierClassifier(self.scorer, self.validator)

        # Selections on these ids are dropped by restrict(), so their rules never fire
        unknown_roles = self.attribute_model.unknown_categories(self.rule_config.role_categories().values())
        if unknown_roles:
            log.warning(
                f"Rule categories missing from the catalog's category list: {', '.join(unknown_roles)}; "
                "semantic rules on them will not apply"
            )

        missing = self.validator.missing_tagged_methods(m.name for m in catalog.iter_methods())
        if missing:
            log.debug(f"Rule table names methods absent from the catalog: {', '.join(missing)}")

    def recommend(self, selection: SelectionInput) -> TieredRecommendations:
        """
        Classify every catalog method for one selection.

        Args:
            selection: A UserSelection, or a plain mapping of category id -> values

        Returns:
            TieredRecommendations partitioning the whole catalog
        """
        if not isinstance(selection, UserSelection):
            selection = UserSelection.from_mapping(selection)

        selection = self.attribute_model.restrict(selection)
        tiers = self.classifier.classify(self.catalog.iter_methods(), selection)

        log.debug(
            f"Recommendation: {len(tiers.best_fit)} best fit, "
            f"{len(tiers.good_alternatives)} good alternatives, "
            f"{len(tiers.stretch_options)} stretch options, "
            f"{len(tiers.excluded)} excluded, {len(tiers.unlisted)} unlisted"
        )
        return tiers


def create_recommendation_engine(
    catalog_path: Optional[str] = None,
    rules_path: Optional[str] = None,
) -> RecommendationEngine:
    """
    Factory building an engine from files.

    Raises:
        CatalogLoadError: If the catalog cannot be loaded
        RuleConfigError: If the rule configuration cannot be loaded
    """
    catalog = MethodCatalog.from_file(catalog_path or MethodCatalog.DEFAULT_PATH)
    rule_config = load_rule_config(rules_path)
    return RecommendationEngine(catalog, rule_config=rule_config)
