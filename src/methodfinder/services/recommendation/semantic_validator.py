"""
Semantic Validator.

Vetoes (method, selection) pairs that are categorically incoherent, no
matter how well the method scores on the other filters.

Rules, all evaluated in order:
- Level overlap: the method declares measurement levels and none of them
  is among the levels the user picked.
- Technology floor: the method is tagged requires_high_tech and the user
  picked only the lowest technology access value.
- Cultural visibility: the method is tagged visual_identity and the user
  picked only the most restrictive cultural value.

The technology and cultural rules look the method up in the rule table by
name and ignore what the catalog says about the method.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Iterable, List, Optional, Tuple

from methodfinder.config.rules import RuleTag, SemanticRuleConfig, load_rule_config
from methodfinder.schemas.catalog import Method, UserSelection
from methodfinder.utils.logger import log


class ExclusionRule(Enum):
    """Semantic rules that can veto a method."""
    LEVEL_OVERLAP = "level_overlap"
    TECHNOLOGY_FLOOR = "technology_floor"
    CULTURAL_VISIBILITY = "cultural_visibility"


@dataclass(frozen=True)
class RuleViolation:
    """A rule that fired for a method, with a readable reason."""
    rule: ExclusionRule
    reason: str


class SemanticValidator:
    """
    Rule engine deciding whether a method is semantically invalid for a selection.

    Stateless apart from the injected rule configuration, so one instance can
    serve concurrent requests.
    """

    def __init__(self, rule_config: Optional[SemanticRuleConfig] = None):
        """
        Args:
            rule_config: Rule table. Defaults to the bundled data/semantic_rules.yaml;
                         pass SemanticRuleConfig() for an empty table.
        """
        self.rule_config = rule_config if rule_config is not None else load_rule_config()
        self._rules: Tuple[Callable[[Method, UserSelection], Optional[RuleViolation]], ...] = (
            self._check_level_overlap,
            self._check_technology_floor,
            self._check_cultural_visibility,
        )

    def check(self, method: Method, selection: UserSelection) -> List[RuleViolation]:
        """Run every rule and collect the violations, in rule order."""
        violations = []
        for rule in self._rules:
            violation = rule(method, selection)
            if violation is not None:
                violations.append(violation)
        return violations

    def is_semantically_invalid(self, method: Method, selection: UserSelection) -> Tuple[bool, List[str]]:
        """
        Decide whether a method must be excluded.

        Returns:
            Tuple of (invalid, reasons)
        """
        violations = self.check(method, selection)
        if violations:
            log.debug(
                f"Excluding '{method.name}': "
                + "; ".join(v.reason for v in violations)
            )
        return bool(violations), [v.reason for v in violations]

    def missing_tagged_methods(self, method_names: Iterable[str]) -> List[str]:
        """Rule table entries that name no method in the given catalog."""
        known = set(method_names)
        return sorted(name for name in self.rule_config.method_tags if name not in known)

    # =========================================================================
    # Rules
    # =========================================================================

    def _check_level_overlap(self, method: Method, selection: UserSelection) -> Optional[RuleViolation]:
        category_id = self.rule_config.level_category
        method_levels = method.declared_values(category_id)
        selected_levels = selection.get(category_id)

        # A method with no declared level makes no claim of incompatibility
        if not method_levels or not selected_levels:
            return None
        if not method_levels.isdisjoint(selected_levels):
            return None

        return RuleViolation(
            rule=ExclusionRule.LEVEL_OVERLAP,
            reason=(
                f"Measures at {', '.join(sorted(method_levels))} level, "
                f"but {', '.join(sorted(selected_levels))} was selected"
            ),
        )

    def _check_technology_floor(self, method: Method, selection: UserSelection) -> Optional[RuleViolation]:
        if not self.rule_config.has_tag(method.name, RuleTag.REQUIRES_HIGH_TECH):
            return None

        floor = self.rule_config.technology_floor
        if selection.get(self.rule_config.technology_category) != {floor}:
            return None

        return RuleViolation(
            rule=ExclusionRule.TECHNOLOGY_FLOOR,
            reason=f"Requires reliable technology, but technology access is only {floor}",
        )

    def _check_cultural_visibility(self, method: Method, selection: UserSelection) -> Optional[RuleViolation]:
        if not self.rule_config.has_tag(method.name, RuleTag.VISUAL_IDENTITY):
            return None

        ceiling = self.rule_config.cultural_ceiling
        if selection.get(self.rule_config.cultural_category) != {ceiling}:
            return None

        return RuleViolation(
            rule=ExclusionRule.CULTURAL_VISIBILITY,
            reason=f"Exposes participant identity visually, but cultural restrictiveness is {ceiling}",
        )
