"""
Unit tests for SemanticValidator.

Each rule is tested for the firing case, the near-miss that must not fire,
and the "absent data means the rule does not apply" default.
"""

import pytest

from methodfinder.config.rules import RuleTag, SemanticRuleConfig
from methodfinder.schemas.catalog import Method, UserSelection
from methodfinder.services.recommendation.semantic_validator import (
    ExclusionRule,
    SemanticValidator,
)


PARTICIPATORY_VIDEO = "Participatory Video/Digital Storytelling"
PHOTOVOICE = "Photovoice"


# --- Fixtures ---


@pytest.fixture
def rule_config() -> SemanticRuleConfig:
    return SemanticRuleConfig(
        method_tags={
            PARTICIPATORY_VIDEO: frozenset({RuleTag.REQUIRES_HIGH_TECH, RuleTag.VISUAL_IDENTITY}),
            PHOTOVOICE: frozenset({RuleTag.VISUAL_IDENTITY}),
            "Not In Catalog": frozenset({RuleTag.REQUIRES_HIGH_TECH}),
        }
    )


@pytest.fixture
def validator(rule_config) -> SemanticValidator:
    return SemanticValidator(rule_config)


def selection(**values) -> UserSelection:
    return UserSelection.from_mapping(values)


# --- Level overlap ---


class TestLevelOverlap:

    def test_institutional_method_excluded_for_individual_selection(self, validator):
        method = Method(name="Administrative Data", attributes={"sem_level": ["Institutional"]})

        invalid, reasons = validator.is_semantically_invalid(method, selection(sem_level=["Individual"]))

        assert invalid is True
        assert len(reasons) == 1
        assert "Institutional" in reasons[0]

    def test_any_overlap_passes(self, validator):
        method = Method(name="Key Informant Interviews", attributes={"sem_level": ["Community", "Institutional"]})

        invalid, _ = validator.is_semantically_invalid(method, selection(sem_level=["Individual", "Community"]))

        assert invalid is False

    def test_method_without_level_is_exempt(self, validator):
        method = Method(name="Most Significant Change", attributes={"resources": ["Low"]})

        invalid, reasons = validator.is_semantically_invalid(method, selection(sem_level=["Individual"]))

        assert invalid is False
        assert reasons == []

    def test_no_level_selected_does_not_apply(self, validator):
        method = Method(name="Administrative Data", attributes={"sem_level": ["Institutional"]})

        invalid, _ = validator.is_semantically_invalid(method, selection(resources=["Low"]))

        assert invalid is False

    def test_custom_level_category(self):
        validator = SemanticValidator(SemanticRuleConfig(level_category="ecological_level"))
        method = Method(name="Administrative Data", attributes={"ecological_level": ["Institutional"]})

        invalid, _ = validator.is_semantically_invalid(method, selection(ecological_level=["Individual"]))

        assert invalid is True


# --- Technology floor ---


class TestTechnologyFloor:

    def test_low_only_excludes_high_tech_method(self, validator):
        method = Method(name=PARTICIPATORY_VIDEO)

        violations = validator.check(method, selection(technology_access=["Low"]))

        assert [v.rule for v in violations] == [ExclusionRule.TECHNOLOGY_FLOOR]

    def test_low_and_medium_does_not_exclude(self, validator):
        method = Method(name=PARTICIPATORY_VIDEO)

        invalid, _ = validator.is_semantically_invalid(method, selection(technology_access=["Low", "Medium"]))

        assert invalid is False

    def test_catalog_claiming_low_tech_is_overridden(self, validator):
        method = Method(name=PARTICIPATORY_VIDEO, attributes={"technology_access": ["Low", "Medium", "High"]})

        invalid, _ = validator.is_semantically_invalid(method, selection(technology_access=["Low"]))

        assert invalid is True

    def test_untagged_method_not_excluded(self, validator):
        method = Method(name="Body Mapping", attributes={"technology_access": ["High"]})

        invalid, _ = validator.is_semantically_invalid(method, selection(technology_access=["Low"]))

        assert invalid is False

    def test_no_technology_selection_does_not_apply(self, validator):
        invalid, _ = validator.is_semantically_invalid(Method(name=PARTICIPATORY_VIDEO), selection())

        assert invalid is False


# --- Cultural visibility ---


class TestCulturalVisibility:

    def test_high_only_excludes_photovoice(self, validator):
        invalid, reasons = validator.is_semantically_invalid(
            Method(name=PHOTOVOICE), selection(cultural_restrictiveness=["High"])
        )

        assert invalid is True
        assert "High" in reasons[0]

    def test_high_and_low_does_not_exclude(self, validator):
        invalid, _ = validator.is_semantically_invalid(
            Method(name=PHOTOVOICE), selection(cultural_restrictiveness=["High", "Low"])
        )

        assert invalid is False

    def test_medium_only_does_not_exclude(self, validator):
        invalid, _ = validator.is_semantically_invalid(
            Method(name=PHOTOVOICE), selection(cultural_restrictiveness=["Medium"])
        )

        assert invalid is False


# --- Accumulation and configuration ---


class TestRuleAccumulation:

    def test_all_rules_reported_in_order(self, validator):
        method = Method(name=PARTICIPATORY_VIDEO, attributes={"sem_level": ["Community"]})
        sel = selection(
            sem_level=["Individual"],
            technology_access=["Low"],
            cultural_restrictiveness=["High"],
        )

        violations = validator.check(method, sel)

        assert [v.rule for v in violations] == [
            ExclusionRule.LEVEL_OVERLAP,
            ExclusionRule.TECHNOLOGY_FLOOR,
            ExclusionRule.CULTURAL_VISIBILITY,
        ]
        _, reasons = validator.is_semantically_invalid(method, sel)
        assert len(reasons) == 3

    def test_missing_tagged_methods(self, validator):
        missing = validator.missing_tagged_methods([PARTICIPATORY_VIDEO, PHOTOVOICE])

        assert missing == ["Not In Catalog"]

    def test_default_uses_bundled_rule_table(self):
        validator = SemanticValidator()

        invalid, _ = validator.is_semantically_invalid(
            Method(name=PHOTOVOICE), selection(cultural_restrictiveness=["High"])
        )

        assert invalid is True
        assert validator.rule_config.has_tag(PARTICIPATORY_VIDEO, RuleTag.REQUIRES_HIGH_TECH)

    def test_empty_rule_table_disables_tag_rules(self):
        validator = SemanticValidator(SemanticRuleConfig())

        invalid, _ = validator.is_semantically_invalid(
            Method(name=PHOTOVOICE), selection(cultural_restrictiveness=["High"])
        )

        assert invalid is False

    def test_declared_empty_level_is_exempt(self, validator):
        method = Method(name="Unlabelled", attributes={"sem_level": []})

        invalid, _ = validator.is_semantically_invalid(method, selection(sem_level=["Individual"]))

        assert invalid is False
