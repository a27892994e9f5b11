"""
Semantic rule configuration.

The technology-floor and cultural-visibility rules do not trust catalog
attributes. They are driven by an explicit table of method name -> rule tags
kept in YAML (``data/semantic_rules.yaml`` ships with the package), so data
corrections never touch validator code.

File layout:

    categories:
      level: sem_level
      technology: technology_access
      cultural: cultural_restrictiveness
    extremes:
      technology_floor: Low
      cultural_ceiling: High
    method_tags:
      Photovoice: [visual_identity]
      "Participatory Video/Digital Storytelling": [requires_high_tech, visual_identity]
"""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, FrozenSet, Mapping, Optional, Union

import yaml

from methodfinder.schemas.catalog import SemanticRole
from methodfinder.utils.logger import log


DEFAULT_RULES_PATH = Path(__file__).parent.parent / "data" / "semantic_rules.yaml"


class RuleConfigError(Exception):
    """Raised when a rule configuration file cannot be used."""


class RuleTag(Enum):
    """Tags a method can carry in the rule table."""
    REQUIRES_HIGH_TECH = "requires_high_tech"
    VISUAL_IDENTITY = "visual_identity"


@dataclass(frozen=True, eq=False)
class SemanticRuleConfig:
    """Category ids, extreme values and the method tag table used by the validator."""
    level_category: str = "sem_level"
    technology_category: str = "technology_access"
    cultural_category: str = "cultural_restrictiveness"

    technology_floor: str = "Low"
    cultural_ceiling: str = "High"

    method_tags: Mapping[str, FrozenSet[RuleTag]] = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(self, "method_tags", MappingProxyType(dict(self.method_tags)))

    def tags_for(self, method_name: str) -> FrozenSet[RuleTag]:
        return self.method_tags.get(method_name, frozenset())

    def has_tag(self, method_name: str, tag: RuleTag) -> bool:
        return tag in self.tags_for(method_name)

    def methods_with_tag(self, tag: RuleTag) -> FrozenSet[str]:
        return frozenset(name for name, tags in self.method_tags.items() if tag in tags)

    def role_categories(self) -> Dict[SemanticRole, str]:
        """Category id playing each semantic role."""
        return {
            SemanticRole.LEVEL: self.level_category,
            SemanticRole.TECHNOLOGY: self.technology_category,
            SemanticRole.CULTURAL: self.cultural_category,
        }


def _parse_tags(method_name: str, raw: Any) -> FrozenSet[RuleTag]:
    if isinstance(raw, str):
        raw = [raw]
    if not isinstance(raw, (list, tuple)):
        raise RuleConfigError(f"Tags for '{method_name}' must be a list, got {type(raw).__name__}")

    tags = set()
    for value in raw:
        try:
            tags.add(RuleTag(str(value).strip()))
        except ValueError:
            log.warning(f"Ignoring unknown rule tag '{value}' for method '{method_name}'")
    return frozenset(tags)


def parse_rule_config(data: Optional[Dict[str, Any]]) -> SemanticRuleConfig:
    """
    Build a SemanticRuleConfig from parsed YAML/JSON data.

    Missing sections fall back to the defaults on SemanticRuleConfig.

    Raises:
        RuleConfigError: If a section has the wrong shape
    """
    if data is None:
        return SemanticRuleConfig()
    if not isinstance(data, dict):
        raise RuleConfigError("Rule configuration must be a mapping")

    defaults = SemanticRuleConfig()

    categories = data.get("categories") or {}
    extremes = data.get("extremes") or {}
    tag_table = data.get("method_tags") or {}

    for section_name, section in (("categories", categories), ("extremes", extremes), ("method_tags", tag_table)):
        if not isinstance(section, dict):
            raise RuleConfigError(f"'{section_name}' must be a mapping")

    method_tags = {
        str(name).strip(): _parse_tags(str(name), tags)
        for name, tags in tag_table.items()
    }

    return SemanticRuleConfig(
        level_category=categories.get("level", defaults.level_category),
        technology_category=categories.get("technology", defaults.technology_category),
        cultural_category=categories.get("cultural", defaults.cultural_category),
        technology_floor=extremes.get("technology_floor", defaults.technology_floor),
        cultural_ceiling=extremes.get("cultural_ceiling", defaults.cultural_ceiling),
        method_tags=method_tags,
    )


def load_rule_config(path: Optional[Union[str, Path]] = None) -> SemanticRuleConfig:
    """
    Load the rule configuration from YAML.

    Args:
        path: YAML file path. Defaults to the bundled data/semantic_rules.yaml

    Raises:
        RuleConfigError: If the file is missing, unparseable or malformed
    """
    rules_path = Path(path) if path else DEFAULT_RULES_PATH

    try:
        with open(rules_path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except FileNotFoundError as e:
        raise RuleConfigError(f"Rule configuration not found: {rules_path}") from e
    except yaml.YAMLError as e:
        raise RuleConfigError(f"Failed to parse rule configuration {rules_path}: {e}") from e

    config = parse_rule_config(data)
    log.debug(
        f"Loaded rule configuration from {rules_path}: "
        f"{len(config.method_tags)} tagged methods"
    )
    return config
