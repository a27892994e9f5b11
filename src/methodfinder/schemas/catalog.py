"""
Catalog schemas: categories, methods and the per-request user selection.

All three are immutable once built. Raw input (lists, tuples, stray scalars)
is normalized on construction so the recommendation layers only ever see
frozen sets of option values.
"""

import re
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, FrozenSet, Iterable, Iterator, Mapping, Optional, Tuple


DEFAULT_DESCRIPTION_SUFFIX = "methodology for adolescent girl empowerment research"


class SemanticRole(Enum):
    """Categories that take part in semantic validation."""
    LEVEL = "level"             # Ecological / measurement level (SEM level)
    TECHNOLOGY = "technology"   # Technology access
    CULTURAL = "cultural"       # Cultural restrictiveness


def category_id_from_name(name: str) -> str:
    """
    Derive a stable category id from its display label.

    "SEM Level" -> "sem_level", "Technology Access" -> "technology_access"
    """
    lowered = name.strip().lower()
    lowered = re.sub(r"\s+", "_", lowered)
    return re.sub(r"[^a-z0-9_]", "", lowered)


def default_description(method_name: str) -> str:
    """Description used when the source data has none."""
    return f"{method_name} {DEFAULT_DESCRIPTION_SUFFIX}"


def normalize_value_set(raw: Any, allow_scalar: bool = False) -> Optional[FrozenSet[str]]:
    """
    Normalize a raw attribute or selection value into a frozen set.

    Lists, tuples and sets become a frozen set of their non-blank string
    members. Anything else is malformed and yields None ("no constraint"),
    except a bare string when ``allow_scalar`` is set, which is read as a
    one-element selection.
    """
    if isinstance(raw, str):
        if allow_scalar and raw.strip():
            return frozenset([raw.strip()])
        return None

    if not isinstance(raw, (list, tuple, set, frozenset)):
        return None

    return frozenset(
        value.strip()
        for value in raw
        if isinstance(value, str) and value.strip()
    )


def _freeze_value_map(
    raw: Any,
    allow_scalar: bool,
    keep_empty: bool,
) -> Mapping[str, FrozenSet[str]]:
    """
    Build a read-only category -> values map.

    Malformed entries are always dropped. Empty sets are kept only when
    ``keep_empty`` is set.
    """
    if not isinstance(raw, Mapping):
        return MappingProxyType({})

    frozen: Dict[str, FrozenSet[str]] = {}
    for key, value in raw.items():
        if not isinstance(key, str):
            continue
        values = normalize_value_set(value, allow_scalar=allow_scalar)
        if values is None:
            continue
        if values or keep_empty:
            frozen[key] = values
    return MappingProxyType(frozen)


@dataclass(frozen=True)
class Category:
    """A filterable category such as "SEM Level" or "Technology Access"."""
    id: str
    name: str
    multi_valued: bool = True
    options: Tuple[str, ...] = ()
    semantic_role: Optional[SemanticRole] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "multiValued": self.multi_valued,
            "options": list(self.options),
            "semanticRole": self.semantic_role.value if self.semantic_role else None,
        }


@dataclass(frozen=True, eq=False)
class Method:
    """
    A research-measurement method from the catalog.

    ``attributes`` maps category id -> supported option values. A category
    that is missing (or whose value is malformed) carries no constraint for
    that method. A category declared with an empty set supports nothing.
    """
    name: str
    description: str = ""
    attributes: Mapping[str, FrozenSet[str]] = field(default_factory=dict)

    # Passthrough metadata, never scored
    cost_tier: Optional[str] = None
    connectivity: Optional[str] = None
    type: Optional[str] = None
    link: Optional[str] = None
    link2: Optional[str] = None

    def __post_init__(self):
        object.__setattr__(self, "attributes", _freeze_value_map(self.attributes, allow_scalar=False, keep_empty=True))
        if not self.description or not self.description.strip():
            object.__setattr__(self, "description", default_description(self.name))

    def declared_values(self, category_id: str) -> Optional[FrozenSet[str]]:
        """Values declared for a category, or None when undeclared."""
        return self.attributes.get(category_id)

    def to_dict(self) -> Dict[str, Any]:
        """Catalog JSON shape (camelCase keys, sorted value lists)."""
        data: Dict[str, Any] = {
            "name": self.name,
            "description": self.description,
            "attributes": {cid: sorted(values) for cid, values in self.attributes.items()},
        }
        for key, value in (
            ("costTier", self.cost_tier),
            ("connectivity", self.connectivity),
            ("type", self.type),
            ("link", self.link),
            ("link2", self.link2),
        ):
            if value is not None:
                data[key] = value
        return data

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Method):
            return NotImplemented
        return (
            self.name == other.name
            and self.description == other.description
            and dict(self.attributes) == dict(other.attributes)
            and self.cost_tier == other.cost_tier
            and self.connectivity == other.connectivity
            and self.type == other.type
            and self.link == other.link
            and self.link2 == other.link2
        )

    def __hash__(self) -> int:
        return hash(self.name)


@dataclass(frozen=True, eq=False)
class UserSelection:
    """
    The filter values a user picked for one recommendation request.

    Categories with no picked values are simply absent. Build one per
    request with ``UserSelection.from_mapping``.
    """
    values: Mapping[str, FrozenSet[str]] = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(self, "values", _freeze_value_map(self.values, allow_scalar=True, keep_empty=False))

    @classmethod
    def from_mapping(cls, raw: Optional[Mapping[str, Iterable[str]]]) -> "UserSelection":
        """Build a selection from a plain dict such as a parsed request body."""
        return cls(values=dict(raw or {}))

    def get(self, category_id: str) -> FrozenSet[str]:
        """Picked values for a category (empty when not filtered)."""
        return self.values.get(category_id, frozenset())

    def filtered_categories(self) -> Tuple[str, ...]:
        """Category ids with a non-empty selection, in insertion order."""
        return tuple(self.values.keys())

    def is_empty(self) -> bool:
        return not self.values

    def __iter__(self) -> Iterator[str]:
        return iter(self.values)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, UserSelection):
            return NotImplemented
        return dict(self.values) == dict(other.values)

    def __hash__(self) -> int:
        return hash(frozenset(self.values.items()))
