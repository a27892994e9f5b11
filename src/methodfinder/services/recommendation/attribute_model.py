"""
Attribute Model.

The fixed set of filterable categories, which of them accept several
values, and which take part in semantic validation.
"""

from dataclasses import replace
from typing import Dict, Iterable, List, Optional, Tuple

from methodfinder.schemas.catalog import Category, SemanticRole, UserSelection
from methodfinder.utils.logger import log


class AttributeModel:
    """
    Known categories plus the category id playing each semantic role.

    An attribute model built without categories is open: every category id
    is treated as known. This keeps the engine usable with a bare list of
    methods (tests, batch jobs) where no category descriptors exist.
    """

    def __init__(
        self,
        categories: Iterable[Category] = (),
        role_categories: Optional[Dict[SemanticRole, str]] = None,
    ):
        """
        Args:
            categories: Category descriptors from the catalog
            role_categories: Category id for each semantic role. Categories
                             that already carry a role keep it.
        """
        self._roles: Dict[SemanticRole, str] = dict(role_categories or {})

        by_role = {category_id: role for role, category_id in self._roles.items()}
        resolved = []
        for category in categories:
            if category.semantic_role is None and category.id in by_role:
                category = replace(category, semantic_role=by_role[category.id])
            elif category.semantic_role is not None:
                self._roles.setdefault(category.semantic_role, category.id)
            resolved.append(category)

        self._categories: Tuple[Category, ...] = tuple(resolved)
        self._by_id: Dict[str, Category] = {c.id: c for c in self._categories}

    @property
    def categories(self) -> Tuple[Category, ...]:
        return self._categories

    @property
    def is_open(self) -> bool:
        return not self._categories

    def get(self, category_id: str) -> Optional[Category]:
        return self._by_id.get(category_id)

    def is_known(self, category_id: str) -> bool:
        return self.is_open or category_id in self._by_id

    def is_multi_valued(self, category_id: str) -> bool:
        category = self._by_id.get(category_id)
        return category.multi_valued if category else True

    def role_category(self, role: SemanticRole) -> Optional[str]:
        """Category id that plays a semantic role, if any."""
        return self._roles.get(role)

    def semantic_categories(self) -> Tuple[Category, ...]:
        """Categories that participate in semantic validation."""
        return tuple(c for c in self._categories if c.semantic_role is not None)

    def unknown_categories(self, category_ids: Iterable[str]) -> List[str]:
        """Ids from ``category_ids`` this model does not know, in the given order."""
        return [cid for cid in category_ids if not self.is_known(cid)]

    def restrict(self, selection: UserSelection) -> UserSelection:
        """Drop category ids this model does not know about."""
        if self.is_open:
            return selection

        unknown = [cid for cid in selection.filtered_categories() if cid not in self._by_id]
        if not unknown:
            return selection

        log.debug(f"Ignoring unknown categories in selection: {', '.join(unknown)}")
        return UserSelection(
            values={cid: values for cid, values in selection.values.items() if cid in self._by_id}
        )
