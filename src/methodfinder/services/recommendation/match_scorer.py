"""
Match Scorer.

Fraction of the user's filtered categories a method satisfies.

- A category counts as filtered when the user picked at least one value.
- A method satisfies a filtered category when it does not declare it at all,
  or when its declared values overlap the user's picks. A declared empty
  set overlaps nothing.
- With no filters at all every method scores 1.0.
"""

from typing import Optional

from methodfinder.schemas.catalog import Method, UserSelection
from methodfinder.schemas.recommendation import MatchResult
from methodfinder.services.recommendation.attribute_model import AttributeModel


class MatchScorer:
    """Computes the percentage part of a MatchResult."""

    def __init__(self, attribute_model: Optional[AttributeModel] = None):
        """
        Args:
            attribute_model: Known categories. Selection keys it does not
                             know are ignored. None means every key counts.
        """
        self.attribute_model = attribute_model or AttributeModel()

    def score(self, method: Method, selection: UserSelection) -> MatchResult:
        """
        Score a method against a selection.

        Never raises: undeclared or malformed method data counts as a match.
        """
        filtered = [
            category_id
            for category_id in selection.filtered_categories()
            if self.attribute_model.is_known(category_id)
        ]

        if not filtered:
            return MatchResult(
                method=method,
                matched_categories=frozenset(),
                total_filtered_categories=0,
                match_percentage=1.0,
            )

        matched = frozenset(
            category_id
            for category_id in filtered
            if self._matches(method, category_id, selection)
        )

        return MatchResult(
            method=method,
            matched_categories=matched,
            total_filtered_categories=len(filtered),
            match_percentage=len(matched) / len(filtered),
        )

    def _matches(self, method: Method, category_id: str, selection: UserSelection) -> bool:
        declared = method.declared_values(category_id)
        if declared is None:
            return True
        return not declared.isdisjoint(selection.get(category_id))
