"""
Method Catalog Service.

Loads the methods catalog (methods_data.json, or the same structure in YAML)
and normalizes it into immutable Category and Method records.

Loading is permissive: a malformed entry is repaired or skipped with a
warning rather than failing the whole catalog.
"""

import json
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Tuple, Union

import yaml

from methodfinder.schemas.catalog import Category, Method, category_id_from_name
from methodfinder.services.catalog_ingest import is_blank, normalize_link
from methodfinder.utils.logger import log


class CatalogLoadError(Exception):
    """Raised when a catalog file cannot be read or has the wrong shape."""


YAML_SUFFIXES = {".yaml", ".yml"}


def _optional_text(value: Any) -> Optional[str]:
    if not isinstance(value, str) or is_blank(value):
        return None
    return value.strip()


class MethodCatalog:
    """
    The normalized set of methods and categories.

    Usage:
        catalog = MethodCatalog()
        catalog.load()

        for method in catalog.iter_methods():
            ...

        catalog = MethodCatalog.from_dict({"categories": [...], "methods": [...]})
    """

    DEFAULT_PATH = Path(__file__).parent.parent / "data" / "methods_data.json"

    def __init__(self, path: Optional[Union[str, Path]] = None):
        """
        Initialize the catalog.

        Args:
            path: Optional catalog file. Defaults to the bundled data/methods_data.json
        """
        self.path = Path(path) if path else self.DEFAULT_PATH
        self._categories: Tuple[Category, ...] = ()
        self._methods: Tuple[Method, ...] = ()
        self._by_name: Dict[str, Method] = {}
        self._loaded = False

    # =========================================================================
    # Construction
    # =========================================================================

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MethodCatalog":
        """Build a catalog from already-parsed data."""
        catalog = cls()
        catalog._parse(data)
        catalog._loaded = True
        return catalog

    @classmethod
    def from_methods(
        cls,
        methods: List[Method],
        categories: Optional[List[Category]] = None,
    ) -> "MethodCatalog":
        """Build a catalog from records that are already normalized."""
        catalog = cls()
        catalog._categories = tuple(categories or ())
        catalog._set_methods(methods)
        catalog._loaded = True
        return catalog

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> "MethodCatalog":
        """
        Load a catalog file, raising on failure.

        Raises:
            CatalogLoadError: If the file is missing, unparseable or has the wrong shape
        """
        catalog = cls(path)
        catalog._load_or_raise()
        return catalog

    def load(self) -> bool:
        """
        Load the catalog from ``self.path``.

        Returns:
            True if loaded successfully, False otherwise.
        """
        try:
            self._load_or_raise()
            return True
        except CatalogLoadError as e:
            log.error(str(e))
            return False

    def _load_or_raise(self) -> None:
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                if self.path.suffix.lower() in YAML_SUFFIXES:
                    data = yaml.safe_load(f)
                else:
                    data = json.load(f)
        except FileNotFoundError as e:
            raise CatalogLoadError(f"Catalog not found: {self.path}") from e
        except (json.JSONDecodeError, yaml.YAMLError) as e:
            raise CatalogLoadError(f"Failed to parse catalog {self.path}: {e}") from e
        except OSError as e:
            raise CatalogLoadError(f"Error reading catalog {self.path}: {e}") from e

        if not isinstance(data, dict):
            raise CatalogLoadError(f"Catalog {self.path} must contain an object with 'categories' and 'methods'")

        self._parse(data)
        self._loaded = True
        log.info(f"Loaded {len(self._methods)} methods and {len(self._categories)} categories from {self.path}")

    # =========================================================================
    # Parsing
    # =========================================================================

    def _parse(self, data: Dict[str, Any]) -> None:
        raw_categories = data.get("categories") or []
        raw_methods = data.get("methods") or []

        if not isinstance(raw_categories, list):
            log.warning("Catalog 'categories' is not a list; ignoring it")
            raw_categories = []
        if not isinstance(raw_methods, list):
            log.warning("Catalog 'methods' is not a list; ignoring it")
            raw_methods = []

        categories: List[Category] = []
        seen_ids = set()
        for raw in raw_categories:
            category = self._parse_category(raw)
            if category is None:
                continue
            if category.id in seen_ids:
                log.warning(f"Duplicate category id '{category.id}'; keeping the first")
                continue
            seen_ids.add(category.id)
            categories.append(category)

        methods: List[Method] = []
        for raw in raw_methods:
            method = self._parse_method(raw)
            if method is not None:
                methods.append(method)

        self._categories = tuple(categories)
        self._set_methods(methods)

    def _set_methods(self, methods: List[Method]) -> None:
        by_name: Dict[str, Method] = {}
        ordered: List[Method] = []
        for method in methods:
            if method.name in by_name:
                log.warning(f"Duplicate method '{method.name}'; keeping the first")
                continue
            by_name[method.name] = method
            ordered.append(method)
        self._by_name = by_name
        self._methods = tuple(ordered)

    def _parse_category(self, raw: Any) -> Optional[Category]:
        """Parse one category record."""
        if not isinstance(raw, dict):
            log.warning(f"Skipping malformed category entry: {raw!r}")
            return None

        name = _optional_text(raw.get("name"))
        category_id = _optional_text(raw.get("id"))
        if category_id is None and name is not None:
            category_id = category_id_from_name(name)
        if not category_id:
            log.warning(f"Skipping category without id or name: {raw!r}")
            return None

        options: List[str] = []
        raw_options = raw.get("options")
        if isinstance(raw_options, list):
            for option in raw_options:
                if isinstance(option, str) and option.strip() and option.strip() not in options:
                    options.append(option.strip())

        multi_valued = raw.get("multiValued", raw.get("multi_valued", True))

        return Category(
            id=category_id,
            name=name or category_id,
            multi_valued=bool(multi_valued),
            options=tuple(options),
        )

    def _parse_method(self, raw: Any) -> Optional[Method]:
        """Parse one method record. Bad attribute data degrades to "no constraint"."""
        if not isinstance(raw, dict):
            log.warning(f"Skipping malformed method entry: {raw!r}")
            return None

        name = _optional_text(raw.get("name"))
        if name is None:
            log.warning("Skipping method without a name")
            return None

        attributes = raw.get("attributes")
        if attributes is None:
            attributes = {}
        elif not isinstance(attributes, dict):
            log.warning(f"Method '{name}' has malformed attributes; treating as unconstrained")
            attributes = {}
        else:
            for category_id, values in attributes.items():
                if not isinstance(values, (list, tuple)):
                    log.warning(
                        f"Method '{name}' has a malformed value for '{category_id}'; "
                        "treating it as unconstrained"
                    )

        return Method(
            name=name,
            description=_optional_text(raw.get("description")) or "",
            attributes=attributes,
            cost_tier=_optional_text(raw.get("costTier", raw.get("cost_tier"))),
            connectivity=_optional_text(raw.get("connectivity")),
            type=_optional_text(raw.get("type")),
            link=normalize_link(raw.get("link")),
            link2=normalize_link(raw.get("link2")),
        )

    # =========================================================================
    # Query Methods
    # =========================================================================

    @property
    def is_loaded(self) -> bool:
        return self._loaded

    @property
    def categories(self) -> Tuple[Category, ...]:
        return self._categories

    @property
    def methods(self) -> Tuple[Method, ...]:
        return self._methods

    def get_method(self, name: str) -> Optional[Method]:
        """Get a method by name."""
        return self._by_name.get(name)

    def get_category(self, category_id: str) -> Optional[Category]:
        for category in self._categories:
            if category.id == category_id:
                return category
        return None

    def iter_methods(self) -> Iterator[Method]:
        """Iterate over methods in catalog order."""
        yield from self._methods

    def __len__(self) -> int:
        return len(self._methods)

    def __contains__(self, name: str) -> bool:
        return name in self._by_name


# =============================================================================
# Module-level singleton for convenience
# =============================================================================

_default_catalog: Optional[MethodCatalog] = None


def get_method_catalog(path: Optional[Union[str, Path]] = None) -> MethodCatalog:
    """
    Get the default catalog instance, loading it on first call.

    Args:
        path: Catalog file used for the first load (ignored afterwards)
    """
    global _default_catalog

    if _default_catalog is None:
        _default_catalog = MethodCatalog(path)
        _default_catalog.load()

    return _default_catalog


def reload_method_catalog(path: Optional[Union[str, Path]] = None) -> MethodCatalog:
    """Reload the default catalog from disk."""
    global _default_catalog

    _default_catalog = MethodCatalog(path)
    _default_catalog.load()

    return _default_catalog
