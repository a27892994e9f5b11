"""
Unit tests for MethodCatalog.

Tests loading from JSON and YAML, permissive handling of malformed entries
and the error paths of load() and from_file().
"""

import json

import pytest
import yaml

from methodfinder.services import method_catalog as catalog_module
from methodfinder.services.method_catalog import CatalogLoadError, MethodCatalog


def create_mock_catalog_data():
    """Create a small catalog in the methods_data.json shape."""
    return {
        "categories": [
            {"id": "sem_level", "name": "SEM Level", "multiValued": True, "options": ["Individual", "Community"]},
            {"name": "Technology Access", "options": ["Low", "High", "Low"]},
        ],
        "methods": [
            {
                "name": "Photovoice",
                "description": "Participants take photos",
                "attributes": {"sem_level": ["Individual", "Community"], "technology_access": ["Low"]},
                "costTier": "Medium",
                "link": "www.photovoice.org",
            },
            {
                "name": "Household Surveys",
                "description": "",
                "attributes": {"sem_level": ["Individual"]},
                "cost_tier": "Low",
            },
        ],
    }


# --- Bundled data ---


class TestBundledCatalog:

    def test_default_path_loads(self):
        catalog = MethodCatalog()

        assert catalog.load() is True
        assert catalog.is_loaded
        assert len(catalog) > 0
        assert catalog.get_category("sem_level") is not None

    def test_bundled_methods_have_descriptions(self):
        catalog = MethodCatalog.from_file(MethodCatalog.DEFAULT_PATH)

        assert all(method.description for method in catalog.iter_methods())


# --- Parsing ---


class TestParsing:

    def test_from_dict(self):
        catalog = MethodCatalog.from_dict(create_mock_catalog_data())

        assert [c.id for c in catalog.categories] == ["sem_level", "technology_access"]
        assert catalog.get_category("technology_access").options == ("Low", "High")
        assert "Photovoice" in catalog
        assert len(catalog) == 2

    def test_method_fields(self):
        catalog = MethodCatalog.from_dict(create_mock_catalog_data())

        photovoice = catalog.get_method("Photovoice")
        assert photovoice.cost_tier == "Medium"
        assert photovoice.link == "https://www.photovoice.org"
        assert photovoice.declared_values("technology_access") == frozenset({"Low"})

        surveys = catalog.get_method("Household Surveys")
        assert surveys.cost_tier == "Low"
        assert surveys.description.startswith("Household Surveys ")

    def test_missing_sections(self):
        catalog = MethodCatalog.from_dict({})

        assert catalog.categories == ()
        assert catalog.methods == ()

    def test_methods_without_name_skipped(self):
        catalog = MethodCatalog.from_dict({
            "methods": [{"description": "anonymous"}, {"name": "  "}, "not a dict", {"name": "Kept"}],
        })

        assert [m.name for m in catalog.iter_methods()] == ["Kept"]

    def test_duplicate_method_keeps_first(self):
        catalog = MethodCatalog.from_dict({
            "methods": [
                {"name": "Photovoice", "description": "first"},
                {"name": "Photovoice", "description": "second"},
            ],
        })

        assert len(catalog) == 1
        assert catalog.get_method("Photovoice").description == "first"

    def test_duplicate_category_keeps_first(self):
        catalog = MethodCatalog.from_dict({
            "categories": [
                {"id": "sem_level", "name": "SEM Level"},
                {"id": "sem_level", "name": "Other"},
            ],
        })

        assert len(catalog.categories) == 1
        assert catalog.categories[0].name == "SEM Level"

    def test_malformed_attributes_are_unconstrained(self):
        catalog = MethodCatalog.from_dict({
            "methods": [
                {"name": "A", "attributes": "sem_level"},
                {"name": "B", "attributes": {"sem_level": "Individual", "resources": ["Low"]}},
            ],
        })

        assert dict(catalog.get_method("A").attributes) == {}
        assert catalog.get_method("B").declared_values("sem_level") is None
        assert catalog.get_method("B").declared_values("resources") == frozenset({"Low"})

    def test_null_placeholders(self):
        catalog = MethodCatalog.from_dict({
            "methods": [{"name": "A", "link": "null", "costTier": "null"}],
        })

        method = catalog.get_method("A")
        assert method.link is None
        assert method.cost_tier is None


# --- Files ---


class TestFiles:

    def test_json_file(self, tmp_path):
        path = tmp_path / "methods_data.json"
        path.write_text(json.dumps(create_mock_catalog_data()), encoding="utf-8")

        catalog = MethodCatalog.from_file(path)

        assert len(catalog) == 2

    def test_yaml_file(self, tmp_path):
        path = tmp_path / "methods.yaml"
        path.write_text(yaml.safe_dump(create_mock_catalog_data()), encoding="utf-8")

        catalog = MethodCatalog.from_file(path)

        assert catalog.get_method("Photovoice").cost_tier == "Medium"

    def test_missing_file_load_returns_false(self, tmp_path):
        catalog = MethodCatalog(tmp_path / "missing.json")

        assert catalog.load() is False
        assert not catalog.is_loaded

    def test_missing_file_from_file_raises(self, tmp_path):
        with pytest.raises(CatalogLoadError):
            MethodCatalog.from_file(tmp_path / "missing.json")

    def test_invalid_json_raises(self, tmp_path):
        path = tmp_path / "broken.json"
        path.write_text("{not json", encoding="utf-8")

        with pytest.raises(CatalogLoadError):
            MethodCatalog.from_file(path)

    def test_wrong_top_level_shape_raises(self, tmp_path):
        path = tmp_path / "list.json"
        path.write_text("[]", encoding="utf-8")

        with pytest.raises(CatalogLoadError):
            MethodCatalog.from_file(path)


# --- Singleton ---


class TestSingleton:

    def test_reload_replaces_instance(self, tmp_path, monkeypatch):
        monkeypatch.setattr(catalog_module, "_default_catalog", None)
        path = tmp_path / "methods_data.json"
        path.write_text(json.dumps(create_mock_catalog_data()), encoding="utf-8")

        first = catalog_module.get_method_catalog(path)
        assert catalog_module.get_method_catalog() is first

        second = catalog_module.reload_method_catalog(path)
        assert second is not first
        assert len(second) == 2
