"""Unit tests for subject catalogs."""

import pytest

from agent_feedback.config import ConfigurationError
from agent_feedback.lib.catalog import (
    OpenSubjectCatalog,
    StaticSubjectCatalog,
    load_catalog,
)


CATALOG_YAML = """\
artifacts:
  art_1:
    owner_handle: "@carol"
  art_2: {}
skills:
  skill_summarize:
    owner_handle: dave
"""


@pytest.fixture
def catalog_file(tmp_path):
    path = tmp_path / "catalog.yaml"
    path.write_text(CATALOG_YAML, encoding="utf-8")
    return path


class TestStaticSubjectCatalog:

    def test_loads_both_sections(self, catalog_file):
        catalog = StaticSubjectCatalog.from_yaml(catalog_file)

        assert catalog.exists("art_1")
        assert catalog.exists("art_2")
        assert catalog.exists("skill_summarize")
        assert not catalog.exists("art_404")

    def test_owner_handles_strip_at_sign(self, catalog_file):
        catalog = StaticSubjectCatalog.from_yaml(catalog_file)

        assert catalog.owner_handle("art_1") == "carol"
        assert catalog.owner_handle("skill_summarize") == "dave"
        assert catalog.owner_handle("art_2") is None
        assert catalog.owner_handle("art_404") is None

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigurationError, match="not found"):
            StaticSubjectCatalog.from_yaml(tmp_path / "nope.yaml")

    def test_invalid_yaml(self, tmp_path):
        path = tmp_path / "catalog.yaml"
        path.write_text("artifacts: [unclosed", encoding="utf-8")

        with pytest.raises(ConfigurationError, match="Invalid YAML"):
            StaticSubjectCatalog.from_yaml(path)

    def test_section_must_be_mapping(self, tmp_path):
        path = tmp_path / "catalog.yaml"
        path.write_text("artifacts:\n  - art_1\n", encoding="utf-8")

        with pytest.raises(ConfigurationError, match="must be a mapping"):
            StaticSubjectCatalog.from_yaml(path)


class TestLoadCatalog:

    def test_open_catalog_when_unconfigured(self, monkeypatch):
        monkeypatch.delenv("FEEDBACK_CATALOG_PATH", raising=False)

        catalog = load_catalog()

        assert isinstance(catalog, OpenSubjectCatalog)
        assert catalog.exists("anything")
        assert catalog.owner_handle("anything") is None

    def test_path_from_environment(self, monkeypatch, catalog_file):
        monkeypatch.setenv("FEEDBACK_CATALOG_PATH", str(catalog_file))

        catalog = load_catalog()

        assert isinstance(catalog, StaticSubjectCatalog)
        assert catalog.owner_handle("art_1") == "carol"
