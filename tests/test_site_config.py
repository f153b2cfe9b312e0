"""Tests for site configuration loading."""

import pytest
import yaml

from wpf_build.site_config import PluginSettings, load_site_config, validate_site_config

from tests.conftest import SITE


@pytest.fixture
def site():
    return yaml.safe_load(yaml.safe_dump(SITE))


class TestValidation:
    """Test schema validation of parsed configuration."""

    def test_valid(self, site):
        result = validate_site_config(site)

        assert result.success
        assert result.config.project.name == "acme-corp"
        assert [p.slug for p in result.config.pages] == ["home", "about-us"]
        assert result.errors == []

    def test_warnings_for_optional_sections(self, site):
        result = validate_site_config(site)
        assert "No social media links defined" in result.warnings
        assert "No company description provided" in result.warnings
        assert "No hosting configuration - using Docker defaults" in result.warnings

    def test_no_warnings_when_complete(self, site):
        site["social"] = {"instagram": "https://instagram.com/acme"}
        site["company"]["description"] = "Makers"
        site["hosting"] = {"type": "docker"}
        assert validate_site_config(site).warnings == []

    def test_unmodelled_sections_pass_through(self, site):
        config = validate_site_config(site).config
        assert config.model_extra["branding"]["primary_color"] == "#112233"

    def test_project_name_must_be_kebab_case(self, site):
        site["project"]["name"] = "Acme Corp"
        result = validate_site_config(site)

        assert not result.success
        assert result.config is None
        assert any(e.startswith("project.name:") for e in result.errors)

    def test_page_slug_error_has_index(self, site):
        site["pages"][1]["slug"] = "About_Us"
        result = validate_site_config(site)
        assert any(e.startswith("pages.1.slug:") for e in result.errors)

    def test_pages_required(self, site):
        site["pages"] = []
        assert not validate_site_config(site).success

    def test_invalid_email(self, site):
        site["contact"]["email"] = "not-an-email"
        result = validate_site_config(site)
        assert any(e.startswith("contact.email:") for e in result.errors)

    def test_not_a_mapping(self):
        assert not validate_site_config(["a", "b"]).success


class TestPlugins:
    """Test plugin selection."""

    def test_defaults(self):
        assert PluginSettings().slugs() == [
            "wordpress-seo",
            "autoptimize",
            "shortpixel-image-optimiser",
            "contact-form-7",
        ]

    def test_additional_cache_and_remove(self):
        plugins = PluginSettings(
            cache="wp-super-cache",
            additional=["wpforms-lite"],
            remove=["autoptimize"],
        )
        assert plugins.slugs() == [
            "wordpress-seo",
            "shortpixel-image-optimiser",
            "contact-form-7",
            "wp-super-cache",
            "wpforms-lite",
        ]


class TestLoading:
    """Test reading configuration files."""

    def test_load(self, tmp_path, site):
        path = tmp_path / "wpf-config.yaml"
        path.write_text(yaml.safe_dump(site), encoding="utf-8")
        assert load_site_config(path).success

    def test_missing_file(self, tmp_path):
        result = load_site_config(tmp_path / "wpf-config.yaml")
        assert not result.success
        assert result.errors[0].startswith("Configuration file not found")

    def test_invalid_yaml(self, tmp_path):
        path = tmp_path / "wpf-config.yaml"
        path.write_text("project: [unclosed\n", encoding="utf-8")
        result = load_site_config(path)
        assert not result.success
        assert result.errors[0].startswith("Invalid YAML syntax")

    def test_not_utf8(self, tmp_path):
        path = tmp_path / "wpf-config.yaml"
        path.write_bytes(b"project:\n  name: caf\xe9\n")
        result = load_site_config(path)
        assert not result.success
        assert result.errors[0].startswith("Failed to read configuration file")
