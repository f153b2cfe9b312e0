"""Site configuration (``wpf-config.yaml``) loading and validation."""

from pathlib import Path
from typing import Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from wpf_build.constants import DEFAULT_PLUGINS
from wpf_build.utils.io import load_file

KEBAB_CASE = r"^[a-z0-9-]+$"


class ProjectSettings(BaseModel):
    name: str = Field(pattern=KEBAB_CASE, description="Container and theme prefix")
    version: str = Field(default="1.0.0", pattern=r"^\d+\.\d+\.\d+$")
    domain: Optional[str] = None


class CompanySettings(BaseModel):
    model_config = ConfigDict(extra="allow")

    name: str
    tagline: Optional[str] = None
    description: Optional[str] = None


class ContactSettings(BaseModel):
    model_config = ConfigDict(extra="allow")

    email: str = Field(pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
    phone: Optional[str] = None


class PageSettings(BaseModel):
    model_config = ConfigDict(extra="allow")

    slug: str = Field(pattern=KEBAB_CASE)
    title: str
    template: str = "custom"


class PluginSettings(BaseModel):
    """Plugin selection. ``additional`` are appended, ``remove`` are dropped."""

    seo: str = DEFAULT_PLUGINS[0]
    optimization: str = DEFAULT_PLUGINS[1]
    images: str = DEFAULT_PLUGINS[2]
    forms: str = DEFAULT_PLUGINS[3]
    cache: Optional[str] = None
    additional: list[str] = Field(default_factory=list)
    remove: list[str] = Field(default_factory=list)

    def slugs(self) -> list[str]:
        selected = [self.seo, self.optimization, self.images, self.forms]
        if self.cache:
            selected.append(self.cache)
        selected.extend(self.additional)
        return [slug for slug in selected if slug and slug not in self.remove]


class SiteConfig(BaseModel):
    """Validated site configuration. Unmodelled sections pass through."""

    model_config = ConfigDict(extra="allow")

    project: ProjectSettings
    company: CompanySettings
    contact: ContactSettings
    pages: list[PageSettings] = Field(min_length=1)
    plugins: PluginSettings = Field(default_factory=PluginSettings)
    social: Optional[dict] = None
    hosting: Optional[dict] = None


class ConfigLoadResult(BaseModel):
    success: bool
    config: Optional[SiteConfig] = None
    errors: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)


def _format_errors(error: ValidationError) -> list[str]:
    return [
        f"{'.'.join(str(part) for part in e['loc'])}: {e['msg']}"
        for e in error.errors()
    ]


def validate_site_config(data: object) -> ConfigLoadResult:
    """Validate an already parsed configuration mapping."""
    try:
        config = SiteConfig.model_validate(data)
    except ValidationError as e:
        return ConfigLoadResult(success=False, errors=_format_errors(e))

    warnings = []
    if not config.social:
        warnings.append("No social media links defined")
    if not config.company.description:
        warnings.append("No company description provided")
    if not config.hosting:
        warnings.append("No hosting configuration - using Docker defaults")

    return ConfigLoadResult(success=True, config=config, warnings=warnings)


def load_site_config(config_path: Path) -> ConfigLoadResult:
    """Load and validate a site configuration file."""
    if not config_path.exists():
        return ConfigLoadResult(
            success=False, errors=[f"Configuration file not found: {config_path}"]
        )

    try:
        content = load_file(config_path)
    except (OSError, UnicodeDecodeError) as e:
        return ConfigLoadResult(
            success=False, errors=[f"Failed to read configuration file: {e}"]
        )

    try:
        data = yaml.safe_load(content)
    except yaml.YAMLError as e:
        return ConfigLoadResult(success=False, errors=[f"Invalid YAML syntax: {e}"])

    return validate_site_config(data)
