"""
Templating Registries

Template catalog and Jinja2 layout cache for HTML generation.

The catalog (template/catalog.yaml) is data: each visual template is a layout
family plus a theme. Layout markup lives in template/layouts/ and only
arranges the shared section macros in template/structure/sections.html.jinja,
so every template renders the same logical content.
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List

from dotenv import load_dotenv
from jinja2 import Environment, FileSystemLoader, StrictUndefined, Template, TemplateNotFound
from omegaconf import OmegaConf

from safira.contexts.templating import formatting
from safira.contexts.templating.logger import log_catalog_loaded
from safira.exceptions import UnknownTemplateError

load_dotenv()
TEMPLATES_PATH = Path(os.getenv("SAFIRA_TEMPLATES_PATH", str(Path(__file__).parent / "template")))
CATALOG_FILENAME = "catalog.yaml"

SECTION_STYLES = ("rule", "band")
REQUIRED_ENTRY_FIELDS = ("id", "display_name", "layout_family", "category", "description", "theme")
REQUIRED_THEME_FIELDS = ("accent_color", "secondary_color", "tint_color", "section_style")

# Helpers exposed to every template, both as globals and as filters
TEMPLATE_HELPERS = {
    "format_month_year": formatting.format_month_year,
    "format_date_range": formatting.format_date_range,
    "proficiency_to_visual_level": formatting.proficiency_to_visual_level,
    "visual_indicator": formatting.visual_indicator,
    "proficiency_to_percent": formatting.proficiency_to_percent,
    "has_items": formatting.has_items,
    "truncate_list": formatting.truncate_list,
    "join_nonempty": formatting.join_nonempty,
}


@dataclass(frozen=True)
class TemplateDescriptor:
    """
    One entry of the template catalog.

    Attributes:
        id: Canonical template id (e.g. 'classic-teal')
        display_name: Human-readable name shown in the template picker
        layout_family: Which layout markup arranges the sections
        accent_color: Headings, rules, bullets
        secondary_color: Sidebar or header band background
        tint_color: Highlights on dark backgrounds, light section bands
        section_style: 'rule' or 'band'
        category: Picker filter group (Professional, Modern, ...)
        description: One-line description for the picker
    """

    id: str
    display_name: str
    layout_family: str
    accent_color: str
    secondary_color: str
    tint_color: str
    section_style: str
    category: str
    description: str

    @property
    def theme(self) -> Dict[str, str]:
        return {
            "accent_color": self.accent_color,
            "secondary_color": self.secondary_color,
            "tint_color": self.tint_color,
            "section_style": self.section_style,
        }

    def to_dict(self) -> Dict[str, Any]:
        """Catalog entry in the camelCase shape served to clients."""
        return {
            "id": self.id,
            "displayName": self.display_name,
            "layoutFamily": self.layout_family,
            "accentColor": self.accent_color,
            "category": self.category,
            "description": self.description,
        }


class TemplateRegistry:
    """
    Registry for the template catalog and cached Jinja2 layout templates.

    Read-only after construction: the catalog is loaded and validated once,
    and descriptors are immutable.
    """

    def __init__(self, templates_path: Path = None):
        """
        Initialize the template registry.

        Args:
            templates_path: Directory holding catalog.yaml, structure/ and
                            layouts/. Defaults to SAFIRA_TEMPLATES_PATH from
                            environment, else the bundled corpus

        Raises:
            ValueError: If the catalog is inconsistent
            FileNotFoundError: If catalog.yaml doesn't exist
        """
        if templates_path is None:
            templates_path = TEMPLATES_PATH

        self.templates_path = Path(templates_path)
        self.catalog_path = self.templates_path / CATALOG_FILENAME
        self._cache: Dict[str, Template] = {}

        self.env = Environment(
            loader=FileSystemLoader(str(self.templates_path)),
            # Every free-text CV field reaches the page escaped
            autoescape=True,
            # Catches silent failures
            undefined=StrictUndefined,
            trim_blocks=True,
            lstrip_blocks=True,
        )
        self.env.globals.update(TEMPLATE_HELPERS)
        self.env.filters.update(TEMPLATE_HELPERS)

        self._layouts: Dict[str, str] = {}
        self._aliases: Dict[str, str] = {}
        self._descriptors: Dict[str, TemplateDescriptor] = {}
        self._load_catalog()

    # =========================================================================
    # CATALOG
    # =========================================================================

    def _load_catalog(self) -> None:
        if not self.catalog_path.exists():
            raise FileNotFoundError(f"Template catalog not found at {self.catalog_path}")

        catalog = OmegaConf.to_container(OmegaConf.load(self.catalog_path), resolve=True)

        layouts = catalog.get("layouts") or {}
        for family, relative_path in layouts.items():
            if not (self.templates_path / relative_path).exists():
                raise ValueError(f"Layout markup for family '{family}' not found at {relative_path}")
        self._layouts = dict(layouts)

        for entry in catalog.get("templates") or []:
            descriptor = self._build_descriptor(entry)
            if descriptor.id in self._descriptors:
                raise ValueError(f"Duplicate template id '{descriptor.id}' in catalog")
            self._descriptors[descriptor.id] = descriptor

        for alias, target in (catalog.get("aliases") or {}).items():
            if alias in self._descriptors:
                raise ValueError(f"Alias '{alias}' shadows a canonical template id")
            if target not in self._descriptors:
                raise ValueError(f"Alias '{alias}' points to unknown template '{target}'")
            self._aliases[alias] = target

        if not self._descriptors:
            raise ValueError(f"Template catalog at {self.catalog_path} defines no templates")

        log_catalog_loaded(self.catalog_path, len(self._descriptors), len(self._aliases))

    def _build_descriptor(self, entry: Dict[str, Any]) -> TemplateDescriptor:
        missing = [name for name in REQUIRED_ENTRY_FIELDS if not entry.get(name)]
        if missing:
            raise ValueError(f"Catalog entry {entry.get('id', '<unnamed>')!r} missing fields: {missing}")

        theme = entry["theme"]
        missing = [name for name in REQUIRED_THEME_FIELDS if not theme.get(name)]
        if missing:
            raise ValueError(f"Theme of template '{entry['id']}' missing fields: {missing}")

        if entry["layout_family"] not in self._layouts:
            raise ValueError(
                f"Template '{entry['id']}' uses unknown layout family '{entry['layout_family']}'"
            )
        if theme["section_style"] not in SECTION_STYLES:
            raise ValueError(
                f"Template '{entry['id']}' uses unknown section style '{theme['section_style']}'"
            )

        return TemplateDescriptor(
            id=entry["id"],
            display_name=entry["display_name"],
            layout_family=entry["layout_family"],
            accent_color=theme["accent_color"],
            secondary_color=theme["secondary_color"],
            tint_color=theme["tint_color"],
            section_style=theme["section_style"],
            category=entry["category"],
            description=entry["description"],
        )

    def resolve(self, template_id: str) -> TemplateDescriptor:
        """
        Resolve a template id (canonical or legacy alias) to its descriptor.

        Args:
            template_id: Requested id, e.g. 'classic' or 'classic-teal'

        Returns:
            TemplateDescriptor of the canonical template

        Raises:
            UnknownTemplateError: If the id is neither canonical nor an alias
        """
        canonical_id = self._aliases.get(template_id, template_id)
        descriptor = self._descriptors.get(canonical_id)
        if descriptor is None:
            raise UnknownTemplateError(template_id, self.valid_ids())
        return descriptor

    def list(self) -> List[TemplateDescriptor]:
        """Canonical templates in catalog order (aliases excluded)."""
        return list(self._descriptors.values())

    def valid_ids(self) -> List[str]:
        """Canonical ids followed by aliases."""
        return [*self._descriptors, *self._aliases]

    @property
    def aliases(self) -> Dict[str, str]:
        return dict(self._aliases)

    @property
    def layout_families(self) -> List[str]:
        return [*self._layouts]

    # =========================================================================
    # LAYOUT TEMPLATES
    # =========================================================================

    def get_template(self, layout_family: str) -> Template:
        """
        Get the layout template for a family, loading and caching it if necessary.

        Args:
            layout_family: Name of the layout family (e.g., 'sidebar')

        Returns:
            Jinja2 Template object

        Raises:
            TemplateNotFound: If the family or its markup doesn't exist
            TemplateSyntaxError: If template has Jinja2 syntax errors
        """
        # Check cache first
        if layout_family in self._cache:
            return self._cache[layout_family]

        relative_path = self._layouts.get(layout_family)
        if relative_path is None:
            raise TemplateNotFound(f"Unknown layout family '{layout_family}'")

        try:
            template = self.env.get_template(relative_path)
        except TemplateNotFound as e:
            raise TemplateNotFound(
                f"Template not found for layout '{layout_family}' at {self.templates_path / relative_path}"
            ) from e

        self._cache[layout_family] = template
        return template

    def get_template_path(self, layout_family: str) -> Path:
        """
        Get the file path for a layout family's markup.

        Args:
            layout_family: Name of the layout family (e.g., 'minimal')

        Returns:
            Path to template file
        """
        return self.templates_path / self._layouts[layout_family]

    def clear_cache(self):
        """Clear the template cache."""
        self._cache.clear()

    def is_cached(self, layout_family: str) -> bool:
        """
        Check if a layout template is in the cache.

        Args:
            layout_family: Name of the layout family

        Returns:
            True if cached, False otherwise
        """
        return layout_family in self._cache
