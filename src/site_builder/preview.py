"""Pure projection of a draft into the configuration the preview renders.

Nothing here performs I/O or reads the clock, so the same draft always
projects to the same ``PreviewConfig``.
"""

from __future__ import annotations

from datetime import date
from types import MappingProxyType
from typing import Any, Mapping, Sequence

from pydantic import BaseModel, Field

from .models.draft import COLOR_TOKEN_KEYS, Draft, FontFamily, Product, Surface
from .registry import get_module_definition, get_section_definition, is_module_available

PLATFORM_COLOR_DEFAULTS: Mapping[str, str] = MappingProxyType(
    {
        "primary": "#2563eb",
        "secondary": "#8b5cf6",
        "accent": "#f59e0b",
        "background": "#ffffff",
        "surface": "#f8fafc",
        "text": "#1f2937",
        "text_muted": "#6b7280",
        "border": "#e5e7eb",
        "nav_background": "#ffffff",
        "nav_text": "#374151",
    }
)

PLATFORM_FONT_DEFAULTS: Mapping[str, str] = MappingProxyType(
    {"heading": "Inter", "body": "Inter", "mono": "JetBrains Mono"}
)

_UNTITLED = {Product.conference: "Your Conference", Product.shop: "Your Shop"}


class PreviewColors(BaseModel):
    primary: str
    secondary: str
    accent: str
    background: str
    surface: str
    text: str
    text_muted: str
    border: str
    nav_background: str
    nav_text: str


class PreviewFonts(BaseModel):
    heading: str
    body: str
    mono: str


class PreviewHero(BaseModel):
    style: str
    height: str
    background_url: str | None = None
    video_url: str | None = None
    overlay_opacity: float
    gradient: str | None = None


class PreviewBackground(BaseModel):
    pattern: str
    pattern_color: str | None = None
    gradient_start: str | None = None
    gradient_end: str | None = None
    image_url: str | None = None
    image_overlay: float


class PreviewModule(BaseModel):
    id: str
    name: str
    label: str
    icon: str
    gradient: tuple[str, str]
    description: str
    order: int


class PreviewSection(BaseModel):
    id: str
    section_type: str
    name: str
    config: dict[str, Any] = Field(default_factory=dict)


class PreviewConfig(BaseModel):
    surface: Surface
    title: str
    tagline: str | None = None
    start_date: date | None = None
    end_date: date | None = None
    venue_name: str | None = None
    logo_url: str | None = None
    banner_url: str | None = None
    colors: PreviewColors
    fonts: PreviewFonts
    hero: PreviewHero
    background: PreviewBackground
    gradients: dict[str, str | None]
    card_style: dict[str, str]
    icon_theme: str
    modules: Sequence[PreviewModule]
    sections: Sequence[PreviewSection]


def _first_set(*values: str | None) -> str | None:
    for value in values:
        if value:
            return value
    return None


def resolve_colors(draft: Draft, surface: Surface) -> PreviewColors:
    overrides = draft.surface(surface).colors
    tokens = draft.design.tokens.colors
    resolved = {
        key: _first_set(getattr(overrides, key), getattr(tokens, key)) or PLATFORM_COLOR_DEFAULTS[key]
        for key in COLOR_TOKEN_KEYS
    }
    return PreviewColors(**resolved)


def resolve_fonts(draft: Draft, surface: Surface) -> PreviewFonts:
    overrides = draft.surface(surface).fonts
    tokens: FontFamily = draft.design.tokens.typography.font_family
    resolved = {
        key: _first_set(getattr(overrides, key), getattr(tokens, key)) or default
        for key, default in PLATFORM_FONT_DEFAULTS.items()
    }
    return PreviewFonts(**resolved)


def project_modules(draft: Draft) -> list[PreviewModule]:
    # sorted() is stable, so equal orders keep insertion order
    enabled = sorted(
        (module for module in draft.navigation if module.enabled),
        key=lambda module: module.order,
    )
    projected: list[PreviewModule] = []
    for module in enabled:
        if not is_module_available(module.id, draft.product):
            continue
        definition = get_module_definition(module.id)
        projected.append(
            PreviewModule(
                id=module.id,
                name=module.name or definition.label,
                label=definition.label,
                icon=definition.icon,
                gradient=definition.gradient,
                description=definition.description,
                order=module.order,
            )
        )
    return projected


def project_sections(draft: Draft) -> list[PreviewSection]:
    projected: list[PreviewSection] = []
    for section in draft.sections:
        if not section.is_visible:
            continue
        definition = get_section_definition(section.section_type)
        if definition is None:
            continue
        projected.append(
            PreviewSection(
                id=section.id,
                section_type=section.section_type,
                name=definition.name,
                config=dict(section.config),
            )
        )
    return projected


def build_preview(source: Draft, surface: Surface = Surface.app) -> PreviewConfig:
    """Project one draft for the given render target."""
    settings = source.surface(surface)
    overview = source.overview
    design = source.design
    return PreviewConfig(
        surface=surface,
        title=overview.name or _UNTITLED[source.product],
        tagline=overview.tagline or None,
        start_date=overview.start_date,
        end_date=overview.end_date,
        venue_name=overview.venue_name or None,
        logo_url=overview.logo_url,
        banner_url=overview.banner_url,
        colors=resolve_colors(source, surface),
        fonts=resolve_fonts(source, surface),
        hero=PreviewHero(
            style=settings.hero_style,
            height=settings.hero_height,
            background_url=settings.hero_background_url,
            video_url=settings.hero_video_url,
            overlay_opacity=settings.hero_overlay_opacity,
            gradient=design.gradients.hero,
        ),
        background=PreviewBackground(
            pattern=settings.background_pattern or "none",
            pattern_color=settings.background_pattern_color,
            gradient_start=settings.background_gradient_start,
            gradient_end=settings.background_gradient_end,
            image_url=settings.background_image_url,
            image_overlay=settings.background_image_overlay,
        ),
        gradients=design.gradients.model_dump(),
        card_style=design.card_style.model_dump(),
        icon_theme=design.icon_theme,
        modules=project_modules(source),
        sections=project_sections(source),
    )


def project_preview(
    draft: Draft,
    saved_snapshot: Draft,
    *,
    preview_enabled: bool,
    surface: Surface = Surface.app,
) -> PreviewConfig:
    source = draft if preview_enabled else saved_snapshot
    return build_preview(source, surface)


__all__ = [
    "PLATFORM_COLOR_DEFAULTS",
    "PLATFORM_FONT_DEFAULTS",
    "PreviewConfig",
    "PreviewModule",
    "PreviewSection",
    "build_preview",
    "project_modules",
    "project_preview",
    "project_sections",
    "resolve_colors",
    "resolve_fonts",
]
