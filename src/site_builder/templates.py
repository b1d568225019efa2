from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping, Sequence

from .models.draft import (
    CardStyle,
    ColorTokens,
    Design,
    DesignTokens,
    Draft,
    FontFamily,
    Gradients,
    Overview,
    PageSection,
    Product,
    SurfaceSettings,
    Typography,
)
from .registry import default_navigation, default_sections


@dataclass(frozen=True)
class HeroPreset:
    style: str
    height: str
    overlay_opacity: float


@dataclass(frozen=True)
class BuilderTemplate:
    id: str
    name: str
    description: str
    colors: ColorTokens
    fonts: FontFamily
    card_style: CardStyle
    hero: HeroPreset
    gradients: Gradients
    sections: Sequence[PageSection]


def _conference_draft() -> Draft:
    return Draft(
        product=Product.conference,
        overview=Overview(),
        design=Design(
            tokens=DesignTokens(
                colors=ColorTokens(
                    primary="#2563eb",
                    secondary="#8b5cf6",
                    accent="#f59e0b",
                    background="#ffffff",
                    text="#1f2937",
                ),
                typography=Typography(font_family=FontFamily(heading="Inter", body="Inter")),
            ),
        ),
        navigation=default_navigation(Product.conference),
        web=SurfaceSettings(colors=ColorTokens(nav_background="#ffffff", nav_text="#374151")),
        app=SurfaceSettings(),
    )


def _shop_draft() -> Draft:
    return Draft(
        product=Product.shop,
        overview=Overview(
            name="Maker's Market Demo Shop",
            tagline="Fresh from a local kitchen, ready for pickup.",
            description="Small-batch breads, pastries, and seasonal treats made for our neighborhood.",
            venue_name="Front Porch Pickup",
        ),
        design=Design(
            tokens=DesignTokens(
                colors=ColorTokens(
                    primary="#4E6E52",
                    secondary="#7A5C45",
                    accent="#C66A3D",
                    background="#F7F2E8",
                    surface="#FFF9EF",
                    text="#2F241D",
                    text_muted="#74665B",
                    border="#DFCFBC",
                ),
                typography=Typography(
                    font_family=FontFamily(heading="Playfair Display", body="DM Sans", mono="JetBrains Mono")
                ),
            ),
            gradients=Gradients(
                hero="linear-gradient(135deg, #4E6E52 0%, #7A5C45 55%, #C66A3D 100%)",
                accent="linear-gradient(90deg, #4E6E52, #C66A3D)",
                card="linear-gradient(180deg, #FFF9EF 0%, #F3E8D6 100%)",
            ),
            card_style=CardStyle(variant="tinted", border="secondary", icon_style="pill"),
            icon_theme="duotone",
        ),
        navigation=default_navigation(Product.shop),
        sections=default_sections(),
        web=SurfaceSettings(
            colors=ColorTokens(nav_background="#FFF8EE", nav_text="#4E6E52"),
            hero_style="image",
            hero_overlay_opacity=0.28,
            background_gradient_start="#FFF9EF",
            background_gradient_end="#F3E6D1",
        ),
        app=SurfaceSettings(),
    )


def default_draft(product: Product) -> Draft:
    """Draft used when the store has nothing for the entity yet."""
    if product == Product.shop:
        return _shop_draft()
    return _conference_draft()


_TEMPLATES: Sequence[BuilderTemplate] = (
    BuilderTemplate(
        id="classic-bakery",
        name="Classic Bakery",
        description="Warm, traditional, timeless",
        colors=ColorTokens(
            primary="#8B5E3C",
            secondary="#D4A574",
            accent="#C67B3C",
            background="#FFF8F0",
            surface="#FFFFFF",
            text="#3D2B1F",
            text_muted="#8B7355",
            border="#E8D5C4",
        ),
        fonts=FontFamily(heading="Playfair Display", body="Lora"),
        card_style=CardStyle(variant="white", border="none", icon_style="solid"),
        hero=HeroPreset(style="image", height="medium", overlay_opacity=0.3),
        gradients=Gradients(
            hero="linear-gradient(135deg, #8B5E3C 0%, #D4A574 100%)",
            accent="linear-gradient(135deg, #C67B3C 0%, #D4A574 100%)",
            card="linear-gradient(135deg, #FFF8F0 0%, #F5E6D3 100%)",
        ),
        sections=(
            PageSection(id="tpl-hero", section_type="hero", config={"height": "large", "showTagline": True}),
            PageSection(id="tpl-featured", section_type="featured_products", config={"count": 3, "style": "card"}),
            PageSection(id="tpl-about", section_type="about_me", config={"style": "card"}),
            PageSection(id="tpl-products", section_type="all_products", config={"layout": "grid"}),
            PageSection(id="tpl-reviews", section_type="reviews", config={"count": 3, "style": "carousel"}),
            PageSection(id="tpl-pickup", section_type="pickup_details", config={"showMap": False}),
        ),
    ),
    BuilderTemplate(
        id="modern-minimal",
        name="Modern Minimal",
        description="Clean, sharp, contemporary",
        colors=ColorTokens(
            primary="#1A1A1A",
            secondary="#555555",
            accent="#FF6B35",
            background="#FFFFFF",
            surface="#FAFAFA",
            text="#1A1A1A",
            text_muted="#888888",
            border="#EEEEEE",
        ),
        fonts=FontFamily(heading="Inter", body="Inter"),
        card_style=CardStyle(variant="white", border="none", icon_style="outline"),
        hero=HeroPreset(style="gradient", height="small", overlay_opacity=0.0),
        gradients=Gradients(
            hero="linear-gradient(135deg, #1A1A1A 0%, #555555 100%)",
            accent="linear-gradient(90deg, #FF6B35, #FF8E53)",
            card="linear-gradient(180deg, #FFFFFF 0%, #FAFAFA 100%)",
        ),
        sections=(
            PageSection(id="tpl-hero", section_type="hero", config={"height": "small", "showTagline": False}),
            PageSection(id="tpl-products", section_type="all_products", config={"layout": "grid"}),
            PageSection(id="tpl-divider", section_type="divider", config={"style": "line"}),
            PageSection(id="tpl-hours", section_type="shop_hours", config={}),
        ),
    ),
    BuilderTemplate(
        id="farmers-market",
        name="Farmers Market",
        description="Earthy, fresh, seasonal",
        colors=ColorTokens(
            primary="#4E6E52",
            secondary="#A3B18A",
            accent="#E07A5F",
            background="#F4F1DE",
            surface="#FFFDF5",
            text="#2D3A2E",
            text_muted="#6B705C",
            border="#DDD8C4",
        ),
        fonts=FontFamily(heading="Merriweather", body="Source Sans 3"),
        card_style=CardStyle(variant="tinted", border="primary", icon_style="pill"),
        hero=HeroPreset(style="image", height="large", overlay_opacity=0.35),
        gradients=Gradients(
            hero="linear-gradient(135deg, #4E6E52 0%, #A3B18A 100%)",
            accent="linear-gradient(90deg, #E07A5F, #F2CC8F)",
            card="linear-gradient(180deg, #FFFDF5 0%, #F4F1DE 100%)",
        ),
        sections=(
            PageSection(id="tpl-hero", section_type="hero", config={"height": "large", "showCTA": True}),
            PageSection(id="tpl-categories", section_type="product_categories", config={"showCounts": True}),
            PageSection(id="tpl-pickup", section_type="pickup_details", config={"showMap": True}),
            PageSection(id="tpl-faq", section_type="faq", config={"items": []}),
        ),
    ),
)

BUILDER_TEMPLATES: Mapping[str, BuilderTemplate] = MappingProxyType({t.id: t for t in _TEMPLATES})


def get_template(template_id: str) -> BuilderTemplate | None:
    return BUILDER_TEMPLATES.get(template_id)


__all__ = ["BUILDER_TEMPLATES", "BuilderTemplate", "HeroPreset", "default_draft", "get_template"]
