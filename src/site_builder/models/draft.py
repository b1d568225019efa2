from __future__ import annotations

from datetime import date
from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, Field, model_validator


class Product(str, Enum):
    conference = "conference"
    shop = "shop"


class Surface(str, Enum):
    web = "web"
    app = "app"


class EditorMode(str, Enum):
    wizard = "wizard"
    tabs = "tabs"


COLOR_TOKEN_KEYS = (
    "primary",
    "secondary",
    "accent",
    "background",
    "surface",
    "text",
    "text_muted",
    "border",
    "nav_background",
    "nav_text",
)


class Overview(BaseModel):
    id: str | None = None
    slug: str | None = None
    name: str = ""
    tagline: str = ""
    description: str = ""
    start_date: date | None = None
    end_date: date | None = None
    venue_name: str = ""
    venue_address: str = ""
    logo_url: str | None = None
    banner_url: str | None = None


class ColorTokens(BaseModel):
    """Semantic color tokens. ``None`` leaves the token to the next layer."""

    primary: str | None = None
    secondary: str | None = None
    accent: str | None = None
    background: str | None = None
    surface: str | None = None
    text: str | None = None
    text_muted: str | None = None
    border: str | None = None
    nav_background: str | None = None
    nav_text: str | None = None


class FontFamily(BaseModel):
    heading: str | None = None
    body: str | None = None
    mono: str | None = None


class Typography(BaseModel):
    font_family: FontFamily = Field(default_factory=FontFamily)


class DesignTokens(BaseModel):
    colors: ColorTokens = Field(default_factory=ColorTokens)
    typography: Typography = Field(default_factory=Typography)


class Gradients(BaseModel):
    hero: str | None = None
    accent: str | None = None
    card: str | None = None


class CardStyle(BaseModel):
    variant: Literal["white", "tinted", "glass"] = "white"
    border: Literal["none", "primary", "secondary", "accent"] = "none"
    icon_style: Literal["solid", "outline", "pill"] = "solid"


class Design(BaseModel):
    tokens: DesignTokens = Field(default_factory=DesignTokens)
    gradients: Gradients = Field(default_factory=Gradients)
    card_style: CardStyle = Field(default_factory=CardStyle)
    icon_theme: Literal["solid", "outline", "duotone", "glass"] = "solid"


class SurfaceSettings(BaseModel):
    """Presentation settings for one render target (web page or app view)."""

    colors: ColorTokens = Field(default_factory=ColorTokens)
    fonts: FontFamily = Field(default_factory=FontFamily)
    hero_style: Literal["image", "video", "gradient"] = "gradient"
    hero_height: Literal["small", "medium", "large", "full"] = "medium"
    hero_background_url: str | None = None
    hero_video_url: str | None = None
    hero_overlay_opacity: float = 0.3
    background_pattern: str | None = None
    background_pattern_color: str | None = "#00000010"
    background_gradient_start: str | None = None
    background_gradient_end: str | None = None
    background_image_url: str | None = None
    background_image_overlay: float = 0.5


class NavigationModule(BaseModel):
    id: str
    name: str
    icon: str
    enabled: bool = True
    order: int = 0


class PageSection(BaseModel):
    id: str
    section_type: str
    config: dict[str, Any] = Field(default_factory=dict)
    is_visible: bool = True


class PublishSettings(BaseModel):
    event_code: str = ""
    public_url: str = ""
    is_published: bool = False


class Draft(BaseModel):
    schema_version: int = 1
    product: Product = Product.conference
    overview: Overview = Field(default_factory=Overview)
    design: Design = Field(default_factory=Design)
    navigation: list[NavigationModule] = Field(default_factory=list)
    sections: list[PageSection] = Field(default_factory=list)
    web: SurfaceSettings = Field(default_factory=SurfaceSettings)
    app: SurfaceSettings = Field(default_factory=SurfaceSettings)
    publish: PublishSettings = Field(default_factory=PublishSettings)

    @model_validator(mode="after")
    def validate_module_ids(self):
        duplicates = self.duplicate_module_ids()
        if duplicates:
            raise ValueError(f"Duplicate navigation module ids: {duplicates}")
        return self

    def duplicate_module_ids(self) -> list[str]:
        seen: set[str] = set()
        duplicates: list[str] = []
        for module in self.navigation:
            if module.id in seen and module.id not in duplicates:
                duplicates.append(module.id)
            seen.add(module.id)
        return duplicates

    def surface(self, surface: Surface) -> SurfaceSettings:
        return self.web if surface == Surface.web else self.app

    def find_module(self, module_id: str) -> NavigationModule | None:
        for module in self.navigation:
            if module.id == module_id:
                return module
        return None


__all__ = [
    "COLOR_TOKEN_KEYS",
    "CardStyle",
    "ColorTokens",
    "Design",
    "DesignTokens",
    "Draft",
    "EditorMode",
    "FontFamily",
    "Gradients",
    "NavigationModule",
    "Overview",
    "PageSection",
    "Product",
    "PublishSettings",
    "Surface",
    "SurfaceSettings",
    "Typography",
]
