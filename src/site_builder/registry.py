from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Mapping, Sequence

from .models.draft import NavigationModule, PageSection, Product

BOTH = frozenset({Product.conference, Product.shop})
CONFERENCE = frozenset({Product.conference})
SHOP = frozenset({Product.shop})


@dataclass(frozen=True)
class ModuleDefinition:
    id: str
    label: str
    icon: str
    gradient: tuple[str, str]
    description: str
    products: frozenset[Product] = BOTH

    def supports(self, product: Product) -> bool:
        return product in self.products


@dataclass(frozen=True)
class SectionDefinition:
    section_type: str
    name: str
    description: str
    icon: str
    category: str
    default_config: Mapping[str, Any] = field(default_factory=dict)
    singleton: bool = False


_MODULES: Sequence[ModuleDefinition] = (
    ModuleDefinition("home", "Home", "Home", ("#667EEA", "#764BA2"), "Start here"),
    ModuleDefinition(
        "schedule", "Schedule", "Calendar", ("#FF6B6B", "#FF8E53"), "View sessions & schedule", CONFERENCE
    ),
    ModuleDefinition(
        "agenda", "Agenda", "Calendar", ("#FF6B6B", "#FF8E53"), "View sessions & schedule", CONFERENCE
    ),
    ModuleDefinition("speakers", "Speakers", "Users", ("#4FACFE", "#00F2FE"), "Meet our speakers", CONFERENCE),
    ModuleDefinition("sponsors", "Sponsors", "Building2", ("#43E97B", "#38F9D7"), "Our partners", CONFERENCE),
    ModuleDefinition(
        "networking", "Networking", "MessageCircle", ("#667EEA", "#764BA2"), "Connect with attendees", CONFERENCE
    ),
    ModuleDefinition("map", "Venue Map", "Map", ("#FA709A", "#FEE140"), "Find your way", CONFERENCE),
    ModuleDefinition(
        "notifications", "Notifications", "Bell", ("#F093FB", "#F5576C"), "Latest updates", CONFERENCE
    ),
    ModuleDefinition(
        "announcements", "Announcements", "Bell", ("#F093FB", "#F5576C"), "Latest updates", CONFERENCE
    ),
    ModuleDefinition("tickets", "My Ticket", "Ticket", ("#5EE7DF", "#B490CA"), "Your conference pass", CONFERENCE),
    ModuleDefinition("profile", "My Profile", "User", ("#A18CD1", "#FBC2EB"), "Your attendee profile", CONFERENCE),
    ModuleDefinition("catalog", "Catalog", "ShoppingBag", ("#F6D365", "#FDA085"), "Browse the menu", SHOP),
    ModuleDefinition("orders", "Orders", "ClipboardList", ("#84FAB0", "#8FD3F4"), "Track your orders", SHOP),
    ModuleDefinition("pickup", "Pickup", "MapPin", ("#FA709A", "#FEE140"), "Where and when to collect", SHOP),
    ModuleDefinition("reviews", "Reviews", "Star", ("#FFECD2", "#FCB69F"), "What customers say", SHOP),
    ModuleDefinition("messages", "Messages", "MessageCircle", ("#667EEA", "#764BA2"), "Talk to the maker", SHOP),
    ModuleDefinition("account", "Account", "User", ("#A18CD1", "#FBC2EB"), "Your details", SHOP),
)

MODULE_REGISTRY: Mapping[str, ModuleDefinition] = MappingProxyType({m.id: m for m in _MODULES})

DEFAULT_MODULE_CATALOG: Mapping[Product, Sequence[str]] = MappingProxyType(
    {
        Product.conference: (
            "home",
            "schedule",
            "speakers",
            "sponsors",
            "networking",
            "map",
            "notifications",
            "profile",
        ),
        Product.shop: ("home", "catalog", "orders", "pickup", "reviews", "messages", "account"),
    }
)


def get_module_definition(module_id: str) -> ModuleDefinition | None:
    return MODULE_REGISTRY.get(module_id)


def is_module_available(module_id: str, product: Product) -> bool:
    definition = MODULE_REGISTRY.get(module_id)
    return definition is not None and definition.supports(product)


def default_navigation(product: Product) -> list[NavigationModule]:
    modules: list[NavigationModule] = []
    for index, module_id in enumerate(DEFAULT_MODULE_CATALOG[product]):
        definition = MODULE_REGISTRY[module_id]
        modules.append(
            NavigationModule(
                id=definition.id,
                name=definition.label,
                icon=definition.icon,
                enabled=True,
                order=index,
            )
        )
    return modules


_SECTIONS: Sequence[SectionDefinition] = (
    SectionDefinition(
        "hero",
        "Hero Banner",
        "Large header with shop name and image",
        "Image",
        "content",
        {"height": "medium", "showTagline": True, "showCTA": True},
        singleton=True,
    ),
    SectionDefinition(
        "featured_products", "Featured Products", "Highlight your best sellers", "Star", "content",
        {"count": 3, "style": "card"},
    ),
    SectionDefinition(
        "product_categories", "Product Categories", "Browse by category tabs", "Grid3X3", "content",
        {"showCounts": True},
    ),
    SectionDefinition(
        "all_products", "All Products", "Full product catalog", "ShoppingBag", "content",
        {"layout": "grid", "showFilters": True},
    ),
    SectionDefinition(
        "about_me", "About Me", "Tell your maker story", "User", "content", {"style": "card"}, singleton=True
    ),
    SectionDefinition(
        "reviews", "Reviews", "Customer testimonials", "MessageSquare", "engagement",
        {"count": 3, "style": "carousel"},
    ),
    SectionDefinition(
        "pickup_details", "Pickup Details", "Location and instructions", "MapPin", "content",
        {"showMap": False}, singleton=True,
    ),
    SectionDefinition("shop_hours", "Shop Hours", "Weekly schedule", "Clock", "content", {}, singleton=True),
    SectionDefinition("faq", "FAQ", "Common questions and answers", "HelpCircle", "engagement", {"items": []}),
    SectionDefinition(
        "instagram_feed", "Instagram Feed", "Show your latest posts", "Instagram", "engagement",
        {"count": 6, "handle": ""},
    ),
    SectionDefinition(
        "newsletter_signup", "Newsletter Signup", "Collect customer emails", "Mail", "engagement",
        {"headline": "Stay in the loop", "buttonText": "Subscribe"},
    ),
    SectionDefinition(
        "custom_text", "Custom Text Block", "Add any custom content", "Type", "custom",
        {"heading": "", "text": ""},
    ),
    SectionDefinition("divider", "Divider", "Visual separator line", "Minus", "layout", {"style": "line"}),
    SectionDefinition("spacer", "Spacer", "Empty vertical space", "Square", "layout", {"height": "md"}),
)

SECTION_DEFINITIONS: Mapping[str, SectionDefinition] = MappingProxyType({s.section_type: s for s in _SECTIONS})

_DEFAULT_SECTION_LAYOUT = (
    ("default-hero", "hero"),
    ("default-featured", "featured_products"),
    ("default-products", "all_products"),
    ("default-about", "about_me"),
    ("default-pickup", "pickup_details"),
    ("default-hours", "shop_hours"),
)


def get_section_definition(section_type: str) -> SectionDefinition | None:
    return SECTION_DEFINITIONS.get(section_type)


def default_sections() -> list[PageSection]:
    return [
        PageSection(
            id=section_id,
            section_type=section_type,
            config=dict(SECTION_DEFINITIONS[section_type].default_config),
        )
        for section_id, section_type in _DEFAULT_SECTION_LAYOUT
    ]


__all__ = [
    "DEFAULT_MODULE_CATALOG",
    "MODULE_REGISTRY",
    "ModuleDefinition",
    "SECTION_DEFINITIONS",
    "SectionDefinition",
    "default_navigation",
    "default_sections",
    "get_module_definition",
    "get_section_definition",
    "is_module_available",
]
