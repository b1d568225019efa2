from __future__ import annotations

import logging
import re
import uuid
from datetime import datetime
from types import MappingProxyType
from typing import Any, Mapping

from pydantic import BaseModel

from .models.draft import (
    ColorTokens,
    Design,
    Draft,
    FontFamily,
    NavigationModule,
    Overview,
    PageSection,
    Product,
    PublishSettings,
    SurfaceSettings,
)
from .row_store import ReplaceChildren, RowStore, RowWrite, UpsertRow
from .templates import default_draft

logger = logging.getLogger(__name__)

ROOT_TABLES: Mapping[Product, str] = MappingProxyType(
    {Product.conference: "conferences", Product.shop: "shops"}
)
DESIGN_TOKENS_TABLE = "design_tokens"
NAVIGATION_TABLE = "navigation_modules"
SECTIONS_TABLE = "page_sections"

_OVERVIEW_COLUMNS = (
    "slug",
    "name",
    "tagline",
    "description",
    "start_date",
    "end_date",
    "venue_name",
    "venue_address",
    "logo_url",
    "banner_url",
)

# Columns the public renderer reads straight off the root row.
_DENORMALIZED_COLORS = {
    "primary_color": "primary",
    "secondary_color": "secondary",
    "accent_color": "accent",
    "background_color": "background",
    "text_color": "text",
}
_DENORMALIZED_FONTS = {"font_heading": "heading", "font_body": "body"}


class PersistenceError(Exception):
    """A remote read or write failed; the message is safe to show to users."""


class SaveResult(BaseModel):
    entity_id: str
    slug: str
    public_url: str


def slugify(value: str) -> str:
    return re.sub(r"[^a-z0-9]+", "-", value.lower()).strip("-")


class DraftPersistenceAdapter:
    """Maps drafts onto the root, design-token and child-list tables."""

    def __init__(self, store: RowStore, *, public_base_url: str = "") -> None:
        self._store = store
        self._public_base_url = public_base_url.rstrip("/")

    def load(self, entity_id: str, product: Product) -> Draft | None:
        try:
            root = self._store.get_row(ROOT_TABLES[product], entity_id)
            if root is None:
                return None
            token_row = self._store.get_row(DESIGN_TOKENS_TABLE, entity_id)
            module_rows = self._store.select_children(NAVIGATION_TABLE, entity_id)
            section_rows = self._store.select_children(SECTIONS_TABLE, entity_id)
        except Exception as exc:
            logger.error("Failed to load draft", exc_info=True, extra={"entity_id": entity_id})
            raise PersistenceError(f"Could not load {product.value} {entity_id}: {exc}") from exc

        try:
            draft = self.from_rows(product, root, token_row, module_rows, section_rows)
        except ValueError as exc:
            logger.error("Stored draft is invalid", exc_info=True, extra={"entity_id": entity_id})
            raise PersistenceError(f"Stored {product.value} {entity_id} is invalid: {exc}") from exc
        logger.info(
            "Loaded draft",
            extra={"entity_id": entity_id, "product": product.value, "modules": len(draft.navigation)},
        )
        return draft

    def assign_identity(self, draft: Draft) -> Draft:
        """Return a copy of ``draft`` whose overview carries an id and a slug."""
        identified = draft.model_copy(deep=True)
        identified.overview.id = draft.overview.id or uuid.uuid4().hex
        identified.overview.slug = (
            draft.overview.slug or slugify(draft.overview.name) or identified.overview.id
        )
        return identified

    def save(self, draft: Draft) -> SaveResult:
        """Write the whole draft as one write set.

        The root row, the design-token row and both child lists are committed
        together; child rows are deleted and re-inserted in list order.
        """
        identified = self.assign_identity(draft)
        entity_id = identified.overview.id
        slug = identified.overview.slug
        writes = self.to_writes(identified, entity_id=entity_id, slug=slug)
        try:
            self._store.commit(writes)
        except Exception as exc:
            logger.error("Failed to save draft", exc_info=True, extra={"entity_id": entity_id})
            raise PersistenceError(f"Save failed: {exc}") from exc

        logger.info(
            "Saved draft",
            extra={"entity_id": entity_id, "product": draft.product.value, "writes": len(writes)},
        )
        return SaveResult(entity_id=entity_id, slug=slug, public_url=self.public_url(draft.product, slug))

    def public_url(self, product: Product, slug: str) -> str:
        prefix = "/c" if product == Product.conference else "/shop"
        return f"{self._public_base_url}{prefix}/{slug}"

    def to_writes(self, draft: Draft, *, entity_id: str, slug: str) -> list[RowWrite]:
        now = datetime.utcnow().isoformat()
        overview = draft.overview.model_dump(mode="json", include=set(_OVERVIEW_COLUMNS))
        overview["slug"] = slug
        web = draft.web.model_dump(mode="json", exclude={"colors", "fonts"})
        colors = draft.design.tokens.colors
        fonts = draft.design.tokens.typography.font_family

        root: dict[str, Any] = {
            "product": draft.product.value,
            "schema_version": draft.schema_version,
            **overview,
            **web,
            "web_colors": draft.web.colors.model_dump(),
            "web_fonts": draft.web.fonts.model_dump(),
            "nav_background_color": draft.web.colors.nav_background,
            "nav_text_color": draft.web.colors.nav_text,
            **{column: getattr(colors, key) for column, key in _DENORMALIZED_COLORS.items()},
            **{column: getattr(fonts, key) for column, key in _DENORMALIZED_FONTS.items()},
            "event_code": draft.publish.event_code,
            "public_url": draft.publish.public_url,
            "is_published": draft.publish.is_published,
            "updated_at": now,
        }
        tokens = {
            **draft.design.tokens.model_dump(mode="json"),
            "gradients": draft.design.gradients.model_dump(),
            "card_style": draft.design.card_style.model_dump(),
            "icon_theme": draft.design.icon_theme,
            "app": draft.app.model_dump(mode="json"),
        }
        modules = [
            {"position": position, "module_id": module.id, **module.model_dump(exclude={"id"})}
            for position, module in enumerate(draft.navigation)
        ]
        sections = [
            {
                "position": position,
                "section_id": section.id,
                **section.model_dump(mode="json", exclude={"id"}),
            }
            for position, section in enumerate(draft.sections)
        ]
        return [
            UpsertRow(ROOT_TABLES[draft.product], entity_id, root),
            UpsertRow(
                DESIGN_TOKENS_TABLE,
                entity_id,
                {"entity_id": entity_id, "is_active": True, "tokens": tokens, "updated_at": now},
            ),
            ReplaceChildren(NAVIGATION_TABLE, entity_id, modules),
            ReplaceChildren(SECTIONS_TABLE, entity_id, sections),
        ]

    def from_rows(
        self,
        product: Product,
        root: Mapping[str, Any],
        token_row: Mapping[str, Any] | None,
        module_rows: list[dict],
        section_rows: list[dict],
    ) -> Draft:
        defaults = default_draft(product)

        overview = Overview.model_validate(
            {"id": root["id"], **{key: root[key] for key in _OVERVIEW_COLUMNS if root.get(key) is not None}}
        )
        web_fields = {
            key: root[key]
            for key in SurfaceSettings.model_fields
            if key not in ("colors", "fonts") and key in root
        }
        web = SurfaceSettings.model_validate(
            {
                **web_fields,
                "colors": root.get("web_colors") or self._legacy_nav_colors(root, defaults),
                "fonts": root.get("web_fonts") or {},
            }
        )

        if token_row and token_row.get("tokens"):
            tokens = dict(token_row["tokens"])
            design = Design.model_validate(
                {
                    "tokens": {"colors": tokens.get("colors", {}), "typography": tokens.get("typography", {})},
                    "gradients": tokens.get("gradients") or defaults.design.gradients.model_dump(),
                    "card_style": tokens.get("card_style") or defaults.design.card_style.model_dump(),
                    "icon_theme": tokens.get("icon_theme") or "solid",
                }
            )
            app = SurfaceSettings.model_validate(tokens.get("app") or {})
        else:
            design = self._design_from_columns(root, defaults.design)
            app = defaults.app

        navigation = [
            NavigationModule(
                id=row["module_id"],
                name=row["name"],
                icon=row["icon"],
                enabled=row.get("enabled", True),
                order=row.get("order", position),
            )
            for position, row in enumerate(module_rows)
        ] or defaults.navigation
        sections = [
            PageSection(
                id=row["section_id"],
                section_type=row["section_type"],
                config=row.get("config") or {},
                is_visible=row.get("is_visible", True),
            )
            for row in section_rows
        ] or defaults.sections

        return Draft(
            schema_version=root.get("schema_version", 1),
            product=product,
            overview=overview,
            design=design,
            navigation=navigation,
            sections=sections,
            web=web,
            app=app,
            publish=PublishSettings(
                event_code=root.get("event_code") or "",
                public_url=root.get("public_url") or "",
                is_published=bool(root.get("is_published")),
            ),
        )

    def _design_from_columns(self, root: Mapping[str, Any], fallback: Design) -> Design:
        colors = fallback.tokens.colors.model_dump()
        for column, key in _DENORMALIZED_COLORS.items():
            if root.get(column):
                colors[key] = root[column]
        fonts = fallback.tokens.typography.font_family.model_dump()
        for column, key in _DENORMALIZED_FONTS.items():
            if root.get(column):
                fonts[key] = root[column]
        design = fallback.model_copy(deep=True)
        design.tokens.colors = ColorTokens(**colors)
        design.tokens.typography.font_family = FontFamily(**fonts)
        return design

    def _legacy_nav_colors(self, root: Mapping[str, Any], defaults: Draft) -> dict:
        colors = defaults.web.colors.model_dump()
        if root.get("nav_background_color"):
            colors["nav_background"] = root["nav_background_color"]
        if root.get("nav_text_color"):
            colors["nav_text"] = root["nav_text_color"]
        return colors


__all__ = [
    "DESIGN_TOKENS_TABLE",
    "DraftPersistenceAdapter",
    "NAVIGATION_TABLE",
    "PersistenceError",
    "ROOT_TABLES",
    "SECTIONS_TABLE",
    "SaveResult",
    "slugify",
]
