from __future__ import annotations

import logging
import secrets
import string
import threading
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Iterable, Sequence

from pydantic import BaseModel

from .models.draft import Draft, EditorMode, NavigationModule, PageSection, Product, Surface
from .persistence import DraftPersistenceAdapter, PersistenceError, SaveResult
from .preview import PreviewConfig, project_preview
from .templates import BuilderTemplate, default_draft

logger = logging.getLogger(__name__)

STEPS: tuple[str, ...] = ("overview", "branding", "features", "publish")

PublishHook = Callable[[Draft, SaveResult], None]


@dataclass
class UnknownFieldError(LookupError):
    path: str
    segment: str

    def __str__(self) -> str:
        return f"Unknown draft field {self.segment!r} in path {self.path!r}"


class SaveInProgressError(RuntimeError):
    """Raised when save or publish is called while another one is still running."""


def generate_event_code(length: int = 6) -> str:
    alphabet = string.ascii_uppercase + string.digits
    return "".join(secrets.choice(alphabet) for _ in range(length))


def _child(container: Any, segment: str, path: str) -> Any:
    if isinstance(container, BaseModel):
        if segment not in type(container).model_fields:
            raise UnknownFieldError(path, segment)
        return getattr(container, segment)
    if isinstance(container, dict):
        if segment not in container:
            raise UnknownFieldError(path, segment)
        return container[segment]
    if isinstance(container, list):
        return container[_list_index(container, segment, path)]
    raise UnknownFieldError(path, segment)


def _list_index(items: list, segment: str, path: str) -> int:
    # List items are addressed by position or by their ``id``.
    if segment.isdigit() and int(segment) < len(items):
        return int(segment)
    for index, item in enumerate(items):
        if getattr(item, "id", None) == segment:
            return index
    raise UnknownFieldError(path, segment)


def _assign(container: Any, segment: str, value: Any, path: str) -> None:
    if isinstance(container, BaseModel):
        if segment not in type(container).model_fields:
            raise UnknownFieldError(path, segment)
        setattr(container, segment, value)
    elif isinstance(container, dict):
        container[segment] = value
    elif isinstance(container, list):
        container[_list_index(container, segment, path)] = value
    else:
        raise UnknownFieldError(path, segment)


def _set_path(draft: Draft, segments: list[str], value: Any, path: str) -> None:
    target: Any = draft
    for segment in segments[:-1]:
        target = _child(target, segment, path)
    _assign(target, segments[-1], value, path)


def _check_module_ids(draft: Draft) -> None:
    duplicates = draft.duplicate_module_ids()
    if duplicates:
        raise ValueError(f"Duplicate navigation module ids: {duplicates}")


class BuilderSession:
    """Single owner of one edit session: the live draft, the saved snapshot and the step pointer.

    Mutations are synchronous and always mark the session dirty. ``save`` and
    ``publish`` are the only operations that touch the store; a failed write
    leaves the draft and the saved snapshot exactly as they were.
    """

    def __init__(
        self,
        adapter: DraftPersistenceAdapter,
        draft: Draft,
        *,
        mode: EditorMode = EditorMode.wizard,
        saved_snapshot: Draft | None = None,
        publish_hooks: Iterable[PublishHook] = (),
        event_code_factory: Callable[[], str] = generate_event_code,
    ) -> None:
        self._adapter = adapter
        self._draft = draft.model_copy(deep=True)
        self._saved = (saved_snapshot or draft).model_copy(deep=True)
        self._mode = mode
        self._step_index = 0
        self._furthest_index = 0
        self._dirty = self._draft != self._saved
        # Bumped by every mutation; a save only clears dirty if no edit landed meanwhile.
        self._revision = 0
        self._preview_enabled = False
        self._save_lock = threading.Lock()
        self._last_saved_at: datetime | None = None
        self._save_error: str | None = None
        self._publish_hooks = list(publish_hooks)
        self._event_code_factory = event_code_factory

    @classmethod
    def load(
        cls,
        adapter: DraftPersistenceAdapter,
        entity_id: str,
        product: Product,
        *,
        mode: EditorMode = EditorMode.wizard,
        publish_hooks: Iterable[PublishHook] = (),
    ) -> "BuilderSession":
        draft = adapter.load(entity_id, product)
        if draft is None:
            logger.info(
                "No stored draft, starting from defaults",
                extra={"entity_id": entity_id, "product": product.value},
            )
            draft = default_draft(product)
            draft.overview.id = entity_id
        return cls(adapter, draft, mode=mode, publish_hooks=publish_hooks)

    # -- read-only views -------------------------------------------------

    @property
    def draft(self) -> Draft:
        return self._draft.model_copy(deep=True)

    @property
    def saved_snapshot(self) -> Draft:
        return self._saved.model_copy(deep=True)

    @property
    def dirty(self) -> bool:
        return self._dirty

    @property
    def is_saving(self) -> bool:
        return self._save_lock.locked()

    @property
    def last_saved_at(self) -> datetime | None:
        return self._last_saved_at

    @property
    def save_error(self) -> str | None:
        return self._save_error

    @property
    def is_published(self) -> bool:
        return self._saved.publish.is_published

    @property
    def preview_enabled(self) -> bool:
        return self._preview_enabled

    def set_preview_enabled(self, enabled: bool) -> None:
        self._preview_enabled = enabled

    def preview(self, surface: Surface = Surface.app) -> PreviewConfig:
        return project_preview(
            self._draft,
            self._saved,
            preview_enabled=self._preview_enabled,
            surface=surface,
        )

    # -- steps -----------------------------------------------------------

    @property
    def mode(self) -> EditorMode:
        return self._mode

    @property
    def current_step(self) -> str:
        return STEPS[self._step_index]

    @property
    def step_index(self) -> int:
        return self._step_index

    @property
    def can_go_next(self) -> bool:
        return self._step_index < len(STEPS) - 1

    @property
    def can_go_prev(self) -> bool:
        return self._step_index > 0

    def set_mode(self, mode: EditorMode) -> None:
        self._mode = mode
        self._furthest_index = max(self._furthest_index, self._step_index)

    def set_step(self, step: str | int) -> bool:
        """Move to ``step`` (an id from ``STEPS`` or a 0-based index).

        Returns ``False`` when wizard mode forbids jumping past the furthest
        visited step.
        """
        index = self._resolve_step(step)
        if self._mode == EditorMode.wizard and index > self._furthest_index:
            logger.debug(
                "Rejected step change",
                extra={"step": STEPS[index], "furthest": STEPS[self._furthest_index]},
            )
            return False
        self._step_index = index
        return True

    def next_step(self) -> bool:
        if not self.can_go_next:
            return False
        self._step_index += 1
        self._furthest_index = max(self._furthest_index, self._step_index)
        return True

    def prev_step(self) -> bool:
        if not self.can_go_prev:
            return False
        self._step_index -= 1
        return True

    def _resolve_step(self, step: str | int) -> int:
        if isinstance(step, int):
            if not 0 <= step < len(STEPS):
                raise ValueError(f"Step index out of range: {step}")
            return step
        if step not in STEPS:
            raise ValueError(f"Unknown step: {step}")
        return STEPS.index(step)

    # -- mutations -------------------------------------------------------

    def _touch(self) -> None:
        self._revision += 1
        self._dirty = True

    def update_field(self, path: str, value: Any) -> None:
        """Replace the value at a dotted path such as ``design.tokens.colors.primary``.

        Navigation edits are tried on a copy first so a change that would
        duplicate a module id leaves the draft untouched.
        """
        segments = path.split(".")
        if segments[0] == "navigation":
            trial = self._draft.model_copy(deep=True)
            _set_path(trial, segments, value, path)
            _check_module_ids(trial)
        _set_path(self._draft, segments, value, path)
        self._touch()

    def update_overview(self, **fields: Any) -> None:
        for name, value in fields.items():
            self.update_field(f"overview.{name}", value)

    def update_surface(self, surface: Surface, **fields: Any) -> None:
        for name, value in fields.items():
            self.update_field(f"{surface.value}.{name}", value)

    def update_sections(self, sections: Sequence[PageSection]) -> None:
        self._draft.sections = [section.model_copy(deep=True) for section in sections]
        self._touch()

    def toggle_module(self, module_id: str) -> None:
        module = self._draft.find_module(module_id)
        if module is None:
            return
        module.enabled = not module.enabled
        self._touch()

    def update_module(self, module_id: str, **fields: Any) -> None:
        """Set several fields of one module; nothing changes unless all of them are valid."""
        module = self._draft.find_module(module_id)
        if module is None:
            return
        for name in fields:
            if name not in NavigationModule.model_fields:
                raise UnknownFieldError(f"navigation.{module_id}.{name}", name)
        new_id = fields.get("id", module_id)
        if new_id != module_id and self._draft.find_module(new_id) is not None:
            raise ValueError(f"Duplicate navigation module ids: [{new_id!r}]")
        for name, value in fields.items():
            setattr(module, name, value)
        self._touch()

    def reorder_modules(self, new_order: Sequence[str]) -> None:
        """Assign ``order`` from the position of each enabled module in ``new_order``.

        Disabled modules keep their current ``order``.
        """
        enabled_ids = [module.id for module in self._draft.navigation if module.enabled]
        if len(new_order) != len(enabled_ids) or set(new_order) != set(enabled_ids):
            raise ValueError(
                f"Expected a permutation of the enabled modules {enabled_ids}, got {list(new_order)}"
            )
        positions = {module_id: index for index, module_id in enumerate(new_order)}
        for module in self._draft.navigation:
            if module.id in positions:
                module.order = positions[module.id]
        self._touch()

    def apply_template(self, template: BuilderTemplate) -> None:
        design = self._draft.design
        colors = design.tokens.colors.model_copy(
            update={key: value for key, value in template.colors.model_dump().items() if value is not None}
        )
        design.tokens.colors = colors
        font_family = design.tokens.typography.font_family
        font_family.heading = template.fonts.heading or font_family.heading
        font_family.body = template.fonts.body or font_family.body
        design.gradients = template.gradients.model_copy()
        design.card_style = template.card_style.model_copy()
        self._draft.web.hero_style = template.hero.style
        self._draft.web.hero_height = template.hero.height
        self._draft.web.hero_overlay_opacity = template.hero.overlay_opacity
        self._draft.sections = [section.model_copy(deep=True) for section in template.sections]
        self._touch()
        logger.debug("Applied template", extra={"template_id": template.id})

    # -- persistence -----------------------------------------------------

    def save(self) -> SaveResult:
        """Persist the draft and make it the saved snapshot.

        Raises ``PersistenceError`` when the store rejects the write; the draft
        and the dirty flag are left untouched so the caller can retry. Edits
        made while the write is in flight stay in the draft and keep it dirty.
        """
        revision = self._revision
        return self._commit(self._draft.model_copy(deep=True), revision)

    def publish(self) -> SaveResult:
        """Save the draft marked as published, then run the publish hooks.

        Publishing always writes the full draft, so the public artifact never
        lags behind unsaved edits.
        """
        revision = self._revision
        candidate = self._adapter.assign_identity(self._draft)
        candidate.publish.is_published = True
        if not candidate.publish.event_code:
            candidate.publish.event_code = self._event_code_factory()
        candidate.publish.public_url = self._adapter.public_url(candidate.product, candidate.overview.slug)

        result = self._commit(candidate, revision, publishing=True)
        published = self.saved_snapshot
        for hook in self._publish_hooks:
            hook(published, result)
        logger.info(
            "Published site",
            extra={"entity_id": result.entity_id, "public_url": result.public_url},
        )
        return result

    def _commit(self, candidate: Draft, revision: int, *, publishing: bool = False) -> SaveResult:
        if not self._save_lock.acquire(blocking=False):
            raise SaveInProgressError("A save is already in progress")
        try:
            self._save_error = None
            try:
                result = self._adapter.save(candidate)
            except PersistenceError as exc:
                self._save_error = str(exc)
                raise
            candidate.overview.id = result.entity_id
            candidate.overview.slug = result.slug
            self._saved = candidate.model_copy(deep=True)

            # The live draft only picks up what the store assigned.
            live = self._draft
            live.overview.id = live.overview.id or result.entity_id
            live.overview.slug = live.overview.slug or result.slug
            if publishing:
                live.publish = candidate.publish.model_copy()
            self._dirty = self._revision != revision
            self._last_saved_at = datetime.utcnow()
            if self._dirty:
                logger.debug(
                    "Draft changed during save",
                    extra={"entity_id": result.entity_id, "edits": self._revision - revision},
                )
            return result
        finally:
            self._save_lock.release()


__all__ = [
    "BuilderSession",
    "PublishHook",
    "STEPS",
    "SaveInProgressError",
    "UnknownFieldError",
    "generate_event_code",
]
