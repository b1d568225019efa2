import threading

import pytest

from site_builder.models.draft import EditorMode, PageSection, Product, Surface
from site_builder.persistence import DraftPersistenceAdapter, PersistenceError
from site_builder.row_store import InMemoryRowStore
from site_builder.session import BuilderSession, SaveInProgressError, UnknownFieldError
from site_builder.templates import default_draft, get_template


class FlakyRowStore(InMemoryRowStore):
    def __init__(self) -> None:
        super().__init__()
        self.fail = False

    def commit(self, writes):
        if self.fail:
            raise ConnectionError("network unreachable")
        super().commit(writes)


def make_session(mode=EditorMode.wizard, product=Product.conference, store=None, **kwargs):
    store = store or InMemoryRowStore()
    adapter = DraftPersistenceAdapter(store, public_base_url="https://sites.example.com")
    draft = default_draft(product)
    draft.overview.id = "conf-1"
    draft.overview.name = "PyCon Demo"
    return BuilderSession(adapter, draft, mode=mode, **kwargs)


def test_new_session_is_clean():
    session = make_session()
    assert not session.dirty
    assert session.draft == session.saved_snapshot
    assert session.current_step == "overview"


def test_mutations_mark_dirty_even_when_value_is_unchanged():
    session = make_session()
    session.update_field("overview.name", "PyCon Demo")
    assert session.dirty

    session.save()
    session.toggle_module("speakers")
    assert session.dirty

    session.save()
    enabled = [m.id for m in session.draft.navigation if m.enabled]
    session.reorder_modules(enabled)
    assert session.dirty


def test_save_clears_dirty_and_copies_draft_into_snapshot():
    session = make_session()
    session.update_field("design.tokens.colors.primary", "#ff0000")
    session.update_overview(tagline="Learn together")

    result = session.save()

    assert result.entity_id == "conf-1"
    assert result.slug == "pycon-demo"
    assert not session.dirty
    assert session.draft == session.saved_snapshot
    assert session.saved_snapshot.design.tokens.colors.primary == "#ff0000"
    assert session.last_saved_at is not None
    assert session.save_error is None


def test_update_field_walks_lists_by_id_and_dicts():
    session = make_session(product=Product.shop)
    session.update_field("navigation.catalog.name", "Menu")
    session.update_field("sections.default-hero.config.height", "large")
    session.update_field("web.colors.nav_text", "#111111")

    draft = session.draft
    assert draft.find_module("catalog").name == "Menu"
    assert draft.sections[0].config["height"] == "large"
    assert draft.web.colors.nav_text == "#111111"


def test_update_field_rejects_unknown_path():
    session = make_session()
    with pytest.raises(UnknownFieldError):
        session.update_field("overview.nickname", "x")
    with pytest.raises(UnknownFieldError):
        session.update_field("navigation.does-not-exist.enabled", False)
    assert not session.dirty


def test_toggle_unknown_module_is_a_silent_noop():
    session = make_session()
    before = session.draft
    session.toggle_module("teleporter")
    assert session.draft == before
    assert not session.dirty


def test_toggle_flips_enabled():
    session = make_session()
    session.toggle_module("sponsors")
    assert session.draft.find_module("sponsors").enabled is False
    session.toggle_module("sponsors")
    assert session.draft.find_module("sponsors").enabled is True


def test_reorder_assigns_order_and_keeps_disabled_orders():
    session = make_session(product=Product.shop)
    session.toggle_module("reviews")
    disabled_order = session.draft.find_module("reviews").order

    new_order = ["account", "messages", "pickup", "orders", "catalog", "home"]
    session.reorder_modules(new_order)

    draft = session.draft
    for index, module_id in enumerate(new_order):
        assert draft.find_module(module_id).order == index
    assert draft.find_module("reviews").order == disabled_order
    # list position is untouched
    assert [m.id for m in draft.navigation][0] == "home"


def test_reorder_requires_permutation_of_enabled_modules():
    session = make_session(product=Product.shop)
    with pytest.raises(ValueError):
        session.reorder_modules(["home", "catalog"])
    with pytest.raises(ValueError):
        session.reorder_modules(["home", "home", "orders", "pickup", "reviews", "messages", "account"])


def test_failed_save_preserves_draft_snapshot_and_dirty_flag():
    store = FlakyRowStore()
    session = make_session(store=store)
    session.update_overview(name="First")
    session.save()
    snapshot = session.saved_snapshot

    session.update_overview(name="Second")
    draft_before = session.draft
    store.fail = True

    with pytest.raises(PersistenceError):
        session.save()

    assert session.draft == draft_before
    assert session.dirty
    assert session.saved_snapshot == snapshot
    assert "network unreachable" in session.save_error

    store.fail = False
    session.save()
    assert not session.dirty
    assert session.save_error is None


def test_wizard_mode_only_reaches_visited_steps():
    session = make_session(mode=EditorMode.wizard)
    assert session.next_step()
    assert session.step_index == 1

    assert session.set_step(3) is False
    assert session.step_index == 1

    assert session.set_step("overview")
    assert session.set_step(1)
    assert session.current_step == "branding"


def test_tabs_mode_reaches_any_step():
    session = make_session(mode=EditorMode.tabs)
    session.set_step(1)
    assert session.set_step(3)
    assert session.current_step == "publish"
    assert not session.can_go_next


def test_switching_to_tabs_unlocks_steps():
    session = make_session(mode=EditorMode.wizard)
    assert session.set_step("publish") is False
    session.set_mode(EditorMode.tabs)
    assert session.set_step("publish")


def test_set_step_rejects_unknown_step():
    session = make_session()
    with pytest.raises(ValueError):
        session.set_step("checkout")
    with pytest.raises(ValueError):
        session.set_step(7)


def test_step_changes_do_not_touch_draft():
    session = make_session(mode=EditorMode.tabs)
    session.set_step("features")
    assert not session.dirty


def test_publish_saves_first_and_runs_hooks():
    published = []
    session = make_session(
        publish_hooks=[lambda draft, result: published.append((draft, result))],
    )
    session.update_overview(tagline="Unsaved edit")

    result = session.publish()

    assert not session.dirty
    assert session.is_published
    snapshot = session.saved_snapshot
    assert snapshot.overview.tagline == "Unsaved edit"
    assert len(snapshot.publish.event_code) == 6
    assert snapshot.publish.public_url == "https://sites.example.com/c/pycon-demo"
    assert result.public_url == snapshot.publish.public_url

    hook_draft, hook_result = published[0]
    assert hook_draft == snapshot
    assert hook_result == result


def test_publish_keeps_existing_event_code():
    session = make_session(event_code_factory=lambda: "NEWONE")
    session.update_field("publish.event_code", "KEEPME")
    session.publish()
    assert session.saved_snapshot.publish.event_code == "KEEPME"


def test_failed_publish_leaves_draft_unpublished():
    store = FlakyRowStore()
    hook_calls = []
    session = make_session(store=store, publish_hooks=[lambda d, r: hook_calls.append(r)])
    session.update_overview(name="Launch")
    store.fail = True

    with pytest.raises(PersistenceError):
        session.publish()

    assert not session.draft.publish.is_published
    assert not session.is_published
    assert session.dirty
    assert hook_calls == []


def test_overlapping_save_is_rejected():
    entered = threading.Event()
    release = threading.Event()

    class SlowRowStore(InMemoryRowStore):
        def commit(self, writes):
            entered.set()
            release.wait(timeout=5)
            super().commit(writes)

    session = make_session(store=SlowRowStore())
    session.update_overview(name="Slow")
    worker = threading.Thread(target=session.save)
    worker.start()
    try:
        assert entered.wait(timeout=5)
        assert session.is_saving
        with pytest.raises(SaveInProgressError):
            session.save()
    finally:
        release.set()
        worker.join(timeout=5)

    assert not session.is_saving
    assert not session.dirty


def test_apply_template_updates_design_and_sections():
    session = make_session(product=Product.shop)
    template = get_template("modern-minimal")
    session.apply_template(template)

    draft = session.draft
    assert session.dirty
    assert draft.design.tokens.colors.primary == "#1A1A1A"
    assert draft.design.tokens.typography.font_family.heading == "Inter"
    assert draft.web.hero_style == "gradient"
    assert [s.id for s in draft.sections] == [s.id for s in template.sections]


def test_update_sections_and_surface():
    session = make_session(product=Product.shop)
    session.update_sections([PageSection(id="only", section_type="faq")])
    session.update_surface(Surface.app, hero_height="large")
    draft = session.draft
    assert [s.id for s in draft.sections] == ["only"]
    assert draft.app.hero_height == "large"


def test_preview_follows_toggle():
    session = make_session()
    session.update_overview(name="Edited Name")

    assert session.preview().title == "PyCon Demo"
    session.set_preview_enabled(True)
    assert session.preview().title == "Edited Name"


def test_load_falls_back_to_defaults():
    adapter = DraftPersistenceAdapter(InMemoryRowStore())
    session = BuilderSession.load(adapter, "shop-9", Product.shop)
    assert session.draft.overview.id == "shop-9"
    assert session.draft.product == Product.shop
    assert not session.dirty


def test_load_returns_saved_draft():
    store = InMemoryRowStore()
    session = make_session(store=store)
    session.update_overview(venue_name="Hall A")
    session.save()

    reloaded = BuilderSession.load(DraftPersistenceAdapter(store), "conf-1", Product.conference)
    assert reloaded.draft.overview.venue_name == "Hall A"
    assert reloaded.draft == reloaded.saved_snapshot


class BlockingRowStore(InMemoryRowStore):
    def __init__(self) -> None:
        super().__init__()
        self.entered = threading.Event()
        self.release = threading.Event()

    def commit(self, writes):
        self.entered.set()
        self.release.wait(timeout=5)
        super().commit(writes)


def test_edits_made_during_save_are_kept():
    store = BlockingRowStore()
    session = make_session(store=store)
    session.update_overview(name="Start")
    worker = threading.Thread(target=session.save)
    worker.start()
    try:
        assert store.entered.wait(timeout=5)
        session.update_overview(name="typed while saving")
    finally:
        store.release.set()
        worker.join(timeout=5)

    assert session.draft.overview.name == "typed while saving"
    assert session.saved_snapshot.overview.name == "Start"
    assert session.dirty
    assert session.draft != session.saved_snapshot

    session.save()
    assert not session.dirty
    assert session.saved_snapshot.overview.name == "typed while saving"


def test_edits_made_during_publish_are_kept():
    store = BlockingRowStore()
    session = make_session(store=store)
    worker = threading.Thread(target=session.publish)
    worker.start()
    try:
        assert store.entered.wait(timeout=5)
        session.update_field("design.tokens.colors.primary", "#010203")
    finally:
        store.release.set()
        worker.join(timeout=5)

    draft = session.draft
    assert draft.design.tokens.colors.primary == "#010203"
    assert draft.publish.is_published
    assert draft.publish == session.saved_snapshot.publish
    assert session.dirty


def test_update_module_with_unknown_field_changes_nothing():
    session = make_session()
    with pytest.raises(UnknownFieldError):
        session.update_module("speakers", enabled=False, colour="red")

    assert session.draft.find_module("speakers").enabled is True
    assert not session.dirty
    assert session.draft == session.saved_snapshot


def test_update_module_sets_several_fields():
    session = make_session()
    session.update_module("speakers", name="Keynotes", order=9)
    module = session.draft.find_module("speakers")
    assert (module.name, module.order) == ("Keynotes", 9)
    assert session.dirty


def test_module_ids_stay_unique():
    session = make_session()
    with pytest.raises(ValueError, match="Duplicate navigation module ids"):
        session.update_field("navigation.home.id", "speakers")
    with pytest.raises(ValueError, match="Duplicate navigation module ids"):
        session.update_module("home", id="speakers")

    assert [m.id for m in session.draft.navigation].count("speakers") == 1
    assert session.draft.find_module("home") is not None
    assert not session.dirty

    session.update_field("navigation.home.id", "start")
    assert session.draft.find_module("start") is not None
