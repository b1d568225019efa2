import pytest

from site_builder.models.draft import Product
from site_builder.registry import (
    DEFAULT_MODULE_CATALOG,
    MODULE_REGISTRY,
    default_navigation,
    default_sections,
    get_module_definition,
    is_module_available,
)


def test_registry_is_read_only():
    with pytest.raises(TypeError):
        MODULE_REGISTRY["new"] = MODULE_REGISTRY["home"]


def test_lookup():
    assert get_module_definition("speakers").label == "Speakers"
    assert get_module_definition("unknown") is None


def test_availability_per_product():
    assert is_module_available("home", Product.shop)
    assert is_module_available("home", Product.conference)
    assert is_module_available("catalog", Product.shop)
    assert not is_module_available("catalog", Product.conference)
    assert not is_module_available("unknown", Product.shop)


@pytest.mark.parametrize("product", list(Product))
def test_default_navigation_follows_catalog(product):
    modules = default_navigation(product)
    assert [m.id for m in modules] == list(DEFAULT_MODULE_CATALOG[product])
    assert [m.order for m in modules] == list(range(len(modules)))
    assert all(m.enabled for m in modules)
    assert all(is_module_available(m.id, product) for m in modules)


def test_default_sections_are_fresh_copies():
    first = default_sections()
    first[0].config["height"] = "full"
    assert default_sections()[0].config["height"] == "medium"
