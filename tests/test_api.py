import importlib.util
import sys
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from site_builder.models.recipe import RecipeEstimate, RecipePricingResult
from site_builder.recipe_pricing import PricingServiceError

API_MAIN = Path(__file__).resolve().parents[1] / "services" / "api" / "main.py"


@pytest.fixture()
def api(monkeypatch):
    monkeypatch.setenv("ENVIRONMENT", "dev")
    monkeypatch.delenv("PROJECT_ID", raising=False)
    monkeypatch.setenv("PUBLIC_BASE_URL", "https://sites.example.com")
    spec = importlib.util.spec_from_file_location("site_builder_api_main", API_MAIN)
    module = importlib.util.module_from_spec(spec)
    # pydantic resolves the postponed annotations through sys.modules
    monkeypatch.setitem(sys.modules, spec.name, module)
    spec.loader.exec_module(module)
    return module


@pytest.fixture()
def client(api):
    return TestClient(api.app)


def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}


def test_state_returns_defaults_for_new_entity(client):
    response = client.get("/v1/builder/state", params={"entity_id": "shop-7", "product": "shop"})
    assert response.status_code == 200
    body = response.json()
    assert body["exists"] is False
    assert body["draft"]["overview"]["id"] == "shop-7"
    assert body["draft"]["product"] == "shop"


def test_save_then_load(client):
    draft = client.get("/v1/builder/state", params={"entity_id": "conf-1"}).json()["draft"]
    draft["overview"]["name"] = "Edge Summit"
    draft["design"]["tokens"]["colors"]["primary"] = "#0f172a"

    saved = client.post("/v1/builder/save", json=draft)
    assert saved.status_code == 200
    assert saved.json()["slug"] == "edge-summit"

    body = client.get("/v1/builder/state", params={"entity_id": "conf-1"}).json()
    assert body["exists"] is True
    assert body["draft"]["design"]["tokens"]["colors"]["primary"] == "#0f172a"


def test_save_requires_entity_id(client):
    response = client.post("/v1/builder/save", json={"overview": {"name": "No id"}})
    assert response.status_code == 400


def test_publish_marks_site_live(client):
    draft = client.get("/v1/builder/state", params={"entity_id": "shop-2", "product": "shop"}).json()["draft"]
    response = client.post("/v1/builder/publish", json=draft)
    assert response.status_code == 200
    assert response.json()["public_url"].startswith("https://sites.example.com/shop/")

    body = client.get("/v1/builder/state", params={"entity_id": "shop-2", "product": "shop"}).json()
    assert body["draft"]["publish"]["is_published"] is True
    assert len(body["draft"]["publish"]["event_code"]) == 6


def test_preview_endpoint(client):
    draft = {
        "navigation": [
            {"id": "map", "name": "Map", "icon": "Map", "enabled": True, "order": 2},
            {"id": "ghost", "name": "Ghost", "icon": "Ghost", "enabled": True, "order": 0},
            {"id": "home", "name": "Home", "icon": "Home", "enabled": True, "order": 1},
        ]
    }
    response = client.post("/v1/builder/preview", params={"surface": "web"}, json=draft)
    assert response.status_code == 200
    assert [m["id"] for m in response.json()["modules"]] == ["home", "map"]


def test_duplicate_module_ids_are_rejected(client):
    module = {"id": "home", "name": "Home", "icon": "Home"}
    draft = {"overview": {"id": "conf-3"}, "navigation": [module, module]}
    assert client.post("/v1/builder/save", json=draft).status_code == 422


def test_price_recipe_not_configured(client):
    response = client.post("/v1/ai/price-recipe", json={"input": "cookies", "mode": "parse"})
    assert response.status_code == 503


class StubPricing:
    def __init__(self, error=None):
        self.error = error

    def run(self, text, mode, *, state=None):
        if self.error:
            raise self.error
        return RecipePricingResult(recipe=RecipeEstimate(name=text))


def test_price_recipe_validation_and_success(api, client):
    api.pricing_adapter = StubPricing()
    assert client.post("/v1/ai/price-recipe", json={"input": "", "mode": "parse"}).status_code == 400
    assert client.post("/v1/ai/price-recipe", json={"input": "pie", "mode": "bake"}).status_code == 400

    response = client.post("/v1/ai/price-recipe", json={"input": "pie", "mode": "parse"})
    assert response.status_code == 200
    assert response.json()["recipe"]["name"] == "pie"


def test_price_recipe_ai_failure_is_502(api, client):
    api.pricing_adapter = StubPricing(error=PricingServiceError("Failed to parse AI response"))
    response = client.post("/v1/ai/price-recipe", json={"input": "pie", "mode": "full"})
    assert response.status_code == 502
    assert response.json()["detail"] == "Failed to parse AI response"
