"""HTTP surface tests against the app factory with in-process fakes."""

import json

import pytest
from fastapi.testclient import TestClient

from fairvalue.core.config import settings
from fairvalue.main import create_app
from fairvalue.models.mock_model import MockNarrator
from fairvalue.routers.valuation import service_dep
from fairvalue.services.comparables import calculate_statistics
from fairvalue.services.valuation_service import ValuationService

from conftest import FakeCatalog, FakeNarrator, make_comparable


BODY = {
    "city": "BRATISLAVA",
    "district": " Ružinov ",
    "area_m2": 65,
    "rooms": 2,
    "condition": "renovated",
    "has_balcony": True,
}


@pytest.fixture
def make_client(market_context):
    def _make(catalog, narrator):
        app = create_app()
        svc = ValuationService(catalog, narrator, market_context)
        app.dependency_overrides[service_dep] = lambda: svc
        return TestClient(app)
    return _make


@pytest.fixture
def client(make_client, tight_comparables):
    return make_client(FakeCatalog(tight_comparables), MockNarrator())


class TestMeta:
    def test_health(self, client):
        assert client.get("/v1/health").json() == {"status": "ok"}

    def test_ping(self, client):
        assert client.get("/v1/ping").json() == {"pong": True}

    def test_request_id_echoed(self, client):
        r = client.get("/v1/health", headers={"X-Request-Id": "abc-123"})
        assert r.headers["X-Request-Id"] == "abc-123"


class TestValuationEndpoint:
    def test_valuation(self, client):
        r = client.post("/v1/valuation", json=BODY)
        assert r.status_code == 200
        data = r.json()
        assert data["source"] == "ai"
        assert data["currency"] == "EUR"
        assert data["confidence"] == "high"
        assert data["comparables"]["count"] == 12
        assert set(data["confidence_factors"]) == {
            "comparables_count", "data_quality", "location_match", "price_consistency",
        }
        assert data["etag"] == r.headers["ETag"]

    def test_not_modified(self, client):
        etag = client.post("/v1/valuation", json=BODY).headers["ETag"]
        r = client.post("/v1/valuation", json=BODY, headers={"If-None-Match": etag})
        assert r.status_code == 304

    def test_fallback(self, make_client, tight_comparables, failing_narrator):
        client = make_client(FakeCatalog(tight_comparables), failing_narrator)
        data = client.post("/v1/valuation", json=BODY).json()
        assert data["source"] == "fallback"
        assert data["warnings"][-1].startswith("AI analysis unavailable")

    def test_no_data_is_unprocessable(self, make_client, failing_narrator):
        client = make_client(FakeCatalog([]), failing_narrator)
        r = client.post("/v1/valuation", json=BODY)
        assert r.status_code == 422
        assert "detail" in r.json()

    @pytest.mark.parametrize("patch", [
        {"area_m2": 0},
        {"city": "PRAHA"},
        {"condition": "ruined"},
        {"rooms": 0},
    ])
    def test_invalid_input(self, client, patch):
        r = client.post("/v1/valuation", json={**BODY, **patch})
        assert r.status_code == 422

    def test_api_key_required_when_configured(self, client, monkeypatch):
        monkeypatch.setattr(settings, "API_KEY", "s3cret")
        assert client.post("/v1/valuation", json=BODY).status_code == 401
        r = client.post("/v1/valuation", json=BODY, headers={"x-api-key": "s3cret"})
        assert r.status_code == 200

    def test_district_is_trimmed(self, make_client, ai_narrative, tight_comparables):
        narrator = FakeNarrator(ai_narrative)
        client = make_client(FakeCatalog(tight_comparables), narrator)
        client.post("/v1/valuation", json=BODY)
        assert narrator.requests[0].property.district == "Ružinov"


class TestFairValueEndpoint:
    def test_fair_value(self, make_client):
        comps = [make_comparable(i, price_per_m2=3000) for i in range(5)]
        client = make_client(FakeCatalog(comps), MockNarrator())
        r = client.post("/v1/fair-value", json={**BODY, "asking_price": 234_000})
        assert r.status_code == 200
        data = r.json()
        assert data["fair_value"] == 195_000
        assert data["difference_percent"] == 20
        assert data["status"] == "very_overpriced"

    def test_insufficient_data(self, make_client):
        client = make_client(FakeCatalog([make_comparable(0)]), MockNarrator())
        data = client.post("/v1/fair-value", json={**BODY, "asking_price": 200_000}).json()
        assert data["status"] == "insufficient_data"
        assert data["fair_value"] is None

    def test_asking_price_must_be_positive(self, client):
        r = client.post("/v1/fair-value", json={**BODY, "asking_price": 0})
        assert r.status_code == 422

    @pytest.mark.parametrize("literal", ["1e999", "-1e999"])
    def test_asking_price_must_be_finite(self, client, literal):
        raw = json.dumps(BODY)[:-1] + f', "asking_price": {literal}}}'
        r = client.post("/v1/fair-value", content=raw, headers={"Content-Type": "application/json"})
        assert r.status_code == 422


class TestStatisticsPresentation:
    def test_dispersion_rounded_in_response(self, client, tight_comparables):
        stats = calculate_statistics(tight_comparables)
        data = client.post("/v1/valuation", json=BODY).json()
        assert data["comparables"]["standard_deviation"] == round(stats.standard_deviation, 2)
        assert data["comparables"]["coefficient_of_variation"] == round(stats.coefficient_of_variation, 2)
