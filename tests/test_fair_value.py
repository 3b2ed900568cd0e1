"""Tests for the asking-price fair value check."""

import pytest

from fairvalue.services.fair_value import assess_fair_value, classify_difference

from conftest import FakeCatalog, make_comparable


@pytest.fixture
def catalog():
    # median price per m² is 3000
    return FakeCatalog([
        make_comparable(0, price_per_m2=2800),
        make_comparable(1, price_per_m2=3000),
        make_comparable(2, price_per_m2=3100),
        make_comparable(3, price_per_m2=2900),
        make_comparable(4, price_per_m2=9000),  # outlier
    ])


class TestClassifyDifference:
    @pytest.mark.parametrize("pct,status", [
        (-30, "great_deal"), (-15, "great_deal"), (-14, "good_deal"), (-5, "good_deal"),
        (-4, "fair"), (0, "fair"), (5, "fair"), (6, "overpriced"), (15, "overpriced"),
        (16, "very_overpriced"),
    ])
    def test_bands(self, pct, status):
        assert classify_difference(pct)[0] == status


class TestAssessFairValue:
    async def test_uses_median_price_per_m2(self, catalog, sample_input):
        result = await assess_fair_value(catalog, sample_input, asking_price=195_000)
        assert result.fair_value == 195_000
        assert result.difference == 0
        assert result.difference_percent == 0
        assert result.status == "fair"
        assert result.median_price_per_m2 == 3000
        assert result.comparables_count == 5

    async def test_great_deal(self, catalog, sample_input):
        result = await assess_fair_value(catalog, sample_input, asking_price=156_000)
        assert result.difference_percent == -20
        assert result.status == "great_deal"

    async def test_queries_larger_sample(self, catalog, sample_input):
        await assess_fair_value(catalog, sample_input, asking_price=195_000)
        assert catalog.queries[0].limit == 100

    async def test_insufficient_data(self, sample_input):
        catalog = FakeCatalog([make_comparable(0), make_comparable(1)])
        result = await assess_fair_value(catalog, sample_input, asking_price=195_000)
        assert result.status == "insufficient_data"
        assert result.comparables_count == 2
        assert result.fair_value is None
