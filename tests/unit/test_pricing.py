"""Tests for PricingTable — cost formula, image pricing, unknown models."""

from decimal import Decimal

import pytest
from hypothesis import given
from hypothesis import strategies as st

from app.core.config import ModelPrice, Settings
from app.core.errors import UnregisteredModelError
from app.services.pricing import PricingTable, quantize_cost

_GPT4 = ModelPrice(input=Decimal("0.03"), output=Decimal("0.06"))
_TABLE = PricingTable(
    model_prices={"gpt-4": _GPT4},
    image_prices={"dall-e-3": {"1024x1024": Decimal("0.04")}},
)

_token_counts = st.integers(min_value=0, max_value=10_000_000)


# =============================================================================
# Text generation
# =============================================================================


class TestCostFor:
    """Tests for PricingTable.cost_for()."""

    def test_gpt4_example(self) -> None:
        """1000 in + 500 out at 0.03/0.06 per 1K costs 0.06."""
        assert _TABLE.cost_for("gpt-4", 1000, 500) == Decimal("0.06")

    def test_zero_tokens_cost_nothing(self) -> None:
        assert _TABLE.cost_for("gpt-4", 0, 0) == Decimal("0")

    def test_result_has_six_decimal_places(self) -> None:
        cost = _TABLE.cost_for("gpt-4", 1, 0)
        assert cost.as_tuple().exponent == -6

    def test_sub_micro_cost_rounds_up(self) -> None:
        """A fraction of a millionth is billed as one millionth."""
        table = PricingTable(
            model_prices={"tiny": ModelPrice(input=Decimal("0.0001"), output=Decimal(0))}
        )
        # 1 token * 0.0001 / 1000 = 0.0000001
        assert table.cost_for("tiny", 1, 0) == Decimal("0.000001")

    def test_unknown_model_raises(self) -> None:
        with pytest.raises(UnregisteredModelError) as exc_info:
            _TABLE.cost_for("gpt-99", 10, 10)
        assert exc_info.value.status_code == 400
        assert "gpt-99" in exc_info.value.message

    @given(input_tokens=_token_counts, output_tokens=_token_counts)
    def test_matches_formula(self, input_tokens: int, output_tokens: int) -> None:
        """Cost equals in/1000*price.input + out/1000*price.output at 6 dp."""
        expected = quantize_cost(
            Decimal(input_tokens) / 1000 * _GPT4.input
            + Decimal(output_tokens) / 1000 * _GPT4.output
        )
        assert _TABLE.cost_for("gpt-4", input_tokens, output_tokens) == expected

    @given(
        calls=st.lists(
            st.tuples(_token_counts, _token_counts), min_size=1, max_size=50
        )
    )
    def test_sum_never_below_exact_total(self, calls: list[tuple[int, int]]) -> None:
        """Rounding up per record never under-bills the aggregate."""
        billed = sum(_TABLE.cost_for("gpt-4", i, o) for i, o in calls)
        exact = sum(
            (Decimal(i) * _GPT4.input + Decimal(o) * _GPT4.output) / 1000
            for i, o in calls
        )
        assert billed >= exact


# =============================================================================
# Image generation
# =============================================================================


class TestImageCost:
    """Tests for PricingTable.image_cost()."""

    def test_multiplies_per_image_price(self) -> None:
        assert _TABLE.image_cost("dall-e-3", "1024x1024", 3) == Decimal("0.12")

    def test_unknown_model_raises(self) -> None:
        with pytest.raises(UnregisteredModelError):
            _TABLE.image_cost("midjourney", "1024x1024", 1)

    def test_unknown_size_names_size(self) -> None:
        with pytest.raises(UnregisteredModelError) as exc_info:
            _TABLE.image_cost("dall-e-3", "4096x4096", 1)
        assert "4096x4096" in exc_info.value.message


# =============================================================================
# Construction from settings
# =============================================================================


class TestFromSettings:
    """Tests for PricingTable.from_settings()."""

    def test_default_settings_price_gpt4(self) -> None:
        table = PricingTable.from_settings(Settings())
        assert table.cost_for("gpt-4", 1000, 500) == Decimal("0.06")

    def test_new_model_added_without_code_changes(self) -> None:
        """A model only present in configuration is priced."""
        config = Settings(
            model_prices={"gpt-4o": {"input": "0.005", "output": "0.015"}},
        )
        table = PricingTable.from_settings(config)
        assert table.cost_for("gpt-4o", 2000, 1000) == Decimal("0.025")
        with pytest.raises(UnregisteredModelError):
            table.cost_for("gpt-4", 1, 1)
