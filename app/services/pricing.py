"""Pricing table — cost calculation for text and image generation.

Prices are injected (built from settings by default) so tests and
deployments can substitute their own table without touching the ledger.
All arithmetic is Decimal; costs are stored with 6 decimal places and
rounded up so many tiny calls never under-bill in aggregate.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from decimal import ROUND_UP, Decimal

from app.core.config import ModelPrice, Settings, settings
from app.core.errors import UnregisteredModelError

_THOUSAND = Decimal(1000)
COST_QUANTUM = Decimal("0.000001")


def quantize_cost(value: Decimal) -> Decimal:
    """Round a cost up to the ledger's 6-decimal precision."""
    return value.quantize(COST_QUANTUM, rounding=ROUND_UP)


@dataclass(frozen=True)
class PricingTable:
    """Cost-per-1K-token prices by model and per-image prices by model/size.

    Attributes:
        model_prices: Model identifier -> input/output cost per 1,000 tokens.
        image_prices: Image model -> size key -> cost per image.
    """

    model_prices: Mapping[str, ModelPrice]
    image_prices: Mapping[str, Mapping[str, Decimal]] = field(default_factory=dict)

    @classmethod
    def from_settings(cls, config: Settings = settings) -> "PricingTable":
        """Build a pricing table from application settings."""
        return cls(
            model_prices=dict(config.model_prices),
            image_prices={
                model: dict(sizes) for model, sizes in config.image_prices.items()
            },
        )

    def price_for(self, model: str) -> ModelPrice:
        """Look up token prices for a model.

        Raises:
            UnregisteredModelError: If the model has no configured price.
        """
        price = self.model_prices.get(model)
        if price is None:
            raise UnregisteredModelError(model=model)
        return price

    def cost_for(self, model: str, input_tokens: int, output_tokens: int) -> Decimal:
        """Calculate the cost of a text-generation call.

        cost = input_tokens/1000 * price.input + output_tokens/1000 * price.output

        Args:
            model: Model identifier.
            input_tokens: Input/prompt tokens consumed.
            output_tokens: Output/completion tokens consumed.

        Returns:
            Cost in USD, rounded up to 6 decimal places.

        Raises:
            UnregisteredModelError: If the model has no configured price.
        """
        price = self.price_for(model)
        raw_cost = (
            Decimal(input_tokens) * price.input + Decimal(output_tokens) * price.output
        ) / _THOUSAND
        return quantize_cost(raw_cost)

    def image_cost(self, model: str, size: str, image_count: int) -> Decimal:
        """Calculate the cost of an image-generation call.

        Args:
            model: Image model identifier (e.g. "dall-e-3").
            size: Size key (e.g. "1024x1024", "1792x1024_hd").
            image_count: Number of images generated.

        Returns:
            Cost in USD, rounded up to 6 decimal places.

        Raises:
            UnregisteredModelError: If the model or size has no configured price.
        """
        sizes = self.image_prices.get(model)
        if sizes is None:
            raise UnregisteredModelError(model=model)
        per_image = sizes.get(size)
        if per_image is None:
            raise UnregisteredModelError(model=model, size=size)
        return quantize_cost(per_image * image_count)
