"""Configurable per-model cost estimation."""

import math
from decimal import ROUND_HALF_UP, Decimal
from typing import Dict, Mapping, Optional

from ..exceptions import ValidationError

# Per 1K tokens. Deployments override these through configuration.
DEFAULT_PRICES_PER_1K_TOKENS: Dict[str, Decimal] = {
    "gpt-4o-mini": Decimal("0.00015"),
    "gpt-4o": Decimal("0.005"),
    "claude-3-haiku": Decimal("0.00025"),
    "deepseek-chat": Decimal("0.0001"),
}
DEFAULT_FALLBACK_PRICE = Decimal("0.0001")
CHARS_PER_TOKEN = 4
OUTPUT_TOKEN_ALLOWANCE = 500
COST_PLACES = Decimal("0.00001")


class CostEstimator:
    """Estimates the monetary cost of one scorer call from the prompt length."""

    def __init__(
        self,
        prices_per_1k_tokens: Optional[Mapping[str, Decimal]] = None,
        fallback_price: Decimal = DEFAULT_FALLBACK_PRICE,
    ):
        prices = dict(DEFAULT_PRICES_PER_1K_TOKENS)
        if prices_per_1k_tokens:
            prices.update(
                {model: Decimal(str(price)) for model, price in prices_per_1k_tokens.items()}
            )

        if any(price < 0 for price in prices.values()) or fallback_price < 0:
            raise ValidationError("Model prices cannot be negative")

        self._prices = prices
        self._fallback_price = Decimal(str(fallback_price))

    def price_for(self, model_name: str) -> Decimal:
        return self._prices.get(model_name, self._fallback_price)

    @staticmethod
    def estimate_tokens(prompt: str) -> int:
        """Rough token estimate: prompt characters / 4 plus an output allowance."""
        return math.ceil(len(prompt) / CHARS_PER_TOKEN) + OUTPUT_TOKEN_ALLOWANCE

    def estimate(self, model_name: str, prompt: str) -> Decimal:
        """Estimated cost in USD, 5 decimal places."""
        cost = self.price_for(model_name) * self.estimate_tokens(prompt) / 1000
        return cost.quantize(COST_PLACES, rounding=ROUND_HALF_UP)

    @property
    def prices(self) -> Dict[str, Decimal]:
        return dict(self._prices)
