"""Currency normalization between the scenario's entry currency and display currency.

Scenarios are entered either in USD or in the school's local currency.
The FX rate is supplied with the scenario (1 USD = rate LOCAL), never fetched.

FxRate(35.0).to_usd(3500)        -> 100.0
FxRate(35.0).to_local(100)       -> 3500.0
FxRate(0.0).to_usd(3500)         -> 3500.0   (no usable rate: pass-through)
to_display(3500, "LOCAL", "USD", 35.0) -> 100.0
"""

from __future__ import annotations

from dataclasses import dataclass

from feasibility.formulas import safe_num

USD = "USD"
LOCAL = "LOCAL"
CURRENCIES: tuple[str, ...] = (USD, LOCAL)


def normalize_currency(value, default: str = USD) -> str:
    """'usd' -> 'USD', 'local' -> 'LOCAL'; anything else -> default."""
    code = str(value or "").strip().upper()
    return code if code in CURRENCIES else default


def unconverted(amount: float) -> float:
    """Money callable for figures already in the display currency."""
    return safe_num(amount)


@dataclass(frozen=True, slots=True)
class FxRate:
    """USD/LOCAL exchange rate (1 USD = rate LOCAL)."""
    rate: float

    @property
    def usable(self) -> bool:
        return safe_num(self.rate) > 0

    def to_usd(self, amount: float) -> float:
        if not self.usable:
            return safe_num(amount)
        return safe_num(amount) / self.rate

    def to_local(self, amount: float) -> float:
        if not self.usable:
            return safe_num(amount)
        return safe_num(amount) * self.rate


def to_display(amount: float, entry_currency: str, display_currency: str,
               fx_rate: float) -> float:
    """Rescale an amount entered in entry_currency for display_currency.

    Same currency passes through. A rate <= 0 or non-finite also passes
    through rather than dividing.
    """
    entry = normalize_currency(entry_currency)
    display = normalize_currency(display_currency, default=entry)
    if entry == display:
        return safe_num(amount)
    fx = FxRate(safe_num(fx_rate))
    if entry == LOCAL and display == USD:
        return fx.to_usd(amount)
    return fx.to_local(amount)


@dataclass(frozen=True, slots=True)
class CurrencyNormalizer:
    """Bound converter for one scenario + display choice."""
    entry_currency: str
    display_currency: str
    fx_rate: float
    local_currency_code: str = LOCAL

    @property
    def active(self) -> bool:
        """True when display differs from entry and the rate is usable."""
        return (normalize_currency(self.entry_currency)
                != normalize_currency(self.display_currency, self.entry_currency)
                and FxRate(safe_num(self.fx_rate)).usable)

    @property
    def display_code(self) -> str:
        """Currency code shown in report headers."""
        display = normalize_currency(self.display_currency, self.entry_currency)
        if display == LOCAL:
            return self.local_currency_code or LOCAL
        return USD

    def __call__(self, amount: float) -> float:
        return to_display(amount, self.entry_currency, self.display_currency,
                          self.fx_rate)
