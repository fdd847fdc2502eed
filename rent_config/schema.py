"""
Engine settings schema (``rent_config.schema``).

One frozen dataclass holds every tunable of the rent engine.  Validation
runs in ``__post_init__`` so an invalid settings object can never exist.
Structural rules (lease non-overlap, cheque transitions, exact money) are
not settings; see ``rent_kernel.invariants``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from string import Formatter

# Methods a cheque-derived payment may be recorded under.  Mirrors
# rent_kernel.models.PaymentMethod; kept as strings so that this package
# stays importable without the ORM.
PAYMENT_METHODS: frozenset[str] = frozenset(
    {"CASH", "BANK_TRANSFER", "CHEQUE", "CARD", "UPI", "OTHER"}
)

REFERENCE_FIELDS: frozenset[str] = frozenset({"cheque_number", "bank_name"})


@dataclass(frozen=True)
class EngineSettings:
    """Validated, immutable rent engine settings."""

    config_id: str
    version: int
    upcoming_cheque_windows: tuple[int, ...] = (30, 60, 90)
    cheque_payment_method: str = "CHEQUE"
    cheque_reference_template: str = "Cheque #{cheque_number} ({bank_name})"
    recompute_on_payment_delete: bool = False
    max_due_day: int = 28
    country_currencies: dict[str, str] = field(
        default_factory=lambda: {"IN": "INR", "AE": "AED"}
    )
    checksum: str = ""

    def __post_init__(self) -> None:
        if not self.config_id:
            raise ValueError("config_id must not be empty")
        if self.version < 1:
            raise ValueError(f"version must be >= 1, got {self.version}")

        if not self.upcoming_cheque_windows:
            raise ValueError("upcoming_cheque_windows must not be empty")
        for days in self.upcoming_cheque_windows:
            if isinstance(days, bool) or not isinstance(days, int) or days <= 0:
                raise ValueError(
                    f"upcoming_cheque_windows entries must be positive "
                    f"integers, got {days!r}"
                )

        if self.cheque_payment_method not in PAYMENT_METHODS:
            raise ValueError(
                f"cheque_payment_method must be one of "
                f"{sorted(PAYMENT_METHODS)}, got {self.cheque_payment_method!r}"
            )

        used = {
            name
            for _, name, _, _ in Formatter().parse(self.cheque_reference_template)
            if name
        }
        unknown = used - REFERENCE_FIELDS
        if unknown:
            raise ValueError(
                f"cheque_reference_template uses unknown fields "
                f"{sorted(unknown)}; allowed: {sorted(REFERENCE_FIELDS)}"
            )

        if not 1 <= self.max_due_day <= 31:
            raise ValueError(
                f"max_due_day must be between 1 and 31, got {self.max_due_day}"
            )

        for country, currency in self.country_currencies.items():
            if len(country) != 2 or not country.isupper():
                raise ValueError(f"country code {country!r} must be ISO 3166 alpha-2")
            if len(currency) != 3 or not currency.isupper():
                raise ValueError(f"currency code {currency!r} must be ISO 4217")

    def currency_for(self, country: str) -> str:
        """Native currency of a supported country."""
        try:
            return self.country_currencies[country]
        except KeyError:
            raise ValueError(f"unsupported country {country!r}") from None
