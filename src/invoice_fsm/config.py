"""
Configuration management (SSOT).

This module defines ALL configuration for the invoice parser.
All config keys are defined here; no other module should invent config keys.

Key invariants:
- Configuration shapes what the classifier recognises (currencies, header
  keys, keywords), never how the state machine transitions
- The local currency is an ISO 4217 code; entries in any other currency
  are FOREIGN
"""

import os
from dataclasses import dataclass, field
from pathlib import Path

import yaml


class ConfigValidationError(Exception):
    """Raised when configuration validation fails."""

    pass


DEFAULT_CURRENCY_SYMBOLS = {
    "€": "EUR",
    "$": "USD",
    "£": "GBP",
}

DEFAULT_HEADER_KEYS = [
    "invoice no",
    "invoice number",
    "invoice #",
    "invoice date",
    "date",
    "due date",
    "vendor",
    "supplier",
    "customer",
    "bill to",
    "reference",
    "order no",
    "vat id",
    "rechnungsnummer",
    "rechnungsdatum",
    "kunde",
    "lieferant",
]

DEFAULT_TITLE_WORDS = [
    "invoice",
    "tax invoice",
    "commercial invoice",
    "credit note",
    "rechnung",
]

DEFAULT_TOTAL_KEYWORDS = [
    "grand total",
    "total due",
    "amount due",
    "invoice total",
    "total",
    "gesamtbetrag",
    "rechnungsbetrag",
    "summe",
]


@dataclass
class ParserConfig:
    """Classifier vocabulary.

    Keywords are matched case-insensitively. Longer keywords should come
    first where one is a prefix of another ("grand total" before "total").
    """

    local_currency: str = "EUR"
    currency_symbols: dict[str, str] = field(
        default_factory=lambda: dict(DEFAULT_CURRENCY_SYMBOLS)
    )
    header_keys: list[str] = field(default_factory=lambda: list(DEFAULT_HEADER_KEYS))
    title_words: list[str] = field(default_factory=lambda: list(DEFAULT_TITLE_WORDS))
    total_keywords: list[str] = field(default_factory=lambda: list(DEFAULT_TOTAL_KEYWORDS))


@dataclass
class ValidationConfig:
    """Total reconciliation settings."""

    # Master switch for the post-parse semantic check
    enabled: bool = True
    # Digits of the currency minor unit (2 for cents)
    minor_unit_digits: int = 2
    # Allowed |computed - stated| in minor units (0 = exact)
    tolerance_minor_units: int = 0


@dataclass
class Config:
    """Application configuration (SSOT)."""

    parser: ParserConfig = field(default_factory=ParserConfig)
    validation: ValidationConfig = field(default_factory=ValidationConfig)

    def validate(self) -> list[str]:
        """Validate configuration completeness and consistency.

        Returns:
            List of validation errors (empty if valid)
        """
        errors: list[str] = []

        currency = self.parser.local_currency
        if not (len(currency) == 3 and currency.isalpha() and currency.isupper()):
            errors.append(f"parser.local_currency must be an ISO 4217 code, got {currency!r}")

        for symbol, code in self.parser.currency_symbols.items():
            if not symbol:
                errors.append("parser.currency_symbols contains an empty symbol")
            if not (len(code) == 3 and code.isalpha()):
                errors.append(f"parser.currency_symbols[{symbol!r}] is not a currency code")

        if not self.parser.header_keys:
            errors.append("parser.header_keys must not be empty")
        if not self.parser.total_keywords:
            errors.append("parser.total_keywords must not be empty")

        if not 0 <= self.validation.minor_unit_digits <= 4:
            errors.append("validation.minor_unit_digits must be between 0 and 4")
        if self.validation.tolerance_minor_units < 0:
            errors.append("validation.tolerance_minor_units must be >= 0")

        return errors


def load_config(config_path: Path | None = None) -> Config:
    """
    Load configuration from YAML file.

    A missing file yields the defaults. Environment variables can override
    config values:
    - INVOICE_FSM_LOCAL_CURRENCY
    - INVOICE_FSM_TOLERANCE (minor units)
    - INVOICE_FSM_VALIDATION (true/false)

    Raises:
        ConfigValidationError: If the resulting configuration is invalid.
    """
    data: dict = {}
    if config_path is not None and config_path.exists():
        with open(config_path, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}

    # Parser config
    parser_data = data.get("parser", {}) or {}
    defaults = ParserConfig()
    parser = ParserConfig(
        local_currency=os.environ.get(
            "INVOICE_FSM_LOCAL_CURRENCY", parser_data.get("local_currency", "EUR")
        ).upper(),
        currency_symbols=parser_data.get("currency_symbols", defaults.currency_symbols),
        header_keys=[k.lower() for k in parser_data.get("header_keys", defaults.header_keys)],
        title_words=[w.lower() for w in parser_data.get("title_words", defaults.title_words)],
        total_keywords=[
            k.lower() for k in parser_data.get("total_keywords", defaults.total_keywords)
        ],
    )

    # Validation config
    validation_data = data.get("validation", {}) or {}
    enabled_env = os.environ.get("INVOICE_FSM_VALIDATION", "").lower()
    enabled = validation_data.get("enabled", True)
    if enabled_env == "true":
        enabled = True
    elif enabled_env == "false":
        enabled = False

    tolerance = validation_data.get("tolerance_minor_units", 0)
    tolerance_env = os.environ.get("INVOICE_FSM_TOLERANCE", "")
    if tolerance_env:
        try:
            tolerance = int(tolerance_env)
        except ValueError:
            raise ConfigValidationError(
                f"INVOICE_FSM_TOLERANCE must be an integer, got {tolerance_env!r}"
            )

    validation = ValidationConfig(
        enabled=enabled,
        minor_unit_digits=validation_data.get("minor_unit_digits", 2),
        tolerance_minor_units=tolerance,
    )

    config = Config(parser=parser, validation=validation)

    errors = config.validate()
    if errors:
        raise ConfigValidationError("; ".join(errors))

    return config


def create_default_config(config_path: Path) -> None:
    """Create a default configuration file."""
    default_config = """# Invoice FSM parser configuration
#
# The parser vocabulary decides how single lines are classified.
# The state machine itself is not configurable.

parser:
  local_currency: "EUR"                    # Entries in other currencies are foreign
  currency_symbols:
    "€": "EUR"
    "$": "USD"
    "£": "GBP"
  header_keys:                             # "<key>: <value>" lines in the header
    - "invoice no"
    - "invoice number"
    - "invoice date"
    - "date"
    - "due date"
    - "vendor"
    - "customer"
  title_words: ["invoice", "tax invoice", "credit note", "rechnung"]
  total_keywords: ["grand total", "amount due", "total", "gesamtbetrag", "summe"]

# Total reconciliation
validation:
  enabled: true
  minor_unit_digits: 2                     # 2 = cents
  tolerance_minor_units: 0                 # 0 = exact decimal equality
"""

    config_path.parent.mkdir(parents=True, exist_ok=True)
    with open(config_path, "w", encoding="utf-8") as f:
        f.write(default_config)
