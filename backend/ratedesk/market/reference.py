"""Reference prices and display metadata for known symbols."""

# Last-known reference prices, used when no live rate has ever been received
REFERENCE_PRICES: dict[str, float] = {
    "BTC": 45000.00,
    "ETH": 2800.00,
    "BNB": 320.00,
}

# Display metadata (name, 24h volume label)
SYMBOL_INFO: dict[str, dict[str, str]] = {
    "BTC": {"name": "Bitcoin", "volume24h": "28.5B"},
    "ETH": {"name": "Ethereum", "volume24h": "15.2B"},
    "BNB": {"name": "Binance Coin", "volume24h": "2.8B"},
}

# Directory contents when /rates/symbols is unreachable
FALLBACK_SYMBOLS: tuple[str, ...] = ("BTC", "ETH", "BNB")

DEFAULT_SYMBOL = "BTC"
DEFAULT_TIMEFRAME = "1D"
DEFAULT_FAVORITES: tuple[str, ...] = ("BTC",)

# Number of directory entries shown while no search query is active
VISIBLE_LIMIT = 20


def base_price(symbol: str) -> float | None:
    """Reference price for a symbol, or None if the symbol has none."""
    return REFERENCE_PRICES.get(symbol)


def display_info(symbol: str) -> dict[str, str]:
    """Name and volume label; unknown symbols use the ticker itself."""
    return SYMBOL_INFO.get(symbol, {"name": symbol, "volume24h": "-"})
