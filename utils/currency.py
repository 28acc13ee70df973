from utils.constants import DEFAULT_CURRENCY_SYMBOL


def format_currency(amount: float, symbol: str = DEFAULT_CURRENCY_SYMBOL) -> str:
    """Format a float as currency string, e.g. '₹1,234.56'."""
    return f"{symbol}{amount:,.2f}"
