import math


def format_currency(amount):
    """Format amount as Colombian pesos, no decimals: 1234567.8 -> '$1.234.568'"""
    try:
        value = float(amount)
    except (TypeError, ValueError):
        return "$0"
    if not math.isfinite(value):
        return "$0"
    sign = "-" if value < 0 else ""
    return f"{sign}${abs(value):,.0f}".replace(",", ".")


def format_percentage(value, decimals=2):
    """Format a percentage already scaled to 100; infinite values print as N/A"""
    if value is None or not math.isfinite(value):
        return "N/A"
    return f"{value:.{decimals}f}%"
