"""Currency display helpers."""

# fr-FR groups thousands with a narrow no-break space and puts a no-break
# space before the currency label.
GROUP_SEPARATOR = "\u202f"
LABEL_SEPARATOR = "\xa0"


def format_price(amount: int, label: str = "FCFA") -> str:
    """Format an integer amount the way the dashboard displays it, e.g. ``1 250 000 FCFA``."""
    grouped = f"{abs(amount):,}".replace(",", GROUP_SEPARATOR)
    sign = "-" if amount < 0 else ""
    return f"{sign}{grouped}{LABEL_SEPARATOR}{label}"
