"""Derived listing fields.  Pure functions, no storage access."""


def capitalize_name(value: str) -> str:
    """Upper-case the first character and lower-case the rest ("bMW" -> "Bmw")."""
    value = value.strip()
    if not value:
        return value
    return value[0].upper() + value[1:].lower()


def listing_title(year: int, make: str, model: str) -> str:
    return f"{year} {make} {model}"


def _group_indian(digits: str) -> str:
    # Last three digits form one group, the rest are grouped in pairs:
    # 12345678 -> 1,23,45,678
    if len(digits) <= 3:
        return digits
    head, tail = digits[:-3], digits[-3:]
    pairs = []
    while len(head) > 2:
        pairs.insert(0, head[-2:])
        head = head[:-2]
    if head:
        pairs.insert(0, head)
    return ",".join(pairs + [tail])


def format_inr(amount: float) -> str:
    """Format *amount* as Indian rupees, e.g. ``600000`` -> ``₹6,00,000.00``."""
    sign = "-" if amount < 0 else ""
    whole, fraction = f"{abs(amount):.2f}".split(".")
    return f"{sign}₹{_group_indian(whole)}.{fraction}"
