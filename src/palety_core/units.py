MM = float
KG = float


def parse_float(value: str) -> float:
    text = value.strip()
    if not text:
        raise ValueError("empty input")
    text = text.replace(",", ".")
    return float(text)


def parse_quantity(value: str) -> int:
    """Parse a piece count typed by an operator; fractions are rejected."""
    number = parse_float(value)
    if not number.is_integer():
        raise ValueError(f"quantity must be a whole number: {value!r}")
    return int(number)


def format_float(value: float, ndigits: int = 2) -> str:
    return f"{value:.{ndigits}f}"


def format_weight(value: float | None) -> str:
    if value is None:
        return "0.0 kg"
    return f"{format_float(value, 1)} kg"


def format_height(value: float | None) -> str:
    if value is None:
        return "0 mm"
    if value >= 1000:
        return f"{format_float(value / 1000, 2)} m"
    return f"{round(value)} mm"
