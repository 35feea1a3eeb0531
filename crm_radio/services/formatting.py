"""Mise en forme des valeurs pour l'affichage (convention fr-FR)."""
import math
from decimal import Decimal, ROUND_HALF_UP

# Palette des graphiques : la couleur dépend uniquement du rang de la ligne
COLOR_PALETTE = ("#4F46E5", "#10B981", "#F59E0B", "#EF4444", "#6366F1", "#8B5CF6")

# Séparateurs fr-FR : espace fine insécable pour les milliers, insécable avant l'unité
THOUSANDS_SEP = "\u202f"
UNIT_SEP = "\u00a0"


def _to_float(value) -> float:
    try:
        number = float(value or 0)
    except (TypeError, ValueError):
        return 0.0
    if math.isnan(number) or math.isinf(number):
        return 0.0
    return number


def format_number(value, decimals: int = 0) -> str:
    """1234567.8 -> '1 234 568' (decimals=0) ou '1 234 567,80' (decimals=2)."""
    # Arrondi au demi supérieur, comme Intl.NumberFormat
    number = Decimal(str(_to_float(value))).quantize(Decimal(1).scaleb(-decimals), rounding=ROUND_HALF_UP)
    raw = "{:,.{prec}f}".format(number, prec=decimals)
    return raw.replace(",", THOUSANDS_SEP).replace(".", ",")


def format_currency(value, decimals: int = 2, symbol: str = "€") -> str:
    return f"{format_number(value, decimals)}{UNIT_SEP}{symbol}"


def format_percentage(value, decimals: int = 0) -> str:
    """La valeur est déjà exprimée en pourcents (42 -> '42 %')."""
    return f"{format_number(value, decimals)}{THOUSANDS_SEP}%"


def round_half_up(value) -> int:
    return int(math.floor(_to_float(value) + 0.5))


def color_for(index: int) -> str:
    return COLOR_PALETTE[index % len(COLOR_PALETTE)]


def assign_colors(rows: list[dict]) -> list[dict]:
    return [{**row, "color": color_for(i)} for i, row in enumerate(rows)]
