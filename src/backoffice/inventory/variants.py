"""Variant matrix helpers.

A variant is identified by its (color, size) pair. Comparisons always go
through ``VariantKey`` so that "Red"/"red " and "M"/"m" name the same
variant.
"""

from dataclasses import dataclass
from typing import Iterable, Protocol


class _HasStock(Protocol):
    color: str
    size: str
    stock: int


@dataclass(frozen=True)
class VariantKey:
    """Normalized (color, size) selector."""

    color: str
    size: str

    @classmethod
    def of(cls, color: str | None, size: str | None) -> "VariantKey | None":
        """Build a key, or return None when either half is missing or blank."""
        if not color or not size:
            return None
        color, size = color.strip(), size.strip()
        if not color or not size:
            return None
        return cls(color=color.casefold(), size=size.casefold())


def generate_sku(color: str, size: str) -> str:
    """``Red``/``Medium`` -> ``RED-M``."""
    return f"{color.strip()[:3].upper()}-{size.strip()[:1].upper()}"


def format_variant_name(color: str | None, size: str | None) -> str:
    if not color and not size:
        return ""
    if not size:
        return color
    if not color:
        return size
    return f"{color} - {size}"


def generate_variants(colors: Iterable[str], sizes: Iterable[str], default_stock: int = 0) -> list[dict]:
    """Cartesian product of colors and sizes, one dict per variant.

    Blank entries are dropped; duplicates (after normalization) keep the
    first spelling seen.
    """
    colors = [c.strip() for c in colors if c and c.strip()]
    sizes = [s.strip() for s in sizes if s and s.strip()]

    variants = []
    seen = set()
    for color in colors:
        for size in sizes:
            key = VariantKey.of(color, size)
            if key in seen:
                continue
            seen.add(key)
            variants.append(
                {
                    "color": color,
                    "size": size,
                    "stock": default_stock,
                    "sku": generate_sku(color, size),
                }
            )
    return variants


def merge_variants(existing: Iterable[_HasStock], colors: Iterable[str], sizes: Iterable[str]) -> list[dict]:
    """Regenerate a matrix for new colors/sizes, carrying over stock of surviving pairs."""
    stock_by_key = {VariantKey.of(v.color, v.size): v.stock for v in existing}
    merged = generate_variants(colors, sizes, 0)
    for variant in merged:
        variant["stock"] = stock_by_key.get(VariantKey.of(variant["color"], variant["size"]), 0)
    return merged


def total_variant_stock(variants: Iterable[_HasStock]) -> int:
    return sum(v.stock or 0 for v in variants)


def low_stock_variants(variants: Iterable[_HasStock], threshold: int = 10) -> list:
    """Variants that still have stock but less than ``threshold``."""
    return [v for v in variants if 0 < (v.stock or 0) < threshold]


def out_of_stock_variants(variants: Iterable[_HasStock]) -> list:
    return [v for v in variants if (v.stock or 0) == 0]


def available_colors(variants: Iterable[_HasStock]) -> list[str]:
    """Colors with stock in at least one size, in first-seen order."""
    colors = []
    seen = set()
    for v in variants:
        if (v.stock or 0) > 0 and v.color.casefold() not in seen:
            seen.add(v.color.casefold())
            colors.append(v.color)
    return colors


def available_sizes_for_color(variants: Iterable[_HasStock], color: str) -> list[str]:
    wanted = color.strip().casefold()
    return [v.size for v in variants if v.color.strip().casefold() == wanted and (v.stock or 0) > 0]
