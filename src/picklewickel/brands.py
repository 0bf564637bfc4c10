"""
Tournament brand and league inference from the tournament name.

Tournament names conventionally start with the organising brand
("PPA Atlanta Open", "APP Chicago", "MLP Columbus"). Brickwall events are
spelled several ways, so they are matched anywhere in the name.
"""

import re
from dataclasses import dataclass

# Brand abbreviation -> display color
BRAND_COLORS: dict[str, str] = {
    "PPA": "#2563EB",
    "APP": "#00c2c7",
    "MLP": "#FB9062",
    "NPL": "#A3E635",
    "BRK": "#DC2626",
    "CHL": "#BE123C",
    "LAB": "#e88ca1",
    "PTAP": "#25A6E5",
    "OAP": "#16A34A",
    "FGT": "#CA8A04",
}

INDEPENDENT_BRAND = "IND"
INDEPENDENT_COLOR = "#6b7280"
OTHER_LEAGUE = "Other"

# Leagues a scrape target may belong to
SCRAPE_TARGET_LEAGUES: tuple[str, ...] = ("APP", "PPA", "NPL", "MLP", OTHER_LEAGUE)

_BRICKWALL_MARKERS = ("BRICKWALL", "BRICK WALL", "MONEYBALL")
_SLUG_STRIP_RE = re.compile(r"[^\w-]", re.ASCII)
_SLUG_SPACE_RE = re.compile(r"\s+")


@dataclass(frozen=True)
class BrandInfo:
    abbreviation: str
    color: str


def _is_brickwall(upper_name: str) -> bool:
    return upper_name.startswith("BRK") or any(m in upper_name for m in _BRICKWALL_MARKERS)


def tournament_brand(tournament_name: str) -> BrandInfo:
    """
    Resolve the brand badge for a tournament.

    Examples:
        >>> tournament_brand("PPA Atlanta Open").abbreviation
        'PPA'
        >>> tournament_brand("Moneyball Classic").abbreviation
        'BRK'
        >>> tournament_brand("Local Shootout").abbreviation
        'IND'
    """
    if not tournament_name:
        return BrandInfo(INDEPENDENT_BRAND, INDEPENDENT_COLOR)

    name = tournament_name.upper().strip()
    if _is_brickwall(name):
        return BrandInfo("BRK", BRAND_COLORS["BRK"])

    for brand, color in BRAND_COLORS.items():
        if name.startswith(brand):
            return BrandInfo(brand, color)

    return BrandInfo(INDEPENDENT_BRAND, INDEPENDENT_COLOR)


def tournament_league(tournament_name: str) -> str:
    """League used for inferred tournaments; "Other" when no prefix matches."""
    brand = tournament_brand(tournament_name).abbreviation
    return OTHER_LEAGUE if brand == INDEPENDENT_BRAND else brand


def tournament_slug(tournament_name: str) -> str:
    """
    URL slug for the tournament page.

    Examples:
        >>> tournament_slug("PPA Atlanta Open")
        'ppa-atlanta-open'
        >>> tournament_slug("Men's Pro @ Dallas")
        'mens-pro--dallas'
    """
    slug = _SLUG_SPACE_RE.sub("-", tournament_name.lower())
    return _SLUG_STRIP_RE.sub("", slug)
