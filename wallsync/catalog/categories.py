"""Wallpaper category taxonomy.

Category identity is the lower-case enum name, fixed when an item is
ingested. Display names are accepted as aliases so callers passing either
form land on the same key.
"""

import random
from enum import Enum


class SyncCategory(str, Enum):
    """Categories wallpapers are synced into."""

    AMOLED = "amoled"
    DARK = "dark"
    MINIMAL = "minimal"
    NATURE = "nature"
    SPACE = "space"
    ABSTRACT = "abstract"
    ANIME = "anime"
    CYBERPUNK = "cyberpunk"
    CARS = "cars"
    CITY = "city"
    GRADIENT = "gradient"
    NEON = "neon"
    FANTASY = "fantasy"
    GAMING = "gaming"
    OCEAN = "ocean"
    MOUNTAIN = "mountain"
    FLOWERS = "flowers"
    SKULL = "skull"
    TEXTURE = "texture"
    NEW = "new"

    @property
    def display_name(self) -> str:
        return DISPLAY_NAMES[self]

    @property
    def search_terms(self) -> list[str]:
        return SEARCH_TERMS[self]

    def random_term(self, rng: random.Random | None = None) -> str:
        return (rng or random).choice(self.search_terms)


DISPLAY_NAMES: dict[SyncCategory, str] = {
    SyncCategory.AMOLED: "AMOLED",
    SyncCategory.DARK: "Dark",
    SyncCategory.MINIMAL: "Minimal",
    SyncCategory.NATURE: "Nature",
    SyncCategory.SPACE: "Space",
    SyncCategory.ABSTRACT: "Abstract",
    SyncCategory.ANIME: "Anime",
    SyncCategory.CYBERPUNK: "Cyberpunk",
    SyncCategory.CARS: "Cars",
    SyncCategory.CITY: "City",
    SyncCategory.GRADIENT: "Gradient",
    SyncCategory.NEON: "Neon",
    SyncCategory.FANTASY: "Fantasy",
    SyncCategory.GAMING: "Gaming",
    SyncCategory.OCEAN: "Ocean",
    SyncCategory.MOUNTAIN: "Mountains",
    SyncCategory.FLOWERS: "Flowers",
    SyncCategory.SKULL: "Skull",
    SyncCategory.TEXTURE: "Texture",
    SyncCategory.NEW: "New",
}

SEARCH_TERMS: dict[SyncCategory, list[str]] = {
    SyncCategory.AMOLED: ["amoled wallpaper", "pure black", "black background", "dark abstract black"],
    SyncCategory.DARK: ["dark wallpaper", "dark aesthetic", "dark background", "moody dark"],
    SyncCategory.MINIMAL: ["minimal wallpaper", "minimalist dark", "simple abstract", "clean minimal"],
    SyncCategory.NATURE: ["nature wallpaper", "forest dark", "mountains night", "nature landscape"],
    SyncCategory.SPACE: ["space wallpaper", "galaxy", "cosmos", "nebula", "stars night sky"],
    SyncCategory.ABSTRACT: ["abstract wallpaper", "abstract art", "geometric abstract", "fluid art"],
    SyncCategory.ANIME: ["anime wallpaper", "anime dark", "manga art", "anime aesthetic"],
    SyncCategory.CYBERPUNK: ["cyberpunk wallpaper", "neon city", "cyberpunk aesthetic", "futuristic city"],
    SyncCategory.CARS: ["car wallpaper", "supercar", "sports car dark", "luxury car night"],
    SyncCategory.CITY: ["city wallpaper", "city night", "urban skyline", "cityscape dark"],
    SyncCategory.GRADIENT: ["gradient wallpaper", "color gradient", "gradient abstract", "smooth gradient"],
    SyncCategory.NEON: ["neon wallpaper", "neon lights", "neon glow", "neon aesthetic"],
    SyncCategory.FANTASY: ["fantasy wallpaper", "fantasy art", "magical", "dragon fantasy"],
    SyncCategory.GAMING: ["gaming wallpaper", "game art", "video game", "esports"],
    SyncCategory.OCEAN: ["ocean wallpaper", "sea dark", "underwater", "ocean waves"],
    SyncCategory.MOUNTAIN: ["mountain wallpaper", "mountain night", "snowy peaks", "alps dark"],
    SyncCategory.FLOWERS: ["flower wallpaper", "dark flowers", "rose dark", "floral aesthetic"],
    SyncCategory.SKULL: ["skull wallpaper", "skull art", "skeleton dark", "skull aesthetic"],
    SyncCategory.TEXTURE: ["texture wallpaper", "dark texture", "material texture", "surface pattern"],
    SyncCategory.NEW: ["trending wallpaper dark", "popular dark aesthetic", "modern abstract dark"],
}

_ALIASES: dict[str, str] = {}
for _category in SyncCategory:
    _ALIASES[_category.value] = _category.value
    _ALIASES[_category.name.lower()] = _category.value
    _ALIASES[DISPLAY_NAMES[_category].lower()] = _category.value


def normalize_category_key(raw: str) -> str:
    """Map a category name, enum name or display name to its stored key.

    Unknown categories are kept as their trimmed lower-case form so that
    matching stays exact rather than silently dropping them.

    Args:
        raw: Category identifier from any caller

    Returns:
        Normalized category key
    """
    key = raw.strip().lower()
    return _ALIASES.get(key, key)
