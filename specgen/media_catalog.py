"""Static catalog of the product imagery the generator may reference by id."""
from __future__ import annotations

from typing import Dict, List, NamedTuple, Optional, Tuple


class MediaEntry(NamedTuple):
    id: str
    url: str
    tags: Tuple[str, ...] = ()


_ENTRIES: Tuple[MediaEntry, ...] = (
    MediaEntry(
        "fold-flip-combo",
        "https://images.ctfassets.net/rg2zkwx3wrvd/1WpHzk0xIElDINjTeAb6aE/8718e51b0646399869137f1dbfbf23e0/galaxy_z_fold7__z_flip7_combo_kv_510x370mm_rgb_250516.jpg?w=1600",
        ("galaxy", "foldable", "phone", "smartphone"),
    ),
    MediaEntry(
        "monitor-paradigm",
        "https://images.ctfassets.net/rg2zkwx3wrvd/1fwEmuOkFYAi8EkEsy8djW/40843b430b299446b54afb5726da44b0/Paradigm_PA3-KV__MO.png?w=1600",
        ("display", "screen", "desktop"),
    ),
    MediaEntry(
        "watch-ultra",
        "https://images.ctfassets.net/rg2zkwx3wrvd/420tI4gVfeN1L3xc9khxsk/e06fe01de6018ba5b7ecbb3b409531b9/Galaxy_Watch_Ultra_Product_KV_510x370_RGB.jpg?w=1600",
        ("galaxy", "smartwatch", "wearable", "fitness"),
    ),
    MediaEntry(
        "watch8-combo",
        "https://images.ctfassets.net/rg2zkwx3wrvd/21Nyf5mWowa0u7we0QQoFC/14d4a3a7664378bedd5120b84e3bdfbb/Galaxy_Watch8_Combo_ProductKV_510X370_RGB_a05.jpg?w=1600",
        ("galaxy", "smartwatch", "wearable"),
    ),
    MediaEntry(
        "s24-fe-banner",
        "https://images.ctfassets.net/rg2zkwx3wrvd/731JyHNkyRq2Q519W66XyM/a776079f60837be48d6881ba7f1b409f/2024-Q3__S24_FE__Top_banner__PC___SE.jpg?w=800",
        ("galaxy", "phone", "smartphone"),
    ),
    MediaEntry(
        "tab-s10-hero",
        "https://images.ctfassets.net/rg2zkwx3wrvd/17HgnFbLqyyCdbgq0O2kr2/f61de74719a4a1483b9202914534064c/Samsung_Galaxy_Tab_S10_Series__Galaxy_AI_now_in_Swedish__PC.jpg?w=800",
        ("galaxy", "tablet"),
    ),
)

# Declaration order doubles as the tie-break order for relevance ranking.
CATALOG: Dict[str, MediaEntry] = {e.id: e for e in _ENTRIES}


def catalog_ids() -> List[str]:
    return list(CATALOG.keys())


def resolve_url(media_id: Optional[str]) -> Optional[str]:
    """Return the image URL for a catalog id, or None when unknown."""
    if not media_id or not isinstance(media_id, str):
        return None
    entry = CATALOG.get(media_id)
    return entry.url if entry else None


def describe(media_id: str) -> str:
    # "watch8-combo" -> "Watch8 Combo"
    return " ".join(part.capitalize() for part in media_id.replace("_", "-").split("-") if part)


def media_library(ids: Optional[List[str]] = None) -> List[Dict[str, object]]:
    """Catalog entries shaped for prompting: id, description, tags, example url."""
    out: List[Dict[str, object]] = []
    for media_id in ids if ids is not None else catalog_ids():
        entry = CATALOG.get(media_id)
        if entry is None:
            continue
        out.append(
            {
                "id": entry.id,
                "description": describe(entry.id),
                "tags": list(entry.tags),
                "exampleUrl": entry.url,
            }
        )
    return out
