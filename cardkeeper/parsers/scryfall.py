"""
Scryfall bulk data parser.

Streams card objects out of a Scryfall bulk JSON file and maps each one to
the flat field set stored on a card row.

Bulk data: https://scryfall.com/docs/api/bulk-data
"""

import re
from collections.abc import Iterator
from datetime import date
from pathlib import Path
from typing import Any

import ijson

from cardkeeper.models.scryfall_card import CardFace, ScryfallCard
from cardkeeper.services.errors import BulkDataParseError, CardMappingError

TYPE_LINE_SEPARATOR = "—"

# Face fields that fill in for an absent top-level value on multi-faced cards
FACE_FALLBACK_FIELDS = (
    "mana_cost",
    "oracle_text",
    "type_line",
    "power",
    "toughness",
    "flavor_text",
)

# Strictly numeric stats: "3", "-1", "+2". Not "*", "X", "1+*" or "1.5"
_NUMERIC_STAT = re.compile(r"^[+-]?\d+$")


def iter_bulk_cards(path: Path) -> Iterator[Any]:
    """
    Lazily yield each element of a bulk data JSON array.

    Only the element currently being decoded is held in memory, so files far
    larger than RAM can be processed. Each call re-opens the file.

    Args:
        path: Path to a Scryfall bulk JSON file

    Yields:
        Decoded array elements (normally card objects)

    Raises:
        FileNotFoundError: If the file doesn't exist
        BulkDataParseError: At the first malformed token; elements yielded
            before it remain valid
    """
    if not path.exists():
        raise FileNotFoundError(f"File not found: {path}")

    with open(path, "rb") as f:
        try:
            yield from ijson.items(f, "item", use_float=True)
        except ijson.JSONError as e:
            raise BulkDataParseError(str(path), str(e)) from e


def parse_main_type(type_line: str) -> str | None:
    """
    Main type from a type line.

    "Legendary Creature — Elf Druid" -> "Legendary Creature"
    "Instant" -> "Instant"
    """
    main_type = type_line.split(TYPE_LINE_SEPARATOR, 1)[0].strip()
    return main_type or None


def parse_subtype(type_line: str) -> str | None:
    """
    Subtype from a type line, None when there is no em-dash.

    "Creature — Human Warrior" -> "Human Warrior"
    """
    if TYPE_LINE_SEPARATOR not in type_line:
        return None
    subtype = type_line.split(TYPE_LINE_SEPARATOR, 1)[1].strip()
    return subtype or None


def parse_stat(value: Any) -> int | None:
    """Integer power/toughness, or None for symbolic values like "*" or "X"."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str) and _NUMERIC_STAT.match(value.strip()):
        return int(value.strip())
    return None


def _stat_text(value: Any) -> str | None:
    return None if value is None else str(value)


def _absent(value: Any) -> bool:
    return value is None or value == ""


def _with_face_fallback(card: ScryfallCard, face: CardFace | None) -> dict[str, Any]:
    """Top-level values win; the front face only fills in what is missing."""
    values = {name: getattr(card, name) for name in FACE_FALLBACK_FIELDS}
    if face is None:
        return values

    for name, value in values.items():
        if _absent(value):
            face_value = getattr(face, name)
            if not _absent(face_value):
                values[name] = face_value
    return values


def _release_date(card: ScryfallCard) -> date | None:
    if not card.released_at:
        return None
    try:
        return date.fromisoformat(card.released_at[:10])
    except ValueError as e:
        raise CardMappingError(
            card.scryfall_id, card.name, f"Invalid released_at '{card.released_at}'"
        ) from e


def map_card(raw: Any) -> dict[str, Any]:
    """
    Map one raw Scryfall card object to card row fields.

    Args:
        raw: Decoded card object from a bulk file

    Returns:
        Dict keyed by CardDB attribute names

    Raises:
        CardMappingError: If the record cannot be mapped. Carries the card's
            Scryfall id and name ("unknown" when unavailable).
    """
    try:
        return _map_card(raw)
    except CardMappingError:
        raise
    except (TypeError, ValueError, AttributeError) as e:
        card_id, card_name = _labels(raw)
        raise CardMappingError(card_id, card_name, str(e)) from e


def _labels(raw: Any) -> tuple[str, str]:
    if not isinstance(raw, dict):
        return "unknown", "unknown"
    return str(raw.get("id") or "unknown"), str(raw.get("name") or "unknown")


def _map_card(raw: Any) -> dict[str, Any]:
    card = ScryfallCard.from_dict(raw)
    face = card.front_face
    text = _with_face_fallback(card, face)

    type_line = text["type_line"] or ""
    main_type = parse_main_type(type_line)
    if main_type is None:
        raise CardMappingError(card.scryfall_id, card.name, "Card has no type line")

    image_uris = card.image_uris
    if image_uris is None and face is not None:
        image_uris = face.image_uris
    image_url = image_uris.get("normal") if isinstance(image_uris, dict) else None

    return {
        # Legacy columns
        "title": card.name,
        "image_url": image_url,
        "image": image_url,
        "description": text["oracle_text"],
        "cost": text["mana_cost"],
        "type": main_type,
        "subtype": parse_subtype(type_line),
        "power": parse_stat(text["power"]),
        "toughness": parse_stat(text["toughness"]),
        "power_text": _stat_text(text["power"]),
        "toughness_text": _stat_text(text["toughness"]),
        "edition": card.set_name,
        "collector_number": card.collector_number,
        # Identifiers
        "scryfall_id": card.scryfall_id,
        "oracle_id": card.oracle_id,
        "multiverse_ids": card.multiverse_ids,
        "mtgo_id": card.mtgo_id,
        "mtgo_foil_id": card.mtgo_foil_id,
        "arena_id": card.arena_id,
        "tcgplayer_id": card.tcgplayer_id,
        "tcgplayer_etched_id": card.tcgplayer_etched_id,
        "cardmarket_id": card.cardmarket_id,
        # Gameplay
        "mana_cost": text["mana_cost"],
        "cmc": card.cmc,
        "oracle_text": text["oracle_text"],
        "flavor_text": text["flavor_text"],
        "type_line": type_line,
        "colors": card.colors,
        "color_identity": card.color_identity,
        "color_indicator": card.color_indicator,
        "keywords": card.keywords,
        "produced_mana": card.produced_mana,
        "loyalty": _stat_text(card.loyalty),
        "defense": _stat_text(card.defense),
        "hand_modifier": _stat_text(card.hand_modifier),
        "life_modifier": _stat_text(card.life_modifier),
        "legalities": card.legalities,
        "edhrec_rank": card.edhrec_rank,
        "penny_rank": card.penny_rank,
        # Printing
        "set_code": card.set_code,
        "set_id": card.set_id,
        "set_name": card.set_name,
        "set_type": card.set_type,
        "rarity": card.rarity,
        "released_at": _release_date(card),
        "lang": card.lang,
        "image_uris": image_uris,
        "layout": card.layout,
        "highres_image": bool(card.highres_image),
        "image_status": card.image_status,
        "border_color": card.border_color,
        "frame": card.frame,
        "frame_effects": card.frame_effects,
        "security_stamp": card.security_stamp,
        "watermark": card.watermark,
        "artist": card.artist,
        "artist_ids": card.artist_ids,
        "illustration_id": card.illustration_id,
        # Flags
        "reserved": bool(card.reserved),
        "foil": bool(card.foil),
        "nonfoil": bool(card.nonfoil),
        "oversized": bool(card.oversized),
        "promo": bool(card.promo),
        "reprint": bool(card.reprint),
        "variation": bool(card.variation),
        "digital": bool(card.digital),
        "full_art": bool(card.full_art),
        "textless": bool(card.textless),
        "booster": bool(card.booster),
        "story_spotlight": bool(card.story_spotlight),
        "game_changer": bool(card.game_changer),
        # Commerce and links
        "finishes": card.finishes,
        "games": card.games,
        "promo_types": card.promo_types,
        "prices": card.prices,
        "purchase_uris": card.purchase_uris,
        "related_uris": card.related_uris,
        "variation_of": card.variation_of,
        "card_back_id": card.card_back_id,
        "scryfall_uri": card.scryfall_uri,
        "uri": card.uri,
        "rulings_uri": card.rulings_uri,
        "prints_search_uri": card.prints_search_uri,
    }
