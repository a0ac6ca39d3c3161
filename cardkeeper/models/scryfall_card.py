"""
Typed view of one raw Scryfall card object.

Scryfall card objects carry 60+ optional keys. Every key the importer uses is
declared here with the default applied when the key is missing or null, so
the same defaults hold for every record of a bulk file.

Card objects: https://scryfall.com/docs/api/cards
"""

from dataclasses import dataclass, field, fields
from typing import Any

from cardkeeper.services.errors import CardMappingError

# Keys whose Scryfall name differs from the attribute name
_ALIASES = {"set_code": "set", "scryfall_id": "id"}

# Accepted JSON types per kind of key, with the wording used in error reasons
_KINDS: dict[str, tuple[tuple[type, ...], str]] = {
    "text": ((str,), "a string"),
    "integer": ((int,), "an integer"),
    "number": ((int, float), "a number"),
    "stat": ((str, int), "a string or integer"),
    "flag": ((bool,), "a boolean"),
    "list": ((list,), "a list"),
    "object": ((dict,), "an object"),
}

_INTEGER_FIELDS = frozenset(
    {
        "mtgo_id",
        "mtgo_foil_id",
        "arena_id",
        "tcgplayer_id",
        "tcgplayer_etched_id",
        "cardmarket_id",
        "edhrec_rank",
        "penny_rank",
    }
)
_STAT_FIELDS = frozenset(
    {"power", "toughness", "loyalty", "defense", "hand_modifier", "life_modifier"}
)
_LIST_FIELDS = frozenset(
    {
        "multiverse_ids",
        "colors",
        "color_identity",
        "color_indicator",
        "keywords",
        "produced_mana",
        "frame_effects",
        "artist_ids",
        "finishes",
        "games",
        "promo_types",
    }
)
_OBJECT_FIELDS = frozenset({"legalities", "image_uris", "prices", "purchase_uris", "related_uris"})


def _kind_of(name: str, default: Any) -> str:
    if name in _INTEGER_FIELDS:
        return "integer"
    if name == "cmc":
        return "number"
    if name in _STAT_FIELDS:
        return "stat"
    if name in _LIST_FIELDS:
        return "list"
    if name in _OBJECT_FIELDS:
        return "object"
    if isinstance(default, bool):
        return "flag"
    return "text"


def _require(card_id: str, card_name: str, key: str, value: Any, kind: str) -> None:
    if value is None:
        return
    accepted, label = _KINDS[kind]
    # JSON true/false decode to bool, which Python also counts as int
    if isinstance(value, accepted) and (kind == "flag" or not isinstance(value, bool)):
        return
    raise CardMappingError(
        card_id, card_name, f"Field '{key}' must be {label}, got {type(value).__name__}"
    )


@dataclass(frozen=True, slots=True)
class CardFace:
    """One face of a multi-faced card (transform, modal DFC, split, flip, adventure)."""

    name: str | None = None
    mana_cost: str | None = None
    oracle_text: str | None = None
    type_line: str | None = None
    power: str | None = None
    toughness: str | None = None
    flavor_text: str | None = None
    image_uris: dict[str, str] | None = None

    @classmethod
    def from_dict(cls, data: Any, card_id: str, card_name: str) -> "CardFace":
        if not isinstance(data, dict):
            raise CardMappingError(card_id, card_name, "Card face is not an object")
        for f in fields(cls):
            _require(
                card_id,
                card_name,
                f"card_faces.{f.name}",
                data.get(f.name),
                _kind_of(f.name, f.default),
            )
        return cls(**{f.name: data.get(f.name) for f in fields(cls)})


@dataclass(frozen=True, slots=True)
class ScryfallCard:
    """
    One card printing as it appears in a Scryfall bulk file.

    Only ``scryfall_id`` and ``name`` are required. Booleans default to False
    except ``nonfoil`` and ``booster``, which Scryfall treats as true unless
    stated otherwise.
    """

    scryfall_id: str
    name: str
    object: str = "card"
    layout: str | None = None

    # Identifiers
    oracle_id: str | None = None
    multiverse_ids: list[int] | None = None
    mtgo_id: int | None = None
    mtgo_foil_id: int | None = None
    arena_id: int | None = None
    tcgplayer_id: int | None = None
    tcgplayer_etched_id: int | None = None
    cardmarket_id: int | None = None

    # Gameplay
    mana_cost: str | None = None
    cmc: float | None = None
    oracle_text: str | None = None
    flavor_text: str | None = None
    type_line: str | None = None
    power: str | None = None
    toughness: str | None = None
    loyalty: str | None = None
    defense: str | None = None
    hand_modifier: str | None = None
    life_modifier: str | None = None
    colors: list[str] | None = None
    color_identity: list[str] | None = None
    color_indicator: list[str] | None = None
    keywords: list[str] | None = None
    produced_mana: list[str] | None = None
    legalities: dict[str, str] | None = None
    edhrec_rank: int | None = None
    penny_rank: int | None = None

    # Printing
    set_code: str | None = None
    set_id: str | None = None
    set_name: str | None = None
    set_type: str | None = None
    collector_number: str | None = None
    rarity: str | None = None
    released_at: str | None = None
    lang: str = "en"
    image_uris: dict[str, str] | None = None
    highres_image: bool = False
    image_status: str | None = None
    border_color: str | None = None
    frame: str | None = None
    frame_effects: list[str] | None = None
    security_stamp: str | None = None
    watermark: str | None = None
    artist: str | None = None
    artist_ids: list[str] | None = None
    illustration_id: str | None = None

    # Flags
    reserved: bool = False
    foil: bool = False
    nonfoil: bool = True
    oversized: bool = False
    promo: bool = False
    reprint: bool = False
    variation: bool = False
    digital: bool = False
    full_art: bool = False
    textless: bool = False
    booster: bool = True
    story_spotlight: bool = False
    game_changer: bool = False

    # Commerce and links
    finishes: list[str] | None = None
    games: list[str] | None = None
    promo_types: list[str] | None = None
    prices: dict[str, str | None] | None = None
    purchase_uris: dict[str, str] | None = None
    related_uris: dict[str, str] | None = None
    variation_of: str | None = None
    card_back_id: str | None = None
    scryfall_uri: str | None = None
    uri: str | None = None
    rulings_uri: str | None = None
    prints_search_uri: str | None = None

    card_faces: tuple[CardFace, ...] = field(default_factory=tuple)

    @property
    def front_face(self) -> CardFace | None:
        """First face of a multi-faced card, None for single-faced cards."""
        return self.card_faces[0] if self.card_faces else None

    @classmethod
    def from_dict(cls, data: Any) -> "ScryfallCard":
        """
        Build a ScryfallCard from a decoded JSON object.

        Raises:
            CardMappingError: If the record is not an object, lacks an id or
                name, or carries a field of the wrong JSON type
        """
        if not isinstance(data, dict):
            raise CardMappingError("unknown", "unknown", "Record is not a JSON object")

        card_id = data.get("id")
        card_name = data.get("name")
        id_label = str(card_id) if card_id else "unknown"
        name_label = str(card_name) if card_name else "unknown"

        if not card_id or not isinstance(card_id, str):
            raise CardMappingError(id_label, name_label, "Card has no Scryfall id")
        if not card_name or not isinstance(card_name, str):
            raise CardMappingError(id_label, name_label, "Card has no name")

        raw_faces = data.get("card_faces")
        if raw_faces is not None and not isinstance(raw_faces, list):
            raise CardMappingError(card_id, card_name, "Field 'card_faces' must be a list")
        faces = tuple(CardFace.from_dict(face, card_id, card_name) for face in raw_faces or [])

        values: dict[str, Any] = {}
        for f in fields(cls):
            if f.name == "card_faces":
                continue
            key = _ALIASES.get(f.name, f.name)
            value = data.get(key)
            _require(card_id, card_name, key, value, _kind_of(f.name, f.default))
            # Null in the source means "use the documented default"
            if value is not None:
                values[f.name] = value

        return cls(card_faces=faces, **values)
