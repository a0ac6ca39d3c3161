"""Tests for mapping Scryfall card objects to card row fields."""

from datetime import date

import pytest

from cardkeeper.models.scryfall_card import ScryfallCard
from cardkeeper.parsers.scryfall import map_card
from cardkeeper.services.errors import CardMappingError


@pytest.fixture
def transform_card(make_card) -> dict:
    """Double-faced card shaped like Scryfall's transform layout."""
    card = make_card(
        id="dfc-1",
        name="Delver of Secrets // Insectile Aberration",
        layout="transform",
        type_line="Creature — Human Wizard // Creature — Human Insect",
        set="isd",
        set_name="Innistrad",
        collector_number="51",
        card_faces=[
            {
                "object": "card_face",
                "name": "Delver of Secrets",
                "mana_cost": "{U}",
                "type_line": "Creature — Human Wizard",
                "oracle_text": "At the beginning of your upkeep, look at the top card.",
                "power": "1",
                "toughness": "1",
                "image_uris": {"normal": "https://cards.scryfall.io/normal/front/delver.jpg"},
            },
            {
                "object": "card_face",
                "name": "Insectile Aberration",
                "mana_cost": "",
                "type_line": "Creature — Human Insect",
                "oracle_text": "Flying",
                "power": "3",
                "toughness": "2",
                "image_uris": {"normal": "https://cards.scryfall.io/normal/back/delver.jpg"},
            },
        ],
    )
    for key in ("mana_cost", "oracle_text", "image_uris"):
        del card[key]
    return card


class TestMapCard:
    def test_maps_legacy_columns(self, make_card) -> None:
        """Legacy card columns are filled from the Scryfall record."""
        fields = map_card(make_card())

        assert fields["title"] == "Lightning Bolt"
        assert fields["cost"] == "{R}"
        assert fields["description"] == "Lightning Bolt deals 3 damage to any target."
        assert fields["type"] == "Instant"
        assert fields["subtype"] is None
        assert fields["edition"] == "Double Masters"
        assert fields["collector_number"] == "141"
        assert fields["image_url"] == "https://cards.scryfall.io/normal/front/bolt.jpg"
        assert fields["image"] == fields["image_url"]

    def test_maps_scryfall_columns(self, make_card) -> None:
        fields = map_card(make_card())

        assert fields["scryfall_id"] == "e3285e6b-3e79-4d7c-bf96-d920f973b80d"
        assert fields["set_code"] == "2xm"
        assert fields["set_name"] == "Double Masters"
        assert fields["released_at"] == date(2020, 8, 7)
        assert fields["legalities"] == {"modern": "legal", "standard": "not_legal"}
        assert fields["prices"] == {"usd": "1.50"}
        assert fields["foil"] is True
        assert fields["reprint"] is True

    def test_absent_flags_use_defaults(self, make_card) -> None:
        """Missing booleans are false except nonfoil and booster."""
        card = make_card()
        for key in ("foil", "nonfoil", "reprint"):
            del card[key]

        fields = map_card(card)

        assert fields["foil"] is False
        assert fields["reserved"] is False
        assert fields["nonfoil"] is True
        assert fields["booster"] is True

    def test_null_values_use_defaults(self, make_card) -> None:
        """JSON null is treated like a missing key."""
        fields = map_card(make_card(lang=None, nonfoil=None))

        assert fields["lang"] == "en"
        assert fields["nonfoil"] is True

    def test_type_line_decomposition(self, make_card) -> None:
        """Main type and subtype come from either side of the em-dash."""
        fields = map_card(make_card(type_line="Legendary Creature — Elf Druid"))

        assert fields["type"] == "Legendary Creature"
        assert fields["subtype"] == "Elf Druid"
        assert fields["type_line"] == "Legendary Creature — Elf Druid"

    def test_numeric_and_symbolic_stats(self, make_card) -> None:
        """Integer stats are parsed; the text form is always kept."""
        fields = map_card(make_card(power="*", toughness="4"))

        assert fields["power"] is None
        assert fields["power_text"] == "*"
        assert fields["toughness"] == 4
        assert fields["toughness_text"] == "4"

    def test_stats_absent_for_noncreatures(self, make_card) -> None:
        fields = map_card(make_card())

        assert fields["power"] is None
        assert fields["power_text"] is None

    def test_loyalty_kept_as_text(self, make_card) -> None:
        fields = map_card(make_card(type_line="Legendary Planeswalker — Jace", loyalty="3"))

        assert fields["loyalty"] == "3"


class TestDoubleFacedFallback:
    def test_face_fills_missing_top_level_fields(self, transform_card: dict) -> None:
        """Absent top-level fields come from the front face."""
        fields = map_card(transform_card)

        assert fields["cost"] == "{U}"
        assert fields["mana_cost"] == "{U}"
        assert fields["description"].startswith("At the beginning of your upkeep")
        assert fields["power"] == 1
        assert fields["toughness"] == 1

    def test_top_level_value_wins(self, transform_card: dict) -> None:
        """A present top-level type line is not replaced by the face's."""
        fields = map_card(transform_card)

        assert fields["type_line"] == "Creature — Human Wizard // Creature — Human Insect"
        assert fields["type"] == "Creature"

    def test_empty_string_counts_as_absent(self, transform_card: dict) -> None:
        """An empty top-level value falls back to the face."""
        transform_card["mana_cost"] = ""

        assert map_card(transform_card)["mana_cost"] == "{U}"

    def test_front_face_image(self, transform_card: dict) -> None:
        """Cards without top-level images use the front face image."""
        fields = map_card(transform_card)

        assert fields["image_url"] == "https://cards.scryfall.io/normal/front/delver.jpg"
        assert fields["image_uris"] == {
            "normal": "https://cards.scryfall.io/normal/front/delver.jpg"
        }

    def test_type_line_from_face_when_top_level_missing(self, transform_card: dict) -> None:
        del transform_card["type_line"]

        fields = map_card(transform_card)

        assert fields["type"] == "Creature"
        assert fields["subtype"] == "Human Wizard"


class TestMappingErrors:
    def test_missing_id(self, make_card) -> None:
        card = make_card()
        del card["id"]

        with pytest.raises(CardMappingError, match="no Scryfall id") as exc_info:
            map_card(card)

        assert exc_info.value.card_id == "unknown"
        assert exc_info.value.card_name == "Lightning Bolt"

    def test_missing_name(self, make_card) -> None:
        with pytest.raises(CardMappingError, match="no name"):
            map_card(make_card(name=None))

    def test_no_type_line(self, make_card) -> None:
        """A card without any type line cannot be stored."""
        card = make_card()
        del card["type_line"]

        with pytest.raises(CardMappingError, match="no type line"):
            map_card(card)

    def test_wrong_text_type(self, make_card) -> None:
        with pytest.raises(CardMappingError, match="'type_line' must be a string"):
            map_card(make_card(type_line=42))

    def test_wrong_integer_type(self, make_card) -> None:
        with pytest.raises(CardMappingError, match="'mtgo_id' must be an integer, got str"):
            map_card(make_card(mtgo_id="abc"))

    def test_numeric_stats_accepted(self, make_card) -> None:
        fields = map_card(make_card(power=2, toughness="2"))

        assert fields["power"] == 2
        assert fields["power_text"] == "2"

    def test_wrong_face_field_type(self, make_card) -> None:
        card = make_card(card_faces=[{"name": "Front", "image_uris": "https://example.com"}])

        with pytest.raises(CardMappingError, match="'card_faces.image_uris' must be an object"):
            map_card(card)

    def test_invalid_release_date(self, make_card) -> None:
        with pytest.raises(CardMappingError, match="Invalid released_at"):
            map_card(make_card(released_at="not-a-date"))

    def test_faces_not_a_list(self, make_card) -> None:
        with pytest.raises(CardMappingError, match="card_faces"):
            map_card(make_card(card_faces={"name": "Front"}))

    def test_not_an_object(self) -> None:
        with pytest.raises(CardMappingError) as exc_info:
            map_card(["not", "a", "card"])

        assert exc_info.value.card_id == "unknown"
        assert exc_info.value.card_name == "unknown"


class TestScryfallCard:
    def test_from_dict_aliases(self, make_card) -> None:
        """Scryfall's id and set keys map to scryfall_id and set_code."""
        card = ScryfallCard.from_dict(make_card())

        assert card.scryfall_id == "e3285e6b-3e79-4d7c-bf96-d920f973b80d"
        assert card.set_code == "2xm"
        assert card.front_face is None

    def test_front_face(self, transform_card: dict) -> None:
        card = ScryfallCard.from_dict(transform_card)

        assert len(card.card_faces) == 2
        assert card.front_face.name == "Delver of Secrets"
