"""Tests for the zone gazetteer, OD matrix and corridor analysis."""

import polars as pl
import pytest

from journey_analytics import (
    corridor_analysis,
    extract_zones,
    od_matrix,
    top_corridors,
)
from journey_analytics.od_matrix import od_matrix_to_dict, summarize_od_matrix
from journey_analytics.zones import ZoneGazetteer, default_gazetteer
from journey_canon import empty_journey_frame
from tests.fixtures import (
    INFOPARK,
    KOCHI,
    KOZHIKODE,
    TRIVANDRUM,
    create_journey_record,
    journeys_frame,
)

GAZETTEER_YAML = """
default_zone: {id: X, name: Elsewhere}
zones:
  - id: A
    name: Alpha
    aliases: [alpha]
    bounds: {min_lat: 1.0, max_lat: 2.0, min_lng: 1.0, max_lng: 2.0}
  - id: B
    name: Beta
    aliases: [beta]
"""


def kochi_to_trivandrum(**fields):
    """Kochi to Technopark journey."""
    return create_journey_record(
        start=KOCHI,
        start_address="Marine Drive, Kochi",
        end=TRIVANDRUM,
        end_address="Technopark, Thiruvananthapuram",
        **fields,
    )


def trivandrum_to_kochi(**fields):
    """Technopark to Kochi journey."""
    return create_journey_record(
        start=TRIVANDRUM,
        start_address="Technopark, Thiruvananthapuram",
        end=INFOPARK,
        end_address="Infopark, Kakkanad",
        **fields,
    )


class TestZoneGazetteer:
    """Zone lookup."""

    def test_address_alias_case_insensitive(self):
        """Aliases match anywhere in the address, ignoring case."""
        gazetteer = default_gazetteer()
        assert gazetteer.match_address("near MARINE DRIVE").id == "COK"
        assert gazetteer.match_address("Nowhere") is None
        assert gazetteer.match_address(None) is None

    def test_bounding_box(self):
        """Coordinates inside a box match its zone."""
        gazetteer = default_gazetteer()
        assert gazetteer.locate(*KOZHIKODE, None).id == "KZD"
        assert gazetteer.match_coordinates(0.0, 0.0) is None

    def test_address_wins_over_coordinates(self):
        """The address alias is tried before the bounding boxes."""
        gazetteer = default_gazetteer()
        zone = gazetteer.locate(*KOZHIKODE, "Thrissur town")
        assert zone.id == "TSR"

    def test_default_zone(self):
        """Unmatched locations fall in the default zone."""
        gazetteer = default_gazetteer()
        assert gazetteer.locate(None, None, "Bengaluru").id == "OTH"

    def test_unknown_zone_id(self):
        """Looking up an unknown id raises."""
        with pytest.raises(ValueError, match="Unknown zone id"):
            default_gazetteer().zone("ZZZ")

    def test_from_yaml(self, tmp_path):
        """A custom gazetteer file replaces the bundled zones."""
        path = tmp_path / "zones.yaml"
        path.write_text(GAZETTEER_YAML)
        gazetteer = ZoneGazetteer.from_yaml(path)

        assert gazetteer.locate(1.5, 1.5, None).id == "A"
        assert gazetteer.locate(None, None, "BETA st").id == "B"
        assert gazetteer.locate(5.0, 5.0, None).name == "Elsewhere"
        assert gazetteer.equity_zones().is_empty()


class TestOdMatrix:
    """Zone extraction and matrix construction."""

    def test_zones_in_first_seen_order(self):
        """Each journey adds its start zone then its end zone."""
        df = journeys_frame(kochi_to_trivandrum(), trivandrum_to_kochi())
        zones = extract_zones(df)
        assert zones["zone_id"].to_list() == ["COK", "TRV"]
        assert zones["name"].to_list() == ["Kochi", "Thiruvananthapuram"]
        assert zones["lat"][0] == pytest.approx(KOCHI[0])

    def test_square_matrix_with_zeros(self):
        """Every zone pair is present, origin-major."""
        df = journeys_frame(
            kochi_to_trivandrum(),
            kochi_to_trivandrum(),
            trivandrum_to_kochi(),
        )
        matrix = od_matrix(df)

        assert matrix.select("origin", "destination").rows() == [
            ("COK", "COK"),
            ("COK", "TRV"),
            ("TRV", "COK"),
            ("TRV", "TRV"),
        ]
        assert matrix["trips"].to_list() == [0, 2, 1, 0]
        assert od_matrix_to_dict(matrix) == {
            "COK": {"COK": 0, "TRV": 2},
            "TRV": {"COK": 1, "TRV": 0},
        }

    def test_journeys_without_both_locations_not_counted(self):
        """A journey missing its end location adds a zone but no trip."""
        df = journeys_frame(
            create_journey_record(end=None, end_address=None),
        )
        matrix = od_matrix(df)
        assert matrix["trips"].sum() == 0
        assert len(matrix) == 1

    def test_top_corridors(self):
        """Non-zero cells by trips descending, with zone names."""
        df = journeys_frame(
            trivandrum_to_kochi(),
            kochi_to_trivandrum(),
            kochi_to_trivandrum(),
        )
        corridors = top_corridors(od_matrix(df), default_gazetteer())

        assert corridors.select("origin", "destination", "trips").rows() == [
            ("COK", "TRV", 2),
            ("TRV", "COK", 1),
        ]
        assert corridors["origin_name"][0] == "Kochi"
        assert len(top_corridors(od_matrix(df), limit=1)) == 1

    def test_empty(self):
        """Empty input gives empty zones and matrix."""
        result = summarize_od_matrix(empty_journey_frame())
        assert result["zones"].is_empty()
        assert result["od_matrix"].is_empty()
        assert result["top_corridors"].is_empty()


class TestCorridorAnalysis:
    """Single corridor breakdown."""

    def test_both_directions(self):
        """Trips either way between the zones are included."""
        df = journeys_frame(
            kochi_to_trivandrum(transport_mode="Bus"),
            kochi_to_trivandrum(transport_mode="train"),
            trivandrum_to_kochi(transport_mode="Bus"),
            create_journey_record(transport_mode="Car"),
        )
        result = corridor_analysis(df, "COK", "TRV")

        assert result["mode_data"].rows() == [("Bus", 2), ("Train", 1)]
        assert len(result["peak_hours"]) == 24
        assert result["peak_hours"]["trips"][8] == 3
        daily = dict(result["daily_trips"].rows())
        assert daily["Mon"] == 3
        assert sum(daily.values()) == 3

    def test_unknown_zone(self):
        """Unknown zone ids raise ValueError."""
        df = journeys_frame(kochi_to_trivandrum())
        with pytest.raises(ValueError, match="Unknown zone id"):
            corridor_analysis(df, "COK", "NOPE")

    def test_empty_corridor(self):
        """A corridor without trips gives zeroed tables."""
        result = corridor_analysis(empty_journey_frame(), "COK", "TRV")
        assert result["mode_data"].is_empty()
        assert result["peak_hours"]["trips"].sum() == 0
        assert result["daily_trips"].schema == pl.Schema(
            {"day": pl.String, "trips": pl.Int64}
        )
