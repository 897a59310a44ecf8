"""Tests for demographic breakdowns."""

from journey_analytics import (
    AnalyticsConfig,
    age_groups,
    gender_distribution,
    income_levels,
    occupation_kpis,
    summarize_demographics,
)
from journey_analytics.configs import CategoryRule, DefaultsPolicy
from journey_canon import empty_journey_frame
from tests.fixtures import create_journey_record, journeys_frame


class TestOccupationKpis:
    """Occupation buckets as whole-number percentages."""

    def test_buckets(self):
        """Unmatched occupations stay in the denominator."""
        df = journeys_frame(
            create_journey_record(occupation="Student"),
            create_journey_record(occupation="College student"),
            create_journey_record(occupation="Government Employee"),
            create_journey_record(occupation="Artist"),
        )
        result = occupation_kpis(df)

        assert result["label"].to_list() == [
            "Students",
            "Employees",
            "Homemakers",
            "Seniors",
        ]
        assert result["count"].to_list() == [2, 1, 0, 0]
        assert result["percentage"].to_list() == [50, 25, 0, 0]

    def test_configured_rules(self):
        """Rules from the configuration replace the defaults."""
        config = AnalyticsConfig(
            occupation_rules=[
                CategoryRule(category="employee", keywords=["engineer"])
            ]
        )
        df = journeys_frame(
            create_journey_record(occupation="Software Engineer")
        )
        result = occupation_kpis(df, config)
        assert result.filter(label="Employees")["count"].item() == 1

    def test_empty(self):
        """Empty input gives zero counts."""
        result = occupation_kpis(empty_journey_frame())
        assert result["count"].sum() == 0
        assert result["percentage"].sum() == 0


class TestAgeGroups:
    """Age bins."""

    def test_bins_and_default_age(self):
        """Missing and zero ages take the default age (25)."""
        df = journeys_frame(
            create_journey_record(age=22),
            create_journey_record(age=None),
            create_journey_record(age=0),
            create_journey_record(age=70),
        )
        result = age_groups(df)
        counts = dict(zip(result["age_group"], result["trips"], strict=True))

        assert counts["18-25"] == 3
        assert counts["65+"] == 1
        assert result.filter(age_group="18-25")["percentage"].item() == 75.0

    def test_minors_fall_in_no_bin(self):
        """Ages under 18 count toward the total only."""
        df = journeys_frame(
            create_journey_record(age=15),
            create_journey_record(age=40),
        )
        result = age_groups(df)
        assert result["trips"].sum() == 1
        assert result.filter(age_group="36-45")["percentage"].item() == 50.0


class TestIncomeLevels:
    """Income brackets split by coarse mode."""

    def test_brackets_by_mode(self):
        """Each journey lands in one bracket and one mode column."""
        df = journeys_frame(
            create_journey_record(income="Low Income", transport_mode="Bus"),
            create_journey_record(income="Low", transport_mode="Walking"),
            create_journey_record(
                income="High Income", transport_mode="Metro"
            ),
            create_journey_record(
                income="Very High Income", transport_mode="Car"
            ),
        )
        result = income_levels(df)
        rows = {
            row["income_range"]: row for row in result.iter_rows(named=True)
        }

        assert result["income_range"].to_list() == [
            "< ₹25k",
            "₹25-50k",
            "₹50-75k",
            "> ₹75k",
        ]
        assert rows["< ₹25k"]["bus"] == 1
        assert rows["< ₹25k"]["walk"] == 1
        assert rows["< ₹25k"]["percentage"] == 50.0
        assert rows["₹50-75k"]["metro"] == 1
        assert rows["> ₹75k"]["other"] == 1
        assert result["total"].sum() == 4

    def test_missing_values_use_defaults(self):
        """Missing income is middle bracket, missing mode is bus."""
        df = journeys_frame(
            create_journey_record(income=None, transport_mode=None)
        )
        row = income_levels(df).filter(income_range="₹25-50k").row(
            0, named=True
        )
        assert row["bus"] == 1
        assert row["total"] == 1


class TestGenderDistribution:
    """Gender buckets."""

    def test_female_not_counted_as_male(self):
        """'Female' and 'female' both land in the Female bucket."""
        df = journeys_frame(
            create_journey_record(gender="Female"),
            create_journey_record(gender="female"),
            create_journey_record(gender="Male"),
            create_journey_record(gender=None),
        )
        result = gender_distribution(df)
        counts = dict(zip(result["gender"], result["trips"], strict=True))

        assert counts == {"Male": 1, "Female": 2, "Other": 1}
        assert result["percentage"].sum() == 100.0

    def test_missing_gender_dropped_when_not_counting_defaults(self):
        """With count_defaulted off, missing genders are skipped."""
        config = AnalyticsConfig(
            defaults=DefaultsPolicy(count_defaulted=False)
        )
        df = journeys_frame(
            create_journey_record(gender="Male"),
            create_journey_record(gender=None),
        )
        result = gender_distribution(df, config)
        assert result.filter(gender="Male")["percentage"].item() == 100.0
        assert result.filter(gender="Other")["trips"].item() == 0


class TestSummarizeDemographics:
    """The demographics step."""

    def test_tables(self):
        """Returns the breakdowns plus the static gazetteer layers."""
        result = summarize_demographics(
            journeys_frame(create_journey_record())
        )
        assert set(result) == {
            "occupation_kpis",
            "age_groups",
            "income_levels",
            "gender_distribution",
            "equity_zones",
            "transport_stops",
        }
        assert len(result["equity_zones"]) == 3
        assert len(result["transport_stops"]) == 5
