"""
Tests for DataFrameTransportationProvider.
"""

from unittest.mock import MagicMock

import pandas as pd
import pytest

from src.route_composer.adapters.data_providers.dataframe_provider import (
    DataFrameTransportationProvider,
)
from src.route_composer.exceptions import (
    DuplicateResourceError,
    LocationInUseError,
    SelfLoopLegError,
)

LEGS = [("f1", "loc-ist", "loc-adb", "FLIGHT", "1,3,5")]


@pytest.fixture
def provider(locations_df, legs_df) -> DataFrameTransportationProvider:
    return DataFrameTransportationProvider(locations_df, legs_df(LEGS))


class TestDataFrameProvider:
    """Reads, writes and change notification."""

    def test_empty_provider(self):
        provider = DataFrameTransportationProvider()

        assert provider.get_locations_df().empty
        assert provider.get_transportations_df().empty

    def test_reads_are_copies(self, provider):
        provider.get_transportations_df().loc[0, "operating_days"] = "7"

        assert provider.get_transportations_df().loc[0, "operating_days"] == "1,3,5"

    def test_missing_display_order_column_added(self, locations_df):
        provider = DataFrameTransportationProvider(
            locations_df.drop(columns=["display_order"])
        )

        assert provider.get_locations_df()["display_order"].isna().all()

    def test_add_transportation_formats_days(self, provider):
        leg_id = provider.add_transportation("loc-saw", "loc-adb", "FLIGHT", {7, 2})

        df = provider.get_transportations_df().set_index("leg_id")
        assert df.loc[leg_id, "operating_days"] == "2,7"

    def test_add_self_loop_rejected(self, provider):
        with pytest.raises(SelfLoopLegError):
            provider.add_transportation("loc-ist", "loc-ist", "BUS", [1])

    def test_update_and_remove(self, provider):
        assert provider.update_transportation("f1", "loc-ist", "loc-adb", "FLIGHT", [2])
        assert provider.get_transportations_df().loc[0, "operating_days"] == "2"

        assert provider.remove_transportation("f1") is True
        assert provider.remove_transportation("f1") is False
        assert provider.get_transportations_df().empty

    def test_unknown_ids(self, provider):
        updated = provider.update_transportation(
            "nope", "loc-ist", "loc-adb", "FLIGHT", [1]
        )

        assert updated is False
        assert provider.remove_location("loc-nowhere") is False

    def test_add_location(self, provider):
        location_id = provider.add_location(
            "Izmir Bus Station", "Turkey", "Izmir", "IZB", display_order=9
        )

        df = provider.get_locations_df().set_index("location_id")
        assert df.loc[location_id, "location_code"] == "IZB"
        assert df.loc[location_id, "display_order"] == 9.0

    def test_writes_notify_listeners(self, provider):
        listener = MagicMock()
        provider.add_change_listener(listener)

        provider.add_location("Izmir Bus Station", "Turkey", "Izmir", "IZB")
        provider.add_transportation("loc-saw", "loc-adb", "FLIGHT", [1])
        provider.remove_location("loc-konak")

        assert listener.call_count == 3

    def test_read_count(self, provider):
        provider.get_transportations_df()
        provider.get_transportations_df()

        assert provider.read_count == 2
        assert isinstance(provider.get_locations_df(), pd.DataFrame)

    def test_duplicate_code_rejected_ignoring_case(self, provider):
        listener = MagicMock()
        provider.add_change_listener(listener)

        with pytest.raises(DuplicateResourceError, match="location_code: 'ist'"):
            provider.add_location("Other", "Turkey", "Istanbul", "ist")

        assert len(provider.get_locations_df()) == 8
        listener.assert_not_called()

    def test_referenced_location_cannot_be_removed(self, provider):
        with pytest.raises(LocationInUseError, match="Cannot delete location"):
            provider.remove_location("loc-adb")

        assert "loc-adb" in provider.get_locations_df()["location_id"].tolist()

    def test_location_removable_once_its_legs_are_gone(self, provider):
        provider.remove_transportation("f1")

        assert provider.remove_location("loc-adb") is True
        assert "loc-adb" not in provider.get_locations_df()["location_id"].tolist()
