"""
Data provider adapters for locations and transportation legs.
"""

from src.route_composer.adapters.data_providers.dataframe_provider import (
    DataFrameTransportationProvider,
)
from src.route_composer.adapters.data_providers.sqlite_provider import (
    SQLiteTransportationProvider,
)

__all__ = [
    "DataFrameTransportationProvider",
    "SQLiteTransportationProvider",
]
