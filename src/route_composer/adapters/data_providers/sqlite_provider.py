"""
SQLite Transportation Provider - SQL to DataFrame adapter.

Reads locations and transportation legs from a SQLite database and
returns LocationSchema / TransportationSchema-compliant DataFrames.
Soft-deleted rows (deleted = 1) are never returned.
"""

import logging
import sqlite3
import threading
import uuid
from pathlib import Path
from typing import Iterable, Optional

import pandas as pd

from src.route_composer.exceptions import DuplicateResourceError, LocationInUseError
from src.route_composer.operating_days import format_operating_days
from src.route_composer.ports.transportation_data_provider import (
    TransportationDataProvider,
)
from src.route_composer.schemas.location import LocationDataFrame, LocationSchema
from src.route_composer.schemas.transportation import (
    TRANSPORTATION_TYPES,
    TransportationDataFrame,
    TransportationLeg,
    TransportationSchema,
    TransportationType,
)

logger = logging.getLogger(__name__)

LOCATION_COLUMNS = [
    "location_id",
    "name",
    "country",
    "city",
    "location_code",
    "display_order",
]
TRANSPORTATION_COLUMNS = [
    "leg_id",
    "origin_id",
    "destination_id",
    "transportation_type",
    "operating_days",
]

_TYPES_SQL = ", ".join(f"'{t}'" for t in TRANSPORTATION_TYPES)

SCHEMA_SQL = f"""
CREATE TABLE IF NOT EXISTS locations (
    id TEXT PRIMARY KEY,
    name TEXT NOT NULL,
    country TEXT NOT NULL,
    city TEXT NOT NULL,
    location_code TEXT NOT NULL UNIQUE COLLATE NOCASE,
    display_order INTEGER,
    deleted INTEGER NOT NULL DEFAULT 0
);

CREATE TABLE IF NOT EXISTS transportations (
    id TEXT PRIMARY KEY,
    origin_location_id TEXT NOT NULL REFERENCES locations(id),
    destination_location_id TEXT NOT NULL REFERENCES locations(id),
    transportation_type TEXT NOT NULL CHECK (transportation_type IN ({_TYPES_SQL})),
    operating_days TEXT NOT NULL,
    deleted INTEGER NOT NULL DEFAULT 0,
    CHECK (origin_location_id <> destination_location_id)
);

CREATE INDEX IF NOT EXISTS idx_origin_dest
    ON transportations (origin_location_id, destination_location_id);
CREATE INDEX IF NOT EXISTS idx_type_deleted
    ON transportations (transportation_type, deleted);
"""


class SQLiteTransportationProvider(TransportationDataProvider):
    """
    Data provider for a SQLite routes database.

    Reads the locations and transportations tables and exposes a small
    write path (create, update, soft delete) used for seeding and by the
    management collaborator. Every write notifies change listeners.

    The connection is shared across threads (API workers and the graph
    refresh thread) and guarded by a lock.

    Attributes:
        _db_path: Path to the SQLite database file.
        _conn: SQLite connection (lazy initialized).
    """

    def __init__(self, db_path: str = "data/routes.db", create: bool = False) -> None:
        """
        Initialize the SQLite data provider.

        Args:
            db_path: Path to SQLite database file.
            create: If True, create the file and tables when missing.
        """
        super().__init__()
        self._db_path = Path(db_path)
        self._create = create
        self._conn: Optional[sqlite3.Connection] = None
        self._conn_lock = threading.RLock()

        if create:
            self.create_schema()

    def _get_connection(self) -> sqlite3.Connection:
        """Get or create database connection."""
        if self._conn is None:
            if not self._create and not self._db_path.exists():
                raise FileNotFoundError(f"Database not found: {self._db_path}")
            self._db_path.parent.mkdir(parents=True, exist_ok=True)
            self._conn = sqlite3.connect(str(self._db_path), check_same_thread=False)
            self._conn.execute("PRAGMA foreign_keys = ON")
        return self._conn

    def create_schema(self) -> None:
        """Create tables and indexes if they do not exist."""
        with self._conn_lock:
            conn = self._get_connection()
            conn.executescript(SCHEMA_SQL)
            conn.commit()
        logger.debug("Schema ensured at %s", self._db_path)

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    def get_locations_df(self) -> LocationDataFrame:
        """
        Fetch live locations.

        Returns:
            DataFrame validated against LocationSchema.
        """
        query = """
            SELECT
                id AS location_id,
                name,
                country,
                city,
                location_code,
                display_order
            FROM locations
            WHERE deleted = 0
            ORDER BY display_order IS NULL, display_order, location_code
        """
        with self._conn_lock:
            df = pd.read_sql(query, self._get_connection())

        if df.empty:
            logger.warning("No locations found in %s", self._db_path)
            return pd.DataFrame(columns=LOCATION_COLUMNS)

        df["display_order"] = df["display_order"].astype(float)
        return LocationSchema.validate(df)

    def get_transportations_df(self) -> TransportationDataFrame:
        """
        Fetch live legs whose endpoints are live locations.

        Returns:
            DataFrame validated against TransportationSchema.
        """
        query = """
            SELECT
                t.id AS leg_id,
                t.origin_location_id AS origin_id,
                t.destination_location_id AS destination_id,
                t.transportation_type,
                t.operating_days
            FROM transportations t
            JOIN locations o ON o.id = t.origin_location_id AND o.deleted = 0
            JOIN locations d ON d.id = t.destination_location_id AND d.deleted = 0
            WHERE t.deleted = 0
        """
        with self._conn_lock:
            df = pd.read_sql(query, self._get_connection())

        if df.empty:
            logger.warning("No transportations found in %s", self._db_path)
            return pd.DataFrame(columns=TRANSPORTATION_COLUMNS)

        validated = TransportationSchema.validate(df)
        logger.info("Loaded %d transportations from SQLite", len(validated))
        return validated

    # -------------------------------------------------------------------------
    # Writes
    # -------------------------------------------------------------------------

    def add_location(
        self,
        name: str,
        country: str,
        city: str,
        location_code: str,
        display_order: Optional[int] = None,
        location_id: Optional[str] = None,
    ) -> str:
        """
        Insert a location.

        Returns:
            The location id (generated UUID if not given).

        Raises:
            DuplicateResourceError: If the code exists in any letter case.
            sqlite3.IntegrityError: If the id already exists.
        """
        location_id = location_id or str(uuid.uuid4())
        with self._conn_lock:
            conn = self._get_connection()
            existing = conn.execute(
                "SELECT 1 FROM locations WHERE location_code = ? COLLATE NOCASE",
                (location_code,),
            ).fetchone()
            if existing is not None:
                raise DuplicateResourceError("Location", "location_code", location_code)
            conn.execute(
                "INSERT INTO locations "
                "(id, name, country, city, location_code, display_order) "
                "VALUES (?, ?, ?, ?, ?, ?)",
                (location_id, name, country, city, location_code, display_order),
            )
            conn.commit()
        logger.info("Created location %s (%s)", location_code, location_id)
        self._notify_changed()
        return location_id

    def soft_delete_location(self, location_id: str) -> bool:
        """
        Mark a location deleted. Returns False if it was not live.

        Raises:
            LocationInUseError: If a live leg starts or ends at the location.
        """
        with self._conn_lock:
            conn = self._get_connection()
            row = conn.execute(
                "SELECT name FROM locations WHERE id = ? AND deleted = 0",
                (location_id,),
            ).fetchone()
            if row is None:
                return False
            in_use = conn.execute(
                "SELECT 1 FROM transportations WHERE deleted = 0 "
                "AND (origin_location_id = ? OR destination_location_id = ?) LIMIT 1",
                (location_id, location_id),
            ).fetchone()
            if in_use is not None:
                raise LocationInUseError(row[0])
            cursor = conn.execute(
                "UPDATE locations SET deleted = 1 WHERE id = ? AND deleted = 0",
                (location_id,),
            )
            conn.commit()
        if cursor.rowcount == 0:
            return False
        logger.info("Deleted location %s", location_id)
        self._notify_changed()
        return True

    def add_transportation(
        self,
        origin_id: str,
        destination_id: str,
        transportation_type: TransportationType | str,
        operating_days: Iterable[int],
        leg_id: Optional[str] = None,
    ) -> str:
        """
        Insert a leg after validating its write-time invariants.

        Returns:
            The leg id (generated UUID if not given).

        Raises:
            SelfLoopLegError: If origin equals destination.
            InvalidOperatingDaysError: If operating days are malformed.
            sqlite3.IntegrityError: If an endpoint does not exist.
        """
        leg = TransportationLeg(
            leg_id=leg_id or str(uuid.uuid4()),
            origin_id=origin_id,
            destination_id=destination_id,
            transportation_type=TransportationType(transportation_type),
            operating_days=list(operating_days),
        )
        with self._conn_lock:
            conn = self._get_connection()
            conn.execute(
                "INSERT INTO transportations "
                "(id, origin_location_id, destination_location_id, "
                "transportation_type, operating_days) VALUES (?, ?, ?, ?, ?)",
                (
                    leg.leg_id,
                    leg.origin_id,
                    leg.destination_id,
                    leg.transportation_type.value,
                    format_operating_days(leg.operating_days),
                ),
            )
            conn.commit()
        logger.info(
            "Created %s transportation %s -> %s",
            leg.transportation_type.value,
            leg.origin_id,
            leg.destination_id,
        )
        self._notify_changed()
        return leg.leg_id

    def update_transportation(
        self,
        leg_id: str,
        origin_id: str,
        destination_id: str,
        transportation_type: TransportationType | str,
        operating_days: Iterable[int],
    ) -> bool:
        """
        Replace a live leg's fields. Returns False if the leg is not live.

        Raises:
            SelfLoopLegError: If origin equals destination.
            InvalidOperatingDaysError: If operating days are malformed.
        """
        leg = TransportationLeg(
            leg_id=leg_id,
            origin_id=origin_id,
            destination_id=destination_id,
            transportation_type=TransportationType(transportation_type),
            operating_days=list(operating_days),
        )
        with self._conn_lock:
            conn = self._get_connection()
            cursor = conn.execute(
                "UPDATE transportations SET origin_location_id = ?, "
                "destination_location_id = ?, transportation_type = ?, "
                "operating_days = ? WHERE id = ? AND deleted = 0",
                (
                    leg.origin_id,
                    leg.destination_id,
                    leg.transportation_type.value,
                    format_operating_days(leg.operating_days),
                    leg.leg_id,
                ),
            )
            conn.commit()
        if cursor.rowcount == 0:
            return False
        logger.info("Updated transportation %s", leg_id)
        self._notify_changed()
        return True

    def soft_delete_transportation(self, leg_id: str) -> bool:
        """Mark a leg deleted. Returns False if it was not live."""
        with self._conn_lock:
            conn = self._get_connection()
            cursor = conn.execute(
                "UPDATE transportations SET deleted = 1 WHERE id = ? AND deleted = 0",
                (leg_id,),
            )
            conn.commit()
        if cursor.rowcount == 0:
            return False
        logger.info("Deleted transportation %s", leg_id)
        self._notify_changed()
        return True

    @property
    def name(self) -> str:
        """Human-readable provider name."""
        return "SQLite"

    @property
    def is_available(self) -> bool:
        """Check if database is accessible."""
        return self._create or self._db_path.exists()

    def close(self) -> None:
        """Close database connection."""
        with self._conn_lock:
            if self._conn is not None:
                self._conn.close()
                self._conn = None
                logger.debug("Database connection closed")
