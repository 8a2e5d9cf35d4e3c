from __future__ import annotations

import asyncio
import sqlite3
import json
import logging
from datetime import date, datetime
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

from chaletbook.exceptions import DatabaseError
from chaletbook.models import Blockage, Booking, DayStatus, PropertySettings, Room
from chaletbook.services.availability_service import resolve_room_status

logger = logging.getLogger(__name__)

SETTINGS_KEYS = ("prices", "bulk_prices", "christmas_periods")


class SQLiteBookingAdapter:
    """SQLite storage for rooms, price lists, bookings and blockages."""

    def __init__(self, db_url: str):
        # Format: sqlite:///path
        if db_url.startswith("sqlite:///"):
            self.db_path = db_url.replace("sqlite:///", "")
        else:
            self.db_path = db_url

        Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)
        logger.info(f"SQLiteBookingAdapter initialised. Database path: {self.db_path}")

    def _conn(self) -> sqlite3.Connection:
        try:
            conn = sqlite3.connect(self.db_path)
            conn.row_factory = sqlite3.Row
            return conn
        except sqlite3.Error as e:
            logger.error(f"Database connection error: {e}")
            raise DatabaseError(f"Could not connect to the database: {e}") from e

    # ------------------------------------
    # Lifecycle
    # ------------------------------------
    def init(self) -> None:
        logger.info("Checking/creating database tables...")
        try:
            with self._conn() as conn:
                cur = conn.cursor()

                cur.execute(
                    """
                    CREATE TABLE IF NOT EXISTS rooms (
                        id TEXT PRIMARY KEY,
                        name TEXT,
                        beds INTEGER NOT NULL,
                        type TEXT NOT NULL
                    )
                    """
                )

                # Price lists and other reference data, stored as JSON documents
                cur.execute(
                    """
                    CREATE TABLE IF NOT EXISTS settings (
                        key TEXT PRIMARY KEY,
                        value TEXT NOT NULL
                    )
                    """
                )

                cur.execute(
                    """
                    CREATE TABLE IF NOT EXISTS bookings (
                        id TEXT PRIMARY KEY,
                        status TEXT NOT NULL DEFAULT 'confirmed',
                        start_date TEXT NOT NULL,
                        end_date TEXT NOT NULL,
                        guests TEXT NOT NULL,
                        session_id TEXT,
                        email TEXT,
                        total_price INTEGER,
                        is_bulk INTEGER NOT NULL DEFAULT 0,
                        created_at DATETIME DEFAULT CURRENT_TIMESTAMP
                    )
                    """
                )

                # One row per booked room; dates/guests set only when they differ from the booking
                cur.execute(
                    """
                    CREATE TABLE IF NOT EXISTS booking_rooms (
                        booking_id TEXT NOT NULL,
                        room_id TEXT NOT NULL,
                        start_date TEXT,
                        end_date TEXT,
                        guests TEXT,
                        PRIMARY KEY (booking_id, room_id),
                        FOREIGN KEY(booking_id) REFERENCES bookings(id)
                    )
                    """
                )

                cur.execute(
                    """
                    CREATE TABLE IF NOT EXISTS blockages (
                        id TEXT PRIMARY KEY,
                        start_date TEXT NOT NULL,
                        end_date TEXT NOT NULL,
                        rooms TEXT NOT NULL,
                        reason TEXT
                    )
                    """
                )
                conn.commit()
                logger.info("Table initialisation completed.")
        except sqlite3.Error as e:
            logger.error(f"SQLite error while creating tables: {e}")
            raise DatabaseError(f"Table initialisation failed: {e}") from e

    # ------------------------------------
    # Rooms & settings
    # ------------------------------------
    def get_rooms(self) -> List[Room]:
        try:
            with self._conn() as conn:
                rows = conn.execute("SELECT * FROM rooms ORDER BY id").fetchall()
                return [Room.from_dict(dict(r)) for r in rows]
        except sqlite3.Error as e:
            logger.error(f"Error while listing rooms: {e}")
            raise DatabaseError(f"Rooms could not be listed: {e}") from e

    def save_settings(self, settings: PropertySettings) -> PropertySettings:
        """Replaces rooms and price lists in one transaction."""
        logger.info(f"Saving settings for {len(settings.rooms)} rooms")
        data = settings.to_dict()
        try:
            with self._conn() as conn:
                cur = conn.cursor()
                cur.execute("DELETE FROM rooms")
                cur.executemany(
                    "INSERT INTO rooms (id, name, beds, type) VALUES (?, ?, ?, ?)",
                    [(r.id, r.name, r.beds, r.tier.value) for r in settings.rooms],
                )
                for key in SETTINGS_KEYS:
                    if data.get(key) is None:
                        cur.execute("DELETE FROM settings WHERE key = ?", (key,))
                    else:
                        cur.execute(
                            "INSERT OR REPLACE INTO settings (key, value) VALUES (?, ?)",
                            (key, json.dumps(data[key])),
                        )
                conn.commit()
                return settings
        except sqlite3.Error as e:
            logger.error(f"Settings save error: {e}")
            raise DatabaseError(f"Settings could not be saved: {e}") from e

    def load_settings(self) -> PropertySettings:
        try:
            with self._conn() as conn:
                rows = conn.execute("SELECT key, value FROM settings").fetchall()
        except sqlite3.Error as e:
            logger.error(f"Error while reading settings: {e}")
            raise DatabaseError(f"Settings could not be read: {e}") from e

        data: Dict[str, Any] = {row["key"]: json.loads(row["value"]) for row in rows}
        data["rooms"] = [r.to_dict() for r in self.get_rooms()]
        # Price lists are parsed here so that a broken configuration fails on load
        return PropertySettings.from_dict(data)

    # ------------------------------------
    # Bookings
    # ------------------------------------
    def create_booking(self, booking: Booking) -> Booking:
        logger.info(f"New booking {booking.id} ({booking.status.value}) for rooms {list(booking.rooms)}")
        created_at = booking.created_at or datetime.now()
        try:
            with self._conn() as conn:
                cur = conn.cursor()
                cur.execute(
                    """
                    INSERT INTO bookings
                        (id, status, start_date, end_date, guests, session_id, email, total_price, is_bulk, created_at)
                    VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        booking.id,
                        booking.status.value,
                        booking.date_range.to_dict()["start_date"],
                        booking.date_range.to_dict()["end_date"],
                        json.dumps(booking.guests.to_dict()),
                        booking.session_id,
                        booking.email,
                        booking.total_price,
                        1 if booking.is_bulk else 0,
                        created_at.isoformat(),
                    ),
                )
                for room_id in booking.rooms:
                    allocation = booking.per_room.get(room_id)
                    span = allocation.date_range.to_dict() if allocation and allocation.date_range else {}
                    guests = allocation.guests.to_dict() if allocation and allocation.guests else None
                    cur.execute(
                        "INSERT INTO booking_rooms (booking_id, room_id, start_date, end_date, guests) "
                        "VALUES (?, ?, ?, ?, ?)",
                        (
                            booking.id,
                            room_id,
                            span.get("start_date"),
                            span.get("end_date"),
                            json.dumps(guests) if guests else None,
                        ),
                    )
                conn.commit()
                logger.info(f"Booking {booking.id} stored.")
                return booking
        except sqlite3.IntegrityError as e:
            logger.warning(f"Booking already exists: {booking.id}")
            raise DatabaseError(f"Booking already exists: {e}") from e
        except sqlite3.Error as e:
            logger.error(f"Booking create error: {e}")
            raise DatabaseError(f"Booking could not be stored: {e}") from e

    def delete_booking(self, booking_id: str) -> bool:
        logger.info(f"Deleting booking {booking_id}")
        try:
            with self._conn() as conn:
                cur = conn.cursor()
                cur.execute("DELETE FROM booking_rooms WHERE booking_id = ?", (booking_id,))
                cur.execute("DELETE FROM bookings WHERE id = ?", (booking_id,))
                conn.commit()
                return cur.rowcount > 0
        except sqlite3.Error as e:
            logger.error(f"Booking delete error: {e}")
            raise DatabaseError(f"Booking could not be deleted: {e}") from e

    def delete_session_proposals(self, session_id: str) -> int:
        """Releases the holds a booking session placed."""
        try:
            with self._conn() as conn:
                cur = conn.cursor()
                cur.execute(
                    "DELETE FROM booking_rooms WHERE booking_id IN "
                    "(SELECT id FROM bookings WHERE status = 'proposed' AND session_id = ?)",
                    (session_id,),
                )
                cur.execute("DELETE FROM bookings WHERE status = 'proposed' AND session_id = ?", (session_id,))
                conn.commit()
                return cur.rowcount
        except sqlite3.Error as e:
            logger.error(f"Error while releasing proposals of session {session_id}: {e}")
            raise DatabaseError(f"Proposals could not be released: {e}") from e

    def get_booking(self, booking_id: str) -> Optional[Booking]:
        found = self._load_bookings("WHERE id = ?", (booking_id,))
        return found[0] if found else None

    def get_bookings(self, room_ids: Optional[Iterable[str]] = None) -> List[Booking]:
        if room_ids is None:
            return self._load_bookings()
        wanted = list(room_ids)
        if not wanted:
            return []
        placeholders = ", ".join("?" * len(wanted))
        return self._load_bookings(
            f"WHERE id IN (SELECT booking_id FROM booking_rooms WHERE room_id IN ({placeholders}))",
            tuple(wanted),
        )

    def _load_bookings(self, where: str = "", params: tuple = ()) -> List[Booking]:
        try:
            with self._conn() as conn:
                rows = conn.execute(f"SELECT * FROM bookings {where} ORDER BY start_date", params).fetchall()
                booking_ids = [row["id"] for row in rows]
                room_rows = []
                if booking_ids:
                    placeholders = ", ".join("?" * len(booking_ids))
                    room_rows = conn.execute(
                        f"SELECT * FROM booking_rooms WHERE booking_id IN ({placeholders}) ORDER BY rowid",
                        booking_ids,
                    ).fetchall()
        except sqlite3.Error as e:
            logger.error(f"Error while listing bookings: {e}")
            raise DatabaseError(f"Bookings could not be listed: {e}") from e

        rooms_by_booking: Dict[str, List[sqlite3.Row]] = {}
        for room_row in room_rows:
            rooms_by_booking.setdefault(room_row["booking_id"], []).append(room_row)
        return [self._row_to_booking(row, rooms_by_booking.get(row["id"], [])) for row in rows]

    @staticmethod
    def _row_to_booking(row: sqlite3.Row, room_rows: List[sqlite3.Row]) -> Booking:
        data = dict(row)
        data.update(json.loads(data.pop("guests")))
        data["is_bulk"] = bool(data["is_bulk"])
        data["rooms"] = [r["room_id"] for r in room_rows]
        per_room = {}
        for r in room_rows:
            override: Dict[str, Any] = {}
            if r["start_date"] and r["end_date"]:
                override["start_date"] = r["start_date"]
                override["end_date"] = r["end_date"]
            if r["guests"]:
                override["guests"] = json.loads(r["guests"])
            if override:
                per_room[r["room_id"]] = override
        data["per_room"] = per_room
        return Booking.from_dict(data)

    # ------------------------------------
    # Blockages
    # ------------------------------------
    def create_blockage(self, blockage: Blockage) -> Blockage:
        logger.info(f"New blockage {blockage.id}: {blockage.start} .. {blockage.end}")
        data = blockage.to_dict()
        try:
            with self._conn() as conn:
                conn.execute(
                    "INSERT INTO blockages (id, start_date, end_date, rooms, reason) VALUES (?, ?, ?, ?, ?)",
                    (data["id"], data["start_date"], data["end_date"], json.dumps(data["rooms"]), data["reason"]),
                )
                conn.commit()
                return blockage
        except sqlite3.Error as e:
            logger.error(f"Blockage create error: {e}")
            raise DatabaseError(f"Blockage could not be stored: {e}") from e

    def delete_blockage(self, blockage_id: str) -> bool:
        try:
            with self._conn() as conn:
                cur = conn.cursor()
                cur.execute("DELETE FROM blockages WHERE id = ?", (blockage_id,))
                conn.commit()
                return cur.rowcount > 0
        except sqlite3.Error as e:
            logger.error(f"Blockage delete error: {e}")
            raise DatabaseError(f"Blockage could not be deleted: {e}") from e

    def get_blockages(self) -> List[Blockage]:
        try:
            with self._conn() as conn:
                rows = conn.execute("SELECT * FROM blockages ORDER BY start_date").fetchall()
        except sqlite3.Error as e:
            logger.error(f"Error while listing blockages: {e}")
            raise DatabaseError(f"Blockages could not be listed: {e}") from e

        blockages = []
        for row in rows:
            data = dict(row)
            data["rooms"] = json.loads(data["rooms"])
            blockages.append(Blockage.from_dict(data))
        return blockages

    # ------------------------------------
    # BookingRepository
    # ------------------------------------
    async def list_rooms(self) -> List[Room]:
        return await asyncio.to_thread(self.get_rooms)

    async def get_settings(self) -> PropertySettings:
        return await asyncio.to_thread(self.load_settings)

    async def list_bookings(self, room_ids: Optional[Iterable[str]] = None) -> List[Booking]:
        wanted = None if room_ids is None else list(room_ids)
        return await asyncio.to_thread(self.get_bookings, wanted)

    async def list_blockages(self) -> List[Blockage]:
        return await asyncio.to_thread(self.get_blockages)

    async def get_room_availability(
        self,
        day: date,
        room_id: str,
        exclude_session: Optional[str] = None,
    ) -> DayStatus:
        bookings, blockages = await asyncio.gather(self.list_bookings([room_id]), self.list_blockages())
        return resolve_room_status(day, room_id, bookings, blockages, exclude_session).status
