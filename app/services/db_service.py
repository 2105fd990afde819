from supabase import create_async_client, AsyncClient
from app.core.config import settings
from app.core.exceptions import StorageError
from app.services.time_normalizer import to_utc_iso
import logging
from datetime import datetime
from typing import List, Optional

logger = logging.getLogger("app")

BOOKINGS_TABLE = "booking_spa12"
TESTIMONIALS_TABLE = "testimonials"

class DBService:
    _instance = None
    _client: AsyncClient = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super(DBService, cls).__new__(cls)
            # Async client is created on first use, __new__ is sync
        return cls._instance

    async def get_client(self) -> AsyncClient:
        if not self._client:
            if not (settings.SUPABASE_URL and settings.SUPABASE_KEY):
                logger.error("❌ Supabase credentials missing (SUPABASE_URL / SUPABASE_KEY)")
                raise StorageError("Database is not configured.")
            try:
                self._client = await create_async_client(settings.SUPABASE_URL, settings.SUPABASE_KEY)
                logger.info("✅ Supabase Async client initialized")
            except Exception as e:
                logger.error(f"❌ Failed to initialize Supabase Async: {e}")
                raise StorageError("Database is not available.") from e
        return self._client

    # --- Bookings ---

    async def query_bookings_for_therapist(self, therapist: str, window_start: datetime, window_end: datetime) -> List[dict]:
        """
        Bookings of `therapist` whose start lies in [window_start, window_end].
        """
        client = await self.get_client()
        try:
            response = await client.table(BOOKINGS_TABLE)\
                .select("*")\
                .eq('therapy_name', therapist)\
                .gte('datetime', to_utc_iso(window_start))\
                .lte('datetime', to_utc_iso(window_end))\
                .execute()
            return response.data or []
        except Exception as e:
            logger.error(f"❌ DB Error (query_bookings_for_therapist): {e}")
            raise StorageError("Failed to insert booking.") from e

    async def insert_booking(self, booking_data: dict) -> dict:
        client = await self.get_client()
        try:
            response = await client.table(BOOKINGS_TABLE).insert(booking_data).execute()
        except Exception as e:
            logger.error(f"❌ DB Error (insert_booking): {e}")
            raise StorageError("Failed to insert booking.") from e

        if not response.data:
            logger.error("❌ DB Error (insert_booking): insert returned no row")
            raise StorageError("Failed to insert booking.")
        logger.info(f"✅ Booking {response.data[0].get('id')} saved for {booking_data.get('therapy_name')}")
        return response.data[0]

    async def list_bookings(self, limit: Optional[int] = None) -> List[dict]:
        """Newest first by booking_time."""
        client = await self.get_client()
        try:
            query = client.table(BOOKINGS_TABLE).select("*").order('booking_time', desc=True)
            if limit:
                query = query.limit(limit)
            response = await query.execute()
            return response.data or []
        except Exception as e:
            logger.error(f"❌ DB Error (list_bookings): {e}")
            raise StorageError("Failed to retrieve bookings from the database.") from e

    async def delete_booking_by_id(self, booking_id: int) -> Optional[dict]:
        """
        Deletes a booking and returns the deleted row, or None if nothing matched.
        """
        client = await self.get_client()
        try:
            response = await client.table(BOOKINGS_TABLE).delete().eq('id', booking_id).execute()
        except Exception as e:
            logger.error(f"❌ DB Error (delete_booking_by_id): {e}")
            raise StorageError("Failed to delete booking from the database.") from e

        if not response.data:
            return None
        logger.info(f"🗑️ Booking {booking_id} deleted from DB.")
        return response.data[0]

    # --- Testimonials ---

    async def insert_testimonial(self, testimonial_data: dict) -> dict:
        client = await self.get_client()
        try:
            response = await client.table(TESTIMONIALS_TABLE).insert(testimonial_data).execute()
        except Exception as e:
            logger.error(f"❌ DB Error (insert_testimonial): {e}")
            raise StorageError("Failed to add testimonial to the database.") from e

        if not response.data:
            raise StorageError("Failed to add testimonial to the database.")
        return response.data[0]

    async def list_testimonials(self) -> List[dict]:
        client = await self.get_client()
        try:
            response = await client.table(TESTIMONIALS_TABLE).select("*").order('created_at', desc=True).execute()
            return response.data or []
        except Exception as e:
            logger.error(f"❌ DB Error (list_testimonials): {e}")
            raise StorageError("Failed to retrieve testimonials from the database.") from e

    async def delete_testimonial_by_id(self, testimonial_id: int) -> Optional[dict]:
        client = await self.get_client()
        try:
            response = await client.table(TESTIMONIALS_TABLE).delete().eq('id', testimonial_id).execute()
        except Exception as e:
            logger.error(f"❌ DB Error (delete_testimonial_by_id): {e}")
            raise StorageError("Failed to delete testimonial from the database.") from e

        if not response.data:
            return None
        logger.info(f"🗑️ Testimonial {testimonial_id} deleted from DB.")
        return response.data[0]

def parse_row_id(raw) -> Optional[int]:
    """Path ids are strings; anything that is not a positive integer matches no row."""
    try:
        row_id = int(str(raw).strip())
    except ValueError:
        return None
    return row_id if row_id > 0 else None

db_service = DBService()
