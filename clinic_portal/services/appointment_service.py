from datetime import date
from typing import List, Optional
import asyncio
import json
import logging

from ..core.backend import BackendAuthorizationError, BackendError, ClinicBackend
from ..core.config import settings
from ..models.appointment import AppointmentRecord, AppointmentRequest, AppointmentStatus
from ..schemas.appointment import AppointmentCreate
from ..utils.date_filters import DateFilter, filter_appointments_by_date
from ..utils.search_filter import filter_appointments_by_search

logger = logging.getLogger(__name__)

# Bumped whenever the backend list changes; cache keys embed it
GENERATION_KEY = "appointments:generation"

class AppointmentNotFoundError(Exception):
    def __init__(self, index: int):
        super().__init__(f"Appointment {index} not found")
        self.index = index

class AppointmentService:
    def __init__(self, backend: ClinicBackend, redis_client, owner: Optional[str] = None):
        self.backend = backend
        self.redis = redis_client
        self.owner = owner or "anonymous"

    async def create_appointment(self, form: AppointmentCreate) -> AppointmentRequest:
        """Submit a new appointment request as pending."""
        request = form.to_request()
        await self.backend.create_appointment(request)
        logger.info(f"Appointment request submitted for {request.preferred_date} {request.preferred_time}")
        self.invalidate()
        return request

    async def list_appointments(self) -> List[AppointmentRecord]:
        """All appointments with their backend positions, cache first."""
        appointments = await self._load(self._cache_key())
        return [AppointmentRecord.from_request(index, item) for index, item in enumerate(appointments)]

    async def filtered_appointments(
        self,
        date_filter: DateFilter,
        search_query: str = "",
        today: Optional[date] = None
    ) -> List[AppointmentRecord]:
        records = await self.list_appointments()
        records = filter_appointments_by_date(records, date_filter, today=today)
        return filter_appointments_by_search(records, search_query)

    async def update_status(self, index: int, status: AppointmentStatus) -> AppointmentRecord:
        """Change an appointment's status optimistically.

        The cached list shows the new status while the backend call is in
        flight. If the call fails only this appointment's previous entry is
        put back, leaving other pending updates in the cached list, and the
        error is re-raised.
        """
        key = self._cache_key()
        snapshot = await self._load(key)
        if index < 0 or index >= len(snapshot):
            raise AppointmentNotFoundError(index)

        current = snapshot[index]
        if current.status == status:
            return AppointmentRecord.from_request(index, current)

        optimistic = list(snapshot)
        optimistic[index] = current.model_copy(update={"status": status})
        self._write_cache(key, optimistic)

        try:
            await self.backend.update_appointment_status(index, status)
        except BackendError as e:
            logger.warning(
                f"Status update for appointment {index} failed ({e.message}), "
                f"restoring previous entry"
            )
            self._restore_entry(key, index, current, snapshot)
            raise

        logger.info(f"Appointment {index} status changed from {current.status.value} to {status.value}")
        self.invalidate()
        return AppointmentRecord.from_request(index, optimistic[index])

    def invalidate(self):
        """Mark every cached appointment list as stale."""
        self.redis.incr(GENERATION_KEY)

    def clear_cache(self):
        self.redis.delete(self._cache_key())

    async def _load(self, key: str) -> List[AppointmentRequest]:
        cached = self._read_cache(key)
        if cached is not None:
            return cached

        appointments = await self._fetch_appointments()
        self._write_cache(key, appointments)
        return appointments

    async def _fetch_appointments(self) -> List[AppointmentRequest]:
        attempt = 0
        while True:
            try:
                appointments = await self.backend.list_appointments()
                logger.info(f"Fetched {len(appointments)} appointments")
                return appointments
            except BackendAuthorizationError:
                logger.warning("Authorization error listing appointments, not retrying")
                raise
            except BackendError as e:
                if attempt >= settings.BACKEND_RETRIES:
                    logger.error(f"Listing appointments failed after {attempt + 1} attempts: {e.message}")
                    raise
                attempt += 1
                logger.info(f"Retrying appointment list (attempt {attempt}): {e.message}")
                await asyncio.sleep(settings.BACKEND_RETRY_DELAY)

    def _cache_key(self) -> str:
        generation = self.redis.get(GENERATION_KEY) or "0"
        return f"appointments:{generation}:{self.owner}"

    def _read_cache(self, key: str) -> Optional[List[AppointmentRequest]]:
        raw = self.redis.get(key)
        if raw is None:
            return None
        return [AppointmentRequest.model_validate(item) for item in json.loads(raw)]

    def _write_cache(self, key: str, appointments: List[AppointmentRequest]):
        payload = json.dumps([item.model_dump(mode="json") for item in appointments])
        self.redis.setex(key, settings.APPOINTMENTS_CACHE_TTL, payload)

    def _restore_entry(
        self,
        key: str,
        index: int,
        previous: AppointmentRequest,
        snapshot: List[AppointmentRequest]
    ):
        cached = self._read_cache(key)
        if cached is None or len(cached) != len(snapshot):
            self._write_cache(key, snapshot)
            return
        cached[index] = previous
        self._write_cache(key, cached)
