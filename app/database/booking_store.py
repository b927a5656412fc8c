"""
Booking Store
One interface, two backends:
  * JsonFileBookingStore - a JSON array in a single file (read-modify-write)
  * MongoBookingStore    - a MongoDB collection through motor
Handlers only ever talk to BookingStore, the backend is picked by build_store().
"""
import asyncio
import json
import logging
import os
import uuid
from abc import ABC, abstractmethod
from typing import Any, Dict, List

from pymongo.errors import PyMongoError
from starlette.concurrency import run_in_threadpool

from app.config.database import DatabaseConfig
from app.config.settings import Settings
from app.utils.errors import StorageError, StoreNotReadyError
from app.utils.helpers import serialize_docs, utc_now_iso

logger = logging.getLogger(__name__)

ID_KEY = "_id"
TIMESTAMP_KEY = "date"


class BookingStore(ABC):
    """
    Persistence contract for booking records.

    A store starts "not ready"; put() and list_all() raise StoreNotReadyError
    until connect() has completed and again after close().
    """

    name = "abstract"

    def __init__(self):
        self._ready = False

    @property
    def is_ready(self) -> bool:
        return self._ready

    def _ensure_ready(self):
        if not self._ready:
            raise StoreNotReadyError("Booking store is not ready")

    async def connect(self) -> None:
        self._ready = True

    async def close(self) -> None:
        self._ready = False

    async def put(self, record: Dict[str, Any]) -> str:
        """
        Persist a record and return its id.

        The server timestamp and the id are written into `record` itself.
        """
        self._ensure_ready()
        record[TIMESTAMP_KEY] = utc_now_iso()
        return await self._insert(record)

    async def list_all(self) -> List[Dict[str, Any]]:
        """Every stored record, unfiltered"""
        self._ensure_ready()
        return await self._fetch_all()

    @abstractmethod
    async def _insert(self, record: Dict[str, Any]) -> str:
        ...

    @abstractmethod
    async def _fetch_all(self) -> List[Dict[str, Any]]:
        ...


class JsonFileBookingStore(BookingStore):
    """
    Append-only JSON array on disk.

    Writes are serialized inside this process only; several processes
    sharing one file can still lose bookings.
    """

    name = "json"

    def __init__(self, path: str):
        super().__init__()
        self.path = path
        self._lock = asyncio.Lock()

    async def connect(self) -> None:
        directory = os.path.dirname(os.path.abspath(self.path))
        try:
            os.makedirs(directory, exist_ok=True)
        except OSError as exc:
            raise StorageError(f"Cannot create bookings directory {directory}: {exc}") from exc
        logger.info("✅ Using bookings file: %s", self.path)
        await super().connect()

    def _read(self) -> List[Dict[str, Any]]:
        if not os.path.exists(self.path):
            return []
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = f.read()
            bookings = json.loads(data or "[]")
        except (OSError, ValueError) as exc:
            raise StorageError(f"Failed to read {self.path}: {exc}") from exc
        if not isinstance(bookings, list):
            raise StorageError(f"{self.path} does not contain a list of bookings")
        return bookings

    def _write(self, bookings: List[Dict[str, Any]]) -> None:
        tmp_path = f"{self.path}.tmp"
        try:
            with open(tmp_path, "w", encoding="utf-8") as f:
                json.dump(bookings, f, indent=2, ensure_ascii=False)
            os.replace(tmp_path, self.path)
        except (OSError, TypeError, ValueError) as exc:
            raise StorageError(f"Failed to write {self.path}: {exc}") from exc

    def _append(self, record: Dict[str, Any]) -> str:
        bookings = self._read()
        record[ID_KEY] = uuid.uuid4().hex
        bookings.append(record)
        self._write(bookings)
        return record[ID_KEY]

    async def _insert(self, record: Dict[str, Any]) -> str:
        async with self._lock:
            return await run_in_threadpool(self._append, record)

    async def _fetch_all(self) -> List[Dict[str, Any]]:
        return await run_in_threadpool(self._read)


class MongoBookingStore(BookingStore):
    """Bookings in a MongoDB collection; concurrency is the server's job"""

    name = "mongo"

    def __init__(self, db_config: DatabaseConfig, collection_name: str):
        super().__init__()
        self.db_config = db_config
        self.collection_name = collection_name

    async def connect(self) -> None:
        await self.db_config.connect_db()
        await super().connect()

    async def close(self) -> None:
        await super().close()
        await self.db_config.close_db()

    async def _insert(self, record: Dict[str, Any]) -> str:
        collection = self.db_config.get_collection(self.collection_name)
        try:
            result = await collection.insert_one(record)
        except PyMongoError as exc:
            raise StorageError(f"Failed to insert booking: {exc}") from exc
        record[ID_KEY] = str(result.inserted_id)
        return record[ID_KEY]

    async def _fetch_all(self) -> List[Dict[str, Any]]:
        collection = self.db_config.get_collection(self.collection_name)
        try:
            documents = await collection.find({}).to_list(length=None)
        except PyMongoError as exc:
            raise StorageError(f"Failed to read bookings: {exc}") from exc
        return serialize_docs(documents)


def build_store(settings: Settings) -> BookingStore:
    """Pick the backend named by STORE_BACKEND"""
    if settings.STORE_BACKEND == JsonFileBookingStore.name:
        return JsonFileBookingStore(settings.BOOKINGS_FILE)
    if settings.STORE_BACKEND == MongoBookingStore.name:
        db_config = DatabaseConfig(settings.MONGO_URI, settings.DATABASE_NAME)
        return MongoBookingStore(db_config, settings.BOOKINGS_COLLECTION)
    raise ValueError(f"Unknown STORE_BACKEND: {settings.STORE_BACKEND!r}")
