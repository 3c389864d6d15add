"""
Document store backed by a Google Sheets spreadsheet.

Sheets has no server-side queries and no change feed. Filtering and
sorting run in Python over the whole worksheet, and listen() polls.
gspread is blocking, so every worksheet call runs in the default
executor. Writes to one worksheet are serialised by an asyncio.Lock,
which makes increment atomic within one process only. Fine for one
person's data.

Layout: one worksheet per entity kind (the last segment of the collection
path, e.g. "budgets"). Every row holds one document:

    id | collection | created_at | updated_at | data_json

Money is written as JSON numbers and timestamps as UTC ISO-8601 strings,
so documents read back from Sheets carry strings where the in-memory
store carries datetimes. DTO validation parses both.
"""

import asyncio
import functools
import json
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

import gspread
import structlog
from gspread.utils import rowcol_to_a1
from google.oauth2.service_account import Credentials
from tenacity import (
    retry,
    retry_if_not_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from personal_finance.config import GoogleSheetsSettings, get_settings
from personal_finance.errors import NotFoundError
from personal_finance.services.storage.interface import (
    ConnectionError,
    Document,
    DocumentStore,
    OnChange,
    OnError,
    OrderBy,
    Predicate,
    StorageError,
    Subscription,
    apply_query,
    matches_all,
)


logger = structlog.get_logger(__name__)


SCOPES = [
    "https://www.googleapis.com/auth/spreadsheets",
    "https://www.googleapis.com/auth/drive",
]

DOCUMENT_COLUMNS = [
    "id",
    "collection",
    "created_at",
    "updated_at",
    "data_json",
]

_RESERVED_FIELDS = ("id", "created_at", "updated_at")

# Column positions (1-based, as gspread expects)
_UPDATED_AT_COL = DOCUMENT_COLUMNS.index("updated_at") + 1
_DATA_COL = DOCUMENT_COLUMNS.index("data_json") + 1


write_retry = retry(
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=1, min=2, max=10),
    retry=retry_if_not_exception_type(NotFoundError),
    reraise=True,
)


def _encode(value: Any) -> Any:
    """json.dumps default= hook for the types our documents carry."""
    if isinstance(value, Decimal):
        return float(value)
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc)
        return value.isoformat()
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, UUID):
        return str(value)
    raise TypeError(f"Cannot serialize {type(value).__name__}")


def to_json_value(value: Any) -> Any:
    """Value as it looks after a round-trip through a worksheet cell."""
    return json.loads(json.dumps(value, default=_encode))


class GoogleSheetsClient:
    """Opens the configured spreadsheet and hands out its worksheets by title."""

    def __init__(self, settings: Optional[GoogleSheetsSettings] = None):
        self._client: Optional[gspread.Client] = None
        self._spreadsheet: Optional[gspread.Spreadsheet] = None
        self._settings = settings or get_settings().google_sheets
        self._worksheets: dict[str, gspread.Worksheet] = {}

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    def connect(self) -> gspread.Client:
        if self._client is None:
            try:
                credentials = Credentials.from_service_account_file(
                    self._settings.credentials_path, scopes=SCOPES
                )
                self._client = gspread.authorize(credentials)
            except FileNotFoundError:
                raise ConnectionError(
                    f"No service account key at {self._settings.credentials_path}"
                )
            except Exception as e:
                raise ConnectionError(f"Could not authorize against Google Sheets: {e}")

        return self._client

    def get_spreadsheet(self) -> gspread.Spreadsheet:
        if self._spreadsheet is None:
            client = self.connect()
            try:
                self._spreadsheet = client.open_by_key(
                    self._settings.spreadsheet_id
                )
            except gspread.SpreadsheetNotFound:
                raise ConnectionError(
                    f"No spreadsheet with key {self._settings.spreadsheet_id}"
                )
        return self._spreadsheet

    def get_worksheet(self, title: str) -> gspread.Worksheet:
        """Get or create a worksheet with the document header row."""
        if title in self._worksheets:
            return self._worksheets[title]

        spreadsheet = self.get_spreadsheet()
        try:
            sheet = spreadsheet.worksheet(title)
        except gspread.WorksheetNotFound:
            sheet = spreadsheet.add_worksheet(
                title=title,
                rows=1000,
                cols=len(DOCUMENT_COLUMNS),
            )
            sheet.append_row(DOCUMENT_COLUMNS)
        self._worksheets[title] = sheet
        return sheet


class PollingSubscription(Subscription):
    """Subscription backed by an asyncio polling task."""

    def __init__(self, task: "asyncio.Task"):
        self._task = task

    @property
    def closed(self) -> bool:
        return self._task.done()

    def close(self) -> None:
        if not self._task.done():
            self._task.cancel()


class GoogleSheetsDocumentStore(DocumentStore):
    """
    Google Sheets implementation of DocumentStore.

    The client only needs get_worksheet(title); anything providing it
    (including a test double) can be injected.
    """

    def __init__(
        self,
        client: Optional[GoogleSheetsClient] = None,
        poll_interval_seconds: Optional[float] = None,
    ):
        self._client = client or GoogleSheetsClient()
        if poll_interval_seconds is None:
            poll_interval_seconds = get_settings().google_sheets.poll_interval_seconds
        self._poll_interval = poll_interval_seconds
        self._locks: dict[str, asyncio.Lock] = {}

    # -------------------------------------------------------------------------
    # Row mapping
    # -------------------------------------------------------------------------

    @staticmethod
    def _sheet_title(collection: str) -> str:
        return collection.rstrip("/").rsplit("/", 1)[-1]

    def _sheet(self, collection: str) -> gspread.Worksheet:
        return self._client.get_worksheet(self._sheet_title(collection))

    @staticmethod
    def _now() -> str:
        return datetime.now(timezone.utc).isoformat()

    @staticmethod
    def _doc_to_row(
        doc_id: str,
        collection: str,
        created_at: str,
        updated_at: str,
        data: Document,
    ) -> list:
        payload = {k: v for k, v in data.items() if k not in _RESERVED_FIELDS}
        return [
            doc_id,
            collection,
            created_at,
            updated_at,
            json.dumps(payload, default=_encode),
        ]

    @staticmethod
    def _row_to_doc(row: list) -> Document:
        def safe_get(index: int, default: str = "") -> str:
            try:
                return row[index] if row[index] else default
            except IndexError:
                return default

        doc = json.loads(safe_get(4, "{}"))
        doc["id"] = safe_get(0)
        doc["created_at"] = safe_get(2)
        doc["updated_at"] = safe_get(3)
        return doc

    def _read(self, collection: str) -> list[tuple[int, Document]]:
        """All documents of one collection with their 1-based row numbers."""
        sheet = self._sheet(collection)
        all_rows = sheet.get_all_values()

        found = []
        # Start from 2 (row 1 is header)
        for idx, row in enumerate(all_rows[1:], start=2):
            if not row or not row[0] or len(row) < 2 or row[1] != collection:
                continue
            try:
                found.append((idx, self._row_to_doc(row)))
            except ValueError as e:
                logger.warning(
                    "malformed_sheet_row",
                    collection=collection,
                    row=idx,
                    error=str(e),
                )
        return found

    def _find(self, collection: str, doc_id: str) -> tuple[int, Document]:
        for idx, doc in self._read(collection):
            if doc["id"] == doc_id:
                return idx, doc
        raise NotFoundError("document", doc_id)

    @staticmethod
    def _normalize(predicates: list[Predicate]) -> list[Predicate]:
        # Compare like with like: filter values go through the same encoding
        return [
            p.model_copy(update={"value": to_json_value(p.value)})
            for p in predicates
        ]

    # -------------------------------------------------------------------------
    # Executor
    # -------------------------------------------------------------------------

    async def _run(self, func, *args, **kwargs):
        """Run a blocking gspread call in the default executor."""
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, functools.partial(func, *args, **kwargs))

    def _lock(self, collection: str) -> asyncio.Lock:
        title = self._sheet_title(collection)
        if title not in self._locks:
            self._locks[title] = asyncio.Lock()
        return self._locks[title]

    # -------------------------------------------------------------------------
    # DocumentStore
    # -------------------------------------------------------------------------

    @write_retry
    async def create(self, collection: str, doc: Document) -> str:
        try:
            doc_id = uuid4().hex
            now = self._now()
            row = self._doc_to_row(doc_id, collection, now, now, doc)
            async with self._lock(collection):
                await self._run(self._append, collection, row)
            return doc_id
        except Exception as e:
            raise StorageError(f"Failed to create document: {e}")

    async def get(self, collection: str, doc_id: str) -> Optional[Document]:
        try:
            return (await self._run(self._find, collection, doc_id))[1]
        except NotFoundError:
            return None
        except Exception as e:
            raise StorageError(f"Failed to get document: {e}")

    async def query(
        self,
        collection: str,
        predicates: list[Predicate],
        order_by: Optional[OrderBy] = None,
        offset: int = 0,
        limit: Optional[int] = None,
    ) -> list[Document]:
        try:
            docs = [doc for _, doc in await self._run(self._read, collection)]
            return apply_query(docs, self._normalize(predicates), order_by, offset, limit)
        except Exception as e:
            raise StorageError(f"Failed to query documents: {e}")

    async def count(self, collection: str, predicates: list[Predicate]) -> int:
        try:
            normalized = self._normalize(predicates)
            rows = await self._run(self._read, collection)
            return sum(1 for _, doc in rows if matches_all(doc, normalized))
        except Exception as e:
            raise StorageError(f"Failed to count documents: {e}")

    @write_retry
    async def update(self, collection: str, doc_id: str, partial: Document) -> None:
        try:
            async with self._lock(collection):
                idx, doc = await self._run(self._find, collection, doc_id)
                doc.update({k: v for k, v in partial.items() if k not in _RESERVED_FIELDS})
                await self._run(self._write_back, collection, idx, doc)
        except NotFoundError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to update document: {e}")

    @write_retry
    async def increment(
        self,
        collection: str,
        doc_id: str,
        field: str,
        delta: Any,
    ) -> None:
        try:
            # Held from read to write: no other write can land in between
            async with self._lock(collection):
                idx, doc = await self._run(self._find, collection, doc_id)
                current = Decimal(str(doc.get(field) or 0))
                doc[field] = current + Decimal(str(delta))
                await self._run(self._write_back, collection, idx, doc)
        except NotFoundError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to increment {field}: {e}")

    @write_retry
    async def delete(self, collection: str, doc_id: str) -> None:
        try:
            async with self._lock(collection):
                idx, _ = await self._run(self._find, collection, doc_id)
                await self._run(self._delete_row, collection, idx)
        except NotFoundError:
            return
        except Exception as e:
            raise StorageError(f"Failed to delete document: {e}")

    # Blocking helpers, only ever called through _run

    def _append(self, collection: str, row: list) -> None:
        self._sheet(collection).append_row(row, value_input_option="RAW")

    def _delete_row(self, collection: str, idx: int) -> None:
        self._sheet(collection).delete_rows(idx)

    def _write_back(self, collection: str, idx: int, doc: Document) -> None:
        now = self._now()
        row = self._doc_to_row(doc["id"], collection, doc["created_at"], now, doc)
        # updated_at and data_json are adjacent, so one range write covers both
        cells = f"{rowcol_to_a1(idx, _UPDATED_AT_COL)}:{rowcol_to_a1(idx, _DATA_COL)}"
        self._sheet(collection).update(
            range_name=cells,
            values=[[now, row[_DATA_COL - 1]]],
        )

    def listen(
        self,
        collection: str,
        predicates: list[Predicate],
        on_change: OnChange,
        on_error: OnError,
        order_by: Optional[OrderBy] = None,
        limit: Optional[int] = None,
    ) -> Subscription:
        """
        Poll the worksheet every poll_interval_seconds.

        Must be called from a running event loop. on_change fires on the
        first poll and then only when an (id, updated_at) pair changed.
        """
        task = asyncio.get_running_loop().create_task(
            self._poll(collection, predicates, on_change, on_error, order_by, limit)
        )
        return PollingSubscription(task)

    async def _poll(
        self,
        collection: str,
        predicates: list[Predicate],
        on_change: OnChange,
        on_error: OnError,
        order_by: Optional[OrderBy],
        limit: Optional[int],
    ) -> None:
        last_fingerprint = None
        while True:
            try:
                docs = await self.query(collection, predicates, order_by, 0, limit)
                fingerprint = [(doc["id"], doc["updated_at"]) for doc in docs]
                if fingerprint != last_fingerprint:
                    last_fingerprint = fingerprint
                    on_change(docs)
            except Exception as e:
                logger.warning(
                    "listener_failed",
                    collection=collection,
                    error=str(e),
                )
                on_error(e)
                return
            await asyncio.sleep(self._poll_interval)
