"""
PawCare Backend — Excel Export Service
========================================

What:  Dumps the full relational state into a single .xlsx workbook with one
       sheet per entity: Customers, Pets, Services, Bookings (joined view),
       Feedback.
Why:   The business owner works in spreadsheets; this is the "download
       everything" button on the admin dashboard.
How:   Rows are read through the storage adapter, shaped into pandas
       DataFrames with human column headers, and written with the openpyxl
       engine into an in-memory buffer. Workbook rendering is CPU-bound and
       runs in Starlette's threadpool.

Timestamps are written as naive UTC; Excel has no timezone-aware cell type.
"""

import io
import logging
from typing import Any, Dict, List, Sequence, Tuple

import pandas as pd
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.concurrency import run_in_threadpool

from pawcare.storage.base import Row, StorageAdapter

logger = logging.getLogger(__name__)

EXPORT_FILENAME = "pawcare-database.xlsx"
XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"

# (row key, column header) per sheet, in column order
SHEET_COLUMNS: Dict[str, Sequence[Tuple[str, str]]] = {
    "Customers": (
        ("id", "Customer ID"),
        ("name", "Name"),
        ("email", "Email"),
        ("phone", "Phone"),
        ("registered", "Registered"),
        ("created_at", "Created At"),
    ),
    "Pets": (
        ("id", "Pet ID"),
        ("customer_id", "Customer ID"),
        ("name", "Pet Name"),
        ("type", "Type"),
        ("breed", "Breed"),
        ("age", "Age"),
        ("special_needs", "Special Needs"),
        ("created_at", "Created At"),
    ),
    "Services": (
        ("id", "Service ID"),
        ("name", "Service Name"),
        ("description", "Description"),
        ("price", "Price ($)"),
        ("duration_minutes", "Duration (min)"),
    ),
    "Bookings": (
        ("id", "Booking ID"),
        ("customer_name", "Customer Name"),
        ("customer_email", "Customer Email"),
        ("customer_phone", "Customer Phone"),
        ("pet_name", "Pet Name"),
        ("pet_type", "Pet Type"),
        ("service_name", "Service"),
        ("service_price", "Price ($)"),
        ("booking_date", "Booking Date"),
        ("booking_time", "Booking Time"),
        ("status", "Status"),
        ("notes", "Notes"),
        ("created_at", "Created At"),
    ),
    "Feedback": (
        ("id", "Feedback ID"),
        ("name", "Name"),
        ("email", "Email"),
        ("rating", "Rating"),
        ("category", "Category"),
        ("message", "Message"),
        ("public", "Public"),
        ("created_at", "Created At"),
    ),
}

TIMESTAMP_COLUMNS = ("created_at",)


def build_frame(rows: List[Row], columns: Sequence[Tuple[str, str]]) -> pd.DataFrame:
    """One sheet's DataFrame; an empty row list still yields the header row."""
    keys = [key for key, _ in columns]
    df = pd.DataFrame(rows, columns=keys)
    for key in TIMESTAMP_COLUMNS:
        if key in df.columns:
            df[key] = pd.to_datetime(df[key], utc=True).dt.tz_localize(None)
    return df.rename(columns=dict(columns))


def render_workbook(frames: Dict[str, pd.DataFrame]) -> bytes:
    buffer = io.BytesIO()
    with pd.ExcelWriter(buffer, engine="openpyxl") as writer:
        for sheet_name, df in frames.items():
            df.to_excel(writer, sheet_name=sheet_name, index=False)
    return buffer.getvalue()


class ExportService:
    async def collect(self, db: AsyncSession, storage: StorageAdapter) -> Dict[str, List[Row]]:
        return {
            "Customers": await storage.get_all_customers(db),
            "Pets": await storage.get_all_pets(db),
            "Services": await storage.get_all_services(db),
            "Bookings": await storage.get_all_bookings(db),
            "Feedback": await storage.get_all_feedback(db),
        }

    async def export_workbook(self, db: AsyncSession, storage: StorageAdapter) -> bytes:
        """The complete workbook as .xlsx bytes."""
        data = await self.collect(db, storage)
        frames = {
            sheet: build_frame(rows, SHEET_COLUMNS[sheet]) for sheet, rows in data.items()
        }
        content = await run_in_threadpool(render_workbook, frames)

        counts: Dict[str, Any] = {sheet: len(rows) for sheet, rows in data.items()}
        logger.info("Exported workbook (%d bytes): %s", len(content), counts)
        return content


export_service = ExportService()
