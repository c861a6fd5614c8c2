"""
Bulk import of historical contract awards from PPIP CSV exports.

Rows are parsed with the csv module and classified into the same
category vocabulary tenders use, so the win-probability engine can
look awards up by a tender's category.
"""

import csv
import io
import re
from datetime import date, datetime
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from tenderalert.core.exceptions import ValidationException
from tenderalert.core.logging import get_logger
from tenderalert.models.historical_award import HistoricalTenderAward
from tenderalert.services.automation import log_automation

logger = get_logger(__name__)

SOURCE_NAME = "ppip_csv"

COLUMN_ALIASES: dict[str, tuple[str, ...]] = {
    "organization": ("PE Name", "Procuring Entity"),
    "title": ("Tender Title", "Title"),
    "supplier": ("Supplier Name", "Supplier"),
    "amount": ("Amount", "Contract Amount"),
    "award_date": ("Award Date",),
    "agpo_group": ("Awarded Agpo Group Id", "AGPO Group"),
    "bids": ("Bids", "Number of Bids"),
}
REQUIRED_COLUMNS = ("organization", "title", "amount")

# First match wins
CATEGORY_KEYWORDS: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("Construction", ("road", "construction", "building", "renovation")),
    ("Healthcare", ("medical", "health", "hospital", "pharmaceutical", "drug")),
    ("ICT", ("ict", "software", "computer", "technology", "system")),
    ("Supply", ("supply", "delivery", "furniture", "stationery")),
    ("Consultancy", ("consult", "advisory", "study", "design")),
    ("Transport", ("transport", "vehicle", "fleet", "fuel")),
    ("Environment", ("water", "sanitation", "sewage", "borehole", "energy", "solar")),
    ("Education", ("education", "school", "training", "textbook")),
    ("Agriculture", ("agriculture", "farm", "livestock", "seed")),
)

COUNTIES = (
    "Nairobi", "Mombasa", "Kisumu", "Nakuru", "Kiambu", "Machakos", "Nyeri", "Meru",
    "Kakamega", "Kisii", "Garissa", "Turkana", "Bungoma", "Uasin Gishu", "Siaya",
    "Migori", "Kilifi", "Kwale", "Taita Taveta", "Kitui", "Makueni", "Embu",
    "Tharaka Nithi", "Laikipia", "Nyandarua", "Baringo", "Elgeyo Marakwet",
    "West Pokot", "Samburu", "Trans Nzoia", "Nandi", "Bomet", "Kericho", "Narok",
    "Kajiado", "Homa Bay", "Nyamira", "Vihiga", "Busia", "Mandera", "Wajir",
    "Marsabit", "Isiolo", "Tana River", "Lamu", "Murang'a", "Kirinyaga",
)
NATIONAL_MARKERS = ("national", "kenya", "ministry", "state department", "authority")


def parse_amount(raw: str | None) -> float | None:
    """'Ksh 1,250,000.00' -> 1250000.0; zero or junk -> None."""
    if not raw:
        return None
    cleaned = re.sub(r"(?i)ksh|kes|[,\s]", "", raw)
    try:
        value = float(cleaned)
    except ValueError:
        return None
    return value if value > 0 else None


def parse_award_date(raw: str | None) -> date | None:
    if not raw:
        return None
    text = raw.strip()
    for fmt in ("%Y-%m-%d", "%d/%m/%Y", "%m/%d/%Y", "%d-%m-%Y", "%Y-%m-%d %H:%M:%S"):
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue
    year = re.search(r"\d{4}", text)
    return date(int(year.group()), 7, 1) if year else None


def infer_category(title: str) -> str:
    lowered = title.lower()
    for category, keywords in CATEGORY_KEYWORDS:
        if any(keyword in lowered for keyword in keywords):
            return category
    return "Other"


def infer_location(organization: str) -> str:
    lowered = organization.lower().replace("'", "")
    for county in COUNTIES:
        if county.lower().replace("'", "") in lowered:
            return county
    if any(marker in lowered for marker in NATIONAL_MARKERS):
        return "Nairobi"
    return "Kenya"


def infer_winner_type(supplier: str, agpo_group: str | None = None) -> str:
    group = (agpo_group or "").lower()
    if "youth" in group:
        return "youth"
    if "women" in group:
        return "women"
    if "pwd" in group or "disab" in group:
        return "pwd"

    lowered = supplier.lower()
    if "consortium" in lowered or "joint venture" in lowered or re.search(r"\bjv\b", lowered):
        return "consortium"
    if "youth" in lowered or "young" in lowered:
        return "youth"
    if "women" in lowered or "female" in lowered:
        return "women"
    if "group" in lowered or "self help" in lowered:
        return "sme"
    if re.search(r"\b(ltd|limited|plc)\b", lowered):
        return "large_enterprise"
    return "sme"


def competition_from_bids(bids: int | None) -> str | None:
    if bids is None:
        return None
    if bids <= 3:
        return "low"
    if bids <= 8:
        return "medium"
    return "high"


def _resolve_columns(header: list[str]) -> dict[str, str]:
    present = {h.strip(): h for h in header}
    resolved = {}
    for field, aliases in COLUMN_ALIASES.items():
        for alias in aliases:
            if alias in present:
                resolved[field] = present[alias]
                break
    missing = [f for f in REQUIRED_COLUMNS if f not in resolved]
    if missing:
        raise ValidationException(
            "CSV is missing required columns",
            {"csv_text": [f"missing: {', '.join(COLUMN_ALIASES[f][0] for f in missing)}"]},
        )
    return resolved


def parse_award_rows(csv_text: str, limit: int | None = None, offset: int = 0) -> tuple[list[HistoricalTenderAward], int]:
    """Parse CSV text into unsaved award rows. Returns (awards, skipped)."""
    reader = csv.DictReader(io.StringIO(csv_text.strip()))
    if not reader.fieldnames:
        raise ValidationException("CSV is empty", {"csv_text": ["no header row"]})
    columns = _resolve_columns(list(reader.fieldnames))

    def cell(row: dict[str, Any], field: str) -> str:
        key = columns.get(field)
        return (row.get(key) or "").strip() if key else ""

    awards: list[HistoricalTenderAward] = []
    skipped = 0
    for index, row in enumerate(reader):
        if index < offset:
            continue
        if limit is not None and len(awards) + skipped >= limit:
            break

        title = cell(row, "title")
        organization = cell(row, "organization")
        amount = parse_amount(cell(row, "amount"))
        if not title or not organization or amount is None:
            skipped += 1
            continue

        supplier = cell(row, "supplier")
        bids_text = cell(row, "bids")
        bids = int(bids_text) if bids_text.isdigit() else None

        awards.append(
            HistoricalTenderAward(
                organization=organization[:300],
                tender_title=title,
                category=infer_category(title),
                location=infer_location(organization),
                awarded_amount=amount,
                winner_name=supplier[:300] or None,
                winner_type=infer_winner_type(supplier, cell(row, "agpo_group")),
                award_date=parse_award_date(cell(row, "award_date")),
                bid_count=bids,
                competition_level=competition_from_bids(bids),
                source=SOURCE_NAME,
            )
        )

    return awards, skipped


async def import_awards_csv(
    db: AsyncSession,
    csv_text: str,
    limit: int | None = None,
    offset: int = 0,
) -> dict[str, Any]:
    awards, skipped = parse_award_rows(csv_text, limit=limit, offset=offset)
    db.add_all(awards)
    await db.flush()

    result = {"imported": len(awards), "skipped": skipped, "offset": offset, "limit": limit}
    await log_automation(db, "import-historical-data", result)
    logger.info("Historical awards imported", **result)
    return result


async def award_stats(db: AsyncSession) -> dict[str, Any]:
    rows = (
        await db.execute(
            select(
                HistoricalTenderAward.category,
                func.count(HistoricalTenderAward.id),
                func.avg(HistoricalTenderAward.awarded_amount),
            ).group_by(HistoricalTenderAward.category)
        )
    ).all()
    by_category = {
        category: {"count": count, "average_amount": round(float(avg or 0))}
        for category, count, avg in rows
    }
    return {"total": sum(v["count"] for v in by_category.values()), "by_category": by_category}
