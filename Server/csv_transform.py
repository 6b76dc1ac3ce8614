"""
HubSpoke Server - CSV Transform

Converts rows of the hub/spoke card-sort CSV into CREATE actions for the
changeset engine, and exports the registry back into the same row format.

Problems in the input are collected as messages (one per problem) instead
of stopping at the first bad row.
"""

import csv
import io
import logging
import uuid
from dataclasses import dataclass, field, fields
from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional, Tuple

from models.infrastructure import CsvSiteRow, CreateSite
from site_registry import SiteRegistry

logger = logging.getLogger(__name__)


# Column headers as written by the export (and expected by the import)
CSV_HEADERS = [
    "Division",
    "Hub Site Name",
    "Hub URL",
    "Spoke Site Name",
    "Spoke URL",
    "Last activity (UTC)",
    "Files",
    "Storage used (%)",
    "Created by",
]

_ROW_FIELDS = [f.name for f in fields(CsvSiteRow)]

# Accept the export headers, the snake_case field names and camelCase names
_HEADER_TO_FIELD: Dict[str, str] = {}
for _header, _field in zip(CSV_HEADERS, _ROW_FIELDS):
    _HEADER_TO_FIELD[_header.lower()] = _field
    _HEADER_TO_FIELD[_field] = _field
    _HEADER_TO_FIELD[_field.replace("_", "")] = _field

_DATE_FORMATS = [
    "%m/%d/%Y %I:%M:%S %p",
    "%m/%d/%Y %H:%M:%S",
    "%m-%d-%Y %H:%M:%S",
    "%Y-%m-%d %H:%M:%S",
    "%m/%d/%Y",
    "%m-%d-%Y",
    "%Y-%m-%d",
]

HUB_CREATED_BY = "CSV Import"


# ==================== Parsing ====================

def ParseCsvText(text: str) -> List[CsvSiteRow]:
    """
    Parse CSV text into rows

    Header names are matched case-insensitively; unknown columns are ignored
    and blank lines are skipped.

    Args:
        text: Full CSV file contents including the header line

    Returns:
        list: One CsvSiteRow per data line
    """
    reader = csv.DictReader(io.StringIO(text.lstrip("\ufeff")))
    rows = []
    for raw in reader:
        values = {}
        for key, value in raw.items():
            if key is None:
                continue
            row_field = _HEADER_TO_FIELD.get(key.strip().lower())
            if row_field:
                values[row_field] = (value or "").strip()
        if not any(values.values()):
            continue
        rows.append(CsvSiteRow(**values))
    return rows


def ParseDate(value: str) -> Optional[datetime]:
    """Parse a CSV timestamp in any of the accepted formats, as UTC"""
    value = (value or "").strip()
    if not value:
        return None

    parsed = None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        for date_format in _DATE_FORMATS:
            try:
                parsed = datetime.strptime(value, date_format)
                break
            except ValueError:
                continue

    if parsed is None:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _ParseInt(value: str) -> int:
    try:
        return int(float(value))
    except (TypeError, ValueError):
        return 0


def _ParseFloat(value: str) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0


# ==================== Transform ====================

# A CSV site is identified by its name and url
SiteKey = Tuple[str, str]


@dataclass
class _PendingSite:
    """A site discovered in the CSV before ids and order are assigned"""
    name: str
    url: str
    division: str
    parent_key: Optional[SiteKey] = None
    attributes: Dict[str, object] = field(default_factory=dict)


def _AttributesFromRow(row: CsvSiteRow, created_by: Optional[str] = None) -> Dict[str, object]:
    storage = _ParseFloat(row.storage_used)
    return {
        "last_activity": ParseDate(row.last_activity),
        "file_count": _ParseInt(row.files),
        "storage_used": storage,
        "storage_percentage": storage,
        "created_by": created_by if created_by is not None else (row.created_by or None),
    }


def _IsHubOnlyRow(row: CsvSiteRow) -> bool:
    return bool(row.hub_site_name) and not row.spoke_site_name and not row.spoke_url


def ValidateRows(rows: List[CsvSiteRow]) -> List[str]:
    """
    Row-level checks that do not depend on the relationships between rows

    Returns:
        list: Error messages, empty when every row is acceptable
    """
    errors = []

    if not rows:
        return ["CSV file is empty or has no valid data"]

    first_row_by_url: Dict[str, int] = {}
    for index, row in enumerate(rows, start=1):
        if not _IsHubOnlyRow(row):
            if not row.spoke_site_name:
                errors.append(f"Row {index}: Spoke site name is required")
            if not row.spoke_url:
                errors.append(f"Row {index}: Spoke URL is required")

        if row.hub_site_name and not row.hub_url:
            errors.append(f"Row {index}: Hub URL is required for hub '{row.hub_site_name}'")

        if row.spoke_site_name and (row.spoke_site_name, row.spoke_url) == (row.hub_site_name, row.hub_url):
            errors.append(f"Row {index}: Site '{row.spoke_site_name}' cannot be its own hub")

        if row.spoke_url:
            if row.spoke_url in first_row_by_url:
                errors.append(
                    f"Row {index}: Duplicate spoke URL '{row.spoke_url}' "
                    f"(already used on row {first_row_by_url[row.spoke_url]})"
                )
            else:
                first_row_by_url[row.spoke_url] = index

    return errors


def TransformRows(rows: List[CsvSiteRow],
                  id_factory: Callable[[], str] = lambda: str(uuid.uuid4())) -> Tuple[List[CreateSite], List[str]]:
    """
    Turn CSV rows into an ordered list of CREATE actions

    One site per distinct hub (name and url) and one per spoke row. A
    spoke whose name and url match a hub of the same file is that hub (it
    becomes a sub-hub). Hubs sharing a name but not a url are different
    sites, as in an export of same-named hubs from different divisions.
    Parents are always created before their children, and each child's
    parent_hub_id refers to the id generated for its hub.

    Args:
        rows: Parsed CSV rows
        id_factory: Generates the id of each new site

    Returns:
        (actions, errors): actions is empty whenever errors is not
    """
    errors = ValidateRows(rows)
    if errors:
        return [], errors

    # First pass: one entry per distinct hub
    hubs: Dict[SiteKey, _PendingSite] = {}
    for index, row in enumerate(rows, start=1):
        if not row.hub_site_name:
            continue
        hub_key = (row.hub_site_name, row.hub_url)
        hub = hubs.get(hub_key)
        if hub is None:
            hub = _PendingSite(
                name=row.hub_site_name,
                url=row.hub_url,
                division=row.division,
                attributes=_AttributesFromRow(CsvSiteRow(), created_by=HUB_CREATED_BY),
            )
            hubs[hub_key] = hub

        if _IsHubOnlyRow(row):
            hub.division = row.division or hub.division
            hub.attributes = _AttributesFromRow(row)

    # Second pass: spokes, merging spokes that are also hubs
    sites: List[_PendingSite] = list(hubs.values())
    for index, row in enumerate(rows, start=1):
        if _IsHubOnlyRow(row):
            continue

        parent_key = (row.hub_site_name, row.hub_url) if row.hub_site_name else None
        existing_hub = hubs.get((row.spoke_site_name, row.spoke_url))
        if existing_hub is not None:
            if existing_hub.parent_key is not None and existing_hub.parent_key != parent_key:
                errors.append(f"Row {index}: Site '{row.spoke_site_name}' is listed under more than one hub")
                continue
            existing_hub.parent_key = parent_key
            existing_hub.division = row.division or existing_hub.division
            existing_hub.attributes = _AttributesFromRow(row)
            continue

        sites.append(_PendingSite(
            name=row.spoke_site_name,
            url=row.spoke_url,
            division=row.division,
            parent_key=parent_key,
            attributes=_AttributesFromRow(row),
        ))

    # Different sites must not share a url
    names_by_url: Dict[str, str] = {}
    for site in sites:
        other = names_by_url.setdefault(site.url, site.name)
        if other != site.name:
            errors.append(f"URL '{site.url}' is used by both '{other}' and '{site.name}'")

    if errors:
        return [], errors

    # Emit parents before children, starting from sites without a hub
    children: Dict[Optional[SiteKey], List[_PendingSite]] = {}
    for site in sites:
        children.setdefault(site.parent_key, []).append(site)

    actions: List[CreateSite] = []
    emitted = set()
    queue: List[Tuple[_PendingSite, Optional[str]]] = [(site, None) for site in children.get(None, [])]
    while queue:
        site, parent_id = queue.pop(0)
        site_id = id_factory()
        emitted.add(id(site))
        actions.append(CreateSite(
            site_id=site_id,
            name=site.name,
            url=site.url,
            parent_hub_id=parent_id,
            division=site.division or None,
            **site.attributes,
        ))
        site_key = (site.name, site.url)
        if hubs.get(site_key) is site:
            queue.extend((child, site_id) for child in children.get(site_key, []))

    for site in sites:
        if id(site) not in emitted:
            errors.append(f"Site '{site.name}' is part of a circular hub/spoke relationship")

    if errors:
        return [], errors

    logger.info(f"Transformed {len(rows)} CSV rows into {len(actions)} site(s)")
    return actions, []


# ==================== Export ====================

def _FormatNumber(value: float) -> str:
    if float(value).is_integer():
        return str(int(value))
    return str(value)


def ExportSitesToRows(registry: SiteRegistry) -> List[CsvSiteRow]:
    """
    Export the registry as CSV rows

    Every associated site becomes one row (its parent in the hub columns);
    a site with neither parent nor children becomes a hub-only row.
    Rows are ordered by division then site name.
    """
    rows = []
    children_index = registry.ChildrenIndex()
    sites = sorted(registry.All(), key=lambda site: (site.division or "", site.name))
    for site in sites:
        attributes = dict(
            last_activity=site.last_activity.isoformat() if site.last_activity else "",
            files=str(site.file_count),
            storage_used=_FormatNumber(site.storage_percentage),
            created_by=site.created_by or "",
        )
        if site.parent_hub_id is not None:
            parent = registry.Get(site.parent_hub_id)
            if parent is None:
                logger.warning(f"Site '{site.name}' refers to missing parent '{site.parent_hub_id}'")
                continue
            rows.append(CsvSiteRow(
                division=site.division or "",
                hub_site_name=parent.name,
                hub_url=parent.url,
                spoke_site_name=site.name,
                spoke_url=site.url,
                **attributes,
            ))
        elif site.site_id not in children_index:
            rows.append(CsvSiteRow(
                division=site.division or "",
                hub_site_name=site.name,
                hub_url=site.url,
                **attributes,
            ))
    return rows


def RowsToCsvText(rows: List[CsvSiteRow]) -> str:
    """Render rows with the export headers, every cell quoted"""
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerow(CSV_HEADERS)
    for row in rows:
        writer.writerow([getattr(row, name) for name in _ROW_FIELDS])
    return buffer.getvalue()


def ExportFileName(now: Optional[datetime] = None) -> str:
    """File name used for CSV downloads"""
    now = now or datetime.now(timezone.utc)
    return f"IA_CARD_SORT_{now.strftime('%Y%m%dT%H%M%S')}.csv"
