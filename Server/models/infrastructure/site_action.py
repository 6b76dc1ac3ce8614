"""
HubSpoke Server - Site Action Models

Dataclasses for the actions a changeset can contain.
Each action kind carries only the fields relevant to it; payloads are
converted to and from the JSON stored on SiteChange rows.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, ClassVar, Dict, Optional, Union

from exceptions import HubSpokeValidationError
from models.infrastructure.site_record import DESCRIPTIVE_FIELDS


class ActionKind(str, Enum):
    """Kinds of site mutation recorded in a changeset"""
    CREATE = "CREATE"
    UPDATE = "UPDATE"
    DELETE = "DELETE"
    ASSOCIATE = "ASSOCIATE"
    DISASSOCIATE = "DISASSOCIATE"


@dataclass(frozen=True)
class CreateSite:
    """Insert a new site, optionally already associated with a parent"""
    kind: ClassVar[ActionKind] = ActionKind.CREATE

    site_id: str
    name: str
    url: str
    parent_hub_id: Optional[str] = None
    division: Optional[str] = None
    last_activity: Optional[datetime] = None
    file_count: int = 0
    storage_used: float = 0.0
    storage_percentage: float = 0.0
    is_associated_with_team: bool = False
    team_name: Optional[str] = None
    created_by: Optional[str] = None


@dataclass(frozen=True)
class UpdateSite:
    """Patch descriptive fields of an existing site"""
    kind: ClassVar[ActionKind] = ActionKind.UPDATE

    site_id: str
    changes: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class DeleteSite:
    """Remove a site; children follow the configured delete policy"""
    kind: ClassVar[ActionKind] = ActionKind.DELETE

    site_id: str


@dataclass(frozen=True)
class AssociateSite:
    """Set the parent of a site"""
    kind: ClassVar[ActionKind] = ActionKind.ASSOCIATE

    site_id: str
    parent_hub_id: str


@dataclass(frozen=True)
class DisassociateSite:
    """Clear the parent of a site"""
    kind: ClassVar[ActionKind] = ActionKind.DISASSOCIATE

    site_id: str


SiteAction = Union[CreateSite, UpdateSite, DeleteSite, AssociateSite, DisassociateSite]


def _ParseDateTime(value: Any) -> Optional[datetime]:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value
    if not isinstance(value, str):
        raise TypeError(f"expected an ISO timestamp, got {type(value).__name__}")
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        raise ValueError(f"invalid timestamp '{value}'")


def _ParseRequiredText(value: Any) -> str:
    if not isinstance(value, str):
        raise TypeError(f"expected text, got {type(value).__name__}")
    text = value.strip()
    if not text:
        raise ValueError("must not be empty")
    return text


def _ParseOptionalText(value: Any) -> Optional[str]:
    if value is None or isinstance(value, str):
        return value
    raise TypeError(f"expected text, got {type(value).__name__}")


def _ParseCount(value: Any) -> int:
    if value is None or value == "":
        return 0
    if isinstance(value, bool):
        raise TypeError("expected a number, got bool")
    if isinstance(value, float) and not value.is_integer():
        raise ValueError(f"expected a whole number, got {value}")
    return int(value)


def _ParseAmount(value: Any) -> float:
    if value is None or value == "":
        return 0.0
    if isinstance(value, bool):
        raise TypeError("expected a number, got bool")
    return float(value)


def _ParseFlag(value: Any) -> bool:
    if value is None:
        return False
    if not isinstance(value, bool):
        raise TypeError(f"expected true or false, got {type(value).__name__}")
    return value


# Parser per descriptive field; each raises TypeError or ValueError on bad input
FIELD_PARSERS = {
    "name": _ParseRequiredText,
    "url": _ParseRequiredText,
    "division": _ParseOptionalText,
    "last_activity": _ParseDateTime,
    "file_count": _ParseCount,
    "storage_used": _ParseAmount,
    "storage_percentage": _ParseAmount,
    "is_associated_with_team": _ParseFlag,
    "team_name": _ParseOptionalText,
    "created_by": _ParseOptionalText,
}


def _ParseFields(kind: ActionKind, payload: Dict[str, Any]) -> Dict[str, Any]:
    """
    Convert the descriptive fields of a payload to their record types

    Raises:
        HubSpokeValidationError: a value has the wrong type or format
    """
    fields = {}
    for key, parser in FIELD_PARSERS.items():
        if key not in payload:
            continue
        try:
            fields[key] = parser(payload[key])
        except (TypeError, ValueError) as e:
            raise HubSpokeValidationError(f"Invalid {kind.value} payload: {key} {e}")
    return fields


def _SerializeValue(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.isoformat()
    return value


def ActionToPayload(action: SiteAction) -> Optional[Dict[str, Any]]:
    """
    Build the new_data JSON stored for an action

    Args:
        action: Action to serialize

    Returns:
        JSON-safe dictionary, or None for actions without data
    """
    if isinstance(action, CreateSite):
        return {
            "name": action.name,
            "url": action.url,
            "parent_hub_id": action.parent_hub_id,
            "division": action.division,
            "last_activity": _SerializeValue(action.last_activity),
            "file_count": action.file_count,
            "storage_used": action.storage_used,
            "storage_percentage": action.storage_percentage,
            "is_associated_with_team": action.is_associated_with_team,
            "team_name": action.team_name,
            "created_by": action.created_by,
        }
    if isinstance(action, UpdateSite):
        return {key: _SerializeValue(value) for key, value in action.changes.items()}
    if isinstance(action, AssociateSite):
        return {"parent_hub_id": action.parent_hub_id}
    if isinstance(action, DisassociateSite):
        return {"parent_hub_id": None}
    return None


def _ParseParentId(kind: ActionKind, value: Any) -> Optional[str]:
    if value is None or value == "":
        return None
    if not isinstance(value, str):
        raise HubSpokeValidationError(f"Invalid {kind.value} payload: parent_hub_id expected text")
    return value


def ActionFromPayload(kind: Union[str, ActionKind], site_id: Optional[str], payload: Optional[Dict[str, Any]]) -> SiteAction:
    """
    Build a typed action from its kind, target site and JSON payload
    Used both for API requests and for re-reading staged actions

    Raises:
        HubSpokeValidationError: Unknown kind, missing target or malformed payload
    """
    try:
        kind = ActionKind(kind.upper() if isinstance(kind, str) else kind)
    except ValueError:
        raise HubSpokeValidationError(f"Unknown action kind: {kind}")

    if payload is not None and not isinstance(payload, dict):
        raise HubSpokeValidationError(f"{kind.value} payload must be an object")
    payload = dict(payload or {})

    if not site_id or not isinstance(site_id, str):
        raise HubSpokeValidationError(f"{kind.value} action requires a target site id")

    if kind == ActionKind.CREATE:
        if not payload.get("name") or not payload.get("url"):
            raise HubSpokeValidationError("CREATE action requires name and url")
        fields = _ParseFields(kind, payload)
        return CreateSite(
            site_id=site_id,
            parent_hub_id=_ParseParentId(kind, payload.get("parent_hub_id")),
            **fields
        )

    if kind == ActionKind.UPDATE:
        unknown = [key for key in payload if key not in DESCRIPTIVE_FIELDS]
        if unknown:
            raise HubSpokeValidationError(
                f"UPDATE cannot change {', '.join(sorted(unknown))}; use ASSOCIATE/DISASSOCIATE for parentage"
            )
        if not payload:
            raise HubSpokeValidationError("UPDATE action has no fields to change")
        return UpdateSite(site_id=site_id, changes=_ParseFields(kind, payload))

    if kind == ActionKind.DELETE:
        return DeleteSite(site_id=site_id)

    if kind == ActionKind.ASSOCIATE:
        parent_hub_id = _ParseParentId(kind, payload.get("parent_hub_id"))
        if not parent_hub_id:
            raise HubSpokeValidationError("ASSOCIATE action requires parent_hub_id")
        return AssociateSite(site_id=site_id, parent_hub_id=parent_hub_id)

    return DisassociateSite(site_id=site_id)
