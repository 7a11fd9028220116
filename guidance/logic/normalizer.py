"""
Input Normalizer

Turns a possibly-partial raw snapshot into a canonical UserSnapshot:
- Missing optional fields get explicit defaults (empty list, zero, None)
- Malformed list items are dropped (and logged), never fatal
- Out-of-range values are clamped by the contract validators
- The reference time (as_of) is always resolved

Only a missing user id is rejected.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional, Type, Union

from pydantic import BaseModel, TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from .contracts import (
    UserSnapshot,
    AcademicRecord,
    ClinicalProfile,
    PrerequisiteCourse,
    ClinicalEntry,
    ShadowingEntry,
    Certification,
    LeadershipEntry,
    ResearchEntry,
    EventAttendance,
    TargetProgram,
    ActivityEvent,
    Milestone,
    StepDismissal,
    FocusArea,
)
from .errors import ValidationError

logger = logging.getLogger(__name__)

# Reference time used when a snapshot carries no timestamps at all
EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

RECORD_FIELDS: Dict[str, Type[BaseModel]] = {
    "academic": AcademicRecord,
    "clinical_profile": ClinicalProfile,
}

LIST_FIELDS: Dict[str, Type[BaseModel]] = {
    "prerequisites": PrerequisiteCourse,
    "clinical_entries": ClinicalEntry,
    "shadowing_entries": ShadowingEntry,
    "certifications": Certification,
    "leadership_entries": LeadershipEntry,
    "research_entries": ResearchEntry,
    "events_attended": EventAttendance,
    "target_programs": TargetProgram,
    "activity_log": ActivityEvent,
    "milestones": Milestone,
    "dismissed_steps": StepDismissal,
    "primary_focus_areas": FocusArea,
}

COUNT_FIELDS = (
    "volunteering_count",
    "organization_count",
    "eq_reflection_count",
    "letter_request_count",
)

FLAG_FIELDS = (
    "resume_completed",
    "personal_statement_started",
    "personal_statement_completed",
)

ID_LIST_FIELDS = ("saved_program_ids", "completed_actions")

_datetime_adapter = TypeAdapter(datetime)


def normalize_snapshot(raw: Union[UserSnapshot, Mapping[str, Any]]) -> UserSnapshot:
    """
    Validate and default a raw snapshot.

    Args:
        raw: A UserSnapshot or a mapping shaped like one

    Returns:
        Canonical UserSnapshot with as_of resolved

    Raises:
        ValidationError: if user_id is missing or blank
    """
    if isinstance(raw, UserSnapshot):
        data = raw.model_dump()
    elif isinstance(raw, Mapping):
        data = dict(raw)
    else:
        raise ValidationError(
            f"Snapshot must be a mapping, got {type(raw).__name__}", field="user_id"
        )

    user_id = data.get("user_id")
    if user_id is None or not str(user_id).strip():
        raise ValidationError("Snapshot is missing required field 'user_id'", field="user_id")
    user_id = str(user_id).strip()

    values: Dict[str, Any] = {"user_id": user_id}

    for name, model in RECORD_FIELDS.items():
        values[name] = _record(data.get(name), model, name, user_id)

    for name, model in LIST_FIELDS.items():
        values[name] = _items(data.get(name), model, name, user_id)

    for name in COUNT_FIELDS:
        values[name] = _count(data.get(name))

    for name in FLAG_FIELDS:
        values[name] = bool(data.get(name) or False)

    for name in ID_LIST_FIELDS:
        values[name] = _ids(data.get(name), name, user_id)

    values["last_activity_at"] = _timestamps(data.get("last_activity_at"), user_id)
    values["as_of"] = _datetime(data.get("as_of"))

    snapshot = UserSnapshot(**values)
    if snapshot.as_of is None:
        snapshot = snapshot.model_copy(update={"as_of": resolve_reference_time(snapshot)})
    return snapshot


def resolve_reference_time(snapshot: UserSnapshot) -> datetime:
    """
    The instant time-relative rules are evaluated against.

    Uses as_of when given; otherwise the latest timestamp recorded in the
    snapshot, so the result never depends on the wall clock.
    """
    if snapshot.as_of is not None:
        return snapshot.as_of

    candidates: List[datetime] = [a.occurred_at for a in snapshot.activity_log]
    candidates.extend(snapshot.last_activity_at.values())
    candidates.extend(d.dismissed_at for d in snapshot.dismissed_steps)
    return max(candidates) if candidates else EPOCH


# =============================================================================
# HELPERS
# =============================================================================

def _record(value: Any, model: Type[BaseModel], name: str, user_id: str) -> BaseModel:
    if value is None:
        return model()
    if isinstance(value, model):
        return value
    try:
        return model.model_validate(value)
    except PydanticValidationError as e:
        logger.warning(f"Snapshot {user_id}: invalid {name} replaced with defaults ({e.error_count()} errors)")
        return model()


def _items(value: Any, model: Type[BaseModel], name: str, user_id: str) -> List[BaseModel]:
    if value is None:
        return []
    if not isinstance(value, (list, tuple)):
        logger.warning(f"Snapshot {user_id}: {name} is not a list, ignoring")
        return []

    items = []
    dropped = 0
    for item in value:
        if isinstance(item, model):
            items.append(item)
            continue
        try:
            items.append(model.model_validate(item))
        except PydanticValidationError:
            dropped += 1

    if dropped:
        logger.warning(f"Snapshot {user_id}: dropped {dropped} malformed {name} item(s)")
    return items


def _ids(value: Any, name: str, user_id: str) -> List[str]:
    if value is None:
        return []
    if not isinstance(value, (list, tuple)):
        logger.warning(f"Snapshot {user_id}: {name} is not a list, ignoring")
        return []
    return [str(v) for v in value if v is not None]


def _count(value: Any) -> int:
    try:
        return max(0, int(value or 0))
    except (TypeError, ValueError):
        return 0


def _datetime(value: Any) -> Optional[datetime]:
    if value is None:
        return None
    try:
        parsed = _datetime_adapter.validate_python(value)
    except PydanticValidationError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _timestamps(value: Any, user_id: str) -> Dict[str, datetime]:
    if not isinstance(value, Mapping):
        return {}
    result = {}
    for category, raw_ts in value.items():
        ts = _datetime(raw_ts)
        if ts is None:
            logger.warning(f"Snapshot {user_id}: ignoring unparseable last_activity_at[{category}]")
            continue
        result[str(category)] = ts
    return result
