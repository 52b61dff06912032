"""
Collection query engine

Pure filter/sort functions applied to the in-memory project, asset and
milestone collections. Every function returns a new list and never mutates
its input, so a view can be recomputed from scratch whenever criteria change.
"""

from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import Any, Callable, Iterable, List, Mapping, Optional, Sequence, Union

UNKNOWN_PROJECT = "Unknown Project"

ASSET_CATEGORIES = ("image", "video", "model", "other")
MODEL_MARKERS = ("model", "fbx", "obj", "blend", "max")

STATUS_BUCKETS = ("all", "completed", "pending", "overdue", "today")

# Text fields searched per collection, plus the optional tag list
SEARCH_FIELDS = {
    "projects": (("title", "client", "description"), None),
    "assets": (("file_name",), "tags"),
    "milestones": (("title", "description"), None),
}


def _field(record: Any, name: str) -> Any:
    if isinstance(record, Mapping):
        return record.get(name)
    return getattr(record, name, None)


def _today(today: Optional[date]) -> date:
    return today or datetime.now(timezone.utc).date()


def parse_due_date(value: Any) -> Optional[date]:
    """Parse a stored due date into a calendar day, or None when it cannot be read."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or not value.strip():
        return None

    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(text).date()
    except ValueError:
        pass
    try:
        return date.fromisoformat(text[:10])
    except ValueError:
        return None


def coerce_id(value: Union[int, str, None]) -> Optional[int]:
    """Integer id from an int or numeric string; None when it does not parse."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    try:
        return int(str(value).strip())
    except ValueError:
        return None


def filter_by_search_term(
    records: Iterable[Any],
    term: Optional[str],
    fields: Sequence[str],
    tags_field: Optional[str] = None,
) -> List[Any]:
    records = list(records)
    if term is None or not term.strip():
        return records

    needle = term.lower()

    def matches(record) -> bool:
        for name in fields:
            value = _field(record, name)
            if isinstance(value, str) and needle in value.lower():
                return True
        if tags_field:
            for tag in _field(record, tags_field) or ():
                if isinstance(tag, str) and needle in tag.lower():
                    return True
        return False

    return [r for r in records if matches(r)]


def asset_category(file_type: Optional[str]) -> str:
    """Derive image/video/model/other from a MIME or type string."""
    kind = (file_type or "").lower()
    if "image" in kind:
        return "image"
    if "video" in kind:
        return "video"
    if any(marker in kind for marker in MODEL_MARKERS):
        return "model"
    return "other"


def filter_by_category(
    records: Iterable[Any],
    category: Optional[str],
    classify: Callable[[Any], Optional[str]],
) -> List[Any]:
    records = list(records)
    if not category:
        return records
    return [r for r in records if classify(r) == category]


def filter_by_relation(
    records: Iterable[Any],
    related_id: Union[int, str, None],
    field: str = "project_id",
) -> List[Any]:
    records = list(records)
    if related_id is None or (isinstance(related_id, str) and not related_id.strip()):
        return records

    target = coerce_id(related_id)
    if target is None:
        return []
    return [r for r in records if coerce_id(_field(r, field)) == target]


def in_bucket(milestone: Any, bucket: str, today: Optional[date] = None) -> bool:
    completed = bool(_field(milestone, "completed"))
    if bucket == "all":
        return True
    if bucket == "completed":
        return completed
    if bucket == "pending":
        return not completed

    due = parse_due_date(_field(milestone, "due_date"))
    if bucket == "overdue":
        return not completed and due is not None and due < _today(today)
    if bucket == "today":
        return due is not None and due == _today(today)
    raise ValueError(f"Unknown status bucket: {bucket}")


def filter_by_status_bucket(
    milestones: Iterable[Any], bucket: Optional[str], today: Optional[date] = None
) -> List[Any]:
    milestones = list(milestones)
    bucket = bucket or "all"
    if bucket not in STATUS_BUCKETS:
        raise ValueError(f"Unknown status bucket: {bucket}")
    today = _today(today)
    return [m for m in milestones if in_bucket(m, bucket, today)]


def sort_by_due_date(records: Iterable[Any]) -> List[Any]:
    """Stable ascending sort; unreadable due dates go last in their input order."""

    def key(record):
        due = parse_due_date(_field(record, "due_date"))
        return (due is None, due or date.min)

    return sorted(records, key=key)


def status_counts(milestones: Iterable[Any], today: Optional[date] = None) -> dict:
    milestones = list(milestones)
    today = _today(today)
    return {
        bucket: sum(1 for m in milestones if in_bucket(m, bucket, today))
        for bucket in ("completed", "pending", "overdue", "today")
    }


def resolve_project_title(projects: Iterable[Any], project_id: Union[int, str, None]) -> str:
    target = coerce_id(project_id)
    if target is not None:
        for project in projects:
            if coerce_id(_field(project, "id")) == target:
                return _field(project, "title") or UNKNOWN_PROJECT
    return UNKNOWN_PROJECT


@dataclass
class QueryCriteria:
    search: Optional[str] = None
    category: Optional[str] = None
    project_id: Union[int, str, None] = None
    bucket: Optional[str] = None
    sort_by_due_date: bool = False


CATEGORY_CLASSIFIERS = {
    "projects": lambda p: getattr(_field(p, "status"), "value", _field(p, "status")),
    "assets": lambda a: asset_category(_field(a, "file_type")),
}


def apply_query(
    records: Iterable[Any],
    criteria: QueryCriteria,
    collection: str,
    today: Optional[date] = None,
) -> List[Any]:
    """search -> category -> relation -> status bucket, then sort."""
    fields, tags_field = SEARCH_FIELDS[collection]
    result = filter_by_search_term(records, criteria.search, fields, tags_field)

    if criteria.category:
        classify = CATEGORY_CLASSIFIERS.get(collection)
        if classify is None:
            raise ValueError(f"{collection} has no category dimension")
        result = filter_by_category(result, criteria.category, classify)

    result = filter_by_relation(result, criteria.project_id)

    if collection == "milestones":
        result = filter_by_status_bucket(result, criteria.bucket, today)

    if criteria.sort_by_due_date or collection == "milestones":
        result = sort_by_due_date(result)
    return result
