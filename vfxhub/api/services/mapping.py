"""
Field-name mapping between the hosted record platform and our records.

The platform names custom columns with a ``_c`` suffix and system columns in
PascalCase. Translation happens once, here, at the repository boundary.
"""

from typing import Any, Dict

# platform field -> canonical (camelCase) field
FIELD_MAPS: Dict[str, Dict[str, str]] = {
    "projects": {
        "Id": "id",
        "title_c": "title",
        "client_c": "client",
        "status_c": "status",
        "due_date_c": "dueDate",
        "description_c": "description",
        "CreatedOn": "createdAt",
    },
    "assets": {
        "Id": "id",
        "file_name_c": "fileName",
        "file_type_c": "fileType",
        "file_size_c": "fileSize",
        "project_id_c": "projectId",
        "upload_date_c": "uploadDate",
        "thumbnail_url_c": "thumbnailUrl",
        "Tags": "tags",
    },
    "milestones": {
        "Id": "id",
        "title_c": "title",
        "description_c": "description",
        "due_date_c": "dueDate",
        "completed_c": "completed",
        "project_id_c": "projectId",
    },
}

# Columns the platform fills in itself and rejects on write
READ_ONLY_FIELDS = {"Id", "CreatedOn"}


def platform_fields(collection: str):
    return list(FIELD_MAPS[collection].keys())


def platform_field(collection: str, canonical: str) -> str:
    for source, target in FIELD_MAPS[collection].items():
        if target == canonical:
            return source
    raise KeyError(f"{collection} has no platform field for {canonical}")


def _lookup_id(value: Any) -> Any:
    # Lookup columns come back as {"Id": 3, "Name": "..."}
    if isinstance(value, dict):
        return value.get("Id")
    return value


def normalize_record(collection: str, raw: Dict[str, Any]) -> Dict[str, Any]:
    """Platform record -> canonical dict. Canonical keys pass through unchanged."""
    mapping = FIELD_MAPS[collection]
    canonical_keys = set(mapping.values())
    record: Dict[str, Any] = {}

    for key, value in raw.items():
        # Empty platform columns fall back to the model defaults
        if value is None:
            continue
        if key in mapping:
            record[mapping[key]] = value
        elif key in canonical_keys:
            record.setdefault(key, value)

    if "projectId" in record:
        record["projectId"] = _lookup_id(record["projectId"])
    if isinstance(record.get("tags"), str):
        record["tags"] = [t.strip() for t in record["tags"].split(",") if t.strip()]
    return record


def denormalize_record(collection: str, data: Dict[str, Any], include_id: bool = False) -> Dict[str, Any]:
    """Canonical dict -> platform record, dropping read-only system columns."""
    reverse = {target: source for source, target in FIELD_MAPS[collection].items()}
    payload: Dict[str, Any] = {}

    for key, value in data.items():
        source = reverse.get(key)
        if source is None:
            continue
        if source in READ_ONLY_FIELDS and not (include_id and source == "Id"):
            continue
        if source == "Tags" and isinstance(value, (list, tuple)):
            value = ",".join(value)
        payload[source] = value
    return payload
