"""Form validation shared by the API and the client-side submission flow.

Each validator returns a dict of ``field -> message``; an empty dict means the
data is valid. Nothing here touches the database or the network.
"""

import re
from typing import Any, Dict, Optional
from urllib.parse import urlparse

from models import RESOURCE_TYPES, REQUEST_PRIORITIES

RESOURCE_DESCRIPTION_MIN = 10
REQUEST_DESCRIPTION_MIN = 20

CATEGORY_FIELDS = {
    "university": "subject_id",
    "skill": "skill_id",
    "competitive": "exam_id",
}

_EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


def _text(data: Dict[str, Any], key: str) -> str:
    value = data.get(key)
    if value is None:
        return ""
    return str(value).strip()


def _is_set(value: Any) -> bool:
    return value is not None and value != ""


def is_valid_url(value: str) -> bool:
    try:
        parsed = urlparse(value)
    except ValueError:
        return False
    return bool(parsed.scheme) and bool(parsed.netloc) and " " not in value


def is_valid_email(value: str) -> bool:
    return bool(_EMAIL_RE.match(value or ""))


def chosen_category(data: Dict[str, Any]) -> Optional[str]:
    """The resource type implied by the category ids, or None unless exactly one is set."""
    chosen = [t for t, field in CATEGORY_FIELDS.items() if _is_set(data.get(field))]
    return chosen[0] if len(chosen) == 1 else None


def validate_resource(data: Dict[str, Any]) -> Dict[str, str]:
    """Validate a complete resource. Edits are merged into the stored
    resource first and checked as a whole."""
    errors: Dict[str, str] = {}

    if not _text(data, "title"):
        errors["title"] = "Resource title is required"

    description = _text(data, "description")
    if not description:
        errors["description"] = "Description is required"
    elif len(description) < RESOURCE_DESCRIPTION_MIN:
        errors["description"] = f"Description must be at least {RESOURCE_DESCRIPTION_MIN} characters long"

    url = _text(data, "url")
    if not url:
        errors["url"] = "URL is required"
    elif not is_valid_url(url):
        errors["url"] = "Please enter a valid URL"

    set_fields = [field for field in CATEGORY_FIELDS.values() if _is_set(data.get(field))]
    if not set_fields:
        errors["category"] = "Please select a subject, skill or exam"
    elif len(set_fields) > 1:
        errors["category"] = "A resource belongs to exactly one of subject, skill or exam"

    resource_type = data.get("type")
    if _is_set(resource_type):
        if resource_type not in RESOURCE_TYPES:
            errors["type"] = "Please select a resource type"
        elif "category" not in errors and chosen_category(data) != resource_type:
            errors["type"] = f"A {resource_type} resource needs {CATEGORY_FIELDS[resource_type]}"

    return errors


def validate_request(data: Dict[str, Any]) -> Dict[str, str]:
    errors: Dict[str, str] = {}

    if not _text(data, "title"):
        errors["title"] = "Request title is required"

    description = _text(data, "description")
    if not description:
        errors["description"] = "Description is required"
    elif len(description) < REQUEST_DESCRIPTION_MIN:
        errors["description"] = f"Description must be at least {REQUEST_DESCRIPTION_MIN} characters long"

    request_type = data.get("type")
    if not request_type or request_type not in RESOURCE_TYPES:
        errors["type"] = "Please select a resource type"

    priority = data.get("priority") or "medium"
    if priority not in REQUEST_PRIORITIES:
        errors["priority"] = "Please select a priority level"

    email = _text(data, "contact_email")
    if email and not is_valid_email(email):
        errors["contact_email"] = "Please enter a valid email address"

    if request_type == "university":
        if not _is_set(data.get("subject_id")):
            errors["subject_id"] = "Please select a subject"
    elif request_type == "skill":
        if not _text(data, "skill"):
            errors["skill"] = "Skill name is required"
    elif request_type == "competitive":
        if not _text(data, "exam"):
            errors["exam"] = "Exam name is required"

    return errors
