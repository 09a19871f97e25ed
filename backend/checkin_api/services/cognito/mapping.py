# checkin_api/services/cognito/mapping.py
"""
Field mapping for Cognito Forms webhooks.

Cognito posts the entry either at the top level or wrapped (`entry`,
`entries[0]`, `data`, `fields`), and field names drift between form
revisions. Every logical field therefore has an ordered list of candidate
keys; the first present, non-empty value wins.
"""
from __future__ import annotations

import re
from typing import Any, Dict, Iterable, List, Optional, Sequence

_YES = {"yes", "y", "true", "1"}
_NO = {"no", "n", "false", "0"}

ENTRY_ID_KEYS = ("Entry.Id", "Entry.Number", "EntryId", "entry_id", "Id")

# ---- legacy "Volunteer Ministry Addition" form
ADD_FIRST_NAME = ("first_name", "Firstname", "FirstName", "x3")
ADD_LAST_NAME = ("last_name", "LastName", "Lastname", "x5")
ADD_EMAIL = ("email", "Email", "x6")
ADD_MINISTRY = ("ministry", "ApprovedMinistry", "Ministry", "x8")
ADD_PHONE = ("phone", "Phone", "x9")

# ---- legacy removal form
REMOVE_EMAIL = ("email", "Email", "Email Address", "E-mail")
REMOVE_PHONE = ("phone", "Phone", "Phone Number", "Mobile", "Cell")
REMOVE_MINISTRY = (
    "ministry", "ministry_name", "RemovedMinistry", "Removed Ministry",
    "MinistryRemoved", "Ministry Removed", "MinistryToRemove", "Ministry to Remove",
)

# ---- Helps Member form
HELPS_MINISTRY = ("ministry", "ministry_approved_for", "MinistryApprovedFor", "Ministry Approved For")
HELPS_IS_NEW = (
    "is_individual_new_to_helps_ministry",
    "IsIndividualNewToHelpsMinistry",
    "Is Individual New To Helps Ministry",
)

# ---- Helps Member change/removal form
CHANGE_TYPE = ("change_type", "ChangeType", "TypeOfChange", "Type of Change", "ChangesRequested", "change_types")
MEMBERSHIP_ACTION = ("membership_action", "MembershipAction", "Membership Action", "MembershipChange")
REMOVE_MINISTRIES = (
    "ministries_to_remove", "MinistriesToRemove", "Ministries to Remove",
    "ministry_to_remove", "MinistryToRemove", "ministries", "Ministries", "ministry", "Ministry",
)


def _present(value: Any) -> Any:
    """Strings are trimmed; blank strings and None count as absent."""
    if value is None:
        return None
    if isinstance(value, str):
        value = value.strip()
        return value or None
    return value


def _dig(obj: Any, path: str) -> Any:
    cur = obj
    for part in path.split("."):
        if not isinstance(cur, dict) or part not in cur:
            return None
        cur = cur[part]
    return cur


def pick(obj: Any, keys: Sequence[str]) -> Any:
    """
    First present non-empty value among `keys`. A dotted key is tried as a
    literal key first, then as a path into nested objects ("Name.First").
    """
    if not isinstance(obj, dict):
        return None
    for key in keys:
        if key in obj:
            value = _present(obj[key])
            if value is not None:
                return value
        if "." in key:
            value = _present(_dig(obj, key))
            if value is not None:
                return value
    return None


def pick_str(obj: Any, keys: Sequence[str]) -> Optional[str]:
    value = pick(obj, keys)
    if value is None or isinstance(value, (dict, list)):
        return None
    return str(value).strip() or None


def unwrap(body: Any) -> Dict[str, Any]:
    if not isinstance(body, dict):
        return {}
    for key in ("entry", "entries", "data", "fields"):
        inner = body.get(key)
        if key == "entries":
            if isinstance(inner, list) and inner and isinstance(inner[0], dict):
                return inner[0]
            continue
        if isinstance(inner, dict) and inner:
            return inner
    return body


def parse_yes_no(value: Any) -> Optional[bool]:
    s = str(value if value is not None else "").strip().lower()
    if s in _YES:
        return True
    if s in _NO:
        return False
    return None


def entry_id(body: Any) -> Optional[str]:
    """Cognito entry identifier used for dedup; None when the payload carries none."""
    for source in (unwrap(body), body):
        value = pick(source, ENTRY_ID_KEYS)
        if value is not None and not isinstance(value, (dict, list)):
            return str(value)
    return None


def top_keys(obj: Any) -> List[str]:
    return list(obj.keys()) if isinstance(obj, dict) else []


# ---- Mappers ----------------------------------------------------------------------

def map_volunteer_addition(body: Any) -> Dict[str, Optional[str]]:
    e = unwrap(body)
    return {
        "first_name": pick_str(e, ADD_FIRST_NAME),
        "last_name": pick_str(e, ADD_LAST_NAME),
        "email": pick_str(e, ADD_EMAIL),
        "phone": pick_str(e, ADD_PHONE),
        "ministry": pick_str(e, ADD_MINISTRY),
    }


def map_volunteer_removal(body: Any) -> Dict[str, Optional[str]]:
    e = unwrap(body)
    return {
        "email": pick_str(e, REMOVE_EMAIL),
        "phone": pick_str(e, REMOVE_PHONE),
        "ministry": pick_str(e, REMOVE_MINISTRY),
    }


def _helps_names(e: Dict[str, Any]) -> Dict[str, Optional[str]]:
    # Hidden snake_case fields first, then the form's own Name block.
    first = pick_str(e, ("first_name",)) or pick_str(e, ("FirstName",)) or pick_str(e, ("Name.First", "NameFirst"))
    last = pick_str(e, ("last_name",)) or pick_str(e, ("LastName",)) or pick_str(e, ("Name.Last", "NameLast"))
    return {"first_name": first, "last_name": last}


def _form_meta(e: Dict[str, Any]) -> Dict[str, Optional[str]]:
    form = e.get("Form") if isinstance(e.get("Form"), dict) else {}
    return {
        "form_id": pick_str(form, ("Id",)),
        "form_internal": pick_str(form, ("InternalName",)),
    }


def map_helps_member(body: Any) -> Dict[str, Any]:
    e = unwrap(body)
    raw_is_new = pick_str(e, HELPS_IS_NEW)
    mapped: Dict[str, Any] = {}
    mapped.update(_helps_names(e))
    mapped.update(
        {
            "email": pick_str(e, ("email", "Email")),
            "phone": pick_str(e, ("phone", "Phone")),
            "ministry": pick_str(e, HELPS_MINISTRY),
            "is_new": parse_yes_no(raw_is_new),
            "raw_is_new": raw_is_new,
        }
    )
    mapped.update(_form_meta(e))
    return mapped


def split_list(value: Any) -> List[str]:
    """
    Checkbox fields arrive as lists; text fields as comma/semicolon/newline
    separated strings. Blank items are dropped and duplicates collapsed
    case-insensitively (first spelling wins).
    """
    if value is None:
        return []
    items: Iterable[Any] = value if isinstance(value, (list, tuple)) else re.split(r"[,;\n]+", str(value))
    out: List[str] = []
    seen = set()
    for item in items:
        s = str(item or "").strip()
        if s and s.lower() not in seen:
            seen.add(s.lower())
            out.append(s)
    return out


def map_helps_removal(body: Any) -> Dict[str, Any]:
    e = unwrap(body)
    mapped: Dict[str, Any] = {}
    mapped.update(_helps_names(e))
    mapped.update(
        {
            "email": pick_str(e, ("email", "Email")),
            "phone": pick_str(e, ("phone", "Phone")),
            "change_types": split_list(pick(e, CHANGE_TYPE)),
            "membership_action": pick_str(e, MEMBERSHIP_ACTION),
            "ministries": split_list(pick(e, REMOVE_MINISTRIES)),
        }
    )
    mapped.update(_form_meta(e))
    return mapped


def is_membership_removal(change_types: Iterable[str], membership_action: Optional[str]) -> bool:
    """Both a 'membership' change tag and a 'remove' action are required."""
    has_tag = any("membership" in str(t).lower() for t in change_types)
    removing = "remove" in (membership_action or "").lower()
    return has_tag and removing
