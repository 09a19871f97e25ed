# backend/checkin_api/api/integrations_cognito.py
"""
Inbound Cognito Forms webhooks.

Helps Member endpoints acknowledge first and do the database work in a
background task (Cognito retries on slow responses); a retried entry is
dropped by the dedup cache. Set COGNITO_ACK_FIRST=false to run inline and
get the full result back, which is handy while wiring up a new form.
"""
from __future__ import annotations

import hmac
import logging
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Optional

from fastapi import APIRouter, BackgroundTasks, Body, Depends, Request
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from checkin_api import config
from checkin_api.dependencies import get_db
from checkin_api.services.cognito import mapping, processor
from checkin_api.services.cognito.dedup import TTLDedup
from checkin_api.services.cognito.processor import WebhookError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/integrations/cognito", tags=["Integrations"])

dedup = TTLDedup()

HEADER_SECRET = "x-nlm-webhook-secret"


# ---- Request helpers -------------------------------------------------------------

def mask_secret(value: Optional[str]) -> str:
    s = value or ""
    if not s:
        return ""
    if len(s) <= 4:
        return "*" * len(s)
    return f"{s[:2]}***{s[-2:]}"


def _ip_chain(request: Request) -> str:
    return (
        request.headers.get("cf-connecting-ip")
        or request.headers.get("x-forwarded-for")
        or (request.client.host if request.client else "")
    )


def verify_webhook_secret(request: Request) -> str:
    """Returns where the secret came from (for logs)."""
    expected = config.cognito_webhook_secret()
    if not expected:
        raise WebhookError(500, "COGNITO_WEBHOOK_SECRET is not set (webhook endpoints are disabled).")

    header_secret = (request.headers.get(HEADER_SECRET) or "").strip()
    query_secret = (request.query_params.get("secret") or "").strip()
    if header_secret:
        source, got = f"header:{HEADER_SECRET}", header_secret
    elif query_secret:
        source, got = "query:secret", query_secret
    else:
        source, got = "none", ""

    if not got or not hmac.compare_digest(got.encode("utf-8"), expected.encode("utf-8")):
        logger.warning(
            "[Cognito] Invalid webhook secret endpoint=%s ip=%s source=%s got=%s expected=%s",
            request.url.path, _ip_chain(request), source, mask_secret(got), mask_secret(expected),
        )
        raise WebhookError(401, "Invalid webhook secret")
    return source


def _log_hit(label: str, request: Request, source: str, body: Any) -> None:
    logger.info(
        "[Cognito %s] HIT at=%s endpoint=%s ip=%s secretSource=%s body_top_keys=%s unwrapped_keys=%s",
        label,
        datetime.now(timezone.utc).isoformat(),
        f"{request.method} {request.url.path}",
        _ip_chain(request),
        source,
        mapping.top_keys(body),
        mapping.top_keys(mapping.unwrap(body)),
    )


def _deduped(endpoint: str, entry: Optional[str]) -> Optional[Dict[str, Any]]:
    if dedup.check_and_mark(endpoint, entry):
        logger.info("[Cognito] duplicate delivery %s::%s ignored", endpoint, entry)
        return {"ok": True, "queued": False, "deduped": True, "entry_id": entry}
    return None


def _error(exc: WebhookError, debug: Optional[Dict[str, Any]] = None) -> JSONResponse:
    content: Dict[str, Any] = {"ok": False, "message": exc.message}
    if debug is not None:
        content["debug"] = debug
    return JSONResponse(status_code=exc.status_code, content=content)


def _inline(db: Session, endpoint: str, entry: Optional[str],
            operation: Callable[..., Dict[str, Any]], *args: Any,
            debug: Optional[Dict[str, Any]] = None):
    """Runs `operation` now; on failure the dedup mark is dropped so a retry is processed."""
    try:
        result = operation(db, *args)
    except WebhookError as exc:
        db.rollback()
        dedup.forget(endpoint, entry)
        return _error(exc, debug)
    except SQLAlchemyError:
        logger.exception("[Cognito] %s failed for entry %s", endpoint, entry)
        db.rollback()
        dedup.forget(endpoint, entry)
        return _error(WebhookError(500, "Database error"), debug)
    except Exception:
        dedup.forget(endpoint, entry)
        raise
    if debug is not None:
        result = {**result, "debug": debug}
    return result


# ---- Legacy volunteer ministry forms (always inline) ---------------------------------

@router.post("/volunteer-ministry/add")
def volunteer_ministry_add(
    request: Request,
    body: Any = Body(None),
    secret_source: str = Depends(verify_webhook_secret),
    db: Session = Depends(get_db),
):
    _log_hit("ADD legacy", request, secret_source, body)
    mapped = mapping.map_volunteer_addition(body)
    logger.info("[Cognito ADD legacy] payload %s", mapped)
    endpoint, entry = "volunteer-ministry/add", mapping.entry_id(body)
    dup = _deduped(endpoint, entry)
    if dup:
        return dup
    return _inline(db, endpoint, entry, processor.handle_add_or_attach, mapped, True)


@router.post("/volunteer-ministry/remove")
def volunteer_ministry_remove(
    request: Request,
    body: Any = Body(None),
    secret_source: str = Depends(verify_webhook_secret),
    db: Session = Depends(get_db),
):
    _log_hit("REMOVE legacy", request, secret_source, body)
    mapped = mapping.map_volunteer_removal(body)
    logger.info("[Cognito REMOVE legacy] payload %s", mapped)
    endpoint, entry = "volunteer-ministry/remove", mapping.entry_id(body)
    dup = _deduped(endpoint, entry)
    if dup:
        return dup
    return _inline(db, endpoint, entry, processor.handle_legacy_remove, mapped)


# ---- Helps Member form -------------------------------------------------------------

def _helps_attach(label: str, endpoint: str, request: Request, body: Any, secret_source: str,
                  background_tasks: BackgroundTasks, db: Session):
    _log_hit(label, request, secret_source, body)
    mapped = mapping.map_helps_member(body)
    logger.info("[Cognito %s] mapped payload %s", label, mapped)

    # Only an explicit "Yes" may create a person; blank or unrecognised means look up only.
    allow_create = mapped["is_new"] is True
    debug = {
        "form_id": mapped["form_id"],
        "form_internal": mapped["form_internal"],
        "is_new_raw": mapped["raw_is_new"],
        "allowCreate": allow_create,
        "secretSource": secret_source,
    }

    try:
        processor.validate_attach(mapped)
    except WebhookError as exc:
        return _error(exc, debug)

    entry = mapping.entry_id(body)
    dup = _deduped(endpoint, entry)
    if dup:
        return dup

    if not config.cognito_ack_first():
        return _inline(db, endpoint, entry, processor.handle_add_or_attach, mapped, allow_create, debug=debug)

    background_tasks.add_task(processor.run_detached, label, processor.handle_add_or_attach, mapped, allow_create)
    return {"ok": True, "queued": True, "deduped": False, "entry_id": entry}


@router.post("/helps-member/submit")
def helps_member_submit(
    request: Request,
    background_tasks: BackgroundTasks,
    body: Any = Body(None),
    secret_source: str = Depends(verify_webhook_secret),
    db: Session = Depends(get_db),
):
    return _helps_attach("HELPS SUBMIT", "helps-member/submit", request, body, secret_source, background_tasks, db)


@router.post("/helps-member/update")
def helps_member_update(
    request: Request,
    background_tasks: BackgroundTasks,
    body: Any = Body(None),
    secret_source: str = Depends(verify_webhook_secret),
    db: Session = Depends(get_db),
):
    # Re-runs the attach: a changed ministry is attached, identity fields are not rewritten.
    return _helps_attach("HELPS UPDATE", "helps-member/update", request, body, secret_source, background_tasks, db)


@router.post("/helps-member/delete")
def helps_member_delete(
    request: Request,
    body: Any = Body(None),
    secret_source: str = Depends(verify_webhook_secret),
):
    """Deleting a form entry never removes ministry assignments."""
    _log_hit("HELPS DELETE", request, secret_source, body)
    mapped = mapping.map_helps_member(body)
    logger.info("[Cognito HELPS DELETE] mapped payload %s", mapped)
    return {
        "ok": True,
        "action": "noop",
        "message": "Delete endpoint received. No DB changes performed.",
        "debug": {
            "form_id": mapped["form_id"],
            "form_internal": mapped["form_internal"],
            "secretSource": secret_source,
        },
    }


@router.post("/helps-member/remove")
def helps_member_remove(
    request: Request,
    background_tasks: BackgroundTasks,
    body: Any = Body(None),
    secret_source: str = Depends(verify_webhook_secret),
    db: Session = Depends(get_db),
):
    label = "HELPS REMOVE"
    _log_hit(label, request, secret_source, body)
    mapped = mapping.map_helps_removal(body)
    logger.info("[Cognito %s] mapped payload %s", label, mapped)
    debug = {
        "form_id": mapped["form_id"],
        "form_internal": mapped["form_internal"],
        "change_types": mapped["change_types"],
        "membership_action": mapped["membership_action"],
        "secretSource": secret_source,
    }

    try:
        is_removal = processor.validate_removal(mapped)
    except WebhookError as exc:
        return _error(exc, debug)

    if not is_removal:
        logger.info("[Cognito %s] not a membership removal; no changes", label)
        return {"ok": True, "queued": False, "action": "noop", "message": "Not a membership removal", "debug": debug}

    endpoint, entry = "helps-member/remove", mapping.entry_id(body)
    dup = _deduped(endpoint, entry)
    if dup:
        return dup

    if not config.cognito_ack_first():
        return _inline(db, endpoint, entry, processor.handle_removal, mapped, debug=debug)

    background_tasks.add_task(processor.run_detached, label, processor.handle_removal, mapped)
    return {"ok": True, "queued": True, "deduped": False, "entry_id": entry}
