from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, List, Optional, Tuple

from core.exceptions import NotFoundException, ValidationException
from services.storage import PredictionSet, PredictionStore

logger = logging.getLogger(__name__)

NAME_MAX_LENGTH = 30
TEAMS_PER_LEAGUE = 15

# Trimmed from names: Unicode space separators, tab, line terminators and the BOM.
# Unlike str.strip(), this keeps \x1c-\x1f and \x85 but removes \ufeff.
NAME_WHITESPACE = (
    "\t\n\v\f\r \u00a0\u1680"
    "\u2000\u2001\u2002\u2003\u2004\u2005\u2006\u2007\u2008\u2009\u200a"
    "\u2028\u2029\u202f\u205f\u3000\ufeff"
)

NAME_ERROR = "Name is required (max 30 chars)."
TEAMS_ERROR = "Must provide exactly 15 AL and 15 NL teams."
NOT_FOUND_ERROR = "Player not found."


def format_timestamp(moment: datetime) -> str:
    """ISO-8601 in UTC with millisecond precision, e.g. 2026-04-01T17:05:00.000Z."""
    moment = moment.astimezone(timezone.utc)
    return moment.strftime("%Y-%m-%dT%H:%M:%S.") + f"{moment.microsecond // 1000:03d}Z"


def _is_team_list(value: Any) -> bool:
    return isinstance(value, list) and len(value) == TEAMS_PER_LEAGUE


def validate_submission(payload: Any) -> Tuple[str, List[Any], List[Any]]:
    """
    Check a submission body and return ``(trimmed_name, al, nl)``.

    The name is checked before the team lists, so a body that fails both
    reports the name problem.
    """
    if not isinstance(payload, dict):
        payload = {}

    name = payload.get("name")
    if not isinstance(name, str):
        raise ValidationException(NAME_ERROR)
    name = name.strip(NAME_WHITESPACE)
    if not name or len(name) > NAME_MAX_LENGTH:
        raise ValidationException(NAME_ERROR)

    al, nl = payload.get("al"), payload.get("nl")
    if not _is_team_list(al) or not _is_team_list(nl):
        raise ValidationException(TEAMS_ERROR)

    return name, al, nl


def list_predictions(store: PredictionStore) -> PredictionSet:
    data, _ = store.load()
    return data


def submit_prediction(
    store: PredictionStore,
    payload: Any,
    now: Optional[datetime] = None,
) -> int:
    """Validate, then overwrite the entrant's entry. Returns the entry count."""
    name, al, nl = validate_submission(payload)

    data, version = store.load()
    data[name] = {
        "al": al,
        "nl": nl,
        "submittedAt": format_timestamp(now or datetime.now(timezone.utc)),
    }
    store.save(data, version)

    logger.info("Prediction saved", extra={"entrant": name, "total": len(data)})
    return len(data)


def delete_prediction(store: PredictionStore, name: str) -> None:
    data, version = store.load()
    if name not in data:
        raise NotFoundException(NOT_FOUND_ERROR)

    del data[name]
    store.save(data, version)

    logger.info("Prediction deleted", extra={"entrant": name, "total": len(data)})
