"""Status condition bookkeeping.

Conditions are kept as plain dicts, the shape the API server stores them in
``status.conditions``. There is at most one entry per condition type.
"""
from typing import Dict, List, Optional, Tuple
from etcd_operator.utils.helpers import now

CONDITION_INITIALIZED = "Initialized"

STATUS_TRUE = "True"
STATUS_FALSE = "False"

REASON_INITIALIZATION_STARTED = "InitializationStarted"
REASON_INITIALIZATION_COMPLETE = "InitializationComplete"

MESSAGE_INITIALIZATION_STARTED = "Cluster initialization has started"
MESSAGE_INITIALIZATION_COMPLETE = "Cluster initialization is complete"


def find_condition(conditions: List[Dict], type_: str) -> Tuple[int, Optional[Dict]]:
    """Return ``(index, condition)`` of the entry with the given type, or ``(-1, None)``."""
    for i, cond in enumerate(conditions or []):
        if cond.get("type") == type_:
            return i, cond
    return -1, None


def upsert_condition(
    conditions: List[Dict],
    type_: str,
    status: str,
    reason: str,
    message: str,
    observed_generation: int,
    refresh_unchanged: bool = True,
    timestamp: str = None,
) -> List[Dict]:
    """Append a condition of `type_` or overwrite the existing one.

    Status, reason, message and observedGeneration are always written together.
    With `refresh_unchanged` the transition time is stamped on every call, even
    when the status value did not change; otherwise it only moves when the
    status flips.

    The input list is left untouched; a new list is returned.
    """
    conds = [dict(c) for c in (conditions or [])]
    stamp = timestamp or now()
    idx, current = find_condition(conds, type_)
    if current is None:
        conds.append(
            {
                "type": type_,
                "status": status,
                "observedGeneration": observed_generation,
                "lastTransitionTime": stamp,
                "reason": reason,
                "message": message,
            }
        )
        return conds

    ltt = current.get("lastTransitionTime")
    if refresh_unchanged or not ltt or current.get("status") != status:
        ltt = stamp
    conds[idx] = {
        **current,
        "status": status,
        "observedGeneration": observed_generation,
        "lastTransitionTime": ltt,
        "reason": reason,
        "message": message,
    }
    return conds
