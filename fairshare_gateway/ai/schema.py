from __future__ import annotations

import json
import math
import re
from typing import Any, Dict, List, Tuple

from fairshare_gateway.errors import MalformedProviderResponse
from fairshare_gateway.models import BillExtractionResult, BillPeriod, BillType


# Comma-grouped amounts that cannot be read as a decimal comma:
# "1,234.50" (dot decimal present) or "1,234,567" (two or more groups).
_GROUPED_NUMBER = re.compile(r"^[+-]?\d{1,3}(?:(?:,\d{3})+\.\d+|(?:,\d{3}){2,})$")


def dig(data: Any, path: str) -> Any:
    """Follow a dotted path such as `choices.0.message.content`.

    Integer segments index lists; returns None when any hop is missing.
    """
    cur = data
    for seg in path.split("."):
        if isinstance(cur, list):
            if not seg.isdigit() or int(seg) >= len(cur):
                return None
            cur = cur[int(seg)]
        elif isinstance(cur, dict):
            if seg not in cur:
                return None
            cur = cur[seg]
        else:
            return None
    return cur


def extract_json_from_text(provider_id: str, text: Any) -> Dict[str, Any]:
    """Parse the JSON object a model embedded in its text answer.

    Models occasionally wrap JSON in markdown fences or add stray prose,
    so after a direct parse fails we take the substring from the first '{'
    to the last '}'.
    """
    if not isinstance(text, str):
        raise MalformedProviderResponse(provider_id, "model answer is not text")

    try:
        obj0 = json.loads(text.strip())
        if isinstance(obj0, dict):
            return obj0
    except ValueError:
        pass

    start = text.find("{")
    end = text.rfind("}")
    if start == -1 or end <= start:
        raise MalformedProviderResponse(provider_id, "no JSON object in model answer")

    try:
        obj = json.loads(text[start : end + 1])
    except ValueError as e:
        raise MalformedProviderResponse(provider_id, f"invalid JSON in model answer: {e}") from e
    if not isinstance(obj, dict):
        raise MalformedProviderResponse(provider_id, "model answer JSON is not an object")
    return obj


def _number(provider_id: str, value: Any, field: str) -> float:
    """Missing -> 0; numbers pass through; numeric strings are parsed."""
    if value is None or value == "":
        return 0
    if isinstance(value, bool):
        raise MalformedProviderResponse(provider_id, f"{field} is not a number")
    if isinstance(value, (int, float)):
        if isinstance(value, float) and not math.isfinite(value):
            raise MalformedProviderResponse(provider_id, f"{field} is not a finite number")
        return value
    if isinstance(value, str):
        s = value.strip()
        if "," in s:
            # "12,50" and "1,250" are ambiguous.
            if not _GROUPED_NUMBER.match(s):
                raise MalformedProviderResponse(provider_id, f"{field} is not a number: {value!r}")
            s = s.replace(",", "")
        try:
            parsed = float(s)
        except ValueError:
            raise MalformedProviderResponse(provider_id, f"{field} is not a number: {value!r}")
        if math.isfinite(parsed):
            return parsed
    raise MalformedProviderResponse(provider_id, f"{field} is not a number")


def _merge_periods(provider_id: str, raw: Any) -> Tuple[BillPeriod, ...]:
    """Sum usage blocks sharing a date range; keep first-seen order."""
    if raw is None:
        return ()
    if not isinstance(raw, list):
        raise MalformedProviderResponse(provider_id, "periods is not a list")

    totals: Dict[Tuple[str, str], float] = {}
    order: List[Tuple[str, str]] = []
    for i, item in enumerate(raw):
        if not isinstance(item, dict):
            raise MalformedProviderResponse(provider_id, f"periods[{i}] is not an object")
        key = (str(item.get("startDate") or ""), str(item.get("endDate") or ""))
        cost = _number(provider_id, item.get("usageCost"), f"periods[{i}].usageCost")
        if key not in totals:
            order.append(key)
            totals[key] = cost
        else:
            totals[key] = totals[key] + cost

    return tuple(BillPeriod(start_date=s, end_date=e, usage_cost=totals[(s, e)]) for s, e in order)


def normalize_bill_result(provider_id: str, obj: Dict[str, Any]) -> BillExtractionResult:
    """Turn a provider's JSON object into the canonical BillExtractionResult."""
    raw_type = str(obj.get("type") or "").strip().upper()
    try:
        bill_type = BillType(raw_type)
    except ValueError:
        raise MalformedProviderResponse(provider_id, f"unknown bill type: {obj.get('type')!r}")

    name = obj.get("suggestedName")
    return BillExtractionResult(
        type=bill_type,
        suggested_name="" if name is None else str(name),
        periods=_merge_periods(provider_id, obj.get("periods")),
        supply_cost=_number(provider_id, obj.get("supplyCost"), "supplyCost"),
        sewerage_cost=_number(provider_id, obj.get("sewerageCost"), "sewerageCost"),
    )
