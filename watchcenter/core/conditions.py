"""
Condition evaluation functions for Disaster Watch alerting.

This module contains pure functions that decide whether an event
satisfies the typed conditions of an alert rule. Evaluation never
raises: a missing field or an unknown operator fails the condition.
"""

import math
from typing import Any, Dict, Iterable
from .models import AlertCondition, EmergencyEvent

# 필드가 존재하지 않음을 나타내는 센티넬
MISSING = object()


def _event_mapping(event: EmergencyEvent) -> Dict[str, Any]:
    """이벤트를 snake_case/camelCase 키를 모두 가진 dict로 변환합니다."""
    data = event.model_dump()
    data.update(event.model_dump(by_alias=True))
    return data


def resolve_field(event: EmergencyEvent, field: str) -> Any:
    """
    이벤트에서 필드 값을 조회합니다.

    점(.)이 포함된 필드는 중첩 dict 경로로 탐색합니다
    (예: "sourceData.magnitude"). 리스트는 정수 인덱스 세그먼트를 허용합니다.

    Args:
        event: 조회 대상 이벤트
        field: 필드 이름 또는 점 경로

    Returns:
        필드 값, 없으면 MISSING
    """
    data = _event_mapping(event)
    if "." not in field:
        return data.get(field, MISSING)

    current: Any = data
    for part in field.split("."):
        if isinstance(current, dict):
            if part not in current:
                return MISSING
            current = current[part]
        elif isinstance(current, (list, tuple)) and part.isdigit():
            idx = int(part)
            if idx >= len(current):
                return MISSING
            current = current[idx]
        else:
            return MISSING
    return current


def _to_number(value: Any) -> float:
    """숫자로 변환합니다. 변환할 수 없으면 NaN을 반환합니다."""
    if isinstance(value, bool):
        return math.nan
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value.strip())
        except ValueError:
            return math.nan
    return math.nan


def _stringify(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _equals(field_value: Any, value: Any) -> bool:
    # bool과 숫자는 서로 같지 않은 것으로 취급
    if isinstance(field_value, bool) != isinstance(value, bool):
        return False
    return field_value == value


def _contains(field_value: Any, value: Any) -> bool:
    return _stringify(value).lower() in _stringify(field_value).lower()


def _greater_than(field_value: Any, value: Any) -> bool:
    return _to_number(field_value) > _to_number(value)


def _less_than(field_value: Any, value: Any) -> bool:
    return _to_number(field_value) < _to_number(value)


_OPERATORS = {
    "equals": _equals,
    "contains": _contains,
    "greater_than": _greater_than,
    "less_than": _less_than,
}


def evaluate(condition: AlertCondition, event: EmergencyEvent) -> bool:
    """
    단일 조건을 평가합니다.

    Args:
        condition: 평가할 조건
        event: 대상 이벤트

    Returns:
        조건 충족 여부
    """
    # in_area는 미구현: 지오펜싱 알고리즘 없이 항상 True
    if condition.operator == "in_area":
        return True

    op = _OPERATORS.get(condition.operator)
    if op is None:
        return False

    field_value = resolve_field(event, condition.field)
    if field_value is MISSING or field_value is None:
        return False

    try:
        return bool(op(field_value, condition.value))
    except Exception:
        return False


def evaluate_all(conditions: Iterable[AlertCondition], event: EmergencyEvent) -> bool:
    """모든 조건을 AND로 평가합니다. 빈 목록은 True입니다."""
    return all(evaluate(c, event) for c in conditions)
