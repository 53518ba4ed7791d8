"""
hypothesis를 활용한 conditions 모듈 테스트

이 모듈은 규칙 조건 평가 함수의 속성 기반 테스트와
경계 사례 테스트를 수행합니다.
"""

import pytest
from datetime import datetime, timezone
from hypothesis import given, strategies as st

from watchcenter.core.conditions import MISSING, evaluate, evaluate_all, resolve_field
from watchcenter.core.models import AlertCondition, EmergencyEvent

TS = datetime(2025, 3, 14, 12, 0, tzinfo=timezone.utc)


def _event(**overrides) -> EmergencyEvent:
    data = {
        "id": "evt-1",
        "type": "earthquake",
        "title": "Quake",
        "severity": "high",
        "location": "Los Angeles, CA",
        "state": "CA",
        "timestamp": TS,
        "source_data": {"magnitude": 6.1, "depth": {"km": 10}, "stations": ["A", "B"]},
    }
    data.update(overrides)
    return EmergencyEvent(**data)


def _cond(field, operator, value=None) -> AlertCondition:
    return AlertCondition(field=field, operator=operator, value=value)


class TestResolveField:
    """필드 조회 테스트"""

    def test_top_level_snake_and_camel(self):
        """최상위 필드는 snake_case/camelCase 모두 조회"""
        event = _event()
        assert resolve_field(event, "severity") == "high"
        assert resolve_field(event, "sourceData") == resolve_field(event, "source_data")

    def test_nested_path(self):
        """점 경로로 중첩 값 조회"""
        event = _event()
        assert resolve_field(event, "sourceData.magnitude") == 6.1
        assert resolve_field(event, "sourceData.depth.km") == 10
        assert resolve_field(event, "sourceData.stations.1") == "B"

    def test_missing_path(self):
        """없는 경로는 MISSING"""
        event = _event()
        assert resolve_field(event, "sourceData.intensity") is MISSING
        assert resolve_field(event, "sourceData.magnitude.value") is MISSING
        assert resolve_field(event, "sourceData.stations.5") is MISSING
        assert resolve_field(event, "nope") is MISSING


class TestEvaluate:
    """단일 조건 평가 테스트"""

    def test_nested_greater_than_true(self):
        """sourceData.magnitude > 5.0 → True"""
        event = _event(source_data={"magnitude": 6.1})
        assert evaluate(_cond("sourceData.magnitude", "greater_than", 5.0), event) is True

    def test_nested_missing_fails_closed(self):
        """sourceData가 비어 있으면 False"""
        event = _event(source_data={})
        assert evaluate(_cond("sourceData.magnitude", "greater_than", 5.0), event) is False

    def test_equals_exact(self):
        """equals는 정확히 일치해야 함"""
        event = _event()
        assert evaluate(_cond("severity", "equals", "high"), event) is True
        assert evaluate(_cond("severity", "equals", "HIGH"), event) is False

    def test_equals_bool_not_number(self):
        """bool과 숫자는 같지 않음"""
        event = _event(source_data={"flag": True, "one": 1})
        assert evaluate(_cond("sourceData.flag", "equals", 1), event) is False
        assert evaluate(_cond("sourceData.one", "equals", True), event) is False
        assert evaluate(_cond("sourceData.flag", "equals", True), event) is True

    def test_contains_case_insensitive(self):
        """contains는 대소문자 무시 부분 문자열"""
        event = _event()
        assert evaluate(_cond("location", "contains", "los angeles"), event) is True
        assert evaluate(_cond("location", "contains", "Seattle"), event) is False

    def test_numeric_string_coercion(self):
        """숫자 문자열은 숫자로 비교"""
        event = _event(source_data={"magnitude": "6.1"})
        assert evaluate(_cond("sourceData.magnitude", "greater_than", "5"), event) is True
        assert evaluate(_cond("sourceData.magnitude", "less_than", 7), event) is True

    def test_non_numeric_comparison_false(self):
        """숫자로 변환할 수 없으면 비교는 False"""
        event = _event(source_data={"magnitude": "strong"})
        assert evaluate(_cond("sourceData.magnitude", "greater_than", 1), event) is False
        assert evaluate(_cond("sourceData.magnitude", "less_than", 1), event) is False

    def test_unknown_operator_false(self):
        """알 수 없는 연산자는 False"""
        assert evaluate(_cond("severity", "matches", "high"), _event()) is False

    def test_in_area_always_true(self):
        """in_area는 항상 True (필드가 없어도)"""
        assert evaluate(_cond("coordinates", "in_area", {"radius": 5}), _event()) is True
        assert evaluate(_cond("nope", "in_area"), _event()) is True

    def test_none_field_value_false(self):
        """필드 값이 None이면 False"""
        event = _event(state=None)
        assert evaluate(_cond("state", "equals", None), event) is False


class TestEvaluateAll:
    """조건 목록 평가 테스트"""

    def test_empty_conditions_true(self):
        """조건이 없으면 True"""
        assert evaluate_all([], _event()) is True

    def test_and_semantics(self):
        """모든 조건이 참이어야 True"""
        event = _event()
        ok = _cond("severity", "equals", "high")
        bad = _cond("severity", "equals", "low")
        assert evaluate_all([ok, ok], event) is True
        assert evaluate_all([ok, bad], event) is False

    @given(
        magnitude=st.floats(min_value=-10, max_value=10, allow_nan=False),
        threshold=st.floats(min_value=-10, max_value=10, allow_nan=False)
    )
    def test_greater_less_consistency(self, magnitude: float, threshold: float):
        """greater_than/less_than은 숫자 비교와 일치"""
        event = _event(source_data={"magnitude": magnitude})
        gt = evaluate(_cond("sourceData.magnitude", "greater_than", threshold), event)
        lt = evaluate(_cond("sourceData.magnitude", "less_than", threshold), event)
        assert gt == (magnitude > threshold)
        assert lt == (magnitude < threshold)
        assert not (gt and lt)

    @given(
        text=st.text(alphabet="abcdefghijklmnopqrstuvwxyz ", min_size=1, max_size=30),
        start=st.integers(min_value=0, max_value=29),
        length=st.integers(min_value=0, max_value=10)
    )
    def test_contains_substring(self, text: str, start: int, length: int):
        """부분 문자열은 대소문자와 관계없이 항상 포함"""
        sub = text[start:start + length]
        event = _event(description=text)
        assert evaluate(_cond("description", "contains", sub.upper()), event) is True

    @given(operator=st.text(min_size=1, max_size=20).filter(
        lambda s: s not in ("equals", "contains", "greater_than", "less_than", "in_area")))
    def test_any_unknown_operator_false(self, operator: str):
        """목록에 없는 연산자는 항상 False"""
        assert evaluate(_cond("severity", operator, "high"), _event()) is False
