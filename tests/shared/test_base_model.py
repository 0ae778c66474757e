"""Tests for selfheal.shared.domain.base_model"""

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

import pytest

from selfheal.shared.domain.base_model import BaseDomainModel, to_camel_case, to_snake_case


class Color(str, Enum):
    RED = "red"


@dataclass(frozen=True)
class Inner(BaseDomainModel):
    start_line: int


@dataclass(frozen=True)
class Outer(BaseDomainModel):
    file_path: str
    color: Color
    created_at: datetime
    spans: tuple
    note: Optional[str] = None


class TestCaseConversion:
    def test_round_trip(self):
        assert to_camel_case("affected_components") == "affectedComponents"
        assert to_snake_case("affectedComponents") == "affected_components"
        assert to_camel_case("type") == "type"


class TestToJson:
    def test_serializes_nested_values(self):
        created = datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc)
        model = Outer(file_path="a.ts", color=Color.RED, created_at=created, spans=(Inner(3),))

        assert model.to_json() == {
            "filePath": "a.ts",
            "color": "red",
            "createdAt": "2024-01-02T03:04:05+00:00",
            "spans": [{"startLine": 3}],
            "note": None,
        }


class TestFromJson:
    def test_accepts_camel_and_snake_keys(self):
        assert Inner.from_json({"startLine": 4}) == Inner(4)
        assert Inner.from_json({"start_line": 4}) == Inner(4)

    def test_converts_enums(self):
        model = Outer.from_json(
            {"filePath": "a.ts", "color": "red", "createdAt": None, "spans": ()}
        )

        assert model.color is Color.RED
        assert model.note is None

    def test_missing_required_field(self):
        with pytest.raises(ValueError, match="startLine"):
            Inner.from_json({})
