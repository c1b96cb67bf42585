"""Unit tests for the response safety layer (squadline.core.serialization)."""

import json
import unittest
from datetime import UTC, date, datetime
from decimal import Decimal
from unittest.mock import patch

from squadline.core.serialization import (
    BINARY_PLACEHOLDER,
    CIRCULAR_SENTINEL,
    FUNCTION_PLACEHOLDER,
    TRUNCATION_MARKER,
    SafeJSONResponse,
    make_safe,
    safe_dumps,
)
from squadline.models import Team
from squadline.schemas.league import StandingRow


class TestCircularReferences(unittest.TestCase):
    def test_self_reference_becomes_sentinel(self) -> None:
        obj: dict = {"name": "loop"}
        obj["self"] = obj
        out = json.loads(safe_dumps(obj))
        self.assertEqual(out, {"name": "loop", "self": CIRCULAR_SENTINEL})

    def test_list_cycle(self) -> None:
        items: list = [1]
        items.append(items)
        self.assertEqual(make_safe(items), [1, CIRCULAR_SENTINEL])

    def test_indirect_cycle(self) -> None:
        a: dict = {}
        b = {"a": a}
        a["b"] = b
        self.assertEqual(make_safe(a), {"b": {"a": CIRCULAR_SENTINEL}})

    def test_shared_reference_is_not_a_cycle(self) -> None:
        shared = {"x": 1}
        self.assertEqual(make_safe({"left": shared, "right": shared}),
                         {"left": {"x": 1}, "right": {"x": 1}})


class TestPlaceholders(unittest.TestCase):
    def test_functions_and_binary(self) -> None:
        out = make_safe({"fn": len, "lam": lambda: 1, "blob": b"\x00\x01", "buf": bytearray(2)})
        self.assertEqual(out["fn"], FUNCTION_PLACEHOLDER)
        self.assertEqual(out["lam"], FUNCTION_PLACEHOLDER)
        self.assertEqual(out["blob"], BINARY_PLACEHOLDER)
        self.assertEqual(out["buf"], BINARY_PLACEHOLDER)

    def test_unknown_object_is_tagged(self) -> None:
        class Thing:
            pass

        self.assertEqual(make_safe(Thing()), "[Object Thing]")

    def test_long_string_is_truncated(self) -> None:
        out = make_safe("x" * 5000, max_string=1000)
        self.assertEqual(len(out), 1000 + len(TRUNCATION_MARKER))
        self.assertTrue(out.endswith(TRUNCATION_MARKER))

    def test_short_string_untouched(self) -> None:
        self.assertEqual(make_safe("hello"), "hello")


class TestConversions(unittest.TestCase):
    def test_dates_become_iso_strings(self) -> None:
        when = datetime(2025, 5, 10, 12, 30, tzinfo=UTC)
        out = make_safe({"at": when, "day": date(2025, 5, 10)})
        self.assertEqual(out, {"at": "2025-05-10T12:30:00+00:00", "day": "2025-05-10"})

    def test_misc_types(self) -> None:
        out = make_safe({1: Decimal("2.5"), "tags": {"a"}, "pair": (1, 2), "nan": float("nan")})
        self.assertEqual(out, {"1": 2.5, "tags": ["a"], "pair": [1, 2], "nan": None})

    def test_exception_becomes_name_and_message(self) -> None:
        self.assertEqual(make_safe(ValueError("bad")), {"name": "ValueError", "message": "bad"})

    def test_pydantic_model(self) -> None:
        row = StandingRow(team_id=1, name="Riverside FC", points=3)
        self.assertEqual(make_safe(row)["points"], 3)

    def test_orm_instance_uses_columns_only(self) -> None:
        team = Team(id=5, name="Riverside FC", email="t@example.com", password_hash=None)
        out = make_safe(team)
        self.assertEqual(out["id"], 5)
        self.assertEqual(out["name"], "Riverside FC")
        self.assertIn("password_hash", out)

    def test_long_keys_sharing_a_prefix_keep_both_values(self) -> None:
        prefix = "k" * 100
        out = make_safe({prefix + "a": 1, prefix + "b": 2})
        self.assertEqual(sorted(out.values()), [1, 2])
        self.assertTrue(all(len(key) <= 100 for key in out))

    def test_stringified_key_does_not_overwrite_existing_key(self) -> None:
        out = make_safe({"1": "text", 1: "number"})
        self.assertEqual(out, {"1": "text", "1~2": "number"})

    def test_depth_limit(self) -> None:
        nested = {"a": {"b": {"c": [1]}}}
        self.assertEqual(make_safe(nested, max_depth=2), {"a": {"b": "[Object]"}})


class TestSafeDumps(unittest.TestCase):
    def test_output_is_always_valid_json(self) -> None:
        obj: dict = {"when": datetime(2025, 1, 1), "fn": print}
        obj["me"] = obj
        parsed = json.loads(safe_dumps(obj))
        self.assertEqual(parsed["me"], CIRCULAR_SENTINEL)

    def test_unexpected_failure_returns_error_envelope(self) -> None:
        with patch("squadline.core.serialization.make_safe", side_effect=RuntimeError("boom")):
            parsed = json.loads(safe_dumps({"a": 1}))
        self.assertFalse(parsed["success"])
        self.assertEqual(parsed["error"]["code"], "SERIALIZATION_ERROR")

    def test_response_class_renders_pathological_content(self) -> None:
        obj: dict = {"ok": True}
        obj["self"] = obj
        response = SafeJSONResponse(content=obj)
        body = json.loads(response.body)
        self.assertEqual(body, {"ok": True, "self": CIRCULAR_SENTINEL})
        self.assertEqual(response.media_type, "application/json")


if __name__ == "__main__":
    unittest.main()
