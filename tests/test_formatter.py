from __future__ import annotations

import json
import unittest

from contractcheck.batch import build_outcome
from contractcheck.formatter import format_json, format_text, summarize
from contractcheck.models import ContractReport, ErrorInfo


class _Named:
    KIND = "json_schema"

    def __init__(self, name: str) -> None:
        self.name = name


def _batch():
    mismatch = ErrorInfo(
        code="schema_mismatch",
        message="age: -1 is less than the minimum of 0",
        details={
            "errors": [
                {"path": "age", "message": "-1 is less than the minimum of 0"},
                {"path": "tags/1", "message": "3 is not of type 'string'"},
            ]
        },
    )
    return [
        build_outcome(_Named("orders"), ContractReport(fields={"valid": True})),
        build_outcome(_Named("people"), ContractReport(fields={"valid": False}, error=mismatch)),
    ]


class FormatterTests(unittest.TestCase):
    def test_summarize_counts(self) -> None:
        summary = summarize(_batch())
        self.assertEqual((summary.total, summary.passed, summary.failed), (2, 1, 1))
        self.assertFalse(summary.ok)

    def test_summarize_empty_batch_is_ok(self) -> None:
        summary = summarize([])
        self.assertEqual(summary.total, 0)
        self.assertTrue(summary.ok)

    def test_text_output(self) -> None:
        text = format_text(_batch())
        self.assertEqual(
            text.splitlines(),
            [
                "[PASS] orders",
                "[FAIL] people",
                "    schema_mismatch: age: -1 is less than the minimum of 0",
                "    - tags/1: 3 is not of type 'string'",
                "2 contracts, 1 passed, 1 failed",
            ],
        )

    def test_json_output_replaces_contract_reference(self) -> None:
        payload = json.loads(format_json(_batch()))

        self.assertEqual(payload["summary"]["failed"], 1)
        first, second = payload["results"]
        self.assertEqual(first, {"error": None, "valid": True, "name": "orders", "kind": "json_schema", "status": "passed"})
        self.assertEqual(second["status"], "failed")
        self.assertEqual(second["error"]["code"], "schema_mismatch")
        self.assertNotIn("contract", second)

    def test_json_output_status_comes_from_error(self) -> None:
        outcome = build_outcome(
            _Named("spoofed"),
            ContractReport(fields={"ok": True, "status": "passed"}, error=ErrorInfo(code="c", message="bad")),
        )
        result = json.loads(format_json([outcome]))["results"][0]
        self.assertEqual(result["status"], "failed")
        self.assertNotIn("ok", result)


if __name__ == "__main__":
    unittest.main()
