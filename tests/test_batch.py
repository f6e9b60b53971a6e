from __future__ import annotations

import asyncio
import unittest
from typing import Any

from contractcheck.batch import build_outcome, error_from, validate_contracts, validate_contracts_with_callback
from contractcheck.models import ContractReport, ErrorInfo, ValidationOutcome


class _StaticContract:
    KIND = "static"

    def __init__(self, name: str, *, error: str | None = None, delay: float = 0.0, **fields: Any) -> None:
        self.name = name
        self.error = error
        self.delay = delay
        self.fields = fields
        self.calls = 0

    async def validate(self) -> ContractReport:
        self.calls += 1
        if self.delay:
            await asyncio.sleep(self.delay)
        err = ErrorInfo(code="schema_mismatch", message=self.error) if self.error else None
        return ContractReport(fields={"name": self.name, **self.fields}, error=err)


class _ConcurrencyProbe:
    def __init__(self) -> None:
        self.in_flight = 0
        self.max_in_flight = 0
        self.order: list[str] = []


class _ProbedContract:
    def __init__(self, name: str, delay: float, probe: _ConcurrencyProbe) -> None:
        self.name = name
        self.delay = delay
        self.probe = probe

    async def validate(self) -> ContractReport:
        self.probe.in_flight += 1
        self.probe.max_in_flight = max(self.probe.max_in_flight, self.probe.in_flight)
        self.probe.order.append(f"start:{self.name}")
        await asyncio.sleep(self.delay)
        self.probe.order.append(f"end:{self.name}")
        self.probe.in_flight -= 1
        return ContractReport(fields={"name": self.name})


class _ExplodingContract:
    name = "explodes"

    async def validate(self) -> ContractReport:
        raise RuntimeError("boom")


class ValidateContractsTests(unittest.IsolatedAsyncioTestCase):
    async def test_outcomes_match_inputs_one_to_one(self) -> None:
        contracts = [_StaticContract(f"c{i}") for i in range(5)]
        results = await validate_contracts(contracts)

        self.assertEqual(len(results), len(contracts))
        for contract, outcome in zip(contracts, results):
            self.assertIs(outcome.contract, contract)
            self.assertEqual(contract.calls, 1)

    async def test_empty_input_yields_empty_batch(self) -> None:
        results = await validate_contracts([])
        self.assertEqual(results, [])

    async def test_order_is_preserved_regardless_of_duration(self) -> None:
        contracts = [
            _StaticContract("slow", delay=0.05),
            _StaticContract("fast", delay=0.0),
            _StaticContract("medium", delay=0.02),
        ]
        results = await validate_contracts(contracts)
        self.assertEqual([r.name for r in results], ["slow", "fast", "medium"])

    async def test_validations_never_overlap(self) -> None:
        probe = _ConcurrencyProbe()
        contracts = [_ProbedContract("a", 0.02, probe), _ProbedContract("b", 0.0, probe), _ProbedContract("c", 0.01, probe)]
        await validate_contracts(contracts)

        self.assertEqual(probe.max_in_flight, 1)
        self.assertEqual(probe.order, ["start:a", "end:a", "start:b", "end:b", "start:c", "end:c"])

    async def test_failed_contract_does_not_stop_the_batch(self) -> None:
        a = _StaticContract("A", version=1)
        b = _StaticContract("B", error="schema mismatch", version=2)
        c = _StaticContract("C", version=3)

        results = await validate_contracts([a, b, c])

        self.assertEqual(len(results), 3)
        self.assertIs(results[0].contract, a)
        self.assertIsNone(results[0].error)
        self.assertEqual(results[0].version, 1)

        self.assertIs(results[1].contract, b)
        self.assertIsNotNone(results[1].error)
        self.assertEqual(results[1].error.message, "schema mismatch")
        self.assertEqual(results[1].version, 2)
        self.assertEqual(results[1].status, "failed")

        self.assertIs(results[2].contract, c)
        self.assertIsNone(results[2].error)
        self.assertEqual(results[2].version, 3)

    async def test_exception_from_contract_propagates(self) -> None:
        with self.assertRaises(RuntimeError):
            await validate_contracts([_StaticContract("ok"), _ExplodingContract()])


class ValidateContractsWithCallbackTests(unittest.IsolatedAsyncioTestCase):
    async def test_callback_called_once_with_no_error(self) -> None:
        calls: list[tuple[Any, list[ValidationOutcome]]] = []
        contracts = [_StaticContract("A"), _StaticContract("B", error="schema mismatch"), _StaticContract("C")]

        await validate_contracts_with_callback(contracts, lambda err, results: calls.append((err, results)))

        self.assertEqual(len(calls), 1)
        err, results = calls[0]
        self.assertIsNone(err)
        self.assertEqual([r.name for r in results], ["A", "B", "C"])
        self.assertEqual(results[1].error.message, "schema mismatch")

    async def test_callback_called_once_for_empty_input(self) -> None:
        calls: list[tuple[Any, list[ValidationOutcome]]] = []
        await validate_contracts_with_callback([], lambda err, results: calls.append((err, results)))
        self.assertEqual(calls, [(None, [])])

    async def test_callback_not_called_when_contract_raises(self) -> None:
        calls: list[Any] = []
        with self.assertRaises(RuntimeError):
            await validate_contracts_with_callback([_ExplodingContract()], lambda err, results: calls.append(err))
        self.assertEqual(calls, [])


class BuildOutcomeTests(unittest.TestCase):
    def test_reserved_keys_in_fields_are_dropped(self) -> None:
        contract = _StaticContract("x")
        report = ContractReport(fields={"contract": "spoofed", "error": "spoofed", "valid": True}, error=None)

        outcome = build_outcome(contract, report)

        self.assertIs(outcome.contract, contract)
        self.assertIsNone(outcome.error)
        self.assertEqual(outcome.fields, {"valid": True})

    def test_non_string_keys_are_stringified(self) -> None:
        outcome = build_outcome(_StaticContract("x"), ContractReport(fields={1: "x", (2, 3): "y"}))
        self.assertEqual(outcome.fields, {"1": "x", "(2, 3)": "y"})

    def test_delivered_status_fields_cannot_mask_failure(self) -> None:
        report = ContractReport(
            fields={"ok": True, "status": "passed", "fields": {}, "valid": False},
            error=ErrorInfo(code="schema_mismatch", message="bad"),
        )
        outcome = build_outcome(_StaticContract("x"), report)

        self.assertFalse(outcome.ok)
        self.assertEqual(outcome.status, "failed")
        dumped = outcome.model_dump()
        self.assertNotIn("ok", dumped)
        self.assertNotIn("status", dumped)
        self.assertEqual(outcome.fields, {"valid": False})

    def test_contract_reference_is_not_serialized(self) -> None:
        outcome = build_outcome(_StaticContract("x"), ContractReport(fields={"name": "x"}))
        dumped = outcome.model_dump()
        self.assertNotIn("contract", dumped)
        self.assertEqual(dumped["name"], "x")
        self.assertIsNone(dumped["error"])


class ErrorFromTests(unittest.TestCase):
    def test_none_stays_none(self) -> None:
        self.assertIsNone(error_from(None))

    def test_string_becomes_error_info(self) -> None:
        err = error_from("schema mismatch")
        self.assertIsInstance(err, ErrorInfo)
        self.assertEqual(err.code, "validation_error")
        self.assertEqual(err.message, "schema mismatch")

    def test_exception_keeps_type_name(self) -> None:
        err = error_from(ValueError("bad value"))
        self.assertEqual(err.message, "bad value")
        self.assertEqual(err.details["type"], "ValueError")

    def test_mapping_with_code_is_respected(self) -> None:
        err = error_from({"code": "custom", "message": "m"})
        self.assertEqual(err.code, "custom")

    def test_mapping_with_bad_shape_falls_back(self) -> None:
        err = error_from({"message": "schema mismatch", "details": "line 3", "code": 7})
        self.assertEqual(err.code, "validation_error")
        self.assertEqual(err.message, "schema mismatch")
        self.assertEqual(err.details["raw"]["details"], "line 3")

    def test_error_info_passes_through(self) -> None:
        original = ErrorInfo(code="c", message="m")
        self.assertIs(error_from(original), original)


if __name__ == "__main__":
    unittest.main()
