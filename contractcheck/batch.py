from __future__ import annotations

import logging
from typing import Any, Callable, Protocol, Sequence

from pydantic import ValidationError

from contractcheck.models import RESERVED_OUTCOME_KEYS, ContractReport, ErrorInfo, ValidationOutcome


log = logging.getLogger("batch")

BatchCallback = Callable[[Any, list[ValidationOutcome]], None]


class Contract(Protocol):
    name: str

    async def validate(self) -> ContractReport: ...


def _contract_label(contract: Any) -> str:
    return str(getattr(contract, "name", None) or type(contract).__name__)


def build_outcome(contract: Any, report: ContractReport) -> ValidationOutcome:
    """Merge delivered fields with the delivered error and a reference to ``contract``."""
    fields = {str(k): v for k, v in (report.fields or {}).items()}
    for key in RESERVED_OUTCOME_KEYS & fields.keys():
        log.debug("Dropping reserved key '%s' from fields of contract %s", key, _contract_label(contract))
        fields.pop(key)
    return ValidationOutcome(error=report.error, contract=contract, **fields)


async def validate_contracts(contracts: Sequence[Contract]) -> list[ValidationOutcome]:
    """Validate every contract, one at a time, in input order.

    A contract that reports an error still contributes exactly one outcome
    carrying that error; it never stops the batch. Exceptions raised by a
    contract's ``validate()`` are not part of its reporting channel and
    propagate to the caller.
    """
    results: list[ValidationOutcome] = []
    total = len(contracts)
    for index, contract in enumerate(contracts):
        label = _contract_label(contract)
        log.debug("Validating contract %d/%d: %s", index + 1, total, label)
        report = await contract.validate()
        outcome = build_outcome(contract, report)
        results.append(outcome)
        log.info(
            "Contract %s %s",
            label,
            outcome.status,
            extra={
                "contract": label,
                "kind": getattr(contract, "KIND", None),
                "status": outcome.status,
                "error_code": outcome.error.code if outcome.error is not None else None,
            },
        )
    failed = sum(1 for r in results if not r.ok)
    log.info("Validated %d contracts (%d failed)", len(results), failed)
    return results


async def validate_contracts_with_callback(contracts: Sequence[Contract], cb: BatchCallback) -> None:
    """Callback form of :func:`validate_contracts`.

    ``cb(err, results)`` is called exactly once, after every contract has been
    validated. ``err`` is always ``None``; inspect each outcome's ``error``.
    """
    results = await validate_contracts(contracts)
    cb(None, results)


def error_from(value: Any, *, code: str = "validation_error") -> ErrorInfo | None:
    """Normalize an error delivered through a completion callback."""
    if value is None:
        return None
    if isinstance(value, ErrorInfo):
        return value
    if isinstance(value, BaseException):
        return ErrorInfo(code=code, message=str(value) or type(value).__name__, details={"type": type(value).__name__})
    if isinstance(value, dict) and "message" in value:
        try:
            return ErrorInfo.model_validate({"code": code, **value})
        except ValidationError:
            return ErrorInfo(code=code, message=str(value.get("message")), details={"raw": value})
    return ErrorInfo(code=code, message=str(value))
