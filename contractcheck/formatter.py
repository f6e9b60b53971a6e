from __future__ import annotations

import json
from typing import Any, Sequence

from contractcheck.models import BatchSummary, ValidationOutcome


def summarize(results: Sequence[ValidationOutcome]) -> BatchSummary:
    passed = sum(1 for r in results if r.ok)
    return BatchSummary(total=len(results), passed=passed, failed=len(results) - passed)


def _label(outcome: ValidationOutcome) -> str:
    extra = outcome.model_extra or {}
    name = extra.get("name") or getattr(outcome.contract, "name", None)
    return str(name or "<unnamed>")


def outcome_to_dict(outcome: ValidationOutcome) -> dict[str, Any]:
    data = outcome.model_dump()
    data.setdefault("name", _label(outcome))
    kind = getattr(outcome.contract, "KIND", None)
    if kind is not None:
        data.setdefault("kind", kind)
    data["status"] = outcome.status
    return data


def format_text(results: Sequence[ValidationOutcome]) -> str:
    lines: list[str] = []
    for outcome in results:
        tag = "PASS" if outcome.ok else "FAIL"
        lines.append(f"[{tag}] {_label(outcome)}")
        if outcome.error is None:
            continue
        lines.append(f"    {outcome.error.code}: {outcome.error.message}")
        for detail in outcome.error.details.get("errors", [])[1:]:
            lines.append(f"    - {detail.get('path', '<root>')}: {detail.get('message', '')}")
    summary = summarize(results)
    lines.append(f"{summary.total} contracts, {summary.passed} passed, {summary.failed} failed")
    return "\n".join(lines) + "\n"


def format_json(results: Sequence[ValidationOutcome]) -> str:
    payload = {
        "summary": summarize(results).model_dump(),
        "results": [outcome_to_dict(r) for r in results],
    }
    return json.dumps(payload, ensure_ascii=False, indent=2, default=str)
