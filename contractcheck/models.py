from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field


CONTRACT_KIND = str
OUTCOME_STATUS = Literal["passed", "failed"]

# Keys owned by the batch; same-named keys in delivered fields are dropped.
RESERVED_OUTCOME_KEYS = frozenset({"error", "contract", "ok", "status", "fields"})


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class ErrorInfo(BaseModel):
    code: str
    message: str
    details: dict[str, Any] = Field(default_factory=dict)


@dataclass
class ContractReport:
    """What a contract delivers on completion: free-form fields plus an optional error."""

    fields: dict[str, Any] = field(default_factory=dict)
    error: ErrorInfo | None = None


class ValidationOutcome(BaseModel):
    """One entry of a result batch.

    Delivered fields are merged in as extra attributes, so
    ``outcome.valid`` or ``outcome.model_extra["valid"]`` both work.
    """

    model_config = ConfigDict(extra="allow", arbitrary_types_allowed=True)

    error: ErrorInfo | None = None
    contract: Any = Field(default=None, exclude=True, repr=False)

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def status(self) -> OUTCOME_STATUS:
        return "passed" if self.error is None else "failed"

    @property
    def fields(self) -> dict[str, Any]:
        return dict(self.model_extra or {})


class ContractSpec(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    kind: CONTRACT_KIND = "json_schema"
    schema_: Union[str, dict[str, Any], None] = Field(
        default=None,
        alias="schema",
        description="Path to a JSON schema (relative to the manifest) or an inline schema object",
    )
    payload: Any = Field(default=None, description="Inline JSON value to validate")
    payload_path: str | None = Field(default=None, description="Path to a JSON file to validate")
    command: list[str] | None = Field(default=None, description="Command whose stdout is validated (kind=command)")
    timeout_sec: int | None = Field(default=None, ge=1, le=3600)
    metadata: dict[str, Any] = Field(default_factory=dict)

    model_config = ConfigDict(populate_by_name=True)


class Manifest(BaseModel):
    schema_version: str = Field(default="1.0")
    contracts: list[ContractSpec] = Field(default_factory=list)


class BatchSummary(BaseModel):
    total: int = 0
    passed: int = 0
    failed: int = 0
    finished_at: str = Field(default_factory=utc_now_iso)

    @property
    def ok(self) -> bool:
        return self.failed == 0
