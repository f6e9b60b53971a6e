from __future__ import annotations

import asyncio
import json
import logging
import time
from pathlib import Path
from typing import Any, Callable

from contractcheck.batch import error_from
from contractcheck.config import Settings
from contractcheck.models import ContractReport, ContractSpec, ErrorInfo


log = logging.getLogger("contracts")

CompletionCallback = Callable[[Any, dict[str, Any]], None]


def resolve_path(base_dir: Path, raw: str) -> Path:
    path = Path(raw).expanduser()
    if not path.is_absolute():
        path = base_dir / path
    return path.resolve()


class BaseContract:
    KIND: str = "base"

    def __init__(self, name: str, *, metadata: dict[str, Any] | None = None) -> None:
        self.name = name
        self.metadata = dict(metadata or {})

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r})"

    @classmethod
    def from_spec(cls, spec: ContractSpec, *, base_dir: Path, settings: Settings) -> "BaseContract":
        raise NotImplementedError

    async def validate(self) -> ContractReport:
        """Validate the contract and report fields plus an optional error.

        Failures MUST be reported through ``ContractReport.error``; raising is
        reserved for bugs and aborts the whole batch.
        """
        raise NotImplementedError

    def base_fields(self, *, started: float) -> dict[str, Any]:
        return {
            "name": self.name,
            "kind": self.KIND,
            "duration_ms": int((time.perf_counter() - started) * 1000),
        }


class CallbackContract(BaseContract):
    """Adapter for contracts that signal completion through ``cb(err, fields)``."""

    KIND = "callback"

    def validate_with_callback(self, cb: CompletionCallback) -> Any:
        raise NotImplementedError

    async def validate(self) -> ContractReport:
        loop = asyncio.get_running_loop()
        done: asyncio.Future[ContractReport] = loop.create_future()

        def _complete(err: Any, fields: dict[str, Any] | None = None) -> None:
            if done.done():
                log.warning("Contract %s completed more than once; ignoring extra completion", self.name)
                return
            try:
                report = ContractReport(fields=dict(fields or {}), error=error_from(err))
            except Exception as e:
                log.exception("Contract %s delivered a malformed completion", self.name)
                report = ContractReport(
                    error=ErrorInfo(
                        code="malformed_completion",
                        message=f"Contract delivered a malformed completion: {e}",
                        details={"error": repr(err), "fields": repr(fields)},
                    )
                )
            done.set_result(report)

        pending = self.validate_with_callback(_complete)
        if asyncio.iscoroutine(pending):
            await pending
        return await done


def read_json_file(path: Path, *, code: str) -> tuple[Any, ErrorInfo | None]:
    try:
        return json.loads(path.read_text(encoding="utf-8")), None
    except OSError as e:
        return None, ErrorInfo(code=code, message=f"Cannot read {path}: {e.strerror or e}", details={"path": str(path)})
    except json.JSONDecodeError as e:
        return None, ErrorInfo(code=code, message=f"Invalid JSON in {path}: {e.msg}", details={"path": str(path), "line": e.lineno})
