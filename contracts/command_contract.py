from __future__ import annotations

import json
import time
from pathlib import Path
from typing import Any

from contractcheck.config import Settings
from contractcheck.models import ContractReport, ContractSpec, ErrorInfo
from contractcheck.redact import redact
from contractcheck.subprocess_utils import PolicyError, assert_binary_allowed, run_command
from contracts.json_schema_contract import SchemaBackedContract


_MAX_STDERR_CHARS = 2000


class CommandContract(SchemaBackedContract):
    """Runs a command and checks that its stdout is JSON matching the schema."""

    KIND = "command"

    def __init__(
        self,
        name: str,
        *,
        command: list[str],
        cwd: Path,
        allowed_binaries: set[str],
        env_allowlist: set[str],
        sensitive_env_vars: set[str] | None = None,
        timeout_sec: int = 30,
        **kwargs: Any,
    ) -> None:
        super().__init__(name, **kwargs)
        if not command:
            raise ValueError(f"Contract '{name}' needs a non-empty 'command'")
        self.command = list(command)
        self.cwd = cwd
        self.allowed_binaries = set(allowed_binaries)
        self.env_allowlist = set(env_allowlist)
        self.sensitive_env_vars = set(sensitive_env_vars or ())
        self.timeout_sec = timeout_sec

    @classmethod
    def from_spec(cls, spec: ContractSpec, *, base_dir: Path, settings: Settings) -> "CommandContract":
        return cls(
            spec.name,
            command=list(spec.command or []),
            cwd=base_dir,
            allowed_binaries=settings.allowed_binaries,
            env_allowlist=settings.env_allowlist,
            sensitive_env_vars=settings.sensitive_env_vars,
            timeout_sec=spec.timeout_sec or settings.command_timeout_sec,
            max_errors=settings.max_schema_errors,
            metadata=spec.metadata,
            **cls.schema_kwargs(spec, base_dir),
        )

    def _failure(self, fields: dict[str, Any], error: ErrorInfo) -> ContractReport:
        fields.update(valid=False, errors=[])
        return ContractReport(fields=fields, error=error)

    async def validate(self) -> ContractReport:
        started = time.perf_counter()
        try:
            assert_binary_allowed(self.command[0], self.allowed_binaries)
        except PolicyError as e:
            fields = self.base_fields(started=started)
            fields["exit_code"] = None
            return self._failure(fields, ErrorInfo(code="binary_not_allowed", message=str(e), details={"binary": self.command[0]}))

        try:
            res = await run_command(
                self.command,
                cwd=self.cwd,
                env_allowlist=sorted(self.env_allowlist),
                timeout_sec=self.timeout_sec,
            )
        except OSError as e:
            fields = self.base_fields(started=started)
            fields["exit_code"] = None
            return self._failure(
                fields,
                ErrorInfo(code="command_failed", message=f"Cannot start command: {e}", details={"command": self.command}),
            )

        fields = self.base_fields(started=started)
        fields["exit_code"] = res.exit_code
        stderr_tail = redact(res.stderr[-_MAX_STDERR_CHARS:], sensitive_env_vars=self.sensitive_env_vars)

        if res.timed_out:
            return self._failure(
                fields,
                ErrorInfo(
                    code="command_timeout",
                    message=f"Command timed out after {self.timeout_sec}s",
                    details={"command": self.command, "timeout_sec": self.timeout_sec},
                ),
            )
        if res.exit_code != 0:
            return self._failure(
                fields,
                ErrorInfo(
                    code="command_failed",
                    message=f"Command exited with code {res.exit_code}",
                    details={"command": self.command, "stderr": stderr_tail},
                ),
            )

        try:
            instance = json.loads(res.stdout)
        except json.JSONDecodeError as e:
            return self._failure(
                fields,
                ErrorInfo(
                    code="invalid_json_output",
                    message=f"Command output is not valid JSON: {e.msg}",
                    details={"command": self.command, "line": e.lineno},
                ),
            )

        return self.check_instance(instance, fields)
