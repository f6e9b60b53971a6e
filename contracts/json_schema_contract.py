from __future__ import annotations

import time
from pathlib import Path
from typing import Any

from contractcheck.config import Settings
from contractcheck.models import ContractReport, ContractSpec, ErrorInfo
from contractcheck.schema import SchemaValidationError, check_schema, schema_errors
from contracts.base import BaseContract, read_json_file, resolve_path


_MISSING = object()


class SchemaBackedContract(BaseContract):
    """Shared schema handling for contracts that check a JSON value against a schema."""

    def __init__(
        self,
        name: str,
        *,
        schema: dict[str, Any] | None = None,
        schema_path: Path | None = None,
        max_errors: int = 10,
        metadata: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(name, metadata=metadata)
        if schema is None and schema_path is None:
            raise ValueError(f"Contract '{name}' needs either an inline schema or a schema path")
        self.schema = schema
        self.schema_path = schema_path
        self.max_errors = max(1, max_errors)

    @staticmethod
    def schema_kwargs(spec: ContractSpec, base_dir: Path) -> dict[str, Any]:
        if isinstance(spec.schema_, dict):
            return {"schema": spec.schema_}
        if isinstance(spec.schema_, str) and spec.schema_.strip():
            return {"schema_path": resolve_path(base_dir, spec.schema_)}
        raise ValueError(f"Contract '{spec.name}' is missing 'schema'")

    def load_schema(self) -> tuple[dict[str, Any] | None, ErrorInfo | None]:
        if self.schema is not None:
            schema = self.schema
        else:
            assert self.schema_path is not None
            schema, err = read_json_file(self.schema_path, code="schema_unreadable")
            if err is not None:
                return None, err
            if not isinstance(schema, dict):
                return None, ErrorInfo(
                    code="invalid_schema",
                    message=f"Schema must be a JSON object: {self.schema_path}",
                    details={"path": str(self.schema_path)},
                )
        try:
            check_schema(schema)
        except SchemaValidationError as e:
            return None, ErrorInfo(code="invalid_schema", message=str(e))
        return schema, None

    def check_instance(self, instance: Any, fields: dict[str, Any]) -> ContractReport:
        schema, err = self.load_schema()
        if err is not None:
            fields.update(valid=False, errors=[])
            return ContractReport(fields=fields, error=err)

        errors = schema_errors(instance, schema, limit=self.max_errors)
        fields.update(valid=not errors, errors=errors)
        if not errors:
            return ContractReport(fields=fields)
        first = errors[0]
        return ContractReport(
            fields=fields,
            error=ErrorInfo(
                code="schema_mismatch",
                message=f"{first['path']}: {first['message']}",
                details={"errors": errors},
            ),
        )


class JsonSchemaContract(SchemaBackedContract):
    KIND = "json_schema"

    def __init__(self, name: str, *, payload: Any = _MISSING, payload_path: Path | None = None, **kwargs: Any) -> None:
        super().__init__(name, **kwargs)
        if payload is _MISSING and payload_path is None:
            raise ValueError(f"Contract '{name}' needs either an inline payload or a payload path")
        self.payload = payload
        self.payload_path = payload_path

    @classmethod
    def from_spec(cls, spec: ContractSpec, *, base_dir: Path, settings: Settings) -> "JsonSchemaContract":
        payload_kwargs: dict[str, Any] = {}
        if spec.payload_path:
            payload_kwargs["payload_path"] = resolve_path(base_dir, spec.payload_path)
        elif "payload" in spec.model_fields_set:
            payload_kwargs["payload"] = spec.payload
        return cls(
            spec.name,
            max_errors=settings.max_schema_errors,
            metadata=spec.metadata,
            **cls.schema_kwargs(spec, base_dir),
            **payload_kwargs,
        )

    async def validate(self) -> ContractReport:
        started = time.perf_counter()
        if self.payload_path is not None:
            payload, err = read_json_file(self.payload_path, code="payload_unreadable")
            if err is not None:
                fields = self.base_fields(started=started)
                fields.update(valid=False, errors=[])
                return ContractReport(fields=fields, error=err)
        else:
            payload = self.payload

        report = self.check_instance(payload, {})
        report.fields = {**self.base_fields(started=started), **report.fields}
        return report
