from __future__ import annotations

import os
from dataclasses import dataclass


def _env_bool(name: str, default: bool) -> bool:
    v = os.getenv(name)
    if v is None:
        return default
    return v.strip().lower() in ("1", "true", "yes", "on")


def _env_int(name: str, default: int) -> int:
    v = os.getenv(name)
    if v is None:
        return default
    try:
        return int(v)
    except ValueError:
        return default


def _env_str(name: str, default: str) -> str:
    v = os.getenv(name)
    return v if v is not None and v != "" else default


def _env_csv(name: str, default: str) -> set[str]:
    raw = os.getenv(name, default)
    return {item.strip() for item in raw.split(",") if item.strip()}


@dataclass(frozen=True)
class Settings:
    allowed_binaries: set[str]
    env_allowlist: set[str]
    sensitive_env_vars: set[str]
    command_timeout_sec: int
    max_schema_errors: int

    gateway_token: str
    gateway_host: str
    gateway_port: int
    max_request_body_bytes: int

    kind_entrypoint_group: str

    log_level: str
    log_json: bool

    @staticmethod
    def load() -> "Settings":
        allowed_binaries = _env_csv("ALLOWED_BINARIES", "")
        env_allowlist = _env_csv("ENV_ALLOWLIST", "PATH,HOME,TMPDIR")
        sensitive_env_vars = _env_csv("SENSITIVE_ENV_VARS", "")
        command_timeout_sec = max(1, _env_int("COMMAND_TIMEOUT_SEC", 30))
        max_schema_errors = max(1, _env_int("MAX_SCHEMA_ERRORS", 10))

        gateway_token = _env_str("GATEWAY_TOKEN", "dev-token")
        gateway_host = _env_str("GATEWAY_HOST", "127.0.0.1")
        gateway_port = _env_int("GATEWAY_PORT", 8080)
        max_request_body_bytes = _env_int("MAX_REQUEST_BODY_BYTES", 1048576)

        kind_entrypoint_group = os.getenv("CONTRACT_KIND_ENTRYPOINT_GROUP", "contract_check.kinds").strip()

        log_level = _env_str("LOG_LEVEL", "INFO")
        log_json = _env_bool("LOG_JSON", False)

        return Settings(
            allowed_binaries=allowed_binaries,
            env_allowlist=env_allowlist,
            sensitive_env_vars=sensitive_env_vars,
            command_timeout_sec=command_timeout_sec,
            max_schema_errors=max_schema_errors,
            gateway_token=gateway_token,
            gateway_host=gateway_host,
            gateway_port=gateway_port,
            max_request_body_bytes=max_request_body_bytes,
            kind_entrypoint_group=kind_entrypoint_group,
            log_level=log_level,
            log_json=log_json,
        )
