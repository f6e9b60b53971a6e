from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from contractcheck.config import Settings
from contractcheck.batch import validate_contracts
from contractcheck.models import Manifest, ValidationOutcome
from contractcheck.schema import SchemaValidationError, validate_json


log = logging.getLogger("manifest")


class ManifestError(ValueError):
    pass


def _manifest_schema() -> Path:
    return Path(__file__).resolve().parent / "schemas" / "manifest.schema.json"


def parse_manifest(obj: Any) -> Manifest:
    """Accept either ``{"contracts": [...]}`` or a bare list of contract entries."""
    if isinstance(obj, list):
        obj = {"contracts": obj}
    if not isinstance(obj, dict):
        raise ManifestError("Manifest must be a JSON object or a list of contracts")
    try:
        validate_json(obj, _manifest_schema())
    except SchemaValidationError as e:
        raise ManifestError(str(e)) from e
    try:
        return Manifest.model_validate(obj)
    except ValidationError as e:
        raise ManifestError(f"Invalid manifest: {e}") from e


def load_manifest(path: Path) -> Manifest:
    try:
        obj = json.loads(path.read_text(encoding="utf-8"))
    except OSError as e:
        raise ManifestError(f"Cannot read manifest {path}: {e.strerror or e}") from e
    except json.JSONDecodeError as e:
        raise ManifestError(f"Invalid JSON in manifest {path}: {e.msg} (line {e.lineno})") from e
    return parse_manifest(obj)


def build_contracts(manifest: Manifest, *, base_dir: Path, settings: Settings) -> list[Any]:
    """Instantiate contracts in manifest order; relative paths resolve against ``base_dir``."""
    from contracts import ensure_kinds_registered, get_kind

    ensure_kinds_registered(settings.kind_entrypoint_group)
    built: list[Any] = []
    seen: set[str] = set()
    for spec in manifest.contracts:
        if spec.name in seen:
            log.warning("Duplicate contract name in manifest: %s", spec.name)
        seen.add(spec.name)

        contract_cls = get_kind(spec.kind)
        if contract_cls is None:
            raise ManifestError(f"Unknown contract kind '{spec.kind}' for contract '{spec.name}'")
        try:
            built.append(contract_cls.from_spec(spec, base_dir=base_dir, settings=settings))
        except ValueError as e:
            raise ManifestError(str(e)) from e
    return built


async def run_manifest(manifest: Manifest, *, base_dir: Path, settings: Settings) -> list[ValidationOutcome]:
    contracts = build_contracts(manifest, base_dir=base_dir, settings=settings)
    return await validate_contracts(contracts)
