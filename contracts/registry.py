from __future__ import annotations

import logging
from importlib import metadata
from typing import Any

from contracts.base import BaseContract


_KINDS: dict[str, type[BaseContract]] = {}
DEFAULT_KIND_ENTRYPOINT_GROUP = "contract_check.kinds"
log = logging.getLogger("contracts.registry")


def register_kind(contract_cls: type[BaseContract]) -> None:
    previous = _KINDS.get(contract_cls.KIND)
    if previous is not None and previous is not contract_cls:
        log.warning(
            "Contract kind '%s' was replaced: %s -> %s",
            contract_cls.KIND,
            previous.__name__,
            contract_cls.__name__,
        )
    _KINDS[contract_cls.KIND] = contract_cls


def get_kind(kind: str) -> type[BaseContract] | None:
    return _KINDS.get(kind)


def list_kinds() -> dict[str, type[BaseContract]]:
    return dict(_KINDS)


def _entry_points_for_group(group: str) -> list[metadata.EntryPoint]:
    return list(metadata.entry_points().select(group=group))


def _coerce_plugin_kind(loaded: Any) -> type[BaseContract]:
    if isinstance(loaded, type) and issubclass(loaded, BaseContract):
        return loaded
    if callable(loaded) and not isinstance(loaded, type):
        candidate = loaded()
        if isinstance(candidate, type) and issubclass(candidate, BaseContract):
            return candidate
    raise TypeError(f"Unsupported plugin object type: {type(loaded)!r}")


def load_kind_plugins(entrypoint_group: str = DEFAULT_KIND_ENTRYPOINT_GROUP) -> list[str]:
    loaded_kinds: list[str] = []
    for ep in _entry_points_for_group(entrypoint_group):
        try:
            contract_cls = _coerce_plugin_kind(ep.load())
        except Exception:
            log.exception("Failed to load contract kind plugin from entry point '%s' (%s)", ep.name, ep.value)
            continue
        register_kind(contract_cls)
        loaded_kinds.append(contract_cls.KIND)
        log.info("Loaded contract kind '%s' from entry point '%s'", contract_cls.KIND, ep.name)
    return loaded_kinds
