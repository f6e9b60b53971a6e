from __future__ import annotations

import os

from contracts.base import BaseContract, CallbackContract
from contracts.registry import DEFAULT_KIND_ENTRYPOINT_GROUP, get_kind, list_kinds, load_kind_plugins, register_kind


_BOOTSTRAPPED = False

def ensure_kinds_registered(entrypoint_group: str | None = None) -> None:
    global _BOOTSTRAPPED
    if _BOOTSTRAPPED:
        return
    from contracts.command_contract import CommandContract
    from contracts.json_schema_contract import JsonSchemaContract

    register_kind(JsonSchemaContract)
    register_kind(CommandContract)
    if entrypoint_group is None:
        entrypoint_group = os.getenv("CONTRACT_KIND_ENTRYPOINT_GROUP", DEFAULT_KIND_ENTRYPOINT_GROUP)
    entrypoint_group = entrypoint_group.strip()
    if entrypoint_group:
        load_kind_plugins(entrypoint_group=entrypoint_group)
    _BOOTSTRAPPED = True


__all__ = ["BaseContract", "CallbackContract", "ensure_kinds_registered", "get_kind", "list_kinds"]
