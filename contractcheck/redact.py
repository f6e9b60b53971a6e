from __future__ import annotations

import os
import re
from typing import Iterable


_BEARER_RE = re.compile(r"(?i)(bearer\s+)[a-z0-9\-_.=]{8,}")


def redact(text: str, *, sensitive_env_vars: Iterable[str] = ()) -> str:
    """Mask bearer tokens and the values of sensitive env vars in command output."""
    if not text:
        return text

    redacted = _BEARER_RE.sub(r"\1[REDACTED:token]", text)
    for env_var in sensitive_env_vars:
        env_val = os.getenv(env_var)
        if not env_val:
            continue
        redacted = redacted.replace(env_val, f"[REDACTED:env:{env_var}]")
    return redacted
