from __future__ import annotations
from datetime import datetime, timezone
from typing import Any, Mapping, Optional
import json

from .observability.logging import BaasLoggerAdapter

__all__ = [
    "to_json_exclude_empty",
    "parse_json_body",
    "join_url",
    "utc_timestamp",
]

_OK_BODY = {"success": True, "message": "ok"}

def to_json_exclude_empty(body: Mapping[str, Any]) -> str:
        """
        Serialize a request body, dropping keys whose value is None or "".

        False, 0 and empty collections are explicit values and are kept.
        """
        return json.dumps({k: v for k, v in body.items() if v is not None and v != ""})

def parse_json_body(text: str, logger: Optional[BaasLoggerAdapter] = None) -> Any:
        stripped = text.strip()
        if not stripped:
            return {}
        try:
            parsed = json.loads(stripped)
        except ValueError:
            # some endpoints answer a bare ok
            if stripped == "ok":
                return dict(_OK_BODY)
            if logger is not None:
                logger.warning("response.unparseable_body", excerpt=stripped[:100])
            return {"raw": text}
        if parsed == "ok":
            return dict(_OK_BODY)
        return parsed

def join_url(host: str, path: str) -> str:
        return f"{host.rstrip('/')}/{path.lstrip('/')}"

def utc_timestamp() -> str:
        return datetime.now(timezone.utc).isoformat()
