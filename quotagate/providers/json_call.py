"""JSON-returning model calls with a single retry on unparseable output."""

import json
import re

from fastapi import HTTPException

from quotagate.logging.audit import get_audit_logger
from quotagate.providers.base import LLMProvider

# Models sometimes wrap JSON in prose or ```json fences
_OBJECT_PATTERN = re.compile(r"\{.*\}", re.DOTALL)


def parse_json(raw: str):
    """Parse model output as JSON, falling back to the outermost {...} block."""
    try:
        return json.loads(raw)
    except json.JSONDecodeError:
        match = _OBJECT_PATTERN.search(raw)
        if match:
            return json.loads(match.group(0))
        raise


async def complete_json(provider: LLMProvider, system_prompt: str, user_prompt: str):
    """Call the model and parse its reply, retrying the call once on a parse failure."""
    raw = await provider.complete(system_prompt, user_prompt)
    try:
        return parse_json(raw)
    except json.JSONDecodeError:
        get_audit_logger().warning("Model reply was not JSON, retrying once")

    raw = await provider.complete(system_prompt, user_prompt)
    try:
        return parse_json(raw)
    except json.JSONDecodeError:
        raise HTTPException(status_code=502, detail="Model did not return valid JSON")
