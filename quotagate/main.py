"""quotagate — FastAPI application entry point.

Guards the content generation endpoint with a per-user sliding-window
admission controller before any model call is made.
"""

import logging
import math
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field, field_validator

from quotagate.config.settings import get_settings
from quotagate.limiter.factory import close_limiter, get_controller, get_sweeper
from quotagate.limiter.models import AdmissionDecision
from quotagate.logging.audit import (
    RequestTimer,
    audit,
    generate_request_id,
    get_audit_logger,
    request_id_var,
    setup_logging,
    user_id_var,
)
from quotagate.providers.base import LLMProvider
from quotagate.providers.json_call import complete_json
from quotagate.providers.registry import close_provider, get_provider
from quotagate.security.auth import verify_api_key

VERSION = "0.1.0"

MAX_PROMPT_LENGTH = 5000
MAX_SYSTEM_PROMPT_LENGTH = 20000


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown lifecycle hooks."""
    setup_logging()
    await get_sweeper().start()
    audit(logging.INFO, "Gateway started", store_backend=get_settings().rate_limit_store_backend)
    yield
    await close_limiter()
    await close_provider()
    get_audit_logger().info("Gateway stopped")


app = FastAPI(
    title="quotagate",
    description="Rate-limited content generation gateway",
    version=VERSION,
    lifespan=lifespan,
)


class GenerateRequest(BaseModel):
    system_prompt: str = Field(default="", max_length=MAX_SYSTEM_PROMPT_LENGTH)
    prompt: str = Field(min_length=1, max_length=MAX_PROMPT_LENGTH)

    @field_validator("prompt")
    @classmethod
    def prompt_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("prompt must not be blank")
        return value


@app.get("/health")
async def health():
    return {"status": "healthy", "version": VERSION}


@app.post("/v1/generate")
async def generate(
    payload: GenerateRequest,
    user_id: str = Depends(verify_api_key),
    provider: LLMProvider = Depends(get_provider),
):
    """Generate JSON content for the caller, subject to their hourly quota.

    Pipeline: Auth -> Validate -> Admission -> Model call -> Log
    """
    rid = generate_request_id()
    request_id_var.set(rid)
    user_id_var.set(user_id)

    settings = get_settings()
    controller = get_controller()
    decision = await controller.check_and_admit(
        user_id, settings.rate_limit, settings.rate_limit_window_seconds
    )

    if not decision.allowed:
        retry_after = decision.retry_after(controller.clock.now())
        audit(
            logging.WARNING,
            "Rate limit exceeded",
            rate_limit=decision.limit,
            retry_after=retry_after,
            degraded=decision.degraded,
        )
        minutes = max(1, math.ceil(retry_after / 60))
        return JSONResponse(
            status_code=429,
            content={
                "error": (
                    f"Rate limit exceeded. You can generate {decision.limit} times per "
                    f"{_describe_window(settings.rate_limit_window_seconds)}. "
                    f"Try again in {minutes} minutes."
                ),
            },
            headers={"Retry-After": str(retry_after), **_rate_limit_headers(decision)},
        )

    with RequestTimer() as timer:
        content = await complete_json(provider, payload.system_prompt, payload.prompt)

    audit(
        logging.INFO,
        "Content generated",
        latency_ms=timer.elapsed_ms,
        prompt_chars=len(payload.prompt),
        rate_limit_remaining=decision.remaining,
        degraded=decision.degraded,
    )

    return JSONResponse(
        status_code=200,
        content={"content": content},
        headers={**_rate_limit_headers(decision), "X-Request-Id": rid},
    )


def _rate_limit_headers(decision: AdmissionDecision) -> dict[str, str]:
    return {
        "X-RateLimit-Limit": str(decision.limit),
        "X-RateLimit-Remaining": str(decision.remaining),
        "X-RateLimit-Reset": str(math.ceil(decision.reset_at)),
    }


def _describe_window(seconds: float) -> str:
    """Human wording for a window length, e.g. 3600 -> "hour"."""
    for unit, size in (("hour", 3600), ("minute", 60)):
        if seconds >= size and seconds % size == 0:
            count = int(seconds // size)
            return unit if count == 1 else f"{count} {unit}s"
    return f"{seconds:g} seconds"
