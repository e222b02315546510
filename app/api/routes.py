import os
import re

from fastapi import APIRouter, Depends, HTTPException, Path, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import FileResponse, PlainTextResponse
from opentelemetry import trace

from app.core.exceptions import PanicError
from app.core.logging_config import get_logger
from app.services.factorial import U32_MAX, factorial as compute_factorial

logger = get_logger(__name__)
tracer = trace.get_tracer(__name__)

router = APIRouter()

# Unsigned decimal with an optional plus sign; no whitespace, underscores or fractions
U32_PATTERN = re.compile(r"\+?[0-9]+")


def u32_path(num: str = Path(...)) -> int:
    """Parse the ``num`` path segment as an unsigned 32-bit integer."""
    if U32_PATTERN.fullmatch(num) and int(num) <= U32_MAX:
        return int(num)
    raise RequestValidationError([{
        "type": "u32_parsing",
        "loc": ("path", "num"),
        "msg": f"Input should be an integer between 0 and {U32_MAX}",
        "input": num,
    }])


@router.get("/", response_class=PlainTextResponse)
async def root():
    with tracer.start_as_current_span("root"):
        logger.info("Hello Axum!")
        return "Hello, Axum!"


@router.get("/panic")
async def panic():
    with tracer.start_as_current_span("panic"):
        raise PanicError("Everything is on fire!")


@router.get("/factorial/{num}", response_class=PlainTextResponse)
async def factorial(num: int = Depends(u32_path)):
    """Factorial of ``num`` as a decimal string, wrapping at 32 bits."""
    with tracer.start_as_current_span("factorial") as span:
        span.set_attribute("factorial.input", num)
        return str(compute_factorial(num))


@router.get("/cargo")
async def cargo(request: Request):
    """Serve the project manifest byte for byte."""
    manifest_path = request.app.state.settings.MANIFEST_PATH
    if not os.path.isfile(manifest_path):
        raise HTTPException(status_code=404, detail="Not Found")
    return FileResponse(manifest_path)
