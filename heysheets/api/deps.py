from typing import Optional

from fastapi import Request

from heysheets.core.logging_config import generate_request_id
from heysheets.services.functions.executor import FunctionExecutor


def get_executor(request: Request) -> FunctionExecutor:
    """The executor built by the application lifespan."""
    return request.app.state.executor


def get_request_id(request: Request) -> str:
    request_id: Optional[str] = getattr(request.state, "request_id", None)
    if request_id:
        return request_id
    return request.headers.get("x-request-id") or generate_request_id()
