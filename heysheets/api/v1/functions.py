import logging

from fastapi import APIRouter, Depends

from heysheets.api.deps import get_executor, get_request_id
from heysheets.schemas.functions import ExecuteFunctionRequest, FunctionCatalogResponse, FunctionEnvelope
from heysheets.services.functions.executor import FunctionExecutor
from heysheets.services.functions.schema import FunctionContext

router = APIRouter()
logger = logging.getLogger("heysheets.api.functions")


@router.post("/execute", responses={200: {"model": FunctionEnvelope}})
async def execute_function(
    payload: ExecuteFunctionRequest,
    executor: FunctionExecutor = Depends(get_executor),
    request_id: str = Depends(get_request_id),
):
    """
    Run one function call and return its envelope.

    Failures (unknown function, invalid arguments, missing tabs, gateway
    errors) are reported in the envelope with HTTP 200 so the caller's
    response generator can phrase them for the customer.
    """
    context = FunctionContext(
        store_id=payload.store_id,
        auth_token=payload.auth_token,
        store_config=payload.store_config,
        request_id=request_id,
    )
    result = await executor.execute(payload.function_name, payload.raw_params, context)
    return result.to_response()


@router.get("", response_model=FunctionCatalogResponse)
async def list_functions(executor: FunctionExecutor = Depends(get_executor)):
    """Declared functions in OpenAI tools format, for the intent classifier."""
    registry = executor.registry
    return FunctionCatalogResponse(
        version=registry.version,
        count=len(registry),
        functions=registry.get_openai_tools_spec(),
    )
