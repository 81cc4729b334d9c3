"""
Function Executor - the single entry point for running a classified intent

Given a function name, raw model arguments and the turn's context, the
executor:
1. Looks the name up in the registry and its handler table
2. Validates the arguments before anything touches the store
3. Runs the handler under a time limit
4. Turns every outcome, including crashes and timeouts, into a FunctionResult

Nothing raises past execute().
"""

import asyncio
import time
from typing import Any, Dict, Mapping, Optional

from heysheets.core.config import Settings
from heysheets.core.errors import ErrorKind, RegistryDriftError
from heysheets.core.logging_config import get_logger
from heysheets.services.calendar_client import CalendarGatewayClient
from heysheets.services.functions.base import FunctionCall, FunctionServices, Handler
from heysheets.services.functions.booking_tools import check_availability, create_booking, get_booking_slots
from heysheets.services.functions.lead_tools import submit_lead
from heysheets.services.functions.recommendation_tools import get_recommendations
from heysheets.services.functions.registry import FunctionRegistry, function_registry
from heysheets.services.functions.schema import FunctionContext, FunctionResult
from heysheets.services.functions.store_tools import get_misc_data, get_products, get_services, get_store_info
from heysheets.services.functions.validator import validate_params
from heysheets.services.semantic_matcher import SemanticMatcher
from heysheets.services.sheets_client import SheetsClient

DEFAULT_HANDLERS: Dict[str, Handler] = {
    "get_store_info": get_store_info,
    "get_services": get_services,
    "get_products": get_products,
    "submit_lead": submit_lead,
    "get_misc_data": get_misc_data,
    "check_availability": check_availability,
    "create_booking": create_booking,
    "get_booking_slots": get_booking_slots,
    "get_recommendations": get_recommendations,
}


def check_registry(registry: FunctionRegistry, handlers: Mapping[str, Handler]) -> None:
    """Raise RegistryDriftError unless declared functions and handlers match one to one."""
    declared = set(registry.names)
    implemented = set(handlers)
    if declared != implemented:
        raise RegistryDriftError(
            missing_handlers=declared - implemented,
            undeclared_handlers=implemented - declared,
        )


class FunctionExecutor:
    """
    Dispatch core for function calls.

    The handler table is explicit and closed; it is checked against the
    registry when the executor is built, so drift fails at startup rather
    than mid-conversation.

    Usage:
        executor = FunctionExecutor.from_settings(settings)
        result = await executor.execute("get_products", {"category": "drinks"}, context)
        payload = result.to_response()
    """

    def __init__(
        self,
        services: FunctionServices,
        registry: FunctionRegistry = function_registry,
        handlers: Optional[Mapping[str, Handler]] = None,
        timeout_ms: Optional[int] = None,
    ):
        self.services = services
        self.registry = registry
        self.handlers: Dict[str, Handler] = dict(handlers if handlers is not None else DEFAULT_HANDLERS)
        self.timeout_ms = timeout_ms
        check_registry(self.registry, self.handlers)

    @classmethod
    def from_settings(cls, settings: Settings) -> "FunctionExecutor":
        services = FunctionServices(
            sheets=SheetsClient.from_settings(settings),
            matcher=SemanticMatcher.from_settings(settings),
            lead_status_value=settings.LEAD_STATUS_VALUE,
            calendar=CalendarGatewayClient.from_settings(settings) if settings.CALENDAR_SERVICE_URL else None,
            time_zone=settings.CALENDAR_TIMEZONE,
        )
        return cls(services, timeout_ms=settings.FUNCTION_TIMEOUT_MS)

    async def close(self) -> None:
        await self.services.sheets.close()
        await self.services.matcher.close()
        if self.services.calendar is not None:
            await self.services.calendar.close()

    async def execute(
        self,
        function_name: str,
        raw_params: Any,
        context: FunctionContext,
    ) -> FunctionResult:
        """
        Execute a function with the given arguments.

        Args:
            function_name: Name chosen by the classifier
            raw_params: Arguments as produced by the model, untrusted
            context: The turn's store, credential and detected schema

        Returns:
            FunctionResult with success and data, or failure and error
        """
        start_time = time.time()
        log = get_logger(
            "heysheets.executor",
            request_id=context.request_id,
            store_id=context.store_id,
            function=function_name,
        )

        def finish(result: FunctionResult) -> FunctionResult:
            result.function_name = function_name
            result.execution_time_ms = int((time.time() - start_time) * 1000)
            if result.success:
                log.info(f"{function_name} succeeded in {result.execution_time_ms}ms")
            else:
                log.warning(
                    f"{function_name} failed in {result.execution_time_ms}ms "
                    f"[{result.error_kind.value if result.error_kind else 'unknown'}]: {result.error}"
                )
            return result

        try:
            definition = self.registry.get(function_name)
            handler = self.handlers.get(function_name)
            if definition is None or handler is None:
                return finish(FunctionResult.fail(f"Unknown function: {function_name}", ErrorKind.UNKNOWN_FUNCTION))

            validation = validate_params(definition, raw_params)
            if not validation.valid:
                return finish(FunctionResult.fail(validation.error_message, ErrorKind.VALIDATION))

            call = FunctionCall(name=function_name, params=validation.data, raw_params=dict(raw_params or {}))
            timeout = self.timeout_ms or definition.max_execution_time_ms

            log.debug(f"Calling {function_name} with {sorted(validation.data)}")
            result = await asyncio.wait_for(handler(call, context, self.services), timeout=timeout / 1000)
            return finish(result)

        except asyncio.TimeoutError:
            return finish(FunctionResult.fail(
                f"Function {function_name} timed out after {timeout}ms",
                ErrorKind.TRANSPORT,
            ))

        except Exception as e:
            log.exception(f"{function_name} raised: {e}")
            return finish(FunctionResult.fail(str(e) or "Function execution failed", ErrorKind.INTERNAL))
