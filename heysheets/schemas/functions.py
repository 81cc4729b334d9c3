from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from heysheets.services.functions.schema import StoreConfig


class ExecuteFunctionRequest(BaseModel):
    """A classified intent to run against one store."""
    model_config = ConfigDict(populate_by_name=True)

    function_name: str = Field(..., alias="functionName", description="Function chosen by the classifier")
    raw_params: Optional[Dict[str, Any]] = Field(
        default_factory=dict,
        alias="rawParams",
        description="Arguments exactly as the model produced them",
    )
    store_id: str = Field(..., alias="storeId")
    auth_token: str = Field(..., alias="authToken", description="Caller credential forwarded to the sheets gateway")
    store_config: StoreConfig = Field(default_factory=StoreConfig, alias="storeConfig")


class FunctionEnvelope(BaseModel):
    """Outbound envelope: data on success, error on failure, never both."""
    success: bool
    data: Optional[Dict[str, Any]] = None
    error: Optional[str] = None


class FunctionCatalogResponse(BaseModel):
    version: str
    count: int
    functions: List[Dict[str, Any]]
