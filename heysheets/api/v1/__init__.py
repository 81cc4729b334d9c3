from fastapi import APIRouter

from heysheets.api.v1 import functions

api_router = APIRouter()
api_router.include_router(functions.router, prefix="/functions", tags=["functions"])
