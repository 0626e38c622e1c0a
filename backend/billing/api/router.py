from fastapi import APIRouter

from billing.api.routes import billing, clients, contracts

api_router = APIRouter()

api_router.include_router(billing.router, prefix="/billing", tags=["billing"])
api_router.include_router(contracts.router, prefix="/contracts", tags=["contracts"])
api_router.include_router(clients.router, prefix="/clients", tags=["clients"])
