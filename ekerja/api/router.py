"""Central router that includes all sub-routers."""

from fastapi import APIRouter

from ekerja.api.auth import router as auth_router
from ekerja.api.provider_services import router as provider_services_router
from ekerja.api.orders import router as orders_router
from ekerja.api.order_details import router as order_details_router
from ekerja.api.reviews import router as reviews_router
from ekerja.api.chat import router as chat_router
from ekerja.api.chat_access import router as chat_access_router
from ekerja.api.admin import router as admin_router

api_router = APIRouter()
api_router.include_router(auth_router)
api_router.include_router(provider_services_router)
api_router.include_router(orders_router)
api_router.include_router(order_details_router)
api_router.include_router(reviews_router)
api_router.include_router(chat_router)
api_router.include_router(chat_access_router)
api_router.include_router(admin_router)
