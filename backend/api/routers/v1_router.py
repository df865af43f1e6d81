from fastapi import APIRouter

from api.routers import admin, auth, menu, orders, websocket

routes = APIRouter()

# Include all routers
routes.include_router(menu.router)
routes.include_router(orders.router)
routes.include_router(auth.router)
routes.include_router(admin.router)

# WebSocket routes
routes.include_router(websocket.router)
