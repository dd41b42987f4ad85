# app/api/__init__.py
from fastapi import FastAPI
from app.api.routers import carts, health, orders, users, webhooks


def include_routers(app: FastAPI) -> FastAPI:
    app.include_router(health.router)
    app.include_router(users.router)
    app.include_router(carts.router)
    app.include_router(orders.router)
    app.include_router(webhooks.router)
    return app
