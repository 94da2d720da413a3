# backend/orderdesk/main.py
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from orderdesk.core.config import settings
from orderdesk.api import orders
from orderdesk.core.init_db import init_db
from orderdesk.replenishment.notifications import NotificationEmitter

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title="PV Order Desk API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.on_event("startup")
async def startup():
    await init_db()

    # Shared by every request so presentation code can subscribe once
    app.state.notification_emitter = NotificationEmitter()
    logger.info("Order desk started")


app.include_router(orders.router)


@app.get("/health")
async def health():
    return {"status": "ok"}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host=settings.HOST, port=settings.PORT)
