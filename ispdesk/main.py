# ispdesk/main.py
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, WebSocket, WebSocketDisconnect
from fastapi.middleware.cors import CORSMiddleware

from . import __version__
from .api import health
from .api.billing import main as billing_main_api
from .api.customers import main as customers_main_api
from .api.invoices import main as invoices_main_api
from .api.plans import main as plans_main_api
from .api.routers import main as routers_main_api
from .api.sessions import main as sessions_main_api
from .config import get_settings
from .core.websockets import manager
from .db.engine_sync import create_sync_db_and_tables
from .scheduler import BillingScheduler

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - [%(name)s] - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    create_sync_db_and_tables()
    logger.info("Database tables initialized")

    scheduler = None
    if settings.scheduler_enabled:
        scheduler = BillingScheduler(
            interval_minutes=settings.billing_interval_minutes,
            run_on_startup=settings.billing_run_on_startup,
        )
        scheduler.start()
    app.state.scheduler = scheduler

    yield

    if scheduler is not None:
        scheduler.stop()


app = FastAPI(title="ISP Desk", version=__version__, lifespan=lifespan)

origins = [origin.strip() for origin in settings.allowed_origins.split(",") if origin.strip()]

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ============================================================================
# --- WEBSOCKET ---
# ============================================================================
@app.websocket("/ws/dashboard")
async def websocket_dashboard(websocket: WebSocket):
    await manager.connect(websocket)
    try:
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        manager.disconnect(websocket)


# ============================================================================
# --- ROUTERS INCLUSION ---
# ============================================================================
app.include_router(health.router)
app.include_router(customers_main_api.router, prefix="/api", tags=["Customers"])
app.include_router(plans_main_api.router, prefix="/api", tags=["Plans"])
app.include_router(invoices_main_api.router, prefix="/api", tags=["Invoices"])
app.include_router(routers_main_api.router, prefix="/api", tags=["Routers"])
app.include_router(sessions_main_api.router, prefix="/api", tags=["Sessions"])
app.include_router(billing_main_api.router, prefix="/api", tags=["Billing"])
