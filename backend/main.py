from fastapi import FastAPI
import uvicorn
from fastapi.middleware.cors import CORSMiddleware
from db.database import create_db_and_tables
from core.config import settings
from core.error_handlers import setup_exception_handlers
from core.logging_config import configure_logging
from routers.orders import router as orders_router
from routers.inventory import router as inventory_router
from contextlib import asynccontextmanager

@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging(json_lines=settings.log_json)
    await create_db_and_tables()
    yield


app = FastAPI(
    title="Restaurant POS Stock API",
    description="Order-driven inventory deduction, restoration and audit",
    version="0.1.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

setup_exception_handlers(app)

# Order line items (stock-affecting)
app.include_router(orders_router, prefix="/orders", tags=["orders"])
# Components, adjustments, audit and reconciliation
app.include_router(inventory_router, prefix="/inventory", tags=["inventory"])

if __name__ == "__main__":
    uvicorn.run("main:app", host="0.0.0.0", port=8000, reload=True)
