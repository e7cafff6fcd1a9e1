# backend/main.py
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from config import settings
from database import create_db_engine, create_session_factory, init_db
from utils.errors import ShopError

# Routers
from routes.users import router as users_router
from routes.products import router as products_router
from routes.carts import router as carts_router
from routes.orders import router as orders_router
from routes.reviews import router as reviews_router
from routes.logs import router as logs_router

logger = logging.getLogger(__name__)


def create_app(database_url: Optional[str] = None) -> FastAPI:
    logging.basicConfig(level=settings.LOG_LEVEL)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # Startup: one engine (connection pool) per process, handed to routes via get_db
        engine = create_db_engine(database_url or settings.DATABASE_URL)
        init_db(engine)
        app.state.engine = engine
        app.state.SessionLocal = create_session_factory(engine)
        logger.info("Database ready (%s)", engine.url.render_as_string(hide_password=True))

        yield

        # Shutdown
        engine.dispose()
        logger.info("Database connections closed")

    app = FastAPI(title="Shop API", version="1.0.0", lifespan=lifespan)

    # CORS: local dev servers plus the deployed frontend, if configured
    origins = [
        "http://localhost:5173",
        "http://127.0.0.1:5173",
    ]
    if settings.FRONTEND_URL:
        origins.append(settings.FRONTEND_URL)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(ShopError)
    async def shop_error_handler(request: Request, exc: ShopError):
        headers = {"WWW-Authenticate": "Bearer"} if exc.status_code == 401 else None
        return JSONResponse(status_code=exc.status_code, content={"msg": exc.message}, headers=headers)

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        # The rejected input is not echoed back; it may not even be JSON-encodable (inf, nan)
        errors = [{k: v for k, v in err.items() if k != "input"} for err in exc.errors()]
        return JSONResponse(status_code=400, content={"errors": jsonable_encoder(errors)})

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(status_code=500, content={"msg": "Server error"})

    # Router registration
    app.include_router(users_router)
    app.include_router(products_router)
    app.include_router(carts_router)
    app.include_router(orders_router)
    app.include_router(reviews_router)
    app.include_router(logs_router)

    @app.get("/")
    def read_root():
        return {"message": "Shop API is running"}

    return app


app = create_app()
