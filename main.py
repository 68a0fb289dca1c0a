import logging
from contextlib import asynccontextmanager
from typing import Callable

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pymongo.errors import OperationFailure, PyMongoError
from starlette.exceptions import HTTPException as StarletteHTTPException

import api
import config
import views
from database import Database
from errors import ListingError

logger = logging.getLogger(__name__)


def _is_api(request: Request) -> bool:
    return request.url.path.startswith("/api")


def error_response(request: Request, message: str, status_code: int, title: str = "Error"):
    if _is_api(request):
        return JSONResponse(status_code=status_code, content={"error": message})
    return views.render_error(request, message, title=title, status_code=status_code)


async def listing_error_handler(request: Request, exc: ListingError):
    return error_response(request, str(exc), 400)


async def database_error_handler(request: Request, exc: PyMongoError):
    logger.exception("Database error on %s %s", request.method, request.url.path)
    return error_response(request, f"Database error: {exc}", 500)


async def http_error_handler(request: Request, exc: StarletteHTTPException):
    message, status_code = exc.detail, exc.status_code
    # a known path hit with the wrong method is reported as an unknown route
    if status_code == 405 or (status_code == 404 and message == "Not Found"):
        message, status_code = "Route not found", 404
    return error_response(request, str(message), status_code)


async def validation_error_handler(request: Request, exc: RequestValidationError):
    problems = []
    for err in exc.errors():
        location = ".".join(str(part) for part in err.get("loc", ())[1:])
        problems.append(f"{location}: {err.get('msg')}" if location else str(err.get("msg")))
    return error_response(request, "Invalid request: " + "; ".join(problems), 400)


def create_app(database_factory: Callable[[], Database] = Database.from_env) -> FastAPI:
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        database = database_factory()
        try:
            database.ensure_indexes()
        except OperationFailure as e:
            logger.warning("Could not create unique index on listing id: %s", e)
        app.state.database = database
        try:
            yield
        finally:
            database.close()

    app = FastAPI(title="QuickRentals", version="1.0.0", lifespan=lifespan)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(ListingError, listing_error_handler)
    app.add_exception_handler(PyMongoError, database_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)

    @app.get("/test")
    def test_database(request: Request):
        return request.app.state.database.status()

    app.include_router(api.router)
    app.include_router(views.router)
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    logging.basicConfig(level=config.LOG_LEVEL, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s")
    uvicorn.run(app, host="0.0.0.0", port=config.PORT)
