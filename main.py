from __future__ import annotations
import json
import logging
from contextlib import asynccontextmanager
from typing import Any, Optional

from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse, JSONResponse
from pydantic import BaseModel

from catalog import PRODUCTS, check_api_key, create_product, list_products, seed_products
from config import Settings, setup_logging
from database import JsonStore
from errors import ErrorCode, StoreError
from orders import ORDERS, submit_order

logger = logging.getLogger(__name__)


class SeedResponse(BaseModel):
    inserted: int


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_store(request: Request) -> JsonStore:
    return request.app.state.store


def supplied_api_key(request: Request) -> Optional[str]:
    return request.headers.get("x-api-key") or request.query_params.get("apiKey")


async def json_body(request: Request) -> Any:
    # An empty or unparseable body counts as no body; each route answers with its own 400.
    # Routes themselves are plain functions so their file I/O runs in the threadpool.
    body = await request.body()
    if not body:
        return None
    try:
        return json.loads(body)
    except ValueError:
        return None


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or Settings()
    setup_logging(settings.LOG_LEVEL)
    store = JsonStore(settings.DATA_DIR)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        store.ensure_collections(PRODUCTS, ORDERS)
        if settings.SEED_DEMO:
            seed_products(store, settings.ADMIN_API_KEY)
        logger.info(f"Nature Connect Market server running on http://localhost:{settings.PORT}")
        yield

    app = FastAPI(title="Nature Connect Market API", lifespan=lifespan)
    app.state.settings = settings
    app.state.store = store

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(StoreError)
    async def store_error_handler(request: Request, exc: StoreError):
        return JSONResponse(status_code=exc.status_code, content=exc.to_client())

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.error(f"Unhandled error on {request.method} {request.url.path}: {exc}", exc_info=exc)
        return JSONResponse(
            status_code=500,
            content={"error": "Internal Server Error", "code": ErrorCode.INTERNAL_ERROR.value},
        )

    @app.get("/api/health")
    async def health():
        return {"ok": True}

    @app.get("/api/products")
    def get_products(store: JsonStore = Depends(get_store)):
        return list_products(store)

    @app.post("/api/products", status_code=201)
    def post_product(
        request: Request,
        payload: Any = Depends(json_body),
        store: JsonStore = Depends(get_store),
        settings: Settings = Depends(get_settings),
    ):
        product = create_product(store, payload, supplied_api_key(request), settings.ADMIN_API_KEY)
        return product.model_dump(by_alias=True)

    @app.post("/api/seed", response_model=SeedResponse)
    def seed(
        request: Request,
        store: JsonStore = Depends(get_store),
        settings: Settings = Depends(get_settings),
    ):
        check_api_key(supplied_api_key(request), settings.ADMIN_API_KEY)
        return SeedResponse(inserted=seed_products(store, settings.ADMIN_API_KEY))

    @app.post("/api/orders", status_code=201)
    def post_order(payload: Any = Depends(json_body), store: JsonStore = Depends(get_store)):
        data = payload if isinstance(payload, dict) else {}
        submission = submit_order(store, data.get("items"), data.get("customer"))
        return {
            "ok": True,
            "order": submission.order.model_dump(by_alias=True),
            "rejected": [r.model_dump(by_alias=True) for r in submission.rejected],
        }

    # Anything else is either a file from the client bundle or the client shell
    @app.get("/{full_path:path}", include_in_schema=False)
    def client_app(full_path: str, settings: Settings = Depends(get_settings)):
        public_dir = settings.PUBLIC_DIR.resolve()
        if full_path:
            candidate = (public_dir / full_path).resolve()
            if candidate.is_file() and candidate.is_relative_to(public_dir):
                return FileResponse(candidate)
        index = public_dir / "index.html"
        if not index.is_file():
            return JSONResponse(status_code=404, content={"error": "Not Found"})
        return FileResponse(index)

    return app


app = create_app()


def run():
    import uvicorn
    settings = app.state.settings
    uvicorn.run(app, host=settings.HOST, port=settings.PORT)


if __name__ == "__main__":
    run()
