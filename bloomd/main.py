import logging
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, PlainTextResponse
from prometheus_client import generate_latest

from .config import Settings, settings
from .errors import LockPoisonedError
from .metrics import (
    BLOOMD_ERRORS_TOTAL,
    CONTAINS_RESULTS_TOTAL,
    FILTER_OPERATION_LATENCY_SECONDS,
    FILTER_OPERATIONS_TOTAL,
    HTTP_REQUESTS_TOTAL,
)
from .models import (
    ContainsRequest,
    ContainsResponse,
    InsertRequest,
    InsertResponse,
    StatsResponse,
)
from .shared import SharedBloomFilter

logger = logging.getLogger("bloomd.main")


def setup_logging(level: str = "INFO") -> None:
    level = level.upper()
    if not logging.getLogger().handlers:
        logging.basicConfig(
            level=level,
            format="%(asctime)s %(levelname)s %(name)s: %(message)s"
        )
    logging.getLogger("bloomd").setLevel(level)


def create_app(cfg: Settings = settings) -> FastAPI:
    """
    Build the service around one SharedBloomFilter.

    The filter is allocated in the lifespan hook, so an invalid geometry
    aborts startup before any request is served.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        shared = SharedBloomFilter.create(cfg.expected_elements, cfg.false_positive_rate)
        logger.info(
            "BloomFilter n=%d f=%s m=%d k=%d size=%d bytes",
            shared.n, shared.f, shared.m, shared.k, shared.size,
        )
        app.state.bloom = shared
        try:
            yield
        finally:
            # nothing is persisted: the filter dies with the process
            app.state.bloom = None
            logger.info("BloomFilter discarded")

    app = FastAPI(
        title=cfg.app_name,
        version="0.1.0",
        description="Bloom filter membership service: insert items, ask whether they might be present.",
        lifespan=lifespan,
    )

    @app.middleware("http")
    async def prometheus_middleware(request: Request, call_next):
        HTTP_REQUESTS_TOTAL.labels(method=request.method, path=request.url.path).inc()
        return await call_next(request)

    @app.exception_handler(LockPoisonedError)
    async def lock_poisoned_handler(request: Request, exc: LockPoisonedError):
        BLOOMD_ERRORS_TOTAL.labels(type="lock_poisoned").inc()
        logger.error("%s %s failed: %s", request.method, request.url.path, exc)
        return JSONResponse(status_code=500, content={"detail": "internal_error"})

    @app.exception_handler(RequestValidationError)
    async def validation_handler(request: Request, exc: RequestValidationError):
        # the offending input is not echoed: it may not be encodable as JSON
        errors = [{"type": e["type"], "loc": e["loc"], "msg": e["msg"]} for e in exc.errors()]
        return JSONResponse(status_code=422, content={"detail": jsonable_encoder(errors)})

    # Plain `def` routes run in the threadpool: concurrent requests are
    # concurrent callers of the shared filter.
    @app.post("/insert", response_model=InsertResponse, tags=["bloom"])
    def insert(body: InsertRequest, bloom: SharedBloomFilter = Depends(get_bloom)) -> InsertResponse:
        logger.debug("insert item=%r", body.payload)
        FILTER_OPERATIONS_TOTAL.labels(op="insert").inc()
        with FILTER_OPERATION_LATENCY_SECONDS.labels(op="insert").time():
            bloom.insert(body.payload)
        return InsertResponse()

    @app.post("/contains", response_model=ContainsResponse, tags=["bloom"])
    def contains(body: ContainsRequest, bloom: SharedBloomFilter = Depends(get_bloom)) -> ContainsResponse:
        logger.debug("contains item=%r", body.payload)
        FILTER_OPERATIONS_TOTAL.labels(op="contains").inc()
        with FILTER_OPERATION_LATENCY_SECONDS.labels(op="contains").time():
            found = bloom.contains(body.payload)
        CONTAINS_RESULTS_TOTAL.labels(result="present" if found else "absent").inc()
        return ContainsResponse(contains_item=found)

    @app.get("/stats", response_model=StatsResponse, tags=["bloom"])
    def stats(bloom: SharedBloomFilter = Depends(get_bloom)) -> StatsResponse:
        return StatsResponse.from_stats(bloom.stats())

    @app.get("/metrics", response_class=PlainTextResponse, tags=["internal"])
    def metrics():
        # Prometheus scraping endpoint
        return PlainTextResponse(generate_latest().decode("utf-8"))

    @app.get("/health", tags=["internal"])
    def health():
        return {"ok": True}

    return app


def get_bloom(request: Request) -> SharedBloomFilter:
    return request.app.state.bloom


app = create_app()
