import logging
from contextlib import asynccontextmanager

import redis.asyncio as aioredis
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from coursehub.config import get_settings
from coursehub.core.middleware import (
    RequestIdLogFilter,
    error_envelope_middleware,
    http_exception_handler,
    request_id_middleware,
)
from coursehub.database import init_db
from coursehub.lms.router import courses_router, lessons_router


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    init_db(settings.database_url)

    # Redis pool
    app.state.redis = aioredis.from_url(
        settings.redis_url, decode_responses=True,
    )

    yield

    # Shutdown
    await app.state.redis.aclose()


SWAGGER_DESCRIPTION = """\
## CourseHub: Course & Lesson Service

Owns courses, their lessons, and the order lessons are presented in.

### Domain Tags

| Tag | Description |
|-----|-------------|
| **Courses** | Course CRUD, search, summary, publish / unpublish |
| **Lessons** | Lesson CRUD, move up / move down, bulk reorder |

### Authentication

All endpoints (except health check) require a valid JWT Bearer token in
the `Authorization` header.
Token structure: `{"sub": "<user_uuid>", "email": "...", "roles": [...]}`.
Permanent deletes require the `admin` role.

### Lesson Ordering

Every active lesson in a course has a distinct positive `order`. Gaps
are allowed. Moves swap orders with the nearest active neighbour; a
bulk reorder is applied in full or not at all.

### Status Transitions

```
Course: DRAFT ⇄ PUBLISHED   (publish requires at least one active lesson)
```
"""


def create_app() -> FastAPI:
    settings = get_settings()
    log_handler = logging.StreamHandler()
    log_handler.addFilter(RequestIdLogFilter())
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(levelname)s:%(name)s:[%(request_id)s] %(message)s",
        handlers=[log_handler],
    )

    app = FastAPI(
        title="CourseHub Course & Lesson Service",
        version="0.1.0",
        description=SWAGGER_DESCRIPTION,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        max_age=600,
    )
    # Registered last runs outermost: request ids wrap the error envelope
    app.middleware("http")(error_envelope_middleware)
    app.middleware("http")(request_id_middleware)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)

    app.include_router(courses_router, prefix="/api/v1")
    app.include_router(lessons_router, prefix="/api/v1")

    @app.get("/health", tags=["Health"])
    async def health() -> dict:
        return {"status": "ok", "service": "course"}

    return app


app = create_app()
