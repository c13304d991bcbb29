from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .api import balances, health
from .config import settings
from .errors import TokenscopeError
from .logging_config import setup_logging
from .middleware import RequestLoggingMiddleware
from .services.balances import build_balance_service
from .types import StandardResponse


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging()
    # Caches live on the service graph for the lifetime of the process
    app.state.balance_service = build_balance_service(settings)
    yield


app = FastAPI(
    title="Tokenscope API",
    description="Multi-chain native and fungible token balances with spam filtering",
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
app.add_middleware(RequestLoggingMiddleware)


def _error_response(status_code: int, message: str) -> JSONResponse:
    body = StandardResponse.failure(message).model_dump(mode="json")
    return JSONResponse(status_code=status_code, content=body)


@app.exception_handler(TokenscopeError)
async def tokenscope_error_handler(request: Request, exc: TokenscopeError) -> JSONResponse:
    return _error_response(exc.status_code, exc.message)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    message = errors[0].get("msg", "Invalid request") if errors else "Invalid request"
    return _error_response(400, message)


app.include_router(health.router, tags=["Health"])
app.include_router(balances.router, tags=["Balances"])


@app.get("/")
async def root():
    """Root endpoint with basic info"""
    return {
        "name": "Tokenscope API",
        "version": "0.1.0",
        "docs": "/docs",
        "health": "/healthz",
        "networks": "/networks",
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "tokenscope.main:app",
        host=settings.host,
        port=settings.port,
        reload=True,
        log_level=settings.log_level.lower()
    )
