"""
FastAPI Application Entry Point
Game Pass contract backend: paid/free game credits, game sessions, reward mints
"""
from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
import logging
import sys
import os

from config import settings
from app.database.connection import connect_to_mongo, close_mongo_connection, get_database
from app.contract.errors import ContractError
from app.contract.repository import MongoContractRepository
from app.contract.service import ContractService
from app.minting.gateway import MintGateway

from app.admin.routes import router as admin_router
from app.contract.routes import router as contract_router
from app.credits.routes import router as credits_router
from app.games.routes import router as games_router
from app.payments.routes import router as payments_router
from routes.pricing import router as pricing_router


def setup_logging():
    """Configure logging with UTF-8 file and console handlers"""
    if sys.platform == "win32":
        if hasattr(sys.stdout, 'reconfigure'):
            sys.stdout.reconfigure(encoding='utf-8')
        if hasattr(sys.stderr, 'reconfigure'):
            sys.stderr.reconfigure(encoding='utf-8')

    logging.basicConfig(
        level=logging.DEBUG if settings.DEBUG else logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[
            logging.FileHandler(settings.LOG_FILE, encoding='utf-8'),
            logging.StreamHandler(sys.stdout)
        ]
    )

    return logging.getLogger(__name__)


logger = setup_logging()


async def build_contract_service() -> ContractService:
    """Connect storage, initialize or migrate the contract, wire the service"""
    await connect_to_mongo()
    db = await get_database()

    repository = MongoContractRepository(db)
    await repository.bootstrap(
        owner_id=settings.CONTRACT_OWNER_ID,
        payment_token_id=settings.PAYMENT_TOKEN_ID,
        mint_service_id=settings.MINT_SERVICE_ID,
    )

    mint_gateway = MintGateway(
        settings.MINT_SERVICE_URL,
        timeout=settings.MINT_CALL_TIMEOUT_SECONDS,
    )
    return ContractService(
        repository,
        mint_gateway,
        start_policy=settings.SESSION_START_POLICY,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager"""
    logger.info("=" * 60)
    logger.info("Starting Game Pass contract backend...")
    logger.info("=" * 60)

    try:
        app.state.contract_service = await build_contract_service()
        logger.info(f"[OK] Contract service ready (start policy: {settings.SESSION_START_POLICY})")
    except Exception as e:
        logger.critical(f"[FAIL] Contract service unavailable: {str(e)}", exc_info=True)
        logger.warning("[WARNING] App starting in degraded mode - contract calls return 503")
        app.state.contract_service = None

    yield

    logger.info("Shutting down application...")
    service = getattr(app.state, "contract_service", None)
    if service is not None:
        await service.mint_gateway.wait_pending()
    await close_mongo_connection()
    logger.info("[OK] Cleanup complete")


app = FastAPI(
    title="Game Pass API",
    description="Game credits, game sessions and reward mints",
    version="1.0.0",
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(ContractError)
async def contract_error_handler(request: Request, exc: ContractError):
    """Rejected contract call: nothing was committed"""
    logger.info(f"Contract call rejected on {request.url.path}: {exc.kind}: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Global exception handler"""
    logger.error(f"Unhandled exception: {str(exc)}", exc_info=True)

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "detail": "Internal server error",
            "error": str(exc) if settings.DEBUG else "An error occurred"
        }
    )


@app.get("/health")
async def health_check():
    from app.database.connection import check_database_health

    db_health = await check_database_health()
    ready = getattr(app.state, "contract_service", None) is not None

    return {
        "status": "healthy" if ready and db_health.get("status") == "healthy" else "unhealthy",
        "service": "game-pass-api",
        "version": "1.0.0",
        "contract_ready": ready,
        "database": db_health
    }


@app.get("/")
async def root():
    return {
        "message": "Game Pass API v1.0",
        "status": "operational",
        "docs": f"{settings.API_URL}/docs",
        "health": f"{settings.API_URL}/health"
    }


# Player-facing
app.include_router(games_router)
app.include_router(credits_router)
app.include_router(pricing_router)
app.include_router(contract_router)

# Payment token notifications
app.include_router(payments_router)

# Owner configuration
app.include_router(admin_router)


if __name__ == "__main__":
    import uvicorn

    port = int(os.getenv("PORT", 8000))

    logger.info(f"Starting Uvicorn Server (debug: {settings.DEBUG})")

    # One worker: contract calls are serialized inside a single process
    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=port,
        reload=settings.DEBUG,
        workers=1,
        log_level="info"
    )
