"""
Credshare Redemption Server.

HTTP surface for share-link redemption and credential indexing.

Usage:
    # Start the server
    credshare serve

    # Or with uvicorn for production
    uvicorn credshare.server:app --host 127.0.0.1 --port 3003

Endpoints:
    POST /api/auth/access-token  - Redeem a share token
    GET  /api/student/{address}  - List credentials owned by an address
    POST /api/indexer            - Index a credential
    GET  /health                 - Health check

Redemption errors are returned as {"error": message} with status 400 (bad
token or payload), 401 (unrecoverable signature), 403 (view cap reached), 404
(no such credential for the signer) or 500.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from credshare import __version__
from credshare import config
from credshare.errors import InternalError, PayloadError, ShareAccessError
from credshare.gate import MemoryViewCountGate
from credshare.redemption import RedemptionOrchestrator
from credshare.resolver import CredentialResolver
from credshare.store import Credential, CredentialStoreInterface, JsonFileCredentialStore

logger = logging.getLogger("credshare.server")


# =============================================================================
# Pydantic Models
# =============================================================================


class CredentialModel(BaseModel):
    """Credential as exchanged over HTTP."""

    id: str
    studentAddress: str
    courseName: str = ""
    issuerName: str = ""
    issueDate: int = 0  # Unix timestamp
    expirationDate: int = 0  # Unix timestamp, 0 if no expiry
    revoked: bool = False


class RedeemRequest(BaseModel):
    """Redemption request payload."""

    token: Optional[str] = None  # Encoded share token from the link


class RedeemResponse(BaseModel):
    """Successful redemption."""

    valid: bool
    credential: CredentialModel
    viewsLeft: int
    ownerAddress: str  # Address recovered from the token signature


class StudentCredentialsResponse(BaseModel):
    """Credentials owned by an address."""

    address: str
    count: int
    credentials: List[CredentialModel]
    syncedAt: str  # ISO timestamp


class IndexResponse(BaseModel):
    """Indexer response."""

    success: bool
    message: str


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    version: str
    stats: Dict[str, Any]


# =============================================================================
# FastAPI Application
# =============================================================================


def create_app(
    store: Optional[CredentialStoreInterface] = None,
    orchestrator: Optional[RedemptionOrchestrator] = None,
) -> FastAPI:
    """
    Build the redemption server.

    Args:
        store: Credential store (default: JSON file at config.DB_PATH).
        orchestrator: Redemption orchestrator (default: one bound to ``store``
            with an in-memory view-count gate).

    Returns:
        A configured FastAPI application.
    """
    if orchestrator is None:
        store = store or JsonFileCredentialStore(config.DB_PATH)
        orchestrator = RedemptionOrchestrator(
            resolver=CredentialResolver(store),
            gate=MemoryViewCountGate(stripes=config.GATE_STRIPES),
        )
    else:
        store = store or orchestrator.resolver.store

    app = FastAPI(
        title="Credshare",
        description="Redeem signed, view-limited credential share links",
        version=__version__,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.state.store = store
    app.state.orchestrator = orchestrator

    @app.exception_handler(ShareAccessError)
    async def share_error_handler(request: Request, exc: ShareAccessError):
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        logger.warning(f"Invalid request body for {request.url.path}: {exc.errors()}")
        return JSONResponse(status_code=400, content={"error": "Invalid request body"})

    # =========================================================================
    # Endpoints
    # =========================================================================

    @app.post("/api/auth/access-token", response_model=RedeemResponse)
    async def redeem_access_token(body: RedeemRequest):
        """Redeem a share token and return the credential it grants."""
        result = await orchestrator.redeem(body.token)
        return result.to_dict()

    @app.get("/api/student/{address}", response_model=StudentCredentialsResponse)
    async def get_student_credentials(address: str):
        """List credentials owned by an address."""
        logger.info(f"Fetching credentials for {address}")
        try:
            credentials = await store.get_credentials_by_owner(address)
        except Exception as e:
            logger.error(f"Credential listing failed: {e}")
            raise InternalError("Failed to fetch credentials") from e

        logger.info(f"Found {len(credentials)} credentials")
        return StudentCredentialsResponse(
            address=address,
            count=len(credentials),
            credentials=[CredentialModel(**c.to_dict()) for c in credentials],
            syncedAt=datetime.now(timezone.utc).isoformat(),
        )

    @app.post("/api/indexer", response_model=IndexResponse)
    async def index_credential(body: CredentialModel):
        """Index an issued credential."""
        if not body.id or not body.studentAddress:
            raise PayloadError("Invalid credential data")

        try:
            await store.add_credential(Credential.from_dict(body.model_dump()))
        except Exception as e:
            logger.error(f"Indexing failed: {e}")
            raise InternalError("Failed to index credential") from e

        return IndexResponse(success=True, message="Indexed successfully")

    @app.get("/health", response_model=HealthResponse)
    async def health():
        """Health check endpoint."""
        stats: Dict[str, Any] = {"redemption": orchestrator.stats}
        gate_stats = getattr(orchestrator.gate, "stats", None)
        if gate_stats is not None:
            stats["gate"] = gate_stats
        return HealthResponse(status="ok", version=__version__, stats=stats)

    return app


app = create_app()


# =============================================================================
# Main Entry Point
# =============================================================================


def main(host: Optional[str] = None, port: Optional[int] = None) -> None:
    """Run the redemption server."""
    import uvicorn

    host = host or config.HOST
    port = port or config.PORT

    logging.basicConfig(
        level=getattr(logging, config.LOG_LEVEL, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(message)s",
    )
    logger.info(f"Credshare listening on http://{host}:{port} (store: {config.DB_PATH})")

    uvicorn.run(
        app,
        host=host,
        port=port,
        log_level=config.LOG_LEVEL.lower(),
    )


if __name__ == "__main__":
    main()
