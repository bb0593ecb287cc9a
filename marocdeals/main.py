import asyncio
import contextlib
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from marocdeals.api import auth_routes
from marocdeals.core.config import PORT, VERIFICATION_SWEEP_INTERVAL_SECONDS
from marocdeals.core.logger import configure_logging
from marocdeals.db.session import SessionLocal, engine
from marocdeals.models.base import Base
from marocdeals.services.account_repository import SqlAlchemyAccountRepository
from marocdeals.services.auth_flow import AuthFlow
from marocdeals.services.email_service import EmailCodeSender
from marocdeals.services.verification_store import VerificationStore

configure_logging()
logger = logging.getLogger(__name__)


def build_auth_flow() -> AuthFlow:
    return AuthFlow(
        store=VerificationStore(),
        sender=EmailCodeSender(),
        accounts=SqlAlchemyAccountRepository(SessionLocal),
    )


def create_tables():
    Base.metadata.create_all(bind=engine)


async def _sweep_loop(app: FastAPI, stop: asyncio.Event):
    try:
        while not stop.is_set():
            try:
                app.state.auth_flow.sweep()
            except Exception:
                logger.exception("Verification sweep failed")
            try:
                await asyncio.wait_for(stop.wait(), timeout=VERIFICATION_SWEEP_INTERVAL_SECONDS)
            except asyncio.TimeoutError:
                continue
    except asyncio.CancelledError:
        pass


@contextlib.asynccontextmanager
async def lifespan(app: FastAPI):
    create_tables()
    stop_sweep = asyncio.Event()
    app.state._sweep_task = asyncio.create_task(_sweep_loop(app, stop_sweep))
    logger.info("Service started with verification code sweeper")
    try:
        yield
    finally:
        stop_sweep.set()
        app.state._sweep_task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await app.state._sweep_task


app = FastAPI(title="MarocDeals authentication service", lifespan=lifespan)
app.state.auth_flow = build_auth_flow()
app.include_router(auth_routes.router, tags=["auth"])

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/health")
async def health():
    return {"status": "ok"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=PORT)
