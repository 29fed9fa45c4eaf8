import inspect
import logging
import os
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from fastapi import FastAPI, Request, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse
from fastapi.staticfiles import StaticFiles
from openai import AsyncOpenAI

from dal.case_dal import CaseDAL
from dal.session_dal import SessionDAL
from routes.case_route import router as case_router
from routes.chat_route import router as chat_router
from routes.openai_proxy_route import router as openai_router
from routes.session_route import router as session_router
from services.interview.chat_registry import ChatRegistry
from services.interview.conversation_engine import ConversationEngine
from services.interview.learner_identity import LearnerIdentity
from services.interview.review_generator import ReviewGenerator
from services.openai.chat_gateway import ChatGateway
from utils.storage_init import JsonStorageInitializer, load_gateway_settings, load_gateway_timeout

BASE_DIR = Path(__file__).resolve().parent
PUBLIC_DIR = BASE_DIR / "public"

from dotenv import load_dotenv

load_dotenv()  # Load environment variables from .env file if present

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan manager to initialize:
      - the JSON case and session stores under DATA_DIR
      - the OpenAI async client and the chat gateway (unless one was injected)
      - the conversation engine, review generator and live chat registry
    and attach them to `app.state`.
    """
    storage = JsonStorageInitializer(getattr(app.state, "data_dir", None))
    await storage.ensure_storage()
    app.state.storage = storage
    app.state.session_dal = SessionDAL(storage.sessions_path, storage.sessions_text_path)
    app.state.case_dal = CaseDAL(storage.cases_path)

    settings = load_gateway_settings()
    app.state.gateway_settings = settings

    openai_client = None
    gateway = getattr(app.state, "chat_gateway", None)
    if gateway is None:
        if not os.getenv("OPENAI_API_KEY"):
            raise RuntimeError("OPENAI_API_KEY environment variable is not set")
        try:
            openai_client = AsyncOpenAI(timeout=load_gateway_timeout())
        except Exception as exc:
            raise RuntimeError("Failed to initialize OpenAI Async client") from exc
        gateway = ChatGateway(openai_client, settings)
        app.state.chat_gateway = gateway
    app.state.openai_client = openai_client

    app.state.conversation_engine = ConversationEngine(gateway, settings=settings)
    app.state.review_generator = ReviewGenerator(
        gateway, app.state.session_dal, guidelines_path=storage.review_guidelines_path
    )
    app.state.learner_identity = LearnerIdentity()
    app.state.chat_registry = ChatRegistry()

    logging.info(f"Data directory: {storage.data_dir} (model={settings.model}, temperature={settings.temperature})")

    try:
        yield
    finally:
        # Gracefully close the OpenAI client if it exposes a close/aclose method.
        client = openai_client
        if client is not None:
            aclose = getattr(client, "aclose", None) or getattr(client, "close", None)
            if aclose is not None:
                try:
                    if inspect.iscoroutinefunction(aclose):
                        await aclose()
                    else:
                        result = aclose()
                        if inspect.isawaitable(result):
                            await result
                except Exception as exc:
                    logging.warning(f"Error closing OpenAI client: {exc}")


def create_app(chat_gateway=None, data_dir: Optional[Path | str] = None) -> FastAPI:
    """
    Create and configure the FastAPI application instance.

    `chat_gateway` and `data_dir` override the OpenAI-backed gateway and the
    DATA_DIR location (used by tests and local tooling).
    """
    app = FastAPI(lifespan=lifespan)
    app.state.chat_gateway = chat_gateway
    app.state.data_dir = data_dir

    app.add_middleware(CORSMiddleware, allow_origins=["*"], allow_methods=["*"], allow_headers=["*"])

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        logging.info(f"{datetime.now(timezone.utc).isoformat()} - {request.method} {request.url.path}")
        return await call_next(request)

    # Serve static assets from the public directory, if it exists.
    if PUBLIC_DIR.exists():
        app.mount("/public", StaticFiles(directory=PUBLIC_DIR), name="public")

    @app.get("/", include_in_schema=False)
    async def serve_index():
        """
        Serve the frontend index page from the public directory.
        """
        index_path = PUBLIC_DIR / "index.html"
        if not index_path.exists():
            raise HTTPException(status_code=404, detail="Frontend not found")
        return FileResponse(index_path)

    @app.get("/health")
    async def health(request: Request):
        """
        Read-only status check; never touches chats or stored sessions.
        """
        has_gateway = getattr(request.app.state, "chat_gateway", None) is not None
        return {
            "status": "ok",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "message": "Server is running correctly",
            "openai_available": has_gateway,
        }

    # Register application routers
    app.include_router(case_router)
    app.include_router(session_router)
    app.include_router(chat_router)
    app.include_router(openai_router)

    return app


app = create_app()
