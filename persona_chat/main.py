import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request, Depends
from fastapi.exceptions import RequestValidationError
from fastapi.responses import StreamingResponse, JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.util import get_remote_address
from slowapi.errors import RateLimitExceeded

from persona_chat.config import settings
from persona_chat.errors import ChatError
from persona_chat.schemas.chat import ChatRequest, ChatResult, PersonaCard
from persona_chat.services.chat_handler import ChatHandler
from persona_chat.services.prompts.personas import list_personas
from persona_chat.services.providers import ProviderRegistry

__version__ = "1.0.0"

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

# Suppress unnecessary logs
logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("openai").setLevel(logging.WARNING)
logging.getLogger("google").setLevel(logging.WARNING)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Build the provider adapters once for the process"""
    app.state.registry = ProviderRegistry.from_settings(timeout=settings.provider_timeout)
    logger.info(f"Persona chat started, providers: {app.state.registry.configured}")
    yield
    logger.info("Persona chat shutting down")


# Initialize rate limiter
limiter = Limiter(key_func=get_remote_address)

# Initialize FastAPI app
app = FastAPI(title="Persona Chat API", version=__version__, lifespan=lifespan)

# Add middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Add rate limiting
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)


def get_registry(request: Request) -> ProviderRegistry:
    return request.app.state.registry


def get_chat_handler(registry: ProviderRegistry = Depends(get_registry)) -> ChatHandler:
    return ChatHandler(registry=registry, settings=settings)


@app.get("/health")
async def health_check(registry: ProviderRegistry = Depends(get_registry)):
    """Service status and the providers configured on the server"""
    return {
        "status": "OK",
        "version": __version__,
        "providers": registry.configured,
    }


@app.get("/api/personas", response_model=list[PersonaCard])
async def personas_endpoint():
    """Persona cards shown by the chat page"""
    return [
        PersonaCard(
            id=persona.id,
            name=persona.display_name,
            role=persona.role,
            description=persona.description,
        )
        for persona in list_personas()
    ]


@app.post("/api/chat", response_model=None)
@limiter.limit(f"{settings.api_rate_limit}/minute")
async def chat_endpoint(
    request: Request,
    chat_request: ChatRequest,
    handler: ChatHandler = Depends(get_chat_handler),
):
    """Answer a chat message, streamed as frames or as one JSON payload"""
    if chat_request.stream:
        relay = handler.open_stream(chat_request, is_disconnected=request.is_disconnected)
        return StreamingResponse(relay.frames(), media_type="text/plain")

    result: ChatResult = await handler.complete(chat_request)
    return result.model_dump(exclude_none=True)


@app.exception_handler(ChatError)
async def chat_error_handler(request: Request, exc: ChatError):
    logger.warning(f"Chat request rejected ({exc.status_code}): {exc.message}")
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    logger.warning(f"Malformed chat request: {exc.errors()}")
    if any(error.get("type") == "string_too_long" for error in exc.errors()):
        return JSONResponse(status_code=400, content={"error": "Message is too long"})
    return JSONResponse(status_code=400, content={"error": "Malformed request body"})


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.error(f"Global exception: {str(exc)}", exc_info=True)
    return JSONResponse(status_code=500, content={"error": "Internal server error"})
