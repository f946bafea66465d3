"""
Swift Ship Agents - Main Application
====================================

Multi-agent chat service for Swift Ship: freight quotes, documentation,
shipment status and technical support, streamed to the chat UI.

Modules:
- Quoting: pricing engine, quote conversation state machine, estimates
- Agents: router, specialized agents, chat streaming endpoint

Clean Architecture Layers:
- Interfaces: FastAPI controllers
- Application: Services, agents and DTOs
- Domain: Entities, value objects, prompts
- Infrastructure: Database, LLM, vector store, geocoding
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

# Configuration
from swiftship.config import settings

# Infrastructure
from swiftship.infrastructure.database import init_database, close_database, create_tables
from swiftship.infrastructure.geocoding import create_geocoding_provider
from swiftship.infrastructure.llm import ILLMClient, create_llm_client
from swiftship.infrastructure.vectorstore import IVectorStore, InMemoryVectorStore, MilvusVectorStore

# Quoting Module
from swiftship.quoting.application import IQuoteRepository, QuoteService, QuoteStateMachine
from swiftship.quoting.infrastructure import (
    ConversationStateStore,
    ConversationSweepScheduler,
    InMemoryQuoteRepository,
    PricingConfigManager,
    RouteGateway,
    SQLAlchemyQuoteRepository,
)

# Agents Module
from swiftship.agents.application import (
    AgentCoordinator,
    AgentRegistry,
    DocsAgent,
    IKnowledgeBase,
    QuoteAgent,
    RouterAgent,
    ShipmentsAgent,
    SupportAgent,
)
from swiftship.agents.infrastructure import KnowledgeBaseAdapter

# Module Routers
from swiftship.agents.interfaces import agents_router
from swiftship.quoting.interfaces import quotes_router, geocoding_router

# Shared
from swiftship.shared.api import (
    CorrelationIDMiddleware,
    MetricsMiddleware,
    LoggingMiddleware,
    global_exception_handler,
)
from swiftship.shared.infrastructure.logging import setup_logging, get_logger
from swiftship.shared.infrastructure.grafana import init_grafana_exporter

logger = get_logger(__name__)


def build_coordinator(
    llm_client: Optional[ILLMClient],
    knowledge_base: Optional[IKnowledgeBase],
    state_machine: QuoteStateMachine,
    state_store: Optional[ConversationStateStore] = None
) -> AgentCoordinator:
    """Construct every agent once and register it."""
    registry = AgentRegistry([
        QuoteAgent(state_machine, state_store),
        DocsAgent(llm_client, knowledge_base),
        SupportAgent(llm_client, knowledge_base),
        ShipmentsAgent(llm_client, knowledge_base),
    ])
    return AgentCoordinator(RouterAgent(llm_client), registry)


async def _init_vector_store() -> IVectorStore:
    if not settings.zilliz_uri:
        logger.info("Zilliz URI not configured, using in-memory vector store")
        return InMemoryVectorStore()

    vector_store = MilvusVectorStore()
    try:
        await vector_store.initialize()
    except Exception as e:
        logger.warning(f"Vector store not available, using in-memory store: {e}")
        return InMemoryVectorStore()
    return vector_store


async def _init_quote_repository() -> IQuoteRepository:
    if not settings.persist_quotes:
        return InMemoryQuoteRepository()

    logger.info("Initializing database")
    init_database()
    try:
        await create_tables()
    except Exception as e:
        # Quotes still work, they just do not survive a restart
        logger.warning(f"Database not available - storing quotes in memory: {e}")
        await close_database()
        return InMemoryQuoteRepository()
    return SQLAlchemyQuoteRepository()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator:
    """
    Application lifespan manager.

    STARTUP:
    1. Setup structured logging and metrics export
    2. Initialize LLM client and vector store
    3. Initialize geocoding provider and route gateway
    4. Load pricing configuration and watch it
    5. Initialize quote persistence
    6. Start the idle conversation sweep
    7. Build quote services and agents

    SHUTDOWN:
    1. Stop sweep scheduler and config watcher
    2. Close geocoding client and database connections
    """
    # === STARTUP ===
    setup_logging(settings.log_level, settings.environment)
    logger.info("Starting Swift Ship Agents", extra={
        "version": settings.app_version,
        "environment": settings.environment
    })

    if settings.grafana_host and settings.grafana_api_key and settings.grafana_instance_id:
        init_grafana_exporter(
            host=settings.grafana_host,
            api_key=settings.grafana_api_key,
            instance_id=settings.grafana_instance_id
        )
        logger.info("Grafana OTLP exporter initialized")
    else:
        logger.info("Grafana OTLP exporter not configured - metrics will not be exported")

    logger.info("Initializing LLM client", extra={"provider": settings.llm_provider})
    try:
        llm_client = create_llm_client()
    except Exception as e:
        logger.warning(f"LLM client initialization failed - LLM agents disabled: {e}")
        llm_client = None

    vector_store = await _init_vector_store()
    knowledge_base = KnowledgeBaseAdapter(llm_client, vector_store) if llm_client else None

    geocoding_provider = create_geocoding_provider()
    gateway = RouteGateway(geocoding_provider)

    pricing_config_manager = PricingConfigManager()
    pricing_config_manager.load(settings.pricing_config_path)
    pricing_config_manager.start_watching()

    repository = await _init_quote_repository()

    state_store = ConversationStateStore()
    sweep_scheduler = None
    if settings.conversation_sweep_interval > 0:
        sweep_scheduler = ConversationSweepScheduler(settings.conversation_sweep_interval)

        async def sweep_job():
            state_store.purge_expired()

        await sweep_scheduler.start(sweep_job)

    state_machine = QuoteStateMachine(gateway, repository, pricing_config_manager)

    # Store services in app state for dependency injection
    app.state.llm_client = llm_client
    app.state.vector_store = vector_store
    app.state.state_store = state_store
    app.state.sweep_scheduler = sweep_scheduler
    app.state.quote_service = QuoteService(gateway, repository, pricing_config_manager)
    app.state.coordinator = build_coordinator(llm_client, knowledge_base, state_machine, state_store)

    logger.info("Swift Ship Agents started successfully")

    yield  # Application runs here

    # === SHUTDOWN ===
    logger.info("Shutting down Swift Ship Agents")

    if sweep_scheduler:
        await sweep_scheduler.stop()
    pricing_config_manager.stop_watching()
    await geocoding_provider.close()
    await close_database()

    logger.info("Swift Ship Agents shutdown complete")


# Create FastAPI application
app = FastAPI(
    title="Swift Ship Agents API",
    description="""
    ## Multi-Agent Freight Assistant

    Routes chat messages to specialized agents and streams replies as
    server-sent events.

    ---

    ### 💬 Agents Module

    **Endpoints:**
    - `POST /agents/chat` - Chat with the agents (event stream)
    - `POST /agents/route` - Routing decision only

    **Agents:**
    - QUOTE_AGENT: multi-turn freight quote (package -> addresses -> service -> confirmation)
    - DOCS_AGENT: answers from Swift Ship documentation
    - SUPPORT_AGENT: troubleshooting with escalation detection
    - SHIPMENTS_AGENT: status of the customer's shipments

    ---

    ### 🚚 Quoting Module

    **Endpoints:**
    - `POST /quotes/estimate` - Price all service levels for a shipment
    - `GET /quotes/{id}` - Get a created quote
    - `GET /geocoding/autocomplete` - Address suggestions

    **Service levels:**

    | Service | Base | Per km | Per m³ | Per ton | Per pallet | Rush factor |
    |---------|------|--------|--------|---------|------------|-------------|
    | Express | 1500 | 2.5 | 8 | 15 | 12 | 1.5 |
    | Standard | 1000 | 1.8 | 6 | 12 | 10 | 1.0 |
    | Eco | 800 | 1.2 | 4 | 8 | 8 | 0.8 |

    Prices are rounded up to the next 1000. Routes under 24 hours are rush deliveries.

    ---
    """,
    version=settings.app_version,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan
)

# === CORS Middleware ===
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# === Custom Middleware (from shared) ===
app.add_middleware(CorrelationIDMiddleware)
app.add_middleware(MetricsMiddleware)
app.add_middleware(LoggingMiddleware)
app.add_exception_handler(Exception, global_exception_handler)

# === Include Module Routers ===
app.include_router(agents_router)
app.include_router(quotes_router)
app.include_router(geocoding_router)


# === Health Check Endpoint ===

@app.get("/health", tags=["Health"], responses={
    200: {
        "description": "Service is healthy",
        "content": {
            "application/json": {
                "example": {
                    "status": "healthy",
                    "version": "1.0.0",
                    "environment": "development",
                    "checks": {
                        "llm_client": "available",
                        "vector_store": "available (12 documents)",
                        "agents": ["QUOTE_AGENT", "DOCS_AGENT", "SUPPORT_AGENT", "SHIPMENTS_AGENT"],
                        "conversations": 3,
                        "sweep_scheduler": "running"
                    }
                }
            }
        }
    }
})
async def health_check(request: Request):
    """
    Health check endpoint for load balancers and orchestrators.

    Reports LLM availability, vector store size, registered agents,
    active quote conversations and the sweep scheduler state.
    """
    state = request.app.state
    coordinator = getattr(state, "coordinator", None)
    state_store = getattr(state, "state_store", None)
    scheduler = getattr(state, "sweep_scheduler", None)

    checks = {
        "llm_client": "available" if getattr(state, "llm_client", None) else "not_configured",
        "vector_store": "not_configured",
        "agents": [name.value for name in coordinator.registry.names()] if coordinator else [],
        "conversations": len(state_store) if state_store is not None else 0,
        "sweep_scheduler": "running" if scheduler and scheduler.is_running else "stopped",
    }

    vector_store = getattr(state, "vector_store", None)
    if vector_store is not None:
        try:
            count = await vector_store.get_document_count()
            checks["vector_store"] = f"available ({count} documents)"
        except Exception as e:
            checks["vector_store"] = f"error: {str(e)}"

    return {
        "status": "healthy" if coordinator else "starting",
        "version": settings.app_version,
        "environment": settings.environment,
        "checks": checks
    }


@app.get("/", tags=["Root"])
async def root():
    """Root endpoint with API information."""
    return {
        "service": settings.app_name,
        "version": settings.app_version,
        "architecture": "Clean Architecture / Modular Monolith",
        "docs": "/docs",
        "health": "/health",
        "modules": {
            "agents": {
                "prefix": "/agents",
                "endpoints": [
                    "POST /agents/chat - Chat with the agents (event stream)",
                    "POST /agents/route - Routing decision only"
                ]
            },
            "quoting": {
                "prefix": "/quotes",
                "endpoints": [
                    "POST /quotes/estimate - Price all service levels",
                    "GET /quotes/{id} - Get a created quote",
                    "GET /geocoding/autocomplete - Address suggestions"
                ]
            }
        }
    }


# === Development Entry Point ===

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "swiftship.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.environment == "development",
        log_level="info"
    )
