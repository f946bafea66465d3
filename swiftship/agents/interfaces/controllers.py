"""
Agents Controllers (API Routes)
===============================

Chat endpoint streaming agent replies as server-sent events, and a
routing-only endpoint.
"""

from fastapi import APIRouter, Body, Depends, HTTPException, Request, status
from fastapi.responses import JSONResponse, StreamingResponse

from swiftship.config import settings
from swiftship.agents.application import AgentCoordinator, ChatRequest, RoutingResponse
from swiftship.streaming import StreamOptions, stream_reply
from swiftship.shared.infrastructure.logging import get_context_logger

agents_router = APIRouter(prefix="/agents", tags=["Agents"])


# ========== Example payloads for Swagger ==========

CHAT_REQUEST_EXAMPLE = {
    "message": "I want a quote",
    "conversationHistory": [],
    "metadata": {
        "userId": "user-123",
        "conversationId": "conv-456",
        "customer": {"id": "cust-1", "name": "Ada Lovelace", "email": "ada@example.com"}
    }
}

ROUTE_RESPONSE_EXAMPLE = {
    "agent": "QUOTE_AGENT",
    "reason": "The user is asking for a shipping quote"
}

SSE_EXAMPLE = (
    'data: {"type": "metadata", "metadata": {"agent": "QUOTE_AGENT", "reason": "..."}}\n\n'
    'data: {"type": "chunk", "content": "Let\'s get started..."}\n\n'
    'data: {"type": "metadata", "metadata": {"agentId": "quote", "step": "package_details", "quote": {}}}\n\n'
)


# ========== Dependencies ==========

def get_coordinator(request: Request) -> AgentCoordinator:
    coordinator = getattr(request.app.state, "coordinator", None)
    if coordinator is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Agent coordinator not initialized"
        )
    return coordinator


# ========== Route Handlers ==========

@agents_router.post(
    "/chat",
    summary="Chat with the agents",
    description="""
    Routes the message to an agent (or the one named in `agentType`) and
    streams the reply as `text/event-stream`.

    Frames, in order:
    1. `metadata` with the routed `agent` and `reason`
    2. `chunk` frames with the reply text
    3. `metadata` with the agent's response metadata (`quote` state for quotes)
    4. `sources` when the reply is grounded on documents
    5. `debug` in debug mode only
    """,
    responses={
        200: {"description": "Event stream", "content": {"text/event-stream": {"example": SSE_EXAMPLE}}},
        400: {"description": "No input provided"},
        503: {"description": "LLM client not configured"},
        500: {"description": "Processing failed before streaming began"}
    }
)
async def chat(
    request: Request,
    payload: ChatRequest = Body(..., examples=[CHAT_REQUEST_EXAMPLE]),
    coordinator: AgentCoordinator = Depends(get_coordinator)
):
    request_logger = get_context_logger(__name__, getattr(request.state, "correlation_id", None))

    if not (payload.message or "").strip():
        return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"error": "No input provided"})

    context = payload.to_context()

    try:
        decision = await coordinator.route(context)
        agent = coordinator.registry.get(decision.agent)
        if agent is not None and not agent.is_available:
            return JSONResponse(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                content={"error": "LLM client is not configured"}
            )
        decision, response = await coordinator.handle(context, decision)
    except Exception as e:
        request_logger.error("Chat processing failed", extra={"error": str(e)}, exc_info=True)
        return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content={"error": str(e)})

    options = StreamOptions.for_agent(decision.agent, context.metadata.get("streamMode"))
    debug = None
    if settings.debug:
        debug = {
            "routing": decision.to_dict(),
            "agentId": response.agent_id,
            "streamMode": options.mode.value,
            "historyLength": len(context.messages),
        }

    request_logger.info(
        "Streaming agent reply",
        extra={
            "routed_agent": decision.agent.value,
            "agent_id": response.agent_id,
            "stream_mode": options.mode.value,
            "error": response.error,
        }
    )

    return StreamingResponse(
        stream_reply(
            response.content,
            options,
            head=decision.to_dict(),
            tail=response.response_metadata(),
            sources=[source.to_dict() for source in response.sources],
            debug=debug,
        ),
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache", "Connection": "keep-alive", "X-Accel-Buffering": "no"}
    )


@agents_router.post(
    "/route",
    response_model=RoutingResponse,
    summary="Routing decision only",
    description="Returns which agent would handle the message without running it.",
    responses={200: {"content": {"application/json": {"example": ROUTE_RESPONSE_EXAMPLE}}}}
)
async def route(
    payload: ChatRequest = Body(..., examples=[CHAT_REQUEST_EXAMPLE]),
    coordinator: AgentCoordinator = Depends(get_coordinator)
):
    decision = await coordinator.route(payload.to_context())
    return RoutingResponse(agent=decision.agent, reason=decision.reason)


__all__ = ["agents_router"]
