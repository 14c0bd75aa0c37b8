"""FastAPI application serving the streamed support chat.

Routes:
- POST /api/chat - answer a question as a server-sent event stream
- GET /health - vector store status

SSE format (one ``data:`` line per event):
    data: {"type": "sources", "sources": [...]}
    data: {"type": "content", "content": "..."}     (repeated)
    data: [DONE]
"""

import json
from contextlib import asynccontextmanager
from datetime import datetime
from typing import AsyncIterator, Iterator, List, Literal, Optional

import uvicorn
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, StreamingResponse
from starlette.concurrency import iterate_in_threadpool
from pydantic import BaseModel, ConfigDict, Field

from support_assistant.agents.support_agent import SupportAgent, get_support_agent
from support_assistant.rag.models import ConversationTurn
from support_assistant.utils.config import load_settings
from support_assistant.utils.errors import SupportAssistantError
from support_assistant.utils.logger import get_logger, setup_logger

logger = get_logger()

APOLOGY_MESSAGE = (
    "I'm sorry, something went wrong while looking up an answer. "
    "Please try again in a moment."
)
DONE_EVENT = "data: [DONE]\n\n"


class HistoryMessage(BaseModel):
    """One prior message supplied by the client."""
    role: Literal["user", "assistant"]
    content: str
    timestamp: Optional[datetime] = None


class ChatRequest(BaseModel):
    """Body of ``POST /api/chat``."""
    model_config = ConfigDict(populate_by_name=True)

    message: Optional[str] = None
    conversation_history: List[HistoryMessage] = Field(
        default_factory=list, alias="conversationHistory"
    )
    document: Optional[str] = None

    def history_turns(self) -> List[ConversationTurn]:
        return [
            ConversationTurn(
                role=msg.role,
                content=msg.content,
                timestamp=msg.timestamp or datetime.now(),
            )
            for msg in self.conversation_history
        ]


def sse_event(payload: dict) -> str:
    return f"data: {json.dumps(payload)}\n\n"


def _apology_events(sources_sent: bool) -> Iterator[str]:
    if not sources_sent:
        yield sse_event({"type": "sources", "sources": []})
    yield sse_event({"type": "content", "content": APOLOGY_MESSAGE})


def stream_chat_events(agent: SupportAgent, chat_request: ChatRequest) -> Iterator[str]:
    """
    Produce the SSE stream for one chat request.

    Failures before any sources are sent still yield an empty ``sources``
    event so clients always see the same event order. When the client
    disconnects the generator is closed, which closes the model stream.
    """
    sources_sent = False
    fragments = None

    try:
        streamed = agent.stream_answer(
            chat_request.message,
            history=chat_request.history_turns(),
            document=chat_request.document,
        )
        fragments = streamed.fragments

        yield sse_event({
            "type": "sources",
            "sources": [source.to_dict() for source in streamed.context.sources],
        })
        sources_sent = True

        for fragment in fragments:
            yield sse_event({"type": "content", "content": fragment})

    except SupportAssistantError as e:
        logger.error(f"Chat request failed: {type(e).__name__}: {e}")
        yield from _apology_events(sources_sent)

    except Exception:
        logger.exception("Unexpected error while answering chat request")
        yield from _apology_events(sources_sent)

    finally:
        if fragments is not None:
            fragments.close()

    yield DONE_EVENT


async def stream_until_disconnect(request: Request, events: Iterator[str]) -> AsyncIterator[str]:
    """
    Forward SSE events until the client goes away.

    Each event is pulled in the threadpool because the model stream blocks.
    On disconnect the event generator is closed, which closes the model
    stream so no further tokens are requested.
    """
    try:
        async for event in iterate_in_threadpool(events):
            if await request.is_disconnected():
                logger.info("Client disconnected, stopping the answer stream")
                break
            yield event
    finally:
        events.close()


def create_app(agent: Optional[SupportAgent] = None) -> FastAPI:
    """
    Build the application.

    Settings are loaded immediately so that missing endpoints abort startup.

    Args:
        agent: Support agent to serve (created at startup when omitted)

    Raises:
        ConfigurationError: If required configuration is missing
    """
    load_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        setup_logger()
        if getattr(app.state, "agent", None) is None:
            app.state.agent = get_support_agent()
        logger.info("Application startup complete")
        yield
        logger.info("Application shutdown")

    app = FastAPI(title="VoltDrive Support Assistant", lifespan=lifespan)
    app.state.agent = agent

    @app.post("/api/chat")
    def chat(chat_request: ChatRequest, request: Request):
        if not chat_request.message or not chat_request.message.strip():
            return JSONResponse(status_code=400, content={"error": "Message is required"})

        return StreamingResponse(
            stream_until_disconnect(
                request, stream_chat_events(request.app.state.agent, chat_request)
            ),
            media_type="text/event-stream",
            headers={
                "Cache-Control": "no-cache",
                "Connection": "keep-alive",
                "X-Accel-Buffering": "no",
            },
        )

    @app.get("/health")
    def health(request: Request):
        vector_store = request.app.state.agent.retriever.vector_store
        try:
            info = vector_store.get_collection_info()
        except SupportAssistantError as e:
            return JSONResponse(
                status_code=503,
                content={"status": "error", "healthy": False, "error": str(e)},
            )

        if info is None:
            return JSONResponse(
                status_code=503,
                content={"status": "collection_not_found", "healthy": False},
            )

        return {
            "status": "healthy",
            "healthy": True,
            "collection": info["name"],
            "documents": info["points_count"],
            "vector_size": info["vector_size"],
        }

    return app


def main():
    """Run the API server."""
    uvicorn.run(create_app(), host="0.0.0.0", port=8000)


if __name__ == "__main__":
    main()
