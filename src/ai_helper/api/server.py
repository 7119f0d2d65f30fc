"""FastAPI server for the helper."""

import queue
import threading
from functools import lru_cache
from typing import Iterator

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import StreamingResponse

from .. import __version__
from ..helper import AiHelper
from ..logging import get_logger
from .schemas import AgentInfo, ChatAnswer, ChatRequest

logger = get_logger(__name__)

# marks the end of a streamed answer
_END = object()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title="AI Helper API",
        description="API for asking the ai-helper agent team",
        version=__version__,
    )

    # configure CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],  # restrict in production
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    return app


app = create_app()


@lru_cache
def get_helper() -> AiHelper:
    """Shared helper instance; override in tests via ``app.dependency_overrides``."""
    return AiHelper()


@app.post("/api/chat", response_model=ChatAnswer)
def chat(request: ChatRequest, helper: AiHelper = Depends(get_helper)) -> ChatAnswer:
    """Answer the conversation in one response."""
    answer = helper.chat(
        request.message_dicts(), project=request.project, options=request.options()
    )
    return ChatAnswer(answer=answer)


@app.post("/api/chat/stream")
def chat_stream(request: ChatRequest, helper: AiHelper = Depends(get_helper)) -> StreamingResponse:
    """Stream progress notices and the answer as plain text."""
    return StreamingResponse(_stream_answer(helper, request), media_type="text/plain; charset=utf-8")


def _stream_answer(helper: AiHelper, request: ChatRequest) -> Iterator[str]:
    chunks: queue.Queue = queue.Queue()

    def run() -> None:
        try:
            helper.chat(
                request.message_dicts(),
                callback=chunks.put,
                project=request.project,
                options=request.options(),
            )
        finally:
            chunks.put(_END)

    worker = threading.Thread(target=run, name="ai-helper-stream", daemon=True)
    worker.start()
    while True:
        chunk = chunks.get()
        if chunk is _END:
            break
        yield chunk
    worker.join()


@app.get("/api/agents", response_model=list[AgentInfo])
def list_agents(helper: AiHelper = Depends(get_helper)) -> list[AgentInfo]:
    """Agents the leader may plan with."""
    return [AgentInfo(**entry) for entry in helper.list_agents()]
