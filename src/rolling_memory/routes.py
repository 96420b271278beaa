"""Memory command API routes."""

from typing import Optional

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, Field
from starlette.responses import JSONResponse

from .commands import MemoryCommands
from .exceptions import MessageNotFoundError


class RememberRequest(BaseModel):
    """Body for marking a message as remembered."""

    index: Optional[int] = Field(
        None, ge=0, description="Message index (newest message if omitted)"
    )


class SummarizeRequest(BaseModel):
    """Body for a full summarization pass."""

    replace: bool = Field(False, description="Replace existing summaries")


def init_memory_routes(commands: MemoryCommands) -> APIRouter:
    """
    Create routes for the memory commands.

    Args:
        commands: MemoryCommands bound to the active engine.

    Returns:
        APIRouter: Router with memory command endpoints.
    """
    router = APIRouter(tags=["memory"])

    @router.post("/api/memory/remember")
    async def remember(request: RememberRequest):
        """
        Mark a message as a long-term memory.

        Returns:
            JSON response with the remembered message index
        """
        try:
            index = commands.remember(request.index)
        except MessageNotFoundError as e:
            raise HTTPException(status_code=404, detail=str(e))
        return JSONResponse({"index": index}, status_code=200)

    @router.post("/api/memory/summarize")
    async def summarize(request: SummarizeRequest):
        """
        Run a summarization pass over the whole chat.

        Returns:
            JSON response with:
                - chat_id: chat the pass ran on
                - outcomes: per-message outcome
                - failed: indices whose generation failed
                - interrupted: whether the chat was switched mid-pass
        """
        report = await commands.initialize_memory(replace=request.replace)
        return JSONResponse(
            {
                "chat_id": report.chat_id,
                "outcomes": {
                    str(i): outcome.value for i, outcome in report.outcomes.items()
                },
                "failed": report.failed,
                "interrupted": report.interrupted,
            },
            status_code=200,
        )

    @router.post("/api/memory/refresh")
    async def refresh():
        """Recompute the memory injection and return the rendered text."""
        result = commands.refresh()
        return JSONResponse(
            {
                "short": result.short_text,
                "long": result.long_text,
                "display": result.display_text,
            },
            status_code=200,
        )

    @router.get("/api/memory/log")
    async def log_chat():
        """Dump the chat with its memory state."""
        return JSONResponse({"messages": commands.log_chat()}, status_code=200)

    @router.get("/api/memory/macros/{name}")
    async def resolve_macro(name: str):
        """Resolve a memory macro to its current text."""
        try:
            text = commands.engine.macros.resolve(name)
        except KeyError:
            raise HTTPException(status_code=404, detail=f"Unknown macro: {name}")
        return JSONResponse({"name": name, "text": text}, status_code=200)

    @router.get("/api/memory/status")
    async def message_statuses():
        """Status badges of every message, keyed by message index."""
        statuses = commands.engine.message_statuses()
        return JSONResponse(
            {str(i): badges for i, badges in statuses.items()}, status_code=200
        )

    @router.get("/api/memory/limits")
    async def token_limits():
        """Current token limits of both memory tiers."""
        return JSONResponse(commands.engine.token_limits(), status_code=200)

    return router
