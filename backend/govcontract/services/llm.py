from __future__ import annotations

from contextlib import contextmanager
from threading import BoundedSemaphore

from openai import OpenAI

from ..core.config import Settings


@contextmanager
def limit_concurrency(semaphore: BoundedSemaphore):
    """
    Bound concurrent calls to the LLM provider.

    Usage:

        with limit_concurrency(sem):
            client.chat.completions.create(...)

    Sync route handlers run in a thread pool, so a thread semaphore is the
    right primitive here.
    """
    semaphore.acquire()
    try:
        yield
    finally:
        semaphore.release()


def build_llm_client(settings: Settings) -> OpenAI:
    """
    Factory for the OpenAI-compatible client used by the AI service.

    - If OPENROUTER_API_KEY is set, route requests via OpenRouter.
    - Otherwise, fall back to the standard OpenAI API using OPENAI_API_KEY.

    Called once at startup; the instance lives on app.state.
    """
    if settings.OPENROUTER_API_KEY:
        return OpenAI(
            base_url="https://openrouter.ai/api/v1",
            api_key=settings.OPENROUTER_API_KEY.strip(),
            default_headers={
                "HTTP-Referer": settings.FRONTEND_ORIGIN or "http://localhost:3000",
                "X-Title": "GovContract AI",
            },
        )

    if settings.OPENAI_API_KEY:
        return OpenAI(api_key=settings.OPENAI_API_KEY.strip())

    raise RuntimeError(
        "No LLM API key configured. Set either OPENAI_API_KEY or OPENROUTER_API_KEY."
    )
