import os
import logging
from typing import Iterator, List, Optional, Sequence

from dotenv import load_dotenv
from openai import OpenAI

from .events import ContentEvent, DoneEvent, ErrorEvent, Event
from .schemas import DocumentSnapshot

load_dotenv()

logger = logging.getLogger(__name__)

CHAT_MODEL = os.getenv("OPENAI_CHAT_MODEL", "gpt-4o-mini")
MAX_TOKENS = int(os.getenv("OPENAI_MAX_TOKENS", "4096"))

STREAM_ERROR_MESSAGE = "Failed to process message"

SYSTEM_PROMPT = """You are StudyMind AI, an intelligent study assistant that helps students with their notes. You can:
1. Complete incomplete notes by filling in missing definitions and explanations
2. Answer questions about study materials using the student's notes
3. Generate practice exam questions

Always be accurate, clear, and helpful. When using information from notes, cite the source. If you don't have enough information, say so."""

_client: Optional[OpenAI] = None


def get_llm_client() -> OpenAI:
    """FastAPI dependency; one client per process."""
    global _client
    if _client is None:
        _client = OpenAI(
            api_key=os.getenv("OPENAI_API_KEY") or "",
            base_url=os.getenv("OPENAI_BASE_URL") or None,
        )
    return _client


def build_context(documents: Sequence[DocumentSnapshot]) -> str:
    return "\n\n".join(f"{doc.name}:\n{doc.content}" for doc in documents)


def build_messages(message: str, documents: Sequence[DocumentSnapshot] = ()) -> List[dict]:
    context = build_context(documents)
    if context:
        user_prompt = f"Here are the student's notes for context:\n\n{context}\n\nStudent's request: {message}"
    else:
        user_prompt = f"Student's request: {message}"
    return [
        {"role": "system", "content": SYSTEM_PROMPT},
        {"role": "user", "content": user_prompt},
    ]


def open_completion_stream(client: OpenAI, message: str, documents: Sequence[DocumentSnapshot] = ()):
    """
    Starts the upstream request. Errors raised here happen before anything
    has been sent to our caller.
    """
    return client.chat.completions.create(
        model=CHAT_MODEL,
        messages=build_messages(message, documents),
        stream=True,
        max_completion_tokens=MAX_TOKENS,
    )


def relay_events(stream) -> Iterator[Event]:
    """
    Turns upstream chunks into events. Always ends with exactly one
    DoneEvent or ErrorEvent.
    """
    try:
        for chunk in stream:
            if not chunk.choices:
                continue
            delta = chunk.choices[0].delta
            content = (delta.content if delta else None) or ""
            if content:
                yield ContentEvent(content)
    except Exception:
        logger.exception("Upstream stream failed mid-response")
        yield ErrorEvent(STREAM_ERROR_MESSAGE)
    else:
        yield DoneEvent()
    finally:
        close = getattr(stream, "close", None)
        if close is not None:
            close()
