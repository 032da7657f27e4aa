# frontend/stream.py
import enum
import logging
from dataclasses import dataclass, field, asdict
from typing import Callable, Iterable, List, Optional

import requests

from backend.events import ContentEvent, DoneEvent, ErrorEvent, Event, StreamProtocolError

logger = logging.getLogger(__name__)

ERROR_INDICATOR = "Sorry, something went wrong while generating a response. Please try again."


class StreamState(str, enum.Enum):
    IDLE = "idle"
    SENDING = "sending"
    STREAMING = "streaming"
    DONE = "done"
    FAILED = "failed"


@dataclass
class ChatMessage:
    role: str  # "user" or "assistant"
    content: str
    failed: bool = False


@dataclass
class StreamConsumer:
    """
    Holds one conversation and the state of the request in flight.

    Idle -> Sending -> Streaming -> Done | Failed. Fragments are appended in
    the order they arrive. Nothing is persisted; the history lives as long as
    the Streamlit session.
    """
    messages: List[ChatMessage] = field(default_factory=list)
    state: StreamState = StreamState.IDLE
    error: Optional[str] = None

    @property
    def is_busy(self) -> bool:
        return self.state in (StreamState.SENDING, StreamState.STREAMING)

    @property
    def current_answer(self) -> Optional[ChatMessage]:
        if self.messages and self.messages[-1].role == "assistant":
            return self.messages[-1]
        return None

    def submit(self, text: str) -> bool:
        """Start a request. Returns False (and changes nothing) for blank input or while busy."""
        if self.is_busy or not text or not text.strip():
            return False
        self.messages.append(ChatMessage("user", text))
        self.messages.append(ChatMessage("assistant", ""))
        self.state = StreamState.SENDING
        self.error = None
        return True

    def consume(self, events: Iterable[Event], on_update: Optional[Callable[[str], None]] = None) -> StreamState:
        """
        Drain `events` into the pending assistant message. Transport and
        protocol errors raised while iterating end the request as Failed;
        any other exception also leaves it Failed and is re-raised.
        """
        if self.state != StreamState.SENDING:
            raise RuntimeError(f"consume() called in state {self.state.value}")
        answer = self.current_answer

        try:
            for event in events:
                if self.state == StreamState.SENDING:
                    self.state = StreamState.STREAMING
                if isinstance(event, ContentEvent):
                    answer.content += event.content
                    if on_update is not None:
                        on_update(answer.content)
                elif isinstance(event, DoneEvent):
                    self.state = StreamState.DONE
                    return self.state
                elif isinstance(event, ErrorEvent):
                    return self._fail(event.error)
            return self._fail("Stream ended without a completion marker")
        except (requests.RequestException, StreamProtocolError) as e:
            logger.error("Message stream failed: %s", e)
            return self._fail(str(e))
        finally:
            # anything else (e.g. a Streamlit rerun raised from on_update) propagates,
            # but the request still ends as Failed
            if self.is_busy:
                self._fail("Interrupted before the answer finished")

    def _fail(self, reason: str) -> StreamState:
        answer = self.current_answer
        if answer is not None:
            answer.content = ERROR_INDICATOR
            answer.failed = True
        self.state = StreamState.FAILED
        self.error = reason
        return self.state

    def reset(self) -> None:
        self.messages.clear()
        self.state = StreamState.IDLE
        self.error = None

    def to_dict(self) -> dict:
        return {
            "messages": [asdict(m) for m in self.messages],
            "state": self.state.value,
            "error": self.error,
        }
