import json

from backend import llm_service

from .conftest import FakeLLMClient


def _events(response):
    return [json.loads(line[len("data: "):]) for line in response.text.split("\n") if line.startswith("data: ")]


def test_stream_ends_with_single_done(client, llm):
    r = client.post("/api/process-message", json={"message": "hello", "documents": []})

    assert r.status_code == 200
    assert r.headers["content-type"].startswith("text/event-stream")
    events = _events(r)
    assert events[-1] == {"done": True}
    assert sum(1 for e in events if "done" in e or "error" in e) == 1
    assert "".join(e["content"] for e in events[:-1]) == "Hello, world"


def test_events_are_sse_framed(client):
    r = client.post("/api/process-message", json={"message": "hello"})
    assert r.text.startswith('data: {"content": "Hello"}\n\n')
    assert r.text.endswith('data: {"done": true}\n\n')


def test_missing_message_is_400(client, llm):
    assert client.post("/api/process-message", json={"documents": []}).status_code == 400
    assert client.post("/api/process-message", json={"message": "   "}).status_code == 400
    assert llm.calls == []


def test_documents_are_concatenated_into_prompt(client, llm):
    docs = [
        {"name": "bio.md", "content": "Chloroplasts"},
        {"name": "chem.md", "content": "ATP"},
    ]
    client.post("/api/process-message", json={"message": "What is ATP?", "documents": docs})

    call = llm.calls[0]
    assert call["stream"] is True
    system, user = call["messages"]
    assert system["role"] == "system"
    assert "cite the source" in system["content"]
    assert user["content"] == (
        "Here are the student's notes for context:\n\n"
        "bio.md:\nChloroplasts\n\nchem.md:\nATP\n\n"
        "Student's request: What is ATP?"
    )


def test_prompt_without_documents(client, llm):
    client.post("/api/process-message", json={"message": "hi"})
    assert llm.calls[0]["messages"][1]["content"] == "Student's request: hi"


def test_upstream_failure_before_stream_is_500(client, llm):
    llm.fail_on_open = True
    r = client.post("/api/process-message", json={"message": "hello"})
    assert r.status_code == 500
    assert r.json() == {"detail": "Failed to process message"}


def test_upstream_failure_mid_stream_emits_error_event(client, llm):
    llm.fail_after = 2
    r = client.post("/api/process-message", json={"message": "hello"})

    assert r.status_code == 200
    events = _events(r)
    assert events == [
        {"content": "Hello"},
        {"content": ", "},
        {"error": "Failed to process message"},
    ]
    assert llm.streams[0].closed


def test_relay_skips_empty_and_choiceless_chunks():
    from types import SimpleNamespace
    from backend.events import ContentEvent, DoneEvent

    chunks = [
        SimpleNamespace(choices=[]),
        SimpleNamespace(choices=[SimpleNamespace(delta=SimpleNamespace(content=None))]),
        SimpleNamespace(choices=[SimpleNamespace(delta=SimpleNamespace(content=""))]),
        SimpleNamespace(choices=[SimpleNamespace(delta=SimpleNamespace(content="ok"))]),
    ]
    assert list(llm_service.relay_events(chunks)) == [ContentEvent("ok"), DoneEvent()]


def test_open_stream_uses_configured_model():
    llm = FakeLLMClient()
    llm_service.open_completion_stream(llm, "hello")
    assert llm.calls[0]["model"] == llm_service.CHAT_MODEL
    assert llm.calls[0]["max_completion_tokens"] == llm_service.MAX_TOKENS
