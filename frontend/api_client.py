# frontend/api_client.py
import os
import base64
import codecs
from typing import Iterator, List, Optional

import requests
from dotenv import load_dotenv

from backend.events import Event, EventStreamParser

load_dotenv()
API_BASE = os.getenv("API_BASE", "http://localhost:8000/api")

REQUEST_TIMEOUT = (5, 120)  # (connect, read) seconds

TEXT_TYPES = ("text/", "application/json", "application/xml")

_session = requests.Session()


def list_documents() -> List[dict]:
    r = _session.get(f"{API_BASE}/documents", timeout=REQUEST_TIMEOUT)
    r.raise_for_status()
    return r.json()


def get_document(document_id: int) -> dict:
    r = _session.get(f"{API_BASE}/documents/{document_id}", timeout=REQUEST_TIMEOUT)
    r.raise_for_status()
    return r.json()


def create_document(name: str, type: str, content: str, parent_id: Optional[int] = None) -> dict:
    body = {"name": name, "type": type, "content": content, "parentId": parent_id}
    r = _session.post(f"{API_BASE}/documents", json=body, timeout=REQUEST_TIMEOUT)
    r.raise_for_status()
    return r.json()


def create_folder(name: str, parent_id: Optional[int] = None) -> dict:
    return create_document(name, "folder", "", parent_id)


def update_document(document_id: int, **fields) -> dict:
    """fields use the API names, e.g. update_document(3, parentId=None)."""
    r = _session.patch(f"{API_BASE}/documents/{document_id}", json=fields, timeout=REQUEST_TIMEOUT)
    r.raise_for_status()
    return r.json()


def delete_document(document_id: int) -> None:
    r = _session.delete(f"{API_BASE}/documents/{document_id}", timeout=REQUEST_TIMEOUT)
    r.raise_for_status()


def get_document_content(document_id: int) -> bytes:
    r = _session.get(f"{API_BASE}/documents/{document_id}/content", timeout=REQUEST_TIMEOUT)
    r.raise_for_status()
    return r.content


def upload_to_payload(filename: str, mime_type: Optional[str], data: bytes) -> dict:
    """
    Text files are stored as text so they can be sent to the model as-is;
    anything else is embedded as a base64 data URL.
    """
    mime_type = mime_type or "application/octet-stream"
    if mime_type.startswith(TEXT_TYPES):
        try:
            return {"name": filename, "type": mime_type, "content": data.decode("utf-8")}
        except UnicodeDecodeError:
            pass
    encoded = base64.b64encode(data).decode("ascii")
    return {"name": filename, "type": mime_type, "content": f"data:{mime_type};base64,{encoded}"}


def stream_message(message: str, documents: List[dict]) -> Iterator[Event]:
    """
    POST to /process-message and yield events as they arrive.
    Raises requests.RequestException on transport errors and
    StreamProtocolError on malformed events.
    """
    snapshot = [{"name": d["name"], "content": d["content"]} for d in documents]
    with _session.post(
        f"{API_BASE}/process-message",
        json={"message": message, "documents": snapshot},
        stream=True,
        timeout=REQUEST_TIMEOUT,
    ) as r:
        r.raise_for_status()
        parser = EventStreamParser()
        # a multi-byte character can straddle two chunks
        decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        for chunk in r.iter_content(chunk_size=1024, decode_unicode=False):
            if not chunk:
                continue
            yield from parser.feed(decoder.decode(chunk))
        yield from parser.feed(decoder.decode(b"", final=True))
        yield from parser.close()
