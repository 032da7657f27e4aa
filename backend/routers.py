import logging
from typing import List
from urllib.parse import quote

from fastapi import APIRouter, Depends, HTTPException, Response
from fastapi.responses import StreamingResponse
from openai import OpenAI
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from . import crud, schemas, llm_service
from .db import get_db
from .events import encode_event

logger = logging.getLogger(__name__)

router = APIRouter()


# ---------- Documents ----------
@router.get("/documents", response_model=List[schemas.Document])
def list_documents(db: Session = Depends(get_db)):
    """List every document and folder."""
    try:
        return crud.list_documents(db)
    except SQLAlchemyError:
        logger.exception("Error fetching documents")
        raise HTTPException(status_code=500, detail="Failed to fetch documents")


@router.get("/documents/{document_id}", response_model=schemas.Document)
def get_document(document_id: int, db: Session = Depends(get_db)):
    doc = crud.get_document(db, document_id)
    if not doc:
        raise HTTPException(status_code=404, detail="Document not found")
    return doc


@router.post("/documents", response_model=schemas.Document, status_code=201)
def create_document(doc: schemas.DocumentCreate, db: Session = Depends(get_db)):
    """Create a file or folder."""
    try:
        return crud.create_document(db, doc)
    except crud.InvalidParentError as e:
        logger.error("Error creating document: %s", e)
        raise HTTPException(status_code=400, detail=str(e))


@router.patch("/documents/{document_id}", response_model=schemas.Document)
def update_document(document_id: int, doc: schemas.DocumentUpdate, db: Session = Depends(get_db)):
    """Rename, replace content or move a document."""
    try:
        updated = crud.update_document(db, document_id, doc)
    except crud.InvalidParentError as e:
        logger.error("Error updating document %s: %s", document_id, e)
        raise HTTPException(status_code=400, detail=str(e))
    if not updated:
        raise HTTPException(status_code=404, detail="Document not found")
    return updated


@router.delete("/documents/{document_id}", status_code=204)
def delete_document(document_id: int, db: Session = Depends(get_db)):
    """Delete a document. Deleting a missing id is not an error."""
    crud.delete_document(db, document_id)
    return Response(status_code=204)


@router.get("/documents/{document_id}/content")
def get_document_content(document_id: int, db: Session = Depends(get_db)):
    """Serve the raw bytes of a document, decoding data URLs."""
    doc = crud.get_document(db, document_id)
    if not doc:
        raise HTTPException(status_code=404, detail="Document not found")
    body, media_type = crud.get_document_content(doc)
    return Response(
        content=body,
        media_type=media_type,
        headers={"Content-Disposition": f"inline; filename*=UTF-8''{quote(doc.name)}"},
    )


# ---------- Chat relay ----------
@router.post("/process-message")
def process_message(request: schemas.ProcessMessageRequest, client: OpenAI = Depends(llm_service.get_llm_client)):
    """
    Ask the model about the supplied documents. The answer is streamed back as
    server-sent events; see backend/events.py for the event shapes.
    """
    message = request.message or ""
    if not message.strip():
        raise HTTPException(status_code=400, detail="Message is required")

    try:
        stream = llm_service.open_completion_stream(client, message, request.documents)
    except Exception:
        logger.exception("Error processing message")
        raise HTTPException(status_code=500, detail=llm_service.STREAM_ERROR_MESSAGE)

    def generator():
        for event in llm_service.relay_events(stream):
            yield encode_event(event)

    return StreamingResponse(
        generator(),
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache", "Connection": "keep-alive"},
    )
