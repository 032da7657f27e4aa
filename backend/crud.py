import base64
import binascii
import logging
import re
from typing import List, Optional, Set, Tuple

from sqlalchemy.orm import Session

from . import models, schemas

logger = logging.getLogger(__name__)

DATA_URL_RE = re.compile(r"^data:([^;,]+);base64,(.+)$", re.DOTALL)
FALLBACK_MEDIA_TYPE = "text/plain"


class InvalidParentError(ValueError):
    """The requested parentId does not exist, is not a folder or would create a cycle."""


# ---------- Documents ----------
def list_documents(db: Session) -> List[models.Document]:
    return db.query(models.Document).order_by(models.Document.id).all()


def get_document(db: Session, document_id: int) -> Optional[models.Document]:
    return db.get(models.Document, document_id)


def create_document(db: Session, data: schemas.DocumentCreate) -> models.Document:
    if data.parent_id is not None:
        _get_parent_folder(db, data.parent_id)

    doc = models.Document(
        name=data.name,
        type=data.type,
        content=data.content,
        parent_id=data.parent_id,
    )
    db.add(doc)
    db.commit()
    db.refresh(doc)
    logger.info("Created document %s (%s, type=%s)", doc.id, doc.name, doc.type)
    return doc


def update_document(db: Session, document_id: int, data: schemas.DocumentUpdate) -> Optional[models.Document]:
    """
    Applies only the fields present in `data`. Returns None if the document
    does not exist. Reparenting is checked so the tree stays acyclic.
    """
    doc = get_document(db, document_id)
    if not doc:
        return None

    changes = data.model_dump(exclude_unset=True)
    if "parent_id" in changes and changes["parent_id"] is not None:
        _check_parent(db, document_id, changes["parent_id"])

    for field, value in changes.items():
        setattr(doc, field, value)
    db.add(doc)
    db.commit()
    db.refresh(doc)
    logger.info("Updated document %s: %s", doc.id, ", ".join(sorted(changes)) or "no changes")
    return doc


def delete_document(db: Session, document_id: int) -> bool:
    """
    Removes the row; children are left in place with their parent_id unchanged.
    Returns False when there was nothing to delete.
    """
    doc = get_document(db, document_id)
    if not doc:
        return False
    db.delete(doc)
    db.commit()
    logger.info("Deleted document %s", document_id)
    return True


def _descendant_ids(db: Session, document_id: int) -> Set[int]:
    rows = db.query(models.Document.id, models.Document.parent_id).all()
    children = {}
    for child_id, parent_id in rows:
        children.setdefault(parent_id, []).append(child_id)

    found: Set[int] = set()
    stack = [document_id]
    while stack:
        for child_id in children.get(stack.pop(), []):
            if child_id not in found:
                found.add(child_id)
                stack.append(child_id)
    return found


def _get_parent_folder(db: Session, parent_id: int) -> models.Document:
    parent = get_document(db, parent_id)
    if parent is None:
        raise InvalidParentError(f"Parent document {parent_id} does not exist")
    if not parent.is_folder:
        raise InvalidParentError(f"Parent document {parent_id} is not a folder")
    return parent


def _check_parent(db: Session, document_id: int, parent_id: int) -> None:
    if parent_id == document_id:
        raise InvalidParentError("A document cannot be its own parent")
    _get_parent_folder(db, parent_id)
    if parent_id in _descendant_ids(db, document_id):
        raise InvalidParentError(f"Document {parent_id} is inside document {document_id}")


# ---------- Content ----------
def decode_data_url(content: str) -> Optional[Tuple[bytes, str]]:
    """Returns (payload, mime type) or None if `content` is not a valid base64 data URL."""
    match = DATA_URL_RE.match(content or "")
    if not match:
        return None
    mime_type, payload = match.groups()
    try:
        return base64.b64decode(payload, validate=True), mime_type
    except (binascii.Error, ValueError):
        logger.warning("Malformed base64 payload in data URL, serving raw content")
        return None


def get_document_content(doc: models.Document) -> Tuple[bytes, str]:
    decoded = decode_data_url(doc.content)
    if decoded is not None:
        return decoded
    media_type = FALLBACK_MEDIA_TYPE if doc.is_folder else (doc.type or FALLBACK_MEDIA_TYPE)
    return doc.content.encode("utf-8"), media_type
