import pytest

from backend import crud, models, schemas


def _folder(db, name, parent_id=None):
    return crud.create_document(db, schemas.DocumentCreate(name=name, type="folder", content="", parentId=parent_id))


def test_update_with_no_fields_changes_nothing(db):
    doc = crud.create_document(db, schemas.DocumentCreate(name="a", type="text/plain", content="x"))
    updated = crud.update_document(db, doc.id, schemas.DocumentUpdate())
    assert (updated.name, updated.content, updated.parent_id) == ("a", "x", None)


def test_explicit_null_parent_moves_to_root(db):
    folder = _folder(db, "A")
    doc = crud.create_document(db, schemas.DocumentCreate(name="b", type="text/plain", content="", parentId=folder.id))
    crud.update_document(db, doc.id, schemas.DocumentUpdate.model_validate({"parentId": None}))
    assert crud.get_document(db, doc.id).parent_id is None


def test_cycle_check_walks_whole_subtree(db):
    a = _folder(db, "A")
    b = _folder(db, "B", a.id)
    c = _folder(db, "C", b.id)
    with pytest.raises(crud.InvalidParentError):
        crud.update_document(db, a.id, schemas.DocumentUpdate(parentId=c.id))
    # siblings are fine
    d = _folder(db, "D")
    assert crud.update_document(db, a.id, schemas.DocumentUpdate(parentId=d.id)).parent_id == d.id


def test_delete_reports_whether_row_existed(db):
    doc = _folder(db, "A")
    assert crud.delete_document(db, doc.id) is True
    assert crud.delete_document(db, doc.id) is False


@pytest.mark.parametrize("content", [
    "plain text",
    "data:image/png,notbase64",
    "data:image/png;base64,!!!",
    "",
])
def test_decode_data_url_rejects_non_base64(content):
    assert crud.decode_data_url(content) is None


def test_decode_data_url():
    assert crud.decode_data_url("data:application/pdf;base64,JVBERi0=") == (b"%PDF-", "application/pdf")


def test_content_fallback_media_type():
    doc = models.Document(name="n", type="", content="hi")
    assert crud.get_document_content(doc) == (b"hi", "text/plain")


def test_reparent_under_file_is_rejected(db):
    file = crud.create_document(db, schemas.DocumentCreate(name="a.md", type="text/markdown", content="x"))
    doc = crud.create_document(db, schemas.DocumentCreate(name="b.md", type="text/markdown", content="y"))
    with pytest.raises(crud.InvalidParentError):
        crud.update_document(db, doc.id, schemas.DocumentUpdate(parentId=file.id))


def test_folder_content_media_type():
    doc = models.Document(name="A", type="folder", content="")
    assert crud.get_document_content(doc) == (b"", "text/plain")
