# frontend/sidebar.py
from typing import List

import streamlit as st
from frontend import api_client as api
from frontend.tree import TreeState, build_forest, is_folder, move_document, move_targets, walk

UPLOAD_TYPES = ["txt", "md", "pdf", "png", "jpg", "jpeg", "gif", "webp"]


def _name_of(documents: List[dict], document_id):
    if document_id is None:
        return "📂 (root)"
    return next((f"📁 {d['name']}" for d in documents if d["id"] == document_id), str(document_id))


def _render_tree(documents: List[dict], tree: TreeState):
    forest = build_forest(documents)
    if not forest:
        st.sidebar.info("No notes yet.")
        return

    for node, depth in walk(forest, tree.expanded):
        doc = node.document
        indent = " " * depth
        if is_folder(doc):
            icon = "📂" if node.id in tree.expanded else "📁"
        else:
            icon = "🖼️" if doc["type"].startswith("image/") else "📄"
        label = f"{indent}{icon} {doc['name']}"

        cols = st.sidebar.columns([0.7, 0.15, 0.15])
        if cols[0].button(label, key=f"open_{node.id}", use_container_width=True,
                          type="primary" if tree.selected_id == node.id else "secondary"):
            if is_folder(doc):
                tree.toggle(node.id)
            else:
                tree.selected_id = node.id
            st.rerun()
        if cols[1].button("↔️", key=f"move_{node.id}", help="Move"):
            tree.start_drag(node.id)
            st.rerun()
        if cols[2].button("🗑️", key=f"del_{node.id}", help="Delete"):
            try:
                api.delete_document(node.id)
                tree.forget(node.id)
            except Exception as e:
                st.sidebar.error(f"Delete failed: {e}")
            st.rerun()


def _render_move(documents: List[dict], tree: TreeState):
    dragged = next((d for d in documents if d["id"] == tree.drag_source), None)
    if dragged is None:
        tree.clear_drag()
        return

    st.sidebar.markdown(f"**Move** `{dragged['name']}` **to…**")
    targets = move_targets(documents, dragged["id"])
    tree.drag_target = st.sidebar.selectbox(
        "Target folder", targets, format_func=lambda t: _name_of(documents, t),
        label_visibility="collapsed",
    )
    cols = st.sidebar.columns(2)
    if cols[0].button("Move here", use_container_width=True):
        try:
            move_document(api, dragged["id"], tree.drag_target)
            if tree.drag_target is not None:
                tree.expanded.add(tree.drag_target)
        except Exception as e:
            st.sidebar.error(f"Move failed: {e}")
        tree.clear_drag()
        st.rerun()
    if cols[1].button("Cancel", use_container_width=True):
        tree.clear_drag()
        st.rerun()


def _render_create(documents: List[dict]):
    folders = [None] + [d["id"] for d in documents if is_folder(d)]
    parent_id = st.sidebar.selectbox("Into folder", folders, format_func=lambda t: _name_of(documents, t))

    with st.sidebar.form("new_folder", clear_on_submit=True):
        folder_name = st.text_input("New folder", placeholder="Folder name")
        if st.form_submit_button("➕ Create folder") and folder_name.strip():
            try:
                api.create_folder(folder_name.strip(), parent_id)
            except Exception as e:
                st.sidebar.error(f"Create failed: {e}")
            else:
                st.rerun()

    files = st.sidebar.file_uploader("Upload notes", type=UPLOAD_TYPES, accept_multiple_files=True,
                                     key=f"uploader_{st.session_state.get('upload_round', 0)}")
    if files and st.sidebar.button("⬆️ Upload", use_container_width=True):
        for file in files:
            try:
                payload = api.upload_to_payload(file.name, file.type, file.getvalue())
                api.create_document(payload["name"], payload["type"], payload["content"], parent_id)
                st.sidebar.success(f"✅ {file.name}")
            except Exception as e:
                st.sidebar.error(f"❌ {file.name}: {e}")
        # a fresh key empties the uploader
        st.session_state["upload_round"] = st.session_state.get("upload_round", 0) + 1
        st.rerun()


def render_sidebar(documents: List[dict]):
    st.sidebar.title("📚 My Notes")
    tree: TreeState = st.session_state["tree"]

    _render_tree(documents, tree)
    if tree.drag_source is not None:
        st.sidebar.markdown("---")
        _render_move(documents, tree)

    st.sidebar.markdown("---")
    _render_create(documents)
