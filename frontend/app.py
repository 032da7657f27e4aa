# frontend/app.py
import os
import sys

import requests
import streamlit as st
from streamlit_pdf_viewer import pdf_viewer

# `streamlit run frontend/app.py` puts frontend/ on the path, not the project root
project_root = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if project_root not in sys.path:
    sys.path.insert(0, project_root)

from frontend import api_client as api  # noqa: E402
from frontend.chat import render_chat  # noqa: E402
from frontend.exam import render_exam  # noqa: E402
from frontend.notes import render_notes  # noqa: E402
from frontend.sidebar import render_sidebar  # noqa: E402
from frontend.stream import StreamConsumer  # noqa: E402
from frontend.tree import TreeState  # noqa: E402

PAGES = {
    "💬 Chat": render_chat,
    "📝 Notes": render_notes,
    "🎓 Exams": render_exam,
}


def initialize_session():
    # all UI state lives here and is handed to the pages explicitly
    st.session_state.setdefault("tree", TreeState())
    st.session_state.setdefault("chat", StreamConsumer())
    st.session_state.setdefault("exam", None)
    st.session_state.setdefault("completed_notes", "")


def load_documents():
    try:
        return api.list_documents()
    except requests.RequestException as e:
        st.error(f"Could not reach the StudyMind backend: {e}")
        return []


def show_preview(documents):
    tree: TreeState = st.session_state["tree"]
    doc = next((d for d in documents if d["id"] == tree.selected_id), None)
    if doc is None:
        st.info("Select a file in the sidebar to preview it.")
        return

    st.markdown(f"#### 📄 {doc['name']}")
    doc_type = doc["type"]
    if doc_type == "application/pdf" or doc_type.startswith("image/"):
        try:
            data = api.get_document_content(doc["id"])
        except requests.RequestException as e:
            st.error(f"Preview failed: {e}")
            return
        if doc_type == "application/pdf":
            pdf_viewer(data, width="100%", height=600)
        else:
            st.image(data, use_container_width=True)
    elif doc["content"].startswith("data:"):
        st.caption(f"No preview for {doc_type}.")
    else:
        st.markdown(doc["content"])


def main():
    st.set_page_config(page_title="StudyMind", page_icon="🧠", layout="wide")
    initialize_session()

    documents = load_documents()
    render_sidebar(documents)

    st.title("🧠 StudyMind")
    page = st.radio("Page", list(PAGES), horizontal=True, label_visibility="collapsed")

    files = [d for d in documents if d["type"] != "folder"]
    if st.session_state["tree"].selected_id is not None:
        col1, col2 = st.columns([1, 1])
        with col1:
            PAGES[page](files)
        with col2:
            show_preview(documents)
    else:
        PAGES[page](files)


if __name__ == "__main__":
    main()
