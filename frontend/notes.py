# frontend/notes.py
from typing import List

import streamlit as st

from frontend import api_client as api
from frontend.stream import StreamConsumer, StreamState

COMPLETION_INSTRUCTIONS = (
    "Complete the following incomplete notes. Keep my headings, order and wording. "
    "Fill in missing definitions, explanations and terms. Mark every line you add with "
    "[AI Added] and every line you expand with [AI Extended] so I can tell your additions "
    "from my own notes. Return only the completed notes in Markdown."
)


def build_completion_request(notes: str) -> str:
    return f"{COMPLETION_INSTRUCTIONS}\n\nNotes:\n{notes.strip()}"


def render_notes(documents: List[dict]):
    st.markdown("### 📝 Note Completion")
    st.caption("Paste incomplete notes and let the assistant fill the gaps while keeping your structure.")

    text_docs = [d for d in documents if not d["content"].startswith("data:")]
    source = st.selectbox(
        "Start from a document",
        [None] + [d["id"] for d in text_docs],
        format_func=lambda i: "(paste below)" if i is None else next(d["name"] for d in text_docs if d["id"] == i),
    )
    default = next((d["content"] for d in text_docs if d["id"] == source), "")
    notes = st.text_area("Your notes", value=default, height=260, key=f"notes_input_{source}")

    col1, col2 = st.columns(2)
    with col1:
        if st.button("✨ Complete notes", type="primary", disabled=not notes.strip()):
            consumer = StreamConsumer()
            consumer.submit(build_completion_request(notes))
            placeholder = st.empty()
            consumer.consume(
                api.stream_message(consumer.messages[0].content, documents),
                on_update=placeholder.markdown,
            )
            if consumer.state == StreamState.DONE:
                st.session_state["completed_notes"] = consumer.current_answer.content
            else:
                st.error(f"Note completion failed: {consumer.error}")
            placeholder.empty()

    completed = st.session_state.get("completed_notes")
    if not completed:
        return

    with col2:
        name = st.text_input("Save as", value="Completed notes.md")
        if st.button("💾 Save to documents"):
            try:
                api.create_document(name, "text/markdown", completed)
                st.success(f"Saved {name}")
            except Exception as e:
                st.error(f"Save failed: {e}")

    st.markdown("---")
    st.markdown(completed)
    st.download_button("📥 Download", data=completed, file_name="completed_notes.md", mime="text/markdown")
