# frontend/chat.py
from typing import List

import streamlit as st

from frontend import api_client as api
from frontend.stream import StreamConsumer

SUGGESTED_QUESTIONS = [
    "Summarize the key ideas in my notes",
    "What are the most important definitions I should know?",
    "Which topics in my notes are least detailed?",
]


def _bubble(role: str, text: str, failed: bool = False):
    with st.chat_message(role):
        if failed:
            st.error(text)
        else:
            st.markdown(text)


def _context_documents(documents: List[dict]) -> List[dict]:
    """The selected file if there is one, otherwise every file."""
    files = [d for d in documents if d["type"] != "folder"]
    selected = st.session_state["tree"].selected_id
    chosen = [d for d in files if d["id"] == selected]
    return chosen or files


def render_chat(documents: List[dict]):
    consumer: StreamConsumer = st.session_state["chat"]
    context = _context_documents(documents)

    st.markdown("### 💬 Ask About Your Notes")
    if context:
        st.caption("Grounded in: " + ", ".join(d["name"] for d in context))
    else:
        st.caption("No notes uploaded yet; answers will not be grounded in your material.")

    for m in consumer.messages:
        _bubble(m.role, m.content, m.failed)

    if not consumer.messages:
        cols = st.columns(len(SUGGESTED_QUESTIONS))
        for col, question in zip(cols, SUGGESTED_QUESTIONS):
            if col.button(question, key=f"suggest_{question}", use_container_width=True):
                st.session_state["chat_prefill"] = question
                st.rerun()

    prompt = st.chat_input("Ask a question about your notes…", disabled=consumer.is_busy)
    prompt = prompt or st.session_state.pop("chat_prefill", None)
    if prompt and consumer.submit(prompt):
        _bubble("user", prompt)
        with st.chat_message("assistant"):
            placeholder = st.empty()
            placeholder.markdown("…")
            consumer.consume(api.stream_message(prompt, context), on_update=placeholder.markdown)
        st.rerun()

    if consumer.messages and st.button("🗑️ Clear conversation"):
        consumer.reset()
        st.rerun()
