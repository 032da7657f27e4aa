# frontend/exam.py
import json
import re
from dataclasses import dataclass, field
from typing import Dict, List, Optional

import streamlit as st

from frontend import api_client as api
from frontend.stream import StreamConsumer, StreamState

DIFFICULTIES = ["mixed", "easy", "medium", "hard"]
QUESTION_TYPES = ("multiple_choice", "short_answer", "conceptual")

_FENCE_RE = re.compile(r"```(?:json)?\s*(.*?)```", re.DOTALL)


class ExamParseError(ValueError):
    pass


@dataclass
class Question:
    id: int
    type: str
    difficulty: str
    question: str
    correct_answer: str
    explanation: str = ""
    options: List[str] = field(default_factory=list)


def build_exam_request(count: int, difficulty: str = "mixed") -> str:
    if difficulty not in DIFFICULTIES:
        raise ValueError(f"Unknown difficulty: {difficulty}")
    level = "a mix of easy, medium and hard" if difficulty == "mixed" else difficulty
    return (
        f"Generate a practice exam with {count} questions of {level} difficulty based only on my notes. "
        "Use a mix of multiple_choice, short_answer and conceptual questions. "
        "Respond with a JSON array only, no other text. Each element must have the keys "
        '"id" (number), "type" (one of "multiple_choice", "short_answer", "conceptual"), '
        '"difficulty" ("easy", "medium" or "hard"), "question", "options" '
        '(a list of 4 strings for multiple_choice, otherwise an empty list), '
        '"correctAnswer" (for multiple_choice, exactly one of the options) and "explanation".'
    )


def _extract_json(text: str):
    fenced = _FENCE_RE.search(text)
    if fenced:
        text = fenced.group(1)
    start, end = text.find("["), text.rfind("]")
    if start == -1 or end < start:
        raise ExamParseError("No question list found in the response")
    try:
        return json.loads(text[start:end + 1])
    except json.JSONDecodeError as e:
        raise ExamParseError(f"Response is not valid JSON: {e}") from e


def parse_exam(text: str) -> List[Question]:
    """
    Parse the model's answer to build_exam_request(). Questions are numbered
    by position; the model's own ids are ignored since they may repeat or
    not be numbers, and the ids key the answer widgets.
    """
    items = _extract_json(text)
    questions = []
    for i, item in enumerate(items, start=1):
        if not isinstance(item, dict) or not item.get("question"):
            raise ExamParseError(f"Question {i} is malformed")
        qtype = item.get("type") if item.get("type") in QUESTION_TYPES else "short_answer"
        options = [str(o) for o in item.get("options") or []]
        if qtype == "multiple_choice" and not options:
            qtype = "short_answer"
        questions.append(Question(
            id=i,
            type=qtype,
            difficulty=str(item.get("difficulty") or "medium"),
            question=str(item["question"]),
            correct_answer=str(item.get("correctAnswer", "")),
            explanation=str(item.get("explanation", "")),
            options=options,
        ))
    return questions


def score_exam(questions: List[Question], answers: Dict[int, str]) -> Dict[str, int]:
    """Only multiple-choice questions are scored automatically."""
    scored = [q for q in questions if q.type == "multiple_choice"]
    correct = sum(1 for q in scored if answers.get(q.id) == q.correct_answer)
    return {"correct": correct, "total": len(scored)}


def render_exam(documents: List[dict]):
    st.markdown("### 🎓 Practice Exam")
    st.caption("Generate questions from your notes and check your answers.")

    if not documents:
        st.info("Upload some notes in the sidebar first.")
        return

    col1, col2 = st.columns(2)
    count = col1.slider("Number of questions", min_value=3, max_value=15, value=5)
    difficulty = col2.selectbox("Difficulty", DIFFICULTIES, index=0)

    if st.button("✨ Generate exam", type="primary"):
        consumer = StreamConsumer()
        consumer.submit(build_exam_request(count, difficulty))
        with st.spinner("Generating questions…"):
            consumer.consume(api.stream_message(consumer.messages[0].content, documents))
        st.session_state["exam_answers"] = {}
        st.session_state["exam_submitted"] = False
        if consumer.state == StreamState.DONE:
            try:
                st.session_state["exam"] = parse_exam(consumer.current_answer.content)
            except ExamParseError as e:
                st.session_state["exam"] = None
                st.error(f"Could not read the generated exam: {e}")
        else:
            st.session_state["exam"] = None
            st.error(f"Exam generation failed: {consumer.error}")

    exam: Optional[List[Question]] = st.session_state.get("exam")
    if not exam:
        return

    answers = st.session_state.setdefault("exam_answers", {})
    submitted = st.session_state.get("exam_submitted", False)

    for q in exam:
        with st.container(border=True):
            st.markdown(f"**Q{q.id}.** {q.question}")
            st.caption(f"{q.type.replace('_', ' ')} · {q.difficulty}")
            if q.type == "multiple_choice":
                choice = st.radio("Answer", q.options, index=None, key=f"exam_q_{q.id}",
                                  label_visibility="collapsed", disabled=submitted)
                if choice is not None:
                    answers[q.id] = choice
            else:
                answers[q.id] = st.text_area("Answer", key=f"exam_q_{q.id}",
                                             label_visibility="collapsed", disabled=submitted)
            if submitted:
                if q.type == "multiple_choice":
                    if answers.get(q.id) == q.correct_answer:
                        st.success(f"Correct: {q.correct_answer}")
                    else:
                        st.error(f"Answer: {q.correct_answer}")
                else:
                    st.info(f"Model answer: {q.correct_answer}")
                with st.expander("Explanation"):
                    st.markdown(q.explanation or "_No explanation provided._")

    if not submitted:
        if st.button("Check answers"):
            st.session_state["exam_submitted"] = True
            st.rerun()
    else:
        score = score_exam(exam, answers)
        st.metric("Multiple-choice score", f"{score['correct']} / {score['total']}")
        if st.button("🔄 Retake"):
            st.session_state["exam_answers"] = {}
            st.session_state["exam_submitted"] = False
            for q in exam:
                st.session_state.pop(f"exam_q_{q.id}", None)
            st.rerun()
