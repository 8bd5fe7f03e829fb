"""Plan Maker — Streamlit UI for generating a plan and clarifying its open questions."""

import sys
import uuid
from pathlib import Path

# Add project root to path so 'planmaker' package is importable
sys.path.insert(0, str(Path(__file__).resolve().parent.parent.parent))

import streamlit as st

from planmaker.clients.planner import SoftwarePlannerClient
from planmaker.config import get_config
from planmaker.errors import DebugDisabledError, PlanmakerError
from planmaker.orchestrator import SubmissionOrchestrator
from planmaker.utils.status import (
    get_clarifier_status_metadata,
    get_planner_status_metadata,
    get_question_status_metadata,
)

st.set_page_config(page_title="Plan Maker", layout="wide")
st.title("Plan Maker")
st.markdown(
    "Describe a software project, review the generated specifications, answer their "
    "open questions and send the answers to the **Spec Clarifier**."
)

try:
    config = get_config()
except PlanmakerError as exc:
    st.error(str(exc))
    st.stop()


# Per browser session
if "orchestrator" not in st.session_state:
    st.session_state["orchestrator"] = SubmissionOrchestrator.from_config(
        config, namespace=uuid.uuid4().hex
    )
orchestrator = st.session_state["orchestrator"]
st.divider()


# ---------------------------------------------------------------------------
# Plan creation
# ---------------------------------------------------------------------------

description = st.text_area(
    "Project description:",
    height=200,
    placeholder="Describe the system you want to plan...",
)

if st.button("Generate plan", type="primary"):
    try:
        with SoftwarePlannerClient.from_config(config) as planner, st.spinner("Planning..."):
            job = planner.create_plan_async(description)
            plan = planner.wait_for_plan(
                job["job_id"],
                max_attempts=config.poll_max_attempts,
                interval=config.poll_interval_seconds,
            )
    except PlanmakerError as exc:
        st.error(str(exc))
        st.stop()
    st.session_state["plan"] = plan
    st.rerun()


def _render_spec(plan_id: str, spec_index: int, spec: dict, unanswered: list[int]) -> None:
    """Render one spec with an answer box per open question."""
    questions = spec.get("open_questions") or []
    marker = f" — {len(unanswered)} unanswered" if unanswered else ""
    with st.expander(f"Spec #{spec_index + 1}: {spec.get('purpose', '')}{marker}",
                     expanded=bool(unanswered)):
        st.markdown(f"**Vision:** {spec.get('vision', '')}")
        for title, key in (("Must", "must"), ("Don't", "dont"), ("Nice to have", "nice"),
                           ("Assumptions", "assumptions")):
            items = spec.get(key) or []
            if items:
                st.markdown(f"**{title}:**\n" + "\n".join(f"- {item}" for item in items))

        for question_index, question in enumerate(questions):
            status = "unanswered" if question_index in unanswered else "answered"
            label = get_question_status_metadata(status)["label"]
            value = st.text_area(
                f"{question} ({label})",
                value=orchestrator.answers.get_answer(plan_id, spec_index, question_index),
                key=f"answer_{plan_id}_{spec_index}_{question_index}",
            )
            if value != orchestrator.answers.get_answer(plan_id, spec_index, question_index):
                orchestrator.answers.set_answer(plan_id, spec_index, question_index, value)


def _render_clarifier_panel(plan_id: str, specs: list[dict]) -> None:
    """Submission, status and debug controls for the plan's clarification job."""
    st.subheader("Clarification")
    result = orchestrator.answers.validate_answers(plan_id, specs)

    if result["is_valid"]:
        st.success(f"All {result['total_questions']} question(s) answered.")
    else:
        st.warning(
            f"Not ready to submit: {result['unanswered_count']} of "
            f"{result['total_questions']} question(s) still need answers."
        )

    if st.button("Start clarification", type="primary",
                 disabled=not result["is_valid"] or orchestrator.is_submitting(plan_id)):
        try:
            summary = orchestrator.submit(plan_id, specs)
            st.success(f"Clarification job created successfully. Job ID: {summary['id']}")
        except PlanmakerError as exc:
            st.error(str(exc))

    manual_id = st.text_input("Track an existing clarification job ID:")
    if st.button("Track job") and manual_id.strip():
        try:
            orchestrator.track_job(plan_id, manual_id)
            st.success(f"Tracking clarification job: {manual_id.strip()}")
        except PlanmakerError as exc:
            st.error(str(exc))

    metadata = orchestrator.latest_submission(plan_id)
    if metadata is None:
        return

    st.caption(f"Job `{metadata['job_id']}` submitted at {metadata['submitted_at']}")
    if orchestrator.answers_changed_since_submission(plan_id, specs):
        st.info("Answers changed since this job was submitted.")

    col_status, col_debug = st.columns(2)
    if col_status.button("Check status"):
        try:
            status = orchestrator.check_status(plan_id)
        except PlanmakerError as exc:
            st.error(str(exc))
        else:
            meta = get_clarifier_status_metadata(status["status"])
            st.progress(meta["progress"], text=f"{meta['label']} — {meta['description']}")
            if status.get("last_error"):
                st.error(status["last_error"])
            if status.get("result") is not None:
                st.json(status["result"])

    if col_debug.button("View debug info"):
        try:
            st.json(orchestrator.client.get_clarifier_debug(metadata["job_id"]))
        except DebugDisabledError:
            st.info("The debug endpoint is disabled in this deployment.")
        except PlanmakerError as exc:
            st.error(str(exc))


plan = st.session_state.get("plan")
if plan:
    plan_id = plan["job_id"]
    meta = get_planner_status_metadata(plan["status"])
    st.progress(meta["progress"], text=f"Plan {plan_id}: {meta['label']}")

    specs = (plan.get("result") or {}).get("specs", [])
    if plan["status"] == "SUCCEEDED" and specs:
        validation = orchestrator.answers.validate_answers(plan_id, specs)
        for spec_index, spec in enumerate(specs):
            _render_spec(plan_id, spec_index, spec,
                         validation["unanswered_by_spec"].get(spec_index, []))
        st.divider()
        _render_clarifier_panel(plan_id, specs)
    elif plan["status"] == "FAILED":
        st.error((plan.get("error") or {}).get("error", "Planning failed."))
