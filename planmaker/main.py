"""Entry point: create a plan, collect answers to its open questions, submit and wait."""

import json
import sys

from planmaker.clients.planner import SoftwarePlannerClient
from planmaker.config import get_config
from planmaker.errors import PlanmakerError
from planmaker.orchestrator import SubmissionOrchestrator
from planmaker.state import Specification
from planmaker.stores.answers import AnswerStore

USAGE = (
    "Usage: planmaker [--no-wait] <project description>\n"
    "       planmaker --status <plan_id>"
)


def _collect_answers(store: AnswerStore, plan_id: str, specs: list[Specification]) -> None:
    """Prompt in the terminal for every open question that has no answer yet."""
    print("\n--- Open questions need your answers ---\n")

    for spec_index, spec in enumerate(specs):
        questions = spec.get("open_questions") or []
        if not questions:
            continue

        print(f"Spec #{spec_index + 1}: {spec.get('purpose', '')}")
        for question_index, question in enumerate(questions):
            existing = store.get_answer(plan_id, spec_index, question_index)
            if existing.strip():
                print(f"  Q{question_index + 1}. {question}\n     (answered: {existing.strip()})")
                continue

            while True:
                answer = input(f"  Q{question_index + 1}. {question}\n  > ").strip()
                if answer:
                    break
                print("  An answer is required.")
            store.set_answer(plan_id, spec_index, question_index, answer)
        print()


def run(description: str, wait: bool = True) -> None:
    """Run the full flow on a project description.

    Args:
        description: The user's project description.
        wait: Poll the clarification job until it finishes.
    """
    config = get_config()
    orchestrator = SubmissionOrchestrator.from_config(config)

    with SoftwarePlannerClient.from_config(config) as planner:
        job = planner.create_plan_async(description)
        plan_id = job["job_id"]
        print(f"[planmaker] Planning job {plan_id} started ({job['status']}).")
        plan = planner.wait_for_plan(
            plan_id,
            max_attempts=config.poll_max_attempts,
            interval=config.poll_interval_seconds,
        )

    if plan["status"] != "SUCCEEDED":
        error = (plan.get("error") or {}).get("error", "unknown error")
        print(f"[planmaker] Planning failed: {error}", file=sys.stderr)
        sys.exit(1)

    specs = (plan.get("result") or {}).get("specs", [])
    print(f"[planmaker] Plan ready with {len(specs)} specification(s).")

    result = orchestrator.answers.validate_answers(plan_id, specs)
    if result["total_questions"]:
        _collect_answers(orchestrator.answers, plan_id, specs)

    try:
        summary = orchestrator.submit(plan_id, specs)
    finally:
        # Pending debounced writes die with the process otherwise
        orchestrator.answers.close()
        orchestrator.submissions.close()
    print(f"[planmaker] Clarification job: {summary['id']}")

    if wait:
        _print_status(orchestrator.wait_for_result(plan_id))


def _print_status(status: dict) -> None:
    print(f"[planmaker] Status: {status['status']}")
    if status.get("last_error"):
        print(f"[planmaker] Last error: {status['last_error']}")
    if status.get("result") is not None:
        print(json.dumps(status["result"], indent=2))


def show_status(plan_id: str) -> None:
    """Print the current status of the clarification job recorded for plan_id."""
    orchestrator = SubmissionOrchestrator.from_config(get_config())
    try:
        metadata = orchestrator.latest_submission(plan_id)
        if metadata is None:
            print(f"[planmaker] No clarification job recorded for plan {plan_id}.", file=sys.stderr)
            sys.exit(1)
        print(f"[planmaker] Job {metadata['job_id']} submitted at {metadata['submitted_at']}")
        _print_status(orchestrator.check_status(plan_id))
    finally:
        orchestrator.answers.close()
        orchestrator.submissions.close()


def main() -> None:
    """CLI entry point; the description comes from the arguments or from stdin."""
    args = sys.argv[1:]
    wait = True

    try:
        if args[:1] == ["--status"]:
            if len(args) != 2:
                print(USAGE, file=sys.stderr)
                sys.exit(2)
            show_status(args[1])
            return

        if "--no-wait" in args:
            wait = False
            args.remove("--no-wait")

        if args:
            description = " ".join(args)
        else:
            print("Describe your project (Ctrl+D / Ctrl+Z to submit):")
            description = sys.stdin.read()

        run(description, wait=wait)
    except PlanmakerError as exc:
        print(f"[planmaker] Error: {exc}", file=sys.stderr)
        sys.exit(1)
    except EOFError:
        print("[planmaker] Input ended before every question was answered.", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
