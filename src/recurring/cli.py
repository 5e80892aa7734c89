"""Recurring CLI - recurring tasks kept in markdown notes."""

import json
import logging
import sys
from datetime import datetime

import click
import yaml

from .adapters.file_store import FileDocumentStore
from .completion import CompletionStatus, RecurringError, TaskCompleter
from .config import load_config
from .core.ledger import Outcome, read_ledger
from .core.recurrence import missed_occurrences, next_due_date, parse_recurrence

logger = logging.getLogger(__name__)

DECISIONS = {"complete": Outcome.COMPLETED, "skip": Outcome.SKIPPED}

# Failures reading or patching a note on disk
STORE_ERRORS = (OSError, UnicodeDecodeError, yaml.YAMLError)


def _fail(message: str) -> None:
    click.echo(f"Error: {message}", err=True)
    sys.exit(1)


@click.group()
@click.version_option()
@click.option("--config", "config_path", default=None, help="Path to recurring.conf")
@click.option("--debug", is_flag=True, help="Enable debug logging")
@click.pass_context
def main(ctx, config_path: str | None, debug: bool):
    """Recurring - recurring tasks in markdown notes."""
    if debug:
        logging.basicConfig(
            format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            level=logging.DEBUG,
        )
    config = load_config(config_path)
    store = FileDocumentStore(config.vault_dir or ".")
    ctx.obj = TaskCompleter(store, config)


@main.command()
@click.argument("path")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_obj
def status(completer: TaskCompleter, path: str, as_json: bool):
    """Show how a note is classified."""
    try:
        state = completer.classify(path)
    except STORE_ERRORS as e:
        _fail(str(e))

    if as_json:
        click.echo(
            json.dumps(
                {
                    "is_task": state.is_task,
                    "is_done": state.is_done,
                    "due": state.due_date,
                    "recurrence": state.recurrence.describe() if state.recurrence else None,
                },
                indent=2,
                default=str,
            )
        )
        return

    if not state.is_task:
        click.echo(f"{path} is not a task.")
        return

    click.echo(f"Due:    {state.due_date or '(none)'}")
    click.echo(f"Repeat: {state.recurrence.describe() if state.recurrence else '(not recurring)'}")
    click.echo(f"Done:   {'yes' if state.is_done else 'no'}")


@main.command()
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_obj
def tasks(completer: TaskCompleter, as_json: bool):
    """List recurring tasks in the vault."""
    found = []
    for doc in completer.store.list_documents():
        try:
            state = completer.classify(doc)
        except STORE_ERRORS as e:
            logger.warning(f"Skipping unreadable note {doc}: {e}")
            continue
        if state.is_recurring:
            found.append((doc, state))

    if as_json:
        click.echo(
            json.dumps(
                [
                    {"path": doc, "due": s.due_date, "recurrence": s.recurrence.describe()}
                    for doc, s in found
                ],
                indent=2,
                default=str,
            )
        )
        return

    if not found:
        click.echo("No recurring tasks.")
        return

    for doc, state in found:
        click.echo(f"{str(state.due_date or '-'):12} {doc} ({state.recurrence.describe()})")


@main.command()
@click.argument("path")
@click.option(
    "--missed",
    type=click.Choice(sorted(DECISIONS)),
    default=None,
    help="How to record missed occurrences without asking",
)
@click.pass_obj
def complete(completer: TaskCompleter, path: str, missed: str | None):
    """Complete the current occurrence of a recurring task."""
    try:
        result = completer.complete_current_occurrence(path)

        if result.needs_decision:
            click.echo(f"{len(result.missed_dates)} occurrences were missed:")
            for missed_date in result.missed_dates:
                click.echo(f"  {missed_date}")
            choice = missed or click.prompt(
                "Record them as", type=click.Choice(sorted(DECISIONS)), default="complete"
            )
            result = completer.resolve_missed_occurrences(path, DECISIONS[choice])
    except RecurringError as e:
        _fail(str(e))
    except STORE_ERRORS as e:
        _fail(f"Could not update {path}: {e}")

    if result.status is CompletionStatus.RESOLVED:
        click.echo(f"✓ Added {result.records_added} records. Next due {result.next_due}")
    else:
        click.echo(f"✓ Task completed. Next due {result.next_due}")


@main.command()
@click.argument("path")
@click.option("--skip", is_flag=True, help="Record a skipped occurrence")
@click.pass_obj
def record(completer: TaskCompleter, path: str, skip: bool):
    """Add a ledger row without changing the due date."""
    outcome = Outcome.SKIPPED if skip else Outcome.COMPLETED
    try:
        completer.record_completion(path, outcome)
    except RecurringError as e:
        _fail(str(e))
    except STORE_ERRORS as e:
        _fail(f"Could not update {path}: {e}")
    click.echo(f"✓ Recorded {outcome.value} occurrence")


@main.command()
@click.argument("path")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_obj
def history(completer: TaskCompleter, path: str, as_json: bool):
    """Show the completion ledger of a note."""
    try:
        text = completer.store.read_text(path)
    except STORE_ERRORS as e:
        _fail(str(e))

    rows = read_ledger(text, completer.ledger)
    if as_json:
        click.echo(
            json.dumps(
                [
                    {
                        "sequence": r.sequence,
                        "timestamp": r.timestamp,
                        "due": r.due,
                        "outcome": r.outcome.value if r.outcome else None,
                    }
                    for r in rows
                ],
                indent=2,
            )
        )
        return

    if not rows:
        click.echo("No completions recorded.")
        return

    for row in rows:
        seq = f"#{row.sequence}" if row.sequence is not None else "#?"
        outcome = row.outcome.value if row.outcome else "?"
        due = f" (due {row.due})" if row.due else ""
        click.echo(f"{seq:5} {row.timestamp} {outcome}{due}")


@main.command()
@click.argument("rule")
@click.option("--due", required=True, help="Current due date (YYYY-MM-DD or ISO timestamp)")
@click.option("--completed", default=None, help="Completion time, defaults to now")
def preview(rule: str, due: str, completed: str | None):
    """Preview what a recurrence rule does to a due date."""
    parsed = parse_recurrence(rule)
    if parsed is None:
        _fail(f"Not a recurrence rule: {rule!r}")

    now = datetime.now()
    try:
        next_due = next_due_date(due, completed or now, parsed, now=now)
        missed = missed_occurrences(due, parsed, now=now)
    except (ValueError, OverflowError) as e:
        _fail(str(e))

    click.echo(f"Rule:     {parsed.describe()}")
    click.echo(f"Next due: {next_due}")
    if missed:
        click.echo(f"Missed:   {len(missed)} ({missed[0]} .. {missed[-1]})")


@main.command()
@click.argument("path")
@click.pass_obj
def toggle(completer: TaskCompleter, path: str):
    """Toggle a task's done flag."""
    try:
        done = completer.toggle_done(path)
    except RecurringError as e:
        _fail(str(e))
    except STORE_ERRORS as e:
        _fail(f"Could not update {path}: {e}")
    click.echo("✓ Marked done" if done else "✓ Marked not done")


@main.command("sync-complete-time")
@click.argument("path")
@click.pass_obj
def sync_complete_time(completer: TaskCompleter, path: str):
    """Set or clear the completion time to match the done flag."""
    try:
        changed = completer.sync_complete_time(path)
    except STORE_ERRORS as e:
        _fail(f"Could not update {path}: {e}")
    click.echo("✓ Updated" if changed else "Already in sync.")


if __name__ == "__main__":
    main()
