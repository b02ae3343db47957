"""
Command line entry point for the habit tracker.

    habit-tracker                       decay sweep, save, show status
    habit-tracker complete <habit-id>
    habit-tracker feedback <habit-id> --positive|--negative [--note "reason"]
    habit-tracker report
    habit-tracker summary [--markdown]
    habit-tracker add <habit-id> --name <name>
"""
import logging
import sys

import click

import habit_config
from graph import run_command

FORMAT_CHOICE = click.Choice(["text", "markdown", "json"])


def setup_logging(level: str = None):
    logging.basicConfig(
        level=getattr(logging, (level or habit_config.LOG_LEVEL), logging.WARNING),
        format='%(asctime)s [%(levelname)s] %(name)s: %(message)s',
        stream=sys.stderr,
    )


def _finish(ctx: click.Context, command: str, params: dict = None, output_format: str = "text"):
    result = run_command(
        command,
        params=params,
        output_format=output_format,
        store_path=ctx.obj["store"],
    )
    exit_code = result.get("exit_code", 0)
    response = result.get("response")
    if response:
        click.echo(response, err=exit_code != 0)
    ctx.exit(exit_code)


@click.group(invoke_without_command=True)
@click.option("--store", "store", envvar="HABITS_FILE", default=None, type=click.Path(dir_okay=False),
              help="Habit store JSON file (defaults to HABITS_FILE or habits.json)")
@click.pass_context
def main(ctx, store):
    """AI Habit Tracker: weighted habits with streaks, decay and feedback."""
    setup_logging()
    ctx.ensure_object(dict)
    ctx.obj["store"] = store
    if ctx.invoked_subcommand is None:
        _finish(ctx, "status")


@main.command("status")
@click.option("--format", "output_format", default="text", type=FORMAT_CHOICE, help="Output format")
@click.pass_context
def status(ctx, output_format):
    """Apply decay, save, and list habits by weight."""
    _finish(ctx, "status", output_format=output_format)


@main.command("complete")
@click.argument("habit_id", required=False)
@click.option("--format", "output_format", default="text", type=FORMAT_CHOICE, help="Output format")
@click.pass_context
def complete(ctx, habit_id, output_format):
    """Mark HABIT_ID as completed for today."""
    _finish(ctx, "complete", {"habit_id": habit_id}, output_format)


@main.command("feedback")
@click.argument("habit_id", required=False)
@click.option("--positive", is_flag=True, default=False, help="The habit helped")
@click.option("--negative", is_flag=True, default=False, help="The habit was missed or unhelpful")
@click.option("--note", default="", help="Why the feedback was given")
@click.option("--format", "output_format", default="text", type=FORMAT_CHOICE, help="Output format")
@click.pass_context
def feedback(ctx, habit_id, positive, negative, note, output_format):
    """Log positive or negative feedback for HABIT_ID."""
    # exactly one polarity; anything else is rejected by the command router
    is_positive = positive if positive != negative else None
    _finish(ctx, "feedback", {"habit_id": habit_id, "is_positive": is_positive, "note": note}, output_format)


@main.command("report")
@click.option("--format", "output_format", default="text", type=FORMAT_CHOICE, help="Output format")
@click.pass_context
def report(ctx, output_format):
    """Feedback report, best-rated habits first."""
    _finish(ctx, "report", output_format=output_format)


@main.command("summary")
@click.option("--format", "output_format", default="text", type=FORMAT_CHOICE, help="Output format")
@click.option("--markdown", is_flag=True, default=False, help="Shortcut for --format markdown")
@click.pass_context
def summary(ctx, output_format, markdown):
    """Daily summary: completion rate, average weight, streak leader."""
    _finish(ctx, "summary", output_format="markdown" if markdown else output_format)


@main.command("add")
@click.argument("habit_id", required=False)
@click.option("--name", default=None, help="Display name")
@click.option("--description", default=None, help="What the habit is about")
@click.option("--frequency", default="daily", help="Cadence, e.g. daily or weekly")
@click.option("--format", "output_format", default="text", type=FORMAT_CHOICE, help="Output format")
@click.pass_context
def add(ctx, habit_id, name, description, frequency, output_format):
    """Register a new habit in the store (creates the store if needed)."""
    params = {"habit_id": habit_id, "name": name, "description": description, "frequency": frequency}
    _finish(ctx, "add", params, output_format)


if __name__ == "__main__":
    main()
