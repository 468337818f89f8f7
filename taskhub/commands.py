import dataclasses
from pathlib import Path

from fncli import UsageError, cli

from . import config
from .core.errors import TaskNotFoundError, ValidationError
from .core.models import Task
from .core.types import PRIORITIES, TaskId
from .legacy import export_tasks, import_tasks
from .lib import clock
from .lib.converters import coerce_task_id
from .lib.dates import days_back, parse_date_ref, parse_iso
from .lib.errors import echo, exit_error
from .lib.format import format_duration, format_elapsed
from .services import Services, bootstrap


def _services() -> Services:
    return bootstrap()


def _task_id(ref: str) -> TaskId:
    try:
        return coerce_task_id(ref)
    except ValueError as e:
        raise ValidationError(str(e)) from e


def _format_task(task: Task, tracking: bool = False) -> str:
    check = "✓" if task.completed else "□"
    flag = " ▶" if tracking else ""
    prio = f" !{task.priority}" if task.priority != "unset" else ""
    spent = f" {format_duration(task.time_spent)}" if task.time_spent else ""
    return f"  {check} {task.title}{prio}{spent}{flag} [{task.id}]"


@cli("taskhub task", name="add", flags={"title": []})
def task_add(
    title: list[str],
    priority: str = "unset",
    category: str = "none",
    due: str | None = None,
    column: str | None = None,
):
    """Add a task"""
    if not title:
        exit_error("Usage: taskhub task add <title>")
    if priority not in PRIORITIES:
        raise UsageError(f"priority must be one of: {', '.join(PRIORITIES)}")
    due_date = None
    if due:
        due_date = parse_date_ref(due)
        if due_date is None:
            raise ValidationError(f"could not parse due date '{due}'")
    s = _services()
    task = s.tasks.save(
        Task(
            title=" ".join(title),
            priority=priority,  # type: ignore[arg-type]
            category=category,
            due_date=due_date,
            kanban_column=column,
        )
    )
    echo(f"added {task.title} [{task.id}]")


@cli("taskhub task", name="ls", default=True)
def task_ls(done: bool = False):
    """List open tasks, or every task with --done"""
    s = _services()
    tasks = s.tasks.get_all() if done else s.tasks.query(completed=False)
    if not tasks:
        echo("no tasks")
        return
    for t in tasks:
        if t.archived and not done:
            continue
        echo(_format_task(t, tracking=s.session.is_tracking(t.id)))


@cli("taskhub task", name="done")
def task_done(ref: str):
    """Mark a task completed"""
    s = _services()
    task = s.tasks.get_by_id(_task_id(ref))
    if task is None:
        raise TaskNotFoundError(ref)
    if s.session.is_tracking(task.id):
        s.session.stop()
        task = s.tasks.get_by_id(task.id) or task
    s.tasks.save(dataclasses.replace(task, completed=True))
    echo(f"✓ {task.title}")


@cli("taskhub task", name="rm")
def task_rm(ref: str):
    """Delete a task"""
    s = _services()
    task_id = _task_id(ref)
    if s.session.is_tracking(task_id):
        s.session.stop()
    s.tasks.delete(task_id)
    echo(f"removed [{task_id}]")


@cli("taskhub task", name="export")
def task_export(path: str | None = None):
    """Write every task to a JSON file (default: tasks-export.json in the data dir)"""
    s = _services()
    target = Path(path) if path else config.TASKHUB_DIR / "tasks-export.json"
    count = export_tasks(s.tasks, target)
    echo(f"exported {count} tasks to {target}")


@cli("taskhub task", name="import")
def task_import(path: str):
    """Replace all tasks with the contents of an exported JSON file"""
    s = _services()
    count = import_tasks(s.tasks, Path(path))
    echo(f"imported {count} tasks from {path}")


@cli("taskhub track", name="start")
def track_start(ref: str):
    """Start timing a task, stopping any other"""
    s = _services()
    previous = s.session.active_task_id
    state = s.session.start(_task_id(ref))
    task = s.tasks.get_by_id(state.task_id)
    title = task.title if task else ref
    if previous is not None and previous != state.task_id:
        echo(f"stopped [{previous}]")
    echo(f"▶ {title}")


@cli("taskhub track", name="stop")
def track_stop():
    """Stop the running timer"""
    s = _services()
    if not s.session.is_tracking():
        echo("not tracking")
        return
    entry = s.session.stop()
    if entry is None:
        echo(f"stopped (under {config.get_min_entry_ms() // 1000}s, not recorded)")
        return
    echo(f"■ {format_duration(entry.duration)} recorded [entry {entry.id}]")


@cli("taskhub track", name="status", default=True)
def track_status():
    """Show the running timer"""
    s = _services()
    state = s.session.state
    if state is None:
        echo("idle")
        return
    task = s.tasks.get_by_id(state.task_id)
    title = task.title if task else s.stats.unknown_label
    started = format_elapsed(state.start_time, clock.now())
    echo(f"▶ {title}  {format_duration(s.session.elapsed_ms())}  (started {started})")


@cli("taskhub track", name="log")
def track_log(ref: str):
    """List time entries for a task"""
    s = _services()
    task_id = _task_id(ref)
    entries = s.entries.get_for_task(task_id)
    if not entries:
        echo("no time entries")
        return
    for e in sorted(entries, key=lambda e: e.start_time, reverse=True):
        start = parse_iso(e.start_time).strftime("%H:%M")
        end = parse_iso(e.end_time).strftime("%H:%M")
        echo(f"  {e.date}  {start}-{end}  {format_duration(e.duration)}  [entry {e.id}]")
    echo(f"  total {format_duration(s.entries.total_for_task(task_id))}")


@cli("taskhub track", name="rm")
def track_rm(entry_id: int):
    """Delete a time entry and refresh its task total"""
    s = _services()
    s.session.delete_entry(entry_id)
    echo(f"removed entry {entry_id}")


@cli("taskhub")
def report(start: str | None = None, end: str | None = None):
    """Time report over a date range (default: last few days)"""
    default_start, default_end = days_back(config.get_report_days())
    start_date = parse_date_ref(start) if start else default_start
    end_date = parse_date_ref(end) if end else default_end
    if start_date is None or end_date is None:
        raise ValidationError(f"could not parse date range '{start}'..'{end}'")
    if start_date > end_date:
        raise ValidationError(f"start {start_date} is after end {end_date}")

    s = _services()
    result = s.stats.report(start_date, end_date)
    echo(f"{start_date} → {end_date}  total {format_duration(result.total_time)}")
    if not result.tasks:
        echo("  no tracked time")
        return
    for stat in result.tasks:
        echo(f"  {format_duration(stat.total_time)}  {stat.percentage:>3}%  {stat.title}")
    for day, day_stat in result.days.items():
        echo(f"  {day}  {format_duration(day_stat.total_time)}")
        for t in day_stat.tasks:
            echo(f"    {format_duration(t.time)}  {t.title}")
