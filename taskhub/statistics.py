"""Aggregations over time entries for a date range.

Every call rescans the range; nothing is cached.
"""

from collections import defaultdict

from .config import DEFAULT_UNKNOWN_TASK_LABEL
from .core.models import DayStat, DayTaskTime, TaskStat, TimeEntry, TimeReport
from .core.types import TaskId
from .tasks import TaskRepository
from .time_entries import TimeEntryRepository

__all__ = ["StatisticsEngine", "percentage"]


def percentage(part: int, total: int) -> int:
    """Share of `total` in whole percent, halves rounded up; 0 for an empty total."""
    if total <= 0:
        return 0
    return (200 * part + total) // (2 * total)


class StatisticsEngine:
    def __init__(
        self,
        entries: TimeEntryRepository,
        tasks: TaskRepository,
        unknown_label: str = DEFAULT_UNKNOWN_TASK_LABEL,
    ):
        self.entries = entries
        self.tasks = tasks
        self.unknown_label = unknown_label

    def _labels(self, task_ids: list[TaskId]) -> dict[TaskId, tuple[str, str]]:
        labels = {}
        for task_id in task_ids:
            task = self.tasks.get_by_id(task_id)
            labels[task_id] = (task.title, task.category) if task else (self.unknown_label, "none")
        return labels

    def total_time(self, start_date: str, end_date: str) -> int:
        return sum(e.duration for e in self.entries.get_by_date_range(start_date, end_date))

    def per_task_breakdown(self, start_date: str, end_date: str) -> list[TaskStat]:
        return self.report(start_date, end_date).tasks

    def per_day_breakdown(self, start_date: str, end_date: str) -> dict[str, DayStat]:
        return self.report(start_date, end_date).days

    def report(self, start_date: str, end_date: str) -> TimeReport:
        entries = self.entries.get_by_date_range(start_date, end_date)
        if not entries:
            return TimeReport()
        total = sum(e.duration for e in entries)
        per_task = _sum_by_task(entries)
        labels = self._labels(list(per_task))

        task_stats = [
            TaskStat(
                task_id=task_id,
                title=labels[task_id][0],
                category=labels[task_id][1],
                total_time=time,
                percentage=percentage(time, total),
            )
            for task_id, time in per_task.items()
        ]
        task_stats.sort(key=lambda s: s.total_time, reverse=True)

        by_date: dict[str, list[TimeEntry]] = defaultdict(list)
        for e in entries:
            by_date[e.date[:10]].append(e)

        days = {}
        for day in sorted(by_date):
            day_entries = by_date[day]
            times = [
                DayTaskTime(task_id=task_id, title=labels[task_id][0], time=time)
                for task_id, time in _sum_by_task(day_entries).items()
            ]
            times.sort(key=lambda t: t.time, reverse=True)
            days[day] = DayStat(total_time=sum(e.duration for e in day_entries), tasks=times)

        return TimeReport(total_time=total, tasks=task_stats, days=days)


def _sum_by_task(entries: list[TimeEntry]) -> dict[TaskId, int]:
    totals: dict[TaskId, int] = {}
    for e in entries:
        totals[e.task_id] = totals.get(e.task_id, 0) + e.duration
    return totals
