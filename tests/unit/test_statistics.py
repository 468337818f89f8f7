import pytest

from taskhub.core.models import Task, TimeEntry
from taskhub.statistics import StatisticsEngine, percentage


def _add(services, task_id, date, duration):
    services.entries.add(
        TimeEntry(
            task_id=task_id,
            start_time=f"{date}T10:00:00.000Z",
            end_time=f"{date}T11:00:00.000Z",
            duration=duration,
            date=date,
        )
    )


@pytest.fixture
def tracked(services):
    services.tasks.save(Task(id=1, title="Write draft", category="work"))
    services.tasks.save(Task(id=2, title="Review", category="work"))
    services.tasks.save(Task(id=3, title="Gym", category="health"))
    _add(services, 1, "2024-01-01", 30000)
    _add(services, 2, "2024-01-01", 10000)
    _add(services, 1, "2024-01-02", 20000)
    _add(services, 3, "2024-01-02", 40000)
    _add(services, 2, "2024-02-01", 99000)
    return services


def test_percentage_rounds_half_up():
    assert percentage(1, 2) == 50
    assert percentage(1, 3) == 33
    assert percentage(2, 3) == 67
    assert percentage(1, 8) == 13
    assert percentage(0, 10) == 0
    assert percentage(5, 0) == 0


def test_total_time(tracked):
    assert tracked.stats.total_time("2024-01-01", "2024-01-31") == 100000
    assert tracked.stats.total_time("2024-01-02", "2024-01-02") == 60000
    assert tracked.stats.total_time("2023-01-01", "2023-12-31") == 0


def test_per_task_breakdown_sorted_with_titles(tracked):
    stats = tracked.stats.per_task_breakdown("2024-01-01", "2024-01-31")
    assert [(s.task_id, s.title, s.total_time, s.percentage) for s in stats] == [
        (1, "Write draft", 50000, 50),
        (3, "Gym", 40000, 40),
        (2, "Review", 10000, 10),
    ]
    assert stats[1].category == "health"


def test_per_task_breakdown_percentages_sum_to_about_100(services):
    for task_id in (1, 2, 3):
        services.tasks.save(Task(id=task_id, title=str(task_id)))
        _add(services, task_id, "2024-01-05", 10000)
    stats = services.stats.per_task_breakdown("2024-01-01", "2024-01-31")
    total = sum(s.percentage for s in stats)
    assert abs(total - 100) <= len(stats) - 1


def test_dangling_task_gets_placeholder_title(services):
    _add(services, 77, "2024-01-05", 10000)
    (stat,) = services.stats.per_task_breakdown("2024-01-01", "2024-01-31")
    assert stat.title == "Unknown task"
    assert stat.category == "none"
    assert stat.percentage == 100


def test_placeholder_label_is_configurable(services):
    _add(services, 77, "2024-01-05", 10000)
    stats = StatisticsEngine(services.entries, services.tasks, unknown_label="(deleted)")
    assert stats.per_task_breakdown("2024-01-01", "2024-01-31")[0].title == "(deleted)"


def test_per_day_breakdown(tracked):
    days = tracked.stats.per_day_breakdown("2024-01-01", "2024-01-31")
    assert list(days) == ["2024-01-01", "2024-01-02"]

    jan1 = days["2024-01-01"]
    assert jan1.total_time == 40000
    assert [(t.task_id, t.time) for t in jan1.tasks] == [(1, 30000), (2, 10000)]

    jan2 = days["2024-01-02"]
    assert jan2.total_time == 60000
    assert [(t.title, t.time) for t in jan2.tasks] == [("Gym", 40000), ("Write draft", 20000)]


def test_report_combines_breakdowns(tracked):
    report = tracked.stats.report("2024-01-01", "2024-01-31")
    assert report.total_time == 100000
    assert [s.task_id for s in report.tasks] == [1, 3, 2]
    assert set(report.days) == {"2024-01-01", "2024-01-02"}


def test_empty_range(services):
    report = services.stats.report("2024-01-01", "2024-01-31")
    assert report.total_time == 0
    assert report.tasks == []
    assert report.days == {}


def test_reads_are_not_cached(tracked):
    assert tracked.stats.total_time("2024-01-01", "2024-01-01") == 40000
    _add(tracked, 3, "2024-01-01", 5000)
    assert tracked.stats.total_time("2024-01-01", "2024-01-01") == 45000


def test_renamed_task_shows_new_title(tracked):
    tracked.tasks.save(Task(id=1, title="Write full draft", category="work"))
    stats = tracked.stats.per_task_breakdown("2024-01-01", "2024-01-31")
    assert stats[0].title == "Write full draft"
