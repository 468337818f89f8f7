from tests.conftest import FnCLIRunner

runner = FnCLIRunner()


def test_task_ls_empty(tmp_taskhub_dir):
    result = runner.invoke(["task", "ls"])

    assert result.exit_code == 0
    assert "no tasks" in result.stdout


def test_task_add_then_ls(tmp_taskhub_dir):
    result = runner.invoke(["task", "add", "write", "report", "--priority", "high"])
    assert result.exit_code == 0
    assert "added write report" in result.stdout

    result = runner.invoke(["task", "ls"])
    assert result.exit_code == 0
    assert "write report" in result.stdout
    assert "!high" in result.stdout


def test_task_done_hides_from_ls(tmp_taskhub_dir):
    runner.invoke(["task", "add", "finish", "me"])
    task_id = runner.invoke(["task", "ls"]).stdout.rsplit("[", 1)[1].split("]")[0]

    result = runner.invoke(["task", "done", task_id])
    assert result.exit_code == 0

    assert "no tasks" in runner.invoke(["task", "ls"]).stdout
    assert "finish me" in runner.invoke(["task", "ls", "--done"]).stdout


def test_track_status_idle(tmp_taskhub_dir):
    result = runner.invoke(["track", "status"])

    assert result.exit_code == 0
    assert "idle" in result.stdout


def test_track_start_and_quick_stop(tmp_taskhub_dir):
    runner.invoke(["task", "add", "focus"])
    task_id = runner.invoke(["task", "ls"]).stdout.rsplit("[", 1)[1].split("]")[0]

    result = runner.invoke(["track", "start", task_id])
    assert result.exit_code == 0
    assert "focus" in result.stdout
    assert "focus" in runner.invoke(["track", "status"]).stdout

    result = runner.invoke(["track", "stop"])
    assert result.exit_code == 0
    assert "not recorded" in result.stdout
    assert "idle" in runner.invoke(["track", "status"]).stdout


def test_track_start_unknown_task_fails(tmp_taskhub_dir):
    result = runner.invoke(["track", "start", "999"])

    assert result.exit_code == 1
    assert "no task with id 999" in result.stderr


def test_track_stop_when_idle(tmp_taskhub_dir):
    result = runner.invoke(["track", "stop"])

    assert result.exit_code == 0
    assert "not tracking" in result.stdout


def test_report_without_entries(tmp_taskhub_dir):
    result = runner.invoke(["report"])

    assert result.exit_code == 0
    assert "no tracked time" in result.stdout


def test_report_rejects_inverted_range(tmp_taskhub_dir):
    result = runner.invoke(["report", "--start", "2024-02-01", "--end", "2024-01-01"])

    assert result.exit_code == 1
    assert "is after" in result.stderr


def test_task_export_and_import(tmp_taskhub_dir):
    runner.invoke(["task", "add", "keep", "me"])
    target = tmp_taskhub_dir / "backup.json"

    result = runner.invoke(["task", "export", "--path", str(target)])
    assert result.exit_code == 0
    assert "exported 1 tasks" in result.stdout

    runner.invoke(["task", "add", "throwaway"])
    result = runner.invoke(["task", "import", str(target)])
    assert result.exit_code == 0
    assert "imported 1 tasks" in result.stdout

    listing = runner.invoke(["task", "ls"]).stdout
    assert "keep me" in listing
    assert "throwaway" not in listing


def test_task_export_defaults_to_data_dir(tmp_taskhub_dir):
    result = runner.invoke(["task", "export"])

    assert result.exit_code == 0
    assert (tmp_taskhub_dir / "tasks-export.json").exists()
