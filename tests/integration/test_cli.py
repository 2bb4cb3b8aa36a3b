"""CLI 测试 -- 基于临时数据库执行命令"""

from datetime import date
from pathlib import Path

import pytest
from daybook.core.__main__ import format_task_line, main, run_command
from daybook.core.models import Task, TaskCreate, TaskStatus
from daybook.core.scheduling import build_create_values
from daybook.core.store import create_store_group


@pytest.fixture
def cli_db(tmp_path: Path, monkeypatch) -> Path:
    db_path = tmp_path / "cli.db"
    monkeypatch.setenv("DAYBOOK_DB_PATH", str(db_path))
    return db_path


class TestCli:
    async def test_init_db(self, cli_db: Path, capsys):
        assert await run_command("init-db") == 0
        out = capsys.readouterr().out
        assert str(cli_db) in out
        assert "WAL 模式: 是" in out

    async def test_inbox_lists_tasks(self, cli_db: Path, capsys):
        group = await create_store_group(str(cli_db))
        await group.task_store.create_task(build_create_values(TaskCreate(title="Da fare")))
        await group.close()

        assert await run_command("inbox") == 0
        out = capsys.readouterr().out
        assert "Da fare | 📥 Da pianificare" in out

    async def test_empty_today(self, cli_db: Path, capsys):
        assert await run_command("today") == 0
        assert "（没有任务）" in capsys.readouterr().out

    async def test_summary_and_week(self, cli_db: Path, capsys):
        assert await run_command("summary") == 0
        assert "inbox" in capsys.readouterr().out
        assert await run_command("week") == 0
        assert capsys.readouterr().out.startswith("Dal ")

    def test_unknown_command_exits(self, monkeypatch):
        monkeypatch.setattr("sys.argv", ["daybook", "boh"])
        with pytest.raises(SystemExit) as exc_info:
            main()
        assert exc_info.value.code == 1


class TestFormatTaskLine:
    def test_full_line(self):
        task = Task(
            id="t1",
            title="Report",
            status=TaskStatus.OPEN,
            work_days=[date(2024, 3, 4), date(2024, 3, 5)],
            due_date=date(2024, 3, 8),
        )
        line = format_task_line(task)
        assert line == "Report | 🗓️ Pianificato | 💼 Lavoro | ✨ Medio | 04-05 mar | ⏰ 08 mar"
