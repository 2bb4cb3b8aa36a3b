"""CLI 入口模块 -- python -m daybook.core <command>

支持的命令（均作用于本地 SQLite 数据库）：
  init-db   创建数据库与表结构
  today     今天计划的任务
  inbox     待规划的任务
  week      本周（周一至周五）看板
  summary   导航计数
"""

import asyncio
import sys
from datetime import date

from .config import get_db_path
from .dates import format_display_date, format_iso_date, format_work_days_summary
from .labels import format_priority_label, format_status_label, format_type_label, join_meta
from .models.task import Task
from .session import LocalAuthProvider, SessionManager
from .store import StoreGroup, create_store_group, verify_wal_mode

_COMMANDS = {
    "init-db": "创建数据库与表结构",
    "today": "今天计划的任务",
    "inbox": "待规划的任务",
    "week": "本周看板",
    "summary": "导航计数",
}


def _usage() -> None:
    print("用法: python -m daybook.core <command>")
    print("命令:")
    for name, help_text in _COMMANDS.items():
        print(f"  {name:<9} {help_text}")


def main() -> None:
    """CLI 主入口"""
    if len(sys.argv) < 2:
        _usage()
        sys.exit(1)

    command = sys.argv[1]
    if command not in _COMMANDS:
        print(f"未知命令: {command}")
        print(f"可用命令: {', '.join(_COMMANDS)}")
        sys.exit(1)

    sys.exit(asyncio.run(run_command(command)))


def format_task_line(task: Task) -> str:
    """单行展示：标题 | 状态 | 类型 | 优先级 | 工作日 | 截止 | 项目"""
    due = (
        f"⏰ {format_display_date(format_iso_date(task.due_date))}" if task.due_date else None
    )
    return join_meta(
        [
            task.title,
            format_status_label(task.status, bool(task.work_days)),
            format_type_label(task.type),
            format_priority_label(task.priority),
            format_work_days_summary(task.work_days),
            due,
            task.project.name if task.project else None,
        ]
    )


async def run_command(command: str) -> int:
    """执行命令，返回进程退出码"""
    db_path = get_db_path()
    store_group = await create_store_group(db_path)
    try:
        if command == "init-db":
            wal = await verify_wal_mode(store_group.conn)
            print(f"数据库路径: {db_path}")
            print(f"WAL 模式: {'是' if wal else '否'}")
            return 0
        return await _print_view(command, store_group)
    finally:
        await store_group.close()


async def _print_view(command: str, store_group: StoreGroup) -> int:
    # 延迟导入：init-db 不需要视图层
    from .views import SummaryView, TaskListView, ViewKind
    from .week import WeekBoard

    sessions = SessionManager(LocalAuthProvider())
    stores = (store_group.task_store, store_group.project_store, sessions)

    if command == "summary":
        summary = SummaryView(*stores)
        counts = await summary.refresh()
        if summary.error:
            print(f"错误: {summary.error}")
            return 1
        for name, value in counts.model_dump().items():
            print(f"{name:<9} {value}")
        return 0

    if command == "week":
        board = WeekBoard(*stores)
        await board.load()
        if board.error:
            print(f"错误: {board.error}")
            return 1
        print(board.label)
        deadlines = board.deadlines_by_day()
        for day in board.days:
            print(f"\n{format_display_date(format_iso_date(day), with_weekday=True)}")
            for task in board.tasks_for(day):
                print(f"  - {format_task_line(task)}")
            for task in deadlines.get(day, []):
                print(f"  ⏰ {task.title}")
        return 0

    view = TaskListView(ViewKind(command), *stores, today=date.today())
    await view.load()
    if view.error:
        print(f"错误: {view.error}")
        return 1
    if not view.tasks:
        print("（没有任务）")
    for task in view.tasks:
        print(format_task_line(task))
    return 0


if __name__ == "__main__":
    main()
