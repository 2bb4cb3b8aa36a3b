"""端到端规划流程

录入 -> Inbox -> 周看板排期 -> 拖动 -> 完成 -> 已完成视图，
以及各视图与导航计数在同一份数据上保持一致。
"""

from datetime import date, timedelta

from daybook.core.dates import start_of_week
from daybook.core.models import ChangeKind
from httpx import AsyncClient


class TestPlanningFlow:
    async def test_capture_plan_complete(self, client: AsyncClient, integration_app):
        hub = integration_app.state.event_hub
        queue = await hub.subscribe()
        monday = start_of_week(date.today())
        tuesday = monday + timedelta(days=1)
        thursday = monday + timedelta(days=3)

        # 1. 录入到 Inbox（带项目）
        project = (await client.post("/api/projects", json={"name": "Cliente"})).json()
        resp = await client.post(
            "/api/tasks",
            json={"title": "Preventivo", "project_id": project["id"], "priority": "P1"},
        )
        task_id = resp.json()["id"]
        inbox = (await client.get("/api/views/inbox")).json()
        assert [t["id"] for t in inbox["tasks"]] == [task_id]
        assert inbox["tasks"][0]["project"]["name"] == "Cliente"

        # 2. 从 Inbox 拖到本周周二
        week = (
            await client.post(
                "/api/week/move",
                json={"task_id": task_id, "target_day": tuesday.isoformat()},
            )
        ).json()
        tuesday_column = next(c for c in week["columns"] if c["day"] == tuesday.isoformat())
        assert [t["id"] for t in tuesday_column["tasks"]] == [task_id]
        assert (await client.get("/api/views/inbox")).json()["tasks"] == []

        # 3. 周二拖到周四（净移动）
        await client.post(
            "/api/week/move",
            json={
                "task_id": task_id,
                "origin_day": tuesday.isoformat(),
                "target_day": thursday.isoformat(),
            },
        )
        task = (await client.get(f"/api/tasks/{task_id}")).json()
        assert task["work_days"] == [thursday.isoformat()]

        summary = (await client.get("/api/summary")).json()
        assert summary["inbox"] == 0
        assert summary["week"] == 1
        assert summary["projects"] == 1

        # 4. 完成
        resp = await client.post(f"/api/tasks/{task_id}/complete")
        assert resp.json()["status"] == "DONE"
        done = (await client.get("/api/views/done")).json()
        assert [t["id"] for t in done["tasks"]] == [task_id]
        all_view = (await client.get("/api/views/all")).json()
        assert all_view["tasks"] == []
        assert (await client.get("/api/summary")).json()["week"] == 0

        # 每次变更都发布了通知
        kinds = []
        while not queue.empty():
            kinds.append(queue.get_nowait().kind)
        assert kinds[0] == ChangeKind.PROJECTS_CHANGED
        assert kinds[1] == ChangeKind.TASK_CREATED
        assert kinds.count(ChangeKind.TASK_UPDATED) == 3
        await hub.unsubscribe(queue)

    async def test_deleting_project_keeps_tasks(self, client: AsyncClient):
        project = (await client.post("/api/projects", json={"name": "Temporaneo"})).json()
        task = (
            await client.post(
                "/api/tasks", json={"title": "Resta", "project_id": project["id"]}
            )
        ).json()

        await client.delete(f"/api/projects/{project['id']}")

        inbox = (await client.get("/api/views/inbox")).json()
        assert [t["id"] for t in inbox["tasks"]] == [task["id"]]
        assert inbox["tasks"][0]["project"] is None
        assert inbox["projects"] == []
