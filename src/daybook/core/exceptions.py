"""Daybook 异常体系

- TaskValidationError: 输入校验失败，在任何存储调用之前抛出
- SessionError: 会话获取/创建失败，页面级阻断
- StoreError: 数据存储读写失败，视图层回滚后展示错误
- NotFoundError: 任务或项目不存在
"""


class DaybookError(Exception):
    """Daybook 基础异常"""


class TaskValidationError(DaybookError):
    """输入校验失败（空标题、空项目名、未选择日期等）"""

    def __init__(self, message: str, field: str | None = None) -> None:
        """
        Args:
            message: 面向用户的错误描述
            field: 出错的字段名
        """
        super().__init__(message)
        self.field = field


class SessionError(DaybookError):
    """会话不可用"""


class StoreError(DaybookError):
    """数据存储调用失败"""

    def __init__(self, message: str, recoverable: bool = True) -> None:
        """
        Args:
            message: 错误描述
            recoverable: 是否可通过重试恢复
        """
        super().__init__(message)
        self.recoverable = recoverable


class NotFoundError(DaybookError):
    """任务或项目不存在"""

    def __init__(self, entity: str, entity_id: str) -> None:
        """
        Args:
            entity: 实体类型（task / project）
            entity_id: 实体 ID
        """
        super().__init__(f"Elemento non trovato ({entity}: {entity_id})")
        self.entity = entity
        self.entity_id = entity_id
