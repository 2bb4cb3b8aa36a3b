"""Project Domain Model

名称唯一只是约定，代码层不强制。
"""

from pydantic import BaseModel, Field


class Project(BaseModel):
    """项目数据模型"""

    id: str = Field(description="唯一标识")
    name: str = Field(description="项目名称")
    color: str | None = Field(default=None, description="展示颜色")


class ProjectCreate(BaseModel):
    """新建项目请求"""

    name: str = Field(description="项目名称（去除首尾空白后不能为空）")
    color: str | None = Field(default=None)


class ProjectRename(BaseModel):
    """重命名项目请求"""

    name: str = Field(description="新名称")
