"""
用户域模型 - 记录归属者
每条 stock_entries 记录都通过 user_id 指向这里
"""

from typing import Optional
from sqlmodel import Field

from .base import TimestampModel

class User(TimestampModel, table=True):
    """
    记录归属者
    单用户应用，默认只有一个 "me"；认证由外部托管服务完成
    """
    __tablename__ = "users"

    id: Optional[int] = Field(default=None, primary_key=True)

    # 唯一用户名，对应外部认证服务的账号标识
    username: str = Field(unique=True, index=True, nullable=False)

    display_name: Optional[str] = Field(default=None)
