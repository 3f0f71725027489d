"""
用户管理 Repository
提供 users 表的查询与 get-or-create 操作
"""

import logging
from typing import Optional

from sqlmodel import Session, select

from app.models.user import User

logger = logging.getLogger(__name__)


class UserRepository:
    """
    用户数据访问对象
    封装所有与 users 表相关的数据库操作
    """

    def __init__(self, session: Session):
        """
        初始化 Repository

        Args:
            session: SQLModel 数据库会话
        """
        self.session = session

    def get_by_username(self, username: str) -> Optional[User]:
        """
        根据用户名获取用户

        Args:
            username: 用户名

        Returns:
            User 对象，不存在则返回 None
        """
        statement = select(User).where(User.username == username)
        return self.session.exec(statement).first()

    def get_or_create(self, username: str) -> User:
        """
        根据用户名获取用户，不存在则创建

        外部认证服务只给出账号标识，这里把它锚定为 stock_entries.user_id

        Args:
            username: 用户名

        Returns:
            User 对象（已存在的或新创建的）
        """
        user = self.get_by_username(username)
        if user:
            return user

        logger.info(f"[UserRepository] 检测到新用户 '{username}'，正在注册...")
        user = User(username=username, display_name=username)
        self.session.add(user)
        self.session.commit()
        self.session.refresh(user)
        logger.info(f"[UserRepository] 新用户创建成功 (ID: {user.id})")
        return user
