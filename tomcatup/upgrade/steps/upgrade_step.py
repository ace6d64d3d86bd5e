"""
升级步骤基类模块

定义升级步骤的抽象接口。
"""

from abc import ABC, abstractmethod

from ..upgrade_context import UpgradeContext


class UpgradeStep(ABC):
    """升级步骤抽象基类"""

    def __init__(self, name: str, description: str):
        self.name = name
        self.description = description

    @abstractmethod
    def execute(self, context: UpgradeContext) -> None:
        """执行升级步骤，失败时抛出异常终止整个流程"""
        pass
