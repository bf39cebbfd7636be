"""枚举定义：约束权限动作与处理结果的可选值。"""

from enum import Enum


class PermissionModeEnum(str, Enum):
    """资源上可被授权的动作。"""

    READ = "read"
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"
    # 授权时的简写，等价于上述四个动作
    CRUD = "crud"


class HandlerOutcomeEnum(str, Enum):
    """处理器执行结果：继续后续流程，或已主动短路。"""

    CONTINUE = "continue"
    STOP = "stop"
