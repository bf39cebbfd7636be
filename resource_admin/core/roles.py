"""角色与权限：按动作（读/建/改/删）把权限授予角色集合。

- ``Permission``：资源级别的权限规则，``deny`` 优先于 ``allow``；
- ``RoleRegistry``：命名角色及其判定函数，根据令牌声明计算当前请求命中的角色；
- 角色 ``*`` 匹配任意请求（包括匿名请求）。
"""

from __future__ import annotations

from typing import Any, Callable, Dict, Iterable, Mapping, Optional, Protocol, Set, Tuple

from .constants import ANYONE_ROLE
from .enums import PermissionModeEnum

RoleChecker = Callable[[Mapping[str, Any]], bool]

_CRUD_MODES: Tuple[PermissionModeEnum, ...] = (
    PermissionModeEnum.READ,
    PermissionModeEnum.CREATE,
    PermissionModeEnum.UPDATE,
    PermissionModeEnum.DELETE,
)


class SupportsRoles(Protocol):
    roles: Tuple[str, ...]


class PermissionChecker(Protocol):
    """权限检查接口：针对某个动作回答允许或拒绝。"""

    def has_permission(self, mode: PermissionModeEnum, context: SupportsRoles) -> bool:
        ...


def _expand_mode(mode: PermissionModeEnum | str) -> Tuple[PermissionModeEnum, ...]:
    mode = PermissionModeEnum(mode)
    if mode is PermissionModeEnum.CRUD:
        return _CRUD_MODES
    return (mode,)


class Permission:
    """基于角色的权限规则集合。"""

    def __init__(self) -> None:
        self.allowed_roles: Dict[PermissionModeEnum, Set[str]] = {}
        self.denied_roles: Dict[PermissionModeEnum, Set[str]] = {}

    def allow(self, mode: PermissionModeEnum | str, *roles: str) -> "Permission":
        for item in _expand_mode(mode):
            self.allowed_roles.setdefault(item, set()).update(roles)
        return self

    def deny(self, mode: PermissionModeEnum | str, *roles: str) -> "Permission":
        for item in _expand_mode(mode):
            self.denied_roles.setdefault(item, set()).update(roles)
        return self

    def has_role_permission(self, mode: PermissionModeEnum | str, *roles: str) -> bool:
        """判断给定角色集合是否拥有 ``mode`` 权限；``crud`` 要求四个动作全部放行。"""
        modes = _expand_mode(mode)
        if len(modes) > 1:
            return all(self.has_role_permission(item, *roles) for item in modes)

        target = modes[0]
        denied = self.denied_roles.get(target, set())
        if ANYONE_ROLE in denied or denied.intersection(roles):
            return False

        allowed = self.allowed_roles.get(target, set())
        return ANYONE_ROLE in allowed or bool(allowed.intersection(roles))

    def has_permission(self, mode: PermissionModeEnum | str, context: SupportsRoles) -> bool:
        return self.has_role_permission(mode, *getattr(context, "roles", ()))


def allow(mode: PermissionModeEnum | str, *roles: str) -> Permission:
    """快捷构造：``allow(PermissionModeEnum.READ, "*")``。"""
    return Permission().allow(mode, *roles)


class RoleRegistry:
    """命名角色注册表：角色名 -> 判定函数（入参为令牌声明）。"""

    def __init__(self) -> None:
        self._checkers: Dict[str, RoleChecker] = {}

    def register(self, name: str, checker: RoleChecker) -> None:
        if not name or name == ANYONE_ROLE:
            raise ValueError(f"invalid role name: {name!r}")
        self._checkers[name] = checker

    def unregister(self, name: str) -> None:
        self._checkers.pop(name, None)

    def matched_roles(self, claims: Optional[Mapping[str, Any]]) -> Tuple[str, ...]:
        """返回声明中显式携带的角色，以及所有判定通过的注册角色（保持顺序、去重）。"""
        claims = claims or {}
        roles: list[str] = []

        raw = claims.get("roles") or ()
        if isinstance(raw, str):
            raw = (raw,)
        for item in _as_iterable(raw):
            name = str(item).strip()
            if name and name not in roles:
                roles.append(name)

        for name, checker in self._checkers.items():
            if name not in roles and checker(claims):
                roles.append(name)
        return tuple(roles)


def _as_iterable(value: Any) -> Iterable[Any]:
    if isinstance(value, (list, tuple, set, frozenset)):
        return value
    return (value,)


role_registry = RoleRegistry()
