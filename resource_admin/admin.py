"""资源注册中心：集中管理后台中可用的资源。"""

from __future__ import annotations

import re
from typing import Any, Dict, Iterator, Optional, Sequence, Type

from resource_admin.core.logger import logger
from resource_admin.core.roles import PermissionChecker
from resource_admin.resource import Resource

_NAME_PATTERN = re.compile(r"^[a-z0-9][a-z0-9_-]*$")


class Admin:
    """以 URL 友好的名称登记资源，供路由层按名称查找。"""

    def __init__(self) -> None:
        self._resources: Dict[str, Resource] = {}

    def add_resource(
        self,
        model: Type[Any],
        *,
        name: Optional[str] = None,
        permission: Optional[PermissionChecker] = None,
        primary_fields: Optional[Sequence[str]] = None,
    ) -> Resource:
        resource = Resource(model, name, permission=permission, primary_fields=primary_fields)
        if not _NAME_PATTERN.match(resource.name):
            raise ValueError(f"资源名称 '{resource.name}' 只能包含小写字母、数字、下划线与连字符")
        if resource.name in self._resources:
            raise ValueError(f"资源 '{resource.name}' 已注册")
        self._resources[resource.name] = resource
        logger.debug("Registered resource %s", resource)
        return resource

    def get_resource(self, name: str) -> Optional[Resource]:
        return self._resources.get(name)

    def __iter__(self) -> Iterator[Resource]:
        return iter(self._resources.values())

    def __len__(self) -> int:
        return len(self._resources)
