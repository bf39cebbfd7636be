"""提交值集合：一次写请求中的字段名/值对，可按字段名查询。"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, Iterator, List, Mapping, Optional

from resource_admin.core.constants import DESTROY_META_NAME


@dataclass
class MetaValue:
    """单个提交字段；嵌套分组时 ``meta_values`` 持有子字段集合。"""

    name: str
    value: Any = None
    meta_values: Optional["MetaValues"] = None


class MetaValues:
    """按提交顺序保存的字段集合。"""

    def __init__(self, values: Optional[Iterable[MetaValue]] = None) -> None:
        self.values: List[MetaValue] = list(values or ())

    @classmethod
    def from_mapping(cls, mapping: Optional[Mapping[str, Any]]) -> "MetaValues":
        """由表单或 JSON 载荷构造，嵌套字典转换为子集合。"""
        values = []
        for name, value in (mapping or {}).items():
            if isinstance(value, Mapping):
                values.append(MetaValue(name=name, value=value, meta_values=cls.from_mapping(value)))
            else:
                values.append(MetaValue(name=name, value=value))
        return cls(values)

    def get(self, name: str) -> Optional[MetaValue]:
        for meta_value in self.values:
            if meta_value.name == name:
                return meta_value
        return None

    def add(self, name: str, value: Any) -> MetaValue:
        meta_value = MetaValue(name=name, value=value)
        self.values.append(meta_value)
        return meta_value

    def names(self) -> List[str]:
        return [meta_value.name for meta_value in self.values]

    def __iter__(self) -> Iterator[MetaValue]:
        return iter(self.values)

    def __len__(self) -> int:
        return len(self.values)

    def __repr__(self) -> str:
        return f"MetaValues({self.values!r})"


def to_string(value: Any) -> str:
    """把提交值转为文本：表单字段以列表形式到达时取第一个元素。"""
    if value is None:
        return ""
    if isinstance(value, (list, tuple)):
        return to_string(value[0]) if value else ""
    if isinstance(value, bytes):
        return value.decode("utf-8")
    return str(value)


def is_destroy_requested(meta_values: Optional[MetaValues]) -> bool:
    """删除标记存在且取值不为 "0" 时视为请求删除。"""
    if meta_values is None:
        return False
    destroy = meta_values.get(DESTROY_META_NAME)
    return destroy is not None and to_string(destroy.value) != "0"
