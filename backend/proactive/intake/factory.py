"""
工厂函数：根据来源字符串返回对应 Adapter 类。

新增数据源只需：
  1. 在 adapters.py 新建 Adapter 类
  2. 在此处 _REGISTRY 加一行
"""

from ..exceptions import ValidationError
from .base import BaseIntakeAdapter

DEFAULT_SOURCE = "document_store"


def _build_registry() -> dict[str, type[BaseIntakeAdapter]]:
    # 延迟导入，避免循环依赖
    from .adapters import DocumentStoreAdapter, InternalAdapter

    return {
        "document_store": DocumentStoreAdapter,
        "internal":       InternalAdapter,
    }


def get_adapter(source: str, raw_body: bytes | str | dict, content_type: str = "") -> BaseIntakeAdapter:
    """
    根据 source 返回已实例化的 Adapter。

    Args:
        source:       数据来源标识，例如 "document_store"、"internal"
        raw_body:     原始请求体（bytes / str / 已解析的 dict）
        content_type: HTTP Content-Type

    Raises:
        ValidationError: 未知的 source
    """
    registry = _build_registry()
    adapter_cls = registry.get(source or DEFAULT_SOURCE)

    if adapter_cls is None:
        raise ValidationError(
            message=f"Unknown evaluation source: {source!r}.",
            code="UNKNOWN_SOURCE",
            detail={"known_sources": list(registry.keys())},
        )

    return adapter_cls(raw_body=raw_body, content_type=content_type)
