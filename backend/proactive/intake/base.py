"""
BaseIntakeAdapter — 所有评估请求数据源 Adapter 的抽象基类。

每个新数据源只需：
1. 继承 BaseIntakeAdapter
2. 实现 transform()
3. 在 factory.py 的 _REGISTRY 注册一行

评估引擎无需任何改动。
"""

import json
from abc import ABC, abstractmethod
from typing import Any

from ..evaluation.types import EvaluationRequest
from ..exceptions import ValidationError


class BaseIntakeAdapter(ABC):
    """
    三步流水线：parse → transform → validate

    子类必须实现 transform()；
    parse() 默认按 JSON 解析，validate() 提供结构层面的通用校验。
    日期格式、状态取值、dueDate 是否缺失 —— 这些交给评估引擎判断，这里不重复。
    """

    source: str = ""

    def __init__(self, raw_body: bytes | str | dict, content_type: str = ""):
        self._raw_body = raw_body
        self._content_type = content_type

    # ── 提供默认实现，子类可 override ──────────────────────────────────────

    def parse(self) -> Any:
        if isinstance(self._raw_body, dict):
            self._parsed = self._raw_body
            return self._parsed
        try:
            raw = json.loads(self._raw_body)
        except (TypeError, ValueError) as exc:
            raise ValidationError(
                message="Request body is not valid JSON.",
                code="INVALID_JSON",
            ) from exc
        if not isinstance(raw, dict):
            raise ValidationError(
                message="Request body must be a JSON object.",
                code="INVALID_JSON",
            )
        self._parsed = raw
        return raw

    # ── 必须实现 ───────────────────────────────────────────────────────────

    @abstractmethod
    def transform(self) -> EvaluationRequest:
        """
        将 self._parsed 转换为 EvaluationRequest。
        必须把原始数据存入 EvaluationRequest.raw_payload。
        """

    def validate(self, request: EvaluationRequest) -> None:
        errors = []

        if not request.patient.id:
            errors.append({"field": "patient.id", "message": "Patient id is required."})
        if not isinstance(request.patient.is_chronic, bool):
            errors.append({"field": "patient.isChronic", "message": "isChronic must be a boolean."})

        for i, recipe in enumerate(request.recipes):
            if not recipe.id:
                errors.append({"field": f"recipes[{i}].id", "message": "Recipe id is required."})
            if not isinstance(recipe.is_magistral, bool):
                errors.append({"field": f"recipes[{i}].isMagistral", "message": "isMagistral must be a boolean."})

        if errors:
            raise ValidationError(
                message="Request validation failed.",
                code="VALIDATION_ERROR",
                detail={"errors": errors},
            )

    # ── 对外统一入口 ───────────────────────────────────────────────────────

    def process(self) -> EvaluationRequest:
        """parse → transform → validate，返回校验通过的 EvaluationRequest。"""
        self.parse()
        request = self.transform()
        self.validate(request)
        return request
