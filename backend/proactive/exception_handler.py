"""
统一异常处理器。

挂到 DRF 的 EXCEPTION_HANDLER setting 上。
所有响应（无论成功还是失败）前端都能用同一套逻辑判断：
  response.type === 'error' / 'validation_error' / 'configuration_error' / 'block'  → 出问题了
  没有 type 字段  → 成功

统一错误响应格式：
{
    "type":    "validation_error" | "configuration_error" | "block",
    "code":    "MISSING_DUE_DATE",
    "message": "Recipe 3f2a... has no dueDate.",
    "detail":  { ... }  // 可选
}
"""

import logging

from django.http import Http404, JsonResponse
from rest_framework.exceptions import ParseError
from rest_framework.exceptions import ValidationError as DRFValidationError
from rest_framework.views import exception_handler as drf_default_handler

from .exceptions import BaseAppException

logger = logging.getLogger(__name__)


def _error_response(type_, code, message, http_status, detail=None):
    body = {
        'type': type_,
        'code': code,
        'message': message,
    }
    if detail is not None:
        body['detail'] = detail
    return JsonResponse(body, status=http_status)


def unified_exception_handler(exc, context):
    """
    DRF exception handler entry point.

    优先级：
    1. BaseAppException 及其子类 → 统一格式（5xx 额外记 error 日志，通常是配置问题）
    2. DRF 自带的 ValidationError / ParseError（请求体不是合法 JSON）→ validation_error
    3. Http404（URL 里的 uuid 对不上等）→ block / NOT_FOUND
    4. 其他异常 → 交给 DRF 默认处理
    """
    view = context.get('view')
    view_name = type(view).__name__ if view is not None else '-'

    # --- 1. 我们自己的异常体系 ---
    if isinstance(exc, BaseAppException):
        if exc.http_status >= 500:
            logger.error("[%s] %s %s: %s", view_name, exc.type, exc.code, exc.message)
        else:
            logger.info("[%s] %s %s: %s", view_name, exc.type, exc.code, exc.message)
        return _error_response(exc.type, exc.code, exc.message, exc.http_status, exc.detail)

    # --- 2. DRF 自带的 ValidationError / ParseError ---
    if isinstance(exc, DRFValidationError):
        return _error_response(
            'validation_error', 'VALIDATION_ERROR', 'Request validation failed', 400, exc.detail,
        )
    if isinstance(exc, ParseError):
        return _error_response('validation_error', 'INVALID_JSON', str(exc.detail), 400)

    # --- 3. 路由层面的 404 ---
    if isinstance(exc, Http404):
        return _error_response('block', 'NOT_FOUND', 'Resource not found', 404)

    # --- 4. 其他的交给 DRF 默认处理 ---
    return drf_default_handler(exc, context)
