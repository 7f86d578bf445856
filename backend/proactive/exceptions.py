"""
统一异常体系。

所有业务异常继承 BaseAppException，包含：
- type:        错误类型标识（validation_error / configuration_error / block）
- code:        业务错误码（MISSING_DUE_DATE / INVALID_MAX_CYCLES / PATIENT_NOT_FOUND / ...）
- message:     人类可读的描述
- detail:      可选的附加信息（dict / list / None）
- http_status: HTTP 状态码

评估引擎只负责 raise，从不自己吞掉异常换成默认结果。
View 层由 exception_handler 统一格式化；批量巡检（sweep）负责记录日志并跳过该患者。
"""


class BaseAppException(Exception):
    """所有业务异常的基类。"""

    type = 'error'
    code = 'UNKNOWN_ERROR'
    http_status = 500

    def __init__(self, message, code=None, detail=None, http_status=None):
        self.message = message
        if code is not None:
            self.code = code
        if http_status is not None:
            self.http_status = http_status
        self.detail = detail
        super().__init__(message)


class ValidationError(BaseAppException):
    """输入数据缺失或格式错误（dueDate 缺失、日期字符串非法等），400。"""

    type = 'validation_error'
    code = 'VALIDATION_ERROR'
    http_status = 400


class ConfigurationError(BaseAppException):
    """
    配置错误：maxCycles <= 0 / 非整数，或时区名未知。

    在评估开始之前就被拒绝。属于服务端配置问题，500。
    """

    type = 'configuration_error'
    code = 'CONFIGURATION_ERROR'
    http_status = 500


class BlockError(BaseAppException):
    """业务规则阻止操作。service / model 层抛出，409（未找到时覆盖为 404）。"""

    type = 'block'
    code = 'BUSINESS_BLOCK'
    http_status = 409
