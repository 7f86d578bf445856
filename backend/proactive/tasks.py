import logging
from celery import shared_task
from django.db import DatabaseError

logger = logging.getLogger(__name__)


@shared_task(
    bind=True,
    max_retries=3,
    default_retry_delay=10,   # 初始重试延迟（秒），指数退避会乘以 2^retry_count
    acks_late=True,           # 任务执行完才 ack，防止 worker 崩溃时任务丢失
    reject_on_worker_lost=True,
)
def run_proactive_sweep_task(self, current_date=None):
    """
    批量主动评估（每日由 celery beat 触发，也可通过 API 手动触发）。

    重试只针对数据层错误（数据库不可用等）：
      - 最多重试 3 次
      - 指数退避：10s → 20s → 40s
    评估引擎本身不重试：单个患者数据有问题由 run_proactive_sweep 跳过，
    配置错误直接失败。
    """
    from proactive.services import run_proactive_sweep

    logger.info("[Celery][run_proactive_sweep_task] 开始 current_date=%s (attempt %d/%d)",
                current_date, self.request.retries + 1, self.max_retries + 1)

    try:
        summary = run_proactive_sweep(current_date=current_date)
    except DatabaseError as exc:
        if self.request.retries < self.max_retries:
            countdown = self.default_retry_delay * (2 ** self.request.retries)
            logger.warning(
                "[Celery] 巡检读取数据失败 (attempt %d): %s，%ds 后重试",
                self.request.retries + 1, exc, countdown,
            )
            raise self.retry(exc=exc, countdown=countdown)
        logger.error("[Celery] 巡检已达最大重试次数，放弃: %s", exc)
        raise

    logger.info("[Celery] 巡检完成 %s", summary)
    return summary
