import uuid
from django.db import models, transaction
from django.utils import timezone

from .constants import ActionNeeded, ProactiveStatus, RecipeStatus
from .exceptions import BlockError


def _choices(enum_cls):
    return [(member.value, member.name.replace('_', ' ').title()) for member in enum_cls]


class Patient(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=200)
    rut = models.CharField(max_length=12, blank=True, default='')
    is_chronic = models.BooleanField(default=False)
    # 空字符串 → 使用 settings.PROACTIVE_DEFAULT_LOCALE
    locale = models.CharField(max_length=10, blank=True, default='')

    # 主动评估结果（由 sweep 写入，UI 徽章 / 通知横幅直接读取）
    proactive_status = models.CharField(
        max_length=20, choices=_choices(ProactiveStatus), default=ProactiveStatus.OK.value,
    )
    action_needed = models.CharField(
        max_length=30, choices=_choices(ActionNeeded), default=ActionNeeded.NONE.value,
    )
    proactive_message = models.TextField(blank=True, default='')
    proactive_evaluated_at = models.DateTimeField(blank=True, null=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'patients'


class Recipe(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    patient = models.ForeignKey(Patient, on_delete=models.CASCADE, related_name='recipes')
    status = models.CharField(
        max_length=30, choices=_choices(RecipeStatus), default=RecipeStatus.PENDING_VALIDATION.value,
    )
    due_date = models.DateField(blank=True, null=True)
    is_magistral = models.BooleanField(default=True)
    # [{"principal_active_ingredient": "Minoxidil"}, ...]
    items = models.JSONField(default=list, blank=True)
    created_at = models.DateTimeField(default=timezone.now)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'recipes'
        ordering = ['created_at', 'id']

    def transition_to(self, status, at=None):
        """更新状态并追加一条 audit 记录，两步在同一事务里完成。"""
        status = RecipeStatus(status)
        at = at or timezone.now()
        with transaction.atomic():
            self.status = status.value
            self.save(update_fields=['status', 'updated_at'])
            return RecipeAuditEntry.objects.create(recipe=self, status=status.value, date=at)


class RecipeAuditEntry(models.Model):
    """状态变更记录。只允许追加，写入后不可修改。"""

    recipe = models.ForeignKey(Recipe, on_delete=models.CASCADE, related_name='audit_trail')
    status = models.CharField(max_length=30, choices=_choices(RecipeStatus))
    date = models.DateTimeField()

    class Meta:
        db_table = 'recipe_audit_entries'
        ordering = ['id']

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise BlockError(
                message='Audit trail entries are append-only and cannot be modified.',
                code='AUDIT_TRAIL_APPEND_ONLY',
                detail={'entry_id': self.pk, 'recipe_id': str(self.recipe_id)},
            )
        super().save(*args, **kwargs)
