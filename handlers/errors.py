# handlers/errors.py
"""
Errors raised by the payment ledger.

Every error knows how to render its own chat reply; the unit label is
substituted at render time so the same exception reads correctly under
any configured currency.
"""


class LedgerError(Exception):
    template = "⚠️ 操作失败"

    def render(self, unit: str) -> str:
        return self.template.format(unit=unit)


# ── Amount validation ─────────────────────────────────────────
class InvalidAmount(LedgerError):
    template = "❌ 请输入有效的数字金额"


class BelowMinimum(LedgerError):
    template = "❌ 金额不能小于最小单位（0.01{unit}）"


class PrecisionError(LedgerError):
    template = "❌ 金额最多支持两位小数"


# ── Deletion ──────────────────────────────────────────────────
class InvalidRange(LedgerError):
    template = "⚠️ 无效序号格式，示例：3 或 1-5"

    def __init__(self, token: str | None = None):
        super().__init__(token)
        self.token = token

    def render(self, unit: str) -> str:
        if not self.token:
            return "⚠️ 请输入删除序号或范围"
        return super().render(unit)


class OutOfRange(LedgerError):
    template = "⚠️ 无效序号范围，当前记录数：{count}"

    def __init__(self, count: int):
        super().__init__(count)
        self.count = count

    def render(self, unit: str) -> str:
        return self.template.format(count=self.count)


class NothingToDelete(LedgerError):
    template = "📭 当前没有可删除的记录"


# ── Persistence ───────────────────────────────────────────────
class StoreFailure(LedgerError):
    MESSAGES = {
        "create": "📛 记录失败，请联系管理员",
        "query":  "📛 查询失败，请稍后重试",
        "remove": "📛 删除操作未完成，请稍后重试",
        "export": "📛 导出失败，请稍后重试",
    }

    def __init__(self, operation: str):
        super().__init__(operation)
        self.operation = operation

    def render(self, unit: str) -> str:
        return self.MESSAGES.get(self.operation, "📛 数据库暂时不可用，请稍后重试")
