"""
Run log for scheduled jobs and payment side effects.
"""

from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from tenderalert.models.analytics import AutomationLog, AutomationStatus


async def log_automation(
    db: AsyncSession,
    function_name: str,
    result_data: dict[str, Any] | None = None,
    error_message: str | None = None,
) -> AutomationLog:
    entry = AutomationLog(
        function_name=function_name,
        status=AutomationStatus.FAILED if error_message else AutomationStatus.COMPLETED,
        result_data=result_data or {},
        error_message=error_message,
    )
    db.add(entry)
    await db.flush()
    return entry
