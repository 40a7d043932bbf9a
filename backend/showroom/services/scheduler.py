"""
定时任务调度器服务
使用 APScheduler 每天巡检一次配件库存，低于预警线的配件写入告警日志
"""

import logging
from typing import List, Optional
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger

from showroom.core.config import settings
from showroom.db.session import SessionLocal
from showroom.models.spare_part import SparePart
from showroom.services.inventory import low_stock_parts

logger = logging.getLogger(__name__)

# 全局调度器实例
scheduler: Optional[AsyncIOScheduler] = None


async def check_low_stock(session_factory=None) -> List[SparePart]:
    """执行低库存巡检（只读）"""
    factory = session_factory or SessionLocal
    async with factory() as db:
        parts = await low_stock_parts(db)

    if not parts:
        logger.info("📦 低库存巡检完成：库存正常")
        return parts

    for part in parts:
        logger.warning(
            f"⚠️ 低库存: {part.part_code} {part.name} 当前 {part.stock_quantity}，预警线 {part.min_stock_level}"
        )
    logger.info(f"📦 低库存巡检完成：{len(parts)} 个配件需要补货")
    return parts


def init_scheduler():
    """初始化并启动调度器"""
    global scheduler

    if not settings.LOW_STOCK_CHECK_ENABLED:
        logger.info("📦 低库存巡检已禁用")
        return

    scheduler = AsyncIOScheduler()

    # 默认每天 07:30 执行
    scheduler.add_job(
        check_low_stock,
        trigger=CronTrigger(
            hour=settings.LOW_STOCK_CHECK_HOUR,
            minute=settings.LOW_STOCK_CHECK_MINUTE
        ),
        id="low_stock_check",
        name="配件低库存巡检",
        replace_existing=True
    )

    scheduler.start()
    logger.info(
        f"⏰ 定时任务调度器已启动 - 低库存巡检时间: 每天 "
        f"{settings.LOW_STOCK_CHECK_HOUR:02d}:{settings.LOW_STOCK_CHECK_MINUTE:02d}"
    )


def shutdown_scheduler():
    """关闭调度器"""
    global scheduler
    if scheduler:
        scheduler.shutdown()
        scheduler = None
        logger.info("⏰ 定时任务调度器已关闭")


def get_scheduler_status() -> dict:
    """获取调度器状态"""
    if not scheduler:
        return {
            "enabled": settings.LOW_STOCK_CHECK_ENABLED,
            "running": False,
            "jobs": []
        }

    jobs = []
    for job in scheduler.get_jobs():
        jobs.append({
            "id": job.id,
            "name": job.name,
            "next_run_time": job.next_run_time.isoformat() if job.next_run_time else None
        })

    return {
        "enabled": settings.LOW_STOCK_CHECK_ENABLED,
        "running": scheduler.running,
        "jobs": jobs
    }
