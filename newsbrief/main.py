"""AI News Briefing - 主程序入口"""

import argparse
import asyncio
import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

import structlog

from .api import BriefingAPI
from .ai.generator import BriefingGenerator
from .config import AppConfig, get_config, reload_config
from .fetcher import ContextAssembler, MirrorFetcher
from .pipeline import BriefingPipeline
from .scheduler import Scheduler
from .services.job_tracker import JobRun, JobTracker
from .sources import enabled_sources, mirror_groups
from .storage import BriefingCache, DualTierStore, open_database

logger = structlog.get_logger()


def configure_logging(level: str = "INFO", processors: Optional[list] = None):
    """配置 structlog（JSON 输出）"""
    structlog.configure(
        processors=processors or [
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            getattr(logging, level.upper(), logging.INFO)
        ),
    )


class BriefingService:
    """简报服务：按配置组装所有组件"""

    def __init__(self, config: AppConfig):
        self.config = config

        # 存储（无连接串时仅内存模式）
        self.db = open_database(config.storage.database_url)
        self.cache = BriefingCache(
            db_configured=self.db is not None,
            db_url_given=bool(config.storage.database_url),
        )
        self.store = DualTierStore(self.cache, self.db)

        # 抓取与生成
        self.sources = enabled_sources(config.feeds)
        self.fetcher = MirrorFetcher(
            mirror_groups(config.mirror_groups),
            timeout=config.fetch.timeout,
            max_candidates=config.fetch.max_mirrors,
        )
        self.tracker = JobTracker()
        self.assembler = ContextAssembler(self.fetcher, config.fetch)
        self.generator = BriefingGenerator(config.ai)

        self.pipeline = BriefingPipeline(
            self.sources,
            self.assembler,
            self.generator,
            self.store,
            self.tracker,
        )
        self.api = BriefingAPI(
            self.store,
            self.pipeline,
            trigger_token=config.trigger_token,
            has_api_key=bool(config.ai.api_key),
            morning_cutoff_hour=config.schedule.morning_cutoff_hour,
        )
        self.scheduler = Scheduler(config.schedule)

        logger.info(
            "service_initialized",
            has_api_key=bool(config.ai.api_key),
            has_db=self.db is not None,
            sources=len(self.sources),
        )

    async def startup(self):
        """启动：尽力建表并注册定时任务"""
        if not self.config.ai.api_key:
            logger.warning("api_key_missing", effect="generation disabled")
        await self.store.ensure_schema()

    def start_scheduler(self):
        self.scheduler.add_session_jobs(self.pipeline.run_job)
        self.scheduler.start()

    def stop(self):
        self.scheduler.stop()

    async def run_once(self, is_morning: Optional[bool] = None) -> Optional[JobRun]:
        """立即运行一次任务"""
        if is_morning is None:
            is_morning = self.api.is_morning_session(datetime.now(timezone.utc))
        await self.startup()
        return await self.pipeline.run_job(is_morning)


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    """解析命令行参数"""
    parser = argparse.ArgumentParser(
        prog="newsbrief",
        description="AI News Briefing - 订阅源聚合与 AI 简报",
    )
    parser.add_argument("--config-dir", help="配置目录（包含 config.yaml / feeds.yaml）")

    subparsers = parser.add_subparsers(dest="command")

    run_parser = subparsers.add_parser("run", help="立即运行一次简报任务")
    run_parser.add_argument(
        "--session",
        choices=["am", "pm"],
        help="场次（默认按当前 UTC 时间判断）",
    )

    serve_parser = subparsers.add_parser("serve", help="启动 HTTP 服务与定时任务")
    serve_parser.add_argument("--host", help="监听地址")
    serve_parser.add_argument("--port", type=int, help="监听端口")

    return parser.parse_args(argv)


async def run_command(config: AppConfig, session: Optional[str]) -> int:
    """运行一次任务并打印结果"""
    service = BriefingService(config)
    is_morning = None if session is None else session == "am"
    run = await service.run_once(is_morning)

    if run is None:
        print("⚠️ 已有任务在运行，本次跳过")
        return 1

    for line in run.logs:
        print(line)
    return 0 if run.success else 1


def main(argv: Optional[list[str]] = None):
    """主入口"""
    args = parse_args(argv)

    if args.config_dir:
        config = reload_config(Path(args.config_dir))
    else:
        config = get_config()

    configure_logging(config.logging.level)

    if args.command == "serve":
        import uvicorn
        from .web.server import create_app

        uvicorn.run(
            create_app(config=config),
            host=args.host or config.server.host,
            port=args.port or config.server.port,
        )
    elif args.command == "run":
        try:
            sys.exit(asyncio.run(run_command(config, args.session)))
        except KeyboardInterrupt:
            print("\n👋 已停止")
    else:
        print("请指定命令: run, serve")
        print("使用 --help 查看帮助")


if __name__ == "__main__":
    main()
