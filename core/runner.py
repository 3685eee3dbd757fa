"""
Platform runs and the orchestrator that sequences them.

One run owns one browser session: open, authenticate, walk every keyword,
process every ready page, then summarize and release the session. Platforms
run strictly one after another; a failing platform never stops the next.
"""

import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

from adapters import ADAPTERS, get_adapter

from .auth import AuthController, CredentialStore
from .browser import SessionRegistry
from .config import AppConfig, PlatformConfig, config as default_config
from .diagnostics import PageSnapshotter
from .error_handler import ABORT, SKIP, classify_error, handle_error
from .filters import BlacklistStore, FilterEngine
from .logging_config import attach_platform_log, detach_platform_log
from .models import AuthState, PlatformType, RunResult, StopReason
from .pagination import PaginationWalker
from .report import ReportAggregator
from .selectors import SelectorResolver
from .submission import SubmissionPipeline

logger = logging.getLogger(__name__)


class PlatformRunner:
    """
    Runs one platform end to end.

    Usage:
        runner = PlatformRunner(get_adapter("liepin", cfg), registry)
        result = await runner.run(cfg)
    """

    def __init__(
        self,
        adapter: Any,
        registry: SessionRegistry,
        app_config: Optional[AppConfig] = None,
        notifier: Any = None,
    ):
        self.adapter = adapter
        self.registry = registry
        self.app_config = app_config or default_config
        self.notifier = notifier
        self.resolver = SelectorResolver()

    @property
    def platform_id(self) -> str:
        return self.adapter.platform_id

    def _data_path(self, configured: Optional[Path], filename: str) -> Path:
        return Path(configured) if configured else Path(self.app_config.DATA_DIR) / self.platform_id / filename

    async def run(self, config: PlatformConfig) -> RunResult:
        """
        Execute the run. Never raises; failures end up in the RunResult.
        """
        pid = self.platform_id
        start_time = datetime.now()
        result = RunResult(platform=pid, success=False)
        report = ReportAggregator(self.notifier)
        log_handler = attach_platform_log(pid, self.app_config.LOG_DIR)
        logger.info(f"[{pid}] run started ({len(config.keywords)} keyword(s))")

        try:
            session = await self.registry.open(pid, config.device_profile)

            auth = AuthController(
                session,
                self.adapter,
                CredentialStore(self._data_path(config.credential_path, "cookie.json")),
                self.resolver,
                qr_timeout=self.app_config.QR_LOGIN_TIMEOUT_SECONDS,
                poll_interval=self.app_config.QR_POLL_INTERVAL_SECONDS,
            )
            result.auth_state = await auth.authenticate()
            if result.auth_state is not AuthState.AUTHENTICATED:
                result.error = f"login not completed ({result.auth_state.value})"
                return result

            blacklist = BlacklistStore(self._data_path(config.blacklist_path, "blacklist.json")).load()
            snapshots = None
            if self.app_config.SNAPSHOT_ON_FAILURE:
                snapshots = PageSnapshotter(
                    Path(self.app_config.LOG_DIR) / "page_sources", max_snapshots=self.app_config.MAX_SNAPSHOTS
                )
            walker = PaginationWalker(
                session,
                self.adapter,
                self.resolver,
                max_retries_per_page=config.max_retries_per_page,
                ready_timeout=self.app_config.PAGE_READY_TIMEOUT_SECONDS,
                backoff_base=self.app_config.PAGE_RETRY_BACKOFF_SECONDS,
                snapshots=snapshots,
            )
            pipeline = SubmissionPipeline(
                session,
                self.adapter,
                self.resolver,
                auth=auth,
                blacklist=blacklist,
                filter_engine=FilterEngine(),
                report=report,
                seen=set(),
                max_attempts=self.app_config.SUBMIT_MAX_ATTEMPTS,
                reload_every=self.app_config.SUBMIT_RELOAD_EVERY,
                retry_delay=self.app_config.SUBMIT_RETRY_DELAY_SECONDS,
                greeting=config.greeting,
                min_delay=self.app_config.MIN_HUMAN_DELAY,
                max_delay=self.app_config.MAX_HUMAN_DELAY,
                snapshots=snapshots,
            )

            if not config.keywords:
                logger.warning(f"[{pid}] no keywords configured")

            finished = 0
            for keyword in config.keywords:
                pages = walker.walk(keyword, config.max_page)
                try:
                    async for ready in pages:
                        logger.info(f"[{pid}] '{ready.keyword}' page {ready.page_index} ready")
                        await pipeline.process()
                except Exception as e:
                    action = handle_error(e)
                    if action == ABORT:
                        raise
                    if action == SKIP:
                        logger.info(f"[{pid}] {e}, remaining keywords skipped")
                        result.stop_reason = StopReason.DAILY_LIMIT.value
                        finished += 1
                        break
                    logger.warning(f"[{pid}] keyword '{keyword}' abandoned: {e}")
                    continue
                finally:
                    await pages.aclose()

                finished += 1
                stop = walker.stats.stop_reason
                result.stop_reason = stop.value if stop else None
                if stop is StopReason.DAILY_LIMIT:
                    logger.info(f"[{pid}] daily limit reached, remaining keywords skipped")
                    break

            if config.keywords and not finished:
                result.error = "every keyword was abandoned"
            else:
                result.success = True

        except Exception as e:
            category = classify_error(e)
            logger.error(f"[{pid}] run aborted ({category.value}): {type(e).__name__}: {e}")
            result.error = f"{category.value}: {e}"

        finally:
            try:
                counts = report.counts()
                result.submitted = counts["submitted"]
                result.skipped = counts["skipped"]
                result.failed = counts["failed"]
                result.summary = await report.finalize(pid, report.records, start_time)
            except Exception as e:
                logger.error(f"[{pid}] run summary failed: {type(e).__name__}: {e}")
            finally:
                await self.registry.close(pid)
                logger.debug(f"[{pid}] selector stats: {self.resolver.get_stats()}")
                detach_platform_log(log_handler)

        return result


class Orchestrator:
    """
    Sequential multi-platform driver.

    Usage:
        orchestrator = Orchestrator(SessionRegistry(headless=False))
        results = await orchestrator.run(load_run_config("config.yaml"))
    """

    def __init__(
        self,
        registry: SessionRegistry,
        app_config: Optional[AppConfig] = None,
        notifier: Any = None,
    ):
        self.registry = registry
        self.app_config = app_config or default_config
        self.notifier = notifier

    def select_platforms(
        self,
        run_configs: Dict[str, PlatformConfig],
        platforms: Optional[Iterable[str]] = None,
    ) -> List[str]:
        requested = [p.lower() for p in (platforms or [])]
        if not requested or "all" in requested:
            return [pid for pid, cfg in run_configs.items() if cfg.enabled]
        unknown = [p for p in requested if p not in ADAPTERS]
        if unknown:
            raise KeyError(f"Unknown platform(s): {', '.join(unknown)}")
        return requested

    async def run(
        self,
        run_configs: Dict[str, PlatformConfig],
        platforms: Optional[Iterable[str]] = None,
    ) -> List[RunResult]:
        results: List[RunResult] = []
        selected = self.select_platforms(run_configs, platforms)
        logger.info(f"Running {len(selected)} platform(s): {', '.join(selected) or 'none'}")

        try:
            for pid in selected:
                platform_config = run_configs.get(pid) or PlatformConfig.from_dict(
                    PlatformType(pid), {}, self.app_config
                )
                runner = PlatformRunner(
                    get_adapter(pid, platform_config), self.registry, self.app_config, self.notifier
                )
                result = await runner.run(platform_config)
                results.append(result)
                status = "ok" if result.success else f"failed ({result.error})"
                logger.info(f"[{pid}] run {status}")
        finally:
            await self.registry.close_all()

        return results
