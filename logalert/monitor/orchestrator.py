"""
Cycle Orchestrator - one sequential pass over every configured log target

Per target:
    resolve path -> validate terms -> load offset -> truncation check -> scan
    -> load pending -> dispatch -> clear pending (on success) -> save offset

The offset is not saved when new matches were neither sent nor stored.

Placeholder and term-conflict errors propagate and stop the process.
Storage and mail problems are logged and only affect the current target.
"""
import logging
import time
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Callable, List, Optional

from logalert.alerting.dispatcher import AlertDispatcher
from logalert.alerting.mailer import MailSender, SmtpMailer
from logalert.alerting.retry import RetryPolicy
from logalert.config.settings import AppConfig, LogLocation
from logalert.errors import MailTransportError, StorageIOError
from logalert.log_analysis.scanner import IncrementalScanner, effective_offset, file_size
from logalert.log_analysis.term_matcher import TermMatcher, validate_terms
from logalert.monitor.sweeper import RetentionSweeper
from logalert.storage.offset_store import OffsetStore
from logalert.storage.pending_store import PendingMatchStore
from logalert.util import log_identity, resolve_file_location


@dataclass
class TargetReport:
    file_path: str
    identity: str
    start_offset: int = 0
    end_offset: int = 0
    matches: int = 0
    pending: int = 0
    skipped: bool = False
    delivered: Optional[bool] = None
    error: Optional[str] = None


@dataclass
class CycleReport:
    started: datetime
    targets: List[TargetReport] = field(default_factory=list)
    swept: List[Path] = field(default_factory=list)


def build_mailer(config: AppConfig, logger: Optional[logging.Logger] = None) -> SmtpMailer:
    return SmtpMailer(
        host=config.smtpAddress,
        port=config.smtpPort,
        timeout=config.smtpTimeout,
        use_tls=config.smtpUseTls,
        username=config.smtpUsername,
        password=config.smtp_password(),
        logger=logger,
    )


class CycleOrchestrator:

    def __init__(
        self,
        config: AppConfig,
        scanner: IncrementalScanner,
        offset_store: OffsetStore,
        pending_store: PendingMatchStore,
        dispatcher: AlertDispatcher,
        sweeper: RetentionSweeper,
        clock: Callable[[], datetime] = datetime.now,
        sleep: Callable[[float], None] = time.sleep,
        mailer_factory: Callable[[AppConfig], MailSender] = build_mailer,
        logger: Optional[logging.Logger] = None,
    ):
        self.config = config
        self.scanner = scanner
        self.offset_store = offset_store
        self.pending_store = pending_store
        self.dispatcher = dispatcher
        self.sweeper = sweeper
        self.clock = clock
        self.sleep = sleep
        self.mailer_factory = mailer_factory
        self.logger = logger or logging.getLogger(__name__)

    @classmethod
    def from_config(
        cls,
        config: AppConfig,
        storage_root,
        mailer: Optional[MailSender] = None,
        retry_policy: Optional[RetryPolicy] = None,
        sleep: Callable[[float], None] = time.sleep,
        logger: Optional[logging.Logger] = None,
    ) -> "CycleOrchestrator":
        """Wire up every component from a validated config and a storage root."""
        logger = logger or logging.getLogger(__name__)
        if mailer is not None:
            mailer_factory = lambda _config: mailer
        else:
            mailer_factory = lambda _config: build_mailer(_config, logger=logger)
        matcher = TermMatcher(logger=logger)
        offset_store = OffsetStore(storage_root, logger=logger)
        pending_store = PendingMatchStore(storage_root, logger=logger)
        dispatcher = AlertDispatcher(
            mailer=mailer_factory(config),
            pending_store=pending_store,
            sender=config.smtpSender,
            matcher=matcher,
            retry_policy=retry_policy or RetryPolicy(sleep=sleep, logger=logger),
            logger=logger,
        )
        return cls(
            config=config,
            scanner=IncrementalScanner(matcher=matcher, logger=logger),
            offset_store=offset_store,
            pending_store=pending_store,
            dispatcher=dispatcher,
            sweeper=RetentionSweeper(offset_store, logger=logger),
            sleep=sleep,
            mailer_factory=mailer_factory,
            logger=logger,
        )

    def apply_config(self, config: AppConfig) -> None:
        """Swap in a reloaded config; the storage root stays as it was."""
        self.config = config
        self.dispatcher.sender = config.smtpSender
        self.dispatcher.mailer = self.mailer_factory(config)

    def process_target(self, target: LogLocation, now: Optional[datetime] = None) -> TargetReport:
        # Validation errors propagate
        file_path = resolve_file_location(target.fileLocation, now or self.clock())
        validate_terms(target.searchTerms, target.ignoreTerms, file_path)

        report = TargetReport(file_path=file_path, identity=log_identity(file_path))
        try:
            self._scan_and_dispatch(target, report)
        except (StorageIOError, MailTransportError) as e:
            self.logger.error(f"ERROR: {e}")
            report.error = str(e)
        return report

    def _scan_and_dispatch(self, target: LogLocation, report: TargetReport) -> None:
        file_path, identity = report.file_path, report.identity

        stored_offset = self.offset_store.get(identity)
        start_offset = effective_offset(file_size(file_path), stored_offset)
        if start_offset != stored_offset:
            self.logger.info(f"{file_path} is smaller than offset {stored_offset}, reading from the start")
        report.start_offset = start_offset

        result = self.scanner.scan(file_path, target.searchTerms, target.ignoreTerms, start_offset)
        if result.skipped:
            report.skipped = True
            return
        report.end_offset = result.end_offset
        report.matches = len(result.matches)

        pending_readable = True
        try:
            pending = self.pending_store.read_all(identity)
        except StorageIOError as e:
            self.logger.error(f"ERROR: {e}")
            pending, pending_readable = [], False
        report.pending = len(pending)

        if result.matches or pending:
            self.logger.info(f"Found {len(result.matches)} matches")
            outcome = self.dispatcher.deliver(result.matches, pending, target, file_path)
            report.delivered = outcome.delivered
            if not outcome.delivered and outcome.persisted < len(result.matches):
                # Offset stays put so the next cycle rescans the unsaved lines
                report.error = f"{len(result.matches) - outcome.persisted} matches were neither sent nor saved"
                self.logger.error(f"ERROR: {report.error}, keeping offset {start_offset} for {file_path}")
                return
            # Only clear a backlog that was part of the message
            if outcome.delivered and pending_readable:
                try:
                    self.pending_store.clear(identity)
                except StorageIOError as e:
                    self.logger.error(f"ERROR: {e}")
        else:
            self.logger.info("Found 0 matches")

        self.offset_store.put(identity, result.end_offset)

    def run_cycle(self) -> CycleReport:
        started = self.clock()
        report = CycleReport(started=started)
        self.scanner.matcher.forget_errors()
        for target in self.config.logLocations:
            report.targets.append(self.process_target(target, started))
        report.swept = self.sweeper.sweep(self.clock())
        return report

    def run_forever(
        self,
        config_loader: Optional[Callable[[], AppConfig]] = None,
        max_cycles: Optional[int] = None,
    ) -> int:
        """
        Run cycles until interrupted, sleeping ``minutesToSleep`` between them.

        Args:
            config_loader: When given, called before every cycle so config edits
                apply without a restart
            max_cycles: Stop after this many cycles (None = forever)

        Returns:
            Number of cycles completed
        """
        cycles = 0
        while max_cycles is None or cycles < max_cycles:
            if config_loader is not None and cycles > 0:
                self.apply_config(config_loader())
            self.run_cycle()
            cycles += 1
            self.logger.info(f"Sleeping for {self.config.minutesToSleep} minutes")
            self.sleep(self.config.sleep_seconds)
        return cycles
