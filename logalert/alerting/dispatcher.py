"""
Alert Dispatcher - turns matched lines into one email and gets it delivered

Handles:
- HTML message construction with highlighted matches
- Single-transaction delivery to all recipients of a log target
- Bounded retry with fixed backoff
- Fallback to the pending-match store when every attempt fails
"""
import logging
import os
from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Sequence

from logalert.alerting.alert import Alert, render_body
from logalert.alerting.mailer import MailSender
from logalert.alerting.retry import RetryPolicy
from logalert.config.settings import LogLocation
from logalert.errors import StorageIOError
from logalert.log_analysis.term_matcher import TermMatcher
from logalert.storage.pending_store import PendingMatchStore
from logalert.util import log_identity


@dataclass
class DispatchOutcome:
    delivered: bool
    attempts: int
    persisted: int = 0
    last_error: Optional[BaseException] = None


class AlertDispatcher:

    def __init__(
        self,
        mailer: MailSender,
        pending_store: PendingMatchStore,
        sender: str,
        matcher: Optional[TermMatcher] = None,
        retry_policy: Optional[RetryPolicy] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self.mailer = mailer
        self.pending_store = pending_store
        self.sender = sender
        self.logger = logger or logging.getLogger(__name__)
        self.matcher = matcher or TermMatcher(logger=self.logger)
        self.retry_policy = retry_policy or RetryPolicy(logger=self.logger)

    def build_alert(
        self,
        new_matches: Sequence[str],
        pending_matches: Sequence[str],
        target: LogLocation,
        file_path: str,
    ) -> Alert:
        """New matches come first, then the ones carried over from earlier cycles."""
        lines = list(new_matches) + list(pending_matches)
        body = render_body(lines, lambda line: self.matcher.highlight(line, target.searchTerms))
        return Alert(
            timestamp=datetime.now(),
            subject=os.path.abspath(file_path),
            sender=self.sender,
            recipients=target.smtpRecipients,
            body=body,
            matchCount=len(lines),
        )

    def send(
        self,
        new_matches: Sequence[str],
        pending_matches: Sequence[str],
        target: LogLocation,
        file_path: str,
    ) -> None:
        """
        Make a single delivery attempt.

        Raises:
            MailTransportError: the mail capability rejected the message or a recipient
        """
        alert = self.build_alert(new_matches, pending_matches, target, file_path)
        self.logger.info(f"Sending emails to : {','.join(alert.recipients)}")
        self.mailer.send(alert.sender, alert.recipients, alert.to_bytes())

    def deliver(
        self,
        new_matches: Sequence[str],
        pending_matches: Sequence[str],
        target: LogLocation,
        file_path: str,
    ) -> DispatchOutcome:
        """
        Send with retries. When every attempt fails, the new matches are
        appended to the pending store; lines that were already pending stay
        where they are. Clearing the store after a success is left to the caller.
        """
        outcome = self.retry_policy.run(
            lambda: self.send(new_matches, pending_matches, target, file_path)
        )
        if outcome.succeeded:
            return DispatchOutcome(delivered=True, attempts=outcome.attempts)

        self.logger.info("Writing matches to file.")
        persisted = 0
        try:
            persisted = self.pending_store.append(log_identity(file_path), new_matches)
        except StorageIOError as e:
            self.logger.error(f"ERROR: {e}")

        return DispatchOutcome(
            delivered=False,
            attempts=outcome.attempts,
            persisted=persisted,
            last_error=outcome.last_error,
        )
