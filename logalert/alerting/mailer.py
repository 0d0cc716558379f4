import logging
import smtplib
import ssl
from typing import Optional, Protocol, Sequence

from logalert.errors import MailTransportError

ACCEPTED_RCPT_CODES = (250, 251)


class MailSender(Protocol):
    def send(self, sender: str, recipients: Sequence[str], message: bytes) -> None:
        """Deliver ``message`` to every recipient or raise MailTransportError."""
        ...


class SmtpMailer:
    """
    Sends raw messages over SMTP in a single transaction.

    Recipients are added one by one; if the server refuses any of them the
    transaction is reset and nothing is sent.
    """

    def __init__(
        self,
        host: str,
        port: int,
        timeout: float = 60.0,
        use_tls: bool = False,
        username: Optional[str] = None,
        password: Optional[str] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self.host = host
        self.port = int(port)
        self.timeout = timeout
        self.use_tls = use_tls
        self.username = username
        self.password = password
        self.logger = logger or logging.getLogger(__name__)

    @property
    def server_address(self) -> str:
        return f"{self.host}:{self.port}"

    def send(self, sender: str, recipients: Sequence[str], message: bytes) -> None:
        if not recipients:
            raise MailTransportError("No recipients given")

        try:
            with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as server:
                server.ehlo_or_helo_if_needed()
                if self.use_tls:
                    server.starttls(context=ssl.create_default_context())
                    server.ehlo()
                if self.username:
                    server.login(self.username, self.password or "")

                code, resp = server.mail(sender)
                if code != 250:
                    server.rset()
                    raise MailTransportError(f"Sender {sender} refused by {self.server_address}: {code} {resp!r}")

                for recipient in recipients:
                    code, resp = server.rcpt(recipient)
                    if code not in ACCEPTED_RCPT_CODES:
                        server.rset()
                        raise MailTransportError(
                            f"Recipient {recipient} refused by {self.server_address}: {code} {resp!r}"
                        )

                code, resp = server.data(message)
                if code != 250:
                    raise MailTransportError(f"Message refused by {self.server_address}: {code} {resp!r}")
        except (smtplib.SMTPException, OSError) as e:
            raise MailTransportError(f"SMTP error talking to {self.server_address}: {e}") from e
