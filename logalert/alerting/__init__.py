from .alert import Alert
from .dispatcher import AlertDispatcher, DispatchOutcome
from .mailer import MailSender, SmtpMailer
from .retry import RetryOutcome, RetryPolicy

__all__ = [
    'Alert',
    'AlertDispatcher',
    'DispatchOutcome',
    'MailSender',
    'SmtpMailer',
    'RetryOutcome',
    'RetryPolicy',
]
