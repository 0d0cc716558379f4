from datetime import datetime
from email.message import EmailMessage
from typing import List

from pydantic import BaseModel, Field

LINE_BREAK = "<br><br>"


class Alert(BaseModel):
    timestamp: datetime
    subject: str
    sender: str
    recipients: List[str] = Field(min_length=1)
    body: str
    matchCount: int = 0

    def to_email_message(self) -> EmailMessage:
        msg = EmailMessage()
        msg["To"] = ",".join(self.recipients)
        msg["From"] = self.sender
        msg["Subject"] = self.subject
        msg.set_content(self.body, subtype="html", charset="utf-8", cte="base64")
        return msg

    def to_bytes(self) -> bytes:
        msg = self.to_email_message()
        return msg.as_bytes(policy=msg.policy.clone(linesep="\r\n"))


def render_body(lines, highlight) -> str:
    """Concatenate highlighted lines, each followed by a visual line break."""
    return "".join(highlight(line) + LINE_BREAK for line in lines)
