from email.message import EmailMessage
from typing import Iterable, Protocol
import aiosmtplib

from marocdeals.core.config import (
    MAIL_USERNAME,
    MAIL_PASSWORD,
    MAIL_FROM,
    MAIL_PORT,
    MAIL_SERVER,
    VERIFICATION_CODE_TTL_MINUTES,
)


async def send_email_html(subject: str, recipients: Iterable[str], html_body: str, plain_fallback: str | None = None) -> None:
    """
    Send an HTML email over SMTP.

    - STARTTLS on port 587 by default.
    - Direct TLS when the port is 465.
    - Requires MAIL_USERNAME and MAIL_PASSWORD; MAIL_FROM, MAIL_PORT and MAIL_SERVER are optional.
    """
    if not MAIL_USERNAME or not MAIL_PASSWORD:
        raise RuntimeError("MAIL_USERNAME/MAIL_PASSWORD are not configured")

    recipients = list(recipients)
    if not recipients:
        raise ValueError("recipients must not be empty")

    msg = EmailMessage()
    msg["Subject"] = subject
    msg["From"] = MAIL_FROM or MAIL_USERNAME
    msg["To"] = ", ".join(recipients)

    if not plain_fallback:
        plain_fallback = "Cet email contient du HTML. Activez l'affichage HTML dans votre client."
    msg.set_content(plain_fallback)
    msg.add_alternative(html_body, subtype="html")

    use_tls_direct = MAIL_PORT == 465

    await aiosmtplib.send(
        msg,
        hostname=MAIL_SERVER,
        port=MAIL_PORT,
        username=MAIL_USERNAME,
        password=MAIL_PASSWORD,
        use_tls=use_tls_direct,
        start_tls=not use_tls_direct,
    )


def verification_email_html(code: str, ttl_minutes: int = VERIFICATION_CODE_TTL_MINUTES) -> str:
    return (
        f"<div style='font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;'>"
        f"<h2 style='color: #2563eb;'>MarocDeals - Vérification de compte</h2>"
        f"<p>Bonjour,</p>"
        f"<p>Votre code de vérification est :</p>"
        f"<div style='background: #f3f4f6; padding: 20px; text-align: center; margin: 20px 0; border-radius: 8px;'>"
        f"<h1 style='color: #2563eb; font-size: 32px; margin: 0; letter-spacing: 5px;'>{code}</h1>"
        f"</div>"
        f"<p>Ce code expire dans {ttl_minutes} minutes.</p>"
        f"<p>Si vous n'avez pas demandé ce code, ignorez cet email.</p>"
        f"<hr style='margin: 30px 0; border: none; border-top: 1px solid #e5e7eb;'>"
        f"<p style='color: #6b7280; font-size: 12px;'>MarocDeals - Votre plateforme de comparaison de prix</p>"
        f"</div>"
    )


class CodeSender(Protocol):
    async def send_code(self, identity: str, code: str) -> None:
        ...


class EmailCodeSender:
    """Delivers verification codes by email."""

    subject = "MarocDeals - Code de vérification"

    async def send_code(self, identity: str, code: str) -> None:
        await send_email_html(
            self.subject,
            [identity],
            verification_email_html(code),
            plain_fallback=f"Votre code de vérification MarocDeals est : {code}",
        )
