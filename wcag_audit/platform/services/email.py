import os
import smtplib
import ssl
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText

import requests
from jinja2 import Environment, FileSystemLoader, select_autoescape

from wcag_audit.platform.config import settings
from wcag_audit.platform.logger import get_logger

logger = get_logger("email_service")

template_dir = os.path.join(os.path.dirname(os.path.abspath(__file__)), "../../templates/emails")
env = Environment(loader=FileSystemLoader(template_dir), autoescape=select_autoescape(["html"]))


class EmailDeliveryError(Exception):
    pass


def send_email(to_email: str, subject: str, body: str):
    """
    Deliver an HTML email.

    The HTTP relay is tried first when configured; SMTP is the fallback
    and the only channel otherwise. Failures are logged, never raised,
    since emails go out from background tasks.
    """
    if settings.EMAIL_RELAY_URL and settings.EMAIL_RELAY_API_KEY:
        try:
            send_email_via_relay(to_email, subject, body)
            return
        except EmailDeliveryError as e:
            logger.error(f"Email relay failed: {e}; falling back to SMTP")
    else:
        logger.warning("Email relay not configured, using SMTP")

    send_email_direct_smtp(to_email, subject, body)


def send_email_via_relay(to_email: str, subject: str, body: str):
    try:
        response = requests.post(
            settings.EMAIL_RELAY_URL,
            json={
                "to_email": to_email,
                "subject": subject,
                "body": body,
                "from_address": settings.MAIL_FROM_ADDRESS,
            },
            headers={"X-API-Key": settings.EMAIL_RELAY_API_KEY},
            timeout=settings.EMAIL_RELAY_TIMEOUT,
        )
        response.raise_for_status()
    except requests.exceptions.Timeout as e:
        raise EmailDeliveryError(f"relay timeout after {settings.EMAIL_RELAY_TIMEOUT}s") from e
    except requests.exceptions.RequestException as e:
        status = e.response.status_code if e.response is not None else "no response"
        raise EmailDeliveryError(f"relay error ({status}): {e}") from e

    logger.info(f"Email sent via relay to {to_email}")


def _build_message(to_email: str, subject: str, body: str) -> MIMEMultipart:
    msg = MIMEMultipart("alternative")
    msg["Subject"] = subject
    msg["From"] = f"{settings.MAIL_FROM_NAME} <{settings.MAIL_FROM_ADDRESS}>"
    msg["To"] = to_email
    msg.attach(MIMEText(body, "html", "utf-8"))
    return msg


def send_email_direct_smtp(to_email: str, subject: str, body: str):
    msg = _build_message(to_email, subject, body)

    try:
        if settings.MAIL_PORT == 465:
            server = smtplib.SMTP_SSL(settings.MAIL_HOST, settings.MAIL_PORT, context=ssl.create_default_context())
        else:
            server = smtplib.SMTP(settings.MAIL_HOST, settings.MAIL_PORT)

        with server:
            if settings.MAIL_PORT != 465 and str(settings.MAIL_ENCRYPTION).upper() in ("TLS", "TRUE"):
                server.starttls()
            server.login(settings.MAIL_USERNAME, settings.MAIL_PASSWORD)
            server.sendmail(settings.MAIL_FROM_ADDRESS, to_email, msg.as_string())
    except (smtplib.SMTPException, OSError) as e:
        logger.error(f"SMTP delivery to {to_email} failed: {e}")
        return

    logger.info(f"Email sent via SMTP to {to_email}")


def send_magic_link_email(to_email: str, link: str):
    template = env.get_template("magic_link.html")
    body = template.render(
        link=link,
        app_name=settings.APP_NAME,
        expires_minutes=settings.MAGIC_LINK_EXPIRE_MINUTES,
    )
    send_email(to_email, "Votre lien de connexion", body)
