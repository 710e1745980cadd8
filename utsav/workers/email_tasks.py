"""
Email background tasks.

Magic link sign-in emails and organization invitations, sent via Resend.
"""

import resend

from utsav.core.config import settings
from utsav.workers.celery_app import celery_app


def _send(to_email: str, subject: str, html: str) -> dict[str, str]:
    resend.api_key = settings.RESEND_API_KEY
    params: resend.Emails.SendParams = {
        "from": settings.EMAIL_FROM,
        "to": [to_email],
        "subject": subject,
        "html": html,
    }
    response = resend.Emails.send(params)
    return {"status": "sent", "message_id": response["id"]}


def _button(url: str, label: str) -> str:
    return f"""
        <p>
            <a href="{url}"
               style="background:#ea580c;color:#fff;padding:12px 24px;
                      border-radius:6px;text-decoration:none;display:inline-block;">
                {label}
            </a>
        </p>
    """


@celery_app.task(name="utsav.workers.email_tasks.send_magic_link_email", bind=True, max_retries=3)
def send_magic_link_email(
    self,  # type: ignore[no-untyped-def]
    to_email: str,
    magic_link_token: str,
    frontend_url: str,
) -> dict[str, str]:
    """
    Send a passwordless sign-in link.

    Args:
        to_email: Recipient email address.
        magic_link_token: One-time token stored in Redis.
        frontend_url: Frontend base URL for constructing the sign-in link.

    Returns:
        Dict with status and message_id.
    """
    sign_in_url = f"{frontend_url}/auth/callback?token={magic_link_token}"
    try:
        return _send(
            to_email,
            "Your Utsav sign-in link",
            f"""
                <h2>Sign in to Utsav</h2>
                <p>Click the button below to sign in.</p>
                {_button(sign_in_url, "Sign in")}
                <p>This link expires in {settings.MAGIC_LINK_EXPIRE_MINUTES} minutes
                and can be used once.</p>
                <p>If you did not try to sign in, you can safely ignore this email.</p>
            """,
        )
    except Exception as exc:
        raise self.retry(exc=exc, countdown=60 * (self.request.retries + 1))


@celery_app.task(name="utsav.workers.email_tasks.send_invitation_email", bind=True, max_retries=3)
def send_invitation_email(
    self,  # type: ignore[no-untyped-def]
    to_email: str,
    org_name: str,
    inviter_name: str,
    role: str,
    invite_url: str,
) -> dict[str, str]:
    """
    Send an organization invitation.

    Args:
        to_email: Recipient email address.
        org_name: Organization display name.
        inviter_name: Who sent the invite.
        role: Role being granted (admin/manager/viewer).
        invite_url: Acceptance link, /invite/accept?token=...

    Returns:
        Dict with status and message_id.
    """
    try:
        return _send(
            to_email,
            f"You've been invited to join {org_name} on Utsav",
            f"""
                <h2>You've been invited to Utsav</h2>
                <p><strong>{inviter_name}</strong> has invited you to join
                <strong>{org_name}</strong> as a <strong>{role}</strong>.</p>
                {_button(invite_url, "Accept Invitation")}
                <p>This invitation expires in {settings.INVITATION_EXPIRE_DAYS} days.</p>
                <p>If you did not expect this invitation, you can safely ignore this email.</p>
            """,
        )
    except Exception as exc:
        raise self.retry(exc=exc, countdown=60 * (self.request.retries + 1))
