"""Email templates for account verification messages."""

from html import escape

from domain.model.mail import MailMessage

PLATFORM_NAME = "Formation"


def _layout(greeting: str, intro: str, verify_url: str) -> str:
    url = escape(verify_url, quote=True)
    return f"""<!DOCTYPE html>
<html>
  <body style="font-family: Arial, sans-serif; color: #1f2937; line-height: 1.5;">
    <p>{greeting}</p>
    <p>{intro}</p>
    <p>
      <a href="{url}" style="display: inline-block; padding: 10px 18px; background: #2563eb;
         color: #ffffff; text-decoration: none; border-radius: 6px;">Verify my email address</a>
    </p>
    <p>If the button does not work, copy this link into your browser:<br>{url}</p>
    <p>This link expires in 24 hours. If you did not request it, you can ignore this message.</p>
    <p>The {PLATFORM_NAME} team</p>
  </body>
</html>
"""


def build_verification_email(to_email: str, display_name: str, verify_url: str) -> MailMessage:
    """Welcome message sent right after registration."""
    return MailMessage(
        to_email=to_email,
        subject=f"[{PLATFORM_NAME}] Confirm your email address",
        html_body=_layout(
            greeting=f"Hello {escape(display_name)},",
            intro=f"Thanks for signing up to {PLATFORM_NAME}. Please confirm your email address to activate your account.",
            verify_url=verify_url,
        ),
    )


def build_resend_email(to_email: str, display_name: str, verify_url: str) -> MailMessage:
    """Message carrying a reissued token. Earlier links no longer work."""
    return MailMessage(
        to_email=to_email,
        subject=f"[{PLATFORM_NAME}] Your new verification link",
        html_body=_layout(
            greeting=f"Hello {escape(display_name)},",
            intro="Here is a new link to confirm your email address. Any link we sent you before has been disabled.",
            verify_url=verify_url,
        ),
    )
