"""
Email Templates
===============
Renders the trip invitation email (HTML + plain text). Delivery is handled
by the mail provider, not here.
"""
from datetime import datetime
from html import escape
from typing import Dict

from ..config import settings

PRIMARY    = "#5a5a5a"
BACKGROUND = "#fafafa"
CARD       = "#fcfcfc"
FOREGROUND = "#3d3d3d"
MUTED      = "#808080"
BORDER     = "#e1e1e1"


def invitation_subject(trip_name: str, inviter_name: str) -> str:
    return f"{inviter_name} invited you to plan {trip_name} on Trippee"


def invitation_html(trip_name: str, inviter_name: str, invite_link: str) -> str:
    trip    = escape(trip_name)
    inviter = escape(inviter_name)
    link    = escape(invite_link, quote=True)
    days    = settings.invite_expiry_days
    year    = datetime.now().year

    return f"""<!DOCTYPE html>
<html>
<head>
  <meta charset="utf-8">
  <meta name="viewport" content="width=device-width, initial-scale=1.0">
  <title>You've been invited to collaborate on {trip}</title>
</head>
<body style="margin:0;padding:0;font-family:-apple-system,BlinkMacSystemFont,'Segoe UI',Roboto,Arial,sans-serif;background-color:{BACKGROUND};">
  <table role="presentation" style="width:100%;border-collapse:collapse;">
    <tr>
      <td style="padding:40px 20px;">
        <table role="presentation" style="max-width:600px;margin:0 auto;background-color:{CARD};border-radius:8px;border:1px solid {BORDER};">
          <tr>
            <td style="padding:40px 40px 20px;text-align:center;background-color:{PRIMARY};border-radius:8px 8px 0 0;">
              <h1 style="margin:0;color:#ffffff;font-size:28px;font-weight:400;">Trippee</h1>
            </td>
          </tr>
          <tr>
            <td style="padding:40px;">
              <h2 style="margin:0 0 20px;color:{FOREGROUND};font-size:24px;">You've been invited!</h2>
              <p style="margin:0 0 20px;color:{FOREGROUND};font-size:16px;line-height:1.6;">
                <strong>{inviter}</strong> has invited you to collaborate on their trip: <strong>{trip}</strong>
              </p>
              <p style="margin:0 0 30px;color:{FOREGROUND};font-size:16px;line-height:1.6;">
                Join them to plan the perfect itinerary together. Click the button below to accept the invitation:
              </p>
              <p style="text-align:center;margin:0 0 30px;">
                <a href="{link}" style="display:inline-block;padding:14px 32px;background-color:{PRIMARY};color:#ffffff;text-decoration:none;border-radius:6px;font-weight:600;">Accept Invitation</a>
              </p>
              <p style="margin:0;color:{MUTED};font-size:14px;line-height:1.6;">
                Or copy and paste this link into your browser:<br>
                <a href="{link}" style="color:{PRIMARY};word-break:break-all;">{link}</a>
              </p>
            </td>
          </tr>
          <tr>
            <td style="padding:30px 40px;background-color:{BACKGROUND};border-top:1px solid {BORDER};border-radius:0 0 8px 8px;">
              <p style="margin:0;color:{MUTED};font-size:14px;text-align:center;line-height:1.6;">
                This invitation will expire in {days} days.<br>
                If you didn't expect this invitation, you can safely ignore this email.
              </p>
            </td>
          </tr>
        </table>
        <p style="text-align:center;margin:20px 0 0;color:{MUTED};font-size:12px;">&copy; {year} Trippee. All rights reserved.</p>
      </td>
    </tr>
  </table>
</body>
</html>"""


def invitation_text(trip_name: str, inviter_name: str, invite_link: str) -> str:
    return "\n".join([
        "You've been invited to collaborate on a trip!",
        "",
        f"{inviter_name} has invited you to collaborate on their trip: {trip_name}",
        "",
        "Join them to plan the perfect itinerary together. "
        "Click the link below to accept the invitation:",
        "",
        invite_link,
        "",
        f"This invitation will expire in {settings.invite_expiry_days} days.",
        "",
        "If you didn't expect this invitation, you can safely ignore this email.",
        "",
        f"© {datetime.now().year} Trippee. All rights reserved.",
    ])


def render_invitation(trip_name: str, inviter_name: str, invite_link: str) -> Dict[str, str]:
    return {
        "subject": invitation_subject(trip_name, inviter_name),
        "html":    invitation_html(trip_name, inviter_name, invite_link),
        "text":    invitation_text(trip_name, inviter_name, invite_link),
    }
