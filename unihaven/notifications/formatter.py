from __future__ import annotations

from datetime import datetime
from html import escape
from typing import Dict, Optional

from unihaven.config import get_settings

# Header colour and emoji by notification kind
THEME_SUSPENDED = {"emoji": "🚫", "color": "#B91C1C", "title": "Account Suspended"}
THEME_REINSTATED = {"emoji": "🎉", "color": "#16A34A", "title": "Account Reinstated"}
THEME_AD_EXPIRING = {"emoji": "⏳", "color": "#F59E0B", "title": "Ad Expiring Soon"}
THEME_AD_EXPIRED = {"emoji": "⛔", "color": "#DC2626", "title": "Ad Expired"}

DATE_FORMAT = "%A, %B %d, %Y %H:%M UTC"


def _render_html(
    theme: Dict[str, str],
    name: str,
    body_html: str,
    cta_label: Optional[str] = None,
    cta_url: Optional[str] = None,
) -> str:
    year = datetime.now().year
    button = ""
    if cta_label and cta_url:
        button = (
            f'<a href="{escape(cta_url)}" style="display:inline-block;margin-top:22px;'
            f"padding:12px 22px;background:{theme['color']};color:white;"
            f'text-decoration:none;border-radius:10px;font-weight:500;">'
            f"{escape(cta_label)}</a>"
        )
    return (
        "<html>"
        "<body style=\"font-family:'Poppins',Arial,sans-serif;background:#F3F4F6;padding:36px;\">"
        '<div style="max-width:620px;margin:auto;background:white;border-radius:18px;padding:32px;">'
        f'<h2 style="color:{theme["color"]};font-size:22px;margin-bottom:8px;">'
        f"{theme['emoji']} {theme['title']}</h2>"
        f'<p style="font-size:15px;color:#333;">Hi <strong>{escape(name)}</strong>,</p>'
        f'<p style="color:#555;font-size:14px;line-height:1.7;">{body_html}</p>'
        f"{button}"
        '<hr style="margin:28px 0;border:none;border-top:1px solid #E1E4FF;">'
        f'<p style="font-size:12px;color:#777;">UniHaven Team<br/>&copy; {year} UniHaven</p>'
        "</div></body></html>"
    )


def format_account_suspended(name: str, until: Optional[datetime]) -> Dict[str, str]:
    """Format the notice sent when an administrator suspends an account.

    Returns:
        dict with keys "subject", "html" and "text".
    """
    if until is None:
        period = "until further notice"
    else:
        period = f"until {until.strftime(DATE_FORMAT)}"
    text = (
        f"Your UniHaven account is suspended {period}. "
        "Please contact support if you believe this is a mistake."
    )
    return {
        "subject": "⚠️ UniHaven Account Suspended",
        "html": _render_html(THEME_SUSPENDED, name, escape(text)),
        "text": text,
    }


def format_account_reinstated(name: str) -> Dict[str, str]:
    """Format the "welcome back" notice sent when a suspension ends.

    Returns:
        dict with keys "subject", "html" and "text".
    """
    settings = get_settings()
    text = (
        "Great news! Your UniHaven account has been reinstated. You can now log in, "
        "search for hostels, post listings, and keep connecting with the student community."
    )
    return {
        "subject": "🎉 Welcome Back! Your UniHaven Account Is Active Again",
        "html": _render_html(
            THEME_REINSTATED,
            name,
            escape(text),
            "Log In to UniHaven",
            f"{settings.client_url}/login",
        ),
        "text": text,
    }


def format_ad_expired(title: str, advertiser_name: Optional[str]) -> Dict[str, str]:
    """Format the notice sent to an advertiser when a campaign ends.

    Returns:
        dict with keys "subject", "html" and "text".
    """
    settings = get_settings()
    name = advertiser_name or "Advertiser"
    text = (
        f'Your ad "{title}" has expired and is no longer visible on UniHaven. '
        "Renew it now to continue reaching students looking for hostels."
    )
    body_html = (
        f'Your ad "<strong>{escape(title)}</strong>" has expired and is no longer visible '
        "on UniHaven. Renew it now to continue reaching students looking for hostels."
    )
    return {
        "subject": f'📛 Your Ad "{title}" Has Expired',
        "html": _render_html(
            THEME_AD_EXPIRED, name, body_html, "Renew Ad", f"{settings.client_url}/advertiser/ads"
        ),
        "text": text,
    }


def format_ad_expiring(
    title: str, advertiser_name: Optional[str], end_date: datetime
) -> Dict[str, str]:
    """Format the daily reminder for a campaign inside its final days.

    Returns:
        dict with keys "subject", "html" and "text".
    """
    settings = get_settings()
    name = advertiser_name or "Advertiser"
    ends = end_date.strftime(DATE_FORMAT)
    text = (
        f'Your ad "{title}" will expire on {ends}. '
        "Renew now to keep attracting students to your listing."
    )
    body_html = (
        f'Your ad "<strong>{escape(title)}</strong>" will expire on {escape(ends)}. '
        "Renew now to keep attracting students to your listing."
    )
    return {
        "subject": f'⏳ Your Ad "{title}" Expires Soon',
        "html": _render_html(
            THEME_AD_EXPIRING, name, body_html, "Renew Ad", f"{settings.client_url}/advertiser/ads"
        ),
        "text": text,
    }
