"""
Transactional email bodies for prize delivery
"""

import re
from dataclasses import dataclass
from datetime import datetime, timezone
from html import escape
from typing import Optional

CODE_PATTERN = re.compile(r"^[A-Z0-9-]{6,}$")

_STYLE = """
    body { font-family: Arial, sans-serif; line-height: 1.6; color: #333; }
    .container { max-width: 600px; margin: 0 auto; padding: 20px; }
    .header { background: linear-gradient(135deg, #667eea 0%, #764ba2 100%); color: white; padding: 30px; text-align: center; border-radius: 10px 10px 0 0; }
    .content { background: #f9f9f9; padding: 30px; border-radius: 0 0 10px 10px; }
    .prize-box { background: white; padding: 20px; margin: 20px 0; border-radius: 8px; border-left: 4px solid #667eea; }
    .code { font-size: 28px; font-weight: bold; color: #667eea; letter-spacing: 2px; }
    .button { display: inline-block; background: #667eea; color: white; padding: 15px 30px; text-decoration: none; border-radius: 5px; font-weight: bold; }
    .footer { text-align: center; padding: 20px; color: #666; font-size: 12px; }
    .emoji { font-size: 48px; }
"""


@dataclass(frozen=True)
class EmailMessage:
    subject: str
    html: str
    text: str


def content_kind(content: str) -> str:
    """Classify a payload as 'link', 'code' or 'message'."""
    if content.startswith("http"):
        return "link"
    if CODE_PATTERN.match(content):
        return "code"
    return "message"


def _page(header: str, body: str) -> str:
    year = datetime.now(timezone.utc).year
    return (
        "<!DOCTYPE html><html><head><style>" + _STYLE + "</style></head><body>"
        f'<div class="container"><div class="header">{header}</div>'
        f'<div class="content">{body}</div>'
        f'<div class="footer"><p>&copy; {year} Supporterswin. All rights reserved.</p></div>'
        "</div></body></html>"
    )


def prize_email(prize_name: str, emoji: str, tier: str, content: str) -> EmailMessage:
    """Automatic delivery email; the variant follows the payload kind."""
    kind = content_kind(content)
    tier_label = tier.upper()
    name, icon, payload = escape(prize_name), escape(emoji), escape(content)
    header = f'<div class="emoji">{icon}</div><h1>Congratulations!</h1><p>You Won: {name}</p>'

    if kind == "link":
        subject = f"🎉 Your {tier_label} Mystery Video is Here!"
        body = (
            f'<div class="prize-box"><h2>Your Exclusive Content:</h2>'
            f'<p>As a {tier_label} tier member, here is your exclusive content:</p>'
            f'<p style="word-break: break-all;"><strong>{payload}</strong></p>'
            f'<p><a href="{payload}" class="button">🎥 Watch Your Video</a></p></div>'
            "<ul><li>This link is exclusive to you</li><li>Save this email for future access</li></ul>"
        )
        text = (
            f"Congratulations! {emoji}\n\nYou Won: {prize_name}\nTier: {tier_label}\n\n"
            f"Watch your video here: {content}\n\nThis link is exclusive to you. Save this email for future access."
        )
    elif kind == "code":
        subject = f"🎉 Your {tier_label} Discount Code!"
        body = f'<div class="prize-box"><p><strong>Your {tier_label} Tier Code:</strong></p><p class="code">{payload}</p></div>'
        text = f"Congratulations! {emoji}\n\nYou Won: {prize_name}\n\nYour {tier_label} Tier Code: {content}"
    else:
        subject = f"🎉 Prize Won: {prize_name}"
        body = f"<h2>{name}</h2><p>{payload}</p>"
        text = f"Congratulations! {emoji}\n\n{prize_name}\n\n{content}"

    return EmailMessage(subject, _page(header, body), text)


def manual_pending_email(prize_name: str, emoji: str, user_name: str, transaction_id: str, won_at: datetime) -> EmailMessage:
    name = escape(prize_name)
    subject = f"🎉 You Won: {prize_name} - Being Prepared!"
    won = won_at.strftime("%Y-%m-%d %H:%M UTC")
    header = f'<div class="emoji">{escape(emoji)}</div><h1>Congratulations, {escape(user_name)}!</h1><p>You Won: {name}</p>'
    body = (
        '<div class="prize-box"><h2>Your prize is being prepared</h2>'
        "<p>This prize is prepared personally by our team. "
        "You will receive another email as soon as it is ready.</p>"
        f"<p>Transaction: <strong>{escape(transaction_id)}</strong><br>Won at: {won}</p></div>"
    )
    text = (
        f"Congratulations, {user_name}! {emoji}\n\nYou Won: {prize_name}\n\n"
        "Your prize is being prepared by our team. You will receive another email as soon as it is ready.\n\n"
        f"Transaction: {transaction_id}\nWon at: {won}"
    )
    return EmailMessage(subject, _page(header, body), text)


def fulfillment_complete_email(prize_name: str, emoji: str, user_name: str, prize_link: str,
                               transaction_id: str, note: Optional[str] = None) -> EmailMessage:
    link = escape(prize_link)
    subject = f"✨ Your {prize_name} is Ready!"
    header = f'<div class="emoji">{escape(emoji)}</div><h1>Your prize is ready, {escape(user_name)}!</h1><p>{escape(prize_name)}</p>'
    body = (
        '<div class="prize-box"><h2>Access your prize</h2>'
        f'<p style="word-break: break-all;"><strong>{link}</strong></p>'
        f'<p><a href="{link}" class="button">🎁 Open Your Prize</a></p>'
        + (f"<p>{escape(note)}</p>" if note else "")
        + f"<p>Transaction: <strong>{escape(transaction_id)}</strong></p></div>"
    )
    text = (
        f"Your prize is ready, {user_name}! {emoji}\n\n{prize_name}\n\nAccess it here: {prize_link}\n\n"
        + (f"{note}\n\n" if note else "")
        + f"Transaction: {transaction_id}"
    )
    return EmailMessage(subject, _page(header, body), text)
