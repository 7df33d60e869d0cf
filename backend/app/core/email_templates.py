"""Email Templates — pure builders for outbound notification emails.

Invariants:
    - Builders are PURE: same input → same OutboundEmail, no IO
    - All user-controlled text is HTML-escaped before interpolation
    - Every email carries both an HTML and a plain-text body

Design Decisions:
    - Frozen dataclass for OutboundEmail: safe to hand to a background task after
      the request scope (and its ORM session) is gone
"""

from dataclasses import dataclass
from html import escape


@dataclass(frozen=True)
class OutboundEmail:
    """A fully rendered email, ready for the transport."""
    to_address: str
    to_name: str
    subject: str
    html: str
    text: str
    category: str


def profile_url(frontend_url: str, username: str) -> str:
    return f"{frontend_url.rstrip('/')}/profile/{username}"


def post_url(frontend_url: str, post_id: str) -> str:
    return f"{frontend_url.rstrip('/')}/post/{post_id}"


def build_connection_accepted_email(
    sender_email: str, sender_name: str, recipient_name: str, profile_link: str,
) -> OutboundEmail:
    """Email to the original sender once the recipient accepts."""
    subject = f"{recipient_name} accepted your connection request"
    html = (
        "<div style=\"font-family: Arial, sans-serif; line-height: 1.6;\">"
        f"<h2>Connection Accepted!</h2>"
        f"<p>Hello {escape(sender_name)},</p>"
        f"<p><strong>{escape(recipient_name)}</strong> has accepted your "
        "connection request on Linkup.</p>"
        "<p>You can now message each other, see each other's updates and "
        "grow your network together.</p>"
        f"<p><a href=\"{escape(profile_link, quote=True)}\">View Profile</a></p>"
        "<p>Best regards,<br>The Linkup Team</p>"
        "</div>"
    )
    text = (
        f"Hello {sender_name},\n\n"
        f"{recipient_name} has accepted your connection request on Linkup.\n\n"
        f"View profile: {profile_link}\n\n"
        "Best regards,\nThe Linkup Team\n"
    )
    return OutboundEmail(
        to_address=sender_email, to_name=sender_name, subject=subject,
        html=html, text=text, category="connection_accepted",
    )


def build_comment_notification_email(
    recipient_email: str,
    recipient_name: str,
    commenter_name: str,
    post_link: str,
    comment: str,
) -> OutboundEmail:
    """Email to a post author when someone comments on their post."""
    subject = "New Comment on Your Post"
    html = (
        "<div style=\"font-family: Arial, sans-serif; line-height: 1.6;\">"
        "<h2>New Comment on Your Post</h2>"
        f"<p>Hello {escape(recipient_name)},</p>"
        f"<p><strong>{escape(commenter_name)}</strong> commented on your post:</p>"
        f"<blockquote>{escape(comment)}</blockquote>"
        f"<p><a href=\"{escape(post_link, quote=True)}\">View Comment</a></p>"
        "<p>Best regards,<br>The Linkup Team</p>"
        "</div>"
    )
    text = (
        f"Hello {recipient_name},\n\n"
        f"{commenter_name} commented on your post:\n\n"
        f"  {comment}\n\n"
        f"View comment: {post_link}\n"
    )
    return OutboundEmail(
        to_address=recipient_email, to_name=recipient_name, subject=subject,
        html=html, text=text, category="comment_notification",
    )
