"""WhatsApp message templates for INFLUENCIA Edition 2.0."""

from __future__ import annotations

from typing import Callable

from influencia.domain.models import NotificationKind

TemplateFn = Callable[[str], str]

EVENT_DATE = "Saturday, 20 December 2025"
VENUE = "Nilgiri College of Arts and Science"
FEE = "₹2999"
UPI_LINK = (
    "upi://pay?ver=01&mode=01&pa=c0j9uodoggyh@idbi&pn=KAISAN%20ASSOCIATES%20LLP"
    "&mc=5816&qrMedium=06&am=2999&cu=INR"
)
CONTACT_BLOCK = "📞 +91 858 999 00 60\n📧 info@kaisanassociates.com"
SIGNATURE = "Kaisan Associates"


def _initial(name: str) -> str:
    return f"""🎉 Hello {name}!

Thank you for registering for INFLUENCIA Edition 2.0 - Program Your 2026

📅 Event Date: {EVENT_DATE}
📍 Venue: {VENUE}

⚠️ Payment Pending
Your registration is confirmed, but we haven't received your payment yet.

💰 Registration Fee: {FEE}

💳 Click below to pay now:
{UPI_LINK}

👆 Click the link above to complete payment securely via UPI

Please complete your payment at your earliest convenience to secure your spot.

For queries, contact:
{CONTACT_BLOCK}

See you at INFLUENCIA! 🎯

{SIGNATURE}"""


def _follow_up(name: str) -> str:
    return f"""👋 Hello {name},

This is a gentle reminder about your pending payment for INFLUENCIA Edition 2.0.

📅 Event Date: 20 December 2025

⏰ Your registration is on hold until we receive your payment.

💰 Amount: {FEE}

💳 Click below to pay now:
{UPI_LINK}

👆 Tap the link above to complete payment instantly via UPI

Don't miss out on this transformative experience! Complete your payment today.

Questions? We're here to help:
{CONTACT_BLOCK}

{SIGNATURE}"""


def _final_warning(name: str) -> str:
    return f"""Hello {name},

INFLUENCIA Edition 2.0 is just around the corner! 🎯

📅 Event Date: {EVENT_DATE}

⚠️ PAYMENT STILL PENDING

This is your final reminder to complete your registration payment. Your spot may be released if payment is not received soon.

💰 Amount: {FEE}

💳 PAY NOW - Click below:
{UPI_LINK}

👆 TAP NOW to secure your spot! Payment takes just 30 seconds

⏰ Time is running out!

For immediate assistance:
{CONTACT_BLOCK}

We look forward to seeing you at INFLUENCIA!

{SIGNATURE}"""


def _confirmed(name: str) -> str:
    return f"""Congratulations {name}!

Your seat is confirmed for Dr. Rashid Gazzali's transformative program: Programming 2026: Shaping the Year Ahead.

Get ready to explore the PRP Framework —
🔹 Personal Mastery
🔹 Relationship Building
🔹 Professional Excellence

📍 {VENUE}
🗓 December 20, 2025 | 9:00 AM – 6:00 PM

We're excited to have you join this journey of growth, learning, and inspiration.

{SIGNATURE}"""


def _two_day_reminder(name: str) -> str:
    return f"""Hello {name}!

Just 2 days to go! 🎯

Your seat is confirmed for INFLUENCIA EDITION 2.0 2026 with Dr. Rashid Gazzali.

📍 {VENUE}
🗓 December 20, 2025 | 9:00 AM – 6:00 PM

See you soon! 🚀

{SIGNATURE}"""


WHATSAPP_TEMPLATES: dict[NotificationKind, TemplateFn] = {
    NotificationKind.INITIAL: _initial,
    NotificationKind.FOLLOW_UP: _follow_up,
    NotificationKind.FINAL_WARNING: _final_warning,
    NotificationKind.CONFIRMED: _confirmed,
    NotificationKind.TWO_DAY_REMINDER: _two_day_reminder,
}


def resolve_template(
    kind: NotificationKind | str | None,
    catalog: dict[NotificationKind, TemplateFn] | None = None,
) -> TemplateFn | None:
    """Return the template for `kind`, or None if the kind is not in the catalog."""
    parsed = NotificationKind.parse(kind)
    if parsed is None:
        return None
    return (catalog if catalog is not None else WHATSAPP_TEMPLATES).get(parsed)
