"""WhatsApp share formatting for a period's reading list.

Pure string building; nothing here touches the database or sends anything.
"""

from urllib.parse import quote

from tilawah.models.rotation import SLOT_NUMBERS

MAX_CUSTOM_MESSAGE_LENGTH = 500

STATUS_MARKERS = {
    "completed": "👑",
    "missed": "💔",
}


def format_share_date(value):
    return value.strftime("%d %b %Y")


def build_period_share_text(group_name, period_number, start_date, end_date, entries, custom_message=None):
    """
    Render the weekly list as a WhatsApp message.

    Args:
        group_name: Display name of the group.
        period_number: Sequential number of the period.
        start_date, end_date: ``date`` bounds of the period.
        entries: iterable of ``(slot_number, participant_name, status)``.
        custom_message: Optional footer, appended after a ``---`` separator.

    Slots without occupants are omitted. Completed and missed readers get a
    marker after their name.
    """
    by_slot = {}
    for slot, name, status in entries:
        by_slot.setdefault(slot, []).append((name, status))

    lines = [
        f"📖 *Tilawah Group: {group_name}*",
        f"🗓️ Period {period_number}: {format_share_date(start_date)} - {format_share_date(end_date)}",
        "",
    ]
    for slot in SLOT_NUMBERS:
        readers = by_slot.get(slot)
        if not readers:
            continue
        lines.append(f"*Juz {slot}:*")
        for name, status in readers:
            marker = STATUS_MARKERS.get(status)
            lines.append(f"- {name} {marker}" if marker else f"- {name}")
        lines.append("")

    text = "\n".join(lines) + "\n"
    if custom_message and custom_message.strip():
        text += f"---\n{custom_message.strip()}"
    return text


def whatsapp_share_url(text, phone=None):
    """Build a ``wa.me`` link; with ``phone`` the chat opens on that number."""
    target = "".join(ch for ch in phone if ch.isdigit()) if phone else ""
    return f"https://wa.me/{target}?text={quote(text, safe='')}"
