from datetime import time

# ---------- Grid ----------
# Six teaching days; slot N is the clock hour starting at (6 + N):00.
# Slot 15 (9:00 PM) only marks the end of the last usable hour.
DAYS = ('Mon', 'Tue', 'Wed', 'Thu', 'Fri', 'Sat')

FIRST_SLOT = 1
END_MARKER_SLOT = 15
DAY_START_HOUR = 7

_DAY_ALIASES = {
    'm': 'Mon', 'mon': 'Mon', 'monday': 'Mon',
    't': 'Tue', 'tue': 'Tue', 'tues': 'Tue', 'tuesday': 'Tue',
    'w': 'Wed', 'wed': 'Wed', 'wednesday': 'Wed',
    'th': 'Thu', 'thu': 'Thu', 'thurs': 'Thu', 'thursday': 'Thu',
    'f': 'Fri', 'fri': 'Fri', 'friday': 'Fri',
    's': 'Sat', 'sat': 'Sat', 'saturday': 'Sat',
}


def normalize_day(d):
    """Canonical day label, or None when the value is not a teaching day."""
    if not d:
        return None
    return _DAY_ALIASES.get(str(d).strip().lower())


def slot_to_time(slot):
    if not FIRST_SLOT <= slot <= END_MARKER_SLOT:
        raise ValueError(f"Slot {slot} is outside the grid ({FIRST_SLOT}-{END_MARKER_SLOT})")
    return time(DAY_START_HOUR + slot - FIRST_SLOT, 0)


def format_slot(slot):
    t = slot_to_time(slot)
    return t.strftime("%I:%M %p").lstrip('0')


def slot_range_label(start_slot, duration):
    return f"{format_slot(start_slot)} - {format_slot(start_slot + duration)}"


def max_start_slot(duration):
    return END_MARKER_SLOT - duration


def fits_in_grid(start_slot, duration):
    return duration >= 1 and start_slot >= FIRST_SLOT and start_slot + duration <= END_MARKER_SLOT


def candidate_start_slots(duration):
    return range(FIRST_SLOT, max_start_slot(duration) + 1)
