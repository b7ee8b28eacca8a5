"""
Complaint status workflow.

Statuses are plain names. Four are known to the client (Pending, In Progress,
Resolved, Rejected); admins can add more on the backend. The transition table
is complete: an admin may move a complaint from any status to any
other. The only ordering the client suggests is the pair of quick actions
Pending -> In Progress -> Resolved.

"Days pending" and "overdue" are derived from createdOn every time they are
asked for and never stored.
"""
from datetime import datetime, timezone as dt_timezone

from django.utils import timezone
from django.utils.dateparse import parse_datetime

PENDING = "Pending"
IN_PROGRESS = "In Progress"
RESOLVED = "Resolved"
REJECTED = "Rejected"
UNKNOWN = "Unknown"

KNOWN_STATUSES = (PENDING, IN_PROGRESS, RESOLVED, REJECTED)

QUICK_ACTIONS = {
    PENDING: IN_PROGRESS,
    IN_PROGRESS: RESOLVED,
}

MS_PER_DAY = 24 * 60 * 60 * 1000
OVERDUE_AFTER_DAYS = 7


def normalize(name):
    return " ".join((name or "").split()).lower()


def canonical_name(name):
    """Known statuses come back in their canonical spelling; blanks become Unknown."""
    key = normalize(name)
    if not key:
        return UNKNOWN
    for known in KNOWN_STATUSES:
        if normalize(known) == key:
            return known
    return name.strip()


def same_status(a, b):
    return normalize(a) == normalize(b)


class StatusWorkflow:
    """Transition table over the statuses the backend knows about."""

    def __init__(self, status_names=KNOWN_STATUSES):
        names = []
        for name in list(KNOWN_STATUSES) + list(status_names):
            canonical = canonical_name(name)
            if canonical != UNKNOWN and canonical not in names:
                names.append(canonical)
        self.states = tuple(names)
        self.transitions = {
            state: tuple(other for other in self.states if other != state)
            for state in self.states
        }

    @classmethod
    def from_statuses(cls, statuses):
        return cls([s.get("name") for s in statuses or []])

    def targets(self, current):
        current = canonical_name(current)
        if current in self.transitions:
            return self.transitions[current]
        return self.states

    def can_transition(self, current, target):
        return canonical_name(target) in self.targets(current)

    def quick_action(self, current):
        return QUICK_ACTIONS.get(canonical_name(current))


def _parse_created(created_on):
    if isinstance(created_on, datetime):
        value = created_on
    else:
        try:
            value = parse_datetime(created_on or "")
        except ValueError:
            return None
        if value is None:
            return None
    if timezone.is_naive(value):
        value = value.replace(tzinfo=dt_timezone.utc)
    return value


def days_pending(created_on, now=None):
    created = _parse_created(created_on)
    if created is None:
        return None
    now = now or timezone.now()
    elapsed_ms = int((now - created).total_seconds() * 1000)
    return elapsed_ms // MS_PER_DAY


def is_overdue(created_on, now=None):
    days = days_pending(created_on, now)
    return days is not None and days > OVERDUE_AFTER_DAYS


def age_label(days):
    if days is None:
        return ""
    if days == 0:
        return "Today"
    return f"{days} days ago"


def matches_search(complaint, term):
    if not term:
        return True
    term = term.lower()
    fields = (
        complaint.get("title"),
        complaint.get("description"),
        complaint.get("userName"),
        complaint.get("categoryName"),
    )
    return any(term in (value or "").lower() for value in fields)


def _created_sort_key(complaint):
    created = _parse_created(complaint.get("createdOn"))
    return created or datetime.min.replace(tzinfo=dt_timezone.utc)


def pending_queue(complaints, search=None, overdue_only=False, now=None):
    """Pending complaints, newest first."""
    items = [
        c for c in complaints
        if same_status(c.get("statusName"), PENDING) and matches_search(c, search)
    ]
    if overdue_only:
        items = [c for c in items if is_overdue(c.get("createdOn"), now)]
    return sorted(items, key=_created_sort_key, reverse=True)


def summarize(complaints, now=None):
    counts = {
        "total": len(complaints),
        "pending": 0,
        "in_progress": 0,
        "resolved": 0,
        "rejected": 0,
        "other": 0,
        "overdue": 0,
    }
    keys = {PENDING: "pending", IN_PROGRESS: "in_progress", RESOLVED: "resolved", REJECTED: "rejected"}
    for complaint in complaints:
        name = canonical_name(complaint.get("statusName"))
        counts[keys.get(name, "other")] += 1
        if name == PENDING and is_overdue(complaint.get("createdOn"), now):
            counts["overdue"] += 1
    return counts


def apply_status(complaint, status):
    """Copy of `complaint` showing `status` as its current status."""
    updated = dict(complaint)
    updated["statusName"] = status.get("name") or UNKNOWN
    updated["lastModifiedOn"] = timezone.now().isoformat()
    return updated
