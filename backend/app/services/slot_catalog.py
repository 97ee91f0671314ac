from __future__ import annotations

from dataclasses import dataclass
import re
from typing import Iterable

from app.core.exceptions import ScheduleValidationError

DAY_ORDER: tuple[str, ...] = (
    "Monday",
    "Tuesday",
    "Wednesday",
    "Thursday",
    "Friday",
    "Saturday",
)

DAY_SHORT_MAP = {
    "Mon": "Monday",
    "Tue": "Tuesday",
    "Wed": "Wednesday",
    "Thu": "Thursday",
    "Fri": "Friday",
    "Sat": "Saturday",
}

LUNCH_KEY = "LUNCH"
DEFAULT_DAY_START = "08:50"
DEFAULT_PERIOD_MINUTES = 50
DEFAULT_PERIOD_COUNT = 8
DEFAULT_LUNCH_AFTER_PERIOD = 4

SLOT_LABEL_PATTERN = re.compile(r"^\s*([01]?\d|2[0-3]):([0-5]\d)\s*-\s*([01]?\d|2[0-3]):([0-5]\d)\s*$")


@dataclass(frozen=True)
class SlotDefinition:
    key: str
    label: str

    @property
    def is_lunch(self) -> bool:
        return self.key == LUNCH_KEY

    def as_dict(self) -> dict[str, str]:
        return {"key": self.key, "label": self.label}


@dataclass(frozen=True)
class SlotKey:
    day: str
    slot: SlotDefinition


def day_order() -> tuple[str, ...]:
    return DAY_ORDER


def normalize_day(value: str) -> str:
    cleaned = (value or "").strip().title()
    day = DAY_SHORT_MAP.get(cleaned, cleaned)
    if day not in DAY_ORDER:
        raise ScheduleValidationError(f"Invalid day value: {value!r}", details={"allowed": list(DAY_ORDER)})
    return day


def day_index(day: str) -> int:
    return DAY_ORDER.index(normalize_day(day))


def _format_minutes(total: int) -> str:
    return f"{total // 60:02d}:{total % 60:02d}"


def _parse_clock(value: str) -> int:
    hours, minutes = value.split(":")
    return int(hours) * 60 + int(minutes)


def slot_window(label: str | None) -> tuple[int, int] | None:
    """Parse an ``HH:MM-HH:MM`` label into start/end minutes, or None for free-form labels."""
    if not label:
        return None
    match = SLOT_LABEL_PATTERN.match(label)
    if match is None:
        return None
    start = int(match.group(1)) * 60 + int(match.group(2))
    end = int(match.group(3)) * 60 + int(match.group(4))
    if end <= start:
        return None
    return start, end


def slots_collide(label_a: str | None, label_b: str | None) -> bool:
    window_a = slot_window(label_a)
    window_b = slot_window(label_b)
    if window_a is not None and window_b is not None:
        return window_a[0] < window_b[1] and window_b[0] < window_a[1]
    return (label_a or "").strip().lower() == (label_b or "").strip().lower()


def slot_sort_key(label: str | None) -> tuple[int, str]:
    window = slot_window(label)
    return (window[0] if window is not None else 24 * 60, label or "")


def default_catalog() -> list[SlotDefinition]:
    catalog: list[SlotDefinition] = []
    cursor = _parse_clock(DEFAULT_DAY_START)
    for period in range(1, DEFAULT_PERIOD_COUNT + 1):
        end = cursor + DEFAULT_PERIOD_MINUTES
        catalog.append(SlotDefinition(key=f"TS{period}", label=f"{_format_minutes(cursor)}-{_format_minutes(end)}"))
        cursor = end
        if period == DEFAULT_LUNCH_AFTER_PERIOD:
            end = cursor + DEFAULT_PERIOD_MINUTES
            catalog.append(SlotDefinition(key=LUNCH_KEY, label=f"{_format_minutes(cursor)}-{_format_minutes(end)}"))
            cursor = end
    return catalog


def build_catalog(items: Iterable[str | dict | SlotDefinition] | None) -> list[SlotDefinition]:
    """Validate a coordinator-supplied slot list, assigning ``TS<n>`` keys to bare labels."""
    if items is None:
        return default_catalog()

    catalog: list[SlotDefinition] = []
    period = 0
    for item in items:
        if isinstance(item, SlotDefinition):
            key, label = item.key, item.label
        elif isinstance(item, dict):
            key = str(item.get("key") or "").strip().upper()
            label = str(item.get("label") or "").strip()
        else:
            key, label = "", str(item).strip()
        if not label:
            raise ScheduleValidationError("Time slot label cannot be empty")
        if not key:
            if "lunch" in label.lower():
                key = LUNCH_KEY
            else:
                period += 1
                key = f"TS{period}"
        elif key.startswith("TS") and key[2:].isdigit():
            period = max(period, int(key[2:]))
        catalog.append(SlotDefinition(key=key, label=label))

    if not catalog:
        raise ScheduleValidationError("At least one time slot is required")

    keys = [item.key for item in catalog]
    labels = [item.label.lower() for item in catalog]
    if len(set(keys)) != len(keys):
        raise ScheduleValidationError("Duplicate time slot keys", details={"keys": keys})
    if len(set(labels)) != len(labels):
        raise ScheduleValidationError("Duplicate time slot labels", details={"labels": [item.label for item in catalog]})
    return catalog


def catalog_from_stored(stored: list[dict] | None) -> list[SlotDefinition]:
    if not stored:
        return default_catalog()
    return [SlotDefinition(key=item["key"], label=item["label"]) for item in stored]


def resolve_slot(catalog: list[SlotDefinition], value: str) -> SlotDefinition:
    cleaned = (value or "").strip()
    for item in catalog:
        if item.key == cleaned.upper():
            return item
    for item in catalog:
        if item.label.lower() == cleaned.lower():
            return item
    raise ScheduleValidationError(
        f"Unknown time slot: {value!r}",
        details={"allowed": [item.as_dict() for item in catalog]},
    )


def slot_index(catalog: list[SlotDefinition], value: str) -> int:
    return catalog.index(resolve_slot(catalog, value))


def next_slot(catalog: list[SlotDefinition], day: str, slot: str) -> SlotKey | None:
    index = slot_index(catalog, slot)
    if index + 1 >= len(catalog):
        return None
    return SlotKey(day=normalize_day(day), slot=catalog[index + 1])
