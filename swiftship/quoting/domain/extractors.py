"""
Quote Field Extractors
======================

Regex heuristics that pull structured quote fields out of free text.

Extraction failure is not an error: every extractor returns None when a
required field cannot be found, and callers re-prompt the customer.
"""

import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from typing import List, Optional, Tuple

from dateutil import parser as dtparser

from swiftship.config import (
    ContainerSize, ServiceType, ShipmentType, TimeSlot, TIME_SLOT_WINDOWS
)
from swiftship.quoting.domain.entities import Address, PackageDetails


# ========== Package details ==========

SHIPMENT_TYPE_PATTERNS: List[Tuple[ShipmentType, re.Pattern]] = [
    (ShipmentType.FULL_TRUCKLOAD, re.compile(r"full.*truck|ftl|full.*load", re.IGNORECASE)),
    (ShipmentType.LESS_THAN_TRUCKLOAD, re.compile(r"less.*truck|ltl|less.*load", re.IGNORECASE)),
    (ShipmentType.SEA_CONTAINER, re.compile(r"container|sea.*freight", re.IGNORECASE)),
    (ShipmentType.BULK_FREIGHT, re.compile(r"bulk", re.IGNORECASE)),
]

WEIGHT_PATTERN = re.compile(r"(\d+(?:\.\d+)?)\s*(?:tonnes|tons|ton|t)\b", re.IGNORECASE)
VOLUME_PATTERN = re.compile(r"(\d+(?:\.\d+)?)\s*(?:cubic\s+meters?|m3|m³|cbm)", re.IGNORECASE)
PALLET_PATTERN = re.compile(r"(\d+)\s*pallets?\b", re.IGNORECASE)
REQUIREMENTS_PATTERN = re.compile(r"(?:special\s+)?requirements?\s*:\s*([^.\n]+)", re.IGNORECASE)

HAZARD_PATTERN = re.compile(r"hazardous|dangerous", re.IGNORECASE)
# Plain substring match over the whole message, so "notify" and "cannot" count
NEGATION_PATTERN = re.compile(r"no|non|not", re.IGNORECASE)

# Volume upper bounds (m³) for inferring a sea container size
CONTAINER_CAPACITY = [(33.0, ContainerSize.TWENTY_FT), (67.0, ContainerSize.FORTY_FT)]


def classify_shipment_type(text: str) -> Optional[ShipmentType]:
    for shipment_type, pattern in SHIPMENT_TYPE_PATTERNS:
        if pattern.search(text):
            return shipment_type
    return None


def infer_container_size(text: str, volume_m3: float) -> ContainerSize:
    """Explicit size mentioned in the text wins; otherwise pick by volume."""
    lowered = text.lower()
    if "20ft" in lowered:
        return ContainerSize.TWENTY_FT
    if "40ft high cube" in lowered or "40ft hc" in lowered:
        return ContainerSize.FORTY_FT_HC
    if "40ft" in lowered:
        return ContainerSize.FORTY_FT
    for capacity, size in CONTAINER_CAPACITY:
        if volume_m3 <= capacity:
            return size
    return ContainerSize.FORTY_FT_HC


def detect_hazard(text: str) -> Tuple[bool, bool]:
    """
    Return (hazardous, ambiguous).

    Any "no", "non" or "not" substring suppresses the flag, so "no issues,
    but yes hazardous material" and "hazardous, notify consignee" both
    read as not hazardous. ambiguous marks exactly those messages.
    """
    mentions_hazard = bool(HAZARD_PATTERN.search(text))
    negated = bool(NEGATION_PATTERN.search(text))
    return mentions_hazard and not negated, mentions_hazard and negated


def extract_package_details(text: str) -> Optional[PackageDetails]:
    """
    Parse cargo details; None unless type, weight and volume are all present.
    """
    shipment_type = classify_shipment_type(text)
    if shipment_type is None:
        return None

    weight_match = WEIGHT_PATTERN.search(text)
    if not weight_match:
        return None

    volume_match = VOLUME_PATTERN.search(text)
    if not volume_match:
        return None

    hazardous, ambiguous = detect_hazard(text)
    volume = volume_match.group(1)

    pallet_match = PALLET_PATTERN.search(text)
    requirements_match = REQUIREMENTS_PATTERN.search(text)

    return PackageDetails(
        type=shipment_type,
        weight=weight_match.group(1),
        volume=volume,
        hazardous=hazardous,
        special_requirements=requirements_match.group(1).strip() if requirements_match else "",
        container_size=(
            infer_container_size(text, float(volume))
            if shipment_type == ShipmentType.SEA_CONTAINER else None
        ),
        pallet_count=pallet_match.group(1) if pallet_match else None,
        hazard_negation_ambiguous=ambiguous,
    )


# ========== Addresses ==========

@dataclass(frozen=True)
class AddressPair:
    """Pickup and delivery addresses parsed from one message."""
    pickup: Address
    delivery: Address
    pickup_date: date
    pickup_time_slot: TimeSlot


class IAddressPairParser(ABC):
    """Interface for turning free text into a pickup/delivery pair."""

    @abstractmethod
    def parse(self, text: str, today: Optional[date] = None) -> Optional[AddressPair]:
        """Return the address pair, or None if either address is missing."""


WEEKDAYS = ["monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday"]


def next_business_day(day: date) -> date:
    candidate = day + timedelta(days=1)
    while candidate.weekday() >= 5:
        candidate += timedelta(days=1)
    return candidate


def _parse_calendar_date(phrase: str, today: date) -> Optional[date]:
    """Absolute date named in free text, or None when the phrase names no day."""
    # A phrase without a day takes it from the default, so two defaults disagree
    other_day = today.replace(day=2 if today.day == 1 else 1)
    try:
        parsed = dtparser.parse(phrase, fuzzy=True, default=datetime.combine(today, time.min))
        check = dtparser.parse(phrase, fuzzy=True, default=datetime.combine(other_day, time.min))
    except (ValueError, OverflowError):
        return None
    if parsed.date() != check.date():
        return None
    return parsed.date()


def resolve_pickup_date(phrase: Optional[str], today: date) -> date:
    """
    Resolve a pickup phrase to a date.

    "today", "tomorrow", "<weekday>" and "next <weekday>" (both meaning the
    first such day after today) are handled first; absolute dates such as
    "2025-04-01" or "March 12" go through dateutil. Anything else, or a date
    already in the past, means the next business day.
    """
    if phrase:
        lowered = phrase.lower()
        if "today" in lowered:
            return today
        if "tomorrow" in lowered:
            return today + timedelta(days=1)
        weekday = re.search(r"\b(" + "|".join(WEEKDAYS) + r")\b", lowered)
        if weekday:
            target = WEEKDAYS.index(weekday.group(1))
            days_ahead = (target - today.weekday()) % 7 or 7
            return today + timedelta(days=days_ahead)
        resolved = _parse_calendar_date(phrase, today)
        if resolved is not None and resolved >= today:
            return resolved
    return next_business_day(today)


def parse_time_to_hour(value: Optional[str]) -> Optional[float]:
    """'9am' -> 9.0, '2:30 pm' -> 14.5, None when unparseable."""
    if not value:
        return None
    try:
        parsed = dtparser.parse(value, fuzzy=True, default=datetime(2000, 1, 1))
    except (ValueError, OverflowError):
        return None
    return parsed.hour + parsed.minute / 60


def time_slot_for_hour(hour: Optional[float]) -> TimeSlot:
    """Map an hour onto a pickup window, clamping to the first and last slot."""
    if hour is None:
        return TimeSlot.MORNING_1
    for slot, (start, end) in TIME_SLOT_WINDOWS.items():
        if start <= hour < end:
            return slot
    first_start = TIME_SLOT_WINDOWS[TimeSlot.MORNING_1][0]
    return TimeSlot.MORNING_1 if hour < first_start else TimeSlot.EVENING


class RegexAddressPairParser(IAddressPairParser):
    """
    Keyword-anchored parser.

    Expects "from <pickup> to <delivery> [pickup <when>] [at <time>]".
    Each address is split on commas into street, city and state.
    """

    FROM_PATTERN = re.compile(r"\bfrom\s+(.+?)(?=\s+to\s+|\.?\s*$)", re.IGNORECASE)
    TO_PATTERN = re.compile(r"\bto\s+(.+?)(?=\s+pickup\b|\s+at\s+\d|\.?\s*$)", re.IGNORECASE)
    PICKUP_PATTERN = re.compile(r"\bpickup\s+(.+?)(?=\s+at\s+|\.?\s*$)", re.IGNORECASE)
    AT_PATTERN = re.compile(r"\bat\s+(\d{1,2}(?::\d{2})?\s*[ap]m)", re.IGNORECASE)

    @staticmethod
    def _clean(value: str) -> str:
        return value.strip().strip(",;").strip()

    @classmethod
    def _to_address(cls, raw: str) -> Address:
        text = cls._clean(raw)
        parts = [part.strip() for part in text.split(",")]
        parts += [""] * (3 - len(parts))
        return Address(address=text, street=parts[0], city=parts[1], state=parts[2])

    def parse(self, text: str, today: Optional[date] = None) -> Optional[AddressPair]:
        from_match = self.FROM_PATTERN.search(text)
        to_match = self.TO_PATTERN.search(text)
        if not from_match or not to_match:
            return None

        pickup = self._to_address(from_match.group(1))
        delivery = self._to_address(to_match.group(1))
        if not pickup.address or not delivery.address:
            return None

        pickup_match = self.PICKUP_PATTERN.search(text)
        at_match = self.AT_PATTERN.search(text)

        return AddressPair(
            pickup=pickup,
            delivery=delivery,
            pickup_date=resolve_pickup_date(
                pickup_match.group(1) if pickup_match else None,
                today or date.today()
            ),
            pickup_time_slot=time_slot_for_hour(
                parse_time_to_hour(at_match.group(1) if at_match else None)
            ),
        )


_default_parser = RegexAddressPairParser()


def parse_address_pair(text: str, today: Optional[date] = None) -> Optional[AddressPair]:
    """Parse pickup and delivery addresses with the default parser."""
    return _default_parser.parse(text, today)


# ========== Service selection & confirmation ==========

def extract_service_level(text: str) -> Optional[ServiceType]:
    lowered = text.lower()
    if "express" in lowered:
        return ServiceType.EXPRESS
    if "standard" in lowered:
        return ServiceType.STANDARD
    if "eco" in lowered or "economy" in lowered:
        return ServiceType.ECO
    return None


def extract_confirmation(text: str) -> Optional[bool]:
    """True for yes, False for no, None when the answer is neither."""
    lowered = text.lower()
    if "yes" in lowered:
        return True
    if "no" in lowered:
        return False
    return None
