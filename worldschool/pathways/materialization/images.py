"""Activity Images.

Classifies blocks into activity types and picks a stock image per block.

Rules:
- Classification is a whole-word keyword match; the first matching type wins
- The image index is a stable hash of the block key, so output is reproducible
- Within one batch no image is used twice while unused images remain
"""

import hashlib
import re
from enum import StrEnum

from loguru import logger


class ActivityType(StrEnum):
    MUSEUM = "museum"
    NATURE = "nature"
    MARKET = "market"
    HISTORICAL = "historical"
    CULTURAL = "cultural"
    LAB = "lab"
    WORKSHOP = "workshop"
    READING = "reading"
    DISCUSSION = "discussion"
    REFLECTION = "reflection"
    DEFAULT = "default"


ACTIVITY_PATTERNS: tuple[tuple[ActivityType, re.Pattern[str]], ...] = (
    (ActivityType.MUSEUM, re.compile(r"\b(museum|gallery|exhibition|collection)\b")),
    (ActivityType.NATURE, re.compile(r"\b(nature|hiking|trail|park|forest|beach|outdoor)\b")),
    (ActivityType.MARKET, re.compile(r"\b(market|shopping|bazaar|vendor)\b")),
    (ActivityType.HISTORICAL, re.compile(r"\b(historical|history|monument|ruin|ancient|heritage)\b")),
    (ActivityType.CULTURAL, re.compile(r"\b(cultural|festival|ceremony|tradition|custom)\b")),
    (ActivityType.LAB, re.compile(r"\b(lab|laboratory|experiment|science|research)\b")),
    (ActivityType.WORKSHOP, re.compile(r"\b(workshop|hands-on|craft|making|building)\b")),
    (ActivityType.READING, re.compile(r"\b(reading|book|text|article|literature)\b")),
    (ActivityType.DISCUSSION, re.compile(r"\b(discussion|talk|conversation|debate)\b")),
    (ActivityType.REFLECTION, re.compile(r"\b(reflection|journal|think|contemplate)\b")),
)

ALT_LABELS: dict[ActivityType, str] = {
    ActivityType.MUSEUM: "museum activity",
    ActivityType.NATURE: "nature activity",
    ActivityType.MARKET: "market activity",
    ActivityType.HISTORICAL: "historical site",
    ActivityType.CULTURAL: "cultural activity",
    ActivityType.LAB: "laboratory activity",
    ActivityType.WORKSHOP: "workshop activity",
    ActivityType.READING: "reading activity",
    ActivityType.DISCUSSION: "discussion activity",
    ActivityType.REFLECTION: "reflection activity",
    ActivityType.DEFAULT: "learning activity",
}

# Unsplash photo ids per activity type
IMAGE_POOLS: dict[ActivityType, tuple[str, ...]] = {
    ActivityType.MUSEUM: (
        "1518998053901-5348d3961a04",
        "1554907984-15263bfd63bd",
        "1566127444979-b3d2b654e3d7",
        "1564399579883-451a5d44ec08",
        "1580136579312-94651dfd596d",
    ),
    ActivityType.NATURE: (
        "1501785888041-af3ef285b470",
        "1506905925346-21bda4d32df4",
        "1469854523086-cc02fe5d8800",
        "1441974231531-c6227db76b6e",
        "1472214103451-9374bd1c798e",
    ),
    ActivityType.MARKET: (
        "1488459716781-31db52582fe9",
        "1533900298318-6b8da08a523e",
        "1555396273-367ea4eb4db5",
        "1534154391089-9404c4a6feb5",
        "1489749798305-4fea3ae63d43",
    ),
    ActivityType.HISTORICAL: (
        "1552832230-c0197dd311b5",
        "1539650116574-8efeb43e2750",
        "1533105079780-92b9be482077",
        "1515542622106-78bda8ba0e5b",
        "1519677100203-a0e668c92439",
    ),
    ActivityType.CULTURAL: (
        "1528360983277-13d401cdc186",
        "1493976040374-85c8e12f0c0e",
        "1528127269322-539c59a5d6d7",
        "1508009603885-50cf7c579365",
        "1524492412937-b28074a5d7da",
    ),
    ActivityType.LAB: (
        "1532094349884-543bc11b234d",
        "1507413245164-6160d8298b31",
        "1576086213369-97a306d36557",
        "1581093588401-fbb62a02f120",
    ),
    ActivityType.WORKSHOP: (
        "1452860606245-08befc0ff44b",
        "1488190211105-8b0e65b80b4e",
        "1513364776144-60967b0f800f",
        "1416339306562-f3d12fefd36f",
    ),
    ActivityType.READING: (
        "1456513080510-7bf3a84b82f8",
        "1434030216411-0b793f4b4173",
        "1481627834876-b7833e8f5570",
        "1507842217343-583bb7270b66",
    ),
    ActivityType.DISCUSSION: (
        "1517048676732-d65bc937f952",
        "1522202176988-66273c2fd55f",
        "1529156069898-49953e39b3ac",
        "1543269865-cbf427effbad",
    ),
    ActivityType.REFLECTION: (
        "1517842645767-c639042777db",
        "1499750310107-5fef28a66643",
        "1506126613408-eca07ce68773",
        "1455390582262-044cdead277a",
    ),
    ActivityType.DEFAULT: (
        "1503676260728-1c00da094a0b",
        "1516321318423-f06f85e504b3",
        "1500835556837-99ac94a94552",
        "1476514525535-07fb3b4ae5f1",
        "1503220317375-aabd63ab2fd7",
        "1520250497591-112f2f40a3f4",
        "1530521954074-e64f6810b32d",
        "1527631746610-bca00a040d60",
        "1502003148287-a82ef80a6abc",
        "1517760444937-f6397edcbbcd",
    ),
}

# Every known image, in pool order, used once a type's pool is exhausted
ALL_IMAGES: tuple[str, ...] = tuple(dict.fromkeys(image for pool in IMAGE_POOLS.values() for image in pool))


def image_url(photo_id: str) -> str:
    return f"https://images.unsplash.com/photo-{photo_id}?w=600&h=400&fit=crop&auto=format&q=80"


def detect_activity_type(title: str, description: str | None = None, field_experience: str | None = None) -> ActivityType:
    text = f"{title} {description or ''} {field_experience or ''}".lower()
    for activity_type, pattern in ACTIVITY_PATTERNS:
        if pattern.search(text):
            return activity_type
    return ActivityType.DEFAULT


def image_alt(activity_type: ActivityType, location: str | None = None) -> str:
    label = ALT_LABELS[activity_type]
    return f"{label} at {location}" if location else label


def stable_index(key: str, size: int) -> int:
    digest = hashlib.sha256(key.encode("utf-8")).hexdigest()
    return int(digest[:12], 16) % size


def _first_unused(pool: tuple[str, ...], start: int, used: set[str]) -> str | None:
    for offset in range(len(pool)):
        candidate = pool[(start + offset) % len(pool)]
        if candidate not in used:
            return candidate
    return None


def pick_image(activity_type: ActivityType, key: str, used: set[str]) -> str:
    """Pick a photo id for a block and record it as used.

    Starts at the hashed index of the type's pool and skips forward
    circularly past used images. Falls back to the combined pool, and only
    repeats an image once every known image is taken.

    Args:
        activity_type: Classified activity type
        key: Stable block key (title, day, block index and optional salt)
        used: Photo ids already used in this batch (updated in place)

    Returns:
        Unsplash photo id
    """
    pool = IMAGE_POOLS[activity_type]
    choice = _first_unused(pool, stable_index(key, len(pool)), used)
    if choice is None:
        choice = _first_unused(ALL_IMAGES, stable_index(key, len(ALL_IMAGES)), used)
    if choice is None:
        choice = pool[stable_index(key, len(pool))]
        logger.warning("Image pools exhausted, repeating an image", activity_type=activity_type.value, used=len(used))
    used.add(choice)
    return choice
