import pytest

from worldschool.pathways.materialization.images import (
    ALL_IMAGES,
    IMAGE_POOLS,
    ActivityType,
    detect_activity_type,
    image_alt,
    image_url,
    pick_image,
    stable_index,
)


@pytest.mark.parametrize(
    ("title", "expected"),
    [
        ("Visit the Gulbenkian Museum", ActivityType.MUSEUM),
        ("Coastal trail hike", ActivityType.NATURE),
        ("Explore the flea market", ActivityType.MARKET),
        ("Ancient castle walls", ActivityType.HISTORICAL),
        ("Fado festival evening", ActivityType.CULTURAL),
        ("Kitchen science experiment", ActivityType.LAB),
        ("Tile painting workshop", ActivityType.WORKSHOP),
        ("Reading Pessoa poems", ActivityType.READING),
        ("Family debate", ActivityType.DISCUSSION),
        ("Evening journal", ActivityType.REFLECTION),
        ("Free time", ActivityType.DEFAULT),
    ],
)
def test_detect_activity_type(title, expected):
    assert detect_activity_type(title) == expected


def test_detection_matches_whole_words_only():
    # "parking" must not match "park"
    assert detect_activity_type("Parking the car") == ActivityType.DEFAULT


def test_first_matching_type_wins():
    assert detect_activity_type("Museum then park") == ActivityType.MUSEUM


def test_field_experience_participates():
    assert detect_activity_type("Morning block", None, "Hike the forest trail") == ActivityType.NATURE


def test_image_alt():
    assert image_alt(ActivityType.HISTORICAL, "Lisbon") == "historical site at Lisbon"
    assert image_alt(ActivityType.DEFAULT) == "learning activity"


def test_image_url_format():
    assert image_url("123-abc") == "https://images.unsplash.com/photo-123-abc?w=600&h=400&fit=crop&auto=format&q=80"


def test_stable_index_is_deterministic():
    assert stable_index("Tile walk-day1-block0", 5) == stable_index("Tile walk-day1-block0", 5)
    assert 0 <= stable_index("anything", 7) < 7


def test_default_pool_has_generic_fallbacks():
    assert len(IMAGE_POOLS[ActivityType.DEFAULT]) >= 10


def test_pick_image_skips_used_images():
    used: set[str] = set()
    pool = IMAGE_POOLS[ActivityType.LAB]

    picks = [pick_image(ActivityType.LAB, "same-key", used) for _ in range(len(pool))]

    assert len(set(picks)) == len(pool)
    assert set(picks) == set(pool)


def test_pick_image_falls_back_to_all_images():
    pool = IMAGE_POOLS[ActivityType.LAB]
    used = set(pool)

    pick = pick_image(ActivityType.LAB, "key", used)

    assert pick not in pool
    assert pick in ALL_IMAGES


def test_pick_image_repeats_only_when_everything_used():
    used = set(ALL_IMAGES)

    pick = pick_image(ActivityType.MUSEUM, "key", used)

    assert pick in IMAGE_POOLS[ActivityType.MUSEUM]
