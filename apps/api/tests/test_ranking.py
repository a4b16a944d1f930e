"""Ranked member search over plain in-memory records."""
import math
import uuid
from dataclasses import dataclass, field

import pytest

from membership.services.errors import InvalidArgumentError
from membership.services.search import ActiveStatus, MatchTier, rank_members, search, similarity


@dataclass
class Record:
    name: str
    email: str
    phone: str | None = None
    is_deleted: bool = False
    id: str = field(default_factory=lambda: str(uuid.uuid4()))


def names(page):
    return [r.record.name for r in page.content]


@pytest.fixture
def anna_records():
    return [
        Record(name="Bernd Müller", email="bernd@z.de"),
        Record(name="Anna Schmid", email="a@y.de"),
        Record(name="Anna Schmidt", email="anna@x.de"),
    ]


def test_exact_name_then_fuzzy_neighbour(anna_records):
    page = search("Anna Schmidt", ActiveStatus.ACTIVE, 0, 10, anna_records)

    assert names(page) == ["Anna Schmidt", "Anna Schmid"]
    assert page.content[0].tier is MatchTier.EXACT_MATCH
    assert page.content[1].tier is MatchTier.FUZZY_MATCH
    assert page.content[1].score > 0.3
    assert page.total_elements == 2


def test_exact_match_is_case_insensitive(anna_records):
    page = search("anna schmidt", ActiveStatus.ACTIVE, 0, 10, anna_records)
    assert page.content[0].record.name == "Anna Schmidt"
    assert page.content[0].tier is MatchTier.EXACT_MATCH


def test_prefix_ranks_before_substring():
    records = [
        Record(name="Karl Berger", email="k@x.de"),
        Record(name="Bergmann", email="b@x.de"),
    ]
    results = rank_members("berg", records)

    assert [r.record.name for r in results] == ["Bergmann", "Karl Berger"]
    assert [r.tier for r in results] == [MatchTier.PREFIX_MATCH, MatchTier.SUBSTRING_MATCH]


def test_best_tier_over_all_fields():
    record = Record(name="Zora", email="kasse@museum.de", phone="+49 30 123")
    [result] = rank_members("kasse@museum.de", [record])
    assert result.tier is MatchTier.EXACT_MATCH


def test_phone_reaches_a_tier():
    record = Record(name="Zora", email="z@museum.de", phone="030 555 1234")
    [result] = rank_members("555", [record])
    assert result.tier is MatchTier.SUBSTRING_MATCH


def test_tier_and_score_may_come_from_different_fields():
    # the email holds the query as a substring; the name is only a close spelling
    record = Record(name="Anna Schmid", email="xx-schmidt-verein-bunkermuseum@example.org")
    [result] = rank_members("schmidt", [record])

    assert result.tier is MatchTier.SUBSTRING_MATCH
    assert result.score == similarity("Anna Schmid", "schmidt")
    assert similarity(record.email, "schmidt") < result.score


def test_equal_fuzzy_hits_break_ties_by_name():
    records = [
        Record(name="Berta", email="member@museum.de"),
        Record(name="Anna", email="member@museum.de"),
    ]
    first = search("membr@museum.de", ActiveStatus.ACTIVE, 0, 1, records)
    second = search("membr@museum.de", ActiveStatus.ACTIVE, 1, 1, records)

    assert names(first) == ["Anna"]
    assert names(second) == ["Berta"]
    assert first.content[0].tier is MatchTier.FUZZY_MATCH
    assert first.total_pages == second.total_pages == 2


def test_no_field_above_threshold_is_excluded(anna_records):
    results = rank_members("Anna Schmidt", anna_records)
    assert "Bernd Müller" not in [r.record.name for r in results]


def test_status_filter():
    records = [
        Record(name="Anna Active", email="a1@x.de"),
        Record(name="Anna Gone", email="a2@x.de", is_deleted=True),
    ]

    active = rank_members("anna", records, ActiveStatus.ACTIVE)
    deleted = rank_members("anna", records, ActiveStatus.DELETED)
    every = rank_members("anna", records, ActiveStatus.ALL)

    assert all(not r.record.is_deleted for r in active)
    assert all(r.record.is_deleted for r in deleted)
    assert len(every) == 2


def test_status_defaults_to_active():
    records = [Record(name="Anna Gone", email="a@x.de", is_deleted=True)]
    assert rank_members("anna", records, None) == []


def test_unknown_status_is_rejected():
    with pytest.raises(InvalidArgumentError):
        rank_members("anna", [], "archived")


def test_totals_do_not_depend_on_paging():
    records = [Record(name=f"Anna {i}", email=f"anna{i}@x.de") for i in range(7)]

    totals = set()
    for size in (1, 2, 3, 10):
        for page_number in range(3):
            page = search("anna", ActiveStatus.ACTIVE, page_number, size, records)
            totals.add(page.total_elements)
            assert page.total_pages == math.ceil(page.total_elements / size)
    assert totals == {7}


def test_page_past_the_end_is_empty(anna_records):
    page = search("Anna", ActiveStatus.ACTIVE, 5, 10, anna_records)
    assert page.content == []
    assert page.total_elements == 2
    assert page.total_pages == 1


def test_search_is_repeatable(anna_records):
    first = search("Anna", ActiveStatus.ALL, 0, 2, anna_records)
    second = search("Anna", ActiveStatus.ALL, 0, 2, anna_records)
    assert first == second


def test_empty_query_matches_nothing(anna_records):
    page = search("", ActiveStatus.ACTIVE, 0, 10, anna_records)
    assert page.content == []
    assert page.total_elements == 0
    assert page.total_pages == 0


@pytest.mark.parametrize(
    "query, page_number, page_size",
    [
        (None, 0, 10),
        ("anna", -1, 10),
        ("anna", 0, 0),
        ("anna", 0, -5),
    ],
)
def test_invalid_arguments(anna_records, query, page_number, page_size):
    with pytest.raises(InvalidArgumentError):
        search(query, ActiveStatus.ACTIVE, page_number, page_size, anna_records)


def test_input_records_are_not_modified(anna_records):
    before = [(r.id, r.name, r.email, r.phone, r.is_deleted) for r in anna_records]
    search("Anna", ActiveStatus.ALL, 0, 10, anna_records)
    assert [(r.id, r.name, r.email, r.phone, r.is_deleted) for r in anna_records] == before
