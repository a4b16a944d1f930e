import pytest

from membership.services.search import similarity, trigrams


def test_trigrams_pad_each_word():
    assert trigrams("Cat") == frozenset({"  c", " ca", "cat", "at "})


def test_trigrams_split_on_non_alphanumerics():
    assert trigrams("a.b") == trigrams("a b")
    assert trigrams("foo_bar") == trigrams("foo bar")


def test_trigrams_of_empty_or_missing_value():
    assert trigrams(None) == frozenset()
    assert trigrams("") == frozenset()
    assert trigrams("---") == frozenset()


def test_similarity_is_case_insensitive():
    assert similarity("ANNA", "anna") == 1.0


def test_similarity_one_character_edit():
    # 11 shared trigrams out of 14 distinct ones
    assert similarity("Anna Schmidt", "Anna Schmid") == pytest.approx(11 / 14)


def test_similarity_unrelated_and_empty():
    assert similarity("Bernd Müller", "Anna Schmidt") == 0.0
    assert similarity("", "Anna") == 0.0
    assert similarity(None, None) == 0.0


def test_similarity_is_symmetric():
    assert similarity("bernd@z.de", "bernd@y.de") == similarity("bernd@y.de", "bernd@z.de")
