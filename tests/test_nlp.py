import pytest

from chefbot.ordering.nlp import contains_phrase, normalize, parse_quantity_token, words_with_spans


def test_normalize_strips_accents_and_punctuation():
    assert normalize("Hambúrguer Artesanal!") == "hamburguer artesanal"
    assert normalize("Coca-Cola 350ml") == "coca cola 350ml"


def test_normalize_collapses_whitespace_and_lowercases():
    assert normalize("  Mesa 5,   somos 3 PESSOAS ") == "mesa 5 somos 3 pessoas"


def test_normalize_empty_input():
    assert normalize("") == ""
    assert normalize(None) == ""
    assert normalize("?!...") == ""


@pytest.mark.parametrize(
    "raw",
    [
        "Salmão Grelhado & Caipirinha",
        "Crème brûlée",
        "AÇAÍ na tigela!!!",
        "quero 2x coca",
        "   ",
    ],
)
def test_normalize_is_idempotent(raw):
    once = normalize(raw)
    assert normalize(once) == once


def test_words_with_spans_offsets():
    text = "quero uma coca"
    spans = words_with_spans(text)
    assert spans[2] == ("coca", 10, 14)
    assert all(text[s:e] == w for (w, s, e) in spans)


def test_contains_phrase_respects_word_boundaries():
    assert contains_phrase("quero uma coca", "coca") == 10
    assert contains_phrase("quero uma cocada", "coca") == -1
    assert contains_phrase("", "coca") == -1


@pytest.mark.parametrize(
    "token,expected",
    [
        ("2", 2),
        ("12", 12),
        ("0", 1),
        ("2x", 2),
        ("x3", 3),
        ("uma", 1),
        ("duas", 2),
        ("dez", 10),
        ("coca", None),
        ("", None),
    ],
)
def test_parse_quantity_token(token, expected):
    assert parse_quantity_token(token) == expected
