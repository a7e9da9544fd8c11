from chefbot.ordering.domain import MenuItem
from chefbot.ordering.matcher import (
    EXACT_STRENGTH,
    SYNONYM_STRENGTH,
    default_synonyms,
    find_mentions,
    merge_synonyms,
    suggest_similar,
)
from chefbot.ordering.nlp import normalize


def test_exact_name_matches_with_full_strength(menu_items):
    mentions = find_mentions("quero 2 hamburguer artesanal", menu_items)
    assert len(mentions) == 1
    assert mentions[0].item.name == "Hambúrguer Artesanal"
    assert mentions[0].strength == EXACT_STRENGTH
    assert mentions[0].span_start == 8


def test_every_catalog_name_matches_exactly_inside_text(menu_items):
    for item in menu_items:
        text = normalize(f"por favor {item.name} agora")
        found = {m.item.id: m.strength for m in find_mentions(text, menu_items)}
        assert found[item.id] == 1.0


def test_synonym_resolves_coca(menu_items):
    mentions = find_mentions("quero uma coca", menu_items)
    assert [m.item.name for m in mentions] == ["Coca-Cola 350ml"]
    assert mentions[0].strength == SYNONYM_STRENGTH


def test_plural_synonym_for_two_word_name(menu_items):
    mentions = find_mentions("quero duas cocas", menu_items)
    assert [m.item.name for m in mentions] == ["Coca-Cola 350ml"]
    assert mentions[0].span_start == len("quero duas ")


def test_partial_word_overlap_strength_is_ratio():
    items = [MenuItem(id="p1", name="Porção Batata Frita Cheddar", price="29.90")]
    mentions = find_mentions("quero batata frita com cheddar", items)
    assert len(mentions) == 1
    assert mentions[0].strength == 0.75


def test_partial_word_overlap_below_threshold_is_ignored():
    items = [MenuItem(id="p1", name="Porção Batata Frita Cheddar", price="29.90")]
    assert find_mentions("quero batata", items) == []


def test_partial_ignores_joiners_in_item_name(menu_items):
    mentions = find_mentions("um risotto camarao", menu_items)
    assert [m.item.id for m in mentions] == ["5"]
    assert mentions[0].strength == 1.0


def test_multiple_items_in_mention_order(menu_items):
    mentions = find_mentions("quero 1 salmao grelhado e uma caipirinha", menu_items)
    assert [m.item.id for m in mentions] == ["4", "8"]


def test_mentions_sorted_by_position_not_catalog_order(menu_items):
    mentions = find_mentions("uma caipirinha e um bruschetta", menu_items)
    assert [m.item.name for m in mentions] == ["Caipirinha", "Bruschetta"]


def test_empty_inputs(menu_items):
    assert find_mentions("", menu_items) == []
    assert find_mentions("quero caipirinha", []) == []


def test_unavailable_items_are_skipped():
    items = [MenuItem(id="1", name="Caipirinha", price="14.90", available=False)]
    assert find_mentions("quero caipirinha", items) == []


def test_merge_synonyms_extends_defaults():
    merged = merge_synonyms({"Bruschetta": "torrada", "Pudim": ["Pudinzinho"]})
    assert merged["bruschetta"] == ["torrada"]
    assert "pudinzinho" in merged["pudim"]
    assert merged["coca cola"] == default_synonyms()["coca cola"]


def test_custom_synonym_is_used(menu_items):
    merged = merge_synonyms({"bruschetta": ["torrada"]})
    mentions = find_mentions("me ve uma torrada", menu_items, merged)
    assert [m.item.name for m in mentions] == ["Bruschetta"]


def test_suggest_similar_ranks_typo_first(menu_items):
    suggestions = suggest_similar("quero um hamburgue", menu_items)
    assert suggestions
    assert suggestions[0][0].name == "Hambúrguer Artesanal"
    assert len(suggestions) <= 3


def test_suggest_similar_nothing_close(menu_items):
    assert suggest_similar("xyz qwerty", menu_items) == []
