# tests/unit/test_variant_resolver.py
import json
from decimal import Decimal

from uniform_stock.domain.variants import (
    DELIMITED,
    SINGLE,
    STRUCTURED,
    resolve_variants,
    split_size_labels,
)


def _structured_note(entries):
    return json.dumps({"_type": "sizeVariations", "sizeVariations": entries})


def test_structured_note_wins_over_size_field():
    record = {
        "name": "Blouse",
        "size": "S, M, L",
        "reorder_point": 10,
        "price": "250",
        "note": _structured_note(
            [
                {"size": "S", "beginning_inventory": 5, "purchases": 2},
                {"size": "M", "stock": 8, "reorder_point": 4, "price": "260"},
            ]
        ),
    }
    res = resolve_variants(record)
    assert res.strategy == STRUCTURED
    assert res.sizes == ["S", "M"]

    s, m = res.variants
    assert (s.beginning_inventory, s.purchases, s.released, s.returns) == (5, 2, 0, 0)
    assert s.reorder_point == 10
    assert s.unit_price == Decimal("250")

    # 只有 stock：作为期初导入
    assert m.beginning_inventory == 8
    assert m.reorder_point == 4
    assert m.unit_price == Decimal("260")
    assert res.warnings == []


def test_malformed_json_degrades_to_delimited_with_warning(caplog):
    record = {"name": "Polo", "size": "S,M", "note": '{"_type": "sizeVariations", "sizeVariations": [', "purchases": 3}
    res = resolve_variants(record)
    assert res.strategy == DELIMITED
    assert res.sizes == ["S", "M"]
    assert all(v.purchases == 3 for v in res.variants)
    assert res.warnings and "malformed" in res.warnings[0]
    assert "variant encoding warnings" in caplog.text


def test_plain_text_note_is_not_a_warning():
    res = resolve_variants({"name": "Skirt", "size": "M", "note": "restock before June"})
    assert res.strategy == SINGLE
    assert res.sizes == ["M"]
    assert res.warnings == []


def test_structured_bad_entries_are_skipped():
    note = _structured_note([{"size": "S"}, "junk", {"size": ""}, {"size": "s"}, {"size": "L"}])
    res = resolve_variants({"name": "Pants", "note": note})
    assert res.strategy == STRUCTURED
    assert res.sizes == ["S", "L"]
    assert len(res.warnings) == 3


def test_structured_tag_mismatch_falls_through():
    note = json.dumps({"_type": "other", "sizeVariations": [{"size": "XL"}]})
    res = resolve_variants({"name": "Pants", "size": "XS", "note": note})
    assert res.strategy == SINGLE
    assert res.sizes == ["XS"]


def test_single_size_missing_uses_default_label():
    res = resolve_variants({"name": "Necktie", "beginning_inventory": 7})
    assert res.strategy == SINGLE
    assert res.sizes == ["N/A"]
    assert res.variants[0].beginning_inventory == 7

    res = resolve_variants({"name": "Necktie", "size": "  "}, default_label="One Size")
    assert res.sizes == ["One Size"]


def test_split_size_labels_trims_and_dedupes():
    assert split_size_labels(" S , m ;M| L ,, ") == ["S", "m", "L"]
    assert split_size_labels(None) == []


def test_structured_entry_keeps_explicit_zero_reorder_point():
    record = {
        "name": "Necktie",
        "reorder_point": 10,
        "note": _structured_note(
            [
                {"size": "S", "reorder_point": 0},
                {"size": "M"},
                {"size": "L", "reorder_point": "n/a"},
            ]
        ),
    }
    res = resolve_variants(record)
    assert res.strategy == STRUCTURED
    assert [v.reorder_point for v in res.variants] == [0, 10, 10]
