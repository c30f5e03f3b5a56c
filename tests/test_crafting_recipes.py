# tests/test_crafting_recipes.py
"""
Recipe book loading and lookup.

Goal:
  - The shipped recipes.yaml loads, aliases resolve, and the dependency
    graph answers transitive-ingredient queries.
  - A cyclic recipe set loads with a warning instead of failing.
"""

import logging
from pathlib import Path

import pytest

from crafting.recipes import load_recipe_book, recipe_book_from_dict
import crafting.recipes as recipes_module


def test_default_book_loads_recipes_and_raw_sources():
    book = load_recipe_book()

    stick = book.get("stick")
    assert stick is not None
    assert stick.count == 4
    assert stick.ingredients == (("oak_planks", 2),)
    assert book.get("wooden_pickaxe").requires_table is True
    assert book.is_raw("oak_log")
    assert book.raw_source("cobblestone").method == "mine"
    assert book.has_cycles() is False


def test_aliases_and_namespaces_normalize():
    book = load_recipe_book()

    assert book.normalize("sticks") == "stick"
    assert book.normalize("minecraft:Table") == "crafting_table"
    assert book.is_raw("logs")
    assert book.knows("pick")
    assert not book.knows("unobtainium")


def test_recipes_for_keeps_declaration_order():
    book = load_recipe_book()

    ids = [r.id for r in book.recipes_for("torches")]

    assert ids == ["torch", "torch_from_charcoal"]


def test_dependencies_are_transitive():
    book = load_recipe_book()

    assert book.dependencies_of("wooden_pickaxe") == ["oak_log", "oak_planks", "stick"]
    assert book.dependencies_of("oak_log") == []
    assert book.dependencies_of("nothing_here") == []


def test_batches_round_up():
    recipe = load_recipe_book().get("stick")

    assert recipe.batches_for(1) == 1
    assert recipe.batches_for(4) == 1
    assert recipe.batches_for(5) == 2
    assert recipe.ingredient_counts(3) == {"oak_planks": 6}


def test_cyclic_recipes_load_with_warning(caplog):
    raw = {
        "recipes": {
            "a_from_b": {"output": "a", "ingredients": {"b": 1}},
            "b_from_a": {"output": "b", "ingredients": {"a": 1}},
        }
    }

    with caplog.at_level(logging.WARNING, logger="crafting.recipes"):
        book = recipe_book_from_dict(raw)

    assert book.has_cycles() is True
    assert any("cycles" in rec.getMessage() for rec in caplog.records)


def test_recipe_without_output_is_rejected():
    with pytest.raises(ValueError):
        recipe_book_from_dict({"recipes": {"broken": {"ingredients": {"a": 1}}}})


def test_loader_uses_config_dir(tmp_path: Path, monkeypatch):
    (tmp_path / "recipes.yaml").write_text(
        """
recipes:
  plank:
    output: oak_planks
    count: 4
    ingredients: {oak_log: 1}
raw:
  oak_log: {}
""".lstrip(),
        encoding="utf-8",
    )
    monkeypatch.setattr(recipes_module, "CONFIG_DIR", tmp_path)

    book = load_recipe_book()

    assert [r.id for r in book.all_recipes()] == ["plank"]
    # A raw entry without sources is collected from its own block.
    assert book.raw_source("oak_log").sources == ("oak_log",)
    assert book.raw_source("oak_log").method == "gather"


def test_empty_and_malformed_files(tmp_path: Path):
    empty = tmp_path / "empty.yaml"
    empty.write_text("", encoding="utf-8")
    assert load_recipe_book(empty).all_recipes() == []

    bad = tmp_path / "bad.yaml"
    bad.write_text("- just\n- a list\n", encoding="utf-8")
    with pytest.raises(ValueError):
        load_recipe_book(bad)
