"""Crafting dependency resolution, craft queue and station handling."""

from .recipes import RawSource, Recipe, RecipeBook, load_recipe_book, recipe_book_from_dict
from .resolver import CraftEntry, CraftingResolver, RawNeed, Resolution
from .queue import CraftQueue, QueueEntry
from .stations import StationLocator
from .session import CraftSession, SessionStatus
from .needs import assess_crafting_needs

__all__ = [
    "RawSource",
    "Recipe",
    "RecipeBook",
    "load_recipe_book",
    "recipe_book_from_dict",
    "CraftEntry",
    "CraftingResolver",
    "RawNeed",
    "Resolution",
    "CraftQueue",
    "QueueEntry",
    "StationLocator",
    "CraftSession",
    "SessionStatus",
    "assess_crafting_needs",
]
