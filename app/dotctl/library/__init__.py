"""Embedded recipe library."""

from dotctl.library.manager import RecipeLibrary, recipe_to_bundle

__all__ = ["RecipeLibrary", "recipe_to_bundle"]
