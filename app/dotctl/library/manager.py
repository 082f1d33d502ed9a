"""Embedded recipe library.

Recipes are pre-packaged bundles shipped as package data under
``dotctl/data/recipes/<name>.yaml`` with kind ``Recipe/v1``. They are
read-only and used when a repository has no ``apps/<name>.yaml``.
"""

import logging
from importlib import resources
from importlib.resources.abc import Traversable
from typing import Any

import yaml

from dotctl.core.errors import SchemaError
from dotctl.core.loader import parse_document
from dotctl.core.schema import make_kind, validate_kind
from dotctl.models.bundle import Bundle

logger = logging.getLogger(__name__)

RECIPE_KIND = make_kind("Recipe")


def recipe_to_bundle(data: Any, source: str) -> Bundle:
    """Instantiate a parsed recipe document as a bundle.

    Args:
        data: Parsed YAML recipe.
        source: Where the recipe came from, for error messages.

    Raises:
        SchemaError: If the recipe is invalid.
    """
    validate_kind(data, "Recipe")
    bundle_data = {**data, "kind": make_kind("App")}
    try:
        return parse_document(bundle_data, Bundle, "App", None)
    except SchemaError as e:
        raise SchemaError(f"Invalid recipe {source}: {e.message}", subject=source) from e


class RecipeLibrary:
    """Read-only map of recipe name to bundle.

    Recipes are parsed lazily on first access and cached.

    Args:
        root: Directory holding ``*.yaml`` recipes (default: bundled data).
    """

    def __init__(self, root: Traversable | None = None) -> None:
        if root is None:
            root = resources.files("dotctl.data").joinpath("recipes")
        self._root = root
        self._recipes: dict[str, Bundle] | None = None

    def _load(self) -> dict[str, Bundle]:
        if self._recipes is not None:
            return self._recipes

        recipes: dict[str, Bundle] = {}
        if self._root.is_dir():
            entries = sorted(self._root.iterdir(), key=lambda entry: entry.name)
            for entry in entries:
                if not entry.name.endswith(".yaml"):
                    continue
                try:
                    data = yaml.safe_load(entry.read_text(encoding="utf-8"))
                except yaml.YAMLError as e:
                    raise SchemaError(f"Invalid YAML in recipe {entry.name}: {e}") from e
                bundle = recipe_to_bundle(data, entry.name)
                recipes[bundle.name] = bundle
        logger.debug("Loaded %d recipes", len(recipes))
        self._recipes = recipes
        return recipes

    def get(self, name: str) -> Bundle | None:
        """Return a copy of recipe ``name`` as a bundle, or None."""
        bundle = self._load().get(name)
        return bundle.model_copy(deep=True) if bundle is not None else None

    def names(self) -> list[str]:
        """Sorted recipe names."""
        return sorted(self._load())

    def __contains__(self, name: object) -> bool:
        return name in self._load()
