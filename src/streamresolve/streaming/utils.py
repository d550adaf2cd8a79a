# Copyright (c) 2025 streamresolve and contributors. All rights reserved.
# Licensed under the MIT license. See LICENSE file in the project root for details.

"""Utility functions for the streaming module."""

from typing import Any


def merge_enrichment(
    core: dict[str, Any], enrichment: dict[str, Any]
) -> dict[str, Any]:
    """
    Merge enrichment fields into a core record without overwriting it.

    Keys already present in ``core`` with a value other than ``None`` keep
    their value; everything else is taken from ``enrichment``.

    Args:
        core: The primary record
        enrichment: Fields fetched by a secondary call

    Returns:
        A new merged dictionary; neither input is modified
    """
    merged = dict(core)
    for key, value in enrichment.items():
        if merged.get(key) is None:
            merged[key] = value
    return merged


def group_credits(contributors: list[dict[str, Any]]) -> dict[str, list[str]]:
    """Group contributor entries by role, keeping first-seen order."""
    credits: dict[str, list[str]] = {}
    for contributor in contributors:
        role = contributor.get("role") or contributor.get("type")
        name = contributor.get("name")
        if role and name:
            names = credits.setdefault(str(role), [])
            if name not in names:
                names.append(name)
        # Album item credits nest contributors under each role
        for nested in contributor.get("contributors", []):
            nested_name = nested.get("name")
            if role and nested_name:
                names = credits.setdefault(str(role), [])
                if nested_name not in names:
                    names.append(nested_name)
    return credits
