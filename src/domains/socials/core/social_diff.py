"""Social link diffing between a stored token and a freshly fetched one.

Pure functions, no I/O.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from src.core.url_normalization import normalize_link
from src.models.event import LinkChangeKind, SocialLinkChange
from src.models.token import SocialField, Token


@dataclass
class SocialDiff:
    """Result of comparing one token's social links against its snapshot.

    ``dirty`` can be True with no ``changes``: a removed link is stored but
    never reported.
    """

    updated: Token
    changes: list[SocialLinkChange] = field(default_factory=list)
    dirty: bool = False


def classify_link_change(
    link_field: SocialField,
    old: str | None,
    new: str | None,
) -> tuple[bool, SocialLinkChange | None]:
    """Classify one field. Returns (differs, change_to_report)."""
    old_normalized = normalize_link(old)
    new_normalized = normalize_link(new)

    if old_normalized == new_normalized:
        return False, None
    if not new_normalized:
        return True, None
    if not old_normalized:
        return True, SocialLinkChange(field=link_field, kind=LinkChangeKind.ADDED, new=new or "")
    return True, SocialLinkChange(
        field=link_field,
        kind=LinkChangeKind.CHANGED,
        old=old,
        new=new or "",
    )


def diff_social_links(stored: Token, fetched: Token) -> SocialDiff:
    """Compare the three social links of a known token.

    The updated snapshot entry keeps the raw fetched value for every field
    whose normalized form differs; all other stored attributes are kept.
    """
    updates: dict[str, str | None] = {}
    changes: list[SocialLinkChange] = []

    for link_field in SocialField:
        old = stored.social_link(link_field)
        new = fetched.social_link(link_field)
        differs, change = classify_link_change(link_field, old, new)
        if not differs:
            continue
        updates[link_field.value] = new
        if change is not None:
            changes.append(change)

    if not updates:
        return SocialDiff(updated=stored)
    return SocialDiff(
        updated=stored.model_copy(update=updates),
        changes=changes,
        dirty=True,
    )
