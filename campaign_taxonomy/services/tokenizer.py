"""
Positional tokenizer for campaign names.

Splits a campaign name into exactly one token per schema position, using the
separator each position declares after itself. Lookahead over an empty
separator is single-step only.
"""

from collections.abc import Sequence

from ..models.entities import TokenPositionRule

UNDERSCORE = "_"


def tokenize(campaign_name: str, positions: Sequence[TokenPositionRule]) -> list[str]:
    """
    Split a campaign name into positional tokens.

    Args:
        campaign_name: Raw campaign name
        positions: Ordered schema positions

    Returns:
        One token per position; positions past the end of the name get ``""``
        and the last position absorbs whatever text remains.
    """
    tokens: list[str] = []
    remaining = campaign_name
    count = len(positions)

    for i, position in enumerate(positions):
        if i == count - 1:
            tokens.append(remaining)
            break

        if position.separator == UNDERSCORE:
            cut = remaining.find(UNDERSCORE)
            if cut != -1:
                tokens.append(remaining[:cut])
                remaining = remaining[cut + 1:]
            else:
                tokens.append(remaining)
                remaining = ""
            continue

        # No usable separator here: the token runs until the next position's separator.
        next_separator = positions[i + 1].separator
        lookahead = next_separator or UNDERSCORE
        cut = remaining.find(lookahead)
        if cut != -1:
            tokens.append(remaining[:cut])
            # Only a declared underscore is consumed from the cursor.
            consumed = len(UNDERSCORE) if next_separator == UNDERSCORE else 0
            remaining = remaining[cut + consumed:]
        else:
            tokens.append(remaining)
            remaining = ""

    return tokens


def join_tokens(tokens: Sequence[str], separator: str = UNDERSCORE) -> str:
    """Join non-empty tokens back into a name."""
    return separator.join(token for token in tokens if token)
