"""Patch parser for GitHub diff-relative review comment positions."""

from src.services.reviewer.schemas import ReviewComment

HUNK_MARKER = "@@"


def map_patch_positions(patch: str) -> dict[int, str]:
    """Map every diff position in a patch to its patch line.

    GitHub anchors inline review comments by *position*, not by file line
    number. The line just below the first "@@" hunk header is position 1 and
    every following line of the patch text counts, including blank lines,
    later hunk headers and the headers of further files concatenated into the
    same patch stream. Lines before the first hunk header have no position.
    Only a newline ends a line, and a trailing newline adds no position.

    Args:
        patch: Unified diff patch string

    Returns:
        Ordered dict of position -> patch line
    """
    positions: dict[int, str] = {}

    if not patch:
        return positions

    lines = patch.split("\n")
    if lines[-1] == "":
        lines.pop()

    position = 0
    for line in lines:
        if position == 0:
            if line.startswith(HUNK_MARKER):
                position = 1
            continue

        positions[position] = line
        position += 1

    return positions


def count_patch_positions(patch: str) -> int:
    """Highest valid position in a patch (0 when there is no hunk)."""
    return len(map_patch_positions(patch))


def filter_comments_by_valid_positions(
    comments: list[ReviewComment],
    patches: dict[str, str],
) -> tuple[list[ReviewComment], list[ReviewComment]]:
    """Split comments into those whose position lies inside their file's patch and the rest.

    Args:
        comments: Review comments to check
        patches: Dict mapping filename to patch content

    Returns:
        Tuple of (valid_comments, invalid_comments)
    """
    max_positions = {filename: count_patch_positions(patch) for filename, patch in patches.items()}

    valid = []
    invalid = []

    for comment in comments:
        max_position = max_positions.get(comment.path, 0)
        if 1 <= comment.position <= max_position:
            valid.append(comment)
        else:
            invalid.append(comment)

    return valid, invalid
