from typing import NamedTuple, Optional, Sequence, Tuple

SHOTLIST_NAME_HINTS = ("shotlist", "shot_list", "shot-list")
CHARACTER_NAME_HINTS = ("character", "establishment")


class MarkdownDocuments(NamedTuple):
    shotlist: str
    characters: Optional[str]


def classify_markdown_documents(files: Sequence[Tuple[str, str]]) -> MarkdownDocuments:
    """
    Decide which uploaded ``(filename, text)`` pair is the shotlist and which is
    the character document, by filename.

    A lone file is always the shotlist; if nothing is recognised the first file
    is used as the shotlist.
    """
    shotlist = ""
    characters = ""
    for filename, text in files:
        name = (filename or "").lower()
        if any(hint in name for hint in SHOTLIST_NAME_HINTS):
            shotlist = text
        elif any(hint in name for hint in CHARACTER_NAME_HINTS):
            characters = text
        elif len(files) == 1:
            shotlist = text

    if not shotlist and not characters and files:
        shotlist = files[0][1]
    return MarkdownDocuments(shotlist=shotlist, characters=characters or None)
