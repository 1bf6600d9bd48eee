from dataclasses import dataclass


@dataclass(frozen=True)
class DocumentSnapshot:
    """
    The full text of a document at one edit.

    Attributes:
        text: Document text
        version: Edit counter, strictly increasing for each document
    """
    text: str
    version: int
