from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class Edit:
    """Insertion of `text` at byte `offset` of the canonical source."""

    offset: int
    text: bytes


@dataclass
class EditList:
    edits: list[Edit] = field(default_factory=list)

    def add(self, offset: int, text: str | bytes) -> None:
        if isinstance(text, str):
            text = text.encode("utf-8")
        if offset < 0:
            raise ValueError(f"negative edit offset {offset}")
        if self.edits and offset < self.edits[-1].offset:
            raise ValueError(f"edit offset {offset} precedes previous offset {self.edits[-1].offset}")
        self.edits.append(Edit(offset=offset, text=text))

    def apply(self, source: bytes) -> bytes:
        """Splice every insertion into `source` in one forward pass."""
        out: list[bytes] = []
        pos = 0
        for e in self.edits:
            if e.offset > len(source):
                raise ValueError(f"edit offset {e.offset} beyond end of source ({len(source)} bytes)")
            out.append(source[pos : e.offset])
            out.append(e.text)
            pos = e.offset
        out.append(source[pos:])
        return b"".join(out)

    def __len__(self) -> int:
        return len(self.edits)
