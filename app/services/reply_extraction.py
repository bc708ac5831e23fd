from __future__ import annotations

from dataclasses import dataclass
from typing import Any

PathKey = str | int


@dataclass(frozen=True)
class CandidatePath:
    """One nested location in a generateContent body that may hold the answer text."""

    name: str
    keys: tuple[PathKey, ...]

    def extract(self, payload: Any) -> str | None:
        node = payload
        for key in self.keys:
            node = _step(node, key)
            if node is None:
                return None
        if not isinstance(node, str):
            return None
        text = node.strip()
        return text or None


# The response shape differs between model families and API versions.
CANDIDATE_PATHS: tuple[CandidatePath, ...] = (
    CandidatePath("candidates.content.parts", ("candidates", 0, "content", "parts", 0, "text")),
    CandidatePath("candidates.content", ("candidates", 0, "content", 0, "text")),
    CandidatePath(
        "candidates.output.content",
        ("candidates", 0, "output", 0, "content", 0, "text"),
    ),
    CandidatePath("output_text", ("output_text",)),
    CandidatePath("outputs.content", ("outputs", 0, "content", "text")),
)


def extract_reply_text(
    payload: Any,
    paths: tuple[CandidatePath, ...] = CANDIDATE_PATHS,
) -> str | None:
    for path in paths:
        text = path.extract(payload)
        if text is not None:
            return text
    return None


def _step(node: Any, key: PathKey) -> Any:
    if isinstance(key, int):
        if isinstance(node, list) and -len(node) <= key < len(node):
            return node[key]
        return None
    if isinstance(node, dict):
        return node.get(key)
    return None
