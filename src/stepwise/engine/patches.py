"""Conflict-checked composition of memory patches."""

from typing import Iterable, Optional, Set

from stepwise.domain.exceptions import MemoryPatchConflictError
from stepwise.domain.tool import ChatMemory, ChatMemoryPatch


def compose_patches(
    memory: ChatMemory, patches: Iterable[Optional[ChatMemoryPatch]]
) -> ChatMemory:
    """
    Applies memory patches in order and rejects overlapping writes.

    Every patch runs against a copy of the base snapshot, the same memory the
    tool handlers saw. A key is written by a patch when the patch adds it,
    removes it or changes its value relative to the base. Write sets are
    merged into the result in order.

    Args:
        memory: Base memory snapshot.
        patches: Patches to apply; ``None`` entries are skipped.

    Returns:
        The composed memory snapshot.

    Raises:
        MemoryPatchConflictError: If two patches write the same key.
    """
    base = dict(memory)
    acc = dict(base)
    written: Set[str] = set()
    for patch in patches:
        if patch is None:
            continue
        result = dict(patch(dict(base)))
        changed = [key for key, value in result.items() if key not in base or base[key] != value]
        removed = [key for key in base if key not in result]
        for key in changed + removed:
            if key in written:
                raise MemoryPatchConflictError(key)
            written.add(key)
        for key in changed:
            acc[key] = result[key]
        for key in removed:
            acc.pop(key, None)
    return acc
