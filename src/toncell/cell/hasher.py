"""
Cell hashing.

For every significant level L of a cell's level mask the hasher computes

    hash_L = SHA256(d1(mask applied at L) || d2
                    || payload (first computed level) or hash of the level below
                    || depth_L of each reference (2 bytes, big-endian)
                    || hash_L of each reference)

and depth_L = 1 + max(reference depths), or 0 for a leaf. Merkle proof and
update cells take their references' hashes and depths one level up. A
pruned branch computes only its top level and answers the lower ones from
its payload.

Results are written once into the cell (``_hashes`` / ``_depths``). The
traversal runs on an explicit work stack in post-order, so shared subtrees
are hashed once and deep chains do not hit the recursion limit.
"""

from typing import List

from ..codec.hashes import sha256_bytes
from ..runtime.errors import CellOverflowError, CyclicGraphError
from .kinds import CellType

MAX_DEPTH = 1024
DEPTH_BYTES = 2


def ensure_hashes(root) -> None:
    """
    Compute and memoize hashes and depths for root and every unhashed cell
    below it.

    Raises:
        CyclicGraphError: If a cell is reachable from itself
        CellOverflowError: If a depth exceeds 1024
    """
    if root._hashes is not None:
        return
    stack = [root]
    expanded = set()
    while stack:
        cell = stack[-1]
        if cell._hashes is not None:
            stack.pop()
            continue
        pending = [ref for ref in cell._refs if ref._hashes is None]
        if not pending:
            _compute(cell)
            stack.pop()
            expanded.discard(id(cell))
            continue
        # Back on top with unhashed children: one of them is an ancestor
        if id(cell) in expanded:
            raise CyclicGraphError(
                "cell references one of its own ancestors",
                details={"bits": len(cell._bits), "refs": len(cell._refs)},
            )
        expanded.add(id(cell))
        stack.extend(reversed(pending))


def _compute(cell) -> None:
    mask = cell._level_mask
    total = mask.hash_count
    own = 1 if cell.kind is CellType.PRUNED_BRANCH else total
    offset = total - own
    child_shift = 1 if cell.kind.is_merkle else 0

    hashes: List[bytes] = []
    depths: List[int] = []
    hash_index = 0
    for li in mask.significant_levels():
        if hash_index < offset:
            hash_index += 1
            continue
        parts = [cell.descriptors(mask.apply(li))]
        if hash_index == offset:
            parts.append(cell.padded_payload())
        else:
            parts.append(hashes[hash_index - offset - 1])

        child_level = li + child_shift
        depth = 0
        for ref in cell._refs:
            child_depth = ref.get_depth(child_level)
            parts.append(child_depth.to_bytes(DEPTH_BYTES, "big"))
            depth = max(depth, child_depth)
        if cell._refs:
            depth += 1
            if depth > MAX_DEPTH:
                raise CellOverflowError(f"cell depth {depth} exceeds {MAX_DEPTH}",
                                        details={"depth": depth})
        for ref in cell._refs:
            parts.append(ref.get_hash(child_level))

        hashes.append(sha256_bytes(b"".join(parts)))
        depths.append(depth)
        hash_index += 1

    # _hashes doubles as the "computed" marker, so it is written last
    cell._depths = depths
    cell._hashes = hashes
