from .factories import mk_cell, mk_chain, mk_pruned_tree, mk_shared_tree
from .parity import assert_hex_equal

__all__ = [
    "mk_cell",
    "mk_chain",
    "mk_pruned_tree",
    "mk_shared_tree",
    "assert_hex_equal",
]
