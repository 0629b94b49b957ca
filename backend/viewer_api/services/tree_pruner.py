"""Pruning of layer trees after layers were left out.

Layers a user may not see, or that refer to missing services or layers, are
not in the response. References to them are removed from the level nodes,
and level nodes that end up without children are removed too, so the tree
does not expose the structure of hidden parts of the application.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Collection, Iterable

    from viewer_api.services import viewer_models


def _without_children(
    node: viewer_models.LayerTreeNode, removed: Collection[str]
) -> viewer_models.LayerTreeNode:
    children = [c for c in node.children_ids if c not in removed]
    if len(children) == len(node.children_ids):
        return node
    return node.model_copy(update={"children_ids": children})


def clean_layer_tree_nodes(
    valid_layer_ids: Iterable[str],
    layer_tree_nodes: list[viewer_models.LayerTreeNode],
) -> list[viewer_models.LayerTreeNode]:
    """Remove dangling references and empty level nodes from a layer tree.

    Empty level nodes are removed repeatedly until none is left, so a chain
    of nested levels that only contained left-out layers disappears
    completely. Layer nodes are never removed.

    Args:
        valid_layer_ids: Ids of the app layers in the response.
        layer_tree_nodes: All nodes of one tree, in order.

    Returns:
        New list of nodes; the input nodes are not modified.
    """
    valid_layer_ids = set(valid_layer_ids)
    known_ids = {
        n.id for n in layer_tree_nodes if n.is_level or n.id in valid_layer_ids
    }

    nodes = [
        node.model_copy(
            update={"children_ids": [c for c in node.children_ids if c in known_ids]}
        )
        for node in layer_tree_nodes
    ]

    while True:
        empty_level_ids = {n.id for n in nodes if n.is_level and not n.children_ids}
        if not empty_level_ids:
            return nodes
        nodes = [
            _without_children(n, empty_level_ids)
            for n in nodes
            if n.id not in empty_level_ids
        ]
