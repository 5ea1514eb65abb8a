from __future__ import annotations
import math
from typing import Dict, Iterable, Tuple

import networkx as nx


def force_layout(
    node_ids: Iterable[str],
    links: Iterable[Tuple[str, str, float]],
    iterations: int = 50,
    seed: int = 42,
    scale: float = 1.0,
) -> Dict[str, Tuple[float, float]]:
    """
    Fruchterman-Reingold (spring) positions for the render model.
    - links are (source, target, weight); heavier links pull harder.
    - seeded, so the same graph always lands in the same place.
    """
    G = nx.Graph()
    G.add_nodes_from(node_ids)
    for src, dst, w in links:
        if src in G and dst in G and src != dst:
            prev = G.get_edge_data(src, dst, {}).get("weight", 0)
            G.add_edge(src, dst, weight=max(prev, w))

    n = G.number_of_nodes()
    if n == 0:
        return {}
    if n == 1:
        only = next(iter(G.nodes))
        return {only: (0.0, 0.0)}

    pos = nx.spring_layout(
        G,
        k=1.0 / math.sqrt(n),
        iterations=iterations,
        weight="weight",
        seed=seed,
        scale=scale,
    )
    return {k: (float(v[0]), float(v[1])) for k, v in pos.items()}
