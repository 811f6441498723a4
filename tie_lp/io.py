"""Data loading helpers for node/edge CSV tables.

The node table needs a unique identifier column (``id`` by default); any other
columns are ignored. The edge table needs ``source`` and ``target`` columns.
Edge direction is dropped when the graph is built.
"""

from typing import Tuple

import os

import pandas as pd

from .graph import GraphStore, build_graph


def load_tables(
    data_dir: str, nodes_csv: str, edges_csv: str
) -> Tuple[pd.DataFrame, pd.DataFrame]:
    """Load the node and edge CSV files from a directory."""
    nodes = pd.read_csv(os.path.join(data_dir, nodes_csv))
    edges = pd.read_csv(os.path.join(data_dir, edges_csv))
    return nodes, edges


def graph_from_tables(
    nodes: pd.DataFrame,
    edges: pd.DataFrame,
    node_id_column: str = "id",
    source_column: str = "source",
    target_column: str = "target",
) -> GraphStore:
    """Build a simple undirected graph from node and edge tables.

    Raises:
        ValueError: If a required column is missing or node ids repeat.
        UnknownNode: If an edge references a node absent from the node table.
    """
    if node_id_column not in nodes.columns:
        raise ValueError(f"Node table is missing column: {node_id_column}")
    for column in (source_column, target_column):
        if column not in edges.columns:
            raise ValueError(f"Edge table is missing column: {column}")
    if nodes[node_id_column].duplicated().any():
        raise ValueError(f"Node ids in column '{node_id_column}' are not unique")
    # tolist() turns numpy scalars into plain Python values
    node_ids = nodes[node_id_column].tolist()
    pairs = list(
        zip(edges[source_column].tolist(), edges[target_column].tolist())
    )
    return build_graph(pairs, nodes=node_ids)
