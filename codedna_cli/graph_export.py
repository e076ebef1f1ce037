"""Graph export helpers for DOT and simple standalone HTML outputs."""

from __future__ import annotations

import html
import json
from pathlib import Path
from typing import Dict, List


def export_dot(nodes: List[dict], edges: List[dict], output_file: Path, focus: str = "") -> None:
    """Write the stored import graph as Graphviz DOT, ranked files drawn larger."""
    by_path = {row["path"]: row for row in nodes}
    selected = _focused_subgraph(by_path, edges, focus)

    lines = ["digraph CodeDNA {"]
    lines.append("  rankdir=LR;")
    lines.append("  node [shape=box];")

    for path in selected["nodes"]:
        rank = float(by_path[path].get("pagerank") or 0.0)
        label = f"{_esc(path)}\\n{rank:.3f}"
        lines.append(f'  "{_esc(path)}" [label="{label}", fontsize={10 + int(rank * 8)}];')

    for edge in selected["edges"]:
        style = "dashed" if edge["type"] == "dynamic" else "solid"
        lines.append(f'  "{_esc(edge["source"])}" -> "{_esc(edge["target"])}" [style={style}];')

    lines.append("}")
    output_file.write_text("\n".join(lines) + "\n", encoding="utf-8")


def export_html(nodes: List[dict], edges: List[dict], output_file: Path, focus: str = "") -> None:
    """Write a dependency-free HTML page listing ranked files and their imports."""
    by_path = {row["path"]: row for row in nodes}
    selected = _focused_subgraph(by_path, edges, focus)
    payload = {
        "nodes": [
            {"id": path, "rank": round(float(by_path[path].get("pagerank") or 0.0), 3)}
            for path in selected["nodes"]
        ],
        "edges": selected["edges"],
    }
    output_file.write_text(_basic_html_export(payload), encoding="utf-8")


def _basic_html_export(graph_payload: dict) -> str:
    title = html.escape("CodeDNA Import Graph")
    data = json.dumps(graph_payload).replace("</", "<\\/")
    return f"""<!doctype html>
<html>
<head>
  <meta charset="utf-8" />
  <title>{title}</title>
  <style>
    body {{ font-family: ui-monospace, SFMono-Regular, Menlo, monospace; margin: 20px; }}
    #container {{ display: grid; grid-template-columns: 1fr 1fr; gap: 18px; }}
    .panel {{ border: 1px solid #ddd; border-radius: 8px; padding: 10px; }}
    ul {{ list-style: none; padding: 0; margin: 0; }}
    li {{ margin: 4px 0; }}
  </style>
</head>
<body>
  <h1>{title}</h1>
  <div id="container">
    <div class="panel">
      <h2>Files</h2>
      <ul id="nodes"></ul>
    </div>
    <div class="panel">
      <h2>Imports</h2>
      <ul id="edges"></ul>
    </div>
  </div>
  <script>
    const graph = {data};
    const nodesEl = document.getElementById('nodes');
    const edgesEl = document.getElementById('edges');
    graph.nodes.forEach(n => {{
      const li = document.createElement('li');
      li.textContent = `${{n.rank.toFixed(3)}}  ${{n.id}}`;
      nodesEl.appendChild(li);
    }});
    graph.edges.forEach(e => {{
      const li = document.createElement('li');
      li.textContent = `${{e.source}} --${{e.type}}--> ${{e.target}}`;
      edgesEl.appendChild(li);
    }});
  </script>
</body>
</html>
"""


def _focused_subgraph(nodes: Dict[str, dict], edges: List[dict], focus: str) -> Dict[str, List]:
    edges = [
        {"source": e["source"], "target": e["target"], "type": e["type"]}
        for e in edges
        if e["source"] in nodes and e["target"] in nodes
    ]
    if not focus:
        return {"nodes": list(nodes.keys()), "edges": edges}

    focus_ids = {path for path in nodes if focus in path}
    if not focus_ids:
        return {"nodes": list(nodes.keys()), "edges": edges}

    edge_subset = [e for e in edges if e["source"] in focus_ids or e["target"] in focus_ids]
    node_subset = set(focus_ids)
    for e in edge_subset:
        node_subset.add(e["source"])
        node_subset.add(e["target"])
    return {"nodes": sorted(node_subset), "edges": edge_subset}


def _esc(text: str) -> str:
    return text.replace("\\", "\\\\").replace('"', '\\"')
