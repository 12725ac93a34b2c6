"""Hierarchy and geometry for the treemap and bubble views.

The hierarchy is a small tagged variant: ``LeafNode`` carries one indication x modality
cell, ``GroupNode`` carries a name and children. Both layouts recurse over it and
return flat lists of positioned shapes that the chart builders draw with Altair.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple, Union

import numpy as np

from core.aggregation import HeatmapCell
from core.categories import indication_category, modality_category


EMPTY_LEAF_WEIGHT = 0.25
PACK_ANGLES = 36


@dataclass(frozen=True)
class LeafNode:
    indication: str
    modality: str
    count: int
    value: float

    @property
    def name(self) -> str:
        return f"{self.indication} × {self.modality}"


@dataclass(frozen=True)
class GroupNode:
    name: str
    children: Tuple["Node", ...]


Node = Union[LeafNode, GroupNode]


@dataclass(frozen=True)
class TreemapRect:
    node: Node
    x0: float
    y0: float
    x1: float
    y1: float
    depth: int


@dataclass(frozen=True)
class PackedCircle:
    node: Node
    x: float
    y: float
    r: float
    depth: int


def node_value(node: Node) -> float:
    if isinstance(node, LeafNode):
        return node.value
    return sum(node_value(c) for c in node.children)


def leaf_weight(cell: HeatmapCell, value: Optional[float] = None) -> float:
    v = float(cell.count if value is None else value)
    return v if v > 0 else EMPTY_LEAF_WEIGHT


def build_hierarchy(
    cells: Sequence[HeatmapCell],
    group_by: Optional[str] = None,
    *,
    values: Optional[Sequence[float]] = None,
    root_name: str = "All deals",
) -> GroupNode:
    """Wrap cells as leaves, optionally grouped by derived indication/modality category."""
    if group_by not in (None, "indication", "modality"):
        raise ValueError(f"unsupported grouping: {group_by}")

    leaves = [
        LeafNode(c.indication, c.modality, c.count, leaf_weight(c, None if values is None else values[i]))
        for i, c in enumerate(cells)
    ]
    if group_by is None:
        return GroupNode(root_name, tuple(leaves))

    categorize = indication_category if group_by == "indication" else modality_category
    groups: Dict[str, List[Node]] = {}
    for leaf in leaves:
        key = categorize(leaf.indication if group_by == "indication" else leaf.modality)
        groups.setdefault(key, []).append(leaf)
    return GroupNode(root_name, tuple(GroupNode(name, tuple(children)) for name, children in groups.items()))


# ---------------- Treemap ----------------
def _worst(row: List[float], side: float) -> float:
    s = sum(row)
    if side <= 0 or s <= 0 or min(row) <= 0:
        return math.inf
    return max(side * side * max(row) / (s * s), (s * s) / (side * side * min(row)))


def _squarify_areas(areas: List[float], x: float, y: float, w: float, h: float) -> List[Tuple[float, float, float, float]]:
    rects: List[Tuple[float, float, float, float]] = []
    i = 0
    while i < len(areas):
        side = min(w, h)
        row = [areas[i]]
        i += 1
        while i < len(areas) and _worst(row + [areas[i]], side) <= _worst(row, side):
            row.append(areas[i])
            i += 1
        s = sum(row)
        if w >= h:
            col_w = s / h if h > 0 else 0.0
            cy = y
            for a in row:
                rh = a / col_w if col_w > 0 else 0.0
                rects.append((x, cy, col_w, rh))
                cy += rh
            x += col_w
            w -= col_w
        else:
            row_h = s / w if w > 0 else 0.0
            cx = x
            for a in row:
                rw = a / row_h if row_h > 0 else 0.0
                rects.append((cx, y, rw, row_h))
                cx += rw
            y += row_h
            h -= row_h
    return rects


def squarify(node: Node, x: float, y: float, width: float, height: float, *, padding: float = 2.0, depth: int = 0) -> List[TreemapRect]:
    """Squarified treemap (Bruls et al.) over the hierarchy; parents precede their children."""
    out = [TreemapRect(node, x, y, x + width, y + height, depth)]
    if isinstance(node, LeafNode) or not node.children:
        return out

    pad = padding if depth > 0 else 0.0
    ix, iy = x + pad, y + pad
    iw, ih = max(0.0, width - 2 * pad), max(0.0, height - 2 * pad)
    children = sorted(node.children, key=node_value, reverse=True)
    total = sum(node_value(c) for c in children)
    if total <= 0 or iw <= 0 or ih <= 0:
        return out

    areas = [node_value(c) / total * iw * ih for c in children]
    for child, (cx, cy, cw, ch) in zip(children, _squarify_areas(areas, ix, iy, iw, ih)):
        out.extend(squarify(child, cx, cy, cw, ch, padding=padding, depth=depth + 1))
    return out


# ---------------- Circle packing ----------------
def _place_siblings(radii: Sequence[float]) -> np.ndarray:
    """Greedy placement: each circle goes to the free spot touching a placed circle nearest the origin."""
    centers = np.zeros((len(radii), 2))
    if len(radii) < 2:
        return centers
    r = np.asarray(radii, dtype=float)
    centers[1] = (r[0] + r[1], 0.0)
    angles = np.linspace(0.0, 2 * math.pi, PACK_ANGLES, endpoint=False)
    unit = np.stack([np.cos(angles), np.sin(angles)], axis=1)
    for i in range(2, len(r)):
        placed, placed_r = centers[:i], r[:i]
        # candidates tangent to each placed circle at PACK_ANGLES angles
        cand = (placed[:, None, :] + (placed_r[:, None, None] + r[i]) * unit[None, :, :]).reshape(-1, 2)
        dist = np.linalg.norm(cand[:, None, :] - placed[None, :, :], axis=2)
        ok = np.all(dist >= placed_r[None, :] + r[i] - 1e-9, axis=1)
        cand = cand[ok]
        if len(cand) == 0:
            extent = float(np.max(np.linalg.norm(placed, axis=1) + placed_r))
            centers[i] = (extent + r[i], 0.0)
            continue
        centers[i] = cand[np.argmin(np.linalg.norm(cand, axis=1))]
    return centers


def _enclose(centers: np.ndarray, radii: Sequence[float]) -> Tuple[float, float, float]:
    r = np.asarray(radii, dtype=float)
    lo = (centers - r[:, None]).min(axis=0)
    hi = (centers + r[:, None]).max(axis=0)
    cx, cy = (lo + hi) / 2.0
    radius = float(np.max(np.linalg.norm(centers - (cx, cy), axis=1) + r))
    return float(cx), float(cy), radius


def _pack_local(node: Node, padding: float, depth: int) -> Tuple[float, List[Tuple[Node, float, float, float, int]]]:
    """Pack `node` around its own center; returns its radius and placed shapes (relative coords)."""
    if isinstance(node, LeafNode):
        radius = math.sqrt(max(node.value, 0.0))
        return radius, [(node, 0.0, 0.0, radius, depth)]
    if not node.children:
        return 0.0, [(node, 0.0, 0.0, 0.0, depth)]

    children = sorted(node.children, key=node_value, reverse=True)
    packed = [_pack_local(c, padding, depth + 1) for c in children]
    radii = [p[0] + padding for p in packed]
    centers = _place_siblings(radii)
    cx, cy, enclosing = _enclose(centers, radii)

    shapes: List[Tuple[Node, float, float, float, int]] = [(node, 0.0, 0.0, enclosing + padding, depth)]
    for (_, child_shapes), (px, py) in zip(packed, centers):
        for n, sx, sy, sr, d in child_shapes:
            shapes.append((n, sx + px - cx, sy + py - cy, sr, d))
    return enclosing + padding, shapes


def pack(node: Node, *, width: float, height: float, padding: float = 0.15) -> List[PackedCircle]:
    """Circle-pack the hierarchy into a width x height canvas; parents precede their children."""
    radius, shapes = _pack_local(node, padding, 0)
    if radius <= 0:
        return [PackedCircle(n, width / 2.0, height / 2.0, 0.0, d) for n, _, _, _, d in shapes]
    scale = min(width, height) / (2.0 * radius)
    return [
        PackedCircle(n, width / 2.0 + sx * scale, height / 2.0 + sy * scale, sr * scale, d)
        for n, sx, sy, sr, d in shapes
    ]


def leaves(shapes: Sequence[Union[TreemapRect, PackedCircle]]) -> list:
    return [s for s in shapes if isinstance(s.node, LeafNode)]
