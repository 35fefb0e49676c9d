"""
Room extraction from cleaned wall lines.

Endpoints are clustered into graph nodes, junctions are split so that shared
walls become shared edges, and the bounded faces of the resulting planar graph
are traced with half-edges. Each bounded face is a room candidate. A node sits
on the intersection of its two most divergent walls when they are not
parallel, otherwise on the mean of its clustered endpoints.

Junction rule: arriving at a node along an edge, the walk continues with the
next outgoing edge counter-clockwise from the reverse of the arrival edge (the
rightmost turn in a y-up frame). Bounded faces are therefore traced clockwise
and the outer boundary of every connected component counter-clockwise.
"""

from __future__ import annotations

import math
from collections import defaultdict, deque
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Set, Tuple

from loguru import logger
from shapely.geometry import MultiPolygon, Point, Polygon
from shapely.strtree import STRtree

from sketch_topology.geometry.contract import (
    EPSILON,
    MAX_WALK_STEPS_MARGIN,
    MIN_POLYGON_AREA,
    MIN_ROOM_AREA,
    ROOM_DETECTION_GAP,
)
from sketch_topology.geometry.primitives import (
    Point2,
    Polygon2,
    Segment,
    distance,
    is_degenerate,
    line_angle_difference,
    line_intersection,
    perpendicular_distance,
    polygon_area,
    project_parameter,
    segment_intersection_params,
    signed_polygon_area,
)


@dataclass
class _Node:
    id: int
    sum_x: float
    sum_y: float
    count: int = 1
    out_edges: List["_HalfEdge"] = field(default_factory=list)
    position: Optional[Point2] = None

    @property
    def point(self) -> Point2:
        if self.position is not None:
            return self.position
        return (self.sum_x / self.count, self.sum_y / self.count)


@dataclass
class _HalfEdge:
    origin: _Node
    dest: _Node
    angle: float
    twin: Optional["_HalfEdge"] = None
    visited: bool = False
    sort_index: int = -1


class _NodeIndex:
    """Greedy endpoint clustering over a uniform grid with cell size ``gap``."""

    def __init__(self, gap: float) -> None:
        self.gap = gap
        self.cell_size = gap if gap > 0.0 else 1.0
        self.nodes: List[_Node] = []
        self._grid: Dict[Tuple[int, int], Set[int]] = defaultdict(set)
        self._cells: Dict[int, Tuple[int, int]] = {}

    def _cell(self, point: Point2) -> Tuple[int, int]:
        return (
            int(math.floor(point[0] / self.cell_size)),
            int(math.floor(point[1] / self.cell_size)),
        )

    def nearest(self, point: Point2) -> Optional[_Node]:
        cx, cy = self._cell(point)
        best: Optional[Tuple[float, int]] = None
        for ox in (-1, 0, 1):
            for oy in (-1, 0, 1):
                for node_id in self._grid.get((cx + ox, cy + oy), ()):
                    d = distance(point, self.nodes[node_id].point)
                    if d > self.gap:
                        continue
                    if best is None or (d, node_id) < best:
                        best = (d, node_id)
        return None if best is None else self.nodes[best[1]]

    def _place(self, node: _Node) -> None:
        cell = self._cell(node.point)
        previous = self._cells.get(node.id)
        if previous == cell:
            return
        if previous is not None:
            self._grid[previous].discard(node.id)
        self._grid[cell].add(node.id)
        self._cells[node.id] = cell

    def create(self, point: Point2) -> _Node:
        node = _Node(id=len(self.nodes), sum_x=point[0], sum_y=point[1])
        self.nodes.append(node)
        self._place(node)
        return node

    def add(self, point: Point2) -> _Node:
        node = self.nearest(point)
        if node is None:
            return self.create(point)
        node.sum_x += point[0]
        node.sum_y += point[1]
        node.count += 1
        self._place(node)
        return node


def _cluster_endpoints(segments: Sequence[Segment], gap: float) -> Tuple[_NodeIndex, List[Tuple[int, int]]]:
    index = _NodeIndex(gap)
    ends: List[Tuple[int, int]] = []
    for segment in segments:
        start = index.add(segment.start)
        end = index.add(segment.end)
        ends.append((start.id, end.id))
    return index, ends


def _split_junctions(
    index: _NodeIndex,
    ends: Sequence[Tuple[int, int]],
    gap: float,
) -> Dict[int, List[Tuple[float, int]]]:
    """Find interior split points per segment: T-junction nodes and proper crossings."""
    splits: Dict[int, List[Tuple[float, int]]] = defaultdict(list)
    live = [i for i, (a, b) in enumerate(ends) if a != b]
    if not live:
        return splits

    lines = {i: Segment(index.nodes[ends[i][0]].point, index.nodes[ends[i][1]].point) for i in live}
    geoms = [lines[i].to_linestring() for i in live]
    tree = STRtree(geoms)

    def _interior(t: float, length: float) -> bool:
        return t * length > gap and (1.0 - t) * length > gap

    # T-junctions: an existing node lying on another segment's interior
    for node in list(index.nodes):
        point = node.point
        for hit in sorted(int(k) for k in tree.query(Point(point).buffer(max(gap, EPSILON)))):
            seg_id = live[hit]
            if node.id in ends[seg_id]:
                continue
            line = lines[seg_id]
            if perpendicular_distance(point, line) > gap:
                continue
            t = project_parameter(point, line)
            if _interior(t, line.length):
                splits[seg_id].append((t, node.id))

    # X-junctions: two segments crossing away from all four endpoints
    for pos, seg_id in enumerate(live):
        line = lines[seg_id]
        for hit in sorted(int(k) for k in tree.query(geoms[pos])):
            if hit <= pos:
                continue
            other_id = live[hit]
            other = lines[other_id]
            params = segment_intersection_params(line, other)
            if params is None:
                continue
            t, u = params
            if not (_interior(t, line.length) and _interior(u, other.length)):
                continue
            crossing = (line.start[0] + t * line.dx, line.start[1] + t * line.dy)
            node = index.nearest(crossing)
            if node is None:
                node = index.create(crossing)
            splits[seg_id].append((t, node.id))
            splits[other_id].append((u, node.id))

    return splits


def _corner(mean: Point2, walls: Sequence[Segment], gap: float) -> Optional[Point2]:
    """Intersection of the two most divergent walls at a node, or None when they are parallel."""
    best: Optional[Tuple[float, int, int]] = None
    for i in range(len(walls)):
        for j in range(i + 1, len(walls)):
            diff = line_angle_difference(walls[i], walls[j])
            if best is None or diff > best[0]:
                best = (diff, i, j)
    if best is None:
        return None

    a, b = walls[best[1]], walls[best[2]]
    point = line_intersection(a, b)
    if point is None or distance(point, mean) > max(gap, EPSILON):
        return None

    # axis-aligned walls pin their coordinate exactly
    x, y = point
    for wall in (a, b):
        if wall.dx == 0.0:
            x = wall.start[0]
        if wall.dy == 0.0:
            y = wall.start[1]
    return (x, y)


def _resolve_corners(
    index: _NodeIndex,
    lines: Sequence[Segment],
    ends: Sequence[Tuple[int, int]],
    splits: Dict[int, List[Tuple[float, int]]],
    gap: float,
) -> None:
    """Move each node onto the meeting point of its walls; the endpoint mean stays as fallback."""
    walls: Dict[int, List[Segment]] = defaultdict(list)
    for seg_id, (a, b) in enumerate(ends):
        walls[a].append(lines[seg_id])
        if b != a:
            walls[b].append(lines[seg_id])
    for seg_id in sorted(splits):
        for _, node_id in splits[seg_id]:
            walls[node_id].append(lines[seg_id])

    moved = 0
    for node in index.nodes:
        corner = _corner(node.point, walls.get(node.id, ()), gap)
        if corner is not None:
            node.position = corner
            moved += 1
    logger.debug("Corner resolution: {moved}/{total} nodes placed on wall intersections", moved=moved, total=len(index.nodes))


def _build_edges(
    index: _NodeIndex,
    ends: Sequence[Tuple[int, int]],
    splits: Dict[int, List[Tuple[float, int]]],
) -> List[Tuple[int, int]]:
    edges: List[Tuple[int, int]] = []
    seen: Set[frozenset] = set()
    for seg_id, (a, b) in enumerate(ends):
        chain = [a] + [node_id for _, node_id in sorted(splits.get(seg_id, ()))] + [b]
        for u, v in zip(chain, chain[1:]):
            if u == v:
                continue
            key = frozenset((u, v))
            if key in seen:
                continue
            seen.add(key)
            edges.append((u, v))
    return edges


def _prune_dead_ends(edges: Sequence[Tuple[int, int]]) -> List[Tuple[int, int]]:
    adjacency: Dict[int, Set[int]] = defaultdict(set)
    for u, v in edges:
        adjacency[u].add(v)
        adjacency[v].add(u)

    queue = deque(sorted(n for n, nbrs in adjacency.items() if len(nbrs) <= 1))
    removed: Set[int] = set()
    while queue:
        node = queue.popleft()
        if node in removed or len(adjacency[node]) > 1:
            continue
        removed.add(node)
        for neighbour in adjacency[node]:
            adjacency[neighbour].discard(node)
            if neighbour not in removed and len(adjacency[neighbour]) <= 1:
                queue.append(neighbour)
        adjacency[node].clear()

    return [(u, v) for u, v in edges if u not in removed and v not in removed]


def _normalize_angle(angle: float) -> float:
    two_pi = 2.0 * math.pi
    ang = angle % two_pi
    if ang < 0.0:
        ang += two_pi
    return ang


def _build_half_edges(index: _NodeIndex, edges: Sequence[Tuple[int, int]]) -> List[_HalfEdge]:
    half_edges: List[_HalfEdge] = []
    for u, v in edges:
        node_u = index.nodes[u]
        node_v = index.nodes[v]
        pu, pv = node_u.point, node_v.point
        angle_uv = _normalize_angle(math.atan2(pv[1] - pu[1], pv[0] - pu[0]))
        angle_vu = _normalize_angle(angle_uv + math.pi)

        forward = _HalfEdge(origin=node_u, dest=node_v, angle=angle_uv)
        backward = _HalfEdge(origin=node_v, dest=node_u, angle=angle_vu)
        forward.twin = backward
        backward.twin = forward
        node_u.out_edges.append(forward)
        node_v.out_edges.append(backward)
        half_edges.append(forward)
        half_edges.append(backward)

    for node in index.nodes:
        if not node.out_edges:
            continue
        node.out_edges.sort(key=lambda e: (e.angle, e.dest.id))
        for idx, edge in enumerate(node.out_edges):
            edge.sort_index = idx
    return half_edges


def _next_edge(edge: _HalfEdge) -> Optional[_HalfEdge]:
    twin = edge.twin
    if twin is None:
        return None
    origin = twin.origin
    if not origin.out_edges:
        return None
    next_idx = (twin.sort_index + 1) % len(origin.out_edges)
    return origin.out_edges[next_idx]


def _traverse_faces(half_edges: List[_HalfEdge]) -> List[List[Point2]]:
    faces: List[List[Point2]] = []
    max_steps = len(half_edges) + MAX_WALK_STEPS_MARGIN

    for first in half_edges:
        if first.visited:
            continue
        face: List[Point2] = []
        edge = first
        steps = 0
        while True:
            steps += 1
            edge.visited = True
            face.append(edge.origin.point)
            nxt = _next_edge(edge)
            if nxt is None:
                face = []
                break
            edge = nxt
            if edge is first:
                break
            if steps > max_steps:
                logger.debug("Face walk aborted at step limit")
                face = []
                break
        if len(face) >= 3:
            faces.append(face)
    return faces


def _drop_collinear(points: Sequence[Point2]) -> List[Point2]:
    ring = list(points)
    changed = True
    while changed and len(ring) >= 3:
        changed = False
        for i in range(len(ring)):
            prev = ring[i - 1]
            cur = ring[i]
            nxt = ring[(i + 1) % len(ring)]
            ax, ay = cur[0] - prev[0], cur[1] - prev[1]
            bx, by = nxt[0] - cur[0], nxt[1] - cur[1]
            scale = math.hypot(ax, ay) * math.hypot(bx, by)
            if abs(ax * by - ay * bx) <= EPSILON * max(scale, 1.0):
                del ring[i]
                changed = True
                break
    return ring


def _repair(points: Sequence[Point2]) -> List[Point2]:
    poly = Polygon(points)
    if poly.is_valid:
        return list(points)
    fixed = poly.buffer(0)
    if isinstance(fixed, MultiPolygon):
        parts = sorted(fixed.geoms, key=lambda p: p.area, reverse=True)
        fixed = parts[0] if parts else Polygon()
    if fixed.is_empty or not isinstance(fixed, Polygon):
        return []
    return [(float(x), float(y)) for x, y in list(fixed.exterior.coords)[:-1]]


def _canonical(points: Sequence[Point2]) -> Polygon2:
    ring = [(float(x), float(y)) for x, y in points]
    if signed_polygon_area(ring) < 0.0:
        ring.reverse()
    start = min(range(len(ring)), key=lambda i: (round(ring[i][0], 6), round(ring[i][1], 6), i))
    return tuple(ring[start:] + ring[:start])


def extract_loops(
    segments: Sequence[Segment],
    max_gap: float = ROOM_DETECTION_GAP,
    split_junctions: bool = True,
) -> List[Polygon2]:
    """
    Return every bounded face of the wall graph as a closed polygon.

    Endpoints closer than ``max_gap`` share a node. Open chains never close and
    contribute nothing. Rooms are counter-clockwise (y-up) and start at their
    lowest-x, then lowest-y vertex.
    """
    lines = [s for s in segments if not is_degenerate(s)]
    if len(lines) < 3:
        return []

    index, ends = _cluster_endpoints(lines, max_gap)
    splits = _split_junctions(index, ends, max_gap) if split_junctions else {}
    _resolve_corners(index, lines, ends, splits, max_gap)
    edges = _prune_dead_ends(_build_edges(index, ends, splits))
    if len(edges) < 3:
        return []

    half_edges = _build_half_edges(index, edges)
    faces = _traverse_faces(half_edges)

    loops: List[Polygon2] = []
    for face in faces:
        if signed_polygon_area(face) >= -EPSILON:
            # outer boundary of a component
            continue
        ring = _drop_collinear(face)
        if len(ring) < 3:
            continue
        ring = _repair(ring)
        if len(ring) < 3 or polygon_area(ring) <= EPSILON:
            continue
        loops.append(_canonical(ring))

    logger.debug(
        "Loop extraction: {nodes} nodes, {edges} edges, {faces} faces, {loops} loops",
        nodes=len(index.nodes),
        edges=len(edges),
        faces=len(faces),
        loops=len(loops),
    )
    return loops


def detect_rooms(
    segments: Sequence[Segment],
    max_gap: float = ROOM_DETECTION_GAP,
    min_area: float = MIN_ROOM_AREA,
    split_junctions: bool = True,
) -> List[Polygon2]:
    """Closed loops of the wall graph with an area of at least ``min_area``."""
    loops = extract_loops(segments, max_gap=max_gap, split_junctions=split_junctions)
    rooms = remove_small_polygons(loops, min_area=min_area)
    if len(rooms) != len(loops):
        logger.debug("Room detection: {dropped} loop(s) below {min_area}", dropped=len(loops) - len(rooms), min_area=min_area)
    return rooms


def remove_small_polygons(polygons: Sequence[Sequence[Point2]], min_area: float = MIN_POLYGON_AREA) -> List[Polygon2]:
    """Keep polygons with at least three vertices and an area of at least ``min_area``."""
    return [tuple(p) for p in polygons if len(p) >= 3 and polygon_area(p) >= min_area]
