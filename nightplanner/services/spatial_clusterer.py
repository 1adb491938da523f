"""
Spatial Clusterer
=================
Buckets map pins into zoom-dependent lat/lng grid cells. Venue clusters
carry the dominant taste-match tier; post clusters are tier-agnostic.

Cells are recomputed from scratch on every viewport change.
"""
from typing import Callable, Dict, List, Sequence, Tuple, TypeVar

import numpy as np

from ..schemas import MatchedVenue, PostCluster, SocialPost, VenueCluster

T = TypeVar("T")

VENUE_SINGLETON_ZOOM = 15
POST_SINGLETON_ZOOM = 16

TIER_ORDER = ("perfect", "good", "other")


def venue_cell_size(zoom: int) -> float:
    if zoom <= 12:
        return 0.02
    if zoom <= 13:
        return 0.01
    return 0.005


def post_cell_size(zoom: int) -> float:
    return 0.02 if zoom <= 12 else 0.005


def dominant_tier(tally: Dict[str, int]) -> str:
    """Plurality vote; ties resolve perfect > good > other."""
    perfect, good, other = (tally.get(t, 0) for t in TIER_ORDER)
    if perfect >= good and perfect >= other:
        return "perfect"
    if good >= other:
        return "good"
    return "other"


class SpatialClusterer:
    """
    Grid clustering for map pins.

    cluster_venues() – taste-matched venues, singleton at zoom ≥ 15
    cluster_posts()  – social posts, singleton at zoom ≥ 16
    """

    # ── Public interface ──────────────────────────────────────────────────────

    def cluster_venues(self, venues: List[MatchedVenue], zoom: int) -> List[VenueCluster]:
        located = [m for m in venues if m.venue.location is not None]
        if not located:
            return []

        if zoom >= VENUE_SINGLETON_ZOOM:
            return [
                VenueCluster(
                    key=m.venue.id,
                    lat=m.venue.lat,
                    lng=m.venue.lng,
                    venues=[m],
                    count=1,
                    dominant_tier=m.match.tier,
                )
                for m in located
            ]

        clusters = []
        for key, members, (lat, lng) in self._grid(
            located,
            coords=lambda m: (m.venue.lat, m.venue.lng),
            cell_size=venue_cell_size(zoom),
            prefix="cluster",
        ):
            tally = {t: 0 for t in TIER_ORDER}
            for m in members:
                tally[m.match.tier] = tally.get(m.match.tier, 0) + 1
            clusters.append(VenueCluster(
                key=key,
                lat=lat,
                lng=lng,
                venues=members,
                count=len(members),
                dominant_tier=dominant_tier(tally),
            ))
        return clusters

    def cluster_posts(self, posts: List[SocialPost], zoom: int) -> List[PostCluster]:
        located = [p for p in posts if p.lat is not None and p.lng is not None]
        if not located:
            return []

        if zoom >= POST_SINGLETON_ZOOM:
            return [
                PostCluster(key=p.id, lat=p.lat, lng=p.lng, posts=[p], count=1)
                for p in located
            ]

        return [
            PostCluster(key=key, lat=lat, lng=lng, posts=members, count=len(members))
            for key, members, (lat, lng) in self._grid(
                located,
                coords=lambda p: (p.lat, p.lng),
                cell_size=post_cell_size(zoom),
                prefix="posts",
            )
        ]

    # ── Internal helpers ──────────────────────────────────────────────────────

    @staticmethod
    def _grid(
        items: Sequence[T],
        coords: Callable[[T], Tuple[float, float]],
        cell_size: float,
        prefix: str,
    ) -> List[Tuple[str, List[T], Tuple[float, float]]]:
        """
        Bucket items by floor(lat / cell), floor(lng / cell).

        Returns (key, members, centroid) per occupied cell, in first-seen
        order. The centroid is the plain mean of member coordinates, which
        is fine at block-level cell sizes.
        """
        points = np.array([coords(item) for item in items], dtype=float)
        cells = np.floor(points / cell_size).astype(int)

        buckets: Dict[Tuple[int, int], List[int]] = {}
        for idx, (gx, gy) in enumerate(cells.tolist()):
            buckets.setdefault((gx, gy), []).append(idx)

        result = []
        for (gx, gy), idxs in buckets.items():
            lat, lng = points[idxs].mean(axis=0)
            result.append((
                f"{prefix}_{gx}_{gy}",
                [items[i] for i in idxs],
                (float(lat), float(lng)),
            ))
        return result
