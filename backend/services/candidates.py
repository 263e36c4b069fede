"""
Candidate shaping for nearby-place lookups: dedupe, filter, rank.

All functions here are pure and preserve the relative order of the input
wherever they do not explicitly sort, since upstream results are often
already relevance-ordered.
"""
from __future__ import annotations

from typing import Iterable, List, Optional

from domain.models import UNKNOWN_COUNTRY, Coordinate, Place, PlaceKind, RankedPlace
from services.geo import dedupe_key, haversine_km, is_origin_adjacent


def dedupe_places(candidates: Iterable[Place], origin: Coordinate) -> List[Place]:
    """
    Drop candidates that sit on the origin or collapse onto an earlier candidate.

    First occurrence wins. Origin-adjacent candidates do not record their key,
    so they never shadow a later, non-adjacent candidate.
    """
    seen: set[str] = set()
    kept: List[Place] = []
    for place in candidates:
        key = dedupe_key(place.coordinate)
        if key in seen or is_origin_adjacent(place.coordinate, origin):
            continue
        seen.add(key)
        kept.append(place)
    return kept


def filter_by_country(candidates: Iterable[Place], country: str) -> List[Place]:
    """
    Keep candidates whose country matches exactly, ignoring case. Candidates
    whose provider reported no country never match.
    """
    target = country.strip().lower()
    return [
        p for p in candidates
        if p.country and p.country != UNKNOWN_COUNTRY and p.country.strip().lower() == target
    ]


def filter_by_kind(candidates: Iterable[Place], kind: PlaceKind) -> List[Place]:
    return [p for p in candidates if p.has_kind(kind)]


def filter_by_population(candidates: Iterable[Place], min_population: Optional[int]) -> List[Place]:
    """Drop candidates with a known population below the floor. Unknown populations pass."""
    if min_population is None:
        return list(candidates)
    return [p for p in candidates if p.population is None or p.population >= min_population]


def rank_places(
    candidates: Iterable[Place],
    origin: Coordinate,
    max_distance_km: Optional[float] = None,
    limit: int = 6,
) -> List[RankedPlace]:
    """
    Attach distances from `origin`, apply the optional radius cap, and keep the
    `limit` closest. Ties keep their input order (sorted() is stable).
    """
    if limit < 0:
        raise ValueError(f"limit must be non-negative, got {limit}")
    ranked = [RankedPlace(place=p, distance_km=haversine_km(origin, p.coordinate)) for p in candidates]
    if max_distance_km is not None:
        ranked = [r for r in ranked if r.distance_km <= max_distance_km]
    ranked = sorted(ranked, key=lambda r: r.distance_km)
    return ranked[:limit]
