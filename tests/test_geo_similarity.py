"""거리/중간점/코사인 유사도 유틸 테스트."""

from __future__ import annotations

import pytest

from app.core.geo import Coordinate, haversine_distance, midpoint
from app.core.similarity import cosine_similarity, rank_by_similarity

PYRAMIDS = Coordinate(latitude=29.9792, longitude=31.1342)
MUSEUM = Coordinate(latitude=30.0478, longitude=31.2336)


def test_haversine_distance_between_pyramids_and_museum() -> None:
    distance = haversine_distance(PYRAMIDS, MUSEUM)

    assert 11.5 < distance < 13.0
    assert distance == round(distance, 2)
    assert haversine_distance(MUSEUM, PYRAMIDS) == distance


def test_haversine_distance_same_point_is_zero() -> None:
    assert haversine_distance(PYRAMIDS, PYRAMIDS) == 0.0


def test_midpoint_lies_between_both_points() -> None:
    center = midpoint(PYRAMIDS, MUSEUM)

    assert PYRAMIDS.latitude < center.latitude < MUSEUM.latitude
    assert PYRAMIDS.longitude < center.longitude < MUSEUM.longitude
    assert haversine_distance(center, PYRAMIDS) == pytest.approx(haversine_distance(center, MUSEUM), abs=0.02)


def test_coordinate_of_requires_both_values() -> None:
    assert Coordinate.of({"latitude": 30.0, "longitude": 31.0}) == Coordinate(30.0, 31.0)
    assert Coordinate.of({"latitude": 30.0, "longitude": None}) is None
    assert Coordinate.of(object()) is None


def test_cosine_similarity_bounds_and_zero_vector() -> None:
    assert cosine_similarity([1.0, 0.0], [1.0, 0.0]) == pytest.approx(1.0)
    assert cosine_similarity([1.0, 0.0], [-1.0, 0.0]) == pytest.approx(-1.0)
    assert cosine_similarity([1.0, 0.0], [0.0, 1.0]) == pytest.approx(0.0)
    assert cosine_similarity([0.0, 0.0], [1.0, 2.0]) == 0.0


def test_rank_by_similarity_orders_desc_and_keeps_ties_stable() -> None:
    candidates = ["a", "b", "c", "d"]
    vectors = [[0.0, 1.0], [1.0, 0.0], [1.0, 0.0], [1.0, 1.0]]

    ranked = rank_by_similarity(candidates, vectors, [1.0, 0.0], top_k=3)

    assert [name for name, _ in ranked] == ["b", "c", "d"]
    assert ranked[0][1] == 1.0
    assert ranked[2][1] == 0.71


def test_rank_by_similarity_respects_top_k() -> None:
    ranked = rank_by_similarity(["a", "b"], [[1.0], [1.0]], [1.0], top_k=0)

    assert ranked == []
