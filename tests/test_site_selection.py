"""명소 후보 검색과 하루 명소 선택 테스트."""

from __future__ import annotations

import asyncio
import random

from app.schemas.trip import SiteCandidate
from app.services.candidate_retriever import retrieve_site_candidates
from app.services.site_selector import (
    get_day_one_sites,
    get_regional_fallback_sites,
    select_sites_by_location,
)
from tests.mocks.mock_data_store import InMemoryDataStore, build_sample_catalog, make_site


def _candidate(name: str, city: str, score: float, governorate: str | None = None) -> SiteCandidate:
    return SiteCandidate(name=name, city=city, governorate=governorate or city, similarity_score=score)


def test_retrieve_ranks_filtered_sites_by_similarity() -> None:
    sites, restaurants = build_sample_catalog()
    store = InMemoryDataStore(sites, restaurants)

    candidates = asyncio.run(
        retrieve_site_candidates(store, [1.0, 0.0, 0.0], city="Cairo", max_cost=1300, max_age=25, limit=3)
    )

    assert [site.name for site in candidates] == ["Egyptian Museum", "Citadel of Saladin", "Khan el-Khalili"]
    assert candidates[0].similarity_score == 0.99
    assert candidates[0].cost_egp == 1000
    assert store.calls[0] == ("find_sites", {"city": "Cairo", "max_cost": 1300, "max_age": 25})


def test_retrieve_excludes_sites_over_budget_or_age_limit() -> None:
    store = InMemoryDataStore(
        [
            make_site("Cheap Site", "Cairo", budget=100, embedding=[1.0, 0.0]),
            make_site("Expensive Site", "Cairo", budget=5000, embedding=[1.0, 0.0]),
            make_site("Adults Only", "Cairo", budget=100, age_limit=21, embedding=[1.0, 0.0]),
            make_site("Unknown Age", "Cairo", budget=100, age_limit=None, embedding=[1.0, 0.0]),
        ]
    )

    candidates = asyncio.run(retrieve_site_candidates(store, [1.0, 0.0], city="cairo", max_cost=1000, max_age=18))

    assert [site.name for site in candidates] == ["Cheap Site"]


def test_retrieve_falls_back_to_city_only_with_synthetic_scores() -> None:
    store = InMemoryDataStore(
        [make_site("Karnak Temple", "Luxor", embedding=None), make_site("Luxor Temple", "Luxor", embedding=None)]
    )

    candidates = asyncio.run(
        retrieve_site_candidates(store, [1.0, 0.0], city="Luxor", limit=5, rng=random.Random(7))
    )

    assert [site.name for site in candidates] == ["Karnak Temple", "Luxor Temple"]
    assert all(0.5 <= site.similarity_score <= 1.0 for site in candidates)
    assert [name for name, _ in store.calls] == ["find_sites", "find_sites_by_city"]


def test_retrieve_uses_synthetic_scores_when_embedding_dimensions_mismatch() -> None:
    sites, _ = build_sample_catalog()
    store = InMemoryDataStore(sites)

    candidates = asyncio.run(
        retrieve_site_candidates(store, [1.0, 0.0, 0.0, 0.0], city="Alexandria", limit=5, rng=random.Random(3))
    )

    assert {site.name for site in candidates} == {"Bibliotheca Alexandrina", "Citadel of Qaitbay"}
    assert all(0.5 <= site.similarity_score <= 1.0 for site in candidates)


def test_retrieve_uses_synthetic_scores_when_embeddings_are_not_numeric() -> None:
    store = InMemoryDataStore(
        [
            make_site("Karnak Temple", "Luxor", embedding=["x", "y"]),
            make_site("Luxor Temple", "Luxor", embedding=["x", "y"]),
        ]
    )

    candidates = asyncio.run(retrieve_site_candidates(store, [1.0, 0.0], city="Luxor", rng=random.Random(5)))

    assert [site.name for site in candidates] == ["Karnak Temple", "Luxor Temple"]
    assert all(0.5 <= site.similarity_score <= 1.0 for site in candidates)


def test_retrieve_returns_empty_list_when_store_fails() -> None:
    store = InMemoryDataStore(failing_methods={"find_sites"})

    assert asyncio.run(retrieve_site_candidates(store, [1.0], city="Cairo")) == []


def test_select_sites_prefers_location_group_with_best_average() -> None:
    candidates = [
        _candidate("Karnak Temple", "Luxor", 0.95),
        _candidate("Egyptian Museum", "Cairo", 0.9),
        _candidate("Citadel of Saladin", "Cairo", 0.85),
        _candidate("Luxor Temple", "Luxor", 0.5),
    ]

    selected = select_sites_by_location(candidates)

    assert [site.name for site in selected] == ["Egyptian Museum", "Citadel of Saladin"]


def test_select_sites_skips_used_sites() -> None:
    candidates = [
        _candidate("Egyptian Museum", "Cairo", 0.9),
        _candidate("Citadel of Saladin", "Cairo", 0.85),
        _candidate("Coptic Museum", "Cairo", 0.6),
    ]

    selected = select_sites_by_location(candidates, {"Egyptian Museum"})

    assert [site.name for site in selected] == ["Citadel of Saladin", "Coptic Museum"]


def test_select_sites_pairs_primary_with_same_city_partner() -> None:
    candidates = [
        _candidate("Egyptian Museum", "Cairo", 0.9, governorate="Cairo"),
        _candidate("Karnak Temple", "Luxor", 0.85),
        _candidate("Baron Palace", "Cairo", 0.5, governorate="Heliopolis"),
    ]

    selected = select_sites_by_location(candidates)

    assert [site.name for site in selected] == ["Egyptian Museum", "Baron Palace"]


def test_select_sites_relaxes_location_constraint_when_no_pair_exists() -> None:
    candidates = [
        _candidate("Karnak Temple", "Luxor", 0.6),
        _candidate("Egyptian Museum", "Cairo", 0.9),
        _candidate("Philae Temple", "Aswan", 0.7),
    ]

    selected = select_sites_by_location(candidates)

    assert [site.name for site in selected] == ["Egyptian Museum", "Philae Temple"]


def test_select_sites_handles_single_and_empty_candidates() -> None:
    assert select_sites_by_location([]) == []
    assert [site.name for site in select_sites_by_location([_candidate("Solo", "Siwa", 0.4)])] == ["Solo"]
    assert select_sites_by_location([_candidate("Solo", "Siwa", 0.4)], {"Solo"}) == []


def test_day_one_sites_come_from_store_when_available() -> None:
    sites, _ = build_sample_catalog()
    store = InMemoryDataStore(sites)

    selected = asyncio.run(get_day_one_sites(store))

    assert [site.name for site in selected] == ["Pyramids of Giza", "Egyptian Museum"]
    assert [site.cost_egp for site in selected] == [800, 1000]


def test_day_one_sites_apply_default_cost_when_budget_missing() -> None:
    store = InMemoryDataStore(
        [make_site("Giza Pyramids Complex", "Giza", budget=0), make_site("Egyptian Museum", "Cairo", budget=0)]
    )

    selected = asyncio.run(get_day_one_sites(store))

    assert [site.name for site in selected] == ["Giza Pyramids Complex", "Egyptian Museum"]
    assert [site.cost_egp for site in selected] == [800.0, 1000.0]


def test_day_one_sites_do_not_repeat_a_site_matching_both_lookups() -> None:
    store = InMemoryDataStore([make_site("Grand Egyptian Museum Giza", "Giza", budget=1200)])

    selected = asyncio.run(get_day_one_sites(store))

    assert [site.name for site in selected] == ["Grand Egyptian Museum Giza", "Egyptian Museum"]
    assert [site.cost_egp for site in selected] == [1200, 1000]


def test_day_one_sites_use_static_seeds_when_store_is_empty_or_failing() -> None:
    for store in (InMemoryDataStore(), InMemoryDataStore(failing_methods={"find_site_by_name"})):
        selected = asyncio.run(get_day_one_sites(store))

        assert [site.name for site in selected] == ["Pyramids of Giza", "Egyptian Museum"]
        assert all(site.cost_egp > 0 for site in selected)
        assert selected[0].latitude == 29.9792


def test_regional_fallback_sites_by_day() -> None:
    day_two = get_regional_fallback_sites(2, random.Random(1))
    day_nine = get_regional_fallback_sites(9, random.Random(1))

    assert [site.name for site in day_two] == ["Karnak Temple", "Valley of the Kings"]
    assert {site.city for site in day_two} == {"Luxor"}
    assert [site.cost_egp for site in day_two] == [500.0, 300.0]
    assert [site.name for site in day_nine] == ["Citadel of Saladin", "Khan el-Khalili"]
    assert all(30.0 <= site.latitude <= 32.0 and 31.0 <= site.longitude <= 33.0 for site in day_two)


def test_regional_fallback_sites_are_deterministic_with_seeded_rng() -> None:
    first = get_regional_fallback_sites(3, random.Random(42))
    second = get_regional_fallback_sites(3, random.Random(42))

    assert [site.model_dump() for site in first] == [site.model_dump() for site in second]
