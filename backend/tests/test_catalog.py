"""
Client-side catalogue cache and its sample-data fallback
"""
import httpx

from conftest import make_resource
from core.catalog import Catalog
from core.client import ApiClient
from core.sample_data import COMMON_TERMS


class TestLiveCatalog:
    def test_loads_and_flattens_the_tree(self, app, api_client, hierarchy):
        make_resource(app, title="Sorting Visualised", subject_id=hierarchy["subject_id"])
        make_resource(app, title="Python Koans", skill_id=hierarchy["skill_id"])

        catalog = Catalog(api_client).load()

        assert not catalog.using_fallback
        assert catalog.error is None
        assert {r["title"] for r in catalog.all_resources} == {"Sorting Visualised", "Python Koans"}

    def test_search_matches_hierarchy_names(self, app, api_client, hierarchy):
        make_resource(app, title="Sorting Visualised", description="Animations of common sorts.",
                      subject_id=hierarchy["subject_id"])
        catalog = Catalog(api_client)

        assert [r["title"] for r in catalog.search_resources("test university")] == ["Sorting Visualised"]
        assert [r["title"] for r in catalog.search_resources("ALGORITHMS")] == ["Sorting Visualised"]
        assert catalog.search_resources("   ") == []

    def test_search_matches_skill_and_exam_names(self, app, api_client, hierarchy):
        make_resource(app, title="Snake Book", description="All about the language.", skill_id=hierarchy["skill_id"])
        make_resource(app, title="Mock Papers", description="Ten full length papers.", exam_id=hierarchy["exam_id"])
        catalog = Catalog(api_client)

        assert [r["title"] for r in catalog.search_resources("python")] == ["Snake Book"]
        assert [r["title"] for r in catalog.search_resources("gate")] == ["Mock Papers"]

    def test_search_limit(self, app, api_client, hierarchy):
        for i in range(8):
            make_resource(app, title=f"Algorithms part {i}", subject_id=hierarchy["subject_id"])

        assert len(Catalog(api_client).search_resources("algorithms")) == 5
        assert len(Catalog(api_client).search_resources("algorithms", limit=7)) == 7

    def test_no_invalidation_until_refresh(self, app, api_client, hierarchy):
        catalog = Catalog(api_client).load()
        make_resource(app, title="Late Arrival", subject_id=hierarchy["subject_id"])

        assert catalog.search_resources("late arrival") == []
        assert len(catalog.refresh().search_resources("late arrival")) == 1

    def test_stats(self, app, api_client, hierarchy):
        make_resource(app, subject_id=hierarchy["subject_id"])

        assert Catalog(api_client).get_stats() == {"totalResources": 1, "totalUsers": 0, "totalRequests": 0}

    def test_searchable_terms(self, app, api_client, hierarchy):
        make_resource(app, title="Sorting Visualised", subject_id=hierarchy["subject_id"])

        terms = Catalog(api_client).extract_searchable_terms()

        assert {"text": "Test University", "type": "university"} in terms
        assert {"text": "Databases", "type": "subject"} in terms
        assert {"text": "Sorting Visualised", "type": "resource"} in terms
        assert {"text": "algorithms", "type": "general"} in terms


class TestFallback:
    def test_unreachable_api_uses_sample_data(self, offline_client):
        catalog = Catalog(offline_client).load()

        assert catalog.using_fallback
        assert catalog.error
        assert catalog.universities
        assert catalog.all_resources

    def test_server_error_uses_sample_data(self):
        transport = httpx.MockTransport(lambda request: httpx.Response(503, json={"error": "unavailable"}))
        with ApiClient(base_url="http://down", transport=transport) as api:
            catalog = Catalog(api).load()

        assert catalog.using_fallback
        assert "503" in catalog.error

    def test_sample_data_is_searchable(self, offline_client):
        catalog = Catalog(offline_client)

        assert [r["title"] for r in catalog.search_resources("react")] == ["React.js Documentation"]
        assert catalog.search_resources("stanford")
        assert len(catalog.get_recent_resources()) == 6

    def test_stats_are_zero_when_offline(self, offline_client):
        assert Catalog(offline_client).get_stats() == {"totalResources": 0, "totalUsers": 0, "totalRequests": 0}

    def test_searchable_terms_always_include_common_terms(self, offline_client):
        texts = [t["text"] for t in Catalog(offline_client).extract_searchable_terms()]

        assert set(COMMON_TERMS) <= set(texts)
        assert "MIT" in texts

    def test_fallback_does_not_mutate_the_sample(self, offline_client):
        catalog = Catalog(offline_client).load()
        catalog.universities.clear()

        assert Catalog(offline_client).load().universities
