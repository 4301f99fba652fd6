"""
End-to-end tests for the pipeline orchestrator using the bundled sample data.
"""

import pytest
import os
import tempfile
from datetime import datetime, timezone
from unittest.mock import MagicMock
from reviewdash.agents.ingestion import IngestionAgent
from reviewdash.orchestrator import PipelineOrchestrator
from reviewdash.utils.filters import ReviewFilters, SortOptions
import config.settings as settings

NOW = datetime(2025, 9, 10, 12, 0, tzinfo=timezone.utc)

PROPERTY_IDS = [
    "1b-s2-b-15-camden-square",
    "2b-n1-a-29-shoreditch-heights",
    "3b-e14-d-8-canary-wharf-tower",
    "studio-w1-c-42-westminster-court"
]


@pytest.fixture
def workspace():
    with tempfile.TemporaryDirectory() as tmpdir:
        yield tmpdir


def make_orchestrator(workspace: str, name_policy: str = "slug") -> PipelineOrchestrator:
    ingestion_agent = IngestionAgent(
        sample_path=str(settings.SAMPLE_DATA_PATH),
        use_mock_data=True,
        session=MagicMock()
    )
    return PipelineOrchestrator(
        data_root=os.path.join(workspace, "data"),
        registry_path=os.path.join(workspace, "data", "property_registry.json"),
        output_root=os.path.join(workspace, "output"),
        ingestion_agent=ingestion_agent,
        name_policy=name_policy
    )


def test_sync_sample_data(workspace):
    orchestrator = make_orchestrator(workspace)

    summary = orchestrator.sync(now=NOW)

    assert summary["source"] == "mock"
    assert summary["fetched"] == 12
    assert summary["normalized"] == 12
    assert summary["placeholders"] == 0
    assert summary["created"] == 12
    assert summary["updated"] == 0
    assert summary["properties"] == 4
    assert summary["report_path"] == os.path.join(workspace, "output", "performance_2025-09-10.csv")
    assert os.path.exists(summary["report_path"])
    assert os.path.exists(os.path.join(workspace, "data", "raw", "2025-09-10.json"))

    assert sorted(orchestrator.registry.properties) == PROPERTY_IDS


def test_sync_normalizes_sample_edge_cases(workspace):
    orchestrator = make_orchestrator(workspace)
    orchestrator.sync(now=NOW, write_report=False)
    storage = orchestrator.storage

    assert storage.get_review_by_id("7461").guest_name == "Anonymous"
    assert storage.get_review_by_id("7471").property_id == "1b-s2-b-15-camden-square"
    assert storage.get_review_by_id("7472").rating is None
    assert storage.get_review_by_id("7454").rating == 9.5
    assert storage.get_review_by_id("7453").rating == 10.0
    assert storage.get_review_by_id("7453").submitted_at == datetime(2020, 8, 21, 22, 45, 14, tzinfo=timezone.utc)
    assert storage.get_review_by_id("7455").submitted_at == datetime(2025, 7, 2, 18, 30, tzinfo=timezone.utc)
    assert all(not r.display_on_website for r in storage.get_all_reviews())


def test_second_sync_updates_in_place(workspace):
    orchestrator = make_orchestrator(workspace)
    orchestrator.sync(now=NOW, write_report=False)

    summary = make_orchestrator(workspace).sync(now=NOW, write_report=False)

    assert summary["created"] == 0
    assert summary["updated"] == 12
    assert summary["report_path"] is None


def test_approval_survives_resync(workspace):
    orchestrator = make_orchestrator(workspace)
    orchestrator.sync(now=NOW, write_report=False)

    assert orchestrator.toggle_review_display("7454", True) == {"success": True}
    assert [r["id"] for r in orchestrator.get_public_reviews("2b-n1-a-29-shoreditch-heights")] == ["7454"]

    resynced = make_orchestrator(workspace)
    resynced.sync(now=NOW, write_report=False)

    assert [r["id"] for r in resynced.get_public_reviews("2b-n1-a-29-shoreditch-heights")] == ["7454"]

    assert resynced.toggle_review_display("7454", False) == {"success": True}
    assert resynced.get_public_reviews("2b-n1-a-29-shoreditch-heights") == []


def test_toggle_unknown_review(workspace):
    orchestrator = make_orchestrator(workspace)

    result = orchestrator.toggle_review_display("does-not-exist", True)

    assert result["success"] is False
    assert "does-not-exist" in result["error"]


def test_batch_toggle(workspace):
    orchestrator = make_orchestrator(workspace)
    orchestrator.sync(now=NOW, write_report=False)

    result = orchestrator.batch_toggle_review_display([
        {"reviewId": "7454", "display": True},
        {"reviewId": 7460, "display": True}
    ])

    assert result == {"success": True}
    approved = orchestrator.get_reviews_response(ReviewFilters(display_on_website=True))["result"]
    assert sorted(r["id"] for r in approved) == ["7454", "7460"]

    failed = orchestrator.batch_toggle_review_display([{"reviewId": "7470"}])
    assert failed["success"] is False


def test_reviews_response_envelope(workspace):
    orchestrator = make_orchestrator(workspace)
    orchestrator.sync(now=NOW, write_report=False)

    response = orchestrator.get_reviews_response(
        ReviewFilters(property_id="1b-s2-b-15-camden-square"),
        SortOptions("submittedAt", "desc")
    )

    assert response["status"] == "success"
    assert [r["id"] for r in response["result"]] == ["7472", "7471", "7470"]
    assert response["result"][0]["displayOnWebsite"] is False
    assert response["result"][0]["channel"] == "hostaway"


def test_property_performance(workspace):
    orchestrator = make_orchestrator(workspace)
    orchestrator.sync(now=NOW, write_report=False)

    performances = {p.property_id: p for p in orchestrator.get_property_performance(now=NOW)}

    assert sorted(performances) == PROPERTY_IDS
    assert sum(p.total_reviews for p in performances.values()) == 12

    camden = performances["1b-s2-b-15-camden-square"]
    assert camden.property_name == "1b S2 B 15 Camden Square"
    assert camden.total_reviews == 3
    # 7470 = 8, 7471 = mean(10, 10, 10, 9) = 9.8, 7472 unrated
    assert camden.average_rating == 8.9
    assert camden.category_ratings["cleanliness"] == 9.5


def test_listing_name_policy(workspace):
    orchestrator = make_orchestrator(workspace, name_policy="listing")
    orchestrator.sync(now=NOW, write_report=False)

    names = {p.property_id: p.property_name for p in orchestrator.get_property_performance(now=NOW)}

    assert names["1b-s2-b-15-camden-square"] == "1B S2 B - 15 Camden Square"
    assert names["studio-w1-c-42-westminster-court"] == "Studio W1 C - 42 Westminster Court"


def test_statistics(workspace):
    orchestrator = make_orchestrator(workspace)
    orchestrator.sync(now=NOW, write_report=False)
    orchestrator.toggle_review_display("7454", True)

    stats = orchestrator.get_statistics(now=NOW)

    assert stats.total_reviews == 12
    assert stats.reviews_by_channel == {"hostaway": 12}
    assert stats.most_active_channel == "hostaway"
    assert stats.selected_for_website == 1
    assert stats.selection_rate == 8
    # 7471 (Sep 5) and 7472 (Sep 7) fall in the last 7 days
    assert stats.recent_reviews == 2


def test_empty_workspace(workspace):
    orchestrator = make_orchestrator(workspace)

    assert orchestrator.get_property_performance(now=NOW) == []
    assert orchestrator.get_reviews_response() == {"status": "success", "result": []}


# Run tests if executed directly
if __name__ == "__main__":
    pytest.main([__file__, "-v"])
