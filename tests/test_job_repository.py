"""
Job Repository Tests

The MongoDB collection is mocked; these tests pin the document shape and
the translation of driver errors.
"""
import re
from unittest.mock import MagicMock

import pytest
from pymongo.errors import DuplicateKeyError, ServerSelectionTimeoutError

from src.database.job_repository import JobRepository, from_document, to_document
from src.transcription.errors import RepositoryError, StaleJobError
from src.transcription.models import FailureReason, JobStatus
from src.transcription.state import mark_failed, mark_processing


@pytest.fixture
def collection():
    return MagicMock()


@pytest.fixture
def repo(collection):
    return JobRepository(collection=collection)


class TestDocumentMapping:

    def test_round_trip_preserves_fields(self, make_job):
        job = make_job("clip.mp4", "some words", keywords=["alpha", "beta"])
        assert from_document(to_document(job)) == job

    def test_document_uses_storage_field_names(self, make_job):
        failed = mark_failed(mark_processing(make_job()), FailureReason.TRANSPORT_ERROR, "dns")
        document = to_document(failed)

        assert document["job_id"] == failed.id
        assert document["original_filename"] == "demo.mp4"
        assert document["status"] == "failed"
        assert document["failure_reason"] == "transport_error"
        assert document["transcription"] is None

    def test_missing_optional_fields_default(self, make_job):
        document = to_document(make_job())
        for optional in ("keywords", "updated_at", "failure_reason", "error"):
            document.pop(optional)

        job = from_document(document)
        assert job.keywords == []
        assert job.updated_at == job.created_at


class TestCreate:

    def test_inserts_document(self, repo, collection, make_job):
        job = make_job()
        assert repo.create(job) is job
        collection.insert_one.assert_called_once_with(to_document(job))

    def test_duplicate_is_repository_error(self, repo, collection, make_job):
        collection.insert_one.side_effect = DuplicateKeyError("dup")
        with pytest.raises(RepositoryError):
            repo.create(make_job())


class TestRead:

    def test_find_by_id_maps_document(self, repo, collection, make_job):
        job = make_job(transcript="hi")
        collection.find_one.return_value = to_document(job)

        assert repo.find_by_id(job.id) == job
        collection.find_one.assert_called_once_with({"job_id": job.id}, {"_id": 0})

    def test_find_by_id_missing(self, repo, collection):
        collection.find_one.return_value = None
        assert repo.find_by_id("job_missing") is None

    def test_driver_error_is_repository_error(self, repo, collection):
        collection.find_one.side_effect = ServerSelectionTimeoutError("no primary")
        with pytest.raises(RepositoryError):
            repo.find_by_id("job_x")

    def test_find_all_sorts_newest_first(self, repo, collection, make_job):
        jobs = [make_job("a.mp4"), make_job("b.mp4", age=5)]
        cursor = MagicMock()
        cursor.sort.return_value = [to_document(job) for job in jobs]
        collection.find.return_value = cursor

        assert repo.find_all() == jobs
        cursor.sort.assert_called_once_with("created_at", -1)

    def test_find_matching_filters(self, repo, collection, make_job):
        jobs = [make_job("a.mp4"), make_job("b.mp4")]
        cursor = MagicMock()
        cursor.sort.return_value = [to_document(job) for job in jobs]
        collection.find.return_value = cursor

        assert repo.find_matching(lambda job: job.display_name == "b.mp4") == [jobs[1]]

    def test_find_containing_filters_in_mongo(self, repo, collection, make_job):
        job = make_job("a.b.mp4")
        cursor = collection.find.return_value.sort.return_value
        cursor.limit.return_value = [to_document(job)]

        assert repo.find_containing("A.B", limit=5) == [job]

        criteria, projection = collection.find.call_args.args
        pattern = {"$regex": re.escape("A.B"), "$options": "i"}
        assert criteria == {
            "$or": [{"original_filename": pattern}, {"transcription": pattern}]
        }
        assert projection == {"_id": 0}
        collection.find.return_value.sort.assert_called_once_with("created_at", -1)
        cursor.limit.assert_called_once_with(5)

    def test_find_containing_blank_query_matches_all(self, repo, collection):
        collection.find.return_value.sort.return_value.limit.return_value = []

        repo.find_containing("   ")

        assert collection.find.call_args.args[0] == {}
        collection.find.return_value.sort.return_value.limit.assert_called_once_with(0)


class TestSave:

    def test_save_sets_mutable_fields_only(self, repo, collection, make_job):
        collection.update_one.return_value = MagicMock(matched_count=1)
        job = mark_processing(make_job())

        repo.save(job)

        query, update = collection.update_one.call_args.args
        assert query == {"job_id": job.id}
        assert update["$set"]["status"] == JobStatus.PROCESSING.value
        for immutable in ("job_id", "media", "original_filename", "created_at"):
            assert immutable not in update["$set"]

    def test_save_unknown_job(self, repo, collection, make_job):
        collection.update_one.return_value = MagicMock(matched_count=0)
        with pytest.raises(RepositoryError):
            repo.save(make_job())

    def test_conditional_save_filters_on_state(self, repo, collection, make_job):
        collection.update_one.return_value = MagicMock(matched_count=1)
        job = mark_processing(make_job())

        repo.save(job, expected_state=JobStatus.PENDING)

        query, _ = collection.update_one.call_args.args
        assert query == {"job_id": job.id, "status": "pending"}

    def test_conditional_save_on_changed_job_is_stale(self, repo, collection, make_job):
        collection.update_one.return_value = MagicMock(matched_count=0)
        with pytest.raises(StaleJobError):
            repo.save(mark_processing(make_job()), expected_state=JobStatus.PENDING)
