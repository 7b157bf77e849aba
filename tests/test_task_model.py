# tests/test_task_model.py

import pytest
from bson import ObjectId

from kickstart.core.errors import DraftValidationError
from kickstart.models.task import (
    AudioBlob,
    ContentFile,
    TaskDraft,
    is_http_url,
    validate_draft,
    validate_for_commit,
)

from conftest import make_task


class TestValidateForCommit:
    def test_valid_link_task(self):
        validate_for_commit(make_task(ObjectId()))

    def test_collects_every_violation(self):
        task = make_task(
            ObjectId(),
            title="  ",
            description="",
            intent_text=None,
            content_link=None,
            total_topics=0,
        )
        with pytest.raises(DraftValidationError) as exc:
            validate_for_commit(task)

        errors = exc.value.errors
        assert "title must not be empty" in errors
        assert "description must not be empty" in errors
        assert "an intent (audio recording or text) is required" in errors
        assert "content_link is required for a link task" in errors
        assert "total_topics must be positive" in errors
        assert exc.value.code == "VALIDATION_ERROR"

    def test_file_task_needs_url_and_no_link(self):
        task = make_task(ObjectId(), content_kind="file", content_link="https://example.com")
        with pytest.raises(DraftValidationError) as exc:
            validate_for_commit(task)
        assert "content_url is required for a file task" in exc.value.errors
        assert "content_link must not be set for a file task" in exc.value.errors

    def test_completed_topics_out_of_range(self):
        with pytest.raises(DraftValidationError):
            validate_for_commit(make_task(ObjectId(), completed_topics=11))

    def test_audio_reference_is_enough_as_intent(self):
        validate_for_commit(make_task(ObjectId(), intent_text=None, intent_audio_url="https://blobs/x.wav"))


class TestValidateDraft:
    def draft(self, **overrides) -> TaskDraft:
        data = dict(
            title="OS Basics",
            description="Learn OS fundamentals",
            intent_text="Pass the exam",
            content_kind="link",
            content_link="https://example.com/os",
        )
        data.update(overrides)
        return TaskDraft(**data)

    def test_valid_link_draft(self):
        validate_draft(self.draft())

    def test_link_must_be_http(self):
        with pytest.raises(DraftValidationError):
            validate_draft(self.draft(content_link="ftp://example.com/os"))

    def test_empty_audio_without_text_is_rejected(self):
        draft = self.draft(intent_text=None, intent_audio=AudioBlob(data=b""))
        with pytest.raises(DraftValidationError) as exc:
            validate_draft(draft)
        assert "intent audio recording is empty" in exc.value.errors

    def test_file_draft_checks_size_and_extension(self):
        draft = self.draft(
            content_kind="file",
            content_link=None,
            content_file=ContentFile(filename="notes.docx", data=b"x" * 20),
        )
        with pytest.raises(DraftValidationError) as exc:
            validate_draft(draft, max_upload_bytes=10, allowed_extensions=[".pdf"])
        assert len(exc.value.errors) == 2

    def test_file_draft_without_file(self):
        with pytest.raises(DraftValidationError) as exc:
            validate_draft(self.draft(content_kind="file", content_link=None))
        assert "a content file is required for a file task" in exc.value.errors

    def test_pdf_accepted_case_insensitive(self):
        draft = self.draft(
            content_kind="file",
            content_link=None,
            content_file=ContentFile(filename="Chapter1.PDF", data=b"%PDF-1.4"),
        )
        validate_draft(draft, max_upload_bytes=1024, allowed_extensions=[".pdf"])


def test_is_http_url():
    assert is_http_url("https://example.com/a")
    assert is_http_url("http://example.com")
    assert not is_http_url("example.com")
    assert not is_http_url("mailto:me@example.com")


def test_content_reference_follows_kind():
    owner = ObjectId()
    assert make_task(owner).content_reference == "https://example.com/os"
    file_task = make_task(owner, content_kind="file", content_link=None, content_url="https://blobs/c.pdf")
    assert file_task.content_reference == "https://blobs/c.pdf"
