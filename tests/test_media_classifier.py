import pytest

from postchat.configs import MediaLimits, get_media_limits
from postchat.errors import PayloadTooLargeError, ValidationError
from postchat.services import MediaClassifier

from conftest import MB, make_upload


@pytest.mark.parametrize("filename, category", [
    ("photo.JPG", "image"),
    ("clip.webm", "video"),
    ("voice.m4a", "audio"),
    ("report.pdf", "pdf"),
])
def test_category_by_extension(classifier, filename, category):
    assert classifier.classify(filename, 1024) == category


def test_unknown_extension_names_allowed_categories(classifier):
    with pytest.raises(ValidationError) as exc:
        classifier.classify("archive.zip", 1024)
    assert exc.value.data["allowedCategories"] == ["image", "video", "audio", "pdf"]


def test_extension_outside_call_site_categories(classifier):
    with pytest.raises(ValidationError) as exc:
        classifier.classify("clip.mp4", 1024, categories=("image",))
    assert exc.value.data["allowedCategories"] == ["image"]


def test_oversized_image_reports_full_limits(classifier):
    with pytest.raises(PayloadTooLargeError) as exc:
        classifier.classify("big.png", 12 * MB)
    assert exc.value.status_code == 413
    assert exc.value.to_dict()["limits"] == {
        "imageMaxMB": 10,
        "videoMaxMB": 50,
        "audioMaxMB": 20,
        "pdfMaxMB": 10,
    }


def test_hard_cap_is_largest_enabled_ceiling(classifier):
    assert classifier.hard_cap_bytes() == 50 * MB
    assert classifier.hard_cap_bytes(("image", "pdf")) == 10 * MB
    # Dưới giới hạn thô nhưng vượt giới hạn riêng của audio
    with pytest.raises(PayloadTooLargeError):
        classifier.classify("song.mp3", 30 * MB)
    assert classifier.classify("movie.mp4", 30 * MB) == "video"


def test_limits_are_explicit_configuration():
    classifier = MediaClassifier(MediaLimits(image=1))
    with pytest.raises(PayloadTooLargeError) as exc:
        classifier.classify("a.png", 2 * MB)
    assert exc.value.limits["imageMaxMB"] == 1


def test_limits_from_environment(monkeypatch):
    monkeypatch.setenv("VIDEO_MAX_MB", "100")
    limits = get_media_limits()
    assert limits.video == 100
    assert limits.image == 10


async def test_accept_uploads_after_checks(classifier, uploads):
    upload = await classifier.accept(make_upload("cat.png", 2 * MB), folder="chat_media/x")
    assert upload.category == "image"
    assert upload.size == 2 * MB
    assert upload.url.endswith("chat_media/x/cat.png")
    assert uploads == [("chat_media/x", "cat.png")]


async def test_rejected_file_is_not_uploaded(classifier, uploads):
    with pytest.raises(PayloadTooLargeError):
        await classifier.accept(make_upload("big.png", 12 * MB))
    with pytest.raises(ValidationError):
        await classifier.accept(make_upload("script.exe", 10))
    assert uploads == []


async def test_size_measured_from_stream_when_unknown(classifier):
    upload = make_upload("notes.pdf", size=None, content=b"x" * 2048)
    result = await classifier.accept(upload)
    assert result.size == 2048
