"""Unit tests for the engine facade."""

from __future__ import annotations

from unittest.mock import Mock

import numpy as np
import pytest

from faceauth.config import FaceConfig
from faceauth.embedding import FaceIdentityRecord, dump_records, load_records
from faceauth.engine import FaceAuthEngine
from faceauth.errors import (
    DimensionMismatchError,
    FaceQualityError,
    InconsistentSampleError,
    MultipleFacesError,
    NoFaceDetectedError,
)
from faceauth.interfaces import BBox, Detection
from faceauth.quality import REASON_ROLL, REASON_TOO_SMALL


def normalized(values):
    """Create an L2-normalized float32 embedding."""
    vec = np.asarray(values, dtype=np.float64)
    return (vec / np.linalg.norm(vec)).astype(np.float32)


def make_detection(size=120, right_eye=(70.0, 40.0)):
    """Create a detection with 5 landmarks."""
    kps = np.array(
        [[30.0, 40.0], right_eye, [50.0, 60.0], [35.0, 80.0], [65.0, 80.0]],
        dtype=np.float32,
    )
    return Detection(bbox=BBox(10, 10, 10 + size, 10 + size), kps=kps, score=0.95)


@pytest.fixture
def config():
    """Config requiring 3 enrollment samples."""
    return FaceConfig(required_enrollment_samples=3, recognition_threshold=1.0)


@pytest.fixture
def mock_detector():
    """Create a mock detector returning one good face."""
    detector = Mock()
    detector.detect.return_value = [make_detection()]
    return detector


@pytest.fixture
def mock_aligner():
    """Create a mock aligner."""
    aligner = Mock()
    aligner.align.return_value = np.zeros((112, 112, 3), dtype=np.uint8)
    return aligner


@pytest.fixture
def mock_embedder():
    """Create a mock embedder returning a raw, un-normalized vector."""
    embedder = Mock()
    embedder.embed.return_value = np.array([3.0, 0.0, 4.0], dtype=np.float32)
    return embedder


@pytest.fixture
def engine(config, mock_detector, mock_aligner, mock_embedder):
    """Create an engine with mocked collaborators."""
    return FaceAuthEngine(
        config=config,
        detector=mock_detector,
        aligner=mock_aligner,
        embedder=mock_embedder,
    )


@pytest.fixture
def test_image():
    """Create a test image (640x480 RGB)."""
    return np.random.randint(0, 255, (480, 640, 3), dtype=np.uint8)


def test_extract_embedding(engine, mock_aligner, mock_embedder, test_image):
    """Test that extraction runs the pipeline and normalizes the output."""
    embedding = engine.extract_embedding(test_image)

    np.testing.assert_allclose(embedding, [0.6, 0.0, 0.8], atol=1e-6)
    assert embedding.dtype == np.float32

    mock_aligner.align.assert_called_once()
    args, _ = mock_aligner.align.call_args
    assert args[0] is test_image
    mock_embedder.embed.assert_called_once()
    assert mock_embedder.embed.call_args[0][0] is mock_aligner.align.return_value


def test_extract_embedding_no_face(engine, mock_detector, mock_aligner, test_image):
    """Test extraction with no faces detected."""
    mock_detector.detect.return_value = []

    with pytest.raises(NoFaceDetectedError):
        engine.extract_embedding(test_image)

    mock_aligner.align.assert_not_called()


def test_extract_embedding_multiple_faces(engine, mock_detector, test_image):
    """Test extraction with multiple faces detected."""
    mock_detector.detect.return_value = [make_detection(), make_detection()]

    with pytest.raises(MultipleFacesError) as exc_info:
        engine.extract_embedding(test_image)

    assert exc_info.value.count == 2


def test_extract_embedding_small_face(engine, mock_detector, mock_aligner, test_image):
    """Test that the quality gate runs before alignment."""
    mock_detector.detect.return_value = [make_detection(size=40)]

    with pytest.raises(FaceQualityError) as exc_info:
        engine.extract_embedding(test_image)

    assert exc_info.value.report.reason == REASON_TOO_SMALL
    mock_aligner.align.assert_not_called()


def test_extract_embedding_rolled_face(engine, mock_detector, test_image):
    """Test rejection of a tilted head."""
    mock_detector.detect.return_value = [make_detection(right_eye=(70.0, 70.0))]

    with pytest.raises(FaceQualityError) as exc_info:
        engine.extract_embedding(test_image)

    assert exc_info.value.report.reason == REASON_ROLL


def test_extract_embedding_dimension_check(mock_detector, mock_aligner, mock_embedder, test_image):
    """Test that embedder output must match the configured dimension."""
    engine = FaceAuthEngine(
        config=FaceConfig(embedding_dimension=192),
        detector=mock_detector,
        aligner=mock_aligner,
        embedder=mock_embedder,
    )

    with pytest.raises(DimensionMismatchError):
        engine.extract_embedding(test_image)


def test_extract_embedding_requires_collaborators(config, test_image):
    """Test that extraction without backends is a usage error."""
    engine = FaceAuthEngine(config=config)

    with pytest.raises(RuntimeError, match="detector"):
        engine.extract_embedding(test_image)


def test_enrollment_delegation(engine):
    """Test enrollment operations through the facade."""
    emb = normalized([0.6, 0.0, 0.8])

    engine.enroll_sample("p1", emb)
    assert engine.enrollment_sample_count("p1") == 1
    assert not engine.is_enrollment_complete("p1")
    assert engine.build_final_embedding("p1") is None

    engine.enroll_sample("p1", emb)
    engine.enroll_sample("p1", emb)
    assert engine.is_enrollment_complete("p1")
    assert engine.enrolled_identities() == {"p1"}

    with pytest.raises(InconsistentSampleError):
        engine.enroll_sample("p1", normalized([0.0, 1.0, 0.0]))

    engine.clear_identity("p1")
    assert engine.enrollment_sample_count("p1") == 0


def test_enroll_from_images(engine, test_image):
    """Test enrolling from extracted embeddings."""
    for _ in range(3):
        engine.enroll_sample("p1", engine.extract_embedding(test_image))

    final = engine.build_final_embedding("p1")
    np.testing.assert_allclose(final, [0.6, 0.0, 0.8], atol=1e-6)


def test_export_embeddings(engine):
    """Test that only complete enrollments are exported."""
    for _ in range(3):
        engine.enroll_sample("bob", normalized([0.0, 1.0, 0.0]))
        engine.enroll_sample("alice", normalized([0.6, 0.0, 0.8]))
    engine.enroll_sample("carol", normalized([1.0, 0.0, 0.0]))

    records = engine.export_embeddings()

    assert [r.identity_id for r in records] == ["alice", "bob"]
    assert all(r.format_version == "1.0" for r in records)
    np.testing.assert_allclose(records[0].embedding, [0.6, 0.0, 0.8], atol=1e-6)


def test_import_replaces_candidates(engine):
    """Test that import replaces, not extends, the candidate pool."""
    engine.import_embeddings([FaceIdentityRecord("old", normalized([1.0, 0.0, 0.0]))])
    engine.import_embeddings([FaceIdentityRecord("new", normalized([0.0, 1.0, 0.0]))])

    assert [r.identity_id for r in engine.candidates] == ["new"]
    assert engine.recognize(normalized([1.0, 0.0, 0.0])) is None
    assert engine.recognize(normalized([0.0, 1.0, 0.0])) == "new"


def test_recognize_without_import(engine):
    """Test that recognition with no imported records finds nothing."""
    assert engine.recognize(normalized([0.6, 0.0, 0.8])) is None


def test_verify_uses_configured_threshold():
    """Test 1:1 verification with the configured threshold."""
    engine = FaceAuthEngine(config=FaceConfig(recognition_threshold=0.5))

    assert engine.verify([1.0, 0.0, 0.0], [1.0, 0.0, 0.0])
    assert not engine.verify([1.0, 0.0, 0.0], [0.0, 1.0, 0.0])


def test_end_to_end(config):
    """Enroll p1 from three samples, persist, reload, and recognize."""
    engine = FaceAuthEngine(config=config)

    engine.enroll_sample("p1", normalized([0.6, 0.0, 0.8]))
    engine.enroll_sample("p1", normalized([0.61, 0.01, 0.79]))
    engine.enroll_sample("p1", normalized([0.59, 0.02, 0.81]))

    final = engine.build_final_embedding("p1")
    assert final is not None
    assert final.shape == (3,)
    assert np.linalg.norm(final) == pytest.approx(1.0, abs=1e-3)

    # Persist and restore through JSON
    text = dump_records(engine.export_embeddings())
    engine.clear()
    assert engine.enrolled_identities() == set()
    engine.import_embeddings(load_records(text))

    assert engine.candidates == (FaceIdentityRecord("p1", final),)

    query = normalized([0.61, 0.01, 0.79])
    assert engine.recognize(query) == "p1"
    assert engine.recognizer.recognize(query, engine.candidates, 1.0) == "p1"

    far_query = normalized([0.55, 0.1, 0.75])
    assert engine.recognizer.recognize(far_query, engine.candidates, 1.0) == "p1"
    assert engine.recognizer.recognize(far_query, engine.candidates, 0.05) is None


def test_clear(engine):
    """Test that clear drops enrollment data and candidates."""
    engine.enroll_sample("p1", normalized([0.6, 0.0, 0.8]))
    engine.import_embeddings([FaceIdentityRecord("p1", normalized([0.6, 0.0, 0.8]))])

    engine.clear()

    assert engine.enrollment_sample_count("p1") == 0
    assert engine.candidates == ()


def test_repr(engine):
    """Test string representation."""
    repr_str = repr(engine)
    assert "FaceAuthEngine" in repr_str
    assert "candidates=0" in repr_str


@pytest.fixture
def fixed_dim_engine():
    """Engine enforcing 3-D embeddings."""
    return FaceAuthEngine(config=FaceConfig(embedding_dimension=3))


def test_import_rejects_wrong_dimension(fixed_dim_engine):
    """Test that imported records must have the configured dimension."""
    good = FaceIdentityRecord("good", normalized([0.6, 0.0, 0.8]))
    fixed_dim_engine.import_embeddings([good])

    with pytest.raises(DimensionMismatchError, match="bad"):
        fixed_dim_engine.import_embeddings([good, FaceIdentityRecord("bad", [1.0, 0.0])])

    # Previous pool kept
    assert fixed_dim_engine.candidates == (good,)


def test_recognize_rejects_wrong_dimension(fixed_dim_engine):
    """Test that the query is checked even with an empty pool."""
    with pytest.raises(DimensionMismatchError) as exc_info:
        fixed_dim_engine.recognize([1.0, 0.0])

    assert exc_info.value.expected == 3
    assert exc_info.value.actual == 2


def test_verify_rejects_wrong_dimension(fixed_dim_engine):
    """Test that both verify operands are checked."""
    with pytest.raises(DimensionMismatchError):
        fixed_dim_engine.verify([1.0, 0.0], [1.0, 0.0])

    with pytest.raises(DimensionMismatchError):
        fixed_dim_engine.verify([1.0, 0.0, 0.0], [1.0, 0.0])

    assert fixed_dim_engine.verify([1.0, 0.0, 0.0], [1.0, 0.0, 0.0])
