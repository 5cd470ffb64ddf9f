"""Signature capture: store the image, record its metadata and compare signatures."""
import logging
import math
import secrets
from dataclasses import dataclass, field
from pathlib import PurePosixPath
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.exceptions import MutationError, NotFoundError, StorageError
from app.models import Signature, Student
from app.services.storage_service import SIGNATURES_BUCKET, StorageService, discard_unless_committed

logger = logging.getLogger(__name__)

_EXTENSIONS = {"image/png": "png", "image/jpeg": "jpg", "image/webp": "webp"}


@dataclass
class SignatureOptions:
    """Optional capture metadata sent with an upload."""

    width: int | None = None
    height: int | None = None
    features: dict[str, Any] | None = None
    quality_score: float | None = None
    device_info: dict[str, Any] = field(default_factory=dict)


def _extension(file_name: str, content_type: str | None) -> str:
    suffix = PurePosixPath(file_name).suffix.lstrip(".").lower()
    if suffix:
        return suffix
    return _EXTENSIONS.get(content_type or "", "png")


def signature_object_path(student_id: int, file_name: str, content_type: str | None = None) -> str:
    """``signatures/{student_id}/{student_id}-{random}.{ext}`` inside the signatures bucket."""
    token = secrets.token_hex(6)
    return f"signatures/{student_id}/{student_id}-{token}.{_extension(file_name, content_type)}"


def _check_options(options: SignatureOptions) -> None:
    if options.quality_score is not None and not 0 <= options.quality_score <= 1:
        raise ValueError("quality_score must be between 0 and 1")
    if options.features is not None and not isinstance(options.features, dict):
        raise ValueError("features must be a JSON object")
    if not isinstance(options.device_info, dict):
        raise ValueError("device_info must be a JSON object")


async def upload_signature(
    db: AsyncSession,
    storage: StorageService,
    student_id: int,
    file_name: str,
    content: bytes,
    content_type: str | None = None,
    options: SignatureOptions | None = None,
) -> tuple[str, Signature]:
    """Store a signature image and insert its metadata row.

    The stored object is removed again when the insert fails or when the
    transaction of ``db`` ends without a commit, so a failed upload leaves no
    file behind. Returns ``(public_url, signature)``.
    """
    options = options or SignatureOptions()
    _check_options(options)
    if await db.get(Student, student_id) is None:
        raise NotFoundError(f"Student {student_id} not found")

    path = signature_object_path(student_id, file_name, content_type)
    await storage.upload_async(SIGNATURES_BUCKET, path, content, content_type=content_type)
    discard_unless_committed(db, storage, SIGNATURES_BUCKET, path)

    signature = Signature(
        student_id=student_id,
        storage_path=path,
        file_name=file_name,
        file_size=len(content),
        file_type=content_type or "application/octet-stream",
        width=options.width,
        height=options.height,
        features=options.features,
        quality_score=options.quality_score,
        device_info=options.device_info,
    )
    db.add(signature)
    try:
        await db.flush()
    except SQLAlchemyError as exc:
        logger.warning("Signature metadata insert failed for student %s: %s", student_id, exc)
        try:
            await storage.remove_async(SIGNATURES_BUCKET, [path])
        except StorageError:
            logger.exception("Could not remove orphaned signature %s", path)
        raise MutationError(f"Failed to save signature metadata: {exc}") from exc

    logger.info("Signature %s stored for student %s at %s", signature.id, student_id, path)
    return storage.get_public_url(SIGNATURES_BUCKET, path), signature


async def get_student_signatures(db: AsyncSession, student_id: int) -> list[Signature]:
    """Signatures of a student, newest first."""
    result = await db.execute(
        select(Signature)
        .where(Signature.student_id == student_id)
        .order_by(Signature.created_at.desc(), Signature.id.desc())
    )
    return list(result.scalars().all())


async def get_primary_signature(db: AsyncSession, student_id: int) -> Signature | None:
    """Best-quality signature of a student (newest wins ties and unscored rows)."""
    result = await db.execute(
        select(Signature)
        .where(Signature.student_id == student_id)
        .order_by(
            Signature.quality_score.is_(None),
            Signature.quality_score.desc(),
            Signature.created_at.desc(),
            Signature.id.desc(),
        )
        .limit(1)
    )
    return result.scalar_one_or_none()


async def delete_signature(db: AsyncSession, storage: StorageService, signature_id: int) -> None:
    signature = await db.get(Signature, signature_id)
    if signature is None:
        raise NotFoundError(f"Signature {signature_id} not found")
    path = signature.storage_path
    await db.delete(signature)
    await db.flush()
    await storage.remove_async(SIGNATURES_BUCKET, [path])


def _vector(signature: Signature) -> list[float] | None:
    features = signature.features
    if not isinstance(features, dict):
        return None
    values = features.get("vector")
    if not isinstance(values, list) or not values:
        return None
    try:
        return [float(v) for v in values]
    except (TypeError, ValueError):
        return None


def compare_signatures(sig1: Signature, sig2: Signature) -> float:
    """Cosine similarity of the two feature vectors, clamped to [0, 1].

    Returns 0.0 when either signature has no usable vector or the lengths differ.
    """
    a, b = _vector(sig1), _vector(sig2)
    if a is None or b is None or len(a) != len(b):
        return 0.0
    norm = math.sqrt(sum(x * x for x in a)) * math.sqrt(sum(y * y for y in b))
    if norm == 0:
        return 0.0
    score = sum(x * y for x, y in zip(a, b)) / norm
    return min(1.0, max(0.0, score))


async def match_signature(
    db: AsyncSession,
    storage: StorageService,
    student_id: int,
    file_name: str,
    content: bytes,
    content_type: str | None = None,
    options: SignatureOptions | None = None,
    threshold: float | None = None,
) -> tuple[Signature, float, bool]:
    """Upload a signature and score it against the student's earlier ones.

    Returns ``(new_signature, best_score, is_match)``.
    """
    limit = settings.signature_match_threshold if threshold is None else threshold
    _, new_signature = await upload_signature(
        db, storage, student_id, file_name, content, content_type, options
    )
    others = [s for s in await get_student_signatures(db, student_id) if s.id != new_signature.id]
    best = max((compare_signatures(new_signature, s) for s in others), default=0.0)
    return new_signature, best, best >= limit


async def list_student_signature_summaries(
    db: AsyncSession, storage: StorageService
) -> list[dict[str, Any]]:
    """Every student with their signature count and primary signature URL."""
    counts_q = (
        select(Signature.student_id, func.count(Signature.id).label("n"))
        .group_by(Signature.student_id)
    )
    counts = {row.student_id: row.n for row in await db.execute(counts_q)}

    students = (
        await db.execute(select(Student).order_by(Student.surname, Student.firstname))
    ).scalars().all()

    rows = []
    for student in students:
        primary = await get_primary_signature(db, student.id) if counts.get(student.id) else None
        rows.append({
            "student_id": student.id,
            "school_id": student.student_id,
            "full_name": student.full_name,
            "program": student.program,
            "year": student.year,
            "section": student.section,
            "signature_count": counts.get(student.id, 0),
            "primary_signature_id": primary.id if primary else student.primary_signature_id,
            "primary_signature_url": (
                storage.get_public_url(SIGNATURES_BUCKET, primary.storage_path)
                if primary else student.signature_url
            ),
        })
    return rows
