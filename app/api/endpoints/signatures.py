"""Signature endpoints: upload, listing, comparison and model training."""
import json
from typing import Annotated, Any

from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.endpoints.auth import get_current_user
from app.core.database import get_db
from app.models import Signature, Student, User
from app.schemas.signature import (
    SignatureCompareResponse,
    SignatureItem,
    SignatureMatchResponse,
    SignatureUploadResponse,
    StudentSignatureSummary,
    TrainingResponse,
)
from app.services import signature_service
from app.services.signature_service import SignatureOptions
from app.services.storage_service import StorageService, get_storage
from app.services.verification_client import VerificationClient, get_verification_client

router = APIRouter(prefix="/signatures", tags=["signatures"])

ALLOWED_TYPES = {"image/png", "image/jpeg", "image/webp"}


def _json_object(raw: str | None, name: str) -> dict[str, Any] | None:
    if raw is None or raw == "":
        return None
    try:
        value = json.loads(raw)
    except json.JSONDecodeError:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=f"{name} must be valid JSON",
        )
    if not isinstance(value, dict):
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=f"{name} must be a JSON object",
        )
    return value


async def _read_image(file: UploadFile) -> bytes:
    if file.content_type and file.content_type not in ALLOWED_TYPES:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Unsupported image type '{file.content_type}'",
        )
    content = await file.read()
    if not content:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="The file is empty.")
    return content


def _options(
    width: int | None,
    height: int | None,
    quality_score: float | None,
    features: str | None,
    device_info: str | None,
) -> SignatureOptions:
    return SignatureOptions(
        width=width,
        height=height,
        quality_score=quality_score,
        features=_json_object(features, "features"),
        device_info=_json_object(device_info, "device_info") or {},
    )


@router.post(
    "",
    response_model=SignatureUploadResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Upload a signature",
    description="Stores the image and its metadata. If the metadata cannot be saved the image is removed again.",
)
async def upload_signature(
    student_id: Annotated[int, Form()],
    file: UploadFile = File(..., description="Signature image (png, jpeg, webp)"),
    width: Annotated[int | None, Form()] = None,
    height: Annotated[int | None, Form()] = None,
    quality_score: Annotated[float | None, Form(ge=0, le=1)] = None,
    features: Annotated[str | None, Form(description='JSON, e.g. {"vector": [0.1, 0.2]}')] = None,
    device_info: Annotated[str | None, Form(description="JSON object")] = None,
    db: AsyncSession = Depends(get_db),
    storage: StorageService = Depends(get_storage),
    _: User = Depends(get_current_user),
):
    content = await _read_image(file)
    url, signature = await signature_service.upload_signature(
        db,
        storage,
        student_id,
        file.filename or "signature.png",
        content,
        file.content_type,
        _options(width, height, quality_score, features, device_info),
    )
    return SignatureUploadResponse(url=url, signature=SignatureItem.model_validate(signature))


@router.post(
    "/match",
    response_model=SignatureMatchResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Upload a signature and compare it with the student's others",
)
async def match_signature(
    student_id: Annotated[int, Form()],
    file: UploadFile = File(...),
    threshold: Annotated[float | None, Form(ge=0, le=1)] = None,
    features: Annotated[str | None, Form()] = None,
    quality_score: Annotated[float | None, Form(ge=0, le=1)] = None,
    db: AsyncSession = Depends(get_db),
    storage: StorageService = Depends(get_storage),
    _: User = Depends(get_current_user),
):
    content = await _read_image(file)
    signature, score, is_match = await signature_service.match_signature(
        db,
        storage,
        student_id,
        file.filename or "signature.png",
        content,
        file.content_type,
        _options(None, None, quality_score, features, None),
        threshold=threshold,
    )
    return SignatureMatchResponse(
        signature=SignatureItem.model_validate(signature), score=score, is_match=is_match
    )


@router.get(
    "/students",
    response_model=list[StudentSignatureSummary],
    summary="Students with their signature count and primary signature",
)
async def student_signatures(
    db: AsyncSession = Depends(get_db),
    storage: StorageService = Depends(get_storage),
    _: User = Depends(get_current_user),
):
    rows = await signature_service.list_student_signature_summaries(db, storage)
    return [StudentSignatureSummary(**row) for row in rows]


@router.get(
    "/students/{student_id}",
    response_model=list[SignatureItem],
    summary="Signatures of a student, newest first",
)
async def list_student_signatures(
    student_id: int,
    db: AsyncSession = Depends(get_db),
    _: User = Depends(get_current_user),
):
    if await db.get(Student, student_id) is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Student not found")
    return [SignatureItem.model_validate(s) for s in await signature_service.get_student_signatures(db, student_id)]


@router.get(
    "/students/{student_id}/primary",
    response_model=SignatureItem | None,
    summary="Best-quality signature of a student",
)
async def primary_signature(
    student_id: int,
    db: AsyncSession = Depends(get_db),
    _: User = Depends(get_current_user),
):
    signature = await signature_service.get_primary_signature(db, student_id)
    return SignatureItem.model_validate(signature) if signature else None


@router.get("/compare", response_model=SignatureCompareResponse, summary="Compare two signatures")
async def compare(
    sig1_id: Annotated[int, Query()],
    sig2_id: Annotated[int, Query()],
    db: AsyncSession = Depends(get_db),
    _: User = Depends(get_current_user),
):
    sig1 = await db.get(Signature, sig1_id)
    sig2 = await db.get(Signature, sig2_id)
    if sig1 is None or sig2 is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Signature not found")
    return SignatureCompareResponse(
        sig1_id=sig1_id, sig2_id=sig2_id, score=signature_service.compare_signatures(sig1, sig2)
    )


@router.delete(
    "/{signature_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a signature and its image",
)
async def delete_signature(
    signature_id: int,
    db: AsyncSession = Depends(get_db),
    storage: StorageService = Depends(get_storage),
    _: User = Depends(get_current_user),
):
    await signature_service.delete_signature(db, storage, signature_id)


@router.post(
    "/train/{student_id}",
    response_model=TrainingResponse,
    summary="Train the verification model for a student",
)
async def train_student(
    student_id: int,
    db: AsyncSession = Depends(get_db),
    client: VerificationClient = Depends(get_verification_client),
    _: User = Depends(get_current_user),
):
    if await db.get(Student, student_id) is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Student not found")
    return await client.train(student_id)


@router.get("/service/health", summary="Verification service health")
async def service_health(
    client: VerificationClient = Depends(get_verification_client),
    _: User = Depends(get_current_user),
):
    return await client.health()
