from __future__ import annotations

import uuid

from botocore.exceptions import ClientError
from fastapi import APIRouter, Depends, HTTPException, Path
from sqlalchemy.orm import Session

from bootcamp_api.core.config import settings
from bootcamp_api.core.deps import require_role
from bootcamp_api.db.session import get_db
from bootcamp_api.models.bootcamp import Bootcamp
from bootcamp_api.models.user import ROLE_ADMIN, ROLE_PUBLISHER, User
from bootcamp_api.schemas.advanced import QuerySpec
from bootcamp_api.schemas.bootcamps import (
    BootcampCreate,
    BootcampUpdate,
    PhotoUploadComplete,
    PhotoUploadInit,
    PhotoUploadInitResponse,
)
from bootcamp_api.services.advanced_results import advanced_results, query_spec_from_request
from bootcamp_api.services.bootcamps import DuplicateBootcampName, create_bootcamp, delete_bootcamp, update_bootcamp
from bootcamp_api.services.geo import within_sphere
from bootcamp_api.services.geocoder import Geocoder, GeocodingError, first_result, get_geocoder
from bootcamp_api.services.s3_storage import build_photo_key, get_s3_storage, is_missing_object_error, photo_key_prefix
from bootcamp_api.services.storage import ModelStore, serialize_row

router = APIRouter()

GEO_POINT = ("longitude", "latitude")


def bootcamp_store(db: Session) -> ModelStore:
    return ModelStore(db, Bootcamp, geo_point=GEO_POINT)


def get_bootcamp_or_404(db: Session, bootcamp_id: str) -> Bootcamp:
    try:
        uid = uuid.UUID(str(bootcamp_id or "").strip())
    except ValueError:
        uid = None
    bootcamp = db.get(Bootcamp, uid) if uid is not None else None
    if bootcamp is None:
        raise HTTPException(status_code=404, detail=f"Bootcamp not found with id of {bootcamp_id}")
    return bootcamp


def _upstream_502(exc: GeocodingError) -> HTTPException:
    return HTTPException(status_code=502, detail=f"Geocoding failed: {exc}")


def _duplicate_400(exc: DuplicateBootcampName) -> HTTPException:
    return HTTPException(status_code=400, detail=f'Bootcamp with name "{exc}" already exists')


@router.get("")
def get_bootcamps(spec: QuerySpec = Depends(query_spec_from_request), db: Session = Depends(get_db)):
    result = advanced_results(bootcamp_store(db), spec, populate=[("courses", None)])
    return result.envelope()


@router.get("/radius/{zipcode}/{distance}")
def get_bootcamps_in_radius(
    zipcode: str,
    distance: float = Path(ge=0),
    db: Session = Depends(get_db),
    geocoder: Geocoder = Depends(get_geocoder),
):
    try:
        loc = first_result(geocoder, zipcode)
    except GeocodingError as exc:
        raise _upstream_502(exc)
    predicate = within_sphere("location", loc.longitude, loc.latitude, distance)
    data = bootcamp_store(db).find(predicate).all()
    return {"success": True, "count": len(data), "data": data}


@router.get("/{bootcamp_id}")
def get_bootcamp(bootcamp_id: str, db: Session = Depends(get_db)):
    return {"success": True, "data": serialize_row(get_bootcamp_or_404(db, bootcamp_id))}


@router.post("", status_code=201)
def create(
    payload: BootcampCreate,
    db: Session = Depends(get_db),
    geocoder: Geocoder = Depends(get_geocoder),
    user: User = Depends(require_role(ROLE_PUBLISHER, ROLE_ADMIN)),
):
    try:
        bootcamp = create_bootcamp(db, payload, geocoder)
    except GeocodingError as exc:
        raise _upstream_502(exc)
    except DuplicateBootcampName as exc:
        raise _duplicate_400(exc)
    return {"success": True, "data": serialize_row(bootcamp)}


@router.put("/{bootcamp_id}")
def update(
    bootcamp_id: str,
    payload: BootcampUpdate,
    db: Session = Depends(get_db),
    geocoder: Geocoder = Depends(get_geocoder),
    user: User = Depends(require_role(ROLE_PUBLISHER, ROLE_ADMIN)),
):
    bootcamp = get_bootcamp_or_404(db, bootcamp_id)
    try:
        bootcamp = update_bootcamp(db, bootcamp, payload, geocoder)
    except GeocodingError as exc:
        raise _upstream_502(exc)
    except DuplicateBootcampName as exc:
        raise _duplicate_400(exc)
    return {"success": True, "data": serialize_row(bootcamp)}


@router.delete("/{bootcamp_id}")
def delete(
    bootcamp_id: str,
    db: Session = Depends(get_db),
    user: User = Depends(require_role(ROLE_PUBLISHER, ROLE_ADMIN)),
):
    delete_bootcamp(db, get_bootcamp_or_404(db, bootcamp_id))
    return {"success": True, "data": {}}


def _validate_photo_meta(mime_type: str, size_bytes: int) -> None:
    if not str(mime_type or "").lower().startswith("image/"):
        raise HTTPException(status_code=400, detail="Please upload an image file")
    if int(size_bytes or 0) <= 0:
        raise HTTPException(status_code=400, detail="Invalid file size")
    if int(size_bytes) > int(settings.MAX_FILE_UPLOAD):
        raise HTTPException(status_code=400, detail=f"Please upload an image less than {settings.MAX_FILE_UPLOAD} bytes")


@router.post("/{bootcamp_id}/photo/init", response_model=PhotoUploadInitResponse)
def photo_upload_init(
    bootcamp_id: str,
    payload: PhotoUploadInit,
    db: Session = Depends(get_db),
    user: User = Depends(require_role(ROLE_PUBLISHER, ROLE_ADMIN)),
):
    bootcamp = get_bootcamp_or_404(db, bootcamp_id)
    _validate_photo_meta(payload.mime_type, payload.size_bytes)
    key = build_photo_key(str(bootcamp.id), payload.file_name)
    presigned_url = get_s3_storage().create_presigned_put_url(key, payload.mime_type)
    return PhotoUploadInitResponse(key=key, presigned_url=presigned_url)


@router.put("/{bootcamp_id}/photo")
def photo_upload_complete(
    bootcamp_id: str,
    payload: PhotoUploadComplete,
    db: Session = Depends(get_db),
    user: User = Depends(require_role(ROLE_PUBLISHER, ROLE_ADMIN)),
):
    bootcamp = get_bootcamp_or_404(db, bootcamp_id)
    if not str(payload.key or "").startswith(photo_key_prefix(str(bootcamp.id))):
        raise HTTPException(status_code=400, detail="Object key does not belong to this bootcamp")
    try:
        head = get_s3_storage().head_object(payload.key)
    except ClientError as exc:
        if not is_missing_object_error(exc):
            raise
        raise HTTPException(status_code=400, detail="Uploaded file not found in storage")
    _validate_photo_meta(str(head.get("ContentType") or ""), int(head.get("ContentLength") or 0))

    bootcamp.photo = payload.key
    db.add(bootcamp)
    db.commit()
    return {"success": True, "data": bootcamp.photo}
