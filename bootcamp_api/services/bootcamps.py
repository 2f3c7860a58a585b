from __future__ import annotations

import logging
import math
import unicodedata
import uuid

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from bootcamp_api.models.bootcamp import Bootcamp
from bootcamp_api.models.course import Course
from bootcamp_api.schemas.bootcamps import BootcampCreate, BootcampUpdate
from bootcamp_api.services.geocoder import GeocodeResult, Geocoder, first_result

logger = logging.getLogger(__name__)


class DuplicateBootcampName(Exception):
    pass


def slugify(value: str, fallback: str = "bootcamp") -> str:
    normalized = unicodedata.normalize("NFKD", str(value or "")).encode("ascii", "ignore").decode("ascii")
    out: list[str] = []
    prev_dash = False
    for ch in normalized.strip().lower():
        if ("a" <= ch <= "z") or ("0" <= ch <= "9"):
            out.append(ch)
            prev_dash = False
            continue
        if not prev_dash:
            out.append("-")
            prev_dash = True
    slug = "".join(out).strip("-")
    return slug or fallback


def apply_location(bootcamp: Bootcamp, loc: GeocodeResult) -> None:
    bootcamp.longitude = loc.longitude
    bootcamp.latitude = loc.latitude
    bootcamp.formatted_address = loc.formatted_address
    bootcamp.street = loc.street_name
    bootcamp.city = loc.city
    bootcamp.state = loc.state
    bootcamp.zipcode = loc.zipcode
    bootcamp.country = loc.country


def _name_taken(db: Session, name: str, exclude_id: uuid.UUID | None = None) -> bool:
    q = db.query(Bootcamp.id).filter(func.lower(Bootcamp.name) == name.strip().lower())
    if exclude_id is not None:
        q = q.filter(Bootcamp.id != exclude_id)
    return q.first() is not None


def _commit_or_duplicate(db: Session, name: str) -> None:
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise DuplicateBootcampName(name) from exc


def create_bootcamp(db: Session, payload: BootcampCreate, geocoder: Geocoder) -> Bootcamp:
    if _name_taken(db, payload.name):
        raise DuplicateBootcampName(payload.name)
    data = payload.model_dump(exclude={"address"})
    bootcamp = Bootcamp(**data, slug=slugify(payload.name))
    apply_location(bootcamp, first_result(geocoder, payload.address))
    db.add(bootcamp)
    _commit_or_duplicate(db, payload.name)
    db.refresh(bootcamp)
    logger.info("bootcamp created id=%s slug=%s", bootcamp.id, bootcamp.slug)
    return bootcamp


def update_bootcamp(db: Session, bootcamp: Bootcamp, payload: BootcampUpdate, geocoder: Geocoder) -> Bootcamp:
    changes = payload.model_dump(exclude_unset=True, exclude_none=True)
    address = changes.pop("address", None)
    name = changes.get("name")
    if name is not None and _name_taken(db, name, exclude_id=bootcamp.id):
        raise DuplicateBootcampName(name)
    for key, value in changes.items():
        setattr(bootcamp, key, value)
    if name is not None:
        bootcamp.slug = slugify(name)
    if address:
        apply_location(bootcamp, first_result(geocoder, address))
    db.add(bootcamp)
    _commit_or_duplicate(db, bootcamp.name)
    db.refresh(bootcamp)
    return bootcamp


def delete_bootcamp(db: Session, bootcamp: Bootcamp) -> None:
    bootcamp_id = bootcamp.id
    # ORM cascade removes the bootcamp's courses.
    db.delete(bootcamp)
    db.commit()
    logger.info("bootcamp deleted id=%s", bootcamp_id)


def round_average_cost(average: float | None) -> int | None:
    if average is None:
        return None
    return int(math.ceil(float(average) / 10) * 10)


def update_average_cost(db: Session, bootcamp_id: uuid.UUID) -> int | None:
    average = db.query(func.avg(Course.tuition)).filter(Course.bootcamp_id == bootcamp_id).scalar()
    bootcamp = db.get(Bootcamp, bootcamp_id)
    if bootcamp is None:
        return None
    bootcamp.average_cost = round_average_cost(average)
    db.add(bootcamp)
    db.commit()
    return bootcamp.average_cost
