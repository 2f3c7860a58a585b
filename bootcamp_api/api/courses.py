from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from bootcamp_api.api.bootcamps import get_bootcamp_or_404
from bootcamp_api.core.deps import get_current_user
from bootcamp_api.db.session import get_db
from bootcamp_api.models.course import Course
from bootcamp_api.models.user import User
from bootcamp_api.schemas.advanced import QuerySpec
from bootcamp_api.schemas.courses import CourseCreate, CourseUpdate
from bootcamp_api.services.advanced_results import advanced_results, query_spec_from_request
from bootcamp_api.services.bootcamps import update_average_cost
from bootcamp_api.services.storage import ModelStore, serialize_row

router = APIRouter()
bootcamp_courses_router = APIRouter()

BOOTCAMP_SUMMARY_FIELDS = ("name", "description")


def get_course_or_404(db: Session, course_id: str) -> Course:
    try:
        uid = uuid.UUID(str(course_id or "").strip())
    except ValueError:
        uid = None
    course = db.get(Course, uid) if uid is not None else None
    if course is None:
        raise HTTPException(status_code=404, detail=f"No course with the id of {course_id}")
    return course


def _course_with_bootcamp(course: Course) -> dict:
    data = serialize_row(course)
    data["bootcamp"] = serialize_row(course.bootcamp, BOOTCAMP_SUMMARY_FIELDS) if course.bootcamp else None
    return data


@router.get("")
def get_courses(spec: QuerySpec = Depends(query_spec_from_request), db: Session = Depends(get_db)):
    result = advanced_results(ModelStore(db, Course), spec, populate=[("bootcamp", BOOTCAMP_SUMMARY_FIELDS)])
    return result.envelope()


@router.get("/{course_id}")
def get_course(course_id: str, db: Session = Depends(get_db)):
    return {"success": True, "data": _course_with_bootcamp(get_course_or_404(db, course_id))}


@router.put("/{course_id}")
def update_course(
    course_id: str,
    payload: CourseUpdate,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    course = get_course_or_404(db, course_id)
    for key, value in payload.model_dump(exclude_unset=True, exclude_none=True).items():
        setattr(course, key, value)
    db.add(course)
    db.commit()
    update_average_cost(db, course.bootcamp_id)
    db.refresh(course)
    return {"success": True, "data": serialize_row(course)}


@router.delete("/{course_id}")
def delete_course(course_id: str, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    course = get_course_or_404(db, course_id)
    bootcamp_id = course.bootcamp_id
    db.delete(course)
    db.commit()
    update_average_cost(db, bootcamp_id)
    return {"success": True, "data": {}}


@bootcamp_courses_router.get("")
def get_bootcamp_courses(bootcamp_id: str, db: Session = Depends(get_db)):
    bootcamp = get_bootcamp_or_404(db, bootcamp_id)
    rows = (
        db.query(Course)
        .filter(Course.bootcamp_id == bootcamp.id)
        .order_by(Course.created_at.desc(), Course.id.asc())
        .all()
    )
    data = [serialize_row(r) for r in rows]
    return {"success": True, "count": len(data), "data": data}


@bootcamp_courses_router.post("", status_code=201)
def add_course(
    bootcamp_id: str,
    payload: CourseCreate,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    bootcamp = get_bootcamp_or_404(db, bootcamp_id)
    course = Course(**payload.model_dump(), bootcamp_id=bootcamp.id)
    db.add(course)
    db.commit()
    update_average_cost(db, bootcamp.id)
    db.refresh(course)
    return {"success": True, "data": serialize_row(course)}
