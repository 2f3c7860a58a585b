from __future__ import annotations

import argparse
import json
import uuid
from pathlib import Path

from sqlalchemy.orm import Session

from bootcamp_api.db.session import SessionLocal
from bootcamp_api.models.bootcamp import Bootcamp
from bootcamp_api.models.course import Course
from bootcamp_api.services.bootcamps import apply_location, slugify, update_average_cost
from bootcamp_api.services.geocoder import Geocoder, first_result, get_geocoder


DEFAULT_DATA_DIR = Path(__file__).resolve().parent.parent / "data"
LOCATION_FIELDS = ("longitude", "latitude", "formatted_address", "street", "city", "state", "zipcode", "country")


def load_json(path: Path) -> list[dict]:
    with path.open("r", encoding="utf-8") as fh:
        return json.load(fh)


def _bootcamp_from_item(item: dict, geocoder: Geocoder | None) -> Bootcamp:
    data = {k: v for k, v in item.items() if k not in {"address", "id", "location"}}
    bootcamp = Bootcamp(**data, slug=slugify(str(item["name"])))
    if item.get("id"):
        bootcamp.id = uuid.UUID(str(item["id"]))
    location = item.get("location") or {}
    if location:
        for key in LOCATION_FIELDS:
            setattr(bootcamp, key, location.get(key))
    elif item.get("address"):
        if geocoder is None:
            geocoder = get_geocoder()
        apply_location(bootcamp, first_result(geocoder, str(item["address"])))
    return bootcamp


def import_data(db: Session, bootcamps: list[dict], courses: list[dict], geocoder: Geocoder | None = None) -> tuple[int, int]:
    for item in bootcamps:
        db.add(_bootcamp_from_item(item, geocoder))
    db.commit()

    touched: set[uuid.UUID] = set()
    for item in courses:
        data = {k: v for k, v in item.items() if k not in {"bootcamp", "id"}}
        bootcamp_id = uuid.UUID(str(item["bootcamp"]))
        course = Course(**data, bootcamp_id=bootcamp_id)
        if item.get("id"):
            course.id = uuid.UUID(str(item["id"]))
        db.add(course)
        touched.add(bootcamp_id)
    db.commit()
    for bootcamp_id in touched:
        update_average_cost(db, bootcamp_id)
    return len(bootcamps), len(courses)


def delete_data(db: Session) -> tuple[int, int]:
    courses = db.query(Course).delete(synchronize_session=False)
    bootcamps = db.query(Bootcamp).delete(synchronize_session=False)
    db.commit()
    return bootcamps, courses


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="Import or delete bootcamp seed data")
    action = parser.add_mutually_exclusive_group(required=True)
    action.add_argument("-i", "--import", dest="do_import", action="store_true", help="import bootcamps and courses")
    action.add_argument("-d", "--delete", dest="do_delete", action="store_true", help="delete all bootcamps and courses")
    parser.add_argument("--data-dir", type=Path, default=DEFAULT_DATA_DIR)
    args = parser.parse_args(argv)

    db = SessionLocal()
    try:
        if args.do_import:
            bootcamps = load_json(args.data_dir / "bootcamps.json")
            courses = load_json(args.data_dir / "courses.json")
            created = import_data(db, bootcamps, courses)
            print(f"data imported: bootcamps={created[0]}, courses={created[1]}")
        else:
            deleted = delete_data(db)
            print(f"data deleted: bootcamps={deleted[0]}, courses={deleted[1]}")
    finally:
        db.close()


if __name__ == "__main__":
    main()
