import os
import unittest
from uuid import UUID

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

# Ensure settings can be initialized in test environments
os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite:///:memory:")
os.environ.setdefault("REDIS_URL", "redis://localhost:6379/0")
os.environ.setdefault("S3_ENDPOINT", "http://localhost:9000")
os.environ.setdefault("S3_ACCESS_KEY", "test")
os.environ.setdefault("S3_SECRET_KEY", "test")
os.environ.setdefault("S3_BUCKET", "test")

from tests.api_base import BOSTON, FakeGeocoder

from bootcamp_api.models.bootcamp import Bootcamp
from bootcamp_api.models.course import Course
from bootcamp_api.scripts.seed import DEFAULT_DATA_DIR, delete_data, import_data, load_json

DEVWORKS_ID = UUID("5d713995-b721-4c4f-a3c3-4a5e0d1b1a01")


class SeedTests(unittest.TestCase):
    @classmethod
    def setUpClass(cls):
        cls.engine = create_engine(
            "sqlite+pysqlite:///:memory:",
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
        cls.SessionLocal = sessionmaker(bind=cls.engine, autocommit=False, autoflush=False)
        Bootcamp.__table__.create(bind=cls.engine)
        Course.__table__.create(bind=cls.engine)

    @classmethod
    def tearDownClass(cls):
        Course.__table__.drop(bind=cls.engine)
        Bootcamp.__table__.drop(bind=cls.engine)
        cls.engine.dispose()

    def setUp(self):
        self.db = self.SessionLocal()
        self.db.query(Course).delete()
        self.db.query(Bootcamp).delete()
        self.db.commit()

    def tearDown(self):
        self.db.close()

    def test_import_packaged_data_sets_locations_and_average_costs(self):
        bootcamps = load_json(DEFAULT_DATA_DIR / "bootcamps.json")
        courses = load_json(DEFAULT_DATA_DIR / "courses.json")
        geocoder = FakeGeocoder()

        created = import_data(self.db, bootcamps, courses, geocoder=geocoder)

        self.assertEqual(created, (len(bootcamps), len(courses)))
        self.assertEqual(geocoder.calls, [])
        devworks = self.db.get(Bootcamp, DEVWORKS_ID)
        self.assertEqual(devworks.slug, "devworks-bootcamp")
        self.assertEqual(devworks.city, "Boston")
        self.assertEqual(devworks.average_cost, 9000)
        costs = {b.name: b.average_cost for b in self.db.query(Bootcamp).all()}
        self.assertEqual(
            costs,
            {"Devworks Bootcamp": 9000, "ModernTech Bootcamp": 5000, "Codemasters": 12000},
        )

    def test_import_geocodes_items_without_location(self):
        geocoder = FakeGeocoder({"233 Bay State Rd Boston MA 02215": BOSTON})
        item = {
            "name": "Address Only",
            "description": "Imported from an address",
            "address": "233 Bay State Rd Boston MA 02215",
            "careers": ["Other"],
        }
        import_data(self.db, [item], [], geocoder=geocoder)

        row = self.db.query(Bootcamp).one()
        self.assertEqual(geocoder.calls, ["233 Bay State Rd Boston MA 02215"])
        self.assertEqual(row.zipcode, "02215")
        self.assertAlmostEqual(row.longitude, BOSTON.longitude)

    def test_delete_removes_everything(self):
        import_data(
            self.db,
            load_json(DEFAULT_DATA_DIR / "bootcamps.json"),
            load_json(DEFAULT_DATA_DIR / "courses.json"),
            geocoder=FakeGeocoder(),
        )
        deleted = delete_data(self.db)
        self.assertEqual(deleted, (3, 5))
        self.assertEqual(self.db.query(Bootcamp).count(), 0)
        self.assertEqual(self.db.query(Course).count(), 0)
