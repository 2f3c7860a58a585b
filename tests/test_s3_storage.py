import os
import unittest

import boto3
from botocore.exceptions import ClientError
from botocore.stub import Stubber

os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite:///:memory:")
os.environ.setdefault("S3_ENDPOINT", "http://localhost:9000")
os.environ.setdefault("S3_ACCESS_KEY", "test")
os.environ.setdefault("S3_SECRET_KEY", "test")
os.environ.setdefault("S3_BUCKET", "test")

from bootcamp_api.services.s3_storage import S3Storage, build_photo_key, is_missing_object_error


def _client():
    return boto3.client(
        "s3",
        endpoint_url="http://localhost:9000",
        aws_access_key_id="test",
        aws_secret_access_key="test",
        region_name="us-east-1",
    )


class PhotoKeyTests(unittest.TestCase):
    def test_key_uses_bootcamp_id_and_lowercased_extension(self):
        self.assertEqual(build_photo_key("abc", "My Photo.JPG"), "bootcamps/abc/photo_abc.jpg")

    def test_odd_or_missing_extensions_are_dropped(self):
        self.assertEqual(build_photo_key("abc", "photo"), "bootcamps/abc/photo_abc")
        self.assertEqual(build_photo_key("abc", "photo."), "bootcamps/abc/photo_abc")
        self.assertEqual(build_photo_key("abc", "x.averyveryverylongext"), "bootcamps/abc/photo_abc")


class S3StorageTests(unittest.TestCase):
    def setUp(self):
        self.client = _client()
        self.stubber = Stubber(self.client)
        self.storage = S3Storage(self.client, "photos", "us-east-1")

    def tearDown(self):
        self.stubber.deactivate()

    def test_missing_bucket_is_created_once(self):
        self.stubber.add_client_error("head_bucket", service_error_code="404", http_status_code=404)
        self.stubber.add_response("create_bucket", {}, {"Bucket": "photos"})
        self.stubber.activate()

        self.storage.ensure_bucket()
        self.storage.ensure_bucket()
        self.stubber.assert_no_pending_responses()

    def test_presigned_put_url_targets_key(self):
        self.stubber.add_response("head_bucket", {}, {"Bucket": "photos"})
        self.stubber.activate()

        url = self.storage.create_presigned_put_url("bootcamps/abc/photo_abc.png", "image/png")
        self.assertIn("bootcamps/abc/photo_abc.png", url)
        self.assertIn("Signature", url)

    def test_head_object_reports_missing_objects(self):
        self.stubber.add_response("head_bucket", {}, {"Bucket": "photos"})
        self.stubber.add_client_error("head_object", service_error_code="404", http_status_code=404)
        self.stubber.activate()

        with self.assertRaises(ClientError) as ctx:
            self.storage.head_object("bootcamps/abc/photo_abc.png")
        self.assertTrue(is_missing_object_error(ctx.exception))

    def test_other_bucket_errors_propagate(self):
        self.stubber.add_client_error("head_bucket", service_error_code="403", http_status_code=403)
        self.stubber.activate()

        with self.assertRaises(ClientError):
            self.storage.ensure_bucket()
