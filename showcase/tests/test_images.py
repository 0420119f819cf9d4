import unittest
from unittest.mock import patch

from showcase.errors import NotFound, ValidationFailed
from showcase.images import ImageAdapter, ImageUpload, decode_data_uri, encode_data_uri
from showcase.models import (
    NO_IMAGE,
    BlobImage,
    InlineImage,
    LegacyImage,
    image_from_columns,
    image_to_columns,
)
from showcase.storage import InMemoryBlobStore

PNG = b"\x89PNG\r\n\x1a\n" + b"\x01" * 8


class DataUriTests(unittest.TestCase):
    def test_decode(self):
        uri = encode_data_uri(PNG, "image/png")
        self.assertEqual(decode_data_uri(uri), ("image/png", PNG))

    def test_rejects_malformed_values(self):
        for value in ["hello", "data:image/png,abc", "data:image/png;base64,***"]:
            with self.assertRaises(ValueError):
                decode_data_uri(value)


class ImageColumnTests(unittest.TestCase):
    def test_precedence(self):
        self.assertEqual(
            image_from_columns("a.png", "ref", "data:x"), InlineImage("data:x")
        )
        self.assertEqual(image_from_columns("a.png", "ref", ""), BlobImage("ref"))
        self.assertEqual(image_from_columns("a.png", None, ""), LegacyImage("a.png"))
        self.assertEqual(image_from_columns("", None, None), NO_IMAGE)

    def test_blob_image_clears_other_columns(self):
        self.assertEqual(
            image_to_columns(BlobImage("ref")),
            {"image_path": "", "image_id": "ref", "image_base64": ""},
        )


class ImageAdapterTests(unittest.TestCase):
    def setUp(self):
        self.blobs = InMemoryBlobStore()
        self.images = ImageAdapter(
            self.blobs, image_route="/api/portfolio/image/", max_bytes=1024
        )
        self.upload = ImageUpload(data=PNG, filename="a.png", content_type="image/png")

    def test_resolve_url(self):
        self.assertEqual(self.images.resolve_url(NO_IMAGE), "")
        self.assertEqual(
            self.images.resolve_url(BlobImage("abc")), "/api/portfolio/image/abc"
        )
        self.assertEqual(self.images.resolve_url(InlineImage("data:x")), "data:x")
        self.assertEqual(self.images.resolve_url(LegacyImage("a.png")), "a.png")

    def test_for_create(self):
        self.assertEqual(self.images.for_create(None, None), NO_IMAGE)
        inline = encode_data_uri(PNG, "image/png")
        self.assertEqual(self.images.for_create(None, inline), InlineImage(inline))
        stored = self.images.for_create(self.upload, None)
        self.assertIsInstance(stored, BlobImage)
        self.assertEqual(self.blobs.get(stored.ref).data, PNG)

    def test_problems(self):
        self.assertEqual(self.images.problems(None, None), [])
        self.assertEqual(len(self.images.problems(self.upload, "data:x")), 1)
        too_big = ImageUpload(data=b"0" * 2048, filename="b", content_type="image/png")
        problems = self.images.problems(too_big, None)
        self.assertEqual(len(problems), 1)
        self.assertTrue(problems[0].startswith("Image files cannot exceed"))
        text = ImageUpload(data=b"hi", filename="c.txt", content_type="text/plain")
        self.assertEqual(
            self.images.problems(text, None), ["Only image files can be uploaded."]
        )
        inline_text = encode_data_uri(b"hi", "text/plain")
        self.assertEqual(
            self.images.problems(None, inline_text),
            ["Only image files can be uploaded."],
        )

    def test_invalid_request_raises_before_storing(self):
        with self.assertRaises(ValidationFailed):
            self.images.for_create(self.upload, encode_data_uri(PNG, "image/png"))
        self.assertEqual(self.blobs.stored_objects, {})

    def test_update_without_image_keeps_current(self):
        self.assertIsNone(self.images.for_update(BlobImage("abc"), None, None))

    def test_update_replaces_blob(self):
        first = self.images.for_create(self.upload, None)
        second = self.images.for_update(first, self.upload, None)
        self.assertNotEqual(first, second)
        self.assertEqual(list(self.blobs.stored_objects), [second.ref])

    def test_update_to_inline_releases_blob(self):
        first = self.images.for_create(self.upload, None)
        inline = encode_data_uri(PNG, "image/png")
        self.assertEqual(
            self.images.for_update(first, None, inline), InlineImage(inline)
        )
        self.assertEqual(self.blobs.stored_objects, {})

    def test_release_is_best_effort(self):
        self.assertFalse(self.images.release(LegacyImage("a.png")))
        self.assertFalse(self.images.release(BlobImage("missing")))
        stored = self.images.for_create(self.upload, None)
        with patch.object(self.blobs, "delete", side_effect=ConnectionError("down")):
            self.assertFalse(self.images.release(stored))
        self.assertTrue(self.images.release(stored))

    def test_fetch_missing_blob(self):
        with self.assertRaises(NotFound):
            self.images.fetch("missing")


if __name__ == "__main__":
    unittest.main()
