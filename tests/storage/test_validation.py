"""
Unit Tests for save collection schema validation.
"""

import pytest

from pdf_annotator.errors import StorageError
from pdf_annotator.storage.validation import validate_collection


@pytest.fixture
def valid_collection() -> dict:
    return {
        "version": 1,
        "saves": [
            {
                "id": "save_abc123",
                "fileName": "doc.pdf",
                "pageCount": 10,
                "createdAt": "2024-03-05T14:07:00.000Z",
                "updatedAt": "2024-03-05T14:07:00.000Z",
                "data": {
                    "currentPage": 2,
                    "scale": 1.2,
                    "metadata": {},
                    "contentAreas": {
                        "2": [
                            {"id": "area_aaaaaa", "type": "text", "x": 1, "y": 2,
                             "width": 3, "height": 4, "index": 0, "deleted": False}
                        ]
                    },
                    "margins": {"2": {"top": 72, "right": -72, "bottom": -72, "left": 72}},
                },
            }
        ],
    }


class TestValidateCollection:
    def test_valid_collection_passes(self, valid_collection):
        validate_collection(valid_collection)

    def test_missing_saves_fails(self):
        with pytest.raises(StorageError):
            validate_collection({"version": 1})

    def test_unknown_area_type_fails(self, valid_collection):
        valid_collection["saves"][0]["data"]["contentAreas"]["2"][0]["type"] = "diagram"
        with pytest.raises(StorageError, match="contentAreas"):
            validate_collection(valid_collection)

    def test_positive_bottom_margin_fails(self, valid_collection):
        valid_collection["saves"][0]["data"]["margins"]["2"]["bottom"] = 10
        with pytest.raises(StorageError):
            validate_collection(valid_collection)

    def test_newer_version_fails(self, valid_collection):
        valid_collection["version"] = 2
        with pytest.raises(StorageError, match="Unsupported"):
            validate_collection(valid_collection)
