import pytest

from facetagger.models import Face, Relation
from facetagger.services.retrieval import RetrievalService


@pytest.fixture
async def seeded(db_setup):
    f1 = await Face.create(face_id="f1", face_name="Alice")
    f2 = await Face.create(face_id="f2")
    await Relation.create(image_id="img1", face=f1)
    await Relation.create(image_id="img2", face=f1)
    await Relation.create(image_id="img3", face=f2)


async def test_find_images_by_name(seeded):
    images = await RetrievalService().find_images_by_name("Alice")
    assert sorted(images) == ["img1", "img2"]


async def test_unknown_name_is_empty(seeded):
    assert await RetrievalService().find_images_by_name("Mallory") == []


async def test_name_match_is_exact(seeded):
    assert await RetrievalService().find_images_by_name("alice") == []


async def test_one_entry_per_matching_face(seeded):
    f3 = await Face.create(face_id="f3", face_name="Alice")
    await Relation.create(image_id="img1", face=f3)

    images = await RetrievalService().find_images_by_name("Alice")

    assert sorted(images) == ["img1", "img1", "img2"]
