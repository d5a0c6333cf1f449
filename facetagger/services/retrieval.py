import logging
from typing import List

from tortoise.exceptions import BaseORMException

from facetagger.errors import StoreError
from facetagger.models import Relation
from facetagger.services.metrics import record_retrieval

log = logging.getLogger("facetagger.retrieval")


class RetrievalService:
    async def find_images_by_name(self, name: str) -> List[str]:
        """Image ids whose faces carry ``name``; empty when nobody has that name.

        An image appears once per matching face.
        """
        try:
            images = await (
                Relation.filter(face__face_name=name)
                .order_by("created_at")
                .values_list("image_id", flat=True)
            )
        except BaseORMException as exc:
            raise StoreError("failed to query images by name", name=name) from exc
        record_retrieval(bool(images))
        log.info("Found %d image(s) for %r", len(images), name)
        return list(images)
