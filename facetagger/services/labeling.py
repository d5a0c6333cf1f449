import logging
from typing import Optional

from tortoise.exceptions import BaseORMException

from facetagger.errors import StoreError, UnknownFace
from facetagger.models import Face
from facetagger.services.metrics import record_labeled

log = logging.getLogger("facetagger.labeling")


class LabelingService:
    """
    Surfaces unnamed faces and commits operator-supplied names.

    The service keeps no record of which face was shown to whom; concurrent
    operators may be offered, and label, the same pending face.
    """

    async def next_unlabeled(self) -> Optional[str]:
        """Oldest face without a name, or None when nothing is pending."""
        try:
            face = (
                await Face.filter(face_name__isnull=True)
                .order_by("created_at", "face_id")
                .first()
            )
        except BaseORMException as exc:
            raise StoreError("failed to read pending faces") from exc
        return face.face_id if face else None

    async def assign_name(self, face_id: str, name: str) -> Face:
        """Set the face's name, overwriting any previous one."""
        try:
            updated = await Face.filter(face_id=face_id).update(face_name=name)
            if not updated:
                raise UnknownFace("no such face", face_id=face_id)
            face = await Face.get(face_id=face_id)
        except BaseORMException as exc:
            raise StoreError("failed to name face", face_id=face_id) from exc
        record_labeled()
        log.info("Face %s named %r", face_id, name)
        return face
