import logging
from pathlib import Path

from facetagger.config import Settings
from facetagger.errors import PersistError, SourceNotFound, StoreError

log = logging.getLogger("facetagger.storage")

FACE_SUFFIX = ".jpg"


class LocalStorage:
    """Filesystem artifact store holding source images and face crops side by side."""

    def __init__(self, root: str | Path, images_subdir: str = "images", faces_subdir: str = "faces"):
        self.root = Path(root)
        self.images_dir = self.root / images_subdir
        self.faces_dir = self.root / faces_subdir
        self.images_dir.mkdir(parents=True, exist_ok=True)
        self.faces_dir.mkdir(parents=True, exist_ok=True)

    @classmethod
    def from_settings(cls, settings: Settings) -> "LocalStorage":
        return cls(settings.STORAGE_DIR, settings.IMAGES_SUBDIR, settings.FACES_SUBDIR)

    @staticmethod
    def _resolve(folder: Path, key: str) -> Path:
        # keys are flat object names; reject anything that escapes the folder
        if not key or key in (".", "..") or "/" in key or "\\" in key or "\x00" in key:
            raise SourceNotFound("invalid object key", key=key)
        return folder / key

    # Source images

    def image_path(self, object_id: str) -> Path:
        return self._resolve(self.images_dir, object_id)

    def save_image(self, object_id: str, data: bytes) -> str:
        path = self.image_path(object_id)
        try:
            path.write_bytes(data)
        except OSError as exc:
            raise PersistError("failed to write image", object_id=object_id) from exc
        return object_id

    def read_image(self, object_id: str) -> bytes:
        path = self.image_path(object_id)
        try:
            return path.read_bytes()
        except FileNotFoundError as exc:
            raise SourceNotFound("source image missing", object_id=object_id) from exc
        except OSError as exc:
            raise StoreError("source image unreadable", object_id=object_id) from exc

    def image_exists(self, object_id: str) -> bool:
        try:
            return self.image_path(object_id).is_file()
        except SourceNotFound:
            return False

    # Face crops

    def face_path(self, face_id: str) -> Path:
        return self._resolve(self.faces_dir, f"{face_id}{FACE_SUFFIX}")

    def save_face(self, face_id: str, data: bytes) -> str:
        path = self.face_path(face_id)
        try:
            # write-once: a fresh FaceID never collides with an existing crop
            with open(path, "xb") as f:
                f.write(data)
        except OSError as exc:
            raise PersistError("failed to write face crop", face_id=face_id) from exc
        log.info("Stored face crop %s (%d bytes)", path.name, len(data))
        return path.name

    def read_face(self, face_id: str) -> bytes:
        path = self.face_path(face_id)
        try:
            return path.read_bytes()
        except FileNotFoundError as exc:
            raise SourceNotFound("face crop missing", face_id=face_id) from exc
        except OSError as exc:
            raise StoreError("face crop unreadable", face_id=face_id) from exc

    def face_exists(self, face_id: str) -> bool:
        try:
            return self.face_path(face_id).is_file()
        except SourceNotFound:
            return False
