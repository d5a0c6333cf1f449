"""
Chat front end: maps operator commands onto the labeling and retrieval workflows.

Commands:
  /getface         -> send the next unnamed face, its id in the caption
  /find <name>     -> send every image containing <name>
  reply to a face  -> name that face

The face being named is recovered from the replied-to message's caption, so the
bot keeps no per-operator session state.
"""

import logging
import re
from typing import Optional

from facetagger.config import Settings
from facetagger.errors import ChatTransportError, StoreError, UnknownFace
from facetagger.schemas.telegram import Message, Update
from facetagger.services.labeling import LabelingService
from facetagger.services.links import face_url, image_url
from facetagger.services.retrieval import RetrievalService
from facetagger.services.telegram import TelegramClient, escape_markdown

log = logging.getLogger("facetagger.chat")

FACE_ID_RE = re.compile(r"[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{12}")

MSG_ERROR = "Error"
MSG_NO_FACES = "No unnamed faces found"
MSG_UNKNOWN_FACE = "Face not found"


def face_caption(face_id: str) -> str:
    return f"Face `{face_id}`\nReply to this message with the person's name."


def extract_face_id(message: Optional[Message]) -> Optional[str]:
    if message is None:
        return None
    match = FACE_ID_RE.search(message.caption or message.text or "")
    return match.group(0) if match else None


def parse_command(text: str) -> tuple[str, str]:
    """Split "/cmd@bot rest of line" into ("/cmd", "rest of line")."""
    head, _, rest = text.strip().partition(" ")
    return head.split("@", 1)[0].lower(), rest.strip()


class ChatBot:
    def __init__(
        self,
        settings: Settings,
        telegram: TelegramClient,
        labeling: LabelingService,
        retrieval: RetrievalService,
    ):
        self.settings = settings
        self.telegram = telegram
        self.labeling = labeling
        self.retrieval = retrieval

    async def handle_update(self, update: Update):
        msg = update.message
        if msg is None:
            log.info("Ignoring update %s without a message", update.update_id)
            return
        if msg.reply_to_message is not None:
            await self.handle_name_reply(msg)
            return

        text = (msg.text or "").strip()
        if not text:
            await self.reply(msg, MSG_ERROR)
            return

        command, arg = parse_command(text)
        if command == "/getface":
            await self.handle_get_face(msg)
        elif command == "/find":
            if not arg:
                await self.reply(msg, MSG_ERROR)
                return
            await self.handle_find(msg, arg)
        else:
            await self.reply(msg, MSG_ERROR)

    async def handle_get_face(self, msg: Message):
        try:
            face_id = await self.labeling.next_unlabeled()
        except StoreError as exc:
            log.error("Next unlabeled face lookup failed: %s", exc)
            await self.reply(msg, MSG_ERROR)
            return
        if face_id is None:
            await self.reply(msg, MSG_NO_FACES)
            return
        try:
            await self.telegram.send_photo(
                msg.chat.id,
                face_url(self.settings, face_id),
                caption=face_caption(face_id),
            )
        except ChatTransportError as exc:
            log.warning("Failed to send face %s: %s", face_id, exc)
            await self.reply(msg, MSG_NO_FACES)

    async def handle_name_reply(self, msg: Message):
        name = (msg.text or "").strip()
        face_id = extract_face_id(msg.reply_to_message)
        if not name or face_id is None:
            await self.reply(msg, MSG_ERROR)
            return
        try:
            await self.labeling.assign_name(face_id, name)
        except UnknownFace:
            await self.reply(msg, MSG_UNKNOWN_FACE)
            return
        except StoreError as exc:
            log.error("Naming face %s failed: %s", face_id, exc)
            await self.reply(msg, MSG_ERROR)
            return
        await self.reply(msg, f"Face `{face_id}` is now named {escape_markdown(name)}")

    async def handle_find(self, msg: Message, name: str):
        try:
            images = await self.retrieval.find_images_by_name(name)
        except StoreError as exc:
            log.error("Lookup of images for %r failed: %s", name, exc)
            await self.reply(msg, MSG_ERROR)
            return
        if not images:
            await self.reply(msg, f"No photos of {escape_markdown(name)} found")
            return
        failed = 0
        for object_id in images:
            try:
                await self.telegram.send_photo(msg.chat.id, image_url(self.settings, object_id))
            except ChatTransportError as exc:
                failed += 1
                log.warning("Failed to send image %s: %s", object_id, exc)
        if failed:
            log.warning("%d of %d image(s) for %r were not delivered", failed, len(images), name)

    async def reply(self, msg: Message, text: str):
        await self.telegram.send_message(msg.chat.id, text, reply_to=msg.message_id)
