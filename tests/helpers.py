"""Shared test helpers.

Plain classes and functions importable by conftest.py and test modules.
These are NOT fixtures.
"""
from apkara.errors import NotificationFailure

GROUP_JID = "120363000000000000@g.us"


class FakeGateway:
    """Records outbound messages instead of calling the gateway."""

    def __init__(self, subject="Test", available=True):
        self.subject = subject
        self.available = available
        self.texts = []
        self.images = []
        self.fail_sends = False

    def send_text(self, chat_id, text, quoted=None):
        if self.fail_sends:
            raise NotificationFailure("gateway down")
        self.texts.append({"chat_id": chat_id, "text": text, "quoted": quoted})
        return {}

    def send_image(self, chat_id, image, caption="", quoted=None):
        if self.fail_sends:
            raise NotificationFailure("gateway down")
        self.images.append({"chat_id": chat_id, "image": image, "caption": caption, "quoted": quoted})
        return {}

    def send_image_file(self, chat_id, path, caption="", quoted=None):
        return self.send_image(chat_id, str(path), caption=caption, quoted=quoted)

    def group_subject(self, chat_id):
        return self.subject


class FakeClock:
    def __init__(self, now=1_700_000_000.0):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


def make_event(text, quoted_text=None, chat_id=GROUP_JID, from_me=False, message_id="MSG1"):
    """Gateway `messages.upsert` webhook payload."""
    if quoted_text is None:
        message = {"conversation": text}
    else:
        message = {
            "extendedTextMessage": {
                "text": text,
                "contextInfo": {"quotedMessage": {"conversation": quoted_text}},
            }
        }
    return {
        "event": "messages.upsert",
        "data": {
            "key": {
                "remoteJid": chat_id,
                "fromMe": from_me,
                "id": message_id,
                "participant": "919800000000@s.whatsapp.net",
            },
            "pushName": "Loader",
            "message": message,
            "messageType": "extendedTextMessage" if quoted_text is not None else "conversation",
        },
    }
