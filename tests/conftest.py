import io

import numpy as np
import pytest
from PIL import Image

from qrcheckin.models.schemas import Registration
from qrcheckin.services.broadcaster import AttendanceBroadcaster
from qrcheckin.services.capture_pipeline import CapturePipeline
from qrcheckin.services.qr_decoder import DecodedSymbol
from qrcheckin.services.registration_store import InMemoryRegistrationStore
from qrcheckin.services.token_codec import TokenCodec
from qrcheckin.services.token_issuer import TokenIssuer
from qrcheckin.services.token_renderer import TokenRenderer
from qrcheckin.services.token_verifier import TokenVerifier

SECRET = "test-secret"
ISSUED_AT = 1700000000000


class FakeClock:
    """Settable clock; call to read, advance() to move forward."""

    def __init__(self, now=0.0, step=0):
        self.now = now
        self.step = step

    def __call__(self):
        value = self.now
        self.now += self.step
        return value

    def advance(self, seconds):
        self.now += seconds


class FakeCamera:
    def __init__(self, frame=None, fail_on_read=False):
        self.frame = np.zeros((480, 640, 3), dtype=np.uint8) if frame is None else frame
        self.fail_on_read = fail_on_read
        self.reads = 0
        self.released = False

    def read(self):
        if self.fail_on_read:
            raise RuntimeError("camera unplugged")
        self.reads += 1
        return self.frame

    def release(self):
        self.released = True


class FakeDecoder:
    """Scripted decode primitive: pops one result per call, then `default`."""

    def __init__(self, results=None, default=None):
        self.results = list(results or [])
        self.default = default
        self.calls = []

    def __call__(self, pixels, width, height, mode):
        self.calls.append((width, height, mode))
        data = self.results.pop(0) if self.results else self.default
        return DecodedSymbol(data=data) if data else None


class RecordingEvents:
    def __init__(self):
        self.scanned = []
        self.errors = []
        self.states = []
        self.feedback = []

    def on_scanned(self, registration_id, full_name):
        self.scanned.append((registration_id, full_name))

    def on_error(self, kind, message):
        self.errors.append((kind, message))

    def on_status_change(self, state):
        self.states.append(state)

    def on_feedback(self, hint, message):
        self.feedback.append(hint)


def png_bytes(size=(40, 40)):
    buffer = io.BytesIO()
    Image.new("L", size, 255).save(buffer, format="PNG")
    return buffer.getvalue()


@pytest.fixture
def jane():
    return Registration(
        id="reg_001",
        full_name="Jane Doe",
        gender="Female",
        date_of_birth="2001-01-01",
        phone_number="+1555",
        email_address="jane@x.com",
    )


@pytest.fixture
def registrations(jane):
    return [
        jane,
        Registration(
            id="ckv9x2l0s0000abcd1234",
            full_name="John Smith",
            gender="Male",
            date_of_birth="1999-05-17T00:00:00.000Z",
            phone_number="+234 801 234 5678",
            email_address="john.smith@example.org",
        ),
        Registration(
            id="reg_unicode_003",
            full_name="Zoë Ådahl-Nkemelu",
            gender="Female",
            date_of_birth="1987-12-31",
            phone_number="08012345678",
            email_address="zoe@example.com",
        ),
    ]


@pytest.fixture
def store(registrations):
    return InMemoryRegistrationStore(registrations)


@pytest.fixture
def codec():
    return TokenCodec(SECRET)


@pytest.fixture
def renderer():
    return TokenRenderer(error_correction="M", box_size=4, border=4)


@pytest.fixture
def issue_clock():
    return FakeClock(now=ISSUED_AT, step=1000)


@pytest.fixture
def issuer(store, codec, renderer, issue_clock):
    return TokenIssuer(store, codec, renderer, clock=issue_clock)


@pytest.fixture
def verifier(store, codec):
    return TokenVerifier(store, codec)


@pytest.fixture
def broadcaster():
    return AttendanceBroadcaster()


@pytest.fixture
def decoder():
    return FakeDecoder()


@pytest.fixture
def pipeline(decoder):
    return CapturePipeline(decoder_loader=lambda: decoder)
