"""
BEHAVIOR-AS-CONSTANTS
---------------------
Single source of truth for the values that shape session behavior.

Rules:
- If changing a value changes runtime behavior, it belongs here.
- No magic numbers elsewhere in the codebase.
- AppConfig may override the reconnect knobs per deployment.
"""

from __future__ import annotations

from typing import Final, Tuple

# =============================================================================
# Reconnect backoff
# =============================================================================
# delay(attempt) = min(BASE * 2**attempt, MAX)

RECONNECT_BASE_DELAY_MS: Final[int] = 1_000
RECONNECT_MAX_DELAY_MS: Final[int] = 30_000
MAX_RECONNECT_ATTEMPTS: Final[int] = 5

# =============================================================================
# Connection config validation
# =============================================================================

# Access tokens are signed JWTs: header.payload.signature
TOKEN_SEGMENT_COUNT: Final[int] = 3
ALLOWED_URL_SCHEMES: Final[Tuple[str, ...]] = ("ws://", "wss://")

# =============================================================================
# Credential issuance
# =============================================================================

TOKEN_TTL_S: Final[int] = 600
CREDENTIAL_REQUEST_TIMEOUT_S: Final[float] = 10.0
TOKEN_ENDPOINT_PATH: Final[str] = "/api/token"

# =============================================================================
# Local media capture defaults
# =============================================================================

VIDEO_CAPTURE_WIDTH: Final[int] = 1280
VIDEO_CAPTURE_HEIGHT: Final[int] = 720

AUDIO_CAPTURE_SAMPLE_RATE_HZ: Final[int] = 48_000
AUDIO_CAPTURE_CHANNELS: Final[int] = 1

MICROPHONE_TRACK_NAME: Final[str] = "microphone"
CAMERA_TRACK_NAME: Final[str] = "camera"
