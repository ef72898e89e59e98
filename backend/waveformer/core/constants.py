"""Project-wide constants and state definitions."""

from __future__ import annotations

from enum import Enum


class JobStatus(str, Enum):
    VALIDATING = "validating"
    FETCHING = "fetching"
    PROBING = "probing"
    GENERATING = "generating"
    UPLOADING = "uploading"
    NOTIFYING_SUCCESS = "notifying_success"
    NOTIFYING_FAILURE = "notifying_failure"


JOB_NAME = "waveform"
SCHEMA_VERSION = "v1"

# audiowaveform only writes 8 or 16 bit peaks
MAX_PEAKS_BIT_DEPTH = 16
