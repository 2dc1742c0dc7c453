"""House-edge verification: exact identities and large-sample checks."""

from stepgrid.evaluation.rtp import (
    FrequencyReport,
    RtpReport,
    check_step_frequency,
    telescoping_product,
    theoretical_rtp,
    verify_engine_rtp,
    verify_rtp,
)

__all__ = [
    "FrequencyReport",
    "RtpReport",
    "check_step_frequency",
    "telescoping_product",
    "theoretical_rtp",
    "verify_engine_rtp",
    "verify_rtp",
]
