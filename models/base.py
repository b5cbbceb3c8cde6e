from sqlalchemy.orm import declarative_base
import enum

Base = declarative_base()


# ============================================================================
# ENUMS
# ============================================================================

class CheckpointPolicy(str, enum.Enum):
    """How the next checkpoint is derived at the end of a run"""
    SAFETY_MARGIN = "safety_margin"  # now - margin, re-scans a trailing window
    NAIVE = "naive"                  # now, no re-scan


class RunStatus(str, enum.Enum):
    """Outcome of one sync pass"""
    SUCCESS = "success"
    PARTIAL = "partial_success"
