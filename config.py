# config.py
import os

# ======= Search pruning =======
# "flood" rejects placements that strand the anchor cell or leave an empty
# region no subset of the pieces can fill. "off" keeps only the geometric and
# overlap checks.
HOLE_CHECK = os.getenv("CAL_HOLE_CHECK", "flood").strip().lower() or "flood"

# ======= Search caps =======
# 0 disables the cap; the search then runs to exhaustion.
NODE_LIMIT     = int(os.getenv("CAL_NODE_LIMIT", "0"))
PROGRESS_EVERY = int(os.getenv("CAL_PROGRESS_EVERY", "5000"))

# ======= CP-SAT cross-check =======
CROSS_CHECK       = int(os.getenv("CAL_CROSS_CHECK", "0")) != 0
CP_SAT_SECONDS    = float(os.getenv("CAL_CP_SAT_SECONDS", "60"))
CP_SAT_ISOLATE    = int(os.getenv("CAL_CP_SAT_ISOLATE", "1")) != 0
MAX_MEMORY_MB     = int(os.getenv("CAL_MAX_MEMORY_MB", "2048"))

# ======= Web view =======
MAX_RENDERED = int(os.getenv("CAL_MAX_RENDERED", "12"))

class CFG:
    HOLE_CHECK = HOLE_CHECK

    NODE_LIMIT     = NODE_LIMIT
    PROGRESS_EVERY = PROGRESS_EVERY

    CROSS_CHECK    = CROSS_CHECK
    CP_SAT_SECONDS = CP_SAT_SECONDS
    CP_SAT_ISOLATE = CP_SAT_ISOLATE
    MAX_MEMORY_MB  = MAX_MEMORY_MB

    MAX_RENDERED = MAX_RENDERED

HOLE_CHECK_MODES = ("flood", "off")

__all__ = ["CFG", "HOLE_CHECK_MODES"]
