# CUI // SP-CTI
"""Analyze / convert / verify / cleanup stages for the legacy SDK migration."""
from migrator.codemods.runner import (  # noqa: F401
    StageRun,
    run_analyze,
    run_cleanup,
    run_convert,
    run_verify,
)
