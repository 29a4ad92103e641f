import logging
from pathlib import Path
from typing import Union

from .models import TestSuite

logger = logging.getLogger(__name__)


def load_suite(path: Union[str, Path]) -> TestSuite:
    """Read and validate a test-specification JSON document."""
    raw = Path(path).read_text(encoding="utf-8")
    suite = TestSuite.model_validate_json(raw)

    logger.info(
        "[TESTSPEC] Loaded suite '%s' | version=%s | tests=%d",
        suite.suite_id,
        suite.version,
        len(suite.tests),
    )
    return suite
