import logging
from contextlib import contextmanager

from ..extensions import db
from .errors import OperationFailed, PlanningError

logger = logging.getLogger(__name__)


@contextmanager
def atomic(operation):
    """Run the block as one transaction on the request session.

    Commits on success. Any exception rolls the session back; planning errors
    propagate as they are, everything else becomes ``OperationFailed``.
    """
    try:
        yield db.session
        db.session.commit()
    except PlanningError:
        db.session.rollback()
        raise
    except Exception as exc:
        db.session.rollback()
        logger.exception("%s failed, rolled back", operation)
        raise OperationFailed(f"{operation} failed") from exc
