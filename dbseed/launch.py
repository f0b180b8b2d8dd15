from __future__ import annotations

import logging

from sqlalchemy.engine import Engine

from .binders import BinderConfiguration
from .db.session import DbSession
from .operation.base import Operation

logger = logging.getLogger(__name__)


def launch(
    engine: Engine,
    operation: Operation,
    configuration: BinderConfiguration | None = None,
) -> None:
    """
    Execute ``operation`` in a new DbSession.

    The session commits if the operation succeeds and rolls back otherwise;
    the exception is propagated.

    Example:
        launch(engine, sequence_of(insert_clients, insert_orders))
    """
    logger.info("Launching %r", operation)
    with DbSession(engine) as session:
        operation.execute(session, configuration)
