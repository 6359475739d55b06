import logging
from typing import List, Optional, Sequence, Tuple

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql import Executable

from common.exceptions import CascadeDeleteError

logger = logging.getLogger(__name__)


async def delete_in_order(
    db: AsyncSession,
    root: str,
    root_id: int,
    steps: Sequence[Tuple[str, Executable]],
    deleted: Optional[List[str]] = None,
) -> List[str]:
    """
    Run ``(table, delete statement)`` steps in order, committing each one.
    Stops at the first failure with CascadeDeleteError; earlier steps stay
    committed.
    """
    deleted = deleted if deleted is not None else []
    for table, stmt in steps:
        try:
            await db.execute(stmt)
            await db.commit()
        except SQLAlchemyError as exc:
            await db.rollback()
            raise CascadeDeleteError(root, root_id, table, deleted, exc) from exc
        deleted.append(table)
        logger.debug("Deleted %s rows of %s %s", table, root, root_id)
    return deleted
