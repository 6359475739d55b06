import logging
from typing import List, Optional

from fastapi import HTTPException, Request, status
from fastapi.responses import JSONResponse

from common.responses import error_response

logger = logging.getLogger(__name__)


def not_found(entity: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"{entity} not found.")


def conflict(detail: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=detail)


def bad_request(detail: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)


class CascadeDeleteError(Exception):
    """
    A multi-table delete stopped part way. ``deleted`` lists the tables whose
    rows are already gone (and are not restored); ``failed_table`` is where it
    stopped.
    """

    def __init__(self, root: str, root_id: int, failed_table: str, deleted: Optional[List[str]] = None, cause: Optional[BaseException] = None):
        self.root = root
        self.root_id = root_id
        self.failed_table = failed_table
        self.deleted = list(deleted or [])
        self.cause = cause
        super().__init__(f"Deleting {root} {root_id} failed at {failed_table} (already deleted: {', '.join(self.deleted) or 'nothing'})")


async def cascade_delete_error_handler(request: Request, exc: CascadeDeleteError) -> JSONResponse:
    logger.error("%s", exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=error_response(
            "Cascade delete failed.",
            {"root": exc.root, "id": exc.root_id, "failed_table": exc.failed_table, "deleted": exc.deleted},
        ),
    )
