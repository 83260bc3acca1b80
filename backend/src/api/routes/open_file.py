"""Route that opens a clicked note in the user's editor."""

from fastapi import APIRouter, BackgroundTasks, Query, Response

from ...services.config import get_config
from ...services.opener import FileOpener

router = APIRouter()


@router.get("/open")
async def open_file(
    background_tasks: BackgroundTasks,
    file: str = Query(..., min_length=1, description="Path of the file to open"),
) -> Response:
    """Open a file with the configured command; always answers with a bare 200."""
    opener = FileOpener(get_config().open_command)
    background_tasks.add_task(opener.open, file)
    return Response(status_code=200)
