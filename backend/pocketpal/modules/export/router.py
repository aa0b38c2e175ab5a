"""
Export API routes.
"""

from fastapi import APIRouter, Depends
from fastapi.responses import StreamingResponse
from sqlalchemy.orm import Session

from pocketpal.core.auth import CurrentUser, require_onboarded
from pocketpal.core.database import get_db
from pocketpal.modules.export.services import backup_filename, build_backup

router = APIRouter()


@router.get("/backup")
async def download_backup(
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(require_onboarded),
):
    """
    Download every movement, account, category and recurring template as a
    ZIP of CSV files.
    """
    buffer = build_backup(db, user.id)
    return StreamingResponse(
        buffer,
        media_type="application/zip",
        headers={
            "Content-Disposition": f"attachment; filename={backup_filename()}"
        },
    )
