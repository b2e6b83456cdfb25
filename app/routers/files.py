from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import FileResponse

from app.core.dependencies import get_locale, get_storage
from app.core.localization import localize_message
from app.core.storage import LocalStorageService, StorageService

router = APIRouter(prefix="/files", tags=["files"])


@router.get("/{folder}/{file_name}")
def get_stored_file(
    folder: str,
    file_name: str,
    storage: StorageService = Depends(get_storage),
    locale: str = Depends(get_locale),
):
    # Remote backends serve their own URLs.
    if not isinstance(storage, LocalStorageService):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=localize_message("File not found", locale))
    file_path = storage.path_for(folder, file_name)
    if not file_path.is_file():
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=localize_message("File not found", locale))
    return FileResponse(file_path)
